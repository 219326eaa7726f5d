from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

_KEY = re.compile(r"^(\d+)-(\d{1,2})$")


@dataclass(frozen=True, order=True)
class TaskId:
    year: int
    day: int

    def __post_init__(self) -> None:
        if self.year < 1:
            raise ValueError(f"year must be positive, got {self.year}")
        if not 1 <= self.day <= 25:
            raise ValueError(f"day must be in 1..25, got {self.day}")

    @classmethod
    def parse(cls, key: str) -> TaskId:
        match = _KEY.match(key.strip())
        if match is None:
            raise ValueError(f"invalid task key {key!r}, expected YYYY-DD")

        return cls(int(match.group(1)), int(match.group(2)))

    @property
    def key(self) -> str:
        return f"{self.year}-{self.day:02d}"

    def __str__(self) -> str:
        return f"{self.year} day {self.day}"


@dataclass(frozen=True)
class Runner:
    """The functions a solution module exports.

    A missing ``parse`` passes the raw input through unchanged; a missing
    part is reported as undefined.
    """

    parse: Callable[[str], Any] | None = None
    part1: Callable[[Any], Any] | None = None
    part2: Callable[[Any], Any] | None = None


class RegistryError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
