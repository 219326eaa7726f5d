from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from dayrun.errors import RunError
from dayrun.registry.types import TaskId

from .decoder import CrashDiagnostic


@dataclass(frozen=True)
class Success:
    value: Any
    duration_s: float = 0.0


@dataclass(frozen=True)
class Undefined:
    pass


@dataclass(frozen=True)
class Failed:
    diagnostic: CrashDiagnostic | str
    duration_s: float = 0.0


PartOutcome = Union[Success, Undefined, Failed]


@dataclass(frozen=True)
class Completed:
    part1: PartOutcome
    part2: PartOutcome

    @property
    def failed(self) -> bool:
        return isinstance(self.part1, Failed) or isinstance(self.part2, Failed)


@dataclass(frozen=True)
class Aborted:
    error: RunError

    @property
    def failed(self) -> bool:
        return True


TaskOutcome = Union[Completed, Aborted]


@dataclass(frozen=True)
class BatchResult:
    order: list[TaskId]
    outcomes: dict[TaskId, TaskOutcome]
    abandoned: list[TaskId]

    @property
    def failed(self) -> list[TaskId]:
        return [tid for tid in self.order if self.outcomes[tid].failed]
