from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from dayrun.errors import ReadInputFailed
from dayrun.registry.types import TaskId

logger = logging.getLogger(__name__)


class InputVariant(Enum):
    PUZZLE = "puzzle"
    EXAMPLE = "example"


def input_path(base_dir: str | Path, year: int, day: int, variant: InputVariant) -> Path:
    match variant:
        case InputVariant.PUZZLE:
            name = f"day{day:02d}.txt"
        case InputVariant.EXAMPLE:
            name = f"day{day:02d}.example.txt"
        case _:
            raise AssertionError("Unreachable")

    return Path(base_dir) / str(year) / name


def read_input(path: str | Path) -> str:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadInputFailed(path) from exc

    # Only line breaks are trimmed; leading spaces can be significant.
    return text.strip("\r\n")


class InputLoader:
    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def path(self, task_id: TaskId, variant: InputVariant) -> Path:
        return input_path(self.base_dir, task_id.year, task_id.day, variant)

    def load(self, task_id: TaskId, variant: InputVariant = InputVariant.PUZZLE) -> str:
        path = self.path(task_id, variant)
        logger.debug("reading %s input for %s from %s", variant.value, task_id, path)
        return read_input(path)
