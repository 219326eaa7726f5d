from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from dayrun.executor.decoder import CrashDiagnostic
    from dayrun.registry.types import TaskId


class RunError(Exception):
    """A task-level failure: the task stops before any part runs."""

    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class ResolveFailed(RunError):
    def __init__(self, reason: str):
        super().__init__(f"could not resolve solution: {reason}")
        self.reason = reason


class Unregistered(RunError):
    def __init__(self, task_id: TaskId):
        super().__init__(f"no solution registered for {task_id}")
        self.task_id = task_id


class ReadInputFailed(RunError):
    def __init__(self, path: Path):
        super().__init__(f"could not read input file {path}")
        self.path = path


class ParseFailed(RunError):
    def __init__(self, diagnostic: CrashDiagnostic | str):
        super().__init__(f"parsing failed: {diagnostic}")
        self.diagnostic = diagnostic


class OtherRunError(RunError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
