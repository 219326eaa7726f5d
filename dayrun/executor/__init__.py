from .barrier import Guarded, Mode, guard
from .decoder import CrashDiagnostic, TaskCrash, decode
from .executor import Executor
from .types import (
    Aborted,
    BatchResult,
    Completed,
    Failed,
    PartOutcome,
    Success,
    TaskOutcome,
    Undefined,
)

__all__ = [
    "Aborted",
    "BatchResult",
    "Completed",
    "CrashDiagnostic",
    "Executor",
    "Failed",
    "Guarded",
    "Mode",
    "PartOutcome",
    "Success",
    "TaskCrash",
    "TaskOutcome",
    "Undefined",
    "decode",
    "guard",
]
