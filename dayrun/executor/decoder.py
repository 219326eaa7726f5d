from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class TaskCrash(Exception):
    """Raise from a solution to report the value that broke it."""

    def __init__(self, message: str, *, value: Any = None):
        super().__init__(message)
        self.value = value


@dataclass(frozen=True)
class CrashDiagnostic:
    kind: str
    module: str
    function: str
    line: int
    message: str
    value: Any = None

    def __str__(self) -> str:
        text = (
            f"error: {self.kind} - {self.message} in module {self.module} "
            f"in function {self.function} at line {self.line}"
        )
        if self.value is not None:
            text += f" with value {_safe_repr(self.value)}"
        return text


def decode(payload: object) -> CrashDiagnostic | str:
    try:
        diagnostic = _structured(payload)
    except Exception:
        logger.debug("could not decode crash payload", exc_info=True)
        diagnostic = None

    if diagnostic is None:
        return f"run failed for some reason: {_safe_repr(payload)}"
    return diagnostic


def _structured(payload: object) -> CrashDiagnostic | None:
    if not isinstance(payload, BaseException):
        return None

    tb = payload.__traceback__
    if tb is None:
        return None

    while tb.tb_next is not None:
        tb = tb.tb_next

    frame = tb.tb_frame
    return CrashDiagnostic(
        kind=type(payload).__name__,
        module=str(frame.f_globals.get("__name__", "<unknown>")),
        function=frame.f_code.co_name,
        line=tb.tb_lineno,
        message=str(payload),
        value=getattr(payload, "value", None),
    )


def _safe_repr(obj: object) -> str:
    try:
        return repr(obj)
    except Exception:
        return f"<unprintable {type(obj).__name__}>"
