from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable


class Mode(Enum):
    SAFE = "safe"
    STRICT = "strict"


@dataclass(frozen=True)
class Guarded:
    value: Any = None
    failure: BaseException | None = None

    @property
    def crashed(self) -> bool:
        return self.failure is not None


def guard(mode: Mode, fn: Callable[[], Any]) -> Guarded:
    """Call ``fn`` and, in safe mode, hand back any crash as a value.

    Every ``BaseException`` counts as a crash, ``sys.exit()`` included, so
    one solution cannot end the batch. ``KeyboardInterrupt`` always
    propagates.
    """
    if mode is Mode.STRICT:
        return Guarded(value=fn())

    try:
        return Guarded(value=fn())
    except KeyboardInterrupt:
        raise
    except BaseException as exc:
        return Guarded(failure=exc)
