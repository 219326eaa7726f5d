from __future__ import annotations

from dayrun.executor.types import (
    Aborted,
    BatchResult,
    Completed,
    Failed,
    PartOutcome,
    Success,
    TaskOutcome,
    Undefined,
)
from dayrun.registry.types import TaskId


def render(task_id: TaskId, outcome: TaskOutcome, *, show_timings: bool = False) -> str:
    match outcome:
        case Completed(part1, part2):
            return "\n".join(
                [
                    f"Ran {task_id.year} day {task_id.day}:",
                    f"  Part 1: {render_part(part1, show_timings=show_timings)}",
                    f"  Part 2: {render_part(part2, show_timings=show_timings)}",
                ]
            )
        case Aborted(error):
            return layered(f"Failed to run {task_id.year} day {task_id.day}", error)
        case _:
            raise AssertionError("Unreachable")


def render_part(outcome: PartOutcome, *, show_timings: bool = False) -> str:
    match outcome:
        case Success(value, duration_s):
            if show_timings:
                return f"{value} ({duration_s * 1000:.3f} ms)"
            return str(value)
        case Undefined():
            return "function undefined"
        case Failed(diagnostic):
            return str(diagnostic)
        case _:
            raise AssertionError("Unreachable")


def render_batch(result: BatchResult, *, show_timings: bool = False) -> list[str]:
    return [render(tid, result.outcomes[tid], show_timings=show_timings) for tid in result.order]


def layered(context: str, error: BaseException) -> str:
    """Print ``context`` then each cause of ``error``, outermost first."""
    lines = [context]
    seen: set[int] = set()
    current: BaseException | None = error

    while current is not None and id(current) not in seen:
        seen.add(id(current))
        lines.append(f"  caused by: {str(current) or type(current).__name__}")
        current = current.__cause__

    return "\n".join(lines)
