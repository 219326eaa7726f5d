from __future__ import annotations

import sys
import threading
import time
from pathlib import Path

import pytest

from dayrun.errors import OtherRunError, ParseFailed, ReadInputFailed, ResolveFailed, Unregistered
from dayrun.executor import (
    Aborted,
    Completed,
    CrashDiagnostic,
    Executor,
    Failed,
    Mode,
    Success,
    Undefined,
)
from dayrun.inputs import InputLoader, InputVariant
from dayrun.registry import Registry, Runner, TaskId
from dayrun.report import render_batch


class SpyLoader(InputLoader):
    def __init__(self, base_dir: Path):
        super().__init__(base_dir)
        self.loaded: list[TaskId] = []

    def load(self, task_id: TaskId, variant: InputVariant = InputVariant.PUZZLE) -> str:
        self.loaded.append(task_id)
        return super().load(task_id, variant)


def _inputs(tmp_path: Path, files: dict[tuple[int, int], str]) -> Path:
    """
    files schema:
      (year, day) -> puzzle input text
    """
    for (year, day), text in files.items():
        d = tmp_path / str(year)
        d.mkdir(exist_ok=True)
        (d / f"day{day:02d}.txt").write_text(text, encoding="utf-8")
    return tmp_path


def _executor(
    tmp_path: Path,
    runners: dict[TaskId, Runner],
    files: dict[tuple[int, int], str],
) -> tuple[Executor, SpyLoader]:
    loader = SpyLoader(_inputs(tmp_path, files))
    return Executor(Registry.from_runners(runners), loader), loader


def _boom(_: object) -> None:
    raise ValueError("boom")


# -------------------------
# run_task
# -------------------------


def test_identity_parse_and_missing_part2(tmp_path: Path) -> None:
    tid = TaskId(2023, 1)
    ex, _ = _executor(tmp_path, {tid: Runner(part1=len)}, {(2023, 1): "abc\n"})

    outcome = ex.run_task(tid)

    assert isinstance(outcome, Completed)
    assert isinstance(outcome.part1, Success)
    assert outcome.part1.value == 3
    assert outcome.part2 == Undefined()
    assert not outcome.failed


def test_unregistered_task_never_reads_input(tmp_path: Path) -> None:
    ex, loader = _executor(tmp_path, {}, {(2023, 2): "x"})

    outcome = ex.run_task(TaskId(2023, 2))

    assert isinstance(outcome, Aborted)
    assert isinstance(outcome.error, Unregistered)
    assert loader.loaded == []


def test_resolve_failure_never_reads_input(tmp_path: Path) -> None:
    tid = TaskId(2023, 3)
    ex, loader = _executor(tmp_path, {tid: "dayrun_missing_solution"}, {(2023, 3): "x"})

    outcome = ex.run_task(tid)

    assert isinstance(outcome, Aborted)
    assert isinstance(outcome.error, ResolveFailed)
    assert loader.loaded == []


def test_missing_input_never_parses(tmp_path: Path) -> None:
    calls: list[str] = []
    tid = TaskId(2023, 4)
    ex, _ = _executor(tmp_path, {tid: Runner(parse=calls.append, part1=len)}, {})

    outcome = ex.run_task(tid)

    assert isinstance(outcome, Aborted)
    assert isinstance(outcome.error, ReadInputFailed)
    assert outcome.error.path == tmp_path / "2023" / "day04.txt"
    assert calls == []


def test_parse_failure_aborts_without_running_parts(tmp_path: Path) -> None:
    calls: list[object] = []
    tid = TaskId(2023, 5)
    ex, _ = _executor(
        tmp_path,
        {tid: Runner(parse=_boom, part1=calls.append, part2=calls.append)},
        {(2023, 5): "x"},
    )

    outcome = ex.run_task(tid)

    assert isinstance(outcome, Aborted)
    assert isinstance(outcome.error, ParseFailed)
    assert isinstance(outcome.error.diagnostic, CrashDiagnostic)
    assert outcome.error.diagnostic.function == "_boom"
    assert calls == []


def test_part_failures_are_local(tmp_path: Path) -> None:
    tid = TaskId(2023, 6)
    ex, _ = _executor(
        tmp_path,
        {tid: Runner(parse=int, part1=_boom, part2=lambda n: n * 2)},
        {(2023, 6): "21\n"},
    )

    outcome = ex.run_task(tid)

    assert isinstance(outcome, Completed)
    assert isinstance(outcome.part1, Failed)
    assert "ValueError - boom" in str(outcome.part1.diagnostic)
    assert isinstance(outcome.part2, Success)
    assert outcome.part2.value == 42
    assert outcome.failed


def test_part1_mutation_does_not_reach_part2(tmp_path: Path) -> None:
    def part1(items: list[str]) -> int:
        items.clear()
        return 0

    tid = TaskId(2023, 7)
    ex, _ = _executor(
        tmp_path,
        {tid: Runner(parse=str.splitlines, part1=part1, part2=len)},
        {(2023, 7): "a\nb\nc\n"},
    )

    outcome = ex.run_task(tid)

    assert outcome.part2.value == 3


def test_sys_exit_in_part_is_captured(tmp_path: Path) -> None:
    tid = TaskId(2023, 8)
    ex, _ = _executor(
        tmp_path,
        {tid: Runner(part1=lambda _: sys.exit(1), part2=len)},
        {(2023, 8): "ab"},
    )

    outcome = ex.run_task(tid)

    assert isinstance(outcome.part1, Failed)
    assert outcome.part2.value == 2


def test_example_variant_reads_example_file(tmp_path: Path) -> None:
    tid = TaskId(2023, 9)
    ex, _ = _executor(tmp_path, {tid: Runner(part1=str.upper)}, {(2023, 9): "real"})
    (tmp_path / "2023" / "day09.example.txt").write_text("example\n", encoding="utf-8")

    outcome = ex.run_task(tid, variant=InputVariant.EXAMPLE)

    assert outcome.part1.value == "EXAMPLE"


@pytest.mark.parametrize(
    "runner",
    [Runner(parse=_boom), Runner(part1=_boom), Runner(part2=_boom)],
)
def test_strict_mode_propagates_crash(tmp_path: Path, runner: Runner) -> None:
    tid = TaskId(2023, 10)
    ex, _ = _executor(tmp_path, {tid: runner}, {(2023, 10): "x"})

    with pytest.raises(ValueError, match="boom"):
        ex.run_task(tid, mode=Mode.STRICT)


# -------------------------
# run_batch / run_all
# -------------------------


def test_batch_keeps_requested_order_and_continues_after_crash(tmp_path: Path) -> None:
    ex, _ = _executor(
        tmp_path,
        {
            TaskId(2023, 1): Runner(parse=_boom),
            TaskId(2023, 2): Runner(part1=len),
        },
        {(2023, 1): "x", (2023, 2): "xy"},
    )
    order = [TaskId(2023, 3), TaskId(2023, 1), TaskId(2023, 2)]

    rr = ex.run_batch(order)

    assert rr.order == order
    assert list(rr.outcomes) == order
    assert isinstance(rr.outcomes[TaskId(2023, 3)].error, Unregistered)
    assert isinstance(rr.outcomes[TaskId(2023, 1)].error, ParseFailed)
    assert rr.outcomes[TaskId(2023, 2)].part1.value == 2
    assert rr.failed == [TaskId(2023, 3), TaskId(2023, 1)]
    assert rr.abandoned == []


@pytest.mark.parametrize("workers", [1, 2])
def test_batch_reports_duplicate_requests_once_each(tmp_path: Path, workers: int) -> None:
    tid = TaskId(2023, 1)
    other = TaskId(2023, 2)
    ex, loader = _executor(
        tmp_path,
        {tid: Runner(part1=len), other: Runner(part1=len)},
        {(2023, 1): "x", (2023, 2): "xy"},
    )

    rr = ex.run_batch([tid, other, tid], workers=workers)
    reports = render_batch(rr)

    assert rr.order == [tid, other, tid]
    assert len(reports) == 3
    assert reports[0] == reports[2]
    assert reports[0].startswith("Ran 2023 day 1:")
    assert sorted(loader.loaded) == [tid, other]


def test_import_time_exit_does_not_end_batch(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / "dayrun_sol_exits.py").write_text(
        "import sys\n\nsys.exit(1)\n", encoding="utf-8"
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    ex, _ = _executor(
        tmp_path,
        {TaskId(2023, 1): "dayrun_sol_exits", TaskId(2023, 2): Runner(part1=len)},
        {(2023, 1): "x", (2023, 2): "xy"},
    )

    rr = ex.run_batch([TaskId(2023, 1), TaskId(2023, 2)])

    failed = rr.outcomes[TaskId(2023, 1)]
    assert isinstance(failed, Aborted)
    assert isinstance(failed.error, ResolveFailed)
    assert isinstance(failed.error.__cause__, SystemExit)
    assert rr.outcomes[TaskId(2023, 2)].part1.value == 2


def test_run_all_runs_registered_days_ascending(tmp_path: Path) -> None:
    ex, loader = _executor(
        tmp_path,
        {
            TaskId(2023, 10): Runner(part1=len),
            TaskId(2023, 2): Runner(part1=len),
            TaskId(2022, 1): Runner(part1=len),
        },
        {(2023, 10): "x", (2023, 2): "x", (2022, 1): "x"},
    )

    rr = ex.run_all(2023)

    assert rr.order == [TaskId(2023, 2), TaskId(2023, 10)]
    assert loader.loaded == [TaskId(2023, 2), TaskId(2023, 10)]


def test_parallel_output_follows_request_order(tmp_path: Path) -> None:
    def slow(raw: str) -> str:
        time.sleep(0.2)
        return raw

    ex, _ = _executor(
        tmp_path,
        {TaskId(2023, 1): Runner(part1=slow), TaskId(2023, 2): Runner(part1=str.upper)},
        {(2023, 1): "first", (2023, 2): "second"},
    )

    rr = ex.run_batch([TaskId(2023, 1), TaskId(2023, 2)], workers=0)

    assert rr.order == [TaskId(2023, 1), TaskId(2023, 2)]
    assert rr.outcomes[TaskId(2023, 1)].part1.value == "first"
    assert rr.outcomes[TaskId(2023, 2)].part1.value == "SECOND"


def test_deadline_abandons_hung_task(tmp_path: Path) -> None:
    release = threading.Event()

    def hang(raw: str) -> str:
        release.wait(10)
        return raw

    ex, _ = _executor(
        tmp_path,
        {TaskId(2023, 1): Runner(part1=len), TaskId(2023, 2): Runner(part1=hang)},
        {(2023, 1): "abc", (2023, 2): "x"},
    )

    try:
        start = time.monotonic()
        rr = ex.run_batch([TaskId(2023, 1), TaskId(2023, 2)], timeout_ms=300, workers=0)
        elapsed = time.monotonic() - start
    finally:
        release.set()

    assert elapsed < 5
    assert rr.outcomes[TaskId(2023, 1)].part1.value == 3
    assert rr.abandoned == [TaskId(2023, 2)]
    abandoned = rr.outcomes[TaskId(2023, 2)]
    assert isinstance(abandoned, Aborted)
    assert isinstance(abandoned.error, OtherRunError)
    assert "300 ms" in str(abandoned.error)


def test_deadline_sequential_never_starts_queued_tasks(tmp_path: Path) -> None:
    release = threading.Event()
    started: list[str] = []

    def hang(raw: str) -> str:
        started.append(raw)
        release.wait(10)
        return raw

    ex, loader = _executor(
        tmp_path,
        {TaskId(2023, 1): Runner(part1=hang), TaskId(2023, 2): Runner(part1=hang)},
        {(2023, 1): "one", (2023, 2): "two"},
    )

    try:
        rr = ex.run_batch([TaskId(2023, 1), TaskId(2023, 2)], timeout_ms=200, workers=1)
    finally:
        release.set()

    assert rr.abandoned == [TaskId(2023, 1), TaskId(2023, 2)]
    assert started == ["one"]
    assert loader.loaded == [TaskId(2023, 1)]


def test_strict_mode_in_pool_raises(tmp_path: Path) -> None:
    ex, _ = _executor(
        tmp_path,
        {TaskId(2023, 1): Runner(part1=_boom), TaskId(2023, 2): Runner(part1=len)},
        {(2023, 1): "x", (2023, 2): "x"},
    )

    with pytest.raises(ValueError, match="boom"):
        ex.run_batch([TaskId(2023, 1), TaskId(2023, 2)], mode=Mode.STRICT, workers=2)


def test_strict_pool_without_deadline_raises_before_labelling(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    release = threading.Event()

    def hang(raw: str) -> str:
        release.wait(10)
        return raw

    ex, _ = _executor(
        tmp_path,
        {TaskId(2023, 1): Runner(part1=hang), TaskId(2023, 2): Runner(part1=_boom)},
        {(2023, 1): "x", (2023, 2): "x"},
    )

    try:
        with pytest.raises(ValueError, match="boom"):
            ex.run_batch([TaskId(2023, 1), TaskId(2023, 2)], mode=Mode.STRICT, workers=0)
    finally:
        release.set()

    assert "None ms" not in caplog.text


# -------------------------
# Parsed input isolation
# -------------------------


class _CountsCopies:
    def __init__(self) -> None:
        self.copies = 0

    def __deepcopy__(self, memo: dict) -> _CountsCopies:
        self.copies += 1
        return self


class _ExitsOnCopy:
    def __deepcopy__(self, memo: dict) -> _ExitsOnCopy:
        sys.exit(1)


def test_no_copy_when_part1_missing(tmp_path: Path) -> None:
    parsed = _CountsCopies()
    tid = TaskId(2023, 11)
    ex, _ = _executor(
        tmp_path,
        {tid: Runner(parse=lambda _: parsed, part2=lambda p: p.copies)},
        {(2023, 11): "x"},
    )

    outcome = ex.run_task(tid)

    assert outcome.part1 == Undefined()
    assert outcome.part2.value == 0


def test_copy_that_exits_falls_back_to_shared_input(tmp_path: Path) -> None:
    parsed = _ExitsOnCopy()
    tid = TaskId(2023, 12)
    ex, _ = _executor(
        tmp_path,
        {
            tid: Runner(
                parse=lambda _: parsed,
                part1=lambda p: p is parsed,
                part2=lambda p: p is parsed,
            )
        },
        {(2023, 12): "x"},
    )

    outcome = ex.run_task(tid)

    assert outcome.part1.value is True
    assert outcome.part2.value is True
