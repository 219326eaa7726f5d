from __future__ import annotations

import copy
import logging
import queue
import threading
import time
from concurrent.futures import ALL_COMPLETED, FIRST_EXCEPTION, Future, wait
from typing import Any, Callable, Iterable

from dayrun.errors import OtherRunError, ParseFailed, ReadInputFailed, RunError
from dayrun.inputs import InputLoader, InputVariant
from dayrun.registry import Registry, TaskId, days_for, resolve

from .barrier import Mode, guard
from .decoder import decode
from .types import Aborted, BatchResult, Completed, Failed, PartOutcome, Success, TaskOutcome, Undefined

logger = logging.getLogger(__name__)


def _identity(raw: str) -> str:
    return raw


class Executor:
    def __init__(self, registry: Registry, loader: InputLoader):
        self.registry = registry
        self.loader = loader

    def run_task(
        self,
        task_id: TaskId,
        *,
        mode: Mode = Mode.SAFE,
        variant: InputVariant = InputVariant.PUZZLE,
    ) -> TaskOutcome:
        try:
            runner = resolve(self.registry, task_id.year, task_id.day)
        except RunError as exc:
            logger.info("%s: %s", task_id, exc)
            return Aborted(exc)

        try:
            raw = self.loader.load(task_id, variant)
        except ReadInputFailed as exc:
            logger.info("%s: %s", task_id, exc)
            return Aborted(exc)

        parse = runner.parse or _identity
        parsed = guard(mode, lambda: parse(raw))
        if parsed.crashed:
            error = ParseFailed(decode(parsed.failure))
            logger.info("%s: %s", task_id, error)
            return Aborted(error)

        logger.debug("%s: parsed input, running parts", task_id)
        part1_input = _isolated(parsed.value) if runner.part1 is not None else parsed.value
        part1 = self._run_part(task_id, "part1", runner.part1, part1_input, mode)
        part2 = self._run_part(task_id, "part2", runner.part2, parsed.value, mode)
        return Completed(part1, part2)

    def _run_part(
        self,
        task_id: TaskId,
        name: str,
        fn: Callable[[Any], Any] | None,
        parsed: Any,
        mode: Mode,
    ) -> PartOutcome:
        if fn is None:
            return Undefined()

        start = time.monotonic()
        guarded = guard(mode, lambda: fn(parsed))
        duration = time.monotonic() - start

        if guarded.crashed:
            diagnostic = decode(guarded.failure)
            logger.info("%s %s crashed: %s", task_id, name, diagnostic)
            return Failed(diagnostic, duration)

        logger.debug("%s %s finished in %.3fs", task_id, name, duration)
        return Success(guarded.value, duration)

    def run_batch(
        self,
        task_ids: Iterable[TaskId],
        *,
        mode: Mode = Mode.SAFE,
        variant: InputVariant = InputVariant.PUZZLE,
        timeout_ms: int | None = None,
        workers: int = 1,
    ) -> BatchResult:
        """Run every task and collect the outcomes in requested order.

        ``timeout_ms=None`` waits for every task. Otherwise tasks still
        queued or running when the deadline passes are abandoned: they get an
        aborted outcome and whatever they eventually produce is dropped.
        ``workers=0`` starts one worker per task. A task requested twice runs
        once and is reported once per request.
        """
        order = list(task_ids)

        if timeout_ms is None and workers == 1:
            outcomes = {
                tid: self.run_task(tid, mode=mode, variant=variant) for tid in dict.fromkeys(order)
            }
            return BatchResult(order, outcomes, [])

        return self._run_pooled(order, mode, variant, timeout_ms, workers)

    def run_all(self, year: int, **kwargs: Any) -> BatchResult:
        order = [TaskId(year, day) for day in days_for(self.registry, year)]
        return self.run_batch(order, **kwargs)

    def _run_pooled(
        self,
        order: list[TaskId],
        mode: Mode,
        variant: InputVariant,
        timeout_ms: int | None,
        workers: int,
    ) -> BatchResult:
        unique = list(dict.fromkeys(order))
        futures: dict[TaskId, Future] = {tid: Future() for tid in unique}
        pending: queue.SimpleQueue[TaskId] = queue.SimpleQueue()
        for tid in unique:
            pending.put(tid)
        stop = threading.Event()

        def work() -> None:
            while not stop.is_set():
                try:
                    tid = pending.get_nowait()
                except queue.Empty:
                    return

                future = futures[tid]
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    future.set_result(self.run_task(tid, mode=mode, variant=variant))
                except BaseException as exc:
                    future.set_exception(exc)

        count = len(unique) if workers == 0 else min(workers, len(unique))
        # Daemon threads: a hung solution must not keep the process alive.
        for i in range(count):
            threading.Thread(target=work, name=f"dayrun-worker-{i}", daemon=True).start()

        timeout = None if timeout_ms is None else timeout_ms / 1000
        return_when = FIRST_EXCEPTION if mode is Mode.STRICT else ALL_COMPLETED
        wait(futures.values(), timeout=timeout, return_when=return_when)
        stop.set()

        for tid in unique:
            future = futures[tid]
            future.cancel()
            if future.done() and not future.cancelled() and future.exception() is not None:
                # Strict mode crash, re-raised in requested order.
                future.result()

        outcomes: dict[TaskId, TaskOutcome] = {}
        abandoned: list[TaskId] = []
        for tid in unique:
            future = futures[tid]
            if future.done() and not future.cancelled():
                outcomes[tid] = future.result()
                continue

            abandoned.append(tid)
            outcomes[tid] = Aborted(OtherRunError(_abandoned_message(timeout_ms)))

        if abandoned:
            logger.warning(
                "%s: %s",
                _abandoned_message(timeout_ms),
                ", ".join(str(tid) for tid in abandoned),
            )

        return BatchResult(order, outcomes, abandoned)


def _abandoned_message(timeout_ms: int | None) -> str:
    if timeout_ms is None:
        return "abandoned: batch stopped before the task finished"
    return f"abandoned: deadline of {timeout_ms} ms elapsed"


def _isolated(parsed: Any) -> Any:
    """Give part 1 its own copy so it can't mutate what part 2 sees."""
    # deepcopy may run a user __deepcopy__.
    try:
        return copy.deepcopy(parsed)
    except KeyboardInterrupt:
        raise
    except BaseException:
        logger.debug("parsed input can't be copied, sharing it between parts", exc_info=True)
        return parsed
