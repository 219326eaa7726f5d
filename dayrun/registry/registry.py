from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from dayrun.config.types import ProjectConfig
from dayrun.errors import ResolveFailed, Unregistered

from .types import RegistryError, Runner, TaskId

logger = logging.getLogger(__name__)

_FUNCTIONS = ("parse", "part1", "part2")


@dataclass(frozen=True)
class Registry:
    """Read-only lookup from a task to the place its solution lives.

    Entries are either dotted module paths, imported on first resolve, or
    ready-made runners.
    """

    _entries: Mapping[TaskId, str | Runner]

    @classmethod
    def from_project(cls, project: ProjectConfig) -> Registry:
        entries: dict[TaskId, str | Runner] = {}
        for key in project.task_keys():
            try:
                task_id = TaskId.parse(key)
            except ValueError as exc:
                raise RegistryError(f"bad task key {key!r}") from exc

            if task_id in entries:
                raise RegistryError(f"{task_id} is registered twice")
            entries[task_id] = project.get_module(key)

        return cls._frozen(entries)

    @classmethod
    def from_runners(cls, runners: Mapping[TaskId, str | Runner]) -> Registry:
        for task_id, source in runners.items():
            if not isinstance(task_id, TaskId):
                raise RegistryError(f"registry keys must be TaskId, got {type(task_id)}")
            if not isinstance(source, (str, Runner)):
                raise RegistryError(
                    f"{task_id}: expected a module path or a Runner, got {type(source)}"
                )

        return cls._frozen(dict(runners))

    @classmethod
    def _frozen(cls, entries: dict[TaskId, str | Runner]) -> Registry:
        logger.debug("registry built with %d task(s)", len(entries))
        return cls(MappingProxyType(entries))

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def task_ids(self) -> list[TaskId]:
        return sorted(self._entries)

    def source(self, task_id: TaskId) -> str | Runner:
        if task_id not in self._entries:
            raise Unregistered(task_id)

        return self._entries[task_id]


def resolve(registry: Registry, year: int, day: int) -> Runner:
    task_id = TaskId(year, day)
    source = registry.source(task_id)
    if isinstance(source, Runner):
        return source

    # Importing runs solution code, which may call sys.exit() at module level.
    try:
        module = importlib.import_module(source)
    except KeyboardInterrupt:
        raise
    except BaseException as exc:
        raise ResolveFailed(f"import of {source!r} failed") from exc

    functions: dict[str, Any] = {}
    for name in _FUNCTIONS:
        fn = getattr(module, name, None)
        if fn is not None and not callable(fn):
            raise ResolveFailed(f"{source}.{name} is not callable")
        functions[name] = fn

    logger.debug(
        "resolved %s from %s (%s)",
        task_id,
        source,
        ", ".join(name for name, fn in functions.items() if fn is not None) or "empty",
    )
    return Runner(**functions)


def registry_keys(registry: Registry) -> set[str]:
    return {task_id.key for task_id in registry.task_ids()}


def days_for(registry: Registry, year: int) -> list[int]:
    return sorted(TaskId.parse(key).day for key in registry_keys(registry) if key.startswith(f"{year}-"))
