from .registry import Registry, days_for, registry_keys, resolve
from .types import RegistryError, Runner, TaskId

__all__ = [
    "Registry",
    "RegistryError",
    "Runner",
    "TaskId",
    "days_for",
    "registry_keys",
    "resolve",
]
