from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ProjectConfig:
    tasks: dict[str, str]
    inputs: Path
    year: int | None = None
    timeout_ms: int | None = None
    workers: int = 1
    root: Path = field(default_factory=Path.cwd)

    def __len__(self):
        return len(self.tasks)

    def has_task(self, key: str) -> bool:
        return key in self.tasks

    def get_module(self, key: str) -> str:
        if not self.has_task(key):
            raise KeyError(key)

        return self.tasks[key]

    def task_keys(self) -> list[str]:
        return sorted(self.tasks.keys())


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
