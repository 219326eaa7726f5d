import json
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import ConfigError, ProjectConfig, UnsupportedConfigFormatError


def load_project(path: str | Path) -> ProjectConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    project = _build_project_config(raw_file, pure_path.parent)
    return project


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    match fmt:
        case "yaml":
            try:
                raw_file = yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: invalid YAML") from exc
        case "toml":
            try:
                raw_file = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"{path}: invalid TOML") from exc
        case "json":
            try:
                raw_file = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"{path}: invalid JSON") from exc
        case _:
            raise AssertionError("Unreachable")

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: {fmt.upper()} parsed successfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _build_project_config(raw: Mapping[str, Any], root: Path) -> ProjectConfig:
    keys = {"tasks", "year", "inputs", "timeout_ms", "workers"}

    for field in raw.keys():
        if field not in keys:
            raise ConfigError(f"Can't process: {field}")

    if not "tasks" in raw:
        raise ConfigError("Missing 'tasks' field")

    if not isinstance(raw["tasks"], Mapping):
        raise ConfigError(f"'tasks' must be a mapping, got {type(raw['tasks'])}")

    if len(raw["tasks"]) < 1:
        raise ConfigError("There must be at least one task in the config file")

    tasks = _build_tasks(raw["tasks"])

    year = None
    if "year" in raw:
        year = _positive_int(raw["year"], "year")

    inputs = root / "inputs"
    if "inputs" in raw:
        if not isinstance(raw["inputs"], str) or len(raw["inputs"].strip()) < 1:
            raise ConfigError("'inputs' should be a non empty string")
        inputs = (root / raw["inputs"].strip()).resolve()

    timeout_ms = None
    if "timeout_ms" in raw:
        timeout_ms = _positive_int(raw["timeout_ms"], "timeout_ms")

    workers = 1
    if "workers" in raw:
        if isinstance(raw["workers"], bool) or not isinstance(raw["workers"], int):
            raise ConfigError(f"'workers' should be an integer, got {type(raw['workers'])}")
        if raw["workers"] < 0:
            raise ConfigError("'workers' can't be negative")
        workers = raw["workers"]

    return ProjectConfig(
        tasks=tasks,
        inputs=inputs,
        year=year,
        timeout_ms=timeout_ms,
        workers=workers,
        root=root,
    )


def _build_tasks(raw_tasks: Mapping[Any, Any]) -> dict[str, str]:
    tasks: dict[str, str] = {}

    for key, value in raw_tasks.items():
        # Nested form: {2023: {1: "module", ...}}
        if isinstance(value, Mapping):
            for day, module in value.items():
                _add_task(tasks, f"{_key_part(key)}-{_key_part(day).zfill(2)}", module)
        else:
            _add_task(tasks, _key_part(key), value)

    return tasks


def _add_task(tasks: dict[str, str], key: str, module: Any) -> None:
    if len(key) < 1:
        raise ConfigError("A task key can't be empty")

    if not isinstance(module, str):
        raise ConfigError(f"{key}: The module should be a string")

    if len(module.strip()) < 1:
        raise ConfigError(f"{key}: Module missing")

    if key in tasks:
        raise ConfigError(f"Duplicate task key after normalization: {key}")

    tasks[key] = module.strip()


def _key_part(part: Any) -> str:
    if isinstance(part, bool) or not isinstance(part, (str, int)):
        raise ConfigError(f"Task key must be a string or an integer, got {type(part)}")

    return str(part).strip()


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{name}' should be an integer, got {type(value)}")

    if value < 1:
        raise ConfigError(f"'{name}' should be positive")

    return value
