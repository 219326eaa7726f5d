from __future__ import annotations

import argparse
import logging
import sys

from dayrun.config import ConfigError, ProjectConfig, load_project
from dayrun.executor import BatchResult, Executor, Mode
from dayrun.inputs import InputLoader, InputVariant
from dayrun.registry import Registry, RegistryError, TaskId
from dayrun.report import layered, render_batch

from .args import build_parser


def main() -> None:
    sys.exit(run_cli())


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        _configure_logging(args.verbose)

        match args.command:
            case "run":
                return cmd_run(args)
            case "run-all":
                return cmd_run_all(args)
            case "list":
                return cmd_list(args)
            case _:
                return 2

    except RegistryError as exc:
        print(layered("failed to generate package interface", exc), file=sys.stderr)
        return 2

    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130


def cmd_run(args: argparse.Namespace) -> int:
    project, executor = _setup(args)
    year = _year(args, project)
    variant = InputVariant.EXAMPLE if args.example else InputVariant.PUZZLE
    task_ids = [_task_id(year, day) for day in args.days]

    rr = executor.run_batch(task_ids, variant=variant, **_run_options(args, project))
    _print_result(rr, args.time)
    return 1 if rr.failed else 0


def cmd_run_all(args: argparse.Namespace) -> int:
    project, executor = _setup(args)
    year = _year(args, project)

    rr = executor.run_all(year, **_run_options(args, project))
    _print_result(rr, args.time)
    return 1 if rr.failed else 0


def cmd_list(args: argparse.Namespace) -> int:
    project = load_project(args.config)
    registry = Registry.from_project(project)
    for tid in registry.task_ids():
        if args.year is None or tid.year == args.year:
            print(tid.key)
    return 0


def _setup(args: argparse.Namespace) -> tuple[ProjectConfig, Executor]:
    project = load_project(args.config)
    registry = Registry.from_project(project)

    # Solution modules are imported relative to the config file.
    root = str(project.root)
    if root not in sys.path:
        sys.path.insert(0, root)

    return project, Executor(registry, InputLoader(project.inputs))


def _year(args: argparse.Namespace, project: ProjectConfig) -> int:
    year = args.year if args.year is not None else project.year
    if year is None:
        raise ConfigError("No year given: pass --year or set 'year' in the config file")
    return year


def _task_id(year: int, day: int) -> TaskId:
    try:
        return TaskId(year, day)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _run_options(args: argparse.Namespace, project: ProjectConfig) -> dict:
    if args.timeout is not None and args.timeout < 1:
        raise ConfigError("--timeout should be positive")

    if args.parallel is not None and args.parallel < 0:
        raise ConfigError("--parallel can't be negative")

    return {
        "mode": Mode.STRICT if args.allow_crash else Mode.SAFE,
        "timeout_ms": args.timeout if args.timeout is not None else project.timeout_ms,
        "workers": args.parallel if args.parallel is not None else project.workers,
    }


def _print_result(rr: BatchResult, show_timings: bool) -> None:
    for i, report in enumerate(render_batch(rr, show_timings=show_timings)):
        if i > 0:
            print()
        print(report)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
