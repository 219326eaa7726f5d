from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dayrun")

    parser.add_argument(
        "--config",
        default="dayrun.yml",
        help="Path to config file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every stage to stderr",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # run
    run = subparsers.add_parser("run", help="Run the given days")
    run.add_argument(
        "days",
        nargs="+",
        type=int,
        help="Days to run",
    )
    run.add_argument(
        "--example",
        action="store_true",
        help="Use the example input instead of the puzzle input",
    )
    _add_run_options(run)

    # run-all
    run_all = subparsers.add_parser("run-all", help="Run every registered day of a year")
    _add_run_options(run_all)

    # list
    list_ = subparsers.add_parser("list", help="List registered tasks")
    list_.add_argument("--year", type=int, help="Only list this year")

    return parser


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--year", type=int, help="Puzzle year")
    parser.add_argument(
        "--timeout",
        type=int,
        metavar="MS",
        help="Abandon the tasks still running after MS milliseconds",
    )
    parser.add_argument(
        "--allow-crash",
        action="store_true",
        help="Let a crashing solution stop the run with its full traceback",
    )
    parser.add_argument(
        "--parallel",
        type=int,
        metavar="N",
        help="Run up to N tasks at once (0 = all at once)",
    )
    parser.add_argument(
        "--time",
        action="store_true",
        help="Show how long each part took",
    )
