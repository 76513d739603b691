#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command-line argument resolution.

Turns the raw argument list into an immutable InvocationRequest plus the
global options the rest of the CLI needs. The only filesystem access is the
existence check of the project path.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional, Sequence

from loguru import logger

from .errors import PathNotFoundError, UsageError
from .models import Command, InvocationRequest, TestMode, split_assemblies

LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

# A Unity project root holds at least one of these directories.
PROJECT_MARKERS = ("Assets", "ProjectSettings")


class _RaisingArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(f"{self.prog}: {message}")


@dataclass(frozen=True)
class ParsedArguments:
    """The resolved request and global options from one command line."""

    request: InvocationRequest
    unity: Optional[Path] = None
    timeout: Optional[float] = None
    config: Optional[Path] = None
    artifacts_dir: Optional[Path] = None
    max_diagnostics: Optional[int] = None
    log_level: str = "WARNING"
    verbose: bool = False
    no_color: bool = False


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value!r}")
    return number


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value!r}")
    return number


def _test_mode(value: str) -> TestMode:
    try:
        return TestMode.from_string(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser(version: str = "") -> argparse.ArgumentParser:
    """Create the argument parser for the unitool CLI."""
    parser = _RaisingArgumentParser(
        prog="unitool",
        description="Compile a Unity project and run its tests from the command line",
        epilog="Examples:\n"
        "  %(prog)s compile ~/Projects/MyGame\n"
        "  %(prog)s test ~/Projects/MyGame -m edit-mode -f 'MyGame.Tests.*'\n"
        "  %(prog)s --timeout 900 test . -m play-mode -a 'PlayTests;Integration'",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {version}".rstrip()
    )

    engine_group = parser.add_argument_group("Engine")
    engine_group.add_argument(
        "--unity", type=Path, metavar="PATH", help="Path to the Unity editor binary"
    )
    engine_group.add_argument(
        "--timeout",
        type=_positive_float,
        metavar="SECONDS",
        help="Kill the editor if it runs longer than this",
    )
    engine_group.add_argument(
        "--artifacts-dir",
        type=Path,
        metavar="DIR",
        help="Directory for the editor log and test results",
    )

    output_group = parser.add_argument_group("Output")
    output_group.add_argument(
        "--max-diagnostics",
        type=_positive_int,
        metavar="N",
        help="Show at most N compiler errors",
    )
    output_group.add_argument(
        "--no-color", action="store_true", help="Disable coloured output"
    )
    output_group.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Set the logging level",
    )
    output_group.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )

    parser.add_argument(
        "--config", type=Path, metavar="FILE", help="Load configuration from file"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    compile_parser = subparsers.add_parser(
        Command.COMPILE.value, help="Compile the project and display any errors"
    )
    compile_parser.add_argument(
        "project_path", type=Path, help="The root path of the Unity project"
    )

    test_parser = subparsers.add_parser(
        Command.TEST.value, help="Compile the project and run tests"
    )
    test_parser.add_argument(
        "project_path", type=Path, help="The root path of the Unity project"
    )
    test_parser.add_argument(
        "-m",
        "--mode",
        type=_test_mode,
        required=True,
        metavar="{edit-mode,play-mode}",
        help="Which set of tests to run",
    )
    test_parser.add_argument(
        "-f", "--filter", help="Test filter passed to the test runner"
    )
    test_parser.add_argument(
        "-a",
        "--assemblies",
        help="';'-separated test assemblies to include (default: EditTests;PlayTest)",
    )

    return parser


def validate_project_path(path: Path) -> Path:
    """
    Check that ``path`` looks like a Unity project root.

    Raises:
        PathNotFoundError: If the path does not exist.
        UsageError: If it exists but is not a project directory.
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise PathNotFoundError(path)
    if not path.is_dir():
        raise UsageError(f"Project path is not a directory: {path}")
    if not any((path / marker).is_dir() for marker in PROJECT_MARKERS):
        raise UsageError(
            f"Not a Unity project (no {' or '.join(PROJECT_MARKERS)} directory): {path}"
        )
    return path.resolve()


def resolve_arguments(
    argv: Optional[Sequence[str]] = None, version: str = ""
) -> ParsedArguments:
    """
    Parse ``argv`` into a validated request.

    Raises:
        UsageError: Unknown subcommand, missing arguments, bad flag values.
        PathNotFoundError: The project path does not exist.
    """
    parser = build_parser(version)
    args = parser.parse_args(list(argv) if argv is not None else None)

    command = Command(args.command)
    project_path = validate_project_path(args.project_path)

    if command is Command.TEST:
        assemblies = split_assemblies(args.assemblies)
        if not assemblies:
            raise UsageError("At least one test assembly is required (-a)")
        request = InvocationRequest(
            command=command,
            project_path=project_path,
            mode=args.mode,
            filter=args.filter or None,
            assemblies=assemblies,
        )
    else:
        request = InvocationRequest(command=command, project_path=project_path)

    logger.debug(f"Resolved request: {request}")

    return ParsedArguments(
        request=request,
        unity=args.unity,
        timeout=args.timeout,
        config=args.config,
        artifacts_dir=args.artifacts_dir,
        max_diagnostics=args.max_diagnostics,
        log_level=args.log_level,
        verbose=args.verbose,
        no_color=args.no_color,
    )

