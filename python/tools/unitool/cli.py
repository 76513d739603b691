#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command-line interface for unitool.

Exit codes:
    0   success
    1   usage error (bad arguments, missing project, invalid configuration)
    2   compile errors or failing tests reported by Unity
    3   launch failure, timeout or unreadable Unity output
    130 interrupted by the user
"""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from loguru import logger
from rich.console import Console

from . import __version__
from .core.errors import BuildOrTestFailure, UnitoolError
from .core.models import ExecutionResult
from .core.resolver import ParsedArguments, resolve_arguments
from .display import SummaryPrinter
from .engine import EngineInvoker, EngineLocator
from .utils.config import ConfigLoader, UnitoolConfig

EXIT_SUCCESS = 0
EXIT_HARNESS_ERROR = 3
EXIT_INTERRUPTED = 130


def setup_logging(log_level: str = "WARNING", verbose: bool = False) -> None:
    """Configure loguru with a single stderr sink."""
    logger.remove()

    if verbose and log_level in ("INFO", "SUCCESS", "WARNING"):
        log_level = "DEBUG"

    if log_level in ("DEBUG", "TRACE"):
        log_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        log_format = "<level>{level: <8}</level> | <level>{message}</level>"

    logger.add(sys.stderr, level=log_level, format=log_format, colorize=None)
    logger.debug(f"Logging initialized at {log_level} level")


def load_config(args: ParsedArguments) -> UnitoolConfig:
    """Merge config file, environment and CLI flags."""
    overrides = {
        "engine_path": args.unity,
        "timeout": args.timeout,
        "artifacts_dir": args.artifacts_dir,
        "max_diagnostics": args.max_diagnostics,
        "color": False if args.no_color else None,
    }
    return ConfigLoader().load(
        config_file=args.config,
        project_path=args.request.project_path,
        overrides=overrides,
    )


def execute(args: ParsedArguments, config: UnitoolConfig, printer: SummaryPrinter) -> ExecutionResult:
    """Resolve the editor, run it once and print the summary."""
    engine_path = EngineLocator().find(config.engine_path)
    logger.info(f"Using Unity editor: {engine_path}")

    invoker = EngineInvoker(engine_path, config)
    with printer.spinner(args.request.command):
        result = invoker.run(args.request)

    printer.print_result(result)
    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run unitool and return the process exit status."""
    setup_logging()
    printer = SummaryPrinter()

    try:
        args = resolve_arguments(argv, version=__version__)
        setup_logging(args.log_level, args.verbose)

        config = load_config(args)
        if not config.color:
            printer = SummaryPrinter(
                Console(no_color=True, highlight=False),
                Console(stderr=True, no_color=True, highlight=False),
                max_diagnostics=config.max_diagnostics,
            )
        else:
            printer.max_diagnostics = config.max_diagnostics

        result = execute(args, config, printer)
        result.raise_for_status()
        return EXIT_SUCCESS

    except BuildOrTestFailure as e:
        printer.error_console.print(f"Error: {e}", highlight=False, markup=False, soft_wrap=True)
        return e.exit_status
    except UnitoolError as e:
        printer.print_error(e)
        if e.cause is not None:
            logger.debug(f"Caused by {e.cause!r}")
        return e.exit_status
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.exception(f"Unexpected error occurred: {e}")
        return EXIT_HARNESS_ERROR


if __name__ == "__main__":
    sys.exit(main())
