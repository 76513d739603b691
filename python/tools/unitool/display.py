#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Terminal output: spinner while the editor runs, then a coloured summary.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.style import Style
from rich.text import Text

from .core.errors import UnitoolError
from .core.models import (
    Command,
    ExecutionResult,
    TestCaseResult,
    TestOutcome,
    TestRunSummary,
    TestSuiteResult,
    first_n,
)

GREEN = Style(color="rgb(0,175,135)")
RED = Style(color="rgb(255,47,109)")
MUTED = Style(color="rgb(68,68,68)")
STACK = Style(color="rgb(157,174,179)")
ON_RED = Style(color="rgb(28,28,28)", bgcolor="rgb(255,47,109)")
ON_GREEN = Style(color="rgb(28,28,28)", bgcolor="rgb(0,175,135)")

OUTCOME_MARKS = {
    TestOutcome.PASSED: ("✓", GREEN),
    TestOutcome.FAILED: ("✗", RED),
    TestOutcome.SKIPPED: ("-", MUTED),
    TestOutcome.INCONCLUSIVE: ("?", MUTED),
}

INDENT = "    "


def _indented(text: str, depth: int, style: Optional[Style] = None) -> List[Text]:
    return [Text(INDENT * depth + line, style=style or "") for line in text.splitlines()]


def render_case(case: TestCaseResult, depth: int = 0) -> List[Text]:
    """Lines for one test case; failure details are indented below it."""
    lines: List[Text] = []
    if case.failed:
        lines.append(Text(""))

    mark, mark_style = OUTCOME_MARKS[case.outcome]
    line = Text(INDENT * depth)
    line.append(mark, style=mark_style)
    line.append(" ")
    line.append(case.name, style="bold" if case.failed else "")
    lines.append(line)

    if case.message:
        lines += _indented(case.message, depth + 1, RED)
    if case.stack_trace:
        lines += _indented(case.stack_trace, depth + 1, STACK)
    # Console output only matters when the test did not pass.
    if case.output and case.outcome is not TestOutcome.PASSED:
        lines += _indented(case.output, depth + 1)
    return lines


def render_suite(suite: TestSuiteResult, depth: int = 0) -> List[Text]:
    """Lines for a suite header, its child suites and its cases."""
    if suite.failed > 0:
        name = Text(f" {suite.name} ", style=ON_RED)
    elif suite.total and suite.passed == suite.total:
        name = Text(f" {suite.name} ", style=ON_GREEN)
    else:
        name = Text(suite.name, style=MUTED + Style(bold=True))

    header = Text(INDENT * depth)
    header.append_text(name)
    header.append(" ")
    header.append(str(suite.passed), style=GREEN)
    header.append(" ")
    header.append(str(suite.failed), style=RED)
    header.append(" ")
    header.append(str(suite.skipped), style=MUTED)

    lines = [header]
    for child in suite.suites:
        lines += render_suite(child, depth + 1)
    for case in suite.cases:
        lines += render_case(case, depth + 1)
    return lines


def render_totals(summary: TestRunSummary) -> Text:
    text = Text()
    text.append(f"{summary.passed} passed", style=GREEN)
    text.append(", ")
    text.append(f"{summary.failed} failed", style=RED if summary.failed else "")
    text.append(", ")
    text.append(f"{summary.skipped} skipped", style=MUTED)
    if summary.duration:
        text.append(f" in {summary.duration:.2f}s")
    return text


class SummaryPrinter:
    """Prints execution results to the terminal."""

    def __init__(
        self,
        console: Optional[Console] = None,
        error_console: Optional[Console] = None,
        max_diagnostics: int = 20,
    ) -> None:
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)
        self.max_diagnostics = max_diagnostics

    @contextmanager
    def spinner(self, command: Command) -> Iterator[None]:
        """Show a spinner with elapsed time while the editor runs."""
        message = (
            "Compiling..." if command is Command.COMPILE else "Compiling and running tests..."
        )
        with Progress(
            SpinnerColumn(),
            TimeElapsedColumn(),
            TextColumn("{task.description}"),
            console=self.console,
            transient=True,
            disable=not self.console.is_terminal,
        ) as progress:
            progress.add_task(message, total=None)
            yield

    def print_result(self, result: ExecutionResult) -> None:
        if result.command is Command.COMPILE:
            self.print_compile(result)
        else:
            self.print_test(result)
        self.print_paths(result)

    def print_compile(self, result: ExecutionResult) -> None:
        if result.succeeded:
            self.console.print(Text("Compilation succeeded", style=GREEN))
        else:
            self.console.print(Text("Compilation failed", style=RED))
            self.print_diagnostics(result)
        if result.warnings:
            count = len(result.warnings)
            self.console.print(
                Text(f"{count} warning{'s' if count != 1 else ''}", style=MUTED)
            )

    def print_diagnostics(self, result: ExecutionResult) -> None:
        shown, hidden = first_n(result.errors, self.max_diagnostics)
        for diagnostic in shown:
            self.console.print(Text(f"  {diagnostic}"), soft_wrap=True)
        if hidden:
            self.console.print(Text(f"  ... and {hidden} more", style=MUTED))
        if not result.errors and result.exit_code != 0:
            self.console.print(f"  Unity exited with code {result.exit_code}")

    def print_test(self, result: ExecutionResult) -> None:
        if result.tests is None:
            self.console.print(Text("Compilation failed", style=RED))
            self.print_diagnostics(result)
            return

        for suite in result.tests.suites:
            for line in render_suite(suite):
                self.console.print(line, soft_wrap=True)
        self.console.print()
        self.console.print(render_totals(result.tests))

        if result.tests.failed == 0 and not result.succeeded:
            self.console.print(
                Text(f"Unity exited with code {result.exit_code}", style=RED)
            )

    def print_paths(self, result: ExecutionResult) -> None:
        if result.results_path is not None and result.tests is not None:
            self.console.print(Text(f"Results: {result.results_path}", style=MUTED), soft_wrap=True)
        self.console.print(Text(f"Log: {result.log_path}", style=MUTED), soft_wrap=True)

    def print_error(self, error: UnitoolError) -> None:
        """One-line error plus the paths needed to find the cause."""
        self.error_console.print(Text(f"Error: {error}", style=RED), soft_wrap=True)
        context = error.context
        if context.exit_code is not None:
            self.error_console.print(f"Unity exit code: {context.exit_code}", highlight=False)
        if context.results_path is not None:
            self.error_console.print(Text(f"Results: {context.results_path}", style=MUTED), soft_wrap=True)
        if context.log_path is not None:
            self.error_console.print(Text(f"Log: {context.log_path}", style=MUTED), soft_wrap=True)
