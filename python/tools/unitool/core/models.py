#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data models for unitool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import BuildOrTestFailure, ErrorContext

DEFAULT_ASSEMBLIES: Tuple[str, ...] = ("EditTests", "PlayTest")


class Command(Enum):
    """Subcommands understood by the CLI."""

    COMPILE = "compile"
    TEST = "test"


class TestMode(Enum):
    """Execution context of the engine's test runner."""

    __test__ = False

    EDIT_MODE = "edit-mode"
    PLAY_MODE = "play-mode"

    @classmethod
    def from_string(cls, value: str) -> TestMode:
        """Convert a CLI spelling (``edit-mode``, ``EditMode``, ...) to a mode."""
        normalized = value.strip().lower().replace("-", "").replace("_", "")
        mapping = {"editmode": cls.EDIT_MODE, "playmode": cls.PLAY_MODE}
        if normalized in mapping:
            return mapping[normalized]
        raise ValueError(
            f"Unsupported test mode: {value!r} (expected edit-mode or play-mode)"
        )

    @property
    def platform(self) -> str:
        """Name the engine expects for ``-testPlatform``."""
        return "EditMode" if self is TestMode.EDIT_MODE else "PlayMode"


def split_assemblies(value: Optional[str]) -> Tuple[str, ...]:
    """Split a ``;``-separated assembly list, dropping blanks and duplicates."""
    if value is None:
        return DEFAULT_ASSEMBLIES
    names = (part.strip() for part in value.split(";"))
    return tuple(dict.fromkeys(name for name in names if name))


@dataclass(frozen=True)
class InvocationRequest:
    """A validated request for one engine invocation."""

    command: Command
    project_path: Path
    mode: Optional[TestMode] = None
    filter: Optional[str] = None
    assemblies: Tuple[str, ...] = DEFAULT_ASSEMBLIES

    @property
    def assembly_names(self) -> str:
        """Assemblies joined the way the engine expects them."""
        return ";".join(self.assemblies)


class Severity(Enum):
    """Severity of a compiler diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @classmethod
    def from_string(cls, severity: str) -> Severity:
        mapping = {"error": cls.ERROR, "warning": cls.WARNING, "info": cls.INFO}
        return mapping.get(severity.lower(), cls.INFO)


@dataclass(frozen=True)
class Diagnostic:
    """One compiler message scanned from the engine log."""

    severity: Severity
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    code: Optional[str] = None

    @property
    def location(self) -> str:
        if self.file is None:
            return ""
        location = self.file
        if self.line is not None:
            location += f"({self.line}"
            if self.column is not None:
                location += f",{self.column}"
            location += ")"
        return location

    def __str__(self) -> str:
        code = f" {self.code}" if self.code else ""
        prefix = f"{self.location}: " if self.file else ""
        return f"{prefix}{self.severity.value}{code}: {self.message}"


class TestOutcome(Enum):
    """Result of a single test case as reported by the test runner."""

    __test__ = False

    PASSED = "Passed"
    FAILED = "Failed"
    SKIPPED = "Skipped"
    INCONCLUSIVE = "Inconclusive"

    @classmethod
    def from_string(cls, value: Optional[str]) -> TestOutcome:
        for outcome in cls:
            if value and outcome.value.lower() == value.lower():
                return outcome
        return cls.INCONCLUSIVE


@dataclass
class TestCaseResult:
    """Outcome of one test case."""

    __test__ = False

    name: str
    full_name: str
    outcome: TestOutcome
    duration: float = 0.0
    message: Optional[str] = None
    stack_trace: Optional[str] = None
    output: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.outcome is TestOutcome.FAILED


@dataclass
class TestSuiteResult:
    """A (possibly nested) group of test cases."""

    __test__ = False

    name: str
    kind: str = ""
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0
    suites: List[TestSuiteResult] = field(default_factory=list)
    cases: List[TestCaseResult] = field(default_factory=list)

    def iter_cases(self) -> Iterator[TestCaseResult]:
        """Yield every case in this suite and its children, in document order."""
        yield from self.cases
        for suite in self.suites:
            yield from suite.iter_cases()


@dataclass
class TestRunSummary:
    """Totals and suite tree of one test run."""

    __test__ = False

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0
    duration: float = 0.0
    suites: List[TestSuiteResult] = field(default_factory=list)

    def iter_cases(self) -> Iterator[TestCaseResult]:
        for suite in self.suites:
            yield from suite.iter_cases()

    def failed_cases(self) -> List[TestCaseResult]:
        return [case for case in self.iter_cases() if case.failed]

    def counts_line(self) -> str:
        """Short human readable totals, e.g. ``3 passed, 1 failed, 0 skipped``."""
        return f"{self.passed} passed, {self.failed} failed, {self.skipped} skipped"


class InvocationState(Enum):
    """Lifecycle of a single engine invocation."""

    IDLE = auto()
    LAUNCHING = auto()
    RUNNING = auto()
    COLLECTING = auto()
    SUCCEEDED = auto()
    FAILED = auto()
    TIMED_OUT = auto()
    LAUNCH_FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {
        InvocationState.SUCCEEDED,
        InvocationState.FAILED,
        InvocationState.TIMED_OUT,
        InvocationState.LAUNCH_FAILED,
    }
)

# Allowed transitions of the invocation state machine.
TRANSITIONS: Dict[InvocationState, frozenset] = {
    InvocationState.IDLE: frozenset({InvocationState.LAUNCHING}),
    InvocationState.LAUNCHING: frozenset(
        {InvocationState.RUNNING, InvocationState.LAUNCH_FAILED}
    ),
    InvocationState.RUNNING: frozenset(
        {InvocationState.COLLECTING, InvocationState.TIMED_OUT, InvocationState.FAILED}
    ),
    InvocationState.COLLECTING: frozenset(
        {InvocationState.SUCCEEDED, InvocationState.FAILED}
    ),
}


@dataclass(frozen=True)
class ProcessOutcome:
    """What the process runner observed about a finished child."""

    command: Tuple[str, ...]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one engine invocation, built after the child exits."""

    command: Command
    exit_code: int
    log_path: Path
    results_path: Optional[Path] = None
    diagnostics: Tuple[Diagnostic, ...] = ()
    tests: Optional[TestRunSummary] = None
    duration: float = field(default=0.0, compare=False)

    @property
    def errors(self) -> List[Diagnostic]:
        return self._by_severity(Severity.ERROR)

    @property
    def warnings(self) -> List[Diagnostic]:
        return self._by_severity(Severity.WARNING)

    def _by_severity(self, severity: Severity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is severity]

    @property
    def succeeded(self) -> bool:
        if self.exit_code != 0 or self.errors:
            return False
        if self.command is Command.TEST:
            return self.tests is not None and self.tests.failed == 0
        return True

    def failure_reason(self) -> Optional[str]:
        """One-line reason the run did not succeed, or None."""
        if self.succeeded:
            return None
        if self.errors:
            count = len(self.errors)
            return f"Compilation failed with {count} error{'s' if count != 1 else ''}: {self.errors[0]}"
        if self.tests is not None and self.tests.failed:
            return f"Tests failed: {self.tests.counts_line()}"
        if self.command is Command.TEST and self.tests is None:
            return f"No test results were produced (engine exit code {self.exit_code})"
        return f"Engine exited with code {self.exit_code}"

    def raise_for_status(self) -> None:
        """Raise BuildOrTestFailure if the engine reported a failure."""
        reason = self.failure_reason()
        if reason is None:
            return
        raise BuildOrTestFailure(
            reason,
            result=self,
            context=ErrorContext(
                exit_code=self.exit_code,
                log_path=self.log_path,
                results_path=self.results_path,
            ),
        )


def first_n(items: Iterable, limit: int) -> Tuple[list, int]:
    """Return up to ``limit`` items and the number left out."""
    items = list(items)
    return items[:limit], max(0, len(items) - limit)
