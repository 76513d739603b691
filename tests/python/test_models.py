"""
Tests for result models and the summary renderer.
"""

from pathlib import Path

import pytest
from rich.console import Console

from unitool.core.errors import BuildOrTestFailure
from unitool.core.models import (
    Command,
    Diagnostic,
    ExecutionResult,
    Severity,
    TestCaseResult,
    TestOutcome,
    TestRunSummary,
    first_n,
)
from unitool.display import SummaryPrinter, render_case

LOG = Path("/tmp/unitool-editor.log")


def _error(n: int) -> Diagnostic:
    return Diagnostic(Severity.ERROR, f"broken {n}", file="Assets/A.cs", line=n, column=1, code="CS0001")


def test_compile_result_with_errors_raises():
    result = ExecutionResult(Command.COMPILE, exit_code=1, log_path=LOG, diagnostics=(_error(1), _error(2)))

    with pytest.raises(BuildOrTestFailure, match="2 errors") as excinfo:
        result.raise_for_status()

    assert excinfo.value.exit_status == 2
    assert excinfo.value.result is result


def test_nonzero_exit_without_errors_is_a_failure():
    result = ExecutionResult(Command.COMPILE, exit_code=1, log_path=LOG)

    assert result.failure_reason() == "Engine exited with code 1"


def test_test_result_without_summary_is_a_failure():
    result = ExecutionResult(Command.TEST, exit_code=0, log_path=LOG)

    assert not result.succeeded


def test_successful_test_result():
    tests = TestRunSummary(passed=2, total=2)
    result = ExecutionResult(Command.TEST, exit_code=0, log_path=LOG, tests=tests)

    assert result.succeeded
    result.raise_for_status()


def test_first_n():
    assert first_n(range(5), 3) == ([0, 1, 2], 2)
    assert first_n([1], 3) == ([1], 0)


@pytest.mark.parametrize(
    "value, expected",
    [("Passed", TestOutcome.PASSED), ("failed", TestOutcome.FAILED), ("Exploded", TestOutcome.INCONCLUSIVE)],
)
def test_outcome_from_string(value, expected):
    assert TestOutcome.from_string(value) is expected


def test_render_failed_case():
    case = TestCaseResult(
        name="Divides",
        full_name="Foo.Divides",
        outcome=TestOutcome.FAILED,
        message="Expected: 2",
        stack_trace="at Foo.Divides ()",
        output="dividing",
    )

    lines = [line.plain for line in render_case(case)]

    assert lines == ["", "✗ Divides", "    Expected: 2", "    at Foo.Divides ()", "    dividing"]


def test_printer_without_color(tmp_path):
    console = Console(file=open(tmp_path / "out.txt", "w"), no_color=True, width=200)
    printer = SummaryPrinter(console, console, max_diagnostics=1)
    result = ExecutionResult(Command.COMPILE, exit_code=1, log_path=LOG, diagnostics=(_error(1), _error(2)))

    printer.print_result(result)
    console.file.close()

    text = (tmp_path / "out.txt").read_text()
    assert "Compilation failed" in text
    assert "Assets/A.cs(1,1): error CS0001: broken 1" in text
    assert "... and 1 more" in text
    assert f"Log: {LOG}" in text
