"""
Parsers for the editor log and the test runner's results file.
"""

from .base import OutputParser
from .compile_log import CompileLogParser, load_compile_log, read_log
from .test_results import TestResultsParser, load_test_results

__all__ = [
    "OutputParser",
    "CompileLogParser",
    "TestResultsParser",
    "load_compile_log",
    "load_test_results",
    "read_log",
]
