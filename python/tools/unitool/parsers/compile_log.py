"""
Compiler diagnostic parser for the editor log.

The editor writes C# compiler messages into its log in the form::

    Assets/Scripts/Player.cs(12,5): error CS0103: The name 'x' does not exist

Every other line of the log is ignored.
"""

import re
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from ..core.errors import ErrorContext, OutputParseError
from ..core.models import Diagnostic, Severity


class CompileLogParser:
    """Parser for C# compiler messages in the editor log."""

    def __init__(self) -> None:
        self.located_pattern = re.compile(
            r"(?P<file>[^\s:(][^:(]*?)\((?P<line>\d+),(?P<column>\d+)\):\s*"
            r"(?P<severity>error|warning)\s+(?P<code>CS\d+):\s*(?P<message>.*)"
        )
        self.bare_pattern = re.compile(
            r"\b(?P<severity>error|warning)\s+(?P<code>CS\d+):\s*(?P<message>.*)"
        )

    def _parse_line(self, line: str) -> Optional[Diagnostic]:
        if match := self.located_pattern.search(line):
            return Diagnostic(
                severity=Severity.from_string(match.group("severity")),
                message=match.group("message").strip(),
                file=match.group("file").strip(),
                line=int(match.group("line")),
                column=int(match.group("column")),
                code=match.group("code"),
            )
        if match := self.bare_pattern.search(line):
            return Diagnostic(
                severity=Severity.from_string(match.group("severity")),
                message=match.group("message").strip(),
                code=match.group("code"),
            )
        return None

    def parse(self, text: str) -> List[Diagnostic]:
        """Return the diagnostics in ``text``, each reported once, in log order."""
        seen = set()
        diagnostics: List[Diagnostic] = []
        for line in text.splitlines():
            diagnostic = self._parse_line(line)
            if diagnostic is None or diagnostic in seen:
                continue
            seen.add(diagnostic)
            diagnostics.append(diagnostic)

        logger.debug(
            f"Parsed {len(diagnostics)} diagnostics "
            f"({sum(d.severity is Severity.ERROR for d in diagnostics)} errors)"
        )
        return diagnostics


def read_log(log_path: Union[str, Path], exit_code: Optional[int] = None) -> str:
    """Read the editor log, tolerating invalid UTF-8."""
    log_path = Path(log_path)
    try:
        return log_path.read_bytes().decode("utf-8", errors="replace")
    except OSError as e:
        raise OutputParseError(
            f"Editor log could not be read: {log_path} ({e.strerror or e})",
            context=ErrorContext(exit_code=exit_code, log_path=log_path),
            cause=e,
        ) from e


def load_compile_log(
    log_path: Union[str, Path], exit_code: Optional[int] = None
) -> List[Diagnostic]:
    """Read the editor log at ``log_path`` and return its diagnostics."""
    return CompileLogParser().parse(read_log(log_path, exit_code))
