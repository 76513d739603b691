"""
Base parser interface.

The editor's log and results formats belong to the engine and may drift
between versions. Everything that understands them sits behind this
protocol so format changes stay inside one parser.
"""

from typing import Protocol, TypeVar

T_co = TypeVar("T_co", covariant=True)


class OutputParser(Protocol[T_co]):
    """Protocol defining the interface for engine output parsers."""

    def parse(self, text: str) -> T_co:
        """Parse raw engine output into structured data."""
        ...
