#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exception hierarchy for unitool with structured error context.

Every error carries the process exit status the CLI reports for it, so the
mapping from failure kind to exit code lives next to the failure itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger


@dataclass(frozen=True)
class ErrorContext:
    """Context information attached to unitool errors."""

    command: Optional[str] = None
    exit_code: Optional[int] = None
    log_path: Optional[Path] = None
    results_path: Optional[Path] = None
    additional_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for structured logging."""
        return {
            "command": self.command,
            "exit_code": self.exit_code,
            "log_path": str(self.log_path) if self.log_path else None,
            "results_path": str(self.results_path) if self.results_path else None,
            "additional_info": self.additional_info,
        }


class UnitoolError(Exception):
    """
    Base exception for all unitool failures.

    Attributes:
        exit_status: Process exit status the CLI reports for this error.
        context: Structured details (command line, engine exit code, paths).
        cause: The underlying exception, if any.
    """

    exit_status: int = 3

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ErrorContext] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.cause = cause

        logger.bind(error_context=self.context.to_dict()).debug(
            f"{self.__class__.__name__}: {message}"
        )

    def __str__(self) -> str:
        return self.message

    def details(self) -> str:
        """Multi-line description including the context."""
        lines = [self.message]
        if self.context.command:
            lines.append(f"Command: {self.context.command}")
        if self.context.exit_code is not None:
            lines.append(f"Exit code: {self.context.exit_code}")
        if self.context.log_path:
            lines.append(f"Log: {self.context.log_path}")
        if self.context.results_path:
            lines.append(f"Results: {self.context.results_path}")
        if self.cause:
            lines.append(f"Caused by: {self.cause}")
        return "\n".join(lines)


class UsageError(UnitoolError):
    """Bad command-line input. Nothing was launched."""

    exit_status = 1


class PathNotFoundError(UsageError):
    """The project path does not exist."""

    def __init__(self, path: Path, **kwargs: Any) -> None:
        self.path = Path(path)
        super().__init__(f"Project path does not exist: {self.path}", **kwargs)


class ConfigurationError(UnitoolError):
    """A configuration file or value could not be loaded or validated."""

    exit_status = 1

    def __init__(
        self,
        message: str,
        *,
        config_file: Optional[Path] = None,
        **kwargs: Any,
    ) -> None:
        self.config_file = Path(config_file) if config_file else None
        if self.config_file and "context" not in kwargs:
            kwargs["context"] = ErrorContext(
                additional_info={"config_file": str(self.config_file)}
            )
        super().__init__(message, **kwargs)


class LaunchError(UnitoolError):
    """The engine binary could not be located or started. Never retried."""

    exit_status = 3


class InvocationTimeoutError(UnitoolError):
    """The engine did not exit within the timeout and was killed."""

    exit_status = 3

    def __init__(self, message: str, *, timeout: float, **kwargs: Any) -> None:
        self.timeout = timeout
        super().__init__(message, **kwargs)


class OutputParseError(UnitoolError):
    """The engine log or results file was missing or unreadable."""

    exit_status = 3

    @property
    def exit_code(self) -> Optional[int]:
        """Raw exit code of the engine process."""
        return self.context.exit_code


class BuildOrTestFailure(UnitoolError):
    """The engine ran and reported compile errors or failing tests."""

    exit_status = 2

    def __init__(self, message: str, *, result: Any = None, **kwargs: Any) -> None:
        self.result = result
        super().__init__(message, **kwargs)
