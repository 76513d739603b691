#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Core components: data models, errors and argument resolution.
"""

from .errors import (
    BuildOrTestFailure,
    ConfigurationError,
    ErrorContext,
    InvocationTimeoutError,
    LaunchError,
    OutputParseError,
    PathNotFoundError,
    UnitoolError,
    UsageError,
)
from .models import (
    DEFAULT_ASSEMBLIES,
    Command,
    Diagnostic,
    ExecutionResult,
    InvocationRequest,
    InvocationState,
    Severity,
    TestMode,
    TestRunSummary,
)
from .resolver import ParsedArguments, resolve_arguments

__all__ = [
    "BuildOrTestFailure",
    "ConfigurationError",
    "ErrorContext",
    "InvocationTimeoutError",
    "LaunchError",
    "OutputParseError",
    "PathNotFoundError",
    "UnitoolError",
    "UsageError",
    "DEFAULT_ASSEMBLIES",
    "Command",
    "Diagnostic",
    "ExecutionResult",
    "InvocationRequest",
    "InvocationState",
    "Severity",
    "TestMode",
    "TestRunSummary",
    "ParsedArguments",
    "resolve_arguments",
]
