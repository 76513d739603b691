#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
unitool

Compile a Unity project and run its tests headless from the command line,
with a readable pass/fail summary and meaningful exit codes.
"""

__version__ = "0.3.0"
__author__ = "Max Qian"
__license__ = "GPL-3.0-or-later"

from .core.errors import (
    BuildOrTestFailure,
    ConfigurationError,
    InvocationTimeoutError,
    LaunchError,
    OutputParseError,
    PathNotFoundError,
    UnitoolError,
    UsageError,
)
from .core.models import (
    Command,
    Diagnostic,
    ExecutionResult,
    InvocationRequest,
    Severity,
    TestMode,
    TestRunSummary,
)
from .core.resolver import resolve_arguments
from .engine import EngineInvoker, EngineLocator, ProcessRunner, find_engine
from .utils.config import ConfigLoader, UnitoolConfig

__all__ = [
    "BuildOrTestFailure",
    "ConfigurationError",
    "InvocationTimeoutError",
    "LaunchError",
    "OutputParseError",
    "PathNotFoundError",
    "UnitoolError",
    "UsageError",
    "Command",
    "Diagnostic",
    "ExecutionResult",
    "InvocationRequest",
    "Severity",
    "TestMode",
    "TestRunSummary",
    "resolve_arguments",
    "EngineInvoker",
    "EngineLocator",
    "ProcessRunner",
    "find_engine",
    "ConfigLoader",
    "UnitoolConfig",
    "__version__",
]
