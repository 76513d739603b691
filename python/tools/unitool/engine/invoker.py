#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Runs the Unity editor headless for one compile or test request.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..core.errors import (
    ErrorContext,
    InvocationTimeoutError,
    LaunchError,
    OutputParseError,
    UnitoolError,
)
from ..core.models import (
    TRANSITIONS,
    Command,
    Diagnostic,
    ExecutionResult,
    InvocationRequest,
    InvocationState,
    ProcessOutcome,
    Severity,
    TestMode,
    TestRunSummary,
)
from ..parsers import (
    CompileLogParser,
    OutputParser,
    TestResultsParser,
    load_test_results,
    read_log,
)
from ..utils.config import UnitoolConfig
from .process import ProcessRunner


class EngineInvoker:
    """
    Translates an InvocationRequest into exactly one editor run and its
    outcome into an ExecutionResult.

    Attributes:
        engine_path: Resolved editor binary.
        config: Timeout, artifact locations and extra editor arguments.
        state: Current state of the invocation lifecycle.
    """

    def __init__(
        self,
        engine_path: Path,
        config: UnitoolConfig,
        runner: Optional[ProcessRunner] = None,
        log_parser: Optional[OutputParser[List[Diagnostic]]] = None,
        results_parser: Optional[OutputParser[TestRunSummary]] = None,
    ) -> None:
        self.engine_path = Path(engine_path)
        self.config = config
        self.runner = runner or ProcessRunner()
        self.log_parser = log_parser or CompileLogParser()
        self.results_parser = results_parser or TestResultsParser()
        self.state = InvocationState.IDLE

    @property
    def log_path(self) -> Path:
        return self.config.log_path

    @property
    def results_path(self) -> Path:
        return self.config.results_path

    def build_command(self, request: InvocationRequest) -> List[str]:
        """Editor command line for ``request``."""
        command = [
            str(self.engine_path),
            "-batchmode",
            "-logFile", str(self.log_path),
            "-projectPath", str(request.project_path),
        ]

        if request.command is Command.COMPILE:
            command.append("-quit")
        else:
            mode = request.mode or TestMode.EDIT_MODE
            command += [
                "-runTests",
                "-testPlatform", mode.platform,
                "-testResults", str(self.results_path),
            ]
            if request.filter:
                command += ["-testFilter", request.filter]
            command += ["-assemblyNames", request.assembly_names]
            # Edit mode tests lock up the editor in batch mode unless synchronous.
            if mode is TestMode.EDIT_MODE:
                command.append("-runSynchronously")

        command += self.config.extra_args
        return command

    def _transition(self, new_state: InvocationState) -> None:
        allowed = TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise RuntimeError(f"Invalid invocation transition {self.state.name} -> {new_state.name}")
        logger.debug(f"Invocation state: {self.state.name} -> {new_state.name}")
        self.state = new_state
        if new_state.is_terminal:
            logger.info(f"Invocation finished: {new_state.name}")

    def _prepare_artifacts(self, request: InvocationRequest) -> None:
        try:
            self.config.artifacts_dir.mkdir(parents=True, exist_ok=True)
            self.log_path.unlink(missing_ok=True)
            if request.command is Command.TEST:
                self.results_path.unlink(missing_ok=True)
        except OSError as e:
            raise LaunchError(
                f"Cannot prepare artifacts directory {self.config.artifacts_dir}: {e}",
                cause=e,
            ) from e

    def run(self, request: InvocationRequest) -> ExecutionResult:
        """
        Run the editor once for ``request``.

        Raises:
            LaunchError: The editor could not be started.
            InvocationTimeoutError: The editor was killed after the timeout.
            OutputParseError: The log or results file is missing or unreadable.
        """
        if self.state is not InvocationState.IDLE:
            raise RuntimeError("An EngineInvoker runs exactly one invocation")

        self._transition(InvocationState.LAUNCHING)
        try:
            self._prepare_artifacts(request)
            command = self.build_command(request)
            outcome = self.runner.run(
                command,
                timeout=self.config.timeout,
                cwd=request.project_path,
                on_start=lambda pid: self._transition(InvocationState.RUNNING),
            )
        except LaunchError:
            self._transition(InvocationState.LAUNCH_FAILED)
            raise
        except InvocationTimeoutError:
            self._transition(InvocationState.TIMED_OUT)
            raise
        except BaseException:
            if self.state is InvocationState.RUNNING:
                self._transition(InvocationState.FAILED)
            else:
                self._transition(InvocationState.LAUNCH_FAILED)
            raise

        self._transition(InvocationState.COLLECTING)
        try:
            result = self._collect(request, outcome)
        except UnitoolError:
            self._transition(InvocationState.FAILED)
            raise

        self._transition(
            InvocationState.SUCCEEDED if result.succeeded else InvocationState.FAILED
        )
        return result

    def _collect(self, request: InvocationRequest, outcome: ProcessOutcome) -> ExecutionResult:
        exit_code = outcome.exit_code
        if not self.log_path.is_file():
            raise OutputParseError(
                f"Unity exited with code {exit_code} without writing its log",
                context=ErrorContext(
                    command=outcome.command_line,
                    exit_code=exit_code,
                    log_path=self.log_path,
                    additional_info={"stderr": outcome.stderr[-2000:]},
                ),
            )

        diagnostics = tuple(self.log_parser.parse(read_log(self.log_path, exit_code)))

        if request.command is Command.COMPILE:
            return ExecutionResult(
                command=request.command,
                exit_code=exit_code,
                log_path=self.log_path,
                diagnostics=diagnostics,
                duration=outcome.duration,
            )

        tests = None
        has_errors = any(d.severity is Severity.ERROR for d in diagnostics)
        if has_errors:
            logger.info("Compilation failed, the test runner did not run")
        else:
            tests = load_test_results(
                self.results_path, exit_code, parser=self.results_parser
            )

        return ExecutionResult(
            command=request.command,
            exit_code=exit_code,
            log_path=self.log_path,
            results_path=self.results_path,
            diagnostics=diagnostics,
            tests=tests,
            duration=outcome.duration,
        )
