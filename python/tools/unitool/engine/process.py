#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Synchronous child process execution with timeout and cleanup.
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from loguru import logger

from ..core.errors import ErrorContext, InvocationTimeoutError, LaunchError
from ..core.models import ProcessOutcome

_POSIX = os.name == "posix"

# Signals that end unitool without a Python exception unless handled.
TERMINATION_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


@contextmanager
def exit_on_termination() -> Iterator[None]:
    """
    Turn termination signals into ``SystemExit`` while the block runs.

    The editor lives in its own session and never sees signals sent to
    unitool, so they have to unwind through the cleanup in ``run``. Only the
    main thread may install handlers; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _raise(signum: int, frame: object) -> None:
        name = signal.Signals(signum).name
        logger.warning(f"Received {name}, stopping")
        raise SystemExit(128 + signum)

    previous = {signum: signal.signal(signum, _raise) for signum in TERMINATION_SIGNALS}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, signal.SIG_DFL if handler is None else handler)


class ProcessRunner:
    """
    Runs one command to completion, blocking the caller.

    On POSIX the child gets its own process group so that a timeout or an
    interrupt kills the editor together with any helpers it spawned.
    """

    def __init__(self, env: Optional[Dict[str, str]] = None) -> None:
        self.env = env

    def run(
        self,
        command: Sequence[str],
        *,
        timeout: Optional[float] = None,
        cwd: Optional[Path] = None,
        on_start: Optional[Callable[[int], None]] = None,
    ) -> ProcessOutcome:
        """
        Run ``command`` and wait for it to exit.

        ``on_start`` is called with the child pid once it has been spawned.

        Raises:
            LaunchError: If the process cannot be started.
            InvocationTimeoutError: If it ran longer than ``timeout`` seconds.
        """
        command = [str(part) for part in command]
        cmd_str = " ".join(command)
        logger.info(f"Running: {cmd_str}")

        final_env = os.environ.copy()
        if self.env:
            final_env.update(self.env)

        with exit_on_termination():
            return self._spawn_and_wait(command, timeout, cwd, final_env, on_start)

    def _spawn_and_wait(
        self,
        command: List[str],
        timeout: Optional[float],
        cwd: Optional[Path],
        env: Dict[str, str],
        on_start: Optional[Callable[[int], None]],
    ) -> ProcessOutcome:
        cmd_str = " ".join(command)
        start_time = time.monotonic()
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                cwd=cwd,
                env=env,
                start_new_session=_POSIX,
            )
        except OSError as e:
            raise LaunchError(
                f"Failed to launch {command[0]}: {e.strerror or e}",
                context=ErrorContext(command=cmd_str),
                cause=e,
            ) from e

        logger.debug(f"Started process {process.pid}")

        try:
            if on_start is not None:
                on_start(process.pid)
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            self._kill(process)
            raise InvocationTimeoutError(
                f"Unity did not exit within {timeout:g}s and was killed",
                timeout=timeout,
                context=ErrorContext(command=cmd_str, exit_code=process.returncode),
            )
        except BaseException:
            # KeyboardInterrupt or a termination signal: never leave the editor running.
            logger.warning(f"Interrupted, killing process {process.pid}")
            self._kill(process)
            raise

        duration = time.monotonic() - start_time
        outcome = ProcessOutcome(
            command=tuple(command),
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration=duration,
        )

        if outcome.exit_code == 0:
            logger.debug(f"Process exited cleanly in {duration:.2f}s")
        else:
            logger.info(f"Process exited with code {outcome.exit_code} in {duration:.2f}s")
        return outcome

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        """Kill the process (and its group on POSIX) and reap it."""
        if process.poll() is None or _POSIX:
            try:
                if _POSIX:
                    os.killpg(process.pid, signal.SIGKILL)
                else:
                    process.kill()
            except (ProcessLookupError, PermissionError):
                pass
        process.communicate()
        logger.debug(f"Process {process.pid} terminated with code {process.returncode}")
