"""
Tests for the child process runner.
"""

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

from unitool.core.errors import InvocationTimeoutError, LaunchError
from unitool.engine.process import TERMINATION_SIGNALS, ProcessRunner, exit_on_termination

from conftest import recorded_pid

posix_only = pytest.mark.skipif(os.name != "posix", reason="requires POSIX process groups")


def _gone(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return True
    return False


def test_captures_output_and_exit_code():
    outcome = ProcessRunner().run(
        [sys.executable, "-c", "import sys; print('hello'); sys.exit(4)"], timeout=30
    )

    assert outcome.exit_code == 4
    assert outcome.stdout.strip() == "hello"
    assert outcome.duration >= 0
    assert outcome.command[0] == sys.executable


def test_extra_environment_is_passed():
    outcome = ProcessRunner(env={"UNITOOL_PROBE": "42"}).run(
        [sys.executable, "-c", "import os; print(os.environ['UNITOOL_PROBE'])"], timeout=30
    )

    assert outcome.stdout.strip() == "42"


def test_on_start_receives_pid():
    pids = []

    ProcessRunner().run([sys.executable, "-c", "pass"], timeout=30, on_start=pids.append)

    assert len(pids) == 1
    assert pids[0] > 0


def test_missing_binary_is_a_launch_error(tmp_path: Path):
    with pytest.raises(LaunchError) as excinfo:
        ProcessRunner().run([str(tmp_path / "no-such-unity")], timeout=5)

    assert excinfo.value.exit_status == 3


@posix_only
def test_timeout_kills_the_child():
    pids = []
    started = time.monotonic()

    with pytest.raises(InvocationTimeoutError) as excinfo:
        ProcessRunner().run(
            [sys.executable, "-c", "import time; time.sleep(60)"],
            timeout=0.5,
            on_start=pids.append,
        )

    assert time.monotonic() - started < 30
    assert excinfo.value.timeout == 0.5
    assert _gone(pids[0])


@posix_only
def test_interrupt_kills_the_child():
    pids = []

    def interrupt(pid: int) -> None:
        pids.append(pid)
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        ProcessRunner().run(
            [sys.executable, "-c", "import time; time.sleep(60)"],
            timeout=30,
            on_start=interrupt,
        )

    assert _gone(pids[0])


@posix_only
def test_termination_signal_becomes_system_exit():
    before = signal.getsignal(signal.SIGTERM)

    with pytest.raises(SystemExit) as excinfo:
        with exit_on_termination():
            os.kill(os.getpid(), signal.SIGTERM)
            time.sleep(5)

    assert excinfo.value.code == 128 + signal.SIGTERM
    assert signal.getsignal(signal.SIGTERM) is before


def _wait_for_pid(engine: Path, deadline: float) -> int:
    while time.monotonic() < deadline:
        try:
            return recorded_pid(engine)
        except (OSError, ValueError):
            time.sleep(0.05)
    raise AssertionError("fake editor never started")


@posix_only
@pytest.mark.parametrize("signum", TERMINATION_SIGNALS)
def test_terminating_unitool_kills_the_editor(unity_project, artifacts_dir, fake_engine, signum):
    engine = fake_engine(sleep=60)
    tools_dir = Path(__file__).parents[2] / "python" / "tools"
    env = dict(os.environ, PYTHONPATH=str(tools_dir))
    unitool = subprocess.Popen(
        [
            sys.executable, "-m", "unitool",
            "--unity", str(engine),
            "--artifacts-dir", str(artifacts_dir),
            "compile", str(unity_project),
        ],
        env=env,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    try:
        editor_pid = _wait_for_pid(engine, time.monotonic() + 30)

        unitool.send_signal(signum)

        assert unitool.wait(timeout=30) == 128 + signum
        assert _gone(editor_pid)
    finally:
        unitool.kill()
        unitool.wait()
