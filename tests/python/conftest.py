"""
Shared fixtures for the unitool tests.

The Unity editor is replaced by a small generated Python script that writes
the log and results files it is asked to and exits with a chosen code.
"""

import json
import os
import stat
import sys
from pathlib import Path
from typing import Callable, List, Optional

import pytest

# Add the tools directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "python" / "tools"))

from unitool.utils.config import UnitoolConfig  # noqa: E402

FAKE_ENGINE = """#!{python}
import json
import os
import sys
import time
from pathlib import Path

args = sys.argv[1:]


def value(flag):
    return args[args.index(flag) + 1] if flag in args else None


Path({record!r}).write_text(json.dumps(args))
Path({pid_record!r}).write_text(str(os.getpid()))
if {sleep!r}:
    time.sleep({sleep!r})
log_path = value("-logFile")
if log_path and {log!r} is not None:
    Path(log_path).write_text({log!r})
results_path = value("-testResults")
if results_path and {results!r} is not None:
    Path(results_path).write_text({results!r})
sys.exit({exit_code!r})
"""

RESULTS_3_PASSED_1_FAILED = """<?xml version="1.0" encoding="utf-8"?>
<test-run id="2" testcasecount="4" result="Failed(Child)" total="4" passed="3" failed="1" inconclusive="0" skipped="0" duration="1.234">
  <test-suite type="TestSuite" name="MyGame" fullname="MyGame" total="4" passed="3" failed="1" skipped="0">
    <properties>
      <property name="platform" value="EditMode" />
    </properties>
    <test-suite type="Assembly" name="EditTests.dll" total="4" passed="3" failed="1" skipped="0">
      <test-suite type="TestFixture" name="FooTests" fullname="Foo.FooTests" total="4" passed="3" failed="1" skipped="0">
        <test-case name="Adds" fullname="Foo.FooTests.Adds" result="Passed" duration="0.01" />
        <test-case name="Subtracts" fullname="Foo.FooTests.Subtracts" result="Passed" duration="0.01" />
        <test-case name="Multiplies" fullname="Foo.FooTests.Multiplies" result="Passed" duration="0.01">
          <output><![CDATA[multiplied]]></output>
        </test-case>
        <test-case name="Divides" fullname="Foo.FooTests.Divides" result="Failed" duration="0.02">
          <failure>
            <message><![CDATA[  Expected: 2
  But was:  3
]]></message>
            <stack-trace><![CDATA[at Foo.FooTests.Divides () [0x00001] in Assets/Tests/FooTests.cs:42
]]></stack-trace>
          </failure>
          <output><![CDATA[dividing by zero?]]></output>
        </test-case>
      </test-suite>
    </test-suite>
  </test-suite>
</test-run>
"""

RESULTS_ALL_PASSED = """<?xml version="1.0" encoding="utf-8"?>
<test-run total="2" passed="2" failed="0" skipped="0" duration="0.5">
  <test-suite type="Assembly" name="EditTests.dll" total="2" passed="2" failed="0" skipped="0">
    <test-case name="A" fullname="Foo.A" result="Passed" />
    <test-case name="B" fullname="Foo.B" result="Passed" />
  </test-suite>
</test-run>
"""

COMPILE_ERROR_LOG = """Loading project
- Starting compile Library/Bee/artifacts/1900b0aE.dag/Assembly-CSharp.dll
Assets/Scripts/Player.cs(12,5): error CS0103: The name 'speed' does not exist in the current context
Assets/Scripts/Player.cs(20,9): warning CS0168: The variable 'e' is declared but never used
Assets/Scripts/Player.cs(12,5): error CS0103: The name 'speed' does not exist in the current context
Exiting without the bug reporter. Application will terminate with return code 1
"""

CLEAN_LOG = """Loading project
- Finished compile Library/ScriptAssemblies/Assembly-CSharp.dll
Exiting batchmode successfully now!
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own Unity settings out of the tests."""
    for name in list(os.environ):
        if name.startswith("UNITOOL_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("UNITY_PATH", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)


@pytest.fixture
def unity_project(tmp_path: Path) -> Path:
    """An empty directory laid out like a Unity project."""
    project = tmp_path / "MyGame"
    (project / "Assets").mkdir(parents=True)
    (project / "ProjectSettings").mkdir()
    return project


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    return tmp_path / "artifacts"


@pytest.fixture
def config(artifacts_dir: Path) -> UnitoolConfig:
    return UnitoolConfig(artifacts_dir=artifacts_dir, timeout=30)


@pytest.fixture
def fake_engine(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an executable stand-in for the Unity editor."""
    counter = iter(range(1000))

    def _make(
        log: Optional[str] = CLEAN_LOG,
        results: Optional[str] = None,
        exit_code: int = 0,
        sleep: float = 0,
    ) -> Path:
        index = next(counter)
        engine = tmp_path / f"fake-unity-{index}"
        record = tmp_path / f"fake-unity-{index}.args.json"
        pid_record = tmp_path / f"fake-unity-{index}.pid"
        engine.write_text(
            FAKE_ENGINE.format(
                python=sys.executable,
                record=str(record),
                pid_record=str(pid_record),
                sleep=sleep,
                log=log,
                results=results,
                exit_code=exit_code,
            )
        )
        engine.chmod(engine.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return engine

    return _make


def recorded_args(engine: Path) -> List[str]:
    """Arguments the fake editor was last invoked with."""
    return json.loads(engine.with_name(engine.name + ".args.json").read_text())


def recorded_pid(engine: Path) -> int:
    """Process id of the last fake editor started from ``engine``."""
    return int(engine.with_name(engine.name + ".pid").read_text())
