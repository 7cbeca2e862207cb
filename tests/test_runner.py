"""Tests for the session runner (engine launch and output tee)."""

import io
import signal
import sys

import pytest

from session.engines import EngineCommand
from session.errors import EngineError
from session.runner import SessionRunner

SCRIPT = (
    "import os, sys\n"
    "print('cwd=' + os.getcwd())\n"
    "print('asan=' + os.environ.get('ASAN_OPTIONS', ''))\n"
    "sys.stdout.flush()\n"
    "sys.stderr.write('#1 INITED cov: 12 ft: 14\\n')\n"
    "sys.exit(3)\n"
)


def make_runner(tmp_path, stream, log_name="fuzz.log", env=None):
    command = EngineCommand((sys.executable, "-c", SCRIPT))
    return SessionRunner(command, tmp_path, log_name=log_name, env=env, stream=stream)


class TestSessionRunner:
    def test_tees_combined_output(self, tmp_path):
        stream = io.StringIO()
        returncode = make_runner(tmp_path, stream).run()

        assert returncode == 3
        log = (tmp_path / "fuzz.log").read_text()
        assert log == stream.getvalue()
        assert "#1 INITED cov: 12 ft: 14" in log

    def test_runs_from_artifacts_directory(self, tmp_path):
        stream = io.StringIO()
        make_runner(tmp_path, stream, log_name="custom.log").run()
        assert f"cwd={tmp_path.resolve()}" in (tmp_path / "custom.log").read_text()

    def test_passes_environment(self, tmp_path):
        stream = io.StringIO()
        env = {"ASAN_OPTIONS": "include=/system/asan.options:coverage=1"}
        make_runner(tmp_path, stream, env=env).run()
        assert "asan=include=/system/asan.options:coverage=1" in stream.getvalue()


class InterruptingStream(io.StringIO):
    """Raises KeyboardInterrupt on the first write, as Ctrl-C would."""

    def write(self, text):
        raise KeyboardInterrupt


LONG_RUNNING = (
    "import time\n"
    "print('#0 READ units: 1', flush=True)\n"
    "time.sleep(60)\n"
)

IGNORES_SIGTERM = (
    "import signal, time\n"
    "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
    "print('#0 READ units: 1', flush=True)\n"
    "time.sleep(60)\n"
)


class TestInterrupt:
    def test_ctrl_c_terminates_engine(self, tmp_path):
        command = EngineCommand((sys.executable, "-c", LONG_RUNNING))
        runner = SessionRunner(command, tmp_path, stream=InterruptingStream())
        assert runner.run() == -signal.SIGTERM

    def test_engine_ignoring_sigterm_is_killed(self, tmp_path):
        command = EngineCommand((sys.executable, "-c", IGNORES_SIGTERM))
        runner = SessionRunner(command, tmp_path, stream=InterruptingStream(), stop_timeout=0.5)
        assert runner.run() == -signal.SIGKILL


class TestLaunchFailure:
    def test_missing_engine_executable(self, tmp_path):
        command = EngineCommand((str(tmp_path / "missing" / "honggfuzz"), "--persistent"))
        with pytest.raises(EngineError, match="cannot start engine"):
            SessionRunner(command, tmp_path, stream=io.StringIO()).run()
        assert not (tmp_path / "fuzz.log").exists()
