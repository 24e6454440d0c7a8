"""Tests for WorkerSupervisor using short-lived child processes."""

import asyncio
import signal
import sys
from pathlib import Path

import pytest

from opencode_controlplane.config import WorkerConfig
from opencode_controlplane.errors import WorkerError
from opencode_controlplane.supervisor import NotStarted, Running, Stopped, WorkerSupervisor

READY_AND_SLEEP = "print('Running OpenCode Web', flush=True); import time; time.sleep(60)"
IGNORE_SIGTERM = (
    "import signal, time; signal.signal(signal.SIGTERM, signal.SIG_IGN); "
    "print('Running OpenCode Web', flush=True); time.sleep(60)"
)


def _config(tmp_path: Path, script: str, **overrides) -> WorkerConfig:
    values = {
        "command": [sys.executable, "-c", script],
        "env_file": tmp_path / "worker.env",
        "startup_timeout": 5.0,
        "stop_grace_seconds": 0.5,
    }
    values.update(overrides)
    return WorkerConfig(**values)


class TestWorkerSupervisor:
    async def test_initial_state(self, tmp_path: Path):
        supervisor = WorkerSupervisor(_config(tmp_path, "pass"))

        assert isinstance(supervisor.state, NotStarted)
        status = supervisor.status()
        assert status.running is False
        assert status.pid is None
        assert status.port == 8080

    async def test_start_and_stop(self, tmp_path: Path):
        supervisor = WorkerSupervisor(_config(tmp_path, READY_AND_SLEEP))

        await supervisor.start()
        try:
            assert isinstance(supervisor.state, Running)
            assert supervisor.status().running is True
            assert supervisor.status().pid is not None
        finally:
            await supervisor.stop()

        assert isinstance(supervisor.state, Stopped)
        assert supervisor.state.returncode == -signal.SIGTERM

    async def test_start_is_idempotent(self, tmp_path: Path):
        supervisor = WorkerSupervisor(_config(tmp_path, READY_AND_SLEEP))

        await supervisor.start()
        try:
            pid = supervisor.status().pid
            await supervisor.start()
            assert supervisor.status().pid == pid
        finally:
            await supervisor.stop()

    async def test_start_returns_after_timeout_without_marker(self, tmp_path: Path):
        supervisor = WorkerSupervisor(
            _config(tmp_path, "import time; time.sleep(60)", startup_timeout=0.3)
        )

        await supervisor.start()
        try:
            assert supervisor.running
        finally:
            await supervisor.stop()

    async def test_stop_escalates_to_kill(self, tmp_path: Path):
        supervisor = WorkerSupervisor(_config(tmp_path, IGNORE_SIGTERM))
        await supervisor.start()

        await supervisor.stop()

        assert isinstance(supervisor.state, Stopped)
        assert supervisor.state.returncode == -signal.SIGKILL

    async def test_stop_when_not_running(self, tmp_path: Path):
        supervisor = WorkerSupervisor(_config(tmp_path, "pass"))

        await supervisor.stop()

        assert isinstance(supervisor.state, NotStarted)

    async def test_process_exit_moves_to_stopped(self, tmp_path: Path):
        supervisor = WorkerSupervisor(_config(tmp_path, "print('bye')"))

        await supervisor.start()
        for _ in range(50):
            if isinstance(supervisor.state, Stopped):
                break
            await asyncio.sleep(0.05)

        assert isinstance(supervisor.state, Stopped)
        assert supervisor.state.returncode == 0
        assert supervisor.running is False

    async def test_restart_spawns_new_process(self, tmp_path: Path):
        supervisor = WorkerSupervisor(_config(tmp_path, READY_AND_SLEEP))
        await supervisor.start()
        first_pid = supervisor.status().pid

        await supervisor.restart()
        try:
            assert supervisor.running
            assert supervisor.status().pid != first_pid
        finally:
            await supervisor.stop()

    async def test_spawn_failure(self, tmp_path: Path):
        supervisor = WorkerSupervisor(
            _config(tmp_path, "", command=[str(tmp_path / "missing-binary")])
        )

        with pytest.raises(WorkerError):
            await supervisor.start()

        assert isinstance(supervisor.state, NotStarted)

    def test_env_file_overrides_process_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SHARED", "from-process")
        monkeypatch.setenv("ONLY_PROCESS", "1")
        (tmp_path / "worker.env").write_text("SHARED=from-file\nONLY_FILE=2\n")
        supervisor = WorkerSupervisor(_config(tmp_path, "pass"))

        env = supervisor.worker_env()

        assert env["SHARED"] == "from-file"
        assert env["ONLY_PROCESS"] == "1"
        assert env["ONLY_FILE"] == "2"

    def test_missing_env_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("ONLY_PROCESS", "1")
        supervisor = WorkerSupervisor(_config(tmp_path, "pass"))

        assert supervisor.worker_env()["ONLY_PROCESS"] == "1"

    async def test_overlong_output_line_keeps_pipe_drained(self, tmp_path: Path):
        script = (
            "import sys\n"
            "sys.stdout.write('x' * 100_000 + '\\n')\n"
            "print('Running OpenCode Web', flush=True)\n"
            "for i in range(20_000):\n"
            "    sys.stdout.write('line %05d ' % i + 'y' * 40 + '\\n')\n"
            "sys.stdout.flush()\n"
        )
        supervisor = WorkerSupervisor(_config(tmp_path, script))

        await supervisor.start()
        for _ in range(200):
            if isinstance(supervisor.state, Stopped):
                break
            await asyncio.sleep(0.05)

        assert isinstance(supervisor.state, Stopped)
        assert supervisor.state.returncode == 0

    async def test_ready_marker_after_overlong_line(self, tmp_path: Path):
        script = (
            "import sys, time\n"
            "sys.stdout.write('z' * 200_000 + '\\n')\n"
            "print('Running OpenCode Web', flush=True)\n"
            "time.sleep(60)\n"
        )
        supervisor = WorkerSupervisor(_config(tmp_path, script, startup_timeout=30.0))

        loop = asyncio.get_running_loop()
        started = loop.time()
        await supervisor.start()
        try:
            assert loop.time() - started < 10
            assert supervisor.running
        finally:
            await supervisor.stop()


class TestWorkerConfig:
    def test_argv_carries_configured_port(self):
        config = WorkerConfig(port=9191)

        assert config.argv == ["npx", "opencode-ai", "web", "--port", "9191"]
        assert config.url == "http://127.0.0.1:9191"

    def test_argv_without_port_flag(self):
        config = WorkerConfig(command=["opencode-web"], port_flag=None)

        assert config.argv == ["opencode-web"]
