"""Supervisor for the OpenCode Web worker process.

The worker is a single child process owned by the control plane for its
whole lifetime. State is explicit:

    NotStarted --start()--> Running(process) --exit/stop()--> Stopped(returncode)
                                 ^                                   |
                                 +-------------- start() ------------+
"""

import asyncio
import contextlib
import logging
import os
from dataclasses import dataclass

from dotenv import dotenv_values
from pydantic import BaseModel

from opencode_controlplane.config import WorkerConfig
from opencode_controlplane.errors import WorkerError
from opencode_controlplane.logging_schema import LogEvent

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024
# Longer lines are flushed in pieces
_MAX_LINE = 1024 * 1024
_MAX_LOGGED_LINE = 4096


@dataclass(frozen=True)
class NotStarted:
    pass


@dataclass(frozen=True)
class Running:
    process: asyncio.subprocess.Process


@dataclass(frozen=True)
class Stopped:
    returncode: int | None


WorkerState = NotStarted | Running | Stopped


class WorkerStatus(BaseModel):
    running: bool
    pid: int | None
    port: int


class WorkerSupervisor:
    """Start, stop and report on the worker process."""

    def __init__(self, config: WorkerConfig) -> None:
        self._config = config
        self._state: WorkerState = NotStarted()
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def running(self) -> bool:
        return isinstance(self._state, Running)

    def status(self) -> WorkerStatus:
        pid = self._state.process.pid if isinstance(self._state, Running) else None
        return WorkerStatus(running=pid is not None, pid=pid, port=self._config.port)

    def worker_env(self) -> dict[str, str]:
        """Process environment overlaid with the worker env file."""
        env = dict(os.environ)
        if self._config.env_file.is_file():
            values = dotenv_values(self._config.env_file)
            env.update({k: v for k, v in values.items() if v is not None})
        return env

    async def start(self) -> None:
        """Spawn the worker unless it is already running.

        Returns once the ready marker is printed or the startup timeout
        elapses, whichever comes first.
        """
        async with self._lock:
            if self.running:
                return

            logger.info(
                "Spawning worker: %s",
                " ".join(self._config.argv),
                extra={"event": LogEvent.WORKER_STARTING},
            )
            try:
                process = await asyncio.create_subprocess_exec(
                    *self._config.argv,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=self.worker_env(),
                )
            except OSError as exc:
                logger.error(
                    "Failed to spawn worker",
                    extra={"event": LogEvent.WORKER_SPAWN_FAILED, "error": str(exc)},
                )
                raise WorkerError(f"Failed to start worker: {exc}") from exc

            self._state = Running(process)
            ready = asyncio.Event()
            self._spawn(self._pump(process.stdout, logging.INFO, ready))
            self._spawn(self._pump(process.stderr, logging.WARNING, ready))
            self._spawn(self._watch(process, ready))

            try:
                await asyncio.wait_for(ready.wait(), timeout=self._config.startup_timeout)
            except TimeoutError:
                logger.info(
                    "Worker did not report ready within %.1fs, continuing",
                    self._config.startup_timeout,
                )

    async def stop(self) -> None:
        """SIGTERM the worker, then SIGKILL after the grace period."""
        async with self._lock:
            if not isinstance(self._state, Running):
                return
            process = self._state.process

            logger.info(
                "Stopping worker",
                extra={"event": LogEvent.WORKER_STOPPING, "pid": process.pid},
            )
            with contextlib.suppress(ProcessLookupError):
                process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=self._config.stop_grace_seconds)
            except TimeoutError:
                logger.warning(
                    "Worker ignored SIGTERM, killing",
                    extra={"event": LogEvent.WORKER_KILLED, "pid": process.pid},
                )
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

            self._state = Stopped(process.returncode)

    async def restart(self) -> None:
        await self.stop()
        await self.start()

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _pump(
        self, stream: asyncio.StreamReader | None, level: int, ready: asyncio.Event
    ) -> None:
        """Drain one output pipe until EOF, logging it line by line.

        Reads fixed-size chunks, so the pipe keeps draining whatever the
        line length.
        """
        if stream is None:
            return
        pending = b""
        while chunk := await stream.read(_READ_CHUNK):
            *lines, pending = (pending + chunk).split(b"\n")
            for raw in lines:
                self._emit(raw, level, ready)
            if len(pending) > _MAX_LINE:
                self._emit(pending, level, ready)
                pending = b""
        if pending:
            self._emit(pending, level, ready)

    def _emit(self, raw: bytes, level: int, ready: asyncio.Event) -> None:
        line = raw.decode("utf-8", errors="replace").rstrip()
        if not line:
            return
        logged = line
        if len(logged) > _MAX_LOGGED_LINE:
            logged = f"{logged[:_MAX_LOGGED_LINE]}... ({len(line)} chars)"
        logger.log(level, "[worker] %s", logged, extra={"event": LogEvent.WORKER_OUTPUT})
        if self._config.ready_marker in line and not ready.is_set():
            ready.set()
            logger.info("Worker ready", extra={"event": LogEvent.WORKER_READY})

    async def _watch(self, process: asyncio.subprocess.Process, ready: asyncio.Event) -> None:
        returncode = await process.wait()
        ready.set()
        if isinstance(self._state, Running) and self._state.process is process:
            self._state = Stopped(returncode)
        logger.info(
            "Worker exited with code %s",
            returncode,
            extra={"event": LogEvent.WORKER_EXITED, "returncode": returncode},
        )
