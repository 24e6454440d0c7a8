"""Configure flow: persist settings, then reach READY in the background."""

import asyncio
import json
import logging
import os

from pydantic import BaseModel, ConfigDict

from opencode_controlplane.config import SetupConfig
from opencode_controlplane.db import ConfigStatus, ConfigStore
from opencode_controlplane.logging_schema import LogEvent
from opencode_controlplane.supervisor import WorkerSupervisor

logger = logging.getLogger(__name__)


class ConfigurePayload(BaseModel):
    """Wizard submission. Unknown fields are kept and written to the setup file."""

    model_config = ConfigDict(extra="allow")

    domain: str = ""
    github_repo: str = ""


class SetupService:
    def __init__(
        self,
        store: ConfigStore,
        supervisor: WorkerSupervisor,
        config: SetupConfig,
    ) -> None:
        self._store = store
        self._supervisor = supervisor
        self._config = config
        self._pending: set[asyncio.Task] = set()

    async def configure(self, payload: ConfigurePayload) -> None:
        """Save settings and move to CONFIGURING; READY follows after the delay."""
        await self._store.set("domain", payload.domain)
        await self._store.set("github_repo", payload.github_repo)
        await self._store.set_status(ConfigStatus.CONFIGURING)

        task = asyncio.create_task(self._complete(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _complete(self, payload: ConfigurePayload) -> None:
        await asyncio.sleep(self._config.delay_seconds)
        try:
            await self._store.set_status(ConfigStatus.READY)
            self.write_setup_file(payload)
            await self._supervisor.start()
        except Exception as exc:
            logger.error(
                "Setup failed: %s",
                exc,
                extra={"event": LogEvent.SETUP_FAILED, "error": str(exc)},
            )
            await self._store.set_status(ConfigStatus.ERROR)

    def write_setup_file(self, payload: ConfigurePayload) -> None:
        """Write the raw payload as JSON readable by the owner only."""
        path = self._config.file
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload.model_dump(), f, indent=2)
        # O_CREAT mode does not apply to an existing file
        os.chmod(path, 0o600)
        logger.info(
            "Saved configuration to %s",
            path,
            extra={"event": LogEvent.SETUP_WRITTEN},
        )

    async def drain(self) -> None:
        """Wait for background configure steps to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def cancel_pending(self) -> None:
        for task in self._pending:
            task.cancel()
