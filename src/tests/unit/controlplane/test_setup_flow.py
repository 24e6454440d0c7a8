"""Tests for the configure flow."""

import json
import stat
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, call

import pytest

from opencode_controlplane.config import SetupConfig
from opencode_controlplane.db import ConfigStatus
from opencode_controlplane.errors import WorkerError
from opencode_controlplane.setup_flow import ConfigurePayload, SetupService


@pytest.fixture
def setup_file(tmp_path: Path) -> Path:
    return tmp_path / "etc" / "opencode" / "setup.json"


@pytest.fixture
def service(mock_store: AsyncMock, mock_supervisor: MagicMock, setup_file: Path) -> SetupService:
    return SetupService(
        mock_store, mock_supervisor, SetupConfig(file=setup_file, delay_seconds=0)
    )


class TestConfigure:
    async def test_persists_settings_and_configuring(
        self, service: SetupService, mock_store: AsyncMock
    ):
        await service.configure(ConfigurePayload(domain="a.example.com", github_repo="o/r"))

        mock_store.set.assert_has_awaits(
            [call("domain", "a.example.com"), call("github_repo", "o/r")]
        )
        mock_store.set_status.assert_awaited_with(ConfigStatus.CONFIGURING)
        await service.drain()

    async def test_background_step_reaches_ready(
        self,
        service: SetupService,
        mock_store: AsyncMock,
        mock_supervisor: MagicMock,
        setup_file: Path,
    ):
        await service.configure(
            ConfigurePayload(domain="a.example.com", github_repo="o/r", cloudflare_token="cf")
        )
        await service.drain()

        assert mock_store.set_status.await_args_list == [
            call(ConfigStatus.CONFIGURING),
            call(ConfigStatus.READY),
        ]
        mock_supervisor.start.assert_awaited_once()
        assert json.loads(setup_file.read_text()) == {
            "domain": "a.example.com",
            "github_repo": "o/r",
            "cloudflare_token": "cf",
        }
        assert stat.S_IMODE(setup_file.stat().st_mode) == 0o600

    async def test_worker_failure_sets_error(
        self, service: SetupService, mock_store: AsyncMock, mock_supervisor: MagicMock
    ):
        mock_supervisor.start.side_effect = WorkerError("npx not found")

        await service.configure(ConfigurePayload())
        await service.drain()

        mock_store.set_status.assert_awaited_with(ConfigStatus.ERROR)

    async def test_unwritable_setup_file_sets_error(
        self, mock_store: AsyncMock, mock_supervisor: MagicMock, tmp_path: Path
    ):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        service = SetupService(
            mock_store,
            mock_supervisor,
            SetupConfig(file=blocker / "setup.json", delay_seconds=0),
        )

        await service.configure(ConfigurePayload())
        await service.drain()

        mock_store.set_status.assert_awaited_with(ConfigStatus.ERROR)
        mock_supervisor.start.assert_not_called()


class TestWriteSetupFile:
    def test_tightens_existing_file_permissions(self, service: SetupService, setup_file: Path):
        setup_file.parent.mkdir(parents=True)
        setup_file.write_text("{}")
        setup_file.chmod(0o644)

        service.write_setup_file(ConfigurePayload(domain="x"))

        assert stat.S_IMODE(setup_file.stat().st_mode) == 0o600
        assert json.loads(setup_file.read_text())["domain"] == "x"
