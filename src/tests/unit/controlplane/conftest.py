"""Fixtures for control-plane unit tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from opencode_controlplane.db import ConfigStatus, ConfigStore
from opencode_controlplane.setup_flow import SetupService
from opencode_controlplane.supervisor import WorkerStatus, WorkerSupervisor


@pytest.fixture
def mock_store() -> AsyncMock:
    """ConfigStore mock reporting UNCONFIGURED by default."""
    store = AsyncMock(spec=ConfigStore)
    store.get = AsyncMock(return_value=None)
    store.set = AsyncMock()
    store.get_status = AsyncMock(return_value=ConfigStatus.UNCONFIGURED)
    store.set_status = AsyncMock()
    return store


@pytest.fixture
def mock_supervisor() -> MagicMock:
    supervisor = MagicMock(spec=WorkerSupervisor)
    supervisor.running = False
    supervisor.start = AsyncMock()
    supervisor.stop = AsyncMock()
    supervisor.restart = AsyncMock()
    supervisor.status = MagicMock(return_value=WorkerStatus(running=False, pid=None, port=8080))
    return supervisor


@pytest.fixture
def mock_setup() -> MagicMock:
    setup = MagicMock(spec=SetupService)
    setup.configure = AsyncMock()
    setup.cancel_pending = MagicMock()
    return setup
