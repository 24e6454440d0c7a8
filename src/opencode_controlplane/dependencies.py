"""Process-wide control-plane components.

The gate middleware runs outside FastAPI's dependency injection, so the
components live here and are read through getters. Tests install their own
with init_components() and clear them with reset_components().
"""

from opencode_controlplane.db import ConfigStore
from opencode_controlplane.setup_flow import SetupService
from opencode_controlplane.supervisor import WorkerSupervisor

_store: ConfigStore | None = None
_supervisor: WorkerSupervisor | None = None
_setup: SetupService | None = None


def init_components(
    store: ConfigStore, supervisor: WorkerSupervisor, setup: SetupService
) -> None:
    global _store, _supervisor, _setup
    _store = store
    _supervisor = supervisor
    _setup = setup


def reset_components() -> None:
    global _store, _supervisor, _setup
    _store = None
    _supervisor = None
    _setup = None


def components_ready() -> bool:
    return _store is not None


def get_config_store() -> ConfigStore:
    if _store is None:
        raise RuntimeError("Config store not initialized")
    return _store


def get_supervisor() -> WorkerSupervisor:
    if _supervisor is None:
        raise RuntimeError("Worker supervisor not initialized")
    return _supervisor


def get_setup_service() -> SetupService:
    if _setup is None:
        raise RuntimeError("Setup service not initialized")
    return _setup
