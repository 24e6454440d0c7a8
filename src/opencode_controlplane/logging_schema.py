"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for the control plane."""

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"
    DB_INITIALIZED = "db_initialized"

    # Setup flow
    STATUS_CHANGED = "status_changed"
    SETUP_WRITTEN = "setup_written"
    SETUP_FAILED = "setup_failed"

    # Worker process
    WORKER_STARTING = "worker_starting"
    WORKER_READY = "worker_ready"
    WORKER_OUTPUT = "worker_output"
    WORKER_EXITED = "worker_exited"
    WORKER_STOPPING = "worker_stopping"
    WORKER_KILLED = "worker_killed"
    WORKER_SPAWN_FAILED = "worker_spawn_failed"

    # Proxy
    UPSTREAM_ERROR = "upstream_error"
    WS_ERROR = "ws_error"

    # Error events
    UNHANDLED_EXCEPTION = "unhandled_exception"
    CONTROLPLANE_ERROR = "controlplane_error"
