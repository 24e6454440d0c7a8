"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for the panel.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.PROJECT_CREATED, ...})
    """

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

    # Request events
    REQUEST_COMPLETE = "request_complete"
    REQUEST_FAILED = "request_failed"
    REQUEST_SLOW = "request_slow"

    # Project lifecycle
    PROJECT_CREATED = "project_created"
    PROJECT_CREATE_FAILED = "project_create_failed"
    PROJECT_DELETED = "project_deleted"
    PROJECT_CLEANUP_FAILED = "project_cleanup_failed"

    # Container events
    CONTAINER_CREATED = "container_created"
    CONTAINER_STARTED = "container_started"
    CONTAINER_STOPPED = "container_stopped"
    CONTAINER_REMOVED = "container_removed"
    CONTAINER_RECREATED = "container_recreated"
    PORT_ALLOCATED = "port_allocated"

    # Repository events
    REPO_CREATED = "repo_created"
    REPO_DELETED = "repo_deleted"
    REPO_CLONED = "repo_cloned"

    # Provider events
    PROVIDER_CONNECTED = "provider_connected"
    PROVIDER_DISCONNECTED = "provider_disconnected"
    OAUTH_STARTED = "oauth_started"
    OAUTH_COMPLETED = "oauth_completed"
    OAUTH_FAILED = "oauth_failed"

    # Error events
    UNHANDLED_EXCEPTION = "unhandled_exception"
    PANEL_ERROR = "panel_error"
