"""Panel API endpoints."""

from opencode_panel.api.health import router as health_router
from opencode_panel.api.projects import router as projects_router
from opencode_panel.api.providers import router as providers_router

__all__ = [
    "health_router",
    "projects_router",
    "providers_router",
]
