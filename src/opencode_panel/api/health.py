"""Health check endpoint."""

from fastapi import APIRouter

from opencode_panel import __version__
from opencode_panel.api.schemas import HealthResponse
from opencode_panel.config import get_panel_config

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    config = get_panel_config()
    return HealthResponse(
        status="ok",
        version=__version__,
        workspaces_dir=config.workspace.root,
        github_org=config.github.org,
    )
