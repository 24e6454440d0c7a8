"""Request/response models for the panel API.

Bodies are camelCase on the wire, matching the panel UI.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Projects
# =============================================================================


class CreateProjectRequest(CamelModel):
    """Create project request. Without repo a private repository is created."""

    name: str | None = None
    repo: str | None = None
    description: str | None = None
    api_keys: dict[str, str] | None = None
    created_by: str | None = None


class ProjectStateResponse(CamelModel):
    name: str
    running: bool


class ProjectDeletedResponse(CamelModel):
    name: str
    deleted: bool


class LogsResponse(CamelModel):
    logs: str


# =============================================================================
# Providers
# =============================================================================


class ConnectProviderRequest(CamelModel):
    api_key: str | None = None


class ProviderStateResponse(CamelModel):
    id: str
    connected: bool


# =============================================================================
# Health
# =============================================================================


class HealthResponse(CamelModel):
    status: str
    version: str
    workspaces_dir: str
    github_org: str
