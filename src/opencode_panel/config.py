"""Panel configuration using pydantic-settings.

Configuration hierarchy:
- ServerConfig: HTTP server settings
- WorkspaceConfig: Workspace directory and metadata files
- DockerConfig: Container runtime and routing settings
- GitHubConfig: Repository creation and OAuth device flow
- LoggingConfig: Logging behavior
- PanelConfig: Main config aggregating all sub-configs

Environment variable prefix: PANEL_
Example: PANEL_DOCKER_NETWORK=my-network

The plain names used by the deployment's .env (WORKSPACES_DIR, GITHUB_TOKEN,
OPENCODE_BASE_PORT, ...) are accepted as aliases.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = ".env"


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PANEL_SERVER_",
        env_file=_ENV_FILE,
        extra="ignore",
        populate_by_name=True,
    )

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("PANEL_SERVER_PORT", "PANEL_PORT"),
        description="Server port",
    )
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class WorkspaceConfig(BaseSettings):
    """Workspace layout on the host filesystem."""

    model_config = SettingsConfigDict(
        env_prefix="PANEL_WORKSPACE_",
        env_file=_ENV_FILE,
        extra="ignore",
        populate_by_name=True,
    )

    root: str = Field(
        default="/workspaces",
        validation_alias=AliasChoices("PANEL_WORKSPACE_ROOT", "WORKSPACES_DIR"),
        description="Directory holding one subdirectory per project",
    )
    meta_filename: str = Field(default=".opencode-meta.json")
    env_filename: str = Field(default=".env")
    providers_filename: str = Field(
        default=".providers.json",
        description="Global provider credentials file, stored under root",
    )
    password_length: int = Field(default=16, description="Generated password length")


class DockerConfig(BaseSettings):
    """Docker runtime configuration.

    Port range for project containers is [base_port, base_port + max_projects).
    """

    model_config = SettingsConfigDict(
        env_prefix="PANEL_DOCKER_",
        env_file=_ENV_FILE,
        extra="ignore",
        populate_by_name=True,
    )

    # Connection
    host: str = Field(
        default="unix:///var/run/docker.sock",
        description="Docker daemon socket or TCP address",
    )
    api_timeout: float = Field(default=30.0, description="Docker API call timeout (seconds)")
    stop_timeout: int = Field(default=10, description="Grace period for container stop")

    # Container
    image: str = Field(
        default="opencode-platform-opencode",
        validation_alias=AliasChoices("PANEL_DOCKER_IMAGE", "OPENCODE_IMAGE"),
    )
    network: str = Field(default="opencode-net", description="Docker network name")
    container_port: int = Field(default=4096, description="Port exposed by opencode")
    container_prefix: str = Field(default="opencode-project-")
    workspace_mount: str = Field(default="/workspace")
    server_username: str = Field(default="opencode")

    # Host ports
    base_port: int = Field(
        default=4100,
        validation_alias=AliasChoices("PANEL_DOCKER_BASE_PORT", "OPENCODE_BASE_PORT"),
    )
    max_projects: int = Field(
        default=20,
        validation_alias=AliasChoices("PANEL_DOCKER_MAX_PROJECTS", "MAX_PROJECTS"),
    )

    # Traefik routing
    route_prefix: str = Field(default="/p/")
    entrypoint: str = Field(default="web")
    router_priority: int = Field(default=10)


class GitHubConfig(BaseSettings):
    """GitHub REST and OAuth device-flow configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PANEL_GITHUB_",
        env_file=_ENV_FILE,
        extra="ignore",
        populate_by_name=True,
    )

    token: str = Field(
        default="",
        validation_alias=AliasChoices("PANEL_GITHUB_TOKEN", "GITHUB_TOKEN"),
        description="Token used to create and delete repositories",
    )
    org: str = Field(
        default="essentia-uy",
        validation_alias=AliasChoices("PANEL_GITHUB_ORG", "GITHUB_ORG"),
    )
    api_url: str = Field(default="https://api.github.com")
    oauth_url: str = Field(default="https://github.com")
    api_version: str = Field(default="2022-11-28")
    user_agent: str = Field(default="opencode-platform")
    timeout: float = Field(default=15.0)

    # Copilot device flow
    copilot_client_id: str = Field(default="Iv1.b507a08c87ecfe98")
    copilot_scope: str = Field(default="read:user")


class LoggingConfig(BaseSettings):
    """Logging configuration.

    - text: Human-readable for local development
    - json: Structured logging for production (log aggregation)
    """

    model_config = SettingsConfigDict(
        env_prefix="PANEL_LOGGING_", env_file=_ENV_FILE, extra="ignore"
    )

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="opencode-panel", description="Service identifier in logs")
    slow_threshold_ms: float = Field(
        default=5000.0,
        description="Threshold for slow request warnings (milliseconds)",
    )


class PanelConfig(BaseSettings):
    """Main panel configuration aggregating all sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="PANEL_",
        env_nested_delimiter="__",
        env_file=_ENV_FILE,
        extra="ignore",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_panel_config() -> PanelConfig:
    """Get cached panel configuration singleton."""
    return PanelConfig()
