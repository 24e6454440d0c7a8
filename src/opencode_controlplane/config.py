"""Control-plane configuration using pydantic-settings.

Configuration hierarchy:
- ServerConfig: HTTP server settings
- DatabaseConfig: Config table connection
- SetupConfig: Setup wizard and generated setup file
- WorkerConfig: Spawned OpenCode Web process
- LoggingConfig: Logging behavior
- ControlPlaneConfig: Main config aggregating all sub-configs

Environment variable prefix: CONTROLPLANE_
Example: CONTROLPLANE_WORKER_PORT=8081
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = ".env"
_WIZARD_DIR = Path(__file__).parent / "wizard"


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CONTROLPLANE_SERVER_",
        env_file=_ENV_FILE,
        extra="ignore",
        populate_by_name=True,
    )

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("CONTROLPLANE_SERVER_PORT", "PORT"),
        description="Server port",
    )
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class DatabaseConfig(BaseSettings):
    """Config table storage."""

    model_config = SettingsConfigDict(
        env_prefix="CONTROLPLANE_DATABASE_", env_file=_ENV_FILE, extra="ignore"
    )

    url: str = Field(
        default="sqlite+aiosqlite:///./dev_data/controlplane.db",
        description="SQLAlchemy async URL (production: /srv/opencode/controlplane.db)",
    )
    echo: bool = Field(default=False, description="Log SQL statements")


class SetupConfig(BaseSettings):
    """Setup wizard and configure flow."""

    model_config = SettingsConfigDict(
        env_prefix="CONTROLPLANE_SETUP_", env_file=_ENV_FILE, extra="ignore"
    )

    file: Path = Field(
        default=Path("dev_data/setup.json"),
        description="Where the configure payload is written (production: /etc/opencode/setup.json)",
    )
    delay_seconds: float = Field(default=3.0, description="Delay before READY is reached")
    wizard_dir: Path = Field(default=_WIZARD_DIR, description="Static setup UI directory")


class WorkerConfig(BaseSettings):
    """OpenCode Web worker process."""

    model_config = SettingsConfigDict(
        env_prefix="CONTROLPLANE_WORKER_", env_file=_ENV_FILE, extra="ignore"
    )

    command: list[str] = Field(
        default=["npx", "opencode-ai", "web"],
        description="Argv used to spawn the worker, without the port option",
    )
    port_flag: str | None = Field(
        default="--port",
        description="Option that passes `port` to the worker; None to omit it",
    )
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080)
    env_file: Path = Field(
        default=Path(".env"),
        description="KEY=value file merged over the worker environment "
        "(production: /etc/opencode/opencode.env)",
    )
    ready_marker: str = Field(default="Running OpenCode Web")
    startup_timeout: float = Field(default=5.0, description="Max wait for the ready marker")
    stop_grace_seconds: float = Field(default=3.0, description="SIGTERM to SIGKILL delay")

    # Proxy to the worker
    ws_ping_interval: float | None = Field(default=20.0)
    ws_ping_timeout: float | None = Field(default=20.0)
    ws_max_size: int | None = Field(default=None, description="None = unlimited frame size")

    @property
    def argv(self) -> list[str]:
        """Spawn argv; the listening port always comes from `port`."""
        if self.port_flag is None:
            return list(self.command)
        return [*self.command, self.port_flag, str(self.port)]

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def ws_url(self) -> str:
        return f"ws://{self.host}:{self.port}"


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CONTROLPLANE_LOGGING_", env_file=_ENV_FILE, extra="ignore"
    )

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="opencode-controlplane")


class ControlPlaneConfig(BaseSettings):
    """Main control-plane configuration aggregating all sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="CONTROLPLANE_",
        env_nested_delimiter="__",
        env_file=_ENV_FILE,
        extra="ignore",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    setup: SetupConfig = Field(default_factory=SetupConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_controlplane_config() -> ControlPlaneConfig:
    """Get cached control-plane configuration singleton."""
    return ControlPlaneConfig()
