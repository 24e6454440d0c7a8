"""Project lifecycle: workspace, repository, container.

A project is one workspace directory, one container and optionally one
auto-created GitHub repository. Every operation runs its steps
sequentially; only list() fans out the per-project container lookups.
"""

import asyncio
import logging
import re

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from opencode_panel.config import PanelConfig
from opencode_panel.errors import (
    ConfigError,
    ConflictError,
    ExternalServiceError,
    ValidationError,
)
from opencode_panel.infra import (
    ContainerAPI,
    ContainerConfig,
    GitClient,
    GitError,
    GitHubClient,
    GitHubError,
    HostConfig,
)
from opencode_panel.logging_schema import LogEvent
from opencode_panel.metrics import PANEL_PROJECT_OPERATIONS, PANEL_PROJECTS_TOTAL
from opencode_panel.services.naming import ResourceNaming, generate_password, sanitize_name
from opencode_panel.services.ports import PortAllocator
from opencode_panel.store import MetadataStore, ProjectMeta, ProviderStore, utc_now_iso

logger = logging.getLogger(__name__)

# Docker multiplexes stdout/stderr with binary frame headers
_CONTROL_BYTES_RE = re.compile(r"[\x00-\x08\x0e-\x1f]")

EXTERNAL_ERRORS = (httpx.HTTPError, GitError, GitHubError)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContainerStatus(_CamelModel):
    """Live container state for a project."""

    running: bool = False
    port: int | None = None
    id: str | None = None


class ProjectInfo(_CamelModel):
    """A project as returned by list()."""

    name: str
    repo: str | None = None
    description: str | None = None
    created_at: str | None = None
    created_by: str | None = None
    auto_created: bool = False
    running: bool = False
    port: int | None = None
    container_id: str | None = None


class CreatedProject(_CamelModel):
    name: str
    repo: str
    port: int
    auto_created: bool


class ProjectService:
    """Orchestrates Docker, git and GitHub calls for project workspaces."""

    def __init__(
        self,
        config: PanelConfig,
        store: MetadataStore,
        providers: ProviderStore,
        containers: ContainerAPI,
        github: GitHubClient,
        git: GitClient,
        ports: PortAllocator | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._providers = providers
        self._containers = containers
        self._github = github
        self._git = git
        self._naming = ResourceNaming(config.docker)
        self._ports = ports or PortAllocator(
            containers, config.docker.base_port, config.docker.max_projects
        )

    # =========================================================================
    # Queries
    # =========================================================================

    async def list(self) -> list[ProjectInfo]:
        names = self._store.list_names()
        statuses = await asyncio.gather(*(self.container_status(name) for name in names))
        PANEL_PROJECTS_TOTAL.set(len(names))

        projects = []
        for name, status in zip(names, statuses):
            meta = self._store.read(name)
            projects.append(
                ProjectInfo(
                    name=name,
                    repo=meta.repo,
                    description=meta.description or None,
                    created_at=meta.created_at,
                    created_by=meta.created_by,
                    auto_created=meta.auto_created,
                    running=status.running,
                    port=status.port,
                    container_id=status.id,
                )
            )
        return projects

    async def container_status(self, name: str) -> ContainerStatus:
        """Inspect the project's container; any failure reads as not running."""
        try:
            info = await self._containers.inspect(self._naming.container_name(name))
        except Exception as exc:
            logger.warning("Container inspect failed for %s: %s", name, exc)
            return ContainerStatus()
        if not info:
            return ContainerStatus()
        return ContainerStatus(
            running=bool(info.get("State", {}).get("Running", False)),
            port=self._published_port(info),
            id=(info.get("Id") or "")[:12] or None,
        )

    def _published_port(self, info: dict) -> int | None:
        key = f"{self._config.docker.container_port}/tcp"
        try:
            bindings = info["HostConfig"]["PortBindings"][key]
            return int(bindings[0]["HostPort"])
        except (KeyError, IndexError, TypeError, ValueError):
            return None

    async def logs(self, name: str, lines: int = 50) -> str:
        self._check_name(name)
        container = self._naming.container_name(name)
        try:
            raw = await self._containers.logs(container, tail=lines)
        except EXTERNAL_ERRORS as exc:
            raise ExternalServiceError(str(exc)) from exc
        return _CONTROL_BYTES_RE.sub("", raw.decode("utf-8", errors="replace"))

    # =========================================================================
    # Commands
    # =========================================================================

    async def create(
        self,
        name: str | None,
        repo: str | None = None,
        description: str | None = None,
        api_keys: dict[str, str] | None = None,
        created_by: str | None = None,
    ) -> CreatedProject:
        """Create the workspace, clone the repository and start the container.

        Without `repo` a private repository is created in the organization
        first. Any failure removes the workspace directory and the
        auto-created repository before the error propagates.
        """
        if not name:
            raise ValidationError("El nombre es obligatorio")
        safe_name = sanitize_name(name)
        if not safe_name:
            raise ValidationError("Nombre de proyecto inválido")
        if self._store.exists(safe_name):
            raise ConflictError(f'El proyecto "{safe_name}" ya existe')

        repo_url = repo
        auto_created = False
        try:
            if not repo_url:
                repo_url = await self._create_repo(safe_name, description or "")
                auto_created = True

            workspace = self._store.create_dir(safe_name)
            clone_url = self._github.authenticated_url(repo_url) if auto_created else repo_url
            await self._git.clone(clone_url, str(workspace))

            env = {**self._providers.env_values(), **(api_keys or {})}
            if env:
                self._store.write_env(safe_name, env)

            meta = ProjectMeta(
                repo=repo_url,
                description=description or "",
                created_at=utc_now_iso(),
                created_by=created_by or "unknown",
                auto_created=auto_created,
            )
            self._store.write(safe_name, meta)

            port = await self._ports.next_available()
            password = generate_password(self._config.workspace.password_length)
            await self._run_container(safe_name, port, password)

            self._store.write(safe_name, meta.model_copy(update={"port": port, "password": password}))
        except Exception as exc:
            PANEL_PROJECT_OPERATIONS.labels(operation="create", result="error").inc()
            logger.warning(
                "Project creation failed",
                extra={
                    "event": LogEvent.PROJECT_CREATE_FAILED,
                    "project": safe_name,
                    "error": str(exc),
                },
            )
            await self._cleanup_failed_create(safe_name, auto_created)
            if isinstance(exc, EXTERNAL_ERRORS):
                raise ExternalServiceError(str(exc)) from exc
            raise

        PANEL_PROJECT_OPERATIONS.labels(operation="create", result="ok").inc()
        logger.info(
            "Project created",
            extra={
                "event": LogEvent.PROJECT_CREATED,
                "project": safe_name,
                "port": port,
                "auto_created": auto_created,
            },
        )
        return CreatedProject(name=safe_name, repo=repo_url, port=port, auto_created=auto_created)

    async def start(self, name: str) -> None:
        """Start the project's container, recreating it from metadata if gone."""
        self._check_name(name)
        meta = self._store.read(name)
        if not meta.port:
            raise ValidationError("Proyecto sin puerto asignado, recréalo")

        container = self._naming.container_name(name)
        try:
            if await self._containers.inspect(container) is not None:
                await self._containers.start(container)
            else:
                logger.info(
                    "Container missing, recreating",
                    extra={"event": LogEvent.CONTAINER_RECREATED, "container": container},
                )
                await self._run_container(name, meta.port, meta.password or "")
        except EXTERNAL_ERRORS as exc:
            PANEL_PROJECT_OPERATIONS.labels(operation="start", result="error").inc()
            raise ExternalServiceError(str(exc)) from exc
        PANEL_PROJECT_OPERATIONS.labels(operation="start", result="ok").inc()

    async def stop(self, name: str) -> None:
        self._check_name(name)
        container = self._naming.container_name(name)
        try:
            await self._containers.stop(container, timeout=self._config.docker.stop_timeout)
        except EXTERNAL_ERRORS as exc:
            PANEL_PROJECT_OPERATIONS.labels(operation="stop", result="error").inc()
            raise ExternalServiceError(str(exc)) from exc
        PANEL_PROJECT_OPERATIONS.labels(operation="stop", result="ok").inc()
        logger.info(
            "Container stopped",
            extra={"event": LogEvent.CONTAINER_STOPPED, "container": container},
        )

    async def delete(self, name: str) -> None:
        """Remove container, workspace and auto-created repository.

        Container and repository removal are best-effort; only a failure to
        remove the workspace directory is reported.
        """
        self._check_name(name)
        container = self._naming.container_name(name)
        try:
            await self._containers.stop(container, timeout=self._config.docker.stop_timeout)
        except Exception as exc:
            logger.debug("Stop before delete failed for %s: %s", container, exc)
        try:
            await self._containers.remove(container)
        except Exception as exc:
            logger.warning(
                "Container removal failed",
                extra={
                    "event": LogEvent.PROJECT_CLEANUP_FAILED,
                    "container": container,
                    "error": str(exc),
                },
            )

        meta = self._store.read(name)
        self._store.remove_dir(name)

        if meta.auto_created:
            await self._delete_repo_quietly(name)

        PANEL_PROJECT_OPERATIONS.labels(operation="delete", result="ok").inc()
        logger.info("Project deleted", extra={"event": LogEvent.PROJECT_DELETED, "project": name})

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_name(self, name: str) -> None:
        """Reject path-like names before they reach the filesystem."""
        if not name or sanitize_name(name) != name:
            raise ValidationError("Nombre de proyecto inválido")

    async def _create_repo(self, name: str, description: str) -> str:
        if not self._github.token:
            raise ConfigError("GITHUB_TOKEN no configurado en el servidor")
        clone_url = await self._github.create_org_repo(name, description)
        logger.info(
            "Repository created",
            extra={"event": LogEvent.REPO_CREATED, "project": name, "org": self._github.org},
        )
        return clone_url

    async def _delete_repo_quietly(self, name: str) -> None:
        if not self._github.token:
            return
        try:
            await self._github.delete_repo(name)
            logger.info("Repository deleted", extra={"event": LogEvent.REPO_DELETED, "project": name})
        except Exception as exc:
            logger.warning(
                "Repository deletion failed",
                extra={
                    "event": LogEvent.PROJECT_CLEANUP_FAILED,
                    "project": name,
                    "error": str(exc),
                },
            )

    async def _cleanup_failed_create(self, name: str, auto_created: bool) -> None:
        try:
            await self._containers.remove(self._naming.container_name(name))
        except Exception as exc:
            logger.debug("No container to clean up for %s: %s", name, exc)
        try:
            self._store.remove_dir(name)
        except OSError as exc:
            logger.warning(
                "Workspace cleanup failed",
                extra={
                    "event": LogEvent.PROJECT_CLEANUP_FAILED,
                    "project": name,
                    "error": str(exc),
                },
            )
        if auto_created:
            await self._delete_repo_quietly(name)

    def container_config(self, name: str, port: int, password: str) -> ContainerConfig:
        docker = self._config.docker
        container_port = f"{docker.container_port}/tcp"
        return ContainerConfig(
            image=docker.image,
            name=self._naming.container_name(name),
            env=[
                f"OPENCODE_SERVER_PASSWORD={password}",
                f"OPENCODE_SERVER_USERNAME={docker.server_username}",
            ],
            exposed_ports={container_port: {}},
            labels=self._naming.route_labels(name),
            host_config=HostConfig(
                network_mode=docker.network,
                binds=[f"{self._store.workspace_dir(name)}:{docker.workspace_mount}"],
                port_bindings={container_port: port},
            ),
        )

    async def _run_container(self, name: str, port: int, password: str) -> None:
        config = self.container_config(name, port, password)
        await self._containers.create(config)
        await self._containers.start(config.name)
        logger.info(
            "Container started",
            extra={
                "event": LogEvent.CONTAINER_STARTED,
                "container": config.name,
                "port": port,
            },
        )
