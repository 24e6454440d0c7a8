"""Docker Engine API client for the panel.

Provides async Docker API access for project containers.
Supports both Unix socket and TCP connections.
"""

import logging

import httpx
from pydantic import BaseModel

from opencode_panel.config import get_panel_config
from opencode_panel.metrics import PANEL_DOCKER_ERRORS

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================


class HostConfig(BaseModel):
    """Docker HostConfig for container creation."""

    network_mode: str = "bridge"
    binds: list[str] = []
    port_bindings: dict[str, int] = {}
    restart_policy: str = "unless-stopped"

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API format."""
        result: dict = {
            "NetworkMode": self.network_mode,
            "Binds": self.binds,
            "RestartPolicy": {"Name": self.restart_policy},
        }
        if self.port_bindings:
            result["PortBindings"] = {
                container_port: [{"HostPort": str(host_port)}]
                for container_port, host_port in self.port_bindings.items()
            }
        return result


class ContainerConfig(BaseModel):
    """Docker container configuration for creation."""

    image: str
    name: str
    env: list[str] = []
    exposed_ports: dict[str, dict] = {}
    labels: dict[str, str] = {}
    host_config: HostConfig = HostConfig()

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API JSON format."""
        result: dict = {
            "Image": self.image,
            "ExposedPorts": self.exposed_ports,
            "HostConfig": self.host_config.to_api(),
        }
        if self.env:
            result["Env"] = self.env
        if self.labels:
            result["Labels"] = self.labels
        return result


# =============================================================================
# Docker Client (Singleton)
# =============================================================================


class DockerClient:
    """Async Docker API client."""

    def __init__(
        self,
        docker_host: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = get_panel_config().docker
        self._host = docker_host or config.host
        self._timeout = timeout or config.api_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _create_client(self) -> httpx.AsyncClient:
        """Create a new HTTP client."""
        if self._host.startswith("unix://"):
            socket_path = self._host.replace("unix://", "")
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
            return httpx.AsyncClient(
                transport=transport,
                base_url="http://localhost",
                timeout=self._timeout,
            )
        base_url = self._host
        if base_url.startswith("tcp://"):
            base_url = base_url.replace("tcp://", "http://")
        return httpx.AsyncClient(
            base_url=base_url, timeout=self._timeout, transport=self._transport
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    async def get(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = self._create_client()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


_docker_client: DockerClient | None = None


def get_docker_client() -> DockerClient:
    """Get the global Docker client singleton."""
    global _docker_client
    if _docker_client is None:
        _docker_client = DockerClient()
    return _docker_client


async def close_docker() -> None:
    """Close the global Docker client."""
    global _docker_client
    if _docker_client:
        await _docker_client.close()
        _docker_client = None


def _raise_for_status(resp: httpx.Response, operation: str) -> None:
    """raise_for_status with the daemon's message and an error metric."""
    if resp.is_success:
        return
    PANEL_DOCKER_ERRORS.labels(operation=operation, status=str(resp.status_code)).inc()
    try:
        message = resp.json().get("message", "")
    except ValueError:
        message = resp.text
    raise httpx.HTTPStatusError(
        message or f"Docker API error {resp.status_code}",
        request=resp.request,
        response=resp,
    )


# =============================================================================
# Container API
# =============================================================================


class ContainerAPI:
    """Docker Container API operations."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def list(self) -> list[dict]:
        """List containers, including stopped ones."""
        client = await self._docker.get()
        resp = await client.get("/containers/json", params={"all": "true"})
        _raise_for_status(resp, "list")
        return resp.json()

    async def inspect(self, name: str) -> dict | None:
        """Inspect a container. Returns None when it does not exist."""
        client = await self._docker.get()
        resp = await client.get(f"/containers/{name}/json")
        if resp.status_code == 404:
            return None
        _raise_for_status(resp, "inspect")
        return resp.json()

    async def create(self, config: ContainerConfig) -> str:
        """Create a container and return its id."""
        client = await self._docker.get()
        resp = await client.post(
            "/containers/create",
            params={"name": config.name},
            json=config.to_api(),
        )
        _raise_for_status(resp, "create")
        logger.info("Created container: %s", config.name)
        return resp.json().get("Id", "")

    async def start(self, name: str) -> None:
        """Start a container. Already running (304) is not an error."""
        client = await self._docker.get()
        resp = await client.post(f"/containers/{name}/start")
        if resp.status_code != 304:
            _raise_for_status(resp, "start")
        logger.info("Started container: %s", name)

    async def stop(self, name: str, timeout: int = 10) -> None:
        """Stop a container. Raises when the container does not exist."""
        client = await self._docker.get()
        resp = await client.post(
            f"/containers/{name}/stop",
            params={"t": str(timeout)},
            timeout=self._stop_http_timeout(timeout),
        )
        if resp.status_code != 304:
            _raise_for_status(resp, "stop")
        logger.info("Stopped container: %s", name)

    async def remove(self, name: str, force: bool = True) -> None:
        """Remove a container."""
        client = await self._docker.get()
        resp = await client.delete(
            f"/containers/{name}", params={"force": "true" if force else "false"}
        )
        if resp.status_code == 404:
            logger.debug("Container not found: %s", name)
            return
        _raise_for_status(resp, "remove")
        logger.info("Removed container: %s", name)

    async def logs(self, name: str, tail: int = 50) -> bytes:
        """Get the last `tail` lines of combined stdout/stderr."""
        client = await self._docker.get()
        params = {"stdout": "true", "stderr": "true", "tail": str(tail)}
        resp = await client.get(f"/containers/{name}/logs", params=params)
        _raise_for_status(resp, "logs")
        return resp.content

    def _stop_http_timeout(self, stop_timeout: int) -> float:
        return stop_timeout + self._docker.timeout
