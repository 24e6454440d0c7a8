"""Naming conventions for projects, containers and reverse-proxy routes."""

import re
import secrets

from opencode_panel.config import DockerConfig

PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"

_INVALID_CHARS_RE = re.compile(r"[^a-z0-9-]")


def sanitize_name(name: str) -> str:
    """Turn a free-form project name into a directory/container-safe slug."""
    return _INVALID_CHARS_RE.sub("-", name.lower()).strip("-")


def generate_password(length: int = 16) -> str:
    """Random password without visually ambiguous characters (0/O, 1/l/I)."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class ResourceNaming:
    """Centralized naming for Docker resources and Traefik labels."""

    def __init__(self, config: DockerConfig) -> None:
        self._config = config

    def container_name(self, project: str) -> str:
        return f"{self._config.container_prefix}{project}"

    def router_name(self, project: str) -> str:
        return f"project-{project}"

    def route_path(self, project: str) -> str:
        return f"{self._config.route_prefix}{project}"

    def route_labels(self, project: str) -> dict[str, str]:
        """Traefik labels serving the container under /p/<project>/."""
        router = self.router_name(project)
        path = self.route_path(project)
        return {
            "traefik.enable": "true",
            f"traefik.http.routers.{router}.rule": f"PathPrefix(`{path}/`)",
            f"traefik.http.routers.{router}.entrypoints": self._config.entrypoint,
            f"traefik.http.routers.{router}.priority": str(self._config.router_priority),
            f"traefik.http.middlewares.{router}-strip.stripprefix.prefixes": path,
            f"traefik.http.routers.{router}.middlewares": f"{router}-strip",
            f"traefik.http.services.{router}.loadbalancer.server.port": str(
                self._config.container_port
            ),
        }
