"""Infrastructure clients: Docker Engine API, GitHub, git."""

from opencode_panel.infra.docker import (
    ContainerAPI,
    ContainerConfig,
    DockerClient,
    HostConfig,
    close_docker,
    get_docker_client,
)
from opencode_panel.infra.git import GitClient, GitError
from opencode_panel.infra.github import GitHubClient, GitHubError

__all__ = [
    "ContainerAPI",
    "ContainerConfig",
    "DockerClient",
    "GitClient",
    "GitError",
    "GitHubClient",
    "GitHubError",
    "HostConfig",
    "close_docker",
    "get_docker_client",
]
