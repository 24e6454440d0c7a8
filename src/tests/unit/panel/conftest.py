"""Fixtures for panel unit tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from opencode_panel.config import DockerConfig, GitHubConfig, PanelConfig, WorkspaceConfig
from opencode_panel.infra import ContainerAPI, GitClient, GitHubClient
from opencode_panel.services import PortAllocator, ProjectService, ProviderService
from opencode_panel.store import MetadataStore, ProviderStore


@pytest.fixture
def workspaces(tmp_path: Path) -> Path:
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def panel_config(workspaces: Path) -> PanelConfig:
    """PanelConfig pointing at a temporary workspaces root."""
    return PanelConfig(
        workspace=WorkspaceConfig(root=str(workspaces)),
        docker=DockerConfig(image="test-image", base_port=4100, max_projects=3),
        github=GitHubConfig(token="ghp_test", org="test-org"),
    )


@pytest.fixture
def metadata_store(panel_config: PanelConfig) -> MetadataStore:
    return MetadataStore(panel_config.workspace)


@pytest.fixture
def provider_store(workspaces: Path) -> ProviderStore:
    return ProviderStore(workspaces / ".providers.json")


@pytest.fixture
def mock_container_api() -> AsyncMock:
    """Mock ContainerAPI for testing."""
    api = AsyncMock(spec=ContainerAPI)
    api.list = AsyncMock(return_value=[])
    api.inspect = AsyncMock(return_value=None)
    api.create = AsyncMock(return_value="abc123")
    api.start = AsyncMock()
    api.stop = AsyncMock()
    api.remove = AsyncMock()
    api.logs = AsyncMock(return_value=b"")
    return api


@pytest.fixture
def mock_github() -> MagicMock:
    """Mock GitHubClient; token and org are plain attributes."""
    github = MagicMock(spec=GitHubClient)
    github.token = "ghp_test"
    github.org = "test-org"
    github.create_org_repo = AsyncMock(return_value="https://github.com/test-org/demo.git")
    github.delete_repo = AsyncMock()
    github.authenticated_url = MagicMock(
        side_effect=lambda url: url.replace("https://", "https://ghp_test@", 1)
    )
    github.request_device_code = AsyncMock()
    github.poll_device_token = AsyncMock()
    return github


@pytest.fixture
def mock_git(workspaces: Path) -> AsyncMock:
    """Mock GitClient whose clone creates the destination like git does."""
    git = AsyncMock(spec=GitClient)

    async def clone(url: str, dest: str) -> None:
        Path(dest).mkdir(parents=True, exist_ok=True)

    git.clone = AsyncMock(side_effect=clone)
    return git


@pytest.fixture
def project_service(
    panel_config: PanelConfig,
    metadata_store: MetadataStore,
    provider_store: ProviderStore,
    mock_container_api: AsyncMock,
    mock_github: MagicMock,
    mock_git: AsyncMock,
) -> ProjectService:
    return ProjectService(
        config=panel_config,
        store=metadata_store,
        providers=provider_store,
        containers=mock_container_api,
        github=mock_github,
        git=mock_git,
        ports=PortAllocator(mock_container_api, 4100, 3),
    )


@pytest.fixture
def provider_service(
    provider_store: ProviderStore,
    mock_github: MagicMock,
    panel_config: PanelConfig,
) -> ProviderService:
    return ProviderService(provider_store, mock_github, panel_config.github)
