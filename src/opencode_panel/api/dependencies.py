"""API dependencies for dependency injection."""

from pathlib import Path

from opencode_panel.config import get_panel_config
from opencode_panel.infra import ContainerAPI, GitClient, GitHubClient
from opencode_panel.services import ProjectService, ProviderService
from opencode_panel.store import MetadataStore, ProviderStore

_projects: ProjectService | None = None
_providers: ProviderService | None = None
_github: GitHubClient | None = None


def init_services() -> None:
    """Build the service singletons. Must be called during app startup."""
    global _projects, _providers, _github
    config = get_panel_config()

    store = MetadataStore(config.workspace)
    provider_store = ProviderStore(Path(config.workspace.root) / config.workspace.providers_filename)
    _github = GitHubClient(config.github)

    _projects = ProjectService(
        config=config,
        store=store,
        providers=provider_store,
        containers=ContainerAPI(),
        github=_github,
        git=GitClient(),
    )
    _providers = ProviderService(provider_store, _github, config.github)


async def close_services() -> None:
    """Release HTTP clients held by the services."""
    global _projects, _providers, _github
    if _github:
        await _github.close()
    _projects = None
    _providers = None
    _github = None


def get_project_service() -> ProjectService:
    """Get project service singleton.

    Raises:
        RuntimeError: If called before init_services().
    """
    if _projects is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    return _projects


def get_provider_service() -> ProviderService:
    if _providers is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    return _providers
