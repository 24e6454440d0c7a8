"""Per-project workspace directories and their JSON metadata.

Each project owns one directory under the workspaces root. The directory
holds the cloned repository, the generated .env file and
.opencode-meta.json. There is no locking: the last write wins.
"""

import json
import logging
import shutil
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from opencode_panel.config import WorkspaceConfig

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Current UTC time in the ISO format used by the metadata files."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ProjectMeta(BaseModel):
    """Persisted project attributes (camelCase on disk)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    repo: str | None = None
    description: str = ""
    created_at: str | None = None
    created_by: str | None = None
    auto_created: bool = False
    port: int | None = None
    password: str | None = None

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), indent=2)


class MetadataStore:
    """Filesystem access to project workspaces."""

    def __init__(self, config: WorkspaceConfig) -> None:
        self._config = config
        self._root = Path(config.root)

    @property
    def root(self) -> Path:
        return self._root

    def workspace_dir(self, name: str) -> Path:
        return self._root / name

    def exists(self, name: str) -> bool:
        return self.workspace_dir(name).exists()

    def list_names(self) -> list[str]:
        """Names of all project directories (files at the root are ignored)."""
        if not self._root.exists():
            return []
        return sorted(p.name for p in self._root.iterdir() if p.is_dir())

    def create_dir(self, name: str) -> Path:
        path = self.workspace_dir(name)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def remove_dir(self, name: str) -> None:
        path = self.workspace_dir(name)
        if path.exists():
            shutil.rmtree(path)

    def read(self, name: str) -> ProjectMeta:
        """Read metadata; a missing or corrupt file yields empty metadata."""
        path = self.workspace_dir(name) / self._config.meta_filename
        if not path.exists():
            return ProjectMeta()
        try:
            return ProjectMeta.model_validate_json(path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Ignoring unreadable metadata file: %s", path)
            return ProjectMeta()

    def write(self, name: str, meta: ProjectMeta) -> None:
        path = self.workspace_dir(name) / self._config.meta_filename
        path.write_text(meta.to_json(), encoding="utf-8")

    def write_env(self, name: str, values: dict[str, str]) -> None:
        """Write KEY=value lines to the workspace .env file."""
        path = self.workspace_dir(name) / self._config.env_filename
        path.write_text(
            "\n".join(f"{key}={value}" for key, value in values.items()),
            encoding="utf-8",
        )
