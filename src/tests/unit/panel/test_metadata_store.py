"""Tests for MetadataStore."""

import json
from pathlib import Path

from opencode_panel.store import MetadataStore, ProjectMeta, utc_now_iso


class TestMetadataStore:
    def test_list_names_sorted_dirs_only(self, metadata_store: MetadataStore, workspaces: Path):
        (workspaces / "zeta").mkdir()
        (workspaces / "alpha").mkdir()
        (workspaces / ".providers.json").write_text("{}")

        assert metadata_store.list_names() == ["alpha", "zeta"]

    def test_list_names_missing_root(self, tmp_path: Path):
        from opencode_panel.config import WorkspaceConfig

        store = MetadataStore(WorkspaceConfig(root=str(tmp_path / "nope")))
        assert store.list_names() == []

    def test_write_then_read(self, metadata_store: MetadataStore):
        metadata_store.create_dir("demo")
        meta = ProjectMeta(
            repo="https://github.com/o/demo.git",
            description="Demo",
            created_at="2024-01-01T00:00:00.000Z",
            created_by="ana",
            auto_created=True,
            port=4100,
            password="secret",
        )

        metadata_store.write("demo", meta)

        assert metadata_store.read("demo") == meta

    def test_file_is_camel_case_pretty_json(self, metadata_store: MetadataStore, workspaces: Path):
        metadata_store.create_dir("demo")
        metadata_store.write("demo", ProjectMeta(repo="r", auto_created=True, port=4101))

        text = (workspaces / "demo" / ".opencode-meta.json").read_text()
        data = json.loads(text)

        assert data["autoCreated"] is True
        assert data["port"] == 4101
        assert "password" not in data
        assert text.startswith("{\n  ")

    def test_read_missing_returns_empty(self, metadata_store: MetadataStore):
        metadata_store.create_dir("demo")

        meta = metadata_store.read("demo")

        assert meta.repo is None
        assert meta.port is None
        assert meta.auto_created is False

    def test_read_corrupt_returns_empty(self, metadata_store: MetadataStore, workspaces: Path):
        metadata_store.create_dir("demo")
        (workspaces / "demo" / ".opencode-meta.json").write_text("{not json")

        assert metadata_store.read("demo") == ProjectMeta()

    def test_remove_dir(self, metadata_store: MetadataStore):
        path = metadata_store.create_dir("demo")
        (path / "file.txt").write_text("x")

        metadata_store.remove_dir("demo")

        assert not metadata_store.exists("demo")
        metadata_store.remove_dir("demo")

    def test_write_env(self, metadata_store: MetadataStore, workspaces: Path):
        metadata_store.create_dir("demo")

        metadata_store.write_env("demo", {"A": "1", "B": "two"})

        assert (workspaces / "demo" / ".env").read_text() == "A=1\nB=two"


def test_utc_now_iso_format():
    stamp = utc_now_iso()
    assert stamp.endswith("Z")
    assert "T" in stamp
