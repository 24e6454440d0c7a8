"""Flat-file persistence for project metadata and provider credentials."""

from opencode_panel.store.metadata import MetadataStore, ProjectMeta, utc_now_iso
from opencode_panel.store.providers import (
    PENDING_KEY,
    PendingDeviceFlow,
    ProviderCredential,
    ProviderStore,
)

__all__ = [
    "PENDING_KEY",
    "MetadataStore",
    "PendingDeviceFlow",
    "ProjectMeta",
    "ProviderCredential",
    "ProviderStore",
    "utc_now_iso",
]
