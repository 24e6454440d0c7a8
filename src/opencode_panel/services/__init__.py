"""Panel services."""

from opencode_panel.services.naming import (
    ResourceNaming,
    generate_password,
    sanitize_name,
)
from opencode_panel.services.ports import PortAllocator
from opencode_panel.services.projects import (
    ContainerStatus,
    CreatedProject,
    ProjectInfo,
    ProjectService,
)
from opencode_panel.services.providers import (
    PROVIDER_CATALOG,
    DeviceFlowPoll,
    DeviceFlowStart,
    ProviderList,
    ProviderService,
)

__all__ = [
    "PROVIDER_CATALOG",
    "ContainerStatus",
    "CreatedProject",
    "DeviceFlowPoll",
    "DeviceFlowStart",
    "PortAllocator",
    "ProjectInfo",
    "ProjectService",
    "ProviderList",
    "ProviderService",
    "ResourceNaming",
    "generate_password",
    "sanitize_name",
]
