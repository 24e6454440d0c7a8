"""Prometheus metrics definitions for the panel.

Tracks project lifecycle operations and Docker API failures.
"""

from prometheus_client import Counter, Gauge

PANEL_PROJECT_OPERATIONS = Counter(
    "opencode_panel_project_operations_total",
    "Total project lifecycle operations",
    ["operation", "result"],  # operation: create, start, stop, delete; result: ok, error
)

PANEL_DOCKER_ERRORS = Counter(
    "opencode_panel_docker_errors_total",
    "Total Docker API errors",
    ["operation", "status"],
)

PANEL_PROJECTS_TOTAL = Gauge(
    "opencode_panel_projects_total",
    "Number of project workspaces seen by the last listing",
)
