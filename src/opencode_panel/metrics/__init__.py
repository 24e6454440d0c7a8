"""Prometheus metrics for the panel."""

from opencode_panel.metrics.collector import (
    PANEL_DOCKER_ERRORS,
    PANEL_PROJECT_OPERATIONS,
    PANEL_PROJECTS_TOTAL,
)

__all__ = [
    "PANEL_DOCKER_ERRORS",
    "PANEL_PROJECT_OPERATIONS",
    "PANEL_PROJECTS_TOTAL",
]
