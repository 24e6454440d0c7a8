"""OpenCode project management panel."""

__version__ = "0.3.0"
