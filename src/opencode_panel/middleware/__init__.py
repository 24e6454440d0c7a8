"""HTTP middleware."""

from opencode_panel.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
