"""Reverse proxy to the OpenCode Web worker."""

from opencode_controlplane.proxy.client import close_http_client, filter_headers, get_http_client
from opencode_controlplane.proxy.transport import proxy_http, proxy_ws

__all__ = [
    "close_http_client",
    "filter_headers",
    "get_http_client",
    "proxy_http",
    "proxy_ws",
]
