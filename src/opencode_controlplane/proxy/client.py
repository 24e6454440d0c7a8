"""HTTP client management for the worker proxy.

Provides a shared httpx AsyncClient for connection pooling and header filtering.
"""

import httpx

# Proxy timeouts (seconds). Long reads keep event streams open.
PROXY_TIMEOUT_READ = 300.0
PROXY_TIMEOUT_CONNECT = 5.0
PROXY_TIMEOUT_POOL = 5.0

PROXY_MAX_CONNECTIONS = 100
PROXY_MAX_KEEPALIVE = 20
PROXY_KEEPALIVE_EXPIRY = 30.0

# HTTP hop-by-hop headers to remove before forwarding (RFC 7230)
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
    }
)

# The websockets library sets its own handshake headers
WS_HOP_BY_HOP_HEADERS = HOP_BY_HOP_HEADERS | frozenset(
    {
        "sec-websocket-key",
        "sec-websocket-version",
        "sec-websocket-extensions",
        "origin",
    }
)

_http_client: httpx.AsyncClient | None = None


async def get_http_client() -> httpx.AsyncClient:
    """Get or create shared httpx AsyncClient."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                timeout=PROXY_TIMEOUT_READ,
                connect=PROXY_TIMEOUT_CONNECT,
                pool=PROXY_TIMEOUT_POOL,
            ),
            limits=httpx.Limits(
                max_connections=PROXY_MAX_CONNECTIONS,
                max_keepalive_connections=PROXY_MAX_KEEPALIVE,
                keepalive_expiry=PROXY_KEEPALIVE_EXPIRY,
            ),
            follow_redirects=False,
        )
    return _http_client


async def close_http_client() -> None:
    """Close shared httpx client. Call on application shutdown."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def filter_headers(headers: dict[str, str]) -> dict[str, str]:
    """Filter out hop-by-hop headers."""
    return {k: v for k, v in headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}
