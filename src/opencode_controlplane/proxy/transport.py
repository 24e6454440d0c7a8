"""HTTP and WebSocket transport to the worker."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator

import httpx
import websockets
from fastapi import Request
from fastapi.responses import StreamingResponse
from starlette.websockets import WebSocket, WebSocketDisconnect
from websockets.asyncio.client import ClientConnection

from opencode_controlplane.config import WorkerConfig
from opencode_controlplane.errors import UpstreamUnavailableError
from opencode_controlplane.logging_schema import LogEvent

from .client import WS_HOP_BY_HOP_HEADERS, filter_headers, get_http_client

logger = logging.getLogger(__name__)

_BODY_METHODS = ("POST", "PUT", "PATCH", "DELETE")


def _target_path(path: str, query: str) -> str:
    target = f"/{path}" if path else "/"
    return f"{target}?{query}" if query else target


async def _relay_client_to_backend(client_ws: WebSocket, backend_ws: ClientConnection) -> None:
    """Relay messages from client WebSocket to backend WebSocket."""
    while True:
        data = await client_ws.receive()
        if data["type"] == "websocket.receive":
            if data.get("text") is not None:
                await backend_ws.send(data["text"])
            elif data.get("bytes") is not None:
                await backend_ws.send(data["bytes"])
        elif data["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(data.get("code", 1000))


async def _relay_backend_to_client(client_ws: WebSocket, backend_ws: ClientConnection) -> None:
    """Relay messages from backend WebSocket to client WebSocket."""
    async for message in backend_ws:
        if isinstance(message, str):
            await client_ws.send_text(message)
        else:
            await client_ws.send_bytes(message)
    # Backend closed cleanly; end the client side too
    raise websockets.ConnectionClosedOK(None, None)


async def proxy_http(request: Request, upstream_url: str, path: str) -> StreamingResponse:
    """Proxy an HTTP request to the worker. Raises UpstreamUnavailableError on failure."""
    target_url = f"{upstream_url}{_target_path(path, request.url.query)}"

    headers = filter_headers(dict(request.headers))
    http_client = await get_http_client()
    content = request.stream() if request.method in _BODY_METHODS else None

    try:
        upstream_request = http_client.build_request(
            method=request.method,
            url=target_url,
            headers=headers,
            content=content,
        )
        upstream_response = await http_client.send(upstream_request, stream=True)
    except (httpx.ConnectError, httpx.TimeoutException) as exc:
        logger.warning(
            "Worker unreachable",
            extra={
                "event": LogEvent.UPSTREAM_ERROR,
                "target_url": target_url,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        raise UpstreamUnavailableError() from exc

    response_headers = filter_headers(dict(upstream_response.headers))

    async def stream_response() -> AsyncGenerator[bytes]:
        try:
            async for chunk in upstream_response.aiter_raw():
                yield chunk
        finally:
            await upstream_response.aclose()

    return StreamingResponse(
        stream_response(),
        status_code=upstream_response.status_code,
        headers=response_headers,
    )


async def proxy_ws(websocket: WebSocket, config: WorkerConfig, path: str) -> None:
    """Open a WebSocket to the worker and relay frames both ways.

    Upstream connection failures close the client socket with 1011.
    """
    query_string = websocket.scope.get("query_string", b"").decode()
    upstream_ws_uri = f"{config.ws_url}{_target_path(path, query_string)}"

    extra_headers = {
        k: v for k, v in websocket.headers.items() if k.lower() not in WS_HOP_BY_HOP_HEADERS
    }
    subprotocols = websocket.scope.get("subprotocols") or None

    try:
        backend_ws = await websockets.connect(
            upstream_ws_uri,
            additional_headers=extra_headers,
            subprotocols=subprotocols,
            ping_interval=config.ws_ping_interval,
            ping_timeout=config.ws_ping_timeout,
            max_size=config.ws_max_size,
        )
    except Exception as exc:
        logger.warning(
            "Failed to connect to worker WebSocket",
            extra={
                "event": LogEvent.WS_ERROR,
                "upstream_url": upstream_ws_uri,
                "error": str(exc),
            },
        )
        await websocket.close(code=1011, reason="Upstream connection failed")
        return

    await websocket.accept(subprotocol=backend_ws.subprotocol)

    try:
        async with backend_ws:
            try:
                async with asyncio.TaskGroup() as tg:
                    tg.create_task(_relay_client_to_backend(websocket, backend_ws))
                    tg.create_task(_relay_backend_to_client(websocket, backend_ws))
            except* WebSocketDisconnect:
                pass
            except* websockets.ConnectionClosed:
                pass
    except Exception as exc:
        logger.error(
            "WebSocket proxy error",
            extra={
                "event": LogEvent.WS_ERROR,
                "upstream_url": upstream_ws_uri,
                "error": str(exc),
            },
        )
    finally:
        with contextlib.suppress(Exception):
            await websocket.close()
