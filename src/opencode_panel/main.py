"""Panel FastAPI application."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from opencode_panel import __version__
from opencode_panel.api import health_router, projects_router, providers_router
from opencode_panel.api.dependencies import close_services, init_services
from opencode_panel.config import get_panel_config
from opencode_panel.errors import PanelError
from opencode_panel.infra import close_docker
from opencode_panel.logging import setup_logging
from opencode_panel.logging_schema import LogEvent
from opencode_panel.middleware import LoggingMiddleware

_config = get_panel_config()
setup_logging(_config.logging)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(
        "Starting panel",
        extra={
            "event": LogEvent.APP_STARTED,
            "version": __version__,
            "workspaces_dir": _config.workspace.root,
            "github_org": _config.github.org,
        },
    )
    init_services()
    yield
    logger.info("Shutting down panel", extra={"event": LogEvent.APP_STOPPED})
    await close_services()
    await close_docker()


app = FastAPI(
    title="OpenCode Panel",
    description="Per-project OpenCode instance management",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_config.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PanelError)
async def panel_error_handler(request: Request, exc: PanelError) -> JSONResponse:
    """Handle PanelError exceptions."""
    logger.warning(
        "Panel error",
        extra={
            "event": LogEvent.PANEL_ERROR,
            "error_code": exc.code.value,
            "error_message": exc.message,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed bodies and query strings in the panel's error format."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'invalid')}" if location else "Datos inválidos"
    return JSONResponse(
        status_code=400,
        content={"error": message, "code": "VALIDATION_ERROR"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions with logging."""
    logger.exception(
        "Unhandled exception",
        extra={
            "event": LogEvent.UNHANDLED_EXCEPTION,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(status_code=500, content={"error": str(exc)})


app.include_router(health_router, prefix="/api")
app.include_router(projects_router, prefix="/api")
app.include_router(providers_router, prefix="/api")


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


STATIC_DIR = Path(__file__).parent / "static"
app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")


def main() -> None:
    """Run the panel server."""
    config = get_panel_config()
    logger.info(
        "Panel listening",
        extra={
            "event": LogEvent.APP_STARTED,
            "host": config.server.host,
            "port": config.server.port,
        },
    )
    uvicorn.run(
        "opencode_panel.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
