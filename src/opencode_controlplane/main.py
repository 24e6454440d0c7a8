"""Control-plane FastAPI application.

Until setup reaches READY every page request is redirected to the setup
wizard. Afterwards all non-API traffic, WebSockets included, is proxied to
the OpenCode Web worker, which is started on demand.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from opencode_controlplane import __version__
from opencode_controlplane.config import get_controlplane_config
from opencode_controlplane.db import ConfigStatus, ConfigStore, close_db, init_db
from opencode_controlplane.dependencies import (
    components_ready,
    get_config_store,
    get_setup_service,
    get_supervisor,
    init_components,
)
from opencode_controlplane.errors import ControlPlaneError
from opencode_controlplane.logging import setup_logging
from opencode_controlplane.logging_schema import LogEvent
from opencode_controlplane.proxy import close_http_client, proxy_http, proxy_ws
from opencode_controlplane.setup_flow import ConfigurePayload, SetupService
from opencode_controlplane.supervisor import WorkerSupervisor

_config = get_controlplane_config()
setup_logging(_config.logging)
logger = logging.getLogger(__name__)

SETUP_PATH = "/setup"
_UNGATED_PREFIXES = ("/api", SETUP_PATH)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the config table and resume the worker when already configured."""
    if not components_ready():
        engine = await init_db(_config.database.url, echo=_config.database.echo)
        store = ConfigStore(engine)
        supervisor = WorkerSupervisor(_config.worker)
        init_components(store, supervisor, SetupService(store, supervisor, _config.setup))

    logger.info(
        "Control plane started",
        extra={"event": LogEvent.APP_STARTED, "version": __version__},
    )
    if await get_config_store().get_status() == ConfigStatus.READY:
        logger.info("System is READY, starting worker")
        try:
            await get_supervisor().start()
        except ControlPlaneError as exc:
            logger.error("Boot error: %s", exc)

    yield

    logger.info("Shutting down control plane", extra={"event": LogEvent.APP_STOPPED})
    get_setup_service().cancel_pending()
    await get_supervisor().stop()
    await close_http_client()
    await close_db()


app = FastAPI(
    title="OpenCode Control Plane",
    version=__version__,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


@app.middleware("http")
async def setup_gate(request: Request, call_next):
    """Redirect to the wizard until READY, then make sure the worker runs."""
    if request.url.path.startswith(_UNGATED_PREFIXES):
        return await call_next(request)

    status = await get_config_store().get_status()
    if status != ConfigStatus.READY:
        return RedirectResponse(f"{SETUP_PATH}/", status_code=307)

    supervisor = get_supervisor()
    if not supervisor.running:
        try:
            await supervisor.start()
        except ControlPlaneError as exc:
            return JSONResponse(status_code=exc.status_code, content=exc.to_response().model_dump())
    return await call_next(request)


# Added after the gate so CORS wraps it
app.add_middleware(
    CORSMiddleware,
    allow_origins=_config.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ControlPlaneError)
async def controlplane_error_handler(request: Request, exc: ControlPlaneError) -> JSONResponse:
    logger.warning(
        "Control plane error",
        extra={
            "event": LogEvent.CONTROLPLANE_ERROR,
            "error_code": exc.code.value,
            "error_message": exc.message,
            "path": request.url.path,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response().model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception",
        extra={"event": LogEvent.UNHANDLED_EXCEPTION, "path": request.url.path},
    )
    return JSONResponse(status_code=500, content={"error": str(exc)})


# =============================================================================
# Setup API
# =============================================================================

api = APIRouter(prefix="/api")


@api.get("/status")
async def get_status(store: ConfigStore = Depends(get_config_store)) -> dict:
    return {"status": await store.get_status()}


@api.post("/configure")
async def configure(
    payload: ConfigurePayload,
    setup: SetupService = Depends(get_setup_service),
) -> dict:
    await setup.configure(payload)
    return {"message": "Configuration started"}


@api.post("/restart")
async def restart(supervisor: WorkerSupervisor = Depends(get_supervisor)) -> dict:
    await supervisor.restart()
    return {"message": "Restarted successfully"}


app.include_router(api)


# =============================================================================
# Setup wizard and worker proxy
# =============================================================================


@app.get(SETUP_PATH, include_in_schema=False)
async def setup_redirect() -> RedirectResponse:
    return RedirectResponse(f"{SETUP_PATH}/", status_code=307)


app.mount(
    SETUP_PATH,
    StaticFiles(directory=_config.setup.wizard_dir, html=True),
    name="setup",
)


@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def proxy_to_worker(request: Request, path: str):
    return await proxy_http(request, _config.worker.url, path)


@app.websocket("/{path:path}")
async def proxy_websocket(websocket: WebSocket, path: str) -> None:
    if await get_config_store().get_status() != ConfigStatus.READY:
        await websocket.close(code=1008, reason="Setup not complete")
        return

    supervisor = get_supervisor()
    if not supervisor.running:
        try:
            await supervisor.start()
        except ControlPlaneError:
            await websocket.close(code=1011, reason="Worker unavailable")
            return
    await proxy_ws(websocket, _config.worker, path)


def main() -> None:
    """Run the control-plane server."""
    config = get_controlplane_config()
    uvicorn.run(
        "opencode_controlplane.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
