"""Provider credential API endpoints."""

from fastapi import APIRouter, Depends

from opencode_panel.api.dependencies import get_provider_service
from opencode_panel.api.schemas import ConnectProviderRequest, ProviderStateResponse
from opencode_panel.services import (
    DeviceFlowPoll,
    DeviceFlowStart,
    ProviderList,
    ProviderService,
)

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("", response_model=ProviderList)
async def list_providers(
    service: ProviderService = Depends(get_provider_service),
) -> ProviderList:
    """Catalog with connection state. Secrets are never returned."""
    return service.list()


@router.get("/copilot/oauth/start", response_model=DeviceFlowStart)
async def copilot_oauth_start(
    service: ProviderService = Depends(get_provider_service),
) -> DeviceFlowStart:
    return await service.oauth_start()


@router.post("/copilot/oauth/poll", response_model=DeviceFlowPoll, response_model_exclude_none=True)
async def copilot_oauth_poll(
    service: ProviderService = Depends(get_provider_service),
) -> DeviceFlowPoll:
    return await service.oauth_poll()


@router.post("/{provider_id}", response_model=ProviderStateResponse)
async def connect_provider(
    provider_id: str,
    request: ConnectProviderRequest,
    service: ProviderService = Depends(get_provider_service),
) -> ProviderStateResponse:
    service.connect(provider_id, request.api_key)
    return ProviderStateResponse(id=provider_id, connected=True)


@router.delete("/{provider_id}", response_model=ProviderStateResponse)
async def disconnect_provider(
    provider_id: str,
    service: ProviderService = Depends(get_provider_service),
) -> ProviderStateResponse:
    service.disconnect(provider_id)
    return ProviderStateResponse(id=provider_id, connected=False)
