"""Model-provider credentials and the Copilot OAuth device flow."""

import logging
import time
from dataclasses import dataclass
from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from opencode_panel.config import GitHubConfig
from opencode_panel.errors import ExternalServiceError, NotFoundError, ValidationError
from opencode_panel.infra import GitHubClient, GitHubError
from opencode_panel.logging_schema import LogEvent
from opencode_panel.store import PendingDeviceFlow, ProviderCredential, ProviderStore, utc_now_iso

logger = logging.getLogger(__name__)

COPILOT_ID = "copilot"


@dataclass(frozen=True)
class ProviderSpec:
    id: str
    name: str
    env_var: str
    oauth: bool = False


PROVIDER_CATALOG: dict[str, ProviderSpec] = {
    spec.id: spec
    for spec in (
        ProviderSpec("anthropic", "Anthropic", "ANTHROPIC_API_KEY"),
        ProviderSpec("openai", "OpenAI", "OPENAI_API_KEY"),
        ProviderSpec("google", "Google Gemini", "GOOGLE_GENERATIVE_AI_API_KEY"),
        ProviderSpec("openrouter", "OpenRouter", "OPENROUTER_API_KEY"),
        ProviderSpec("groq", "Groq", "GROQ_API_KEY"),
        ProviderSpec("deepseek", "DeepSeek", "DEEPSEEK_API_KEY"),
        ProviderSpec(COPILOT_ID, "GitHub Copilot", "GITHUB_COPILOT_TOKEN", oauth=True),
    )
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProviderInfo(_CamelModel):
    id: str
    name: str
    env_var: str
    oauth: bool
    connected: bool
    type: str | None = None
    connected_at: str | None = None


class ProviderList(_CamelModel):
    providers: list[ProviderInfo]
    oauth_pending: bool


class DeviceFlowStart(_CamelModel):
    user_code: str
    verification_uri: str
    interval: int
    expires_in: int


class DeviceFlowPoll(_CamelModel):
    status: Literal["pending", "connected", "error"]
    error: str | None = None
    interval: int | None = None


class ProviderService:
    """Connect, disconnect and list credentials from the static catalog."""

    def __init__(self, store: ProviderStore, github: GitHubClient, config: GitHubConfig) -> None:
        self._store = store
        self._github = github
        self._config = config

    def list(self) -> ProviderList:
        credentials = self._store.credentials()
        providers = []
        for spec in PROVIDER_CATALOG.values():
            cred = credentials.get(spec.id)
            providers.append(
                ProviderInfo(
                    id=spec.id,
                    name=spec.name,
                    env_var=spec.env_var,
                    oauth=spec.oauth,
                    connected=cred is not None,
                    type=cred.type if cred else None,
                    connected_at=cred.connected_at if cred else None,
                )
            )
        return ProviderList(providers=providers, oauth_pending=self._store.pending() is not None)

    def connect(self, provider_id: str, api_key: str | None) -> None:
        spec = PROVIDER_CATALOG.get(provider_id)
        if spec is None:
            raise NotFoundError("Proveedor desconocido")
        if not api_key or not api_key.strip():
            raise ValidationError("La API key es obligatoria")
        self._store.put(
            provider_id,
            ProviderCredential(
                type="api_key",
                key=api_key.strip(),
                env_var=spec.env_var,
                connected_at=utc_now_iso(),
            ),
        )
        logger.info(
            "Provider connected",
            extra={"event": LogEvent.PROVIDER_CONNECTED, "provider": provider_id},
        )

    def disconnect(self, provider_id: str) -> None:
        self._store.remove(provider_id)
        logger.info(
            "Provider disconnected",
            extra={"event": LogEvent.PROVIDER_DISCONNECTED, "provider": provider_id},
        )

    # =========================================================================
    # Copilot device flow
    # =========================================================================

    async def oauth_start(self) -> DeviceFlowStart:
        try:
            data = await self._github.request_device_code(
                self._config.copilot_client_id, self._config.copilot_scope
            )
        except (GitHubError, httpx.HTTPError) as exc:
            raise ExternalServiceError(str(exc)) from exc

        flow = PendingDeviceFlow(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data["verification_uri"],
            interval=int(data.get("interval", 5)),
            expires_in=int(data.get("expires_in", 900)),
            started_at=time.time(),
        )
        self._store.set_pending(flow)
        logger.info("Device flow started", extra={"event": LogEvent.OAUTH_STARTED})
        return DeviceFlowStart(
            user_code=flow.user_code,
            verification_uri=flow.verification_uri,
            interval=flow.interval,
            expires_in=flow.expires_in,
        )

    async def oauth_poll(self) -> DeviceFlowPoll:
        """Exchange the pending device code once. The caller drives the polling."""
        flow = self._store.pending()
        if flow is None:
            raise ValidationError("No hay autenticación pendiente")

        if time.time() - flow.started_at > flow.expires_in:
            self._store.clear_pending()
            return self._failed("expired_token")

        try:
            result = await self._github.poll_device_token(
                self._config.copilot_client_id, flow.device_code
            )
        except (GitHubError, httpx.HTTPError) as exc:
            raise ExternalServiceError(str(exc)) from exc

        if token := result.get("access_token"):
            self._store.put(
                COPILOT_ID,
                ProviderCredential(
                    type="oauth",
                    key=token,
                    env_var=PROVIDER_CATALOG[COPILOT_ID].env_var,
                    connected_at=utc_now_iso(),
                ),
            )
            self._store.clear_pending()
            logger.info(
                "Device flow completed",
                extra={"event": LogEvent.OAUTH_COMPLETED, "provider": COPILOT_ID},
            )
            return DeviceFlowPoll(status="connected")

        error = result.get("error", "unknown_error")
        if error == "authorization_pending":
            return DeviceFlowPoll(status="pending", interval=flow.interval)
        if error == "slow_down":
            interval = int(result.get("interval", flow.interval + 5))
            self._store.set_pending(flow.model_copy(update={"interval": interval}))
            return DeviceFlowPoll(status="pending", interval=interval)

        self._store.clear_pending()
        return self._failed(error)

    def _failed(self, error: str) -> DeviceFlowPoll:
        logger.warning(
            "Device flow failed",
            extra={"event": LogEvent.OAUTH_FAILED, "error": error},
        )
        return DeviceFlowPoll(status="error", error=error)
