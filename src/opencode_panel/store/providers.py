"""Global provider credentials file.

Layout of .providers.json:

    {
        "anthropic": {"type": "api_key", "key": "...", "envVar": "ANTHROPIC_API_KEY",
                      "connectedAt": "..."},
        "_copilot_pending": {"deviceCode": "...", "userCode": "...", ...}
    }

Secrets are stored in plaintext; the file is only protected by the host's
file permissions.
"""

import json
import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

PENDING_KEY = "_copilot_pending"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProviderCredential(_CamelModel):
    """A stored credential for one provider."""

    type: Literal["api_key", "oauth"]
    key: str
    env_var: str
    connected_at: str


class PendingDeviceFlow(_CamelModel):
    """An OAuth device code waiting for the user's approval."""

    device_code: str
    user_code: str
    verification_uri: str
    interval: int = 5
    expires_in: int = 900
    started_at: float


class ProviderStore:
    """Read-modify-write access to the credentials file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Ignoring unreadable providers file: %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.chmod(self._path, 0o600)

    def credentials(self) -> dict[str, ProviderCredential]:
        result = {}
        for provider_id, raw in self.load().items():
            if provider_id == PENDING_KEY:
                continue
            try:
                result[provider_id] = ProviderCredential.model_validate(raw)
            except ValueError:
                logger.warning("Skipping malformed credential entry: %s", provider_id)
        return result

    def get(self, provider_id: str) -> ProviderCredential | None:
        return self.credentials().get(provider_id)

    def put(self, provider_id: str, credential: ProviderCredential) -> None:
        data = self.load()
        data[provider_id] = credential.model_dump(by_alias=True)
        self.save(data)

    def remove(self, provider_id: str) -> None:
        data = self.load()
        if data.pop(provider_id, None) is not None:
            self.save(data)

    def pending(self) -> PendingDeviceFlow | None:
        raw = self.load().get(PENDING_KEY)
        if not raw:
            return None
        try:
            return PendingDeviceFlow.model_validate(raw)
        except ValueError:
            return None

    def set_pending(self, flow: PendingDeviceFlow) -> None:
        data = self.load()
        data[PENDING_KEY] = flow.model_dump(by_alias=True)
        self.save(data)

    def clear_pending(self) -> None:
        self.remove(PENDING_KEY)

    def env_values(self) -> dict[str, str]:
        """Environment variables contributed by every stored credential."""
        return {cred.env_var: cred.key for cred in self.credentials().values()}
