"""GitHub REST and OAuth device-flow client.

Repository calls go to the REST API with the server token. Device-flow calls
go to github.com and carry no token.
"""

import logging

import httpx

from opencode_panel.config import GitHubConfig, get_panel_config

logger = logging.getLogger(__name__)

DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
_DEVICE_CODE_FIELDS = ("device_code", "user_code", "verification_uri")


class GitHubError(Exception):
    """Raised when GitHub answers with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class GitHubClient:
    """Minimal async GitHub client."""

    def __init__(
        self,
        config: GitHubConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or get_panel_config().github
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def token(self) -> str:
        return self._config.token

    @property
    def org(self) -> str:
        return self._config.org

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                transport=self._transport,
                headers={"User-Agent": self._config.user_agent},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _api_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self._config.api_version,
        }

    async def _request(self, method: str, path: str, body: dict | None = None) -> dict:
        """Call the REST API. Returns the decoded body ({} when empty)."""
        client = await self._get_client()
        resp = await client.request(
            method,
            f"{self._config.api_url}{path}",
            headers=self._api_headers(),
            json=body,
        )
        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            data = {}
        if resp.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else None
            raise GitHubError(
                message or f"GitHub API error {resp.status_code}",
                status_code=resp.status_code,
            )
        return data if isinstance(data, dict) else {}

    # =========================================================================
    # Repositories
    # =========================================================================

    async def create_org_repo(self, name: str, description: str = "") -> str:
        """Create a private repository in the organization, return its clone URL."""
        repo = await self._request(
            "POST",
            f"/orgs/{self._config.org}/repos",
            {
                "name": name,
                "description": description,
                "private": True,
                "auto_init": True,
            },
        )
        clone_url = repo.get("clone_url")
        if not isinstance(clone_url, str) or not clone_url:
            raise GitHubError("GitHub response is missing clone_url")
        logger.info("Created GitHub repository %s/%s", self._config.org, name)
        return clone_url

    async def delete_repo(self, name: str) -> None:
        await self._request("DELETE", f"/repos/{self._config.org}/{name}")
        logger.info("Deleted GitHub repository %s/%s", self._config.org, name)

    def authenticated_url(self, clone_url: str) -> str:
        """Embed the server token in an HTTPS clone URL."""
        return clone_url.replace("https://", f"https://{self._config.token}@", 1)

    # =========================================================================
    # OAuth device flow
    # =========================================================================

    async def _oauth_post(self, path: str, data: dict) -> dict:
        client = await self._get_client()
        resp = await client.post(
            f"{self._config.oauth_url}{path}",
            headers={"Accept": "application/json"},
            data=data,
        )
        if resp.status_code >= 400:
            raise GitHubError(
                f"GitHub OAuth error {resp.status_code}", status_code=resp.status_code
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise GitHubError("GitHub OAuth response is not JSON") from exc
        if not isinstance(body, dict):
            raise GitHubError("GitHub OAuth response is not an object")
        return body

    async def request_device_code(self, client_id: str, scope: str) -> dict:
        """Start a device flow.

        Returns device_code, user_code, verification_uri, expires_in, interval.
        """
        data = await self._oauth_post(
            "/login/device/code", {"client_id": client_id, "scope": scope}
        )
        if any(not data.get(key) for key in _DEVICE_CODE_FIELDS):
            raise GitHubError(data.get("error_description") or "Respuesta inválida de GitHub")
        return data

    async def poll_device_token(self, client_id: str, device_code: str) -> dict:
        """Exchange a device code for a token.

        GitHub answers 200 in every state; the body carries either
        access_token or error (authorization_pending, slow_down, ...).
        """
        return await self._oauth_post(
            "/login/oauth/access_token",
            {
                "client_id": client_id,
                "device_code": device_code,
                "grant_type": DEVICE_GRANT_TYPE,
            },
        )
