"""
HTTP client for the relay's plain endpoints (`/health`).
"""

from typing import Any

import httpx

from ayinet_relay.errors import AyinetError

DEFAULT_BASE_URL = "http://localhost:5000"


class HttpClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, transport: "httpx.AsyncBaseTransport | None" = None):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "ayinet-relay/0.1.0", "Accept": "application/json"},
            timeout=10.0,
            transport=transport,
        )

    async def get(self, path: str) -> Any:
        try:
            resp = await self._client.get(path)
        except httpx.HTTPError as e:
            raise AyinetError("http_error", f"GET {path} failed: {e}")
        if resp.status_code >= 400:
            raise AyinetError("http_error", f"HTTP {resp.status_code}: {resp.text[:200]}")
        return resp.json()

    async def health(self) -> dict[str, Any]:
        return await self.get("/health")

    async def close(self) -> None:
        await self._client.aclose()
