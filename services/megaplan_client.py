from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from shared.config import Settings
from shared.errors import ConfigurationError, UpstreamNotFound, UpstreamRequestError

logger = logging.getLogger(__name__)


def _auth(settings: Settings) -> tuple[Dict[str, str], Optional[httpx.BasicAuth]]:
    """Bearer token when configured, otherwise basic auth from login/password."""
    if settings.bearer_token:
        return {"Authorization": f"Bearer {settings.bearer_token}"}, None
    if settings.login and settings.password:
        return {}, httpx.BasicAuth(settings.login, settings.password)
    raise ConfigurationError("MEGAPLAN_BEARER_TOKEN or MEGAPLAN_LOGIN/MEGAPLAN_PASSWORD is not configured")


class MegaplanClient:
    """
    Thin async wrapper over the Megaplan v3 REST API.
    Use as `async with MegaplanClient(settings) as client:`; one instance per request.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        headers, auth = _auth(settings)
        headers["Content-Type"] = "application/json"
        self._client = httpx.AsyncClient(
            base_url=settings.api_url,
            headers=headers,
            auth=auth,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "MegaplanClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Megaplan API request %s %s failed: %s", method, path, exc)
            raise UpstreamRequestError(f"Megaplan request failed: {exc}") from exc

        if response.status_code == 404:
            raise UpstreamNotFound(f"Megaplan {path} not found", status=404, body=response.text)
        if response.status_code >= 300:
            logger.error("Megaplan API error %s %s: %s - %s", method, path, response.status_code, response.text)
            raise UpstreamRequestError(
                f"Megaplan request failed ({response.status_code}): {response.text}",
                status=response.status_code,
                body=response.text,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamRequestError(f"Megaplan returned non-JSON response for {path}") from exc

    async def get_deal(self, deal_id: str) -> Optional[Dict[str, Any]]:
        """Full deal record (custom fields included), or None when the envelope is empty."""
        payload = await self._request("GET", f"/deal/{deal_id}")
        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, dict) else None

    async def get_linked_deals(self, deal_id: str) -> List[Dict[str, Any]]:
        """Summaries of deals linked to `deal_id`; each carries at least an `id`."""
        payload = await self._request("GET", f"/deal/{deal_id}/linkedDeals")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    async def list_deal_tasks(self, deal_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/task", params={"deal": deal_id, "limit": limit})
        data = payload.get("data") if isinstance(payload, dict) else None
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    async def update_deal(self, deal_id: str, payload: Dict[str, Any], method: str = "POST") -> Any:
        return await self._request(method, f"/deal/{deal_id}", json=payload)
