from __future__ import annotations

from typing import Any

import httpx

from leverage_paths.core.clients.HttpClient import HttpClient
from leverage_paths.core.config import get_positions_api_url
from leverage_paths.core.errors import RemoteCallError


class PositionsClient(HttpClient):
    async def get_positions(self, address: str, chain_id: int) -> list[dict[str, Any]]:
        url = get_positions_api_url(chain_id)
        try:
            response = await self._request(
                "GET", url, params={"address": address.lower()}
            )
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"Positions fetch failed: {exc}") from exc
        data = response.json()
        if isinstance(data, dict):
            data = data.get("data", data.get("positions", []))
        return list(data or [])


POSITIONS_CLIENT = PositionsClient()
