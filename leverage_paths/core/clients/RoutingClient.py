from __future__ import annotations

from collections.abc import Sequence
from typing import Any, NotRequired, Required, TypedDict

import httpx

from leverage_paths.core.clients.HttpClient import HttpClient
from leverage_paths.core.config import get_router_api_key, get_router_url
from leverage_paths.core.errors import RemoteCallError


class RouteToken(TypedDict):
    address: Required[str]
    decimals: NotRequired[int | str]
    symbol: NotRequired[str]


class RoutePool(TypedDict):
    type: NotRequired[str]
    address: Required[str]
    tokenIn: Required[RouteToken]
    tokenOut: Required[RouteToken]
    fee: Required[int | str]
    amountIn: NotRequired[str]
    amountOut: NotRequired[str]


class RouteResponse(TypedDict):
    quote: NotRequired[str]
    route: Required[list[list[RoutePool]]]


class RoutingClient(HttpClient):
    """Client for the external smart order routing engine."""

    async def route(
        self,
        amount_in: int,
        token_in: str,
        token_out: str,
        *,
        chain_id: int,
        trade_type: str = "EXACT_INPUT",
        protocols: Sequence[str] = ("V3",),
    ) -> RouteResponse | None:
        url = f"{get_router_url().rstrip('/')}/quote"
        body = {
            "tokenInChainId": int(chain_id),
            "tokenIn": token_in,
            "tokenOutChainId": int(chain_id),
            "tokenOut": token_out,
            "amount": str(int(amount_in)),
            "type": trade_type,
            "protocols": list(protocols),
        }
        headers: dict[str, str] = {}
        api_key = get_router_api_key()
        if api_key:
            headers["x-api-key"] = api_key

        try:
            response = await self._request("POST", url, json=body, headers=headers)
        except httpx.HTTPStatusError as exc:
            # The router answers 404 when it has no path between the pair.
            if exc.response.status_code == 404:
                return None
            raise RemoteCallError(f"Routing request failed: {exc}") from exc
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"Routing request failed: {exc}") from exc

        data: Any = response.json()
        if not data:
            return None
        if isinstance(data, dict) and isinstance(data.get("quote"), dict):
            data = data["quote"]
        return data


ROUTING_CLIENT = RoutingClient()
