from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from leverage_paths.core.clients.protocols import RoutingClientProtocol
from leverage_paths.core.errors import (
    InvalidAsset,
    RemoteCallError,
    RouteNotFound,
    ValidationError,
)
from leverage_paths.leverage.pipeline import remote_call
from leverage_paths.leverage.types import Hop, RouteQuote, Token

V3_PROTOCOL = "V3"
V3_POOL_TYPE = "v3-pool"
EXACT_INPUT = "EXACT_INPUT"


class SwapRouteResolver:
    """Asks the external router for the best V3-only route between two assets."""

    def __init__(self, client: RoutingClientProtocol, chain_id: int) -> None:
        self.client = client
        self.chain_id = int(chain_id)
        self.logger = logger.bind(component="SwapRouteResolver", chain_id=chain_id)

    async def resolve(
        self,
        amount_in: int,
        token_in: str,
        decimals_in: Any,
        token_out: str,
        decimals_out: Any,
    ) -> RouteQuote:
        asset_in = Token.create(token_in, decimals_in)
        asset_out = Token.create(token_out, decimals_out)
        if isinstance(amount_in, bool) or not isinstance(amount_in, int):
            raise ValidationError(f"amount_in must be an integer, got {amount_in!r}")
        if amount_in <= 0:
            raise ValidationError(f"amount_in must be positive, got {amount_in}")

        response = await remote_call(
            "Routing request",
            self.client.route(
                amount_in,
                asset_in.address,
                asset_out.address,
                chain_id=self.chain_id,
                trade_type=EXACT_INPUT,
                protocols=(V3_PROTOCOL,),
            ),
        )

        quote = self._map_route(response, asset_in, asset_out)
        self.logger.info(
            f"Route {asset_in.address} -> {asset_out.address}: "
            f"{len(quote.hops)} hop(s), {amount_in} in, {quote.output_amount} out"
        )
        return quote

    def _map_route(
        self, response: dict[str, Any] | None, asset_in: Token, asset_out: Token
    ) -> RouteQuote:
        if response is not None and not isinstance(response, dict):
            raise RemoteCallError(
                f"Unexpected router response: {type(response).__name__}"
            )
        routes = (response or {}).get("route") or []
        if not isinstance(routes, list) or not all(
            isinstance(route, list) for route in routes
        ):
            raise RemoteCallError("Router response has a malformed route list")
        if not routes or not routes[0]:
            raise RouteNotFound(
                f"No route from {asset_in.address} to {asset_out.address}"
            )
        if len(routes) > 1:
            self.logger.warning(
                f"Router split the trade over {len(routes)} routes; encoding the first"
            )
        pools = routes[0]

        known = {
            asset_in.address.lower(): asset_in,
            asset_out.address.lower(): asset_out,
        }
        try:
            hops: list[Hop] = []
            token_path = [self._route_token(pools[0]["tokenIn"], known)]
            for pool in pools:
                pool_type = pool.get("type")
                if pool_type and pool_type != V3_POOL_TYPE:
                    raise RouteNotFound(f"Router returned a non-V3 pool ({pool_type})")
                token_in = self._route_token(pool["tokenIn"], known)
                if token_in.address != token_path[-1].address:
                    raise RemoteCallError("Router returned a disconnected route")
                pool_address = to_checksum_address(pool["address"])
                hops.append(Hop(address=pool_address, fee=int(pool["fee"])))
                token_path.append(self._route_token(pool["tokenOut"], known))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise RemoteCallError(f"Malformed route response: {exc}") from exc

        if token_path[0] != asset_in or token_path[-1] != asset_out:
            raise RemoteCallError("Route endpoints do not match the requested assets")

        raw_output = pools[-1].get("amountOut")
        if raw_output is None:
            # The top-level quote sums every split, not just the encoded route.
            if len(routes) > 1:
                raise RemoteCallError("Split route is missing its own amountOut")
            raw_output = response.get("quote")
        try:
            output_amount = int(raw_output or 0)
        except (TypeError, ValueError) as exc:
            raise RemoteCallError(f"Malformed quoted output: {raw_output!r}") from exc
        if output_amount <= 0:
            raise RouteNotFound("Router quoted no output for this route")

        return RouteQuote(
            hops=tuple(hops), token_path=tuple(token_path), output_amount=output_amount
        )

    @staticmethod
    def _route_token(raw: dict[str, Any], known: dict[str, Token]) -> Token:
        address = str(raw["address"])
        token = known.get(address.lower())
        if token is not None:
            return token
        try:
            return Token.create(address, raw["decimals"], raw.get("symbol"))
        except InvalidAsset as exc:
            raise RemoteCallError(f"Router returned an invalid token: {exc}") from exc
