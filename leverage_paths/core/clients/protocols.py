from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from leverage_paths.core.clients.ChainClient import SimulationResult
    from leverage_paths.core.clients.RegistryClient import ContractRecord
    from leverage_paths.core.clients.RoutingClient import RouteResponse


class ChainClientProtocol(Protocol):
    @property
    def chain_id(self) -> int: ...

    async def read_contract(
        self,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any] | None = None,
    ) -> Any: ...

    async def simulate_contract(
        self,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any],
        account: str,
    ) -> SimulationResult: ...

    async def write_contract(self, request: dict[str, Any]) -> str: ...

    async def wait_for_transaction_receipt(self, tx_hash: str) -> dict[str, Any]: ...

    async def get_block_number(self) -> int: ...


class RegistryClientProtocol(Protocol):
    async def get_contracts(self, chain_id: int) -> list[ContractRecord]: ...


class RoutingClientProtocol(Protocol):
    async def route(
        self,
        amount_in: int,
        token_in: str,
        token_out: str,
        *,
        chain_id: int,
        trade_type: str = "EXACT_INPUT",
        protocols: Sequence[str] = ("V3",),
    ) -> RouteResponse | None: ...
