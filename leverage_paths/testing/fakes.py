"""In-memory stand-ins for the chain, registry and routing collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from unittest.mock import AsyncMock

from leverage_paths.core.clients.ChainClient import SimulationResult
from leverage_paths.leverage.registry import ContractRole

OPENER_ADDRESS = "0x1000000000000000000000000000000000000001"
CLOSER_ADDRESS = "0x1000000000000000000000000000000000000002"
LEDGER_ADDRESS = "0x1000000000000000000000000000000000000003"
EXPIRED_VAULT_ADDRESS = "0x1000000000000000000000000000000000000004"

ROLE_ADDRESSES = {
    ContractRole.POSITION_OPENER: OPENER_ADDRESS,
    ContractRole.POSITION_CLOSER: CLOSER_ADDRESS,
    ContractRole.POSITION_LEDGER: LEDGER_ADDRESS,
    ContractRole.EXPIRED_VAULT: EXPIRED_VAULT_ADDRESS,
}

TX_HASH = "0x" + "ab" * 32


def registry_records(
    roles: Sequence[ContractRole] = tuple(ContractRole),
) -> list[dict[str, Any]]:
    return [
        {
            "name": role.value,
            "address": ROLE_ADDRESSES[role],
            "abi": [{"type": "function", "name": f"{role.value}Fn"}],
        }
        for role in roles
    ]


def fake_registry_client(
    roles: Sequence[ContractRole] = tuple(ContractRole),
) -> AsyncMock:
    client = AsyncMock()
    client.get_contracts = AsyncMock(return_value=registry_records(roles))
    return client


def route_response(
    tokens: Sequence[tuple[str, int]],
    fees: Sequence[int],
    amount_out: int,
    *,
    pool_type: str = "v3-pool",
) -> dict[str, Any]:
    """Router JSON for a single route through ``len(fees)`` pools."""
    pools = []
    for i, fee in enumerate(fees):
        (addr_in, dec_in), (addr_out, dec_out) = tokens[i], tokens[i + 1]
        pools.append(
            {
                "type": pool_type,
                "address": f"0x{i + 1:040x}",
                "tokenIn": {"address": addr_in, "decimals": str(dec_in)},
                "tokenOut": {"address": addr_out, "decimals": str(dec_out)},
                "fee": str(fee),
                "amountOut": str(amount_out) if i == len(fees) - 1 else "1",
            }
        )
    return {"quote": str(amount_out), "route": [pools]}


def fake_routing_client(response: dict[str, Any] | None) -> AsyncMock:
    client = AsyncMock()
    client.route = AsyncMock(return_value=response)
    return client


class FakeChainClient:
    """Contract reads served from a ``{(address, function): value}`` table.

    A callable value is invoked with the call arguments.
    """

    def __init__(
        self,
        *,
        chain_id: int = 1,
        reads: dict[tuple[str, str], Any] | None = None,
        block_number: int = 0,
        simulation: SimulationResult | None = None,
        tx_hash: str | None = TX_HASH,
        receipt: dict[str, Any] | None = None,
    ) -> None:
        self._chain_id = chain_id
        self.reads = {
            (address.lower(), fn): value
            for (address, fn), value in (reads or {}).items()
        }
        self.read_contract = AsyncMock(side_effect=self._read)
        self.simulate_contract = AsyncMock(
            return_value=simulation
            or SimulationResult(request={"chainId": chain_id}, result=True)
        )
        self.write_contract = AsyncMock(return_value=tx_hash)
        self.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 1, "blockNumber": 1} if receipt is None else receipt
        )
        self.get_block_number = AsyncMock(return_value=block_number)

    @property
    def chain_id(self) -> int:
        return self._chain_id

    async def _read(
        self,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any] | None = None,
    ) -> Any:
        value = self.reads[(address.lower(), function_name)]
        return value(*(args or [])) if callable(value) else value
