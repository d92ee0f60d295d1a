from __future__ import annotations

from loguru import logger

from leverage_paths.core.clients.protocols import (
    ChainClientProtocol,
    RegistryClientProtocol,
)
from leverage_paths.core.errors import (
    ConfigurationError,
    RemoteCallError,
    ValidationError,
)
from leverage_paths.core.utils.slippage import estimate_minutes_until
from leverage_paths.leverage.pipeline import remote_call
from leverage_paths.leverage.registry import ContractRole, resolve_registry
from leverage_paths.leverage.types import LedgerEntry


def validate_nft_id(nft_id: int) -> int:
    if isinstance(nft_id, bool) or not isinstance(nft_id, int) or nft_id < 0:
        raise ValidationError(f"nft_id must be a non-negative integer, got {nft_id!r}")
    return nft_id


class LedgerReader:
    """Read-only view of position records held by the ``PositionLedger`` contract."""

    def __init__(
        self,
        chain: ChainClientProtocol,
        registry_client: RegistryClientProtocol,
        *,
        blocks_per_minute: float,
    ) -> None:
        self.chain = chain
        self.registry_client = registry_client
        self.blocks_per_minute = float(blocks_per_minute)
        if not self.blocks_per_minute > 0:
            raise ConfigurationError(
                f"blocks_per_minute must be positive, got {blocks_per_minute}"
            )

    async def get_position(self, nft_id: int) -> LedgerEntry:
        nft_id = validate_nft_id(nft_id)
        registry = await resolve_registry(
            self.registry_client, self.chain.chain_id, ContractRole.POSITION_LEDGER
        )
        ledger = registry[ContractRole.POSITION_LEDGER]
        raw = await remote_call(
            f"getPosition({nft_id})",
            self.chain.read_contract(
                ledger.address, ledger.abi, "getPosition", [nft_id]
            ),
        )
        if raw is None:
            raise RemoteCallError(f"getPosition({nft_id}) returned nothing")
        try:
            entry = LedgerEntry.parse(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteCallError(f"Unexpected getPosition result: {exc}") from exc
        logger.debug(f"Position {nft_id}: state={entry.state}")
        return entry

    async def get_estimated_expiration(self, nft_id: int) -> float:
        """Minutes until the position expires; negative once it has expired."""
        entry = await self.get_position(nft_id)
        current_block = await remote_call(
            "getBlockNumber", self.chain.get_block_number()
        )
        return estimate_minutes_until(
            entry.position_expiration_block, current_block, self.blocks_per_minute
        )
