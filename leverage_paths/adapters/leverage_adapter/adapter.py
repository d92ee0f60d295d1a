from __future__ import annotations

from collections.abc import Callable
from typing import Any

from leverage_paths.core.adapters.BaseAdapter import BaseAdapter
from leverage_paths.core.adapters.decorators import require_wallet, status_tuple
from leverage_paths.core.clients.ChainClient import ChainClient
from leverage_paths.core.constants.base import DEFAULT_SLIPPAGE_BPS
from leverage_paths.leverage.orchestrator import PositionOrchestrator
from leverage_paths.leverage.types import (
    LedgerEntry,
    PreviewCloseResult,
    PreviewOpenResult,
    TransactionResult,
)


class LeverageAdapter(BaseAdapter):
    """
    Leveraged strategy positions (WBTC collateral, borrowed WBTC swapped into a
    strategy vault through Uniswap V3).

    - Open: preview_open -> approve -> open_position
    - Close: preview_close -> close_position
    - Expired or liquidated: claim
    """

    adapter_type = "LEVERAGE"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        sign_callback: Callable | None = None,
        wallet_address: str | None = None,
        orchestrator: PositionOrchestrator | None = None,
    ) -> None:
        super().__init__(
            "leverage_adapter",
            config,
            sign_callback=sign_callback,
            wallet_address=wallet_address,
        )
        self.orchestrator = orchestrator or PositionOrchestrator(
            ChainClient(self.chain_id, sign_callback=sign_callback)
        )

    @status_tuple
    async def preview_open(
        self,
        collateral_amount: int,
        borrow_amount: int,
        strategy_address: str,
        *,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> PreviewOpenResult:
        return await self.orchestrator.preview_open(
            collateral_amount, borrow_amount, strategy_address, slippage_bps
        )

    @status_tuple
    async def preview_close(
        self, nft_id: int, *, slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    ) -> PreviewCloseResult:
        return await self.orchestrator.preview_close(nft_id, slippage_bps)

    @status_tuple
    async def get_position(self, nft_id: int) -> LedgerEntry:
        return await self.orchestrator.get_position_state(nft_id)

    @status_tuple
    async def get_estimated_expiration(self, nft_id: int) -> float:
        return await self.orchestrator.get_estimated_expiration(nft_id)

    @require_wallet
    @status_tuple
    async def get_positions(self) -> list[dict[str, Any]]:
        return await self.orchestrator.list_positions(self.wallet_address)

    @require_wallet
    @status_tuple
    async def approve(self, amount: int) -> TransactionResult:
        return await self.orchestrator.approve_spend(self.wallet_address, amount)

    @require_wallet
    @status_tuple
    async def open_position(
        self,
        collateral_amount: int,
        borrow_amount: int,
        strategy_address: str,
        *,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> TransactionResult:
        preview = await self.orchestrator.preview_open(
            collateral_amount, borrow_amount, strategy_address, slippage_bps
        )
        return await self.orchestrator.open(
            collateral_amount,
            borrow_amount,
            preview.minimum_expected_shares,
            strategy_address,
            preview.payload,
            self.wallet_address,
        )

    @require_wallet
    @status_tuple
    async def close_position(
        self, nft_id: int, *, slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    ) -> TransactionResult:
        preview = await self.orchestrator.preview_close(nft_id, slippage_bps)
        return await self.orchestrator.close(
            nft_id, preview.minimum_out, self.wallet_address, preview.payload
        )

    @require_wallet
    @status_tuple
    async def claim(self, nft_id: int) -> TransactionResult:
        return await self.orchestrator.claim(nft_id, self.wallet_address)
