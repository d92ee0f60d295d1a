"""Preview, open, close, approve and claim leveraged strategy positions.

Every operation resolves the contract registry and any swap route afresh;
nothing is cached between calls, so concurrent calls never share state.
State-changing operations run a single simulate -> submit -> confirm
pipeline and raise on the first failed or empty step.
"""

from __future__ import annotations

from typing import Any

from eth_utils import is_address, to_checksum_address
from loguru import logger

from leverage_paths.core.clients.PositionsClient import POSITIONS_CLIENT
from leverage_paths.core.clients.protocols import (
    ChainClientProtocol,
    RegistryClientProtocol,
    RoutingClientProtocol,
)
from leverage_paths.core.clients.RegistryClient import REGISTRY_CLIENT
from leverage_paths.core.clients.RoutingClient import ROUTING_CLIENT
from leverage_paths.core.config import (
    get_blocks_per_minute,
    get_deadline_buffer_seconds,
)
from leverage_paths.core.constants.base import DEFAULT_SLIPPAGE_BPS
from leverage_paths.core.constants.erc20_abi import ERC20_ABI
from leverage_paths.core.constants.strategy_abi import STRATEGY_ABI
from leverage_paths.core.constants.tokens import WBTC, WBTC_DECIMALS
from leverage_paths.core.errors import RemoteCallError, ValidationError
from leverage_paths.core.utils.slippage import (
    apply_slippage_bps,
    deadline,
    validate_slippage_bps,
)
from leverage_paths.leverage.ledger import LedgerReader, validate_nft_id
from leverage_paths.leverage.payload import build_payload
from leverage_paths.leverage.pipeline import TransactionPipeline, remote_call
from leverage_paths.leverage.registry import ContractRole, resolve_registry
from leverage_paths.leverage.route_resolver import SwapRouteResolver
from leverage_paths.leverage.types import (
    ClosePositionParams,
    LedgerEntry,
    OpenPositionParams,
    PipelineStage,
    PreviewCloseResult,
    PreviewOpenResult,
    RouteQuote,
    Token,
    TransactionResult,
)


def _validate_amount(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _validate_address(name: str, value: Any) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise ValidationError(f"{name} is not a valid address: {value!r}")
    return to_checksum_address(value)


def _payload_bytes(payload: bytes | str) -> bytes:
    if isinstance(payload, str):
        try:
            payload = bytes.fromhex(payload.removeprefix("0x"))
        except ValueError as exc:
            raise ValidationError(f"payload is not valid hex: {exc}") from exc
    if not payload:
        raise ValidationError("payload must not be empty")
    return bytes(payload)


class PositionOrchestrator:
    def __init__(
        self,
        chain: ChainClientProtocol,
        *,
        registry_client: RegistryClientProtocol | None = None,
        routing_client: RoutingClientProtocol | None = None,
        positions_client: Any | None = None,
        collateral: Token | None = None,
        deadline_buffer_seconds: int | None = None,
        blocks_per_minute: float | None = None,
    ) -> None:
        self.chain = chain
        self.registry_client = registry_client or REGISTRY_CLIENT
        self.routing_client = routing_client or ROUTING_CLIENT
        self.positions_client = positions_client or POSITIONS_CLIENT
        self.collateral = collateral or Token.create(WBTC, WBTC_DECIMALS, "WBTC")
        self.deadline_buffer_seconds = (
            deadline_buffer_seconds
            if deadline_buffer_seconds is not None
            else get_deadline_buffer_seconds()
        )
        self.ledger = LedgerReader(
            chain,
            self.registry_client,
            blocks_per_minute=(
                blocks_per_minute
                if blocks_per_minute is not None
                else get_blocks_per_minute()
            ),
        )
        self.logger = logger.bind(component="PositionOrchestrator")

    # -- reads -------------------------------------------------------------------

    async def _read(
        self, address: str, abi: list[dict[str, Any]], fn: str, args: list[Any]
    ) -> Any:
        result = await remote_call(
            f"{fn} on {address}", self.chain.read_contract(address, abi, fn, args)
        )
        if result is None:
            raise RemoteCallError(f"{fn} on {address} returned nothing")
        return result

    async def _strategy_asset(self, strategy_address: str) -> Token:
        asset = await self._read(strategy_address, STRATEGY_ABI, "asset", [])
        decimals = await self._read(str(asset), ERC20_ABI, "decimals", [])
        return Token.create(str(asset), decimals)

    def _route_resolver(self) -> SwapRouteResolver:
        return SwapRouteResolver(self.routing_client, self.chain.chain_id)

    def _deadline(self) -> int:
        return deadline(self.deadline_buffer_seconds)

    async def preview_swap(
        self, amount_in: int, token_in: Token, token_out: Token
    ) -> tuple[RouteQuote, bytes]:
        """Quote a swap and encode its ``(path, deadline)`` payload without a minimum."""
        quote = await self._route_resolver().resolve(
            amount_in,
            token_in.address,
            token_in.decimals,
            token_out.address,
            token_out.decimals,
        )
        return quote, build_payload(quote, self._deadline(), min_out=None)

    async def preview_open(
        self,
        collateral_amount: int,
        borrow_amount: int,
        strategy_address: str,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> PreviewOpenResult:
        validate_slippage_bps(slippage_bps)
        collateral_amount = _validate_amount("collateral_amount", collateral_amount)
        borrow_amount = _validate_amount("borrow_amount", borrow_amount)
        strategy_address = _validate_address("strategy_address", strategy_address)
        amount_in = collateral_amount + borrow_amount
        if amount_in == 0:
            raise ValidationError("collateral_amount + borrow_amount must be positive")

        asset = await self._strategy_asset(strategy_address)
        quote = await self._route_resolver().resolve(
            amount_in,
            self.collateral.address,
            self.collateral.decimals,
            asset.address,
            asset.decimals,
        )
        expected_shares = int(
            await self._read(
                strategy_address, STRATEGY_ABI, "previewDeposit", [quote.output_amount]
            )
        )
        minimum_shares = apply_slippage_bps(expected_shares, slippage_bps)
        # The swap leg carries the quoted output itself; slippage is taken on shares.
        payload = build_payload(quote, self._deadline(), min_out=quote.output_amount)

        self.logger.info(
            f"Preview open {strategy_address}: {amount_in} in, "
            f"{expected_shares} shares expected, minimum {minimum_shares}"
        )
        return PreviewOpenResult(
            minimum_expected_shares=minimum_shares,
            payload=payload,
            expected_shares=expected_shares,
            quote=quote,
        )

    async def preview_close(
        self, nft_id: int, slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    ) -> PreviewCloseResult:
        validate_slippage_bps(slippage_bps)
        nft_id = validate_nft_id(nft_id)

        entry = await self.ledger.get_position(nft_id)
        expected_assets = int(
            await self._read(
                entry.strategy_address,
                STRATEGY_ABI,
                "convertToAssets",
                [entry.strategy_shares],
            )
        )
        if expected_assets <= 0:
            raise ValidationError(f"Position {nft_id} holds no strategy assets")

        asset = await self._strategy_asset(entry.strategy_address)
        quote = await self._route_resolver().resolve(
            expected_assets,
            asset.address,
            asset.decimals,
            self.collateral.address,
            self.collateral.decimals,
        )
        minimum_out = apply_slippage_bps(quote.output_amount, slippage_bps)
        payload = build_payload(quote, self._deadline(), min_out=minimum_out)

        self.logger.info(
            f"Preview close {nft_id}: {expected_assets} assets, "
            f"{quote.output_amount} quoted, minimum {minimum_out}"
        )
        return PreviewCloseResult(
            minimum_out=minimum_out,
            payload=payload,
            expected_assets=expected_assets,
            quote=quote,
        )

    async def get_position_state(self, nft_id: int) -> LedgerEntry:
        return await self.ledger.get_position(nft_id)

    async def get_estimated_expiration(self, nft_id: int) -> float:
        return await self.ledger.get_estimated_expiration(nft_id)

    async def list_positions(self, address: str) -> list[dict[str, Any]]:
        address = _validate_address("address", address)
        return await remote_call(
            "Positions lookup",
            self.positions_client.get_positions(address, self.chain.chain_id),
        )

    # -- writes ------------------------------------------------------------------

    async def open(
        self,
        collateral_amount: int,
        borrow_amount: int,
        minimum_shares: int,
        strategy_address: str,
        payload: bytes | str,
        account: str,
    ) -> TransactionResult:
        params = OpenPositionParams(
            collateral_amount=_validate_amount("collateral_amount", collateral_amount),
            wbtc_to_borrow=_validate_amount("borrow_amount", borrow_amount),
            strategy=_validate_address("strategy_address", strategy_address),
            min_strategy_shares=_validate_amount("minimum_shares", minimum_shares),
            swap_data=_payload_bytes(payload),
        )
        account = _validate_address("account", account)

        registry = await resolve_registry(
            self.registry_client, self.chain.chain_id, ContractRole.POSITION_OPENER
        )
        opener = registry[ContractRole.POSITION_OPENER]
        return await TransactionPipeline(self.chain, "openPosition").run(
            address=opener.address,
            abi=opener.abi,
            function_name="openPosition",
            args=[params.as_tuple()],
            account=account,
        )

    async def close(
        self, nft_id: int, min_out: int, account: str, payload: bytes | str
    ) -> TransactionResult:
        params = ClosePositionParams(
            nft_id=validate_nft_id(nft_id),
            min_wbtc=_validate_amount("min_out", min_out),
            swap_data=_payload_bytes(payload),
        )
        account = _validate_address("account", account)

        registry = await resolve_registry(
            self.registry_client, self.chain.chain_id, ContractRole.POSITION_CLOSER
        )
        closer = registry[ContractRole.POSITION_CLOSER]
        return await TransactionPipeline(self.chain, "closePosition").run(
            address=closer.address,
            abi=closer.abi,
            function_name="closePosition",
            args=[params.as_tuple()],
            account=account,
        )

    async def approve_spend(self, account: str, amount: int) -> TransactionResult:
        """Approve the ``PositionOpener`` to pull ``amount`` of the collateral token."""
        account = _validate_address("account", account)
        amount = _validate_amount("amount", amount)

        registry = await resolve_registry(
            self.registry_client, self.chain.chain_id, ContractRole.POSITION_OPENER
        )
        spender = registry[ContractRole.POSITION_OPENER].address
        return await TransactionPipeline(self.chain, "approve").run(
            address=self.collateral.address,
            abi=ERC20_ABI,
            function_name="approve",
            args=[spender, amount],
            account=account,
            entry_stage=PipelineStage.APPROVING,
        )

    async def claim(self, nft_id: int, account: str) -> TransactionResult:
        """Claim the proceeds of an expired or liquidated position."""
        nft_id = validate_nft_id(nft_id)
        account = _validate_address("account", account)

        registry = await resolve_registry(
            self.registry_client, self.chain.chain_id, ContractRole.EXPIRED_VAULT
        )
        vault = registry[ContractRole.EXPIRED_VAULT]
        return await TransactionPipeline(self.chain, "claim").run(
            address=vault.address,
            abi=vault.abi,
            function_name="claim",
            args=[nft_id],
            account=account,
        )
