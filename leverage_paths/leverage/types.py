"""Value types for the leverage position lifecycle (dataclasses)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from eth_utils import is_address, to_checksum_address

from leverage_paths.core.constants import ZERO_ADDRESS
from leverage_paths.core.constants.base import MAX_UINT24
from leverage_paths.core.errors import EncodingError, InvalidAsset


class PipelineStage(StrEnum):
    IDLE = "idle"
    APPROVING = "approving"
    SIMULATING = "simulating"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Token:
    address: str
    decimals: int
    symbol: str | None = None

    @classmethod
    def create(cls, address: Any, decimals: Any, symbol: str | None = None) -> Token:
        """Validate a raw asset descriptor. Raises ``InvalidAsset`` when malformed."""
        if not isinstance(address, str) or not is_address(address):
            raise InvalidAsset(f"Invalid token address: {address!r}")
        if int(address, 16) == 0:
            raise InvalidAsset("Token address must not be the zero address")
        if isinstance(decimals, bool):
            raise InvalidAsset(f"Invalid token decimals: {decimals!r}")
        try:
            dec = int(decimals)
        except (TypeError, ValueError) as exc:
            raise InvalidAsset(f"Invalid token decimals: {decimals!r}") from exc
        if isinstance(decimals, float) and not decimals.is_integer():
            raise InvalidAsset(f"Invalid token decimals: {decimals!r}")
        if not 0 <= dec <= 255:
            raise InvalidAsset(f"Token decimals out of range: {dec}")
        return cls(address=to_checksum_address(address), decimals=dec, symbol=symbol)


@dataclass(frozen=True)
class Hop:
    address: str
    fee: int

    def __post_init__(self) -> None:
        if isinstance(self.fee, bool) or not isinstance(self.fee, int):
            raise EncodingError(f"Pool fee must be an integer, got {self.fee!r}")
        if not 0 <= self.fee <= MAX_UINT24:
            raise EncodingError(f"Pool fee {self.fee} does not fit in uint24")


@dataclass(frozen=True)
class RouteQuote:
    hops: tuple[Hop, ...]
    token_path: tuple[Token, ...]
    output_amount: int

    def __post_init__(self) -> None:
        if len(self.hops) != len(self.token_path) - 1:
            raise EncodingError(
                f"Route has {len(self.hops)} pools for {len(self.token_path)} tokens"
            )


@dataclass
class LedgerEntry:
    collateral_amount: int
    strategy_address: str
    strategy_shares: int
    wbtc_debt_amount: int
    position_open_block: int
    position_expiration_block: int
    liquidation_buffer: int
    state: int
    claimable_amount: int

    _FIELDS = (
        ("collateralAmount", "collateral_amount"),
        ("strategyAddress", "strategy_address"),
        ("strategyShares", "strategy_shares"),
        ("wbtcDebtAmount", "wbtc_debt_amount"),
        ("positionOpenBlock", "position_open_block"),
        ("positionExpirationBlock", "position_expiration_block"),
        ("liquidationBuffer", "liquidation_buffer"),
        ("state", "state"),
        ("claimableAmount", "claimable_amount"),
    )

    @classmethod
    def parse(cls, raw: Sequence[Any] | Mapping[str, Any]) -> LedgerEntry:
        """Build from the ``getPosition`` return value (tuple or named mapping)."""
        if isinstance(raw, Mapping):
            # The deployed ledger ABI misspells this output as "poistionOpenBlock".
            if "positionOpenBlock" not in raw and "poistionOpenBlock" in raw:
                raw = {**raw, "positionOpenBlock": raw["poistionOpenBlock"]}
            values = [raw[abi_name] for abi_name, _ in cls._FIELDS]
        else:
            values = list(raw)
            if len(values) != len(cls._FIELDS):
                raise ValueError(
                    f"Expected {len(cls._FIELDS)} ledger fields, got {len(values)}"
                )
        kwargs: dict[str, Any] = {}
        for (_, attr), value in zip(cls._FIELDS, values, strict=True):
            kwargs[attr] = (
                to_checksum_address(value) if attr == "strategy_address" else int(value)
            )
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {abi_name: getattr(self, attr) for abi_name, attr in self._FIELDS}


@dataclass
class OpenPositionParams:
    collateral_amount: int
    wbtc_to_borrow: int
    strategy: str
    min_strategy_shares: int
    swap_data: bytes
    swap_route: int = 0
    exchange: str = ZERO_ADDRESS

    def as_tuple(self) -> tuple[Any, ...]:
        return (
            int(self.collateral_amount),
            int(self.wbtc_to_borrow),
            to_checksum_address(self.strategy),
            int(self.min_strategy_shares),
            int(self.swap_route),
            bytes(self.swap_data),
            to_checksum_address(self.exchange),
        )


@dataclass
class ClosePositionParams:
    nft_id: int
    min_wbtc: int
    swap_data: bytes
    swap_route: int = 0
    exchange: str = ZERO_ADDRESS

    def as_tuple(self) -> tuple[Any, ...]:
        return (
            int(self.nft_id),
            int(self.min_wbtc),
            int(self.swap_route),
            bytes(self.swap_data),
            to_checksum_address(self.exchange),
        )


@dataclass
class PreviewOpenResult:
    minimum_expected_shares: int
    payload: bytes
    expected_shares: int
    quote: RouteQuote = field(repr=False)


@dataclass
class PreviewCloseResult:
    minimum_out: int
    payload: bytes
    expected_assets: int
    quote: RouteQuote = field(repr=False)


@dataclass
class TransactionResult:
    result: Any
    receipt: dict[str, Any]
    tx_hash: str
