"""Slippage, deadline and block-time helpers shared by preview and close flows."""

from __future__ import annotations

import time

from leverage_paths.core.constants.base import (
    BPS_DENOMINATOR,
    DEFAULT_DEADLINE_BUFFER_SECONDS,
)
from leverage_paths.core.errors import ValidationError


def validate_slippage_bps(slippage_bps: int) -> int:
    if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int):
        raise ValidationError(
            f"slippage_bps must be an integer, got {type(slippage_bps).__name__}"
        )
    if not 0 <= slippage_bps <= BPS_DENOMINATOR:
        raise ValidationError(
            f"slippage_bps must be within [0, {BPS_DENOMINATOR}], got {slippage_bps}"
        )
    return slippage_bps


def apply_slippage_bps(amount: int, slippage_bps: int) -> int:
    """Floor of ``amount * (10000 - bps) / 10000``. Never rounds up."""
    bps = validate_slippage_bps(slippage_bps)
    amount = int(amount)
    if amount < 0:
        raise ValidationError(f"amount must be non-negative, got {amount}")
    return (amount * (BPS_DENOMINATOR - bps)) // BPS_DENOMINATOR


def deadline(seconds: int = DEFAULT_DEADLINE_BUFFER_SECONDS) -> int:
    if seconds <= 0:
        raise ValidationError("deadline buffer must be positive")
    return int(time.time()) + int(seconds)


def estimate_minutes_until(
    target_block: int, current_block: int, blocks_per_minute: float
) -> float:
    # Negative once current_block has passed target_block.
    return (int(target_block) - int(current_block)) / float(blocks_per_minute)
