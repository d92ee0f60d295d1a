from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from dataclasses import fields, is_dataclass
from typing import Any

import click
from eth_account import Account
from loguru import logger

from leverage_paths.core.clients.ChainClient import ChainClient
from leverage_paths.core.config import (
    get_default_slippage_bps,
    get_private_key,
    load_config,
)
from leverage_paths.core.constants.chains import CHAIN_ID_ETHEREUM
from leverage_paths.core.constants.tokens import WBTC_DECIMALS
from leverage_paths.core.errors import ConfigurationError, LeverageError
from leverage_paths.core.utils.transaction import private_key_sign_callback
from leverage_paths.core.utils.units import to_erc20_raw
from leverage_paths.leverage.orchestrator import PositionOrchestrator
from leverage_paths.leverage.types import RouteQuote, TransactionResult


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, RouteQuote):
        return {
            "hops": [{"pool": h.address, "fee": h.fee} for h in value.hops],
            "token_path": [t.address for t in value.token_path],
            "output_amount": str(value.output_amount),
        }
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, int) and not isinstance(value, bool):
        # uint256 values overflow JSON number precision
        return str(value)
    return value


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(_jsonable(data), indent=2, default=str))


def _orchestrator(chain_id: int, sign_callback: Callable | None = None):
    return PositionOrchestrator(ChainClient(chain_id, sign_callback=sign_callback))


def _signer() -> tuple[str, Callable]:
    private_key = get_private_key()
    if not private_key:
        raise ConfigurationError(
            "No signer configured; set wallet.private_key or LEVERAGE_PRIVATE_KEY"
        )
    return Account.from_key(private_key).address, private_key_sign_callback(
        private_key
    )


def _fail(exc: LeverageError) -> None:
    _echo_json({"ok": False, "error": type(exc).__name__, "details": str(exc)})
    sys.exit(1)


def _run(make_call: Callable[[], Awaitable[Any]]) -> None:
    try:
        result = asyncio.run(make_call())
    except LeverageError as exc:
        _fail(exc)
    if isinstance(result, TransactionResult):
        result = {"tx_hash": result.tx_hash, "result": result.result}
    _echo_json({"ok": True, "result": result})


def _wbtc_raw(amount: str) -> int:
    try:
        return to_erc20_raw(amount, WBTC_DECIMALS)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.group(name="leverage", help="Preview, open and close leveraged positions.")
@click.option("--config", "config_path", type=click.Path(), default=None)
@click.option("--chain-id", type=int, default=CHAIN_ID_ETHEREUM, show_default=True)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.pass_context
def leverage_cli(
    ctx: click.Context, config_path: str | None, chain_id: int, log_level: str
) -> None:
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper())
    if config_path:
        try:
            load_config(config_path, require_exists=True)
        except LeverageError as exc:
            _fail(exc)
    ctx.ensure_object(dict)
    ctx.obj["chain_id"] = chain_id


def _slippage_option(fn: Callable) -> Callable:
    return click.option(
        "--slippage-bps",
        type=click.IntRange(0, 10_000),
        default=None,
        help="Defaults to leverage.default_slippage_bps (50).",
    )(fn)


@leverage_cli.command(name="preview-open")
@click.argument("amount")
@click.argument("borrow")
@click.argument("strategy")
@_slippage_option
@click.pass_context
def preview_open_cmd(
    ctx: click.Context,
    amount: str,
    borrow: str,
    strategy: str,
    slippage_bps: int | None,
) -> None:
    """Quote an open of AMOUNT WBTC plus BORROW WBTC into STRATEGY."""
    collateral_raw, borrow_raw = _wbtc_raw(amount), _wbtc_raw(borrow)

    async def _call() -> Any:
        bps = get_default_slippage_bps() if slippage_bps is None else slippage_bps
        orchestrator = _orchestrator(ctx.obj["chain_id"])
        return await orchestrator.preview_open(
            collateral_raw, borrow_raw, strategy, bps
        )

    _run(_call)


@leverage_cli.command(name="preview-close")
@click.argument("nft_id", type=int)
@_slippage_option
@click.pass_context
def preview_close_cmd(
    ctx: click.Context, nft_id: int, slippage_bps: int | None
) -> None:
    """Quote the close of position NFT_ID."""

    async def _call() -> Any:
        bps = get_default_slippage_bps() if slippage_bps is None else slippage_bps
        orchestrator = _orchestrator(ctx.obj["chain_id"])
        return await orchestrator.preview_close(nft_id, bps)

    _run(_call)


@leverage_cli.command(name="position")
@click.argument("nft_id", type=int)
@click.pass_context
def position_cmd(ctx: click.Context, nft_id: int) -> None:
    async def _call() -> dict[str, Any]:
        orchestrator = _orchestrator(ctx.obj["chain_id"])
        entry = await orchestrator.get_position_state(nft_id)
        return entry.to_dict()

    _run(_call)


@leverage_cli.command(name="expiration")
@click.argument("nft_id", type=int)
@click.pass_context
def expiration_cmd(ctx: click.Context, nft_id: int) -> None:
    """Estimated minutes until NFT_ID expires (negative once expired)."""

    async def _call() -> dict[str, Any]:
        orchestrator = _orchestrator(ctx.obj["chain_id"])
        minutes = await orchestrator.get_estimated_expiration(nft_id)
        return {"minutes": minutes, "expired": minutes < 0}

    _run(_call)


@leverage_cli.command(name="positions")
@click.argument("address")
@click.pass_context
def positions_cmd(ctx: click.Context, address: str) -> None:
    async def _call() -> list[dict[str, Any]]:
        orchestrator = _orchestrator(ctx.obj["chain_id"])
        return await orchestrator.list_positions(address)

    _run(_call)


@leverage_cli.command(name="approve")
@click.argument("amount")
@click.pass_context
def approve_cmd(ctx: click.Context, amount: str) -> None:
    """Approve the position opener to spend AMOUNT WBTC."""
    raw = _wbtc_raw(amount)

    async def _call() -> TransactionResult:
        account, sign_callback = _signer()
        orchestrator = _orchestrator(ctx.obj["chain_id"], sign_callback)
        return await orchestrator.approve_spend(account, raw)

    _run(_call)


@leverage_cli.command(name="open")
@click.argument("amount")
@click.argument("borrow")
@click.argument("strategy")
@click.option("--min-shares", type=int, required=True)
@click.option("--payload", required=True, help="Hex payload from preview-open.")
@click.pass_context
def open_cmd(
    ctx: click.Context,
    amount: str,
    borrow: str,
    strategy: str,
    min_shares: int,
    payload: str,
) -> None:
    collateral_raw, borrow_raw = _wbtc_raw(amount), _wbtc_raw(borrow)

    async def _call() -> TransactionResult:
        account, sign_callback = _signer()
        orchestrator = _orchestrator(ctx.obj["chain_id"], sign_callback)
        return await orchestrator.open(
            collateral_raw, borrow_raw, min_shares, strategy, payload, account
        )

    _run(_call)


@leverage_cli.command(name="close")
@click.argument("nft_id", type=int)
@click.option("--min-out", type=int, required=True, help="Raw WBTC minimum.")
@click.option("--payload", required=True, help="Hex payload from preview-close.")
@click.pass_context
def close_cmd(ctx: click.Context, nft_id: int, min_out: int, payload: str) -> None:
    async def _call() -> TransactionResult:
        account, sign_callback = _signer()
        orchestrator = _orchestrator(ctx.obj["chain_id"], sign_callback)
        return await orchestrator.close(nft_id, min_out, account, payload)

    _run(_call)


@leverage_cli.command(name="claim")
@click.argument("nft_id", type=int)
@click.pass_context
def claim_cmd(ctx: click.Context, nft_id: int) -> None:
    """Claim the proceeds of an expired or liquidated position."""

    async def _call() -> TransactionResult:
        account, sign_callback = _signer()
        orchestrator = _orchestrator(ctx.obj["chain_id"], sign_callback)
        return await orchestrator.claim(nft_id, account)

    _run(_call)


def main() -> None:
    leverage_cli(obj={})


if __name__ == "__main__":
    main()
