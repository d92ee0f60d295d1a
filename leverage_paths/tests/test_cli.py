from __future__ import annotations

import json
import sys
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner
from loguru import logger

from leverage_paths.cli import leverage_cli
from leverage_paths.core.config import CONFIG
from leverage_paths.core.errors import RouteNotFound
from leverage_paths.leverage.types import (
    LedgerEntry,
    PreviewOpenResult,
    TransactionResult,
)

STRATEGY = "0x5000000000000000000000000000000000000005"
PRIVATE_KEY = "0x" + "11" * 32


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def orchestrator():
    orchestrator = AsyncMock()
    with patch("leverage_paths.cli._orchestrator", return_value=orchestrator) as make:
        orchestrator.factory = make
        yield orchestrator


def _invoke(*args):
    return CliRunner().invoke(leverage_cli, list(args), obj={})


def _json(result):
    return json.loads(result.stdout)


def test_preview_open_converts_amounts(orchestrator):
    orchestrator.preview_open.return_value = PreviewOpenResult(
        minimum_expected_shares=995_000,
        payload=b"\xde\xad",
        expected_shares=1_000_000,
        quote=None,
    )

    result = _invoke("preview-open", "1", "0.5", STRATEGY, "--slippage-bps", "50")

    assert result.exit_code == 0, result.output
    body = _json(result)
    assert body["ok"] is True
    assert body["result"]["minimum_expected_shares"] == "995000"
    assert body["result"]["payload"] == "0xdead"
    orchestrator.preview_open.assert_awaited_once_with(10**8, 5 * 10**7, STRATEGY, 50)


def test_preview_open_default_slippage_from_config(orchestrator):
    CONFIG["leverage"] = {"default_slippage_bps": 30}
    orchestrator.preview_open.return_value = PreviewOpenResult(
        minimum_expected_shares=1, payload=b"\x01", expected_shares=1, quote=None
    )

    result = _invoke("preview-open", "1", "0", STRATEGY)

    assert result.exit_code == 0, result.output
    assert orchestrator.preview_open.await_args.args[3] == 30


def test_invalid_amount_is_usage_error(orchestrator):
    result = _invoke("preview-open", "abc", "0", STRATEGY)
    assert result.exit_code == 2
    orchestrator.preview_open.assert_not_awaited()


def test_slippage_out_of_range_is_usage_error(orchestrator):
    result = _invoke("preview-close", "7", "--slippage-bps", "10001")
    assert result.exit_code == 2


def test_domain_error_reported_as_json(orchestrator):
    orchestrator.preview_close.side_effect = RouteNotFound("no route")

    result = _invoke("preview-close", "7")

    assert result.exit_code == 1
    assert _json(result) == {
        "ok": False,
        "error": "RouteNotFound",
        "details": "no route",
    }


def test_position_uses_ledger_field_names(orchestrator):
    orchestrator.get_position_state.return_value = LedgerEntry(
        collateral_amount=1,
        strategy_address=STRATEGY,
        strategy_shares=2,
        wbtc_debt_amount=3,
        position_open_block=4,
        position_expiration_block=5,
        liquidation_buffer=6,
        state=0,
        claimable_amount=0,
    )

    result = _invoke("position", "7")

    assert result.exit_code == 0, result.output
    assert _json(result)["result"]["positionExpirationBlock"] == "5"


def test_expiration_flags_expired(orchestrator):
    orchestrator.get_estimated_expiration.return_value = -3.0

    result = _invoke("expiration", "7")

    assert _json(result)["result"] == {"minutes": -3.0, "expired": True}


def test_claim_without_key_fails(orchestrator, monkeypatch):
    monkeypatch.delenv("LEVERAGE_PRIVATE_KEY", raising=False)
    CONFIG.pop("wallet", None)

    result = _invoke("claim", "7")

    assert result.exit_code == 1
    assert _json(result)["error"] == "ConfigurationError"
    orchestrator.claim.assert_not_awaited()


def test_claim_signs_with_configured_key(orchestrator):
    CONFIG["wallet"] = {"private_key": PRIVATE_KEY}
    orchestrator.claim.return_value = TransactionResult(
        result=True, receipt={"status": 1}, tx_hash="0xabc"
    )

    result = _invoke("--chain-id", "1", "claim", "7")

    assert result.exit_code == 0, result.output
    assert _json(result)["result"] == {"tx_hash": "0xabc", "result": True}
    nft_id, account = orchestrator.claim.await_args.args
    assert nft_id == 7
    assert account.startswith("0x") and len(account) == 42
    chain_id, sign_callback = orchestrator.factory.call_args.args
    assert chain_id == 1
    assert callable(sign_callback)


def test_open_passes_payload_verbatim(orchestrator):
    CONFIG["wallet"] = {"private_key": PRIVATE_KEY}
    orchestrator.open.return_value = TransactionResult(
        result=None, receipt={"status": 1}, tx_hash="0xabc"
    )

    result = _invoke(
        "open", "1", "2", STRATEGY, "--min-shares", "995000", "--payload", "0xdead"
    )

    assert result.exit_code == 0, result.output
    args = orchestrator.open.await_args.args
    assert args[:5] == (10**8, 2 * 10**8, 995_000, STRATEGY, "0xdead")


def test_bad_leverage_config_reported_as_json():
    CONFIG["leverage"] = {"blocks_per_minute": 0}

    result = _invoke("preview-open", "1", "0", STRATEGY)

    assert result.exit_code == 1
    body = _json(result)
    assert body["ok"] is False
    assert body["error"] == "ConfigurationError"
    assert "blocks_per_minute" in body["details"]


def test_missing_config_file_reported_as_json(tmp_path):
    result = _invoke("--config", str(tmp_path / "nope.json"), "position", "7")

    assert result.exit_code == 1
    body = _json(result)
    assert body["ok"] is False
    assert body["error"] == "ConfigurationError"
    assert "nope.json" in body["details"]
