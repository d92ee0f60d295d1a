from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from web3 import AsyncWeb3

from leverage_paths.core.constants.base import (
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from leverage_paths.core.errors import RemoteCallError, TransactionRevertedError
from leverage_paths.core.utils.transaction import (
    _get_transaction_from_address,
    _normalize_hash,
    gas_limit_transaction,
    gas_price_transaction,
    nonce_transaction,
    private_key_sign_callback,
    send_transaction,
    wait_for_transaction_receipt,
)
from leverage_paths.core.utils.web3 import get_transaction_chain_id

RANDOM_USER_0 = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
TX_MODULE = "leverage_paths.core.utils.transaction"


def _web3s_context(mock_web3s_context, web3s):
    mock_web3s_context.return_value.__aenter__.return_value = web3s


class TestGetChainId:
    def test_valid_chain_id(self):
        assert get_transaction_chain_id({"chainId": 1}) == 1

    def test_chain_id_as_string(self):
        assert get_transaction_chain_id({"chainId": "1"}) == 1

    def test_empty_transaction(self):
        with pytest.raises(ValueError, match="Transaction does not contain chainId"):
            get_transaction_chain_id({})


class TestGetFromAddress:
    def test_lowercase_address_converted_to_checksum(self):
        result = _get_transaction_from_address({"from": RANDOM_USER_0.lower()})
        assert AsyncWeb3.is_checksum_address(result)
        assert result == RANDOM_USER_0

    def test_empty_transaction(self):
        with pytest.raises(
            ValueError, match="Transaction does not contain from address"
        ):
            _get_transaction_from_address({})


def test_normalize_hash():
    assert _normalize_hash(b"\xab" * 32) == "0x" + "ab" * 32
    assert _normalize_hash("ab" * 32) == "0x" + "ab" * 32
    assert _normalize_hash("0x" + "ab" * 32) == "0x" + "ab" * 32


@pytest.mark.asyncio
class TestNonceTransaction:
    @patch(f"{TX_MODULE}.web3s_from_chain_id")
    async def test_multiple_web3s_returns_max_nonce(self, mock_web3s_context):
        web3s = []
        for nonce in (5, 8, 6):
            web3 = MagicMock()
            web3.eth.get_transaction_count = AsyncMock(return_value=nonce)
            web3s.append(web3)
        _web3s_context(mock_web3s_context, web3s)

        result = await nonce_transaction({"from": RANDOM_USER_0, "chainId": 1})

        assert result["nonce"] == 8
        for web3 in web3s:
            web3.eth.get_transaction_count.assert_called_once_with(
                RANDOM_USER_0, block_identifier="pending"
            )

    @patch(f"{TX_MODULE}.web3s_from_chain_id")
    async def test_preserves_existing_fields(self, mock_web3s_context):
        web3 = MagicMock()
        web3.eth.get_transaction_count = AsyncMock(return_value=5)
        _web3s_context(mock_web3s_context, [web3])

        transaction = {"from": RANDOM_USER_0, "chainId": 1, "data": "0x1234"}
        result = await nonce_transaction(transaction)

        assert result["data"] == "0x1234"
        assert "nonce" not in transaction


@pytest.mark.asyncio
class TestGasLimitTransaction:
    @patch(f"{TX_MODULE}.web3s_from_chain_id")
    async def test_buffers_highest_estimate(self, mock_web3s_context):
        low, high = MagicMock(), MagicMock()
        low.eth.estimate_gas = AsyncMock(return_value=100_000)
        high.eth.estimate_gas = AsyncMock(return_value=200_000)
        _web3s_context(mock_web3s_context, [low, high])

        result = await gas_limit_transaction(
            {"from": RANDOM_USER_0, "chainId": 1, "gas": 1}
        )

        assert result["gas"] >= int(200_000 * GAS_BUFFER_MULTIPLIER)
        sent = high.eth.estimate_gas.call_args.args[0]
        assert "gas" not in sent

    @patch(f"{TX_MODULE}.web3s_from_chain_id")
    async def test_all_estimates_failing_raises(self, mock_web3s_context):
        web3 = MagicMock()
        web3.eth.estimate_gas = AsyncMock(side_effect=ValueError("execution reverted"))
        web3.provider.endpoint_uri = "http://rpc"
        _web3s_context(mock_web3s_context, [web3])

        with pytest.raises(RemoteCallError, match="Gas estimation failed"):
            await gas_limit_transaction({"from": RANDOM_USER_0, "chainId": 1})


@pytest.mark.asyncio
class TestGasPriceTransaction:
    @patch(f"{TX_MODULE}.web3s_from_chain_id")
    async def test_eip_1559_fees(self, mock_web3s_context):
        web3 = MagicMock()
        web3.eth.get_block = AsyncMock(return_value={"baseFeePerGas": 10})
        web3.eth.fee_history = AsyncMock(return_value={"reward": [[2], [4]]})
        _web3s_context(mock_web3s_context, [web3])

        result = await gas_price_transaction({"chainId": 1})

        priority_fee = int(3 * SUGGESTED_PRIORITY_FEE_MULTIPLIER)
        assert result["maxPriorityFeePerGas"] == priority_fee
        assert result["maxFeePerGas"] == int(
            10 * MAX_BASE_FEE_GROWTH_MULTIPLIER + 3 * SUGGESTED_PRIORITY_FEE_MULTIPLIER
        )
        assert "gasPrice" not in result


@pytest.mark.asyncio
class TestWaitForReceipt:
    @patch(f"{TX_MODULE}.web3_from_chain_id")
    async def test_success_receipt(self, mock_web3_context):
        web3 = MagicMock()
        web3.eth.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 1, "blockNumber": 12}
        )
        mock_web3_context.return_value.__aenter__.return_value = web3

        receipt = await wait_for_transaction_receipt(1, "ab" * 32)

        assert receipt["blockNumber"] == 12
        waited_for = web3.eth.wait_for_transaction_receipt.call_args.args[0]
        assert waited_for == "0x" + "ab" * 32

    @patch(f"{TX_MODULE}.web3_from_chain_id")
    async def test_reverted_receipt_raises(self, mock_web3_context):
        web3 = MagicMock()
        web3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 0})
        mock_web3_context.return_value.__aenter__.return_value = web3

        with pytest.raises(TransactionRevertedError) as exc_info:
            await wait_for_transaction_receipt(1, "0x" + "cd" * 32)
        assert exc_info.value.txn_hash == "0x" + "cd" * 32
        assert exc_info.value.receipt == {"status": 0}


@pytest.mark.asyncio
class TestSendTransaction:
    async def test_requires_sign_callback(self):
        with pytest.raises(ValueError, match="sign_callback"):
            await send_transaction({"chainId": 1}, None)

    async def test_fills_signs_and_broadcasts(self):
        sign_callback = AsyncMock(return_value=b"\x01\x02")
        transaction = {"from": RANDOM_USER_0, "chainId": 1}

        with (
            patch(
                f"{TX_MODULE}.gas_limit_transaction",
                AsyncMock(side_effect=lambda tx: {**tx, "gas": 21_000}),
            ),
            patch(
                f"{TX_MODULE}.nonce_transaction",
                AsyncMock(side_effect=lambda tx: {**tx, "nonce": 3}),
            ),
            patch(
                f"{TX_MODULE}.gas_price_transaction",
                AsyncMock(side_effect=lambda tx: {**tx, "maxFeePerGas": 9}),
            ),
            patch(
                f"{TX_MODULE}.broadcast_transaction",
                AsyncMock(return_value="0x" + "ef" * 32),
            ) as broadcast,
        ):
            tx_hash = await send_transaction(transaction, sign_callback)

        assert tx_hash == "0x" + "ef" * 32
        signed_tx = sign_callback.call_args.args[0]
        assert signed_tx["gas"] == 21_000
        assert signed_tx["nonce"] == 3
        assert signed_tx["maxFeePerGas"] == 9
        broadcast.assert_awaited_once_with(1, b"\x01\x02")


@pytest.mark.asyncio
async def test_private_key_sign_callback_signs():
    callback = private_key_sign_callback("0x" + "11" * 32)
    raw = await callback(
        {
            "chainId": 1,
            "nonce": 0,
            "to": RANDOM_USER_0,
            "value": 0,
            "gas": 21_000,
            "maxFeePerGas": 2_000_000_000,
            "maxPriorityFeePerGas": 1_000_000_000,
            "data": "0x",
        }
    )
    assert isinstance(raw, bytes)
    assert len(raw) > 0
