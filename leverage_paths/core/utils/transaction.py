"""Fill, sign, broadcast and confirm transactions across every configured RPC.

Each filler takes a transaction dict and returns a filled copy. Values that
differ between RPCs are resolved towards the safest choice (highest gas
estimate, highest pending nonce, highest fees).
"""

import asyncio
import math
from collections.abc import Callable
from typing import Any

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3

from leverage_paths.core.constants.base import (
    DEFAULT_TRANSACTION_TIMEOUT,
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from leverage_paths.core.errors import RemoteCallError, TransactionRevertedError
from leverage_paths.core.utils.web3 import (
    get_transaction_chain_id,
    web3_from_chain_id,
    web3s_from_chain_id,
)

PRIORITY_FEE_LOOKBACK_BLOCKS = 10
PRIORITY_FEE_PERCENTILE = 80


def _get_transaction_from_address(transaction: dict) -> str:
    if "from" not in transaction:
        raise ValueError("Transaction does not contain from address")
    return AsyncWeb3.to_checksum_address(transaction["from"])


def _normalize_hash(txn_hash: Any) -> str:
    if isinstance(txn_hash, (bytes, bytearray)):
        txn_hash = bytes(txn_hash).hex()
    txn_hash = str(txn_hash)
    return txn_hash if txn_hash.startswith("0x") else f"0x{txn_hash}"


async def _gather_over_rpcs(chain_id: int, query: Callable) -> list[Any]:
    async with web3s_from_chain_id(chain_id) as web3s:
        return list(await asyncio.gather(*(query(web3) for web3 in web3s)))


async def nonce_transaction(transaction: dict):
    sender = _get_transaction_from_address(transaction)

    async def pending_nonce(web3: AsyncWeb3) -> int:
        return await web3.eth.get_transaction_count(sender, block_identifier="pending")

    nonces = await _gather_over_rpcs(
        get_transaction_chain_id(transaction), pending_nonce
    )
    return {**transaction, "nonce": max(nonces)}


async def _priority_fee(web3: AsyncWeb3) -> int:
    history = await web3.eth.fee_history(
        PRIORITY_FEE_LOOKBACK_BLOCKS, "latest", [PRIORITY_FEE_PERCENTILE]
    )
    rewards = [block_rewards[0] for block_rewards in history["reward"]]
    return sum(rewards) // len(rewards)


async def _base_fee(web3: AsyncWeb3) -> int:
    block = await web3.eth.get_block("latest")
    return block["baseFeePerGas"]


async def gas_price_transaction(transaction: dict):
    async def fee_inputs(web3: AsyncWeb3) -> tuple[int, int]:
        return await _base_fee(web3), await _priority_fee(web3)

    samples = await _gather_over_rpcs(
        get_transaction_chain_id(transaction), fee_inputs
    )
    base_fee = max(sample[0] for sample in samples)
    tip = int(max(sample[1] for sample in samples) * SUGGESTED_PRIORITY_FEE_MULTIPLIER)
    return {
        **transaction,
        "maxPriorityFeePerGas": tip,
        "maxFeePerGas": int(base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER + tip),
    }


async def gas_limit_transaction(transaction: dict):
    # An existing gas field would cap the estimate.
    unbounded = {k: v for k, v in transaction.items() if k != "gas"}

    async def estimate(web3: AsyncWeb3) -> int:
        try:
            return await web3.eth.estimate_gas(unbounded, block_identifier="latest")
        except Exception as exc:
            logger.info(f"Gas estimate failed on {web3.provider.endpoint_uri}: {exc}")
            return 0

    estimates = await _gather_over_rpcs(get_transaction_chain_id(unbounded), estimate)
    if max(estimates) == 0:
        logger.error("Gas estimation failed on all RPCs")
        raise RemoteCallError("Gas estimation failed on all RPCs")

    # Swaps can use more gas at inclusion than at estimation.
    return {**unbounded, "gas": math.ceil(max(estimates) * GAS_BUFFER_MULTIPLIER)}


async def broadcast_transaction(chain_id: int, signed_transaction: bytes) -> str:
    async with web3_from_chain_id(chain_id) as web3:
        return _normalize_hash(await web3.eth.send_raw_transaction(signed_transaction))


async def wait_for_transaction_receipt(
    chain_id: int,
    txn_hash: str,
    poll_interval: float = 0.5,
    timeout: int = DEFAULT_TRANSACTION_TIMEOUT,
) -> dict:
    txn_hash = _normalize_hash(txn_hash)
    async with web3_from_chain_id(chain_id) as web3:
        receipt = dict(
            await web3.eth.wait_for_transaction_receipt(
                txn_hash, poll_latency=poll_interval, timeout=timeout
            )
        )
    if receipt.get("status") == 0:
        raise TransactionRevertedError(
            txn_hash, receipt, message=f"Transaction reverted (status=0): {txn_hash}"
        )
    return receipt


async def send_transaction(transaction: dict, sign_callback: Callable | None) -> str:
    """Fill gas, nonce and fees, sign via ``sign_callback`` and broadcast."""
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    chain_id = get_transaction_chain_id(transaction)
    logger.info(f"Sending transaction to {transaction.get('to')} on chain {chain_id}")
    for fill in (gas_limit_transaction, nonce_transaction, gas_price_transaction):
        transaction = await fill(transaction)
    txn_hash = await broadcast_transaction(chain_id, await sign_callback(transaction))
    logger.info(f"Transaction broadcast: {txn_hash}")
    return txn_hash


def private_key_sign_callback(private_key: str) -> Callable:
    account = Account.from_key(private_key)

    async def sign_callback(tx: dict) -> bytes:
        return account.sign_transaction(tx).raw_transaction

    return sign_callback


def encode_call(
    web3: AsyncWeb3,
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
) -> dict[str, Any]:
    """Build the unsigned ``{chainId, from, to, data, value}`` request for a call."""
    try:
        contract = web3.eth.contract(address=web3.to_checksum_address(target), abi=abi)
        data = contract.encode_abi(fn_name, args)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc

    return {
        "chainId": int(chain_id),
        "from": AsyncWeb3.to_checksum_address(from_address),
        "to": AsyncWeb3.to_checksum_address(target),
        "data": data,
        "value": int(value),
    }
