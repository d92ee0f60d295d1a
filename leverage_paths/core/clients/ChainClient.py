from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from leverage_paths.core.errors import ConfigurationError
from leverage_paths.core.utils.transaction import (
    encode_call,
    send_transaction,
    wait_for_transaction_receipt,
)
from leverage_paths.core.utils.web3 import web3_from_chain_id


@dataclass
class SimulationResult:
    request: dict[str, Any] | None
    result: Any


class ChainClient:
    """Read/simulate/write access to one EVM chain through web3.py.

    RPC endpoints come from ``CONFIG["rpc_urls"]``. Writes are signed by
    ``sign_callback`` (``async (tx: dict) -> bytes``).
    """

    def __init__(
        self, chain_id: int | None, sign_callback: Callable | None = None
    ) -> None:
        self._chain_id = int(chain_id) if chain_id is not None else None
        self.sign_callback = sign_callback

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            raise ConfigurationError("Chain client is not initialized with a chain ID")
        return self._chain_id

    async def read_contract(
        self,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any] | None = None,
    ) -> Any:
        async with web3_from_chain_id(self.chain_id) as web3:
            contract = web3.eth.contract(
                address=web3.to_checksum_address(address), abi=abi
            )
            fn = getattr(contract.functions, function_name)
            return await fn(*(args or [])).call()

    async def simulate_contract(
        self,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any],
        account: str,
    ) -> SimulationResult:
        async with web3_from_chain_id(self.chain_id) as web3:
            request = encode_call(
                web3,
                target=address,
                abi=abi,
                fn_name=function_name,
                args=args,
                from_address=account,
                chain_id=self.chain_id,
            )
            contract = web3.eth.contract(
                address=web3.to_checksum_address(address), abi=abi
            )
            fn = getattr(contract.functions, function_name)
            result = await fn(*args).call({"from": request["from"]})
        logger.debug(f"Simulated {function_name} on {address}: {result!r}")
        return SimulationResult(request=request, result=result)

    async def write_contract(self, request: dict[str, Any]) -> str:
        if self.sign_callback is None:
            raise ConfigurationError("Chain client has no signer for writes")
        return await send_transaction(request, self.sign_callback)

    async def wait_for_transaction_receipt(self, tx_hash: str) -> dict[str, Any]:
        return await wait_for_transaction_receipt(self.chain_id, tx_hash)

    async def get_block_number(self) -> int:
        async with web3_from_chain_id(self.chain_id) as web3:
            return int(await web3.eth.block_number)
