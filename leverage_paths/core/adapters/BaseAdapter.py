from __future__ import annotations

from abc import ABC
from collections.abc import Callable
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from leverage_paths.core.constants.chains import CHAIN_ID_ETHEREUM


class BaseAdapter(ABC):
    """Shared adapter state: the target chain, the signer and the acting wallet.

    ``config["chain_id"]`` picks the chain (mainnet when absent). The wallet is
    checksummed once here; a read-only adapter has ``wallet_address = None``.
    """

    adapter_type: str | None = None

    def __init__(
        self,
        name: str,
        config: dict[str, Any] | None = None,
        *,
        sign_callback: Callable | None = None,
        wallet_address: str | None = None,
    ) -> None:
        self.name = name
        self.config = config or {}
        self.chain_id: int = int(self.config.get("chain_id", CHAIN_ID_ETHEREUM))
        self.sign_callback = sign_callback
        self.wallet_address: str | None = (
            to_checksum_address(wallet_address) if wallet_address else None
        )
        self.logger = logger.bind(
            adapter=self.__class__.__name__,
            chain_id=self.chain_id,
            wallet=self.wallet_address,
        )
