from __future__ import annotations

from typing import Any


class LeverageError(Exception):
    """Base class for every error raised by leverage_paths."""


class ConfigurationError(LeverageError):
    pass


class NotFoundError(LeverageError):
    pass


class ContractNotFound(NotFoundError):
    def __init__(self, chain_id: int, names: list[str]):
        self.chain_id = chain_id
        self.names = list(names)
        super().__init__(
            f"Registry for chain {chain_id} is missing: {', '.join(self.names)}"
        )


class RouteNotFound(NotFoundError):
    pass


class ValidationError(LeverageError, ValueError):
    pass


class InvalidAsset(ValidationError):
    pass


class EncodingError(LeverageError, ValueError):
    pass


class RemoteCallError(LeverageError):
    pass


class TransactionRevertedError(RemoteCallError):
    def __init__(
        self,
        txn_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


class PipelineError(RemoteCallError):
    """A simulate/submit/confirm step failed or produced nothing."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"[{stage}] {message}")
