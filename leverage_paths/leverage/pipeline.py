from __future__ import annotations

from collections.abc import Awaitable
from typing import Any, TypeVar

from loguru import logger

from leverage_paths.core.clients.protocols import ChainClientProtocol
from leverage_paths.core.errors import LeverageError, PipelineError, RemoteCallError
from leverage_paths.leverage.types import PipelineStage, TransactionResult


T = TypeVar("T")


async def remote_call(description: str, awaitable: Awaitable[T]) -> T:
    """Await a collaborator call, re-raising foreign errors as ``RemoteCallError``."""
    try:
        return await awaitable
    except LeverageError:
        raise
    except Exception as exc:
        raise RemoteCallError(f"{description} failed: {exc}") from exc


class TransactionPipeline:
    """One simulate -> submit -> confirm run. Create a fresh instance per call.

    Every step must produce a value; an empty result or an exception moves the
    pipeline to ``FAILED`` and raises ``PipelineError`` naming the stage.
    Nothing is retried.
    """

    def __init__(self, chain: ChainClientProtocol, label: str) -> None:
        self.chain = chain
        self.label = label
        self.stage = PipelineStage.IDLE
        self.logger = logger.bind(pipeline=label)

    def _advance(self, stage: PipelineStage) -> None:
        self.logger.info(f"{self.label}: {self.stage} -> {stage}")
        self.stage = stage

    def _fail(self, message: str) -> PipelineError:
        failed_at = self.stage
        self.stage = PipelineStage.FAILED
        self.logger.error(f"{self.label} failed while {failed_at}: {message}")
        return PipelineError(failed_at, f"{self.label}: {message}")

    async def _step(self, awaitable: Awaitable[Any], empty_message: str) -> Any:
        try:
            value = await awaitable
        except Exception as exc:
            raise self._fail(str(exc)) from exc
        if not value:
            raise self._fail(empty_message)
        return value

    async def run(
        self,
        *,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: list[Any],
        account: str,
        entry_stage: PipelineStage | None = None,
    ) -> TransactionResult:
        if entry_stage is not None:
            self._advance(entry_stage)
        self._advance(PipelineStage.SIMULATING)
        simulation = await self._step(
            self.chain.simulate_contract(address, abi, function_name, args, account),
            "simulation returned no result",
        )
        if not simulation.request:
            raise self._fail("simulation returned no request")

        self._advance(PipelineStage.SUBMITTING)
        tx_hash = await self._step(
            self.chain.write_contract(simulation.request),
            "submission returned no transaction hash",
        )

        self._advance(PipelineStage.CONFIRMING)
        receipt = await self._step(
            self.chain.wait_for_transaction_receipt(tx_hash),
            "no transaction receipt",
        )

        self._advance(PipelineStage.DONE)
        return TransactionResult(
            result=simulation.result, receipt=dict(receipt), tx_hash=str(tx_hash)
        )
