from leverage_paths.leverage.ledger import LedgerReader
from leverage_paths.leverage.orchestrator import PositionOrchestrator
from leverage_paths.leverage.payload import (
    EncodedPayload,
    build_path,
    build_payload,
    decode_path,
    encode_path,
)
from leverage_paths.leverage.pipeline import TransactionPipeline
from leverage_paths.leverage.registry import (
    ContractRegistry,
    ContractRole,
    resolve_registry,
)
from leverage_paths.leverage.route_resolver import SwapRouteResolver
from leverage_paths.leverage.types import (
    ClosePositionParams,
    Hop,
    LedgerEntry,
    OpenPositionParams,
    PipelineStage,
    PreviewCloseResult,
    PreviewOpenResult,
    RouteQuote,
    Token,
    TransactionResult,
)

__all__ = [
    "ClosePositionParams",
    "ContractRegistry",
    "ContractRole",
    "EncodedPayload",
    "Hop",
    "LedgerEntry",
    "LedgerReader",
    "OpenPositionParams",
    "PipelineStage",
    "PositionOrchestrator",
    "PreviewCloseResult",
    "PreviewOpenResult",
    "RouteQuote",
    "SwapRouteResolver",
    "Token",
    "TransactionPipeline",
    "TransactionResult",
    "build_path",
    "build_payload",
    "decode_path",
    "encode_path",
    "resolve_registry",
]
