"""Packed multi-hop swap paths and the ABI payload the position contracts decode.

A path is ``token0 | fee0 | token1 | fee1 | ... | tokenN``. Each token is a
20-byte address and each fee is a 3-byte big-endian ``uint24``. The path is
then wrapped in the ``(bytes path, uint256 deadline, uint256 minOut)`` tuple,
or ``(bytes path, uint256 deadline)`` when no minimum is carried.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError as AbiEncodingError
from eth_abi.packed import encode_packed
from eth_utils import to_checksum_address

from leverage_paths.core.errors import EncodingError
from leverage_paths.leverage.types import Hop, RouteQuote, Token

ADDRESS_SIZE = 20
FEE_SIZE = 3

PAYLOAD_ABI_TYPES = ["(bytes,uint256,uint256)"]
PAYLOAD_NO_MIN_ABI_TYPES = ["(bytes,uint256)"]


def _token_address(token: Token | str) -> str:
    return token.address if isinstance(token, Token) else str(token)


def build_path(
    hops: Sequence[Hop], tokens: Sequence[Token | str]
) -> tuple[list[str], list[Any]]:
    """Return the ``encode_packed`` types and values for a hop list.

    Starts from the token addresses in path order and inserts hop ``i``'s
    fee right after ``token[i]``.
    """
    if len(hops) != len(tokens) - 1:
        raise EncodingError(
            f"Path needs len(tokens) - 1 pools: got {len(hops)} pools "
            f"for {len(tokens)} tokens"
        )
    if not hops:
        raise EncodingError("Path needs at least one pool")

    types: list[str] = ["address"]
    values: list[Any] = [_token_address(tokens[0])]
    for hop, token in zip(hops, tokens[1:], strict=True):
        types.extend(["uint24", "address"])
        values.extend([int(hop.fee), _token_address(token)])
    return types, values


def encode_path(hops: Sequence[Hop], tokens: Sequence[Token | str]) -> bytes:
    types, values = build_path(hops, tokens)
    try:
        return encode_packed(types, values)
    except (AbiEncodingError, TypeError, ValueError) as exc:
        raise EncodingError(f"Failed to pack swap path: {exc}") from exc


def encode_route_path(quote: RouteQuote) -> bytes:
    return encode_path(quote.hops, quote.token_path)


def decode_path(path: bytes) -> tuple[list[str], list[int]]:
    """Split a packed path back into checksummed token addresses and fees."""
    step = ADDRESS_SIZE + FEE_SIZE
    if len(path) < ADDRESS_SIZE or (len(path) - ADDRESS_SIZE) % step:
        raise EncodingError(f"Packed path has invalid length {len(path)}")
    tokens = [to_checksum_address(path[:ADDRESS_SIZE])]
    fees: list[int] = []
    offset = ADDRESS_SIZE
    while offset < len(path):
        fees.append(int.from_bytes(path[offset : offset + FEE_SIZE], "big"))
        offset += FEE_SIZE
        tokens.append(to_checksum_address(path[offset : offset + ADDRESS_SIZE]))
        offset += ADDRESS_SIZE
    return tokens, fees


@dataclass(frozen=True)
class EncodedPayload:
    path: bytes
    deadline: int
    min_out: int | None = None

    def encode(self) -> bytes:
        try:
            if self.min_out is None:
                return encode(
                    PAYLOAD_NO_MIN_ABI_TYPES, [(self.path, int(self.deadline))]
                )
            return encode(
                PAYLOAD_ABI_TYPES,
                [(self.path, int(self.deadline), int(self.min_out))],
            )
        except (AbiEncodingError, TypeError, ValueError) as exc:
            raise EncodingError(f"Failed to ABI-encode payload: {exc}") from exc

    @classmethod
    def decode(cls, data: bytes | str, *, with_min_out: bool = True) -> EncodedPayload:
        if isinstance(data, str):
            try:
                data = bytes.fromhex(data.removeprefix("0x"))
            except ValueError as exc:
                raise EncodingError(f"Payload is not valid hex: {exc}") from exc
        types = PAYLOAD_ABI_TYPES if with_min_out else PAYLOAD_NO_MIN_ABI_TYPES
        try:
            (decoded,) = decode(types, data)
        except DecodingError as exc:
            raise EncodingError(f"Failed to decode payload: {exc}") from exc
        if with_min_out:
            path, deadline, min_out = decoded
            return cls(path=bytes(path), deadline=int(deadline), min_out=int(min_out))
        path, deadline = decoded
        return cls(path=bytes(path), deadline=int(deadline))


def build_payload(quote: RouteQuote, deadline: int, min_out: int | None) -> bytes:
    return EncodedPayload(
        path=encode_route_path(quote), deadline=deadline, min_out=min_out
    ).encode()
