from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from leverage_paths.core.clients.protocols import RegistryClientProtocol
from leverage_paths.core.clients.RegistryClient import ContractRecord
from leverage_paths.core.errors import ContractNotFound
from leverage_paths.leverage.pipeline import remote_call


class ContractRole(StrEnum):
    POSITION_OPENER = "PositionOpener"
    POSITION_CLOSER = "PositionCloser"
    POSITION_LEDGER = "PositionLedger"
    EXPIRED_VAULT = "ExpiredVault"


@dataclass(frozen=True)
class RegistryEntry:
    role: ContractRole
    address: str
    abi: list[dict[str, Any]]


class ContractRegistry:
    """Contracts deployed on one chain, keyed by role."""

    def __init__(self, chain_id: int, entries: dict[ContractRole, RegistryEntry]):
        self.chain_id = chain_id
        self._entries = dict(entries)

    @classmethod
    def from_records(
        cls,
        chain_id: int,
        records: Iterable[ContractRecord],
        required: Iterable[ContractRole] = (),
    ) -> ContractRegistry:
        known = {role.value: role for role in ContractRole}
        entries: dict[ContractRole, RegistryEntry] = {}
        for record in records:
            role = known.get(record["name"])
            if role is None:
                continue
            entries[role] = RegistryEntry(
                role=role,
                address=to_checksum_address(record["address"]),
                abi=list(record["abi"]),
            )

        missing = [role.value for role in required if role not in entries]
        if missing:
            raise ContractNotFound(chain_id, missing)
        return cls(chain_id, entries)

    def __contains__(self, role: ContractRole) -> bool:
        return role in self._entries

    def __getitem__(self, role: ContractRole) -> RegistryEntry:
        entry = self._entries.get(role)
        if entry is None:
            raise ContractNotFound(self.chain_id, [role.value])
        return entry


async def resolve_registry(
    client: RegistryClientProtocol, chain_id: int, *roles: ContractRole
) -> ContractRegistry:
    """Fetch the registry for ``chain_id`` and require ``roles`` to be present.

    Always fetched fresh; the registry is never cached between operations.
    """
    records = await remote_call("Registry lookup", client.get_contracts(chain_id))
    registry = ContractRegistry.from_records(chain_id, records, required=roles)
    names = ", ".join(r.value for r in roles) or "registry"
    logger.debug(f"Resolved {names} on chain {chain_id}")
    return registry
