from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from leverage_paths.core.errors import ContractNotFound, RemoteCallError
from leverage_paths.leverage.registry import (
    ContractRegistry,
    ContractRole,
    resolve_registry,
)
from leverage_paths.testing.fakes import (
    CLOSER_ADDRESS,
    OPENER_ADDRESS,
    fake_registry_client,
    registry_records,
)


def test_from_records_maps_roles():
    registry = ContractRegistry.from_records(1, registry_records())
    opener = registry[ContractRole.POSITION_OPENER]
    assert opener.address == OPENER_ADDRESS
    assert opener.abi == [{"type": "function", "name": "PositionOpenerFn"}]
    assert ContractRole.EXPIRED_VAULT in registry


def test_unknown_names_are_ignored():
    records = registry_records([ContractRole.POSITION_OPENER]) + [
        {"name": "SomethingElse", "address": CLOSER_ADDRESS, "abi": []}
    ]
    registry = ContractRegistry.from_records(1, records)
    assert ContractRole.POSITION_CLOSER not in registry


def test_lowercase_addresses_are_checksummed():
    records = [
        {
            "name": "PositionCloser",
            "address": "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",
            "abi": [],
        }
    ]
    registry = ContractRegistry.from_records(1, records)
    assert (
        registry[ContractRole.POSITION_CLOSER].address
        == "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
    )


def test_missing_required_roles_listed_together():
    with pytest.raises(ContractNotFound) as exc_info:
        ContractRegistry.from_records(
            1,
            registry_records([ContractRole.POSITION_OPENER]),
            required=[ContractRole.POSITION_CLOSER, ContractRole.POSITION_LEDGER],
        )
    assert exc_info.value.names == ["PositionCloser", "PositionLedger"]
    assert exc_info.value.chain_id == 1


def test_getitem_missing_role_raises():
    registry = ContractRegistry.from_records(1, [])
    with pytest.raises(ContractNotFound):
        registry[ContractRole.EXPIRED_VAULT]


@pytest.mark.asyncio
async def test_resolve_registry_fetches_every_time():
    client = fake_registry_client()
    await resolve_registry(client, 1, ContractRole.POSITION_OPENER)
    await resolve_registry(client, 1, ContractRole.POSITION_OPENER)
    assert client.get_contracts.await_count == 2
    client.get_contracts.assert_awaited_with(1)


@pytest.mark.asyncio
async def test_resolve_registry_missing_role():
    client = fake_registry_client([ContractRole.POSITION_LEDGER])
    with pytest.raises(ContractNotFound):
        await resolve_registry(client, 1, ContractRole.POSITION_OPENER)


@pytest.mark.asyncio
async def test_resolve_registry_wraps_client_failure():
    client = AsyncMock()
    client.get_contracts = AsyncMock(side_effect=OSError("connection reset"))
    with pytest.raises(RemoteCallError, match="connection reset"):
        await resolve_registry(client, 1, ContractRole.POSITION_OPENER)
