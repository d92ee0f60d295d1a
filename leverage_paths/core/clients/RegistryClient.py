from __future__ import annotations

from typing import Any, Required, TypedDict

import httpx

from leverage_paths.core.clients.HttpClient import HttpClient
from leverage_paths.core.config import get_registry_url
from leverage_paths.core.errors import RemoteCallError


class ContractRecord(TypedDict):
    name: Required[str]
    address: Required[str]
    abi: Required[list[dict[str, Any]]]


class RegistryClient(HttpClient):
    """Fetches the per-chain list of named leverage contracts with their ABIs."""

    async def get_contracts(self, chain_id: int) -> list[ContractRecord]:
        url = get_registry_url(chain_id)
        try:
            response = await self._request("GET", url)
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RemoteCallError(
                f"Registry fetch failed for chain {chain_id}: {exc}"
            ) from exc
        return self._extract_records(data, chain_id)

    def _extract_records(self, data: Any, chain_id: int) -> list[ContractRecord]:
        if isinstance(data, dict):
            if "contracts" in data:
                data = data["contracts"]
            else:
                data = data.get(str(chain_id), data.get(chain_id))
        if not isinstance(data, list):
            raise RemoteCallError(
                f"Unexpected registry payload for chain {chain_id}: {type(data).__name__}"
            )
        records: list[ContractRecord] = []
        for item in data:
            if not isinstance(item, dict) or not {"name", "address"} <= item.keys():
                raise RemoteCallError(f"Malformed registry entry: {item!r}")
            records.append(
                {
                    "name": str(item["name"]),
                    "address": str(item["address"]),
                    "abi": list(item.get("abi") or []),
                }
            )
        return records


REGISTRY_CLIENT = RegistryClient()
