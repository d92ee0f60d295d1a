import json
import os
from pathlib import Path
from typing import Any

from leverage_paths.core.constants.base import (
    DEFAULT_BLOCKS_PER_MINUTE,
    DEFAULT_DEADLINE_BUFFER_SECONDS,
    DEFAULT_SLIPPAGE_BPS,
)
from leverage_paths.core.constants.contracts import (
    LEVERAGE_REGISTRY_URLS,
    UNISWAP_ROUTING_API_URL,
)
from leverage_paths.core.errors import ConfigurationError

_CONFIG_ENV_KEYS = ("LEVERAGE_CONFIG_PATH", "LEVERAGE_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise ConfigurationError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {cfg_path}: {exc}") from exc


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def _chain_keyed(mapping: dict[Any, Any], chain_id: int) -> Any:
    value = mapping.get(str(chain_id))
    if value is None:
        value = mapping.get(chain_id)  # allow int keys
    return value


def _leverage_section() -> dict[str, Any]:
    return CONFIG.get("leverage", {}) or {}


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("rpc_urls", {}) or {}


def get_registry_url(chain_id: int) -> str:
    configured = _leverage_section().get("registry_urls", {}) or {}
    url = _chain_keyed(configured, chain_id) or LEVERAGE_REGISTRY_URLS.get(chain_id)
    if not url:
        raise ConfigurationError(f"No contract registry URL for chain ID {chain_id}")
    return str(url).strip()


def get_positions_api_url(chain_id: int) -> str:
    configured = _leverage_section().get("positions_api_urls", {}) or {}
    url = _chain_keyed(configured, chain_id)
    if not url:
        raise ConfigurationError(f"No positions API URL for chain ID {chain_id}")
    return str(url).strip()


def get_router_url() -> str:
    url = _leverage_section().get("router_url")
    if url:
        return str(url).strip()
    return UNISWAP_ROUTING_API_URL


def get_router_api_key() -> str | None:
    api_key = _leverage_section().get("router_api_key")
    if api_key:
        return str(api_key).strip()
    return os.environ.get("LEVERAGE_ROUTER_API_KEY")


def get_deadline_buffer_seconds() -> int:
    return int(
        _leverage_section().get(
            "deadline_buffer_seconds", DEFAULT_DEADLINE_BUFFER_SECONDS
        )
    )


def get_blocks_per_minute() -> float:
    value = float(
        _leverage_section().get("blocks_per_minute", DEFAULT_BLOCKS_PER_MINUTE)
    )
    if value <= 0:
        raise ConfigurationError("leverage.blocks_per_minute must be positive")
    return value


def get_default_slippage_bps() -> int:
    return int(_leverage_section().get("default_slippage_bps", DEFAULT_SLIPPAGE_BPS))


def get_private_key() -> str | None:
    wallet = CONFIG.get("wallet", {}) or {}
    value = wallet.get("private_key")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return os.environ.get("LEVERAGE_PRIVATE_KEY")
