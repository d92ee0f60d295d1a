from __future__ import annotations

from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

from leverage_paths.core.errors import LeverageError

NO_WALLET_MESSAGE = "wallet address not configured"

T = TypeVar("T")


def status_tuple(
    fn: Callable[..., Coroutine[Any, Any, T]],
) -> Callable[..., Coroutine[Any, Any, tuple[bool, T | str]]]:
    """Turn an async adapter method into one returning ``(ok, result_or_error)``.

    Known failures (``LeverageError``) are logged as warnings; anything else is
    logged with its traceback. Both come back as ``(False, str(exc))``.
    """

    @wraps(fn)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> tuple[bool, T | str]:
        try:
            return (True, await fn(self, *args, **kwargs))
        except LeverageError as exc:
            self.logger.warning(f"{fn.__name__} failed: {type(exc).__name__}: {exc}")
            return (False, str(exc))
        except Exception as exc:
            self.logger.exception(f"Unexpected error in {fn.__name__}: {exc}")
            return (False, str(exc))

    return wrapper  # type: ignore[return-value]


def require_wallet(fn: Callable) -> Callable:
    """Short-circuit to ``(False, NO_WALLET_MESSAGE)`` on a read-only adapter."""

    @wraps(fn)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        if not self.wallet_address:
            self.logger.warning(f"{fn.__name__} needs a wallet address")
            return (False, NO_WALLET_MESSAGE)
        return await fn(self, *args, **kwargs)

    return wrapper
