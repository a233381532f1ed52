"""
Shared plumbing for gateway operations.

``gateway_operation`` binds the request's logging context, times the call
and makes sure only classified ``GatewayError``s leave an operation.
"""

import functools
import time
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from ...services.evm import to_base_units
from ...services.tokens import TokenInfo, TokenNotFoundError, TokenRegistry
from ..failures.errors import GatewayError, InvalidRequestError

logger = structlog.stdlib.get_logger("gateway.operations")

T = TypeVar("T")


def gateway_operation(name: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorate ``async def op(chain, ...)`` as a named gateway operation."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(chain: Any, *args: Any, **kwargs: Any) -> T:
            with structlog.contextvars.bound_contextvars(operation=name, network=chain.name):
                start = time.perf_counter()
                outcome = "ok"
                try:
                    return await func(chain, *args, **kwargs)
                except GatewayError as e:
                    outcome = e.kind.value
                    raise
                except Exception as e:
                    error = chain.classifier.wrap(e)
                    outcome = error.kind.value
                    raise error from e
                finally:
                    duration_ms = round((time.perf_counter() - start) * 1000, 1)
                    log = logger.info if outcome == "ok" else logger.warning
                    log("gateway_operation", outcome=outcome, duration_ms=duration_ms)

        return wrapper

    return decorator


def parse_amount(amount: Any, decimals: int, field: str = "amount") -> int:
    """Scale a positive human amount to base units."""
    try:
        raw = to_base_units(amount, decimals)
    except ValueError as e:
        raise InvalidRequestError(f"Invalid {field}: {amount!r}", details={field: str(amount)}) from e
    if raw <= 0:
        raise InvalidRequestError(f"{field} must be positive, got {amount!r}", details={field: str(amount)})
    return raw


def require_token(tokens: TokenRegistry, symbol_or_address: str) -> TokenInfo:
    try:
        return tokens.require(symbol_or_address)
    except TokenNotFoundError as e:
        raise InvalidRequestError(str(e), details={"token": symbol_or_address}) from e
