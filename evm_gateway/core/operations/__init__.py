"""
Gateway operations - one function per transaction intent or chain query.

Every operation takes a ``Chain`` first and returns a pydantic response, or
raises a classified ``GatewayError``.
"""

from .allowances import approve, get_allowances
from .chain_info import estimate_gas, get_balances, get_status
from .liquidity import add_liquidity
from .wrap import unwrap, wrap

__all__ = [
    "wrap",
    "unwrap",
    "approve",
    "get_allowances",
    "add_liquidity",
    "estimate_gas",
    "get_status",
    "get_balances",
]
