"""
Pre-submission guards.

Balance and allowance checks against the exact amount to be moved. They run
after the signer is resolved and before anything is submitted, so a doomed
transaction never costs gas.
"""

import logging

from ...providers.node import NodeClient
from ...services.evm import format_amount
from ..execution.tx_builder import decode_uint256, encode_allowance, encode_balance_of
from ..failures.errors import InsufficientAllowanceError, InsufficientBalanceError

logger = logging.getLogger(__name__)


async def read_token_balance(node: NodeClient, token_address: str, owner: str) -> int:
    return decode_uint256(await node.eth_call(token_address, encode_balance_of(owner)))


async def read_allowance(node: NodeClient, token_address: str, owner: str, spender: str) -> int:
    return decode_uint256(await node.eth_call(token_address, encode_allowance(owner, spender)))


def check_balance(symbol: str, available: int, required: int, decimals: int) -> None:
    if available < required:
        available_text = format_amount(available, decimals)
        required_text = format_amount(required, decimals)
        raise InsufficientBalanceError(
            f"Insufficient {symbol} balance. Available: {available_text}, Required: {required_text}",
            token=symbol,
            available=available_text,
            required=required_text,
        )


async def require_native_balance(node: NodeClient, owner: str, required: int, symbol: str) -> int:
    """Raise ``InsufficientBalanceError`` unless ``owner`` holds ``required`` wei."""
    available = await node.get_balance(owner)
    check_balance(symbol, available, required, 18)
    return available


async def require_token_balance(
    node: NodeClient,
    token_address: str,
    owner: str,
    required: int,
    symbol: str,
    decimals: int,
) -> int:
    """Raise ``InsufficientBalanceError`` unless ``owner`` holds ``required`` base units."""
    available = await read_token_balance(node, token_address, owner)
    check_balance(symbol, available, required, decimals)
    return available


async def require_allowance(
    node: NodeClient,
    token_address: str,
    owner: str,
    spender: str,
    required: int,
    symbol: str,
    decimals: int,
) -> int:
    """Raise ``InsufficientAllowanceError`` unless ``spender`` may move ``required`` base units."""
    current = await read_allowance(node, token_address, owner, spender)
    logger.info(
        f"Allowance for {symbol}: current={format_amount(current, decimals)} "
        f"required={format_amount(required, decimals)}"
    )
    if current < required:
        required_text = format_amount(required, decimals)
        raise InsufficientAllowanceError(
            f"Insufficient allowance for {symbol}. Please approve at least {required_text} {symbol} "
            f"for {spender}",
            token=symbol,
            spender=spender,
            current=format_amount(current, decimals),
            required=required_text,
        )
    return current
