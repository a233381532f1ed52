"""
Wrap and unwrap the native token (e.g. PLS <-> WPLS).
"""

from typing import Any, Optional

import structlog

from ...services.evm import format_amount
from ...types.operations import TransactionResponse, WrapResponse
from ..chain import Chain
from ..execution.gas_options import UNWRAP_GAS_LIMIT, WRAP_GAS_LIMIT
from ..execution.tx_builder import TransactionBuilder
from .base import gateway_operation, parse_amount
from .guards import require_native_balance, require_token_balance

logger = structlog.stdlib.get_logger(__name__)


@gateway_operation("wrap")
async def wrap(chain: Chain, address: str, amount: Any, gas_price_gwei: Optional[Any] = None) -> WrapResponse:
    """
    Wrap ``amount`` native tokens by calling ``deposit()`` on the wrapped token.

    Raises:
        WalletNotFoundError: no signer for ``address``
        InsufficientBalanceError: native balance below ``amount``
    """
    with structlog.contextvars.bound_contextvars(address=address):
        wrapped = chain.tokens.wrapped_native()
        signer = chain.resolve_signer(address)
        amount_wei = parse_amount(amount, 18)

        await require_native_balance(chain.node, signer.address, amount_wei, wrapped.native_symbol)

        logger.info("wrap_submit", signer=signer.kind, amount=format_amount(amount_wei, 18))
        intent = TransactionBuilder.build_wrap(wrapped.address, amount_wei, WRAP_GAS_LIMIT, gas_price_gwei)
        result = await chain.submitter.submit(signer, intent)

        return WrapResponse(
            **TransactionResponse.result_fields(result),
            amount=format_amount(amount_wei, 18),
            wrapped_address=wrapped.address,
            native_token=wrapped.native_symbol,
            wrapped_token=wrapped.symbol,
        )


@gateway_operation("unwrap")
async def unwrap(chain: Chain, address: str, amount: Any, gas_price_gwei: Optional[Any] = None) -> WrapResponse:
    """
    Unwrap ``amount`` wrapped tokens by calling ``withdraw(amount)``.

    Raises:
        WalletNotFoundError: no signer for ``address``
        InsufficientBalanceError: wrapped-token balance below ``amount``
    """
    with structlog.contextvars.bound_contextvars(address=address):
        wrapped = chain.tokens.wrapped_native()
        signer = chain.resolve_signer(address)
        amount_wei = parse_amount(amount, wrapped.decimals)

        await require_token_balance(
            chain.node,
            wrapped.address,
            signer.address,
            amount_wei,
            wrapped.symbol,
            wrapped.decimals,
        )

        logger.info("unwrap_submit", signer=signer.kind, amount=format_amount(amount_wei, wrapped.decimals))
        intent = TransactionBuilder.build_unwrap(wrapped.address, amount_wei, UNWRAP_GAS_LIMIT, gas_price_gwei)
        result = await chain.submitter.submit(signer, intent)

        return WrapResponse(
            **TransactionResponse.result_fields(result),
            amount=format_amount(amount_wei, wrapped.decimals),
            wrapped_address=wrapped.address,
            native_token=wrapped.native_symbol,
            wrapped_token=wrapped.symbol,
        )
