"""
Add liquidity to a V2-style AMM pool through the network's router.

Amounts are supplied by the caller; pool-reserve maths are not done here.
When one side is the native token the router's ``addLiquidityETH`` is used
and that side travels as the transaction value.
"""

import time
from decimal import ROUND_DOWN, Decimal
from typing import Any, Callable, Optional

import structlog

from ...services.evm import checksum, format_amount, to_decimal
from ...types.operations import AddLiquidityResponse, TransactionResponse
from ..chain import Chain
from ..execution.gas_options import ADD_LIQUIDITY_GAS_LIMIT
from ..execution.tx_builder import TransactionBuilder
from ..failures.errors import InvalidNetworkError, InvalidRequestError
from .base import gateway_operation, parse_amount, require_token
from .guards import require_allowance, require_native_balance, require_token_balance

logger = structlog.stdlib.get_logger(__name__)

DEFAULT_SLIPPAGE_PCT = Decimal("2")
LIQUIDITY_DEADLINE_SECONDS = 20 * 60


def parse_slippage(slippage_pct: Optional[Any]) -> Decimal:
    if slippage_pct is None:
        return DEFAULT_SLIPPAGE_PCT
    try:
        value = to_decimal(slippage_pct)
    except ValueError as e:
        raise InvalidRequestError(f"Invalid slippage: {slippage_pct!r}") from e
    if value < 0 or value >= 100:
        raise InvalidRequestError(f"Slippage must be in [0, 100), got {slippage_pct!r}")
    return value


def min_amount(raw: int, slippage_pct: Decimal) -> int:
    """Slippage floor, in basis points rounded down."""
    bps = int((slippage_pct * 100).to_integral_value(rounding=ROUND_DOWN))
    return raw * (10_000 - bps) // 10_000


@gateway_operation("add_liquidity")
async def add_liquidity(
    chain: Chain,
    wallet: str,
    base_token: str,
    quote_token: str,
    base_amount: Any,
    quote_amount: Any,
    slippage_pct: Optional[Any] = None,
    gas_price_gwei: Optional[Any] = None,
    max_gas: Optional[int] = None,
    clock: Callable[[], float] = time.time,
) -> AddLiquidityResponse:
    """
    Add ``base_amount``/``quote_amount`` of a pair as liquidity.

    Guards run before anything is submitted:
    - native side: native balance covers the value sent
    - ERC-20 side(s): balance and router allowance cover the amount

    Raises:
        WalletNotFoundError: no signer for ``wallet``
        InsufficientBalanceError: a balance guard failed
        InsufficientAllowanceError: the router may not move enough tokens
    """
    with structlog.contextvars.bound_contextvars(address=wallet):
        signer = chain.resolve_signer(wallet)

        if not chain.config.router_address:
            raise InvalidNetworkError(f"No liquidity router configured for network {chain.name}")
        router = checksum(chain.config.router_address)

        slippage = parse_slippage(slippage_pct)
        gas_limit = max_gas or ADD_LIQUIDITY_GAS_LIMIT
        deadline = int(clock()) + LIQUIDITY_DEADLINE_SECONDS

        base_native = chain.tokens.is_native(base_token)
        quote_native = chain.tokens.is_native(quote_token)
        if base_native and quote_native:
            raise InvalidRequestError("Base and quote token cannot both be the native token")

        base_decimals = 18 if base_native else require_token(chain.tokens, base_token).decimals
        quote_decimals = 18 if quote_native else require_token(chain.tokens, quote_token).decimals
        raw_base = parse_amount(base_amount, base_decimals, "base_amount")
        raw_quote = parse_amount(quote_amount, quote_decimals, "quote_amount")

        if base_native or quote_native:
            token = require_token(chain.tokens, quote_token if base_native else base_token)
            raw_token, raw_native = (raw_quote, raw_base) if base_native else (raw_base, raw_quote)

            await require_native_balance(chain.node, signer.address, raw_native, chain.native_symbol)
            await require_token_balance(
                chain.node, token.address, signer.address, raw_token, token.symbol, token.decimals
            )
            await require_allowance(
                chain.node, token.address, signer.address, router, raw_token, token.symbol, token.decimals
            )

            intent = TransactionBuilder.build_add_liquidity_eth(
                router_address=router,
                token=token.address,
                amount_token_desired=raw_token,
                amount_token_min=min_amount(raw_token, slippage),
                amount_native=raw_native,
                amount_native_min=min_amount(raw_native, slippage),
                recipient=signer.address,
                deadline=deadline,
                gas_limit=gas_limit,
                gas_price_gwei=gas_price_gwei,
            )
        else:
            base = require_token(chain.tokens, base_token)
            quote = require_token(chain.tokens, quote_token)

            for info, raw in ((base, raw_base), (quote, raw_quote)):
                await require_token_balance(
                    chain.node, info.address, signer.address, raw, info.symbol, info.decimals
                )
            for info, raw in ((base, raw_base), (quote, raw_quote)):
                await require_allowance(
                    chain.node, info.address, signer.address, router, raw, info.symbol, info.decimals
                )

            intent = TransactionBuilder.build_add_liquidity(
                router_address=router,
                token_a=base.address,
                token_b=quote.address,
                amount_a_desired=raw_base,
                amount_b_desired=raw_quote,
                amount_a_min=min_amount(raw_base, slippage),
                amount_b_min=min_amount(raw_quote, slippage),
                recipient=signer.address,
                deadline=deadline,
                gas_limit=gas_limit,
                gas_price_gwei=gas_price_gwei,
            )

        logger.info(
            "add_liquidity_submit",
            signer=signer.kind,
            base_token=base_token,
            quote_token=quote_token,
            slippage_pct=str(slippage),
        )
        result = await chain.submitter.submit(signer, intent)

        return AddLiquidityResponse(
            **TransactionResponse.result_fields(result),
            router_address=router,
            base_token=base_token,
            quote_token=quote_token,
            base_token_amount_added=format_amount(raw_base, base_decimals),
            quote_token_amount_added=format_amount(raw_quote, quote_decimals),
        )
