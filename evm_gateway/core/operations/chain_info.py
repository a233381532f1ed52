"""
Read-only chain operations: gas estimate report, node status and balances.
"""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Dict, List, Optional

from ...config import settings
from ...services.evm import format_amount, is_address
from ...services.tokens import TokenInfo
from ...types.operations import BalancesResponse, EstimateGasResponse, StatusResponse
from ..chain import Chain
from ..execution.gas_options import ESTIMATE_REPORT_GAS_LIMIT
from ..failures.errors import WalletNotFoundError
from .base import gateway_operation
from .guards import read_token_balance

logger = logging.getLogger(__name__)

CHAIN_FAMILY = "pulsechain"


@gateway_operation("estimate_gas")
async def estimate_gas(chain: Chain) -> EstimateGasResponse:
    """Price a ``ESTIMATE_REPORT_GAS_LIMIT`` transaction at the current fee estimate."""
    estimate = await chain.estimator.estimate(chain.name)

    price_gwei = estimate.gas_price_gwei
    fee = price_gwei * ESTIMATE_REPORT_GAS_LIMIT / Decimal(10**9)

    return EstimateGasResponse(
        fee_per_compute_unit=price_gwei,
        denomination="gwei",
        compute_units=ESTIMATE_REPORT_GAS_LIMIT,
        fee_asset=chain.native_symbol,
        fee=fee,
        timestamp=int(time.time() * 1000),
        gas_type=estimate.fee_mode.value,
        max_fee_per_gas=estimate.max_fee_per_gas_gwei,
        max_priority_fee_per_gas=estimate.max_priority_fee_per_gas_gwei,
    )


@gateway_operation("status")
async def get_status(chain: Chain, timeout_seconds: Optional[float] = None) -> StatusResponse:
    """Node status; a slow or failing node reports block 0 instead of failing."""
    timeout_seconds = timeout_seconds or settings.status_timeout_seconds

    current_block = 0
    try:
        current_block = await asyncio.wait_for(chain.node.get_block_number(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"Block number request timed out after {timeout_seconds:g}s")
    except Exception as e:
        logger.warning(f"Failed to get block number: {e}")

    return StatusResponse(
        chain=CHAIN_FAMILY,
        network=chain.name,
        rpc_url=chain.config.node_url,
        current_block_number=current_block,
        native_currency=chain.native_symbol,
        swap_provider=chain.config.swap_provider,
    )


@gateway_operation("balances")
async def get_balances(chain: Chain, address: str, tokens: Optional[List[str]] = None) -> BalancesResponse:
    """
    Native and token balances of ``address`` as decimal strings.

    Without ``tokens`` every token-list entry is read and only non-zero
    balances are returned; requested tokens are returned even when zero.
    Unknown tokens are skipped.
    """
    if not is_address(address):
        raise WalletNotFoundError(f"Invalid wallet address: {address}", details={"address": address})

    explicit = bool(tokens)
    include_native = not explicit or any(chain.tokens.is_native(t) for t in tokens)

    token_infos: List[TokenInfo] = []
    if explicit:
        for requested in tokens:
            if chain.tokens.is_native(requested):
                continue
            info = chain.tokens.get(requested)
            if info is None:
                logger.warning(f"Skipping unknown token {requested} on {chain.name}")
                continue
            token_infos.append(info)
    else:
        token_infos = chain.tokens.all()

    semaphore = asyncio.Semaphore(settings.max_concurrent_requests)

    async def read(info: TokenInfo) -> int:
        async with semaphore:
            return await read_token_balance(chain.node, info.address, address)

    balances: Dict[str, str] = {}
    if include_native:
        balances[chain.native_symbol] = format_amount(await chain.node.get_balance(address), 18)

    values = await asyncio.gather(*(read(info) for info in token_infos))
    for info, value in zip(token_infos, values):
        if explicit or value > 0:
            balances[info.symbol] = format_amount(value, info.decimals)

    return BalancesResponse(balances=balances)
