"""
Gas Option Builder

Turns a caller override or the network's current ``FeeEstimate`` into the
concrete fee/limit fields of one transaction. An explicit override price
always wins and is sent as a legacy ``gasPrice``.
"""

import logging
from typing import Any, Optional

from ...services.evm import gwei_to_wei, to_decimal
from ..failures.errors import InvalidGasParametersError
from .fee_estimator import FeeEstimator
from .models import FeeEstimate, GasOptions

logger = logging.getLogger(__name__)

# Per-operation gas limits, never estimated from calldata
WRAP_GAS_LIMIT = 50_000
UNWRAP_GAS_LIMIT = 50_000
APPROVE_GAS_LIMIT = 100_000
ADD_LIQUIDITY_GAS_LIMIT = 500_000
ESTIMATE_REPORT_GAS_LIMIT = 300_000


def parse_override_price(value: Any) -> int:
    """Validate a caller-supplied gas price in gwei and return it in wei."""
    if isinstance(value, bool):
        raise InvalidGasParametersError(f"Invalid gas price: {value!r}")
    try:
        price = to_decimal(value)
        wei = gwei_to_wei(price)
    except ValueError as e:
        raise InvalidGasParametersError(f"Invalid gas price: {value!r}") from e
    if price <= 0 or wei <= 0:
        raise InvalidGasParametersError(f"Gas price must be at least 1 wei, got {value!r} gwei")
    return wei


def validate_gas_limit(gas_limit: Any) -> int:
    if isinstance(gas_limit, bool) or not isinstance(gas_limit, int) or gas_limit <= 0:
        raise InvalidGasParametersError(f"Gas limit must be a positive integer, got {gas_limit!r}")
    return gas_limit


def gas_options_from_estimate(estimate: FeeEstimate, gas_limit: int) -> GasOptions:
    """Shape ``GasOptions`` to match the fee mode the estimate produced."""
    if estimate.is_eip1559:
        return GasOptions(
            gas_limit=gas_limit,
            max_fee_per_gas=gwei_to_wei(estimate.max_fee_per_gas_gwei),
            max_priority_fee_per_gas=gwei_to_wei(estimate.max_priority_fee_per_gas_gwei),
        )
    return GasOptions(gas_limit=gas_limit, gas_price=gwei_to_wei(estimate.gas_price_gwei))


class GasOptionBuilder:
    """Builds ``GasOptions`` for one network."""

    def __init__(self, estimator: FeeEstimator, network: str):
        self.estimator = estimator
        self.network = network

    async def build(self, override_price_gwei: Optional[Any] = None, gas_limit: int = 0) -> GasOptions:
        """
        Args:
            override_price_gwei: Caller gas price in gwei; bypasses EIP-1559 fields
            gas_limit: Operation-supplied gas limit

        Raises:
            InvalidGasParametersError: bad override or gas limit
            NodeUnavailableError: fee data could not be fetched
        """
        gas_limit = validate_gas_limit(gas_limit)

        if override_price_gwei is not None:
            gas_price = parse_override_price(override_price_gwei)
            logger.debug(f"Using caller gas price {gas_price} wei on {self.network}")
            return GasOptions(gas_limit=gas_limit, gas_price=gas_price)

        estimate = await self.estimator.estimate(self.network)
        return gas_options_from_estimate(estimate, gas_limit)
