"""
Fee Estimator

Produces a ``FeeEstimate`` per network from live node data, cached for a
few seconds so that a burst of concurrent requests shares one node query.

The cache is owned by the estimator. A stale entry is refreshed by the
first caller that observes it; other callers for the same network wait on
that refresh instead of issuing their own query.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, Dict, Optional, Tuple

from ...config import settings
from ...providers.node import NodeClient
from ...services.evm import is_eip1559_network, wei_to_gwei
from ...services.networks import NetworkConfig
from ..failures.errors import GatewayError, InvalidNetworkError, NodeUnavailableError
from .models import FeeEstimate, FeeMode

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY_FEE_GWEI = Decimal("1")


def _quantity(value) -> int:
    return int(value, 16) if isinstance(value, str) else int(value)


@dataclass(frozen=True)
class _CacheEntry:
    estimate: FeeEstimate
    expires_at: float


class FeeCache:
    """
    Per-network TTL cache with single-flight refresh.

    Entries are replaced whole; a reader sees either the previous estimate
    or the newly completed one. While a refresh is in flight every caller
    for that network awaits the same task and receives its estimate or its
    exception.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._inflight: Dict[str, "asyncio.Task[FeeEstimate]"] = {}

    def peek(self, network: str) -> Optional[FeeEstimate]:
        """Return the cached estimate if it has not expired."""
        entry = self._entries.get(network)
        if entry is not None and self._clock() < entry.expires_at:
            return entry.estimate
        return None

    async def _refresh(
        self,
        network: str,
        ttl_seconds: float,
        loader: Callable[[], Awaitable[FeeEstimate]],
    ) -> FeeEstimate:
        try:
            estimate = await loader()
            self._entries[network] = _CacheEntry(estimate, self._clock() + ttl_seconds)
            return estimate
        finally:
            # Cleared before the task resolves so the next miss starts afresh
            self._inflight.pop(network, None)

    async def get_or_refresh(
        self,
        network: str,
        ttl_seconds: float,
        loader: Callable[[], Awaitable[FeeEstimate]],
    ) -> FeeEstimate:
        cached = self.peek(network)
        if cached is not None:
            return cached

        task = self._inflight.get(network)
        if task is None:
            task = asyncio.ensure_future(self._refresh(network, ttl_seconds, loader))
            self._inflight[network] = task

        # One caller giving up must not cancel the refresh for the others
        return await asyncio.shield(task)

    def invalidate(self, network: Optional[str] = None) -> None:
        if network is None:
            self._entries.clear()
        else:
            self._entries.pop(network, None)


class FeeEstimator:
    """
    Fee quotes for registered networks.

    Usage:
        estimator = FeeEstimator()
        estimator.register(config, node)
        estimate = await estimator.estimate("pulsechain")
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds or settings.fee_cache_ttl_seconds
        self._cache = FeeCache(clock=clock)
        self._networks: Dict[str, Tuple[NetworkConfig, NodeClient]] = {}

    def register(self, config: NetworkConfig, node: NodeClient) -> None:
        self._networks[config.name] = (config, node)
        self._cache.invalidate(config.name)

    def is_registered(self, network: str) -> bool:
        return network in self._networks

    def _ttl_for(self, config: NetworkConfig) -> float:
        return config.fee_cache_ttl_seconds or self.ttl_seconds

    async def estimate(self, network: str) -> FeeEstimate:
        """
        Current fee estimate for ``network``.

        Raises:
            InvalidNetworkError: the network was never registered
            NodeUnavailableError: the node query failed or timed out
        """
        if network not in self._networks:
            raise InvalidNetworkError(f"Network {network} is not configured for fee estimation")

        config, node = self._networks[network]

        async def load() -> FeeEstimate:
            try:
                return await self._query(config, node)
            except GatewayError:
                raise
            except Exception as e:
                logger.error(f"Fee query failed for {network}: {e}")
                raise NodeUnavailableError(
                    f"Failed to fetch fee data for {network}: {e}",
                    details={"network": network},
                ) from e

        return await self._cache.get_or_refresh(network, self._ttl_for(config), load)

    async def _query(self, config: NetworkConfig, node: NodeClient) -> FeeEstimate:
        block = await node.get_block("latest")

        base_fee_gwei: Optional[Decimal] = None
        if config.base_fee is not None:
            base_fee_gwei = Decimal(config.base_fee)
        elif block and block.get("baseFeePerGas") is not None:
            base_fee_gwei = wei_to_gwei(_quantity(block["baseFeePerGas"]))

        reports_base_fee = bool(block) and block.get("baseFeePerGas") is not None
        if base_fee_gwei is not None and (is_eip1559_network(config.name) or reports_base_fee):
            return await self._eip1559_estimate(config, node, base_fee_gwei)
        return await self._legacy_estimate(config, node)

    async def _eip1559_estimate(
        self,
        config: NetworkConfig,
        node: NodeClient,
        base_fee_gwei: Decimal,
    ) -> FeeEstimate:
        priority_fee_gwei = await self._priority_fee(config, node)
        max_fee_gwei = base_fee_gwei * config.base_fee_multiplier + priority_fee_gwei

        estimate = FeeEstimate(
            fee_mode=FeeMode.EIP1559,
            gas_price_gwei=base_fee_gwei + priority_fee_gwei,
            max_fee_per_gas_gwei=max_fee_gwei,
            max_priority_fee_per_gas_gwei=priority_fee_gwei,
            base_fee_gwei=base_fee_gwei,
            observed_at=time.time(),
        )
        logger.debug(
            f"EIP-1559 fees for {config.name}: base={base_fee_gwei} "
            f"priority={priority_fee_gwei} max={max_fee_gwei} gwei"
        )
        return estimate

    async def _priority_fee(self, config: NetworkConfig, node: NodeClient) -> Decimal:
        if config.priority_fee is not None:
            return Decimal(config.priority_fee)
        try:
            return wei_to_gwei(await node.get_max_priority_fee())
        except Exception as e:
            logger.warning(f"eth_maxPriorityFeePerGas unavailable on {config.name}, using default: {e}")
            return DEFAULT_PRIORITY_FEE_GWEI

    async def _legacy_estimate(self, config: NetworkConfig, node: NodeClient) -> FeeEstimate:
        minimum = Decimal(config.gas_price) if config.gas_price is not None else None

        node_price: Optional[Decimal] = None
        try:
            node_price = wei_to_gwei(await node.get_gas_price())
        except Exception as e:
            if minimum is None:
                raise NodeUnavailableError(f"Failed to fetch gas price for {config.name}: {e}") from e
            logger.warning(f"eth_gasPrice failed on {config.name}, using configured minimum: {e}")

        if not node_price:
            if minimum is None:
                raise NodeUnavailableError(f"Node returned no usable gas price for {config.name}")
            gas_price_gwei = minimum
        elif minimum is not None:
            gas_price_gwei = max(node_price, minimum)
        else:
            gas_price_gwei = node_price

        return FeeEstimate(
            fee_mode=FeeMode.LEGACY,
            gas_price_gwei=gas_price_gwei,
            observed_at=time.time(),
        )

    def invalidate(self, network: Optional[str] = None) -> None:
        self._cache.invalidate(network)


_fee_estimator: Optional[FeeEstimator] = None


def get_fee_estimator() -> FeeEstimator:
    """Get the shared fee estimator instance."""
    global _fee_estimator
    if _fee_estimator is None:
        _fee_estimator = FeeEstimator()
    return _fee_estimator
