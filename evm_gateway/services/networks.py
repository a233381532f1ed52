"""
Network configuration service - loads per-network YAML definitions.

Each network lives in ``conf/networks/<network>.yml``. Files are parsed once
and cached; ``available_networks`` lists what is configured on disk.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..config import settings
from ..core.failures.errors import InvalidNetworkError

logger = logging.getLogger(__name__)


class NetworkConfig(BaseModel):
    """Configuration for one EVM network."""

    name: str = Field(description="Network name, e.g. pulsechain")
    chain_id: int = Field(gt=0, description="EIP-155 chain ID")
    node_url: str = Field(description="JSON-RPC endpoint")
    native_currency_symbol: str = Field(description="Native token symbol, e.g. PLS")
    gecko_id: Optional[str] = Field(default=None, description="Coingecko identifier of the native token")
    swap_provider: str = Field(default="", description="Default swap connector for this network")

    gas_price: Optional[Decimal] = Field(default=None, ge=0, description="Minimum legacy gas price in gwei")
    base_fee: Optional[Decimal] = Field(default=None, ge=0, description="Base fee override in gwei")
    priority_fee: Optional[Decimal] = Field(default=None, ge=0, description="Priority fee in gwei")
    base_fee_multiplier: Decimal = Field(default=Decimal("1.2"), ge=1, description="Headroom applied to the base fee")
    transaction_execution_timeout_ms: int = Field(
        default=30000,
        gt=0,
        description="How long to wait for a broadcast transaction to be mined",
    )
    fee_cache_ttl_seconds: Optional[float] = Field(
        default=None,
        ge=1,
        description="Per-network override of the fee estimate cache TTL",
    )

    router_address: Optional[str] = Field(default=None, description="AMM V2 router used for liquidity operations")
    token_list: Optional[str] = Field(default=None, description="Token list file, relative to conf/tokens")

    @property
    def confirmation_timeout_seconds(self) -> float:
        return self.transaction_execution_timeout_ms / 1000


_configs: Dict[str, NetworkConfig] = {}


def available_networks(networks_dir: Optional[Path] = None) -> List[str]:
    """Names of networks with a YAML definition on disk."""
    directory = networks_dir or settings.networks_dir
    if not directory.exists():
        logger.warning(f"Networks directory not found: {directory}")
        return []
    return sorted(path.stem for path in directory.glob("*.yml"))


def load_network_config(network: str, networks_dir: Optional[Path] = None) -> NetworkConfig:
    """
    Load and validate the configuration of ``network``.

    Raises:
        InvalidNetworkError: unknown network or malformed definition
    """
    if networks_dir is None and network in _configs:
        return _configs[network]

    directory = networks_dir or settings.networks_dir
    # Only names with a definition on disk
    known = available_networks(directory)
    if network not in known:
        available = ", ".join(known) or "none"
        raise InvalidNetworkError(
            f"Invalid network {network!r}. Available networks: {available}",
            details={"network": network},
        )

    path = directory / f"{network}.yml"
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    try:
        config = NetworkConfig(**{**raw, "name": network})
    except ValidationError as e:
        raise InvalidNetworkError(f"Invalid configuration for network {network}: {e}") from e

    if networks_dir is None:
        _configs[network] = config
    return config


def clear_network_cache() -> None:
    _configs.clear()


__all__ = [
    "NetworkConfig",
    "available_networks",
    "load_network_config",
    "clear_network_cache",
]
