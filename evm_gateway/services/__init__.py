"""Service layer helpers"""

from .networks import NetworkConfig, available_networks, load_network_config
from .tokens import TokenInfo, TokenNotFoundError, TokenRegistry, WrappedTokenInfo
from .wallets import (
    HardwareWalletEntry,
    HardwareWalletRegistry,
    InMemoryWalletStore,
    KeystoreWalletStore,
    WalletLoadError,
    WalletStore,
)

__all__ = [
    "NetworkConfig",
    "available_networks",
    "load_network_config",
    "TokenInfo",
    "TokenNotFoundError",
    "TokenRegistry",
    "WrappedTokenInfo",
    "HardwareWalletEntry",
    "HardwareWalletRegistry",
    "InMemoryWalletStore",
    "KeystoreWalletStore",
    "WalletLoadError",
    "WalletStore",
]
