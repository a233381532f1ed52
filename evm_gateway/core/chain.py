"""
Per-network facade.

A ``Chain`` wires one network's configuration, node client, token registry
and signer resolver to the shared fee estimator and a transaction
submitter. Operations receive a ``Chain`` and never build these pieces
themselves.
"""

import logging
from typing import Dict, Optional

from ..config import settings
from ..providers.hardware import ExternalSignerDevice, HardwareDevice
from ..providers.node import NodeClient
from ..services.networks import NetworkConfig, load_network_config
from ..services.tokens import TokenRegistry
from ..services.wallets import HardwareWalletRegistry, KeystoreWalletStore, WalletStore
from .execution.fee_estimator import FeeEstimator, get_fee_estimator
from .execution.gas_options import GasOptionBuilder
from .execution.signers import Signer, SignerResolver
from .execution.submitter import TransactionSubmitter
from .failures.classifier import ErrorClassifier, get_error_classifier

logger = logging.getLogger(__name__)


class Chain:
    """Everything needed to execute transaction intents on one network."""

    def __init__(
        self,
        config: NetworkConfig,
        node: Optional[NodeClient] = None,
        tokens: Optional[TokenRegistry] = None,
        wallet_store: Optional[WalletStore] = None,
        hardware_registry: Optional[HardwareWalletRegistry] = None,
        device: Optional[HardwareDevice] = None,
        estimator: Optional[FeeEstimator] = None,
        classifier: Optional[ErrorClassifier] = None,
    ):
        self.config = config
        self.node = node or NodeClient(config.node_url)
        self.tokens = tokens if tokens is not None else TokenRegistry.from_file(config)
        self.classifier = classifier or get_error_classifier()

        if device is None and settings.has_external_signer:
            device = ExternalSignerDevice()

        self.resolver = SignerResolver(
            wallet_store=wallet_store if wallet_store is not None else KeystoreWalletStore(),
            hardware_registry=(
                hardware_registry if hardware_registry is not None else HardwareWalletRegistry.from_file()
            ),
            node=self.node,
            device=device,
        )

        self.estimator = estimator or get_fee_estimator()
        self.estimator.register(config, self.node)
        self.gas_builder = GasOptionBuilder(self.estimator, config.name)
        self.submitter = TransactionSubmitter(
            node=self.node,
            gas_builder=self.gas_builder,
            chain_id=config.chain_id,
            confirmation_timeout=config.confirmation_timeout_seconds,
            classifier=self.classifier,
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def chain_id(self) -> int:
        return self.config.chain_id

    @property
    def native_symbol(self) -> str:
        return self.config.native_currency_symbol

    def resolve_signer(self, address: str) -> Signer:
        return self.resolver.resolve(address)

    async def close(self) -> None:
        await self.node.close()


_chains: Dict[str, Chain] = {}


def get_chain(network: Optional[str] = None) -> Chain:
    """
    Get the shared ``Chain`` for ``network`` (default network when omitted).

    Raises:
        InvalidNetworkError: the network is not configured
    """
    network = network or settings.default_network
    chain = _chains.get(network)
    if chain is None:
        chain = Chain(load_network_config(network))
        _chains[network] = chain
        logger.info(f"Initialized chain {network} (chain_id={chain.chain_id}, tokens={len(chain.tokens)})")
    return chain


async def close_chains() -> None:
    """Close every shared chain's node client."""
    for chain in list(_chains.values()):
        await chain.close()
    _chains.clear()
