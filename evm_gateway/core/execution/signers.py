"""
Signer handles and the Signer Resolver.

Two variants share one contract: ``sign(unsigned)`` returning the encoded
signed transaction, plus a ``can_auto_send`` capability flag. Software
signers sign and broadcast as a single step; hardware signers only sign,
and the submitter broadcasts separately.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from ...config import settings
from ...providers.hardware import HardwareDevice
from ...providers.node import NodeClient
from ...services.evm import checksum, is_address
from ...services.wallets import HardwareWalletRegistry, WalletLoadError, WalletStore
from ..failures.errors import InternalFailureError, RejectedByUserError, WalletNotFoundError
from .models import UnsignedTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedTransaction:
    """Encoded signed transaction and its hash."""
    raw_transaction: str
    transaction_hash: str


class Signer(ABC):
    """A handle able to sign transactions for one address."""

    kind: str = "signer"

    def __init__(self, address: str):
        self.address = address

    @property
    @abstractmethod
    def can_auto_send(self) -> bool:
        """Whether ``sign_and_send`` is available."""

    @abstractmethod
    async def sign(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        """Sign a fully-built transaction without broadcasting it."""

    async def sign_and_send(self, unsigned: UnsignedTransaction) -> str:
        """Sign and broadcast in one step. Returns the transaction hash."""
        raise InternalFailureError(f"{self.kind} signer for {self.address} cannot broadcast directly")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"


class SoftwareSigner(Signer):
    """Signer backed by an in-process private key."""

    kind = "software"

    def __init__(self, account: LocalAccount, node: NodeClient):
        super().__init__(account.address)
        self._account = account
        self._node = node

    @property
    def can_auto_send(self) -> bool:
        return True

    async def sign(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        signed = self._account.sign_transaction(unsigned.to_signable_dict())
        return SignedTransaction(
            raw_transaction="0x" + bytes(signed.raw_transaction).hex(),
            transaction_hash="0x" + bytes(signed.hash).hex(),
        )

    async def sign_and_send(self, unsigned: UnsignedTransaction) -> str:
        signed = await self.sign(unsigned)
        return await self._node.send_raw_transaction(signed.raw_transaction)


class HardwareSigner(Signer):
    """
    Handle to an external signing device.

    The device may fail with a rejection, a locked screen or the wrong app
    open; those faults propagate raw and are classified by the submitter.
    A device that does not answer within ``timeout_seconds`` is treated as
    a rejection, since nothing has been broadcast.
    """

    kind = "hardware"

    def __init__(
        self,
        address: str,
        device: HardwareDevice,
        derivation_path: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(address)
        self.device = device
        self.derivation_path = derivation_path
        self.timeout_seconds = timeout_seconds or settings.device_timeout_seconds

    @property
    def can_auto_send(self) -> bool:
        return False

    async def sign(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        logger.info(f"Waiting for confirmation on {self.device.name} for {self.address}")
        try:
            raw = await asyncio.wait_for(
                self.device.sign_transaction(self.address, self.derivation_path, unsigned),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise RejectedByUserError(
                f"Transaction not confirmed on device within {self.timeout_seconds:g}s",
                details={"address": self.address},
            ) from e

        return SignedTransaction(
            raw_transaction="0x" + raw.hex(),
            transaction_hash="0x" + keccak(raw).hex(),
        )


class SignerResolver:
    """
    Resolves an address to a signer handle.

    Hardware registrations are checked first; otherwise a software key is
    loaded from the wallet store. Handles are built fresh per call.
    """

    def __init__(
        self,
        wallet_store: WalletStore,
        hardware_registry: HardwareWalletRegistry,
        node: NodeClient,
        device: Optional[HardwareDevice] = None,
    ):
        self.wallet_store = wallet_store
        self.hardware_registry = hardware_registry
        self.node = node
        self.device = device

    def resolve(self, address: str) -> Signer:
        """
        Raises:
            WalletNotFoundError: malformed address, or no key material and no
                hardware registration for it
        """
        if not is_address(address):
            raise WalletNotFoundError(f"Invalid wallet address: {address}", details={"address": address})

        entry = self.hardware_registry.get(address)
        if entry is not None:
            if self.device is None:
                raise WalletNotFoundError(
                    f"Hardware wallet {address} is registered but no signing device is configured",
                    details={"address": address},
                )
            logger.debug(f"Resolved {address} to hardware signer")
            return HardwareSigner(checksum(entry.address), self.device, entry.derivation_path)

        try:
            account = self.wallet_store.load_account(address)
        except WalletLoadError as e:
            raise WalletNotFoundError(str(e), details={"address": address}) from e

        logger.debug(f"Resolved {address} to software signer")
        return SoftwareSigner(account, self.node)
