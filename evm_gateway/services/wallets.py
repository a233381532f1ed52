"""
Wallet collaborators.

- ``WalletStore``: where software keys come from, keyed by address.
- ``HardwareWalletRegistry``: addresses explicitly marked as backed by an
  external hardware device.

Neither persists anything on behalf of the execution core; they only answer
"what can sign for this address".
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..config import settings

logger = logging.getLogger(__name__)

DEFAULT_DERIVATION_PATH = "44'/60'/0'/0/0"


class WalletLoadError(LookupError):
    """Key material for an address could not be loaded."""


class WalletStore(ABC):
    """Source of software-held keys."""

    @abstractmethod
    def has_wallet(self, address: str) -> bool:
        """Whether key material exists for ``address``."""

    @abstractmethod
    def load_account(self, address: str) -> LocalAccount:
        """Return a signing account for ``address`` or raise ``WalletLoadError``."""

    @abstractmethod
    def addresses(self) -> List[str]:
        """Checksummed addresses with key material."""


class InMemoryWalletStore(WalletStore):
    """Keys held in process memory."""

    def __init__(self, private_keys: Optional[Iterable[str]] = None):
        self._accounts: Dict[str, LocalAccount] = {}
        for key in private_keys or []:
            self.add_key(key)

    def add_key(self, private_key: str) -> str:
        account = Account.from_key(private_key)
        self._accounts[account.address.lower()] = account
        return account.address

    def has_wallet(self, address: str) -> bool:
        return address.lower() in self._accounts

    def load_account(self, address: str) -> LocalAccount:
        account = self._accounts.get(address.lower())
        if account is None:
            raise WalletLoadError(f"No wallet found for address {address}")
        return account

    def addresses(self) -> List[str]:
        return [account.address for account in self._accounts.values()]


class KeystoreWalletStore(WalletStore):
    """
    Encrypted keystore files in a directory, one ``<address>.json`` per wallet.

    Decrypted accounts are kept for the life of the store so the KDF runs
    once per address.
    """

    def __init__(self, directory: Optional[Path] = None, passphrase: Optional[str] = None):
        self.directory = directory or settings.wallets_dir
        self._passphrase = passphrase if passphrase is not None else settings.wallet_passphrase
        self._accounts: Dict[str, LocalAccount] = {}

    def _path_for(self, address: str) -> Optional[Path]:
        if not self.directory.exists():
            return None
        target = f"{address.lower()}.json"
        for path in self.directory.glob("*.json"):
            if path.name.lower() == target:
                return path
        return None

    def has_wallet(self, address: str) -> bool:
        return address.lower() in self._accounts or self._path_for(address) is not None

    def load_account(self, address: str) -> LocalAccount:
        cached = self._accounts.get(address.lower())
        if cached is not None:
            return cached

        path = self._path_for(address)
        if path is None:
            raise WalletLoadError(f"No wallet found for address {address}")
        if not self._passphrase:
            raise WalletLoadError("Wallet passphrase is not configured")

        try:
            with open(path, "r") as f:
                keystore = json.load(f)
            private_key = Account.decrypt(keystore, self._passphrase)
        except (ValueError, KeyError, TypeError) as e:
            # JSONDecodeError is a ValueError; malformed keystores raise KeyError
            raise WalletLoadError(f"Failed to decrypt wallet {address}: {e}") from e

        account = Account.from_key(private_key)
        if account.address.lower() != address.lower():
            raise WalletLoadError(f"Keystore {path.name} does not belong to {address}")

        self._accounts[address.lower()] = account
        return account

    def addresses(self) -> List[str]:
        if not self.directory.exists():
            return []
        found = []
        for path in sorted(self.directory.glob("0x*.json")):
            found.append(path.stem)
        return found


@dataclass(frozen=True)
class HardwareWalletEntry:
    address: str
    derivation_path: str = DEFAULT_DERIVATION_PATH
    name: str = ""


class HardwareWalletRegistry:
    """
    Addresses explicitly registered as hardware-backed.

    File format: ``[{"address": "0x…", "derivationPath": "44'/60'/0'/0/0", "name": "…"}]``.
    """

    def __init__(self, entries: Optional[Iterable[HardwareWalletEntry]] = None):
        self._entries: Dict[str, HardwareWalletEntry] = {}
        for entry in entries or []:
            self.register(entry)

    @classmethod
    def from_file(cls, path: Optional[Path] = None) -> "HardwareWalletRegistry":
        path = path or settings.hardware_wallets_file
        if not path.is_file():
            return cls()

        with open(path, "r") as f:
            payload = json.load(f)

        entries = []
        for item in payload.get("wallets", []) if isinstance(payload, dict) else payload:
            try:
                entries.append(
                    HardwareWalletEntry(
                        address=item["address"],
                        derivation_path=item.get("derivationPath", DEFAULT_DERIVATION_PATH),
                        name=item.get("name", ""),
                    )
                )
            except (KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed hardware wallet entry {item!r}: {e}")
        return cls(entries)

    def register(self, entry: HardwareWalletEntry) -> None:
        self._entries[entry.address.lower()] = entry

    def get(self, address: str) -> Optional[HardwareWalletEntry]:
        return self._entries.get(address.lower())

    def is_hardware_wallet(self, address: str) -> bool:
        return address.lower() in self._entries

    def addresses(self) -> List[str]:
        return [entry.address for entry in self._entries.values()]


__all__ = [
    "DEFAULT_DERIVATION_PATH",
    "WalletLoadError",
    "WalletStore",
    "InMemoryWalletStore",
    "KeystoreWalletStore",
    "HardwareWalletEntry",
    "HardwareWalletRegistry",
]
