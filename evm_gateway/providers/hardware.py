"""
Hardware signing devices.

The gateway never holds key material for hardware-backed addresses. It
hands a fully-built unsigned transaction to the device and receives the
encoded signed transaction back; broadcasting is a separate step.
"""

from __future__ import annotations

import itertools
import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from ..config import settings

if TYPE_CHECKING:
    from ..core.execution.models import UnsignedTransaction

logger = logging.getLogger(__name__)


# APDU status words reported by Ledger devices
STATUS_USER_REJECTED = 0x6985
STATUS_DEVICE_LOCKED = 0x6B0C
STATUS_LOCKED_SCREEN = 0x5515
STATUS_CLA_NOT_SUPPORTED = 0x6E00
STATUS_INS_NOT_SUPPORTED = 0x6D00
STATUS_APP_NOT_OPEN = 0x6511

_STATUS_WORD_RE = re.compile(r"0x([0-9a-fA-F]{4})\b")

# Bridge-side faults that carry no device status word
FAULT_TIMEOUT = "timeout"
FAULT_UNREACHABLE = "unreachable"


class HardwareDeviceError(Exception):
    """A fault reported by the hardware device or its bridge."""

    def __init__(self, message: str, status_word: Optional[int] = None, fault: Optional[str] = None):
        super().__init__(message)
        self.status_word = status_word
        self.fault = fault


def parse_status_word(message: str) -> Optional[int]:
    """Extract an APDU status word (e.g. ``0x6985``) from a device message."""
    match = _STATUS_WORD_RE.search(message or "")
    if not match:
        return None
    return int(match.group(1), 16)


class HardwareDevice(ABC):
    """A device able to sign a fully-built unsigned transaction."""

    name: str = "hardware"

    @abstractmethod
    async def sign_transaction(
        self,
        address: str,
        derivation_path: Optional[str],
        unsigned: "UnsignedTransaction",
    ) -> bytes:
        """Sign ``unsigned`` for ``address`` and return the encoded signed transaction."""


class ExternalSignerDevice(HardwareDevice):
    """
    Device reached through an external signer bridge.

    The bridge speaks JSON-RPC (``account_signTransaction``) and returns
    ``{"raw": "0x…", "tx": {…}}``. Device faults come back as JSON-RPC errors
    whose message carries the device's own wording or status word.
    """

    name = "external-signer"

    def __init__(
        self,
        url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url or settings.external_signer_url
        self.timeout_seconds = timeout_seconds or settings.device_timeout_seconds
        self._client = client or httpx.AsyncClient(timeout=self.timeout_seconds)
        self._ids = itertools.count(1)

    async def sign_transaction(
        self,
        address: str,
        derivation_path: Optional[str],
        unsigned: "UnsignedTransaction",
    ) -> bytes:
        if not self.url:
            raise HardwareDeviceError("No external signer configured for hardware wallets")

        tx_args: Dict[str, Any] = {"from": address, **unsigned.to_rpc_dict()}
        payload = {
            "jsonrpc": "2.0",
            "method": "account_signTransaction",
            "params": [tx_args],
            "id": next(self._ids),
        }
        logger.info(f"Requesting device signature for {address} (nonce={unsigned.nonce})")

        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException as e:
            raise HardwareDeviceError(
                f"Hardware signer did not answer within {self.timeout_seconds:g}s",
                fault=FAULT_TIMEOUT,
            ) from e
        except httpx.HTTPError as e:
            raise HardwareDeviceError(f"Hardware signer unreachable: {e}", fault=FAULT_UNREACHABLE) from e

        error = result.get("error")
        if error:
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            raise HardwareDeviceError(message, status_word=parse_status_word(message))

        signed = result.get("result") or {}
        raw = signed.get("raw") if isinstance(signed, dict) else signed
        if not raw:
            raise HardwareDeviceError("Hardware signer returned no signed transaction")
        return bytes.fromhex(raw[2:] if raw.startswith("0x") else raw)

    async def close(self) -> None:
        await self._client.aclose()
