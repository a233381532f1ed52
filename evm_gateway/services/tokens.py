"""
Token registry - symbol/address lookup over a network's JSON token list.

Only used to size amounts (decimals) and find contract addresses; token
metadata is never part of the execution core's contract.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import settings
from .evm import is_address
from .networks import NetworkConfig

logger = logging.getLogger(__name__)


class TokenNotFoundError(LookupError):
    """A symbol or address is not present in the token list."""


@dataclass(frozen=True)
class TokenInfo:
    """Token list entry."""

    chain_id: int
    address: str
    symbol: str
    name: str
    decimals: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any], chain_id: int) -> "TokenInfo":
        return cls(
            chain_id=int(data.get("chainId", chain_id)),
            address=data["address"],
            symbol=data["symbol"],
            name=data.get("name", data["symbol"]),
            decimals=int(data["decimals"]),
        )


@dataclass(frozen=True)
class WrappedTokenInfo:
    address: str
    symbol: str
    native_symbol: str
    decimals: int = 18


class TokenRegistry:
    """
    In-memory index of a network's token list.

    Lookups are case-insensitive for both symbols and addresses.
    """

    def __init__(self, network: NetworkConfig, tokens: Optional[List[TokenInfo]] = None):
        self.network = network
        self._by_symbol: Dict[str, TokenInfo] = {}
        self._by_address: Dict[str, TokenInfo] = {}
        for token in tokens or []:
            self.add(token)

    @classmethod
    def from_file(cls, network: NetworkConfig, path: Optional[Path] = None) -> "TokenRegistry":
        """Load the token list named by the network config."""
        if path is None:
            if not network.token_list:
                logger.warning(f"No token list configured for network {network.name}")
                return cls(network)
            path = settings.tokens_dir / network.token_list

        if not path.is_file():
            logger.warning(f"Token list not found: {path}")
            return cls(network)

        with open(path, "r") as f:
            payload = json.load(f)

        entries = payload.get("tokens", []) if isinstance(payload, dict) else payload
        tokens = []
        for entry in entries:
            try:
                tokens.append(TokenInfo.from_dict(entry, network.chain_id))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed token entry {entry!r}: {e}")

        logger.debug(f"Loaded {len(tokens)} tokens for {network.name}")
        return cls(network, [t for t in tokens if t.chain_id == network.chain_id])

    def add(self, token: TokenInfo) -> None:
        self._by_symbol[token.symbol.upper()] = token
        self._by_address[token.address.lower()] = token

    def get(self, symbol_or_address: str) -> Optional[TokenInfo]:
        if not symbol_or_address:
            return None
        if is_address(symbol_or_address):
            return self._by_address.get(symbol_or_address.lower())
        return self._by_symbol.get(symbol_or_address.upper())

    def require(self, symbol_or_address: str) -> TokenInfo:
        token = self.get(symbol_or_address)
        if token is None:
            raise TokenNotFoundError(
                f"Token {symbol_or_address} not found in token list for network {self.network.name}"
            )
        return token

    def all(self) -> List[TokenInfo]:
        return list(self._by_symbol.values())

    @property
    def native_symbol(self) -> str:
        return self.network.native_currency_symbol

    def is_native(self, symbol_or_address: str) -> bool:
        return (symbol_or_address or "").upper() == self.native_symbol.upper()

    def wrapped_native(self) -> WrappedTokenInfo:
        """Look up ``W<native>`` (e.g. WPLS) in the token list."""
        wrapped_symbol = f"W{self.native_symbol}"
        token = self.get(wrapped_symbol)
        if token is None:
            raise TokenNotFoundError(
                f"Wrapped token {wrapped_symbol} not found in token list for network {self.network.name}. "
                f"Please ensure {wrapped_symbol} is configured in the token list."
            )
        return WrappedTokenInfo(
            address=token.address,
            symbol=wrapped_symbol,
            native_symbol=self.native_symbol,
            decimals=token.decimals,
        )

    def __len__(self) -> int:
        return len(self._by_symbol)


__all__ = ["TokenInfo", "TokenNotFoundError", "TokenRegistry", "WrappedTokenInfo"]
