"""Utilities for working with EVM-compatible chains."""

from __future__ import annotations

import re
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import FrozenSet, Union

from eth_utils import from_wei, to_checksum_address, to_wei

# Networks known to support base-fee/priority-fee semantics.
EIP1559_NETWORKS: FrozenSet[str] = frozenset({
    'mainnet',
    'polygon',
    'arbitrum',
    'optimism',
    'base',
    'pulsechain',
    'pulsechain-testnet',
})

_ADDRESS_RE = re.compile(r'^0x[a-fA-F0-9]{40}$')

Number = Union[int, str, Decimal]


def is_address(address: str) -> bool:
    """Return ``True`` for a 0x-prefixed, 20-byte hex address (any casing)."""

    return bool(address) and bool(_ADDRESS_RE.match(address))


def checksum(address: str) -> str:
    return to_checksum_address(address)


def is_eip1559_network(network: str) -> bool:
    """Return ``True`` if the network is on the static EIP-1559 allow-list."""

    return network.lower() in EIP1559_NETWORKS


def to_decimal(value: Number) -> Decimal:
    """Parse a user-supplied amount; raises ``ValueError`` for junk input."""

    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


def to_base_units(amount: Number, decimals: int) -> int:
    """Scale a human amount to integer base units, truncating extra precision."""

    return int(to_decimal(amount).scaleb(decimals).to_integral_value(rounding=ROUND_DOWN))


def from_base_units(raw: int, decimals: int) -> Decimal:
    return Decimal(raw).scaleb(-decimals)


def format_amount(raw: int, decimals: int) -> str:
    """Render base units as a plain decimal string without trailing zeros."""

    value = from_base_units(raw, decimals).normalize()
    text = format(value, 'f')
    return text if text != '-0' else '0'


def gwei_to_wei(gwei: Number) -> int:
    return int(to_wei(to_decimal(gwei), 'gwei'))


def wei_to_gwei(wei: int) -> Decimal:
    return Decimal(from_wei(wei, 'gwei'))


__all__ = [
    'EIP1559_NETWORKS',
    'is_address',
    'checksum',
    'is_eip1559_network',
    'to_decimal',
    'to_base_units',
    'from_base_units',
    'format_amount',
    'gwei_to_wei',
    'wei_to_gwei',
]
