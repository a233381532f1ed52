"""
Tests for calldata encoding in the transaction builder.
"""

import pytest

from conftest import PLSX, ROUTER, SOFTWARE_ADDRESS, WPLS
from evm_gateway.core.execution.tx_builder import (
    MAX_UINT256,
    ROUTER_ADD_LIQUIDITY_ETH_SELECTOR,
    ROUTER_ADD_LIQUIDITY_SELECTOR,
    TransactionBuilder,
    decode_uint256,
    encode_allowance,
    encode_balance_of,
)


def _words(data: str, selector: str):
    assert data.startswith(selector)
    body = data[len(selector):]
    assert len(body) % 64 == 0
    return [body[i:i + 64] for i in range(0, len(body), 64)]


def test_wrap_sends_value_to_deposit():
    intent = TransactionBuilder.build_wrap(WPLS, 10**18, 50000)

    assert intent.to == WPLS
    assert intent.data == "0xd0e30db0"
    assert intent.value == 10**18
    assert intent.gas_limit == 50000
    assert intent.gas_price_gwei is None


def test_unwrap_encodes_amount():
    intent = TransactionBuilder.build_unwrap(WPLS, 5 * 10**17, 50000, gas_price_gwei="3")

    assert intent.data == "0x2e1a7d4d" + format(5 * 10**17, "064x")
    assert intent.value == 0
    assert intent.gas_price_gwei == "3"


def test_approve_defaults_to_unlimited():
    intent = TransactionBuilder.build_erc20_approve(PLSX, ROUTER, 100000)

    spender, amount = _words(intent.data, "0x095ea7b3")
    assert spender == ROUTER.lower()[2:].zfill(64)
    assert int(amount, 16) == MAX_UINT256
    assert intent.to == PLSX


def test_add_liquidity_argument_order():
    intent = TransactionBuilder.build_add_liquidity(
        ROUTER, WPLS, PLSX, 100, 200, 98, 196, SOFTWARE_ADDRESS, 1_700_000_000, 500000
    )

    words = _words(intent.data, ROUTER_ADD_LIQUIDITY_SELECTOR)
    assert len(words) == 8
    assert words[0].endswith(WPLS.lower()[2:])
    assert words[1].endswith(PLSX.lower()[2:])
    assert [int(w, 16) for w in words[2:6]] == [100, 200, 98, 196]
    assert words[6].endswith(SOFTWARE_ADDRESS.lower()[2:])
    assert int(words[7], 16) == 1_700_000_000
    assert intent.value == 0
    assert intent.to == ROUTER


def test_add_liquidity_eth_carries_native_as_value():
    intent = TransactionBuilder.build_add_liquidity_eth(
        ROUTER, PLSX, 200, 196, 10**18, 98 * 10**16, SOFTWARE_ADDRESS, 1_700_000_000, 500000
    )

    words = _words(intent.data, ROUTER_ADD_LIQUIDITY_ETH_SELECTOR)
    assert len(words) == 6
    assert [int(w, 16) for w in words[1:4]] == [200, 196, 98 * 10**16]
    assert intent.value == 10**18


@pytest.mark.parametrize("amount", [-1, MAX_UINT256 + 1])
def test_out_of_range_amount_rejected(amount):
    with pytest.raises(ValueError):
        TransactionBuilder.build_unwrap(WPLS, amount, 50000)


def test_read_call_encoding():
    assert encode_balance_of(SOFTWARE_ADDRESS) == "0x70a08231" + SOFTWARE_ADDRESS.lower()[2:].zfill(64)
    assert len(encode_allowance(SOFTWARE_ADDRESS, ROUTER)) == 10 + 128


@pytest.mark.parametrize(
    "result,expected",
    [
        (None, 0),
        ("0x", 0),
        ("0x" + format(42, "064x"), 42),
        ("0x" + format(7, "064x") + "ff" * 32, 7),
    ],
)
def test_decode_uint256(result, expected):
    assert decode_uint256(result) == expected
