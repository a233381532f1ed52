"""
Shared fixtures: an in-memory node, a scripted hardware device and a
ready-wired ``Chain`` for operation tests.
"""

import asyncio
from collections import Counter
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pytest
from eth_account import Account

from evm_gateway.core.chain import Chain
from evm_gateway.core.execution.fee_estimator import FeeEstimator
from evm_gateway.core.execution.tx_builder import (
    ERC20_ALLOWANCE_SELECTOR,
    ERC20_BALANCE_OF_SELECTOR,
)
from evm_gateway.providers.hardware import HardwareDevice
from evm_gateway.services.networks import NetworkConfig
from evm_gateway.services.tokens import TokenInfo, TokenRegistry
from evm_gateway.services.wallets import (
    HardwareWalletEntry,
    HardwareWalletRegistry,
    InMemoryWalletStore,
)

# Well-known throwaway key used across eth-account documentation
SOFTWARE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
SOFTWARE_ADDRESS = Account.from_key(SOFTWARE_KEY).address
HARDWARE_ADDRESS = "0x1111111111111111111111111111111111111111"
UNKNOWN_ADDRESS = "0x9999999999999999999999999999999999999999"

ROUTER = "0x98bf93ebf5c380C0e6Ae8e192A7e2AE08edAcc02"
WPLS = "0xA1077a294dDE1B09bB078844df40758a5D0f9a27"
PLSX = "0x95B303987A60C71504D99Aa1b13B4DA07b0790ab"
HEX = "0x2b591e99afE9f32eAA6214f7B7629768c40Eeb39"

TX_HASH = "0x" + "ab" * 32


def _word_address(word: str) -> str:
    return "0x" + word[-40:]


class FakeNode:
    """In-memory stand-in for ``NodeClient`` with per-method call counters."""

    def __init__(self):
        self.calls: Counter = Counter()
        self.events: List[str] = []
        self.block: Optional[Dict[str, Any]] = {"number": "0x10", "baseFeePerGas": hex(10 * 10**9)}
        self.block_error: Optional[Exception] = None
        self.block_delay = 0.01
        self.block_number = 123456
        self.block_number_delay = 0.0
        self.gas_price = 3 * 10**9
        self.gas_price_error: Optional[Exception] = None
        self.priority_fee = 2 * 10**9
        self.priority_fee_error: Optional[Exception] = None
        self.nonce = 7
        self.native_balances: Dict[str, int] = {}
        self.token_balances: Dict[Tuple[str, str], int] = {}
        self.allowances: Dict[Tuple[str, str, str], int] = {}
        self.send_error: Optional[Exception] = None
        self.sent: List[str] = []
        self.tx_hash = TX_HASH
        self.receipt: Optional[Dict[str, Any]] = {
            "transactionHash": TX_HASH,
            "status": "0x1",
            "gasUsed": hex(21000),
            "effectiveGasPrice": hex(12 * 10**9),
            "blockNumber": hex(100),
        }

    async def get_block(self, block_tag: str = "latest"):
        self.calls["get_block"] += 1
        await asyncio.sleep(self.block_delay)
        if self.block_error:
            raise self.block_error
        return self.block

    async def get_block_number(self) -> int:
        self.calls["get_block_number"] += 1
        if self.block_number_delay:
            await asyncio.sleep(self.block_number_delay)
        return self.block_number

    async def get_gas_price(self) -> int:
        self.calls["get_gas_price"] += 1
        if self.gas_price_error:
            raise self.gas_price_error
        return self.gas_price

    async def get_max_priority_fee(self) -> int:
        self.calls["get_max_priority_fee"] += 1
        if self.priority_fee_error:
            raise self.priority_fee_error
        return self.priority_fee

    async def get_transaction_count(self, address: str, block_tag: str = "pending") -> int:
        self.calls["get_transaction_count"] += 1
        self.events.append("nonce")
        return self.nonce

    async def get_balance(self, address: str, block_tag: str = "latest") -> int:
        self.calls["get_balance"] += 1
        return self.native_balances.get(address.lower(), 0)

    async def eth_call(self, to: str, data: str, block_tag: str = "latest") -> str:
        self.calls["eth_call"] += 1
        selector, args = data[:10], data[10:]
        if selector == ERC20_BALANCE_OF_SELECTOR:
            owner = _word_address(args[:64])
            value = self.token_balances.get((to.lower(), owner), 0)
        elif selector == ERC20_ALLOWANCE_SELECTOR:
            owner = _word_address(args[:64])
            spender = _word_address(args[64:128])
            value = self.allowances.get((to.lower(), owner, spender), 0)
        else:
            raise AssertionError(f"unexpected eth_call {data}")
        return "0x" + format(value, "064x")

    async def send_raw_transaction(self, raw_transaction: str) -> str:
        self.calls["send_raw_transaction"] += 1
        self.events.append("broadcast")
        if self.send_error:
            raise self.send_error
        self.sent.append(raw_transaction)
        return self.tx_hash

    async def get_transaction_receipt(self, tx_hash: str):
        self.calls["get_transaction_receipt"] += 1
        return self.receipt

    async def close(self) -> None:
        pass

    # Helpers for arranging state

    def set_native_balance(self, owner: str, value: int) -> None:
        self.native_balances[owner.lower()] = value

    def set_token_balance(self, token: str, owner: str, value: int) -> None:
        self.token_balances[(token.lower(), owner.lower())] = value

    def set_allowance(self, token: str, owner: str, spender: str, value: int) -> None:
        self.allowances[(token.lower(), owner.lower(), spender.lower())] = value


class FakeDevice(HardwareDevice):
    """Scripted hardware device recording what it was asked to sign."""

    name = "fake-ledger"

    def __init__(self, events: Optional[List[str]] = None):
        self.events = events if events is not None else []
        self.signed = []
        self.error: Optional[Exception] = None
        self.delay = 0.0
        self.raw = bytes.fromhex("02f86c") + b"\x01" * 32

    async def sign_transaction(self, address, derivation_path, unsigned):
        self.events.append("sign")
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        self.signed.append((address, derivation_path, unsigned))
        return self.raw


def make_network_config(**overrides) -> NetworkConfig:
    values = {
        "name": "pulsechain",
        "chain_id": 369,
        "node_url": "http://node.test",
        "native_currency_symbol": "PLS",
        "swap_provider": "pulsex/amm",
        "priority_fee": Decimal("2"),
        "transaction_execution_timeout_ms": 2000,
        "router_address": ROUTER,
    }
    values.update(overrides)
    return NetworkConfig(**values)


@pytest.fixture
def network_config() -> NetworkConfig:
    return make_network_config()


@pytest.fixture
def fake_node() -> FakeNode:
    return FakeNode()


@pytest.fixture
def fake_device(fake_node) -> FakeDevice:
    return FakeDevice(fake_node.events)


@pytest.fixture
def token_registry(network_config) -> TokenRegistry:
    return TokenRegistry(
        network_config,
        [
            TokenInfo(369, WPLS, "WPLS", "Wrapped Pulse", 18),
            TokenInfo(369, PLSX, "PLSX", "PulseX", 18),
            TokenInfo(369, HEX, "HEX", "HEX", 8),
        ],
    )


@pytest.fixture
def chain(network_config, fake_node, fake_device, token_registry) -> Chain:
    chain = Chain(
        network_config,
        node=fake_node,
        tokens=token_registry,
        wallet_store=InMemoryWalletStore([SOFTWARE_KEY]),
        hardware_registry=HardwareWalletRegistry([HardwareWalletEntry(HARDWARE_ADDRESS, "44'/60'/0'/0/0", "ledger")]),
        device=fake_device,
        estimator=FeeEstimator(ttl_seconds=10),
    )
    chain.submitter.poll_interval = 0.01
    return chain
