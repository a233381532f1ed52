"""
Tests for signer handles and the signer resolver.
"""

import pytest
from eth_account import Account
from eth_utils import keccak

from conftest import (
    HARDWARE_ADDRESS,
    SOFTWARE_ADDRESS,
    SOFTWARE_KEY,
    UNKNOWN_ADDRESS,
    WPLS,
    FakeDevice,
    FakeNode,
)
from evm_gateway.core.execution.models import GasOptions, UnsignedTransaction
from evm_gateway.core.execution.signers import HardwareSigner, SignerResolver, SoftwareSigner
from evm_gateway.core.failures.errors import InternalFailureError, RejectedByUserError, WalletNotFoundError
from evm_gateway.services.wallets import HardwareWalletEntry, HardwareWalletRegistry, InMemoryWalletStore


def _unsigned(**overrides) -> UnsignedTransaction:
    values = dict(
        to=WPLS,
        data="0xd0e30db0",
        nonce=3,
        chain_id=369,
        gas_options=GasOptions(gas_limit=50000, max_fee_per_gas=30 * 10**9, max_priority_fee_per_gas=2 * 10**9),
        value=10**18,
    )
    values.update(overrides)
    return UnsignedTransaction(**values)


def _resolver(device=None, node=None) -> SignerResolver:
    return SignerResolver(
        wallet_store=InMemoryWalletStore([SOFTWARE_KEY]),
        hardware_registry=HardwareWalletRegistry([HardwareWalletEntry(HARDWARE_ADDRESS, "44'/60'/1'/0/0")]),
        node=node or FakeNode(),
        device=device or FakeDevice(),
    )


# =============================================================================
# Resolver
# =============================================================================

class TestSignerResolver:

    def test_software_address_resolves_to_software_signer(self):
        signer = _resolver().resolve(SOFTWARE_ADDRESS)

        assert isinstance(signer, SoftwareSigner)
        assert signer.can_auto_send is True
        assert signer.address == SOFTWARE_ADDRESS

    def test_hardware_address_resolves_to_hardware_signer(self):
        signer = _resolver().resolve(HARDWARE_ADDRESS)

        assert isinstance(signer, HardwareSigner)
        assert signer.can_auto_send is False
        assert signer.derivation_path == "44'/60'/1'/0/0"

    def test_resolution_is_idempotent(self):
        resolver = _resolver()

        for address in (SOFTWARE_ADDRESS, HARDWARE_ADDRESS):
            first = resolver.resolve(address)
            second = resolver.resolve(address.lower())
            assert type(first) is type(second)
            assert first.can_auto_send == second.can_auto_send

    def test_hardware_registration_wins_over_key_material(self):
        resolver = SignerResolver(
            wallet_store=InMemoryWalletStore([SOFTWARE_KEY]),
            hardware_registry=HardwareWalletRegistry([HardwareWalletEntry(SOFTWARE_ADDRESS)]),
            node=FakeNode(),
            device=FakeDevice(),
        )

        assert isinstance(resolver.resolve(SOFTWARE_ADDRESS), HardwareSigner)

    def test_unknown_address(self):
        with pytest.raises(WalletNotFoundError) as exc_info:
            _resolver().resolve(UNKNOWN_ADDRESS)

        assert exc_info.value.http_status == 404

    @pytest.mark.parametrize("address", ["", "0x123", "not-an-address", "0x" + "g" * 40])
    def test_malformed_address(self, address):
        with pytest.raises(WalletNotFoundError):
            _resolver().resolve(address)

    def test_hardware_address_without_device(self):
        resolver = SignerResolver(
            wallet_store=InMemoryWalletStore(),
            hardware_registry=HardwareWalletRegistry([HardwareWalletEntry(HARDWARE_ADDRESS)]),
            node=FakeNode(),
            device=None,
        )

        with pytest.raises(WalletNotFoundError):
            resolver.resolve(HARDWARE_ADDRESS)


# =============================================================================
# Signing
# =============================================================================

class TestSoftwareSigner:

    @pytest.mark.asyncio
    async def test_sign_produces_recoverable_transaction(self):
        signer = SoftwareSigner(Account.from_key(SOFTWARE_KEY), FakeNode())

        signed = await signer.sign(_unsigned())

        assert signed.raw_transaction.startswith("0x02")
        assert Account.recover_transaction(signed.raw_transaction) == SOFTWARE_ADDRESS

    @pytest.mark.asyncio
    async def test_legacy_transaction_signs(self):
        signer = SoftwareSigner(Account.from_key(SOFTWARE_KEY), FakeNode())

        signed = await signer.sign(_unsigned(gas_options=GasOptions(gas_limit=50000, gas_price=5 * 10**9)))

        assert Account.recover_transaction(signed.raw_transaction) == SOFTWARE_ADDRESS

    @pytest.mark.asyncio
    async def test_sign_and_send_broadcasts_once(self):
        node = FakeNode()
        signer = SoftwareSigner(Account.from_key(SOFTWARE_KEY), node)

        tx_hash = await signer.sign_and_send(_unsigned())

        assert tx_hash == node.tx_hash
        assert node.calls["send_raw_transaction"] == 1


class TestHardwareSigner:

    @pytest.mark.asyncio
    async def test_sign_passes_unsigned_transaction_to_device(self):
        device = FakeDevice()
        signer = HardwareSigner(HARDWARE_ADDRESS, device, "44'/60'/0'/0/0")
        unsigned = _unsigned()

        signed = await signer.sign(unsigned)

        assert device.signed == [(HARDWARE_ADDRESS, "44'/60'/0'/0/0", unsigned)]
        assert signed.raw_transaction == "0x" + device.raw.hex()
        assert signed.transaction_hash == "0x" + keccak(device.raw).hex()

    @pytest.mark.asyncio
    async def test_device_timeout_is_rejection(self):
        device = FakeDevice()
        device.delay = 1.0
        signer = HardwareSigner(HARDWARE_ADDRESS, device, timeout_seconds=0.01)

        with pytest.raises(RejectedByUserError):
            await signer.sign(_unsigned())

    @pytest.mark.asyncio
    async def test_cannot_send_directly(self):
        signer = HardwareSigner(HARDWARE_ADDRESS, FakeDevice())

        with pytest.raises(InternalFailureError):
            await signer.sign_and_send(_unsigned())
