"""
Tests for wrap and unwrap operations.
"""

from unittest.mock import AsyncMock, patch

import pytest

from conftest import HARDWARE_ADDRESS, SOFTWARE_ADDRESS, TX_HASH, UNKNOWN_ADDRESS, WPLS
from evm_gateway.core.execution.gas_options import UNWRAP_GAS_LIMIT, WRAP_GAS_LIMIT
from evm_gateway.core.execution.models import ReceiptStatus
from evm_gateway.core.execution.signers import HardwareSigner
from evm_gateway.core.failures.errors import (
    InsufficientBalanceError,
    InternalFailureError,
    InvalidRequestError,
    WalletNotFoundError,
)
from evm_gateway.core.operations import unwrap, wrap
from evm_gateway.services.tokens import TokenRegistry


# =============================================================================
# Wrap
# =============================================================================

class TestWrap:

    @pytest.mark.asyncio
    async def test_software_wrap(self, chain, fake_node):
        fake_node.set_native_balance(SOFTWARE_ADDRESS, 5 * 10**18)

        response = await wrap(chain, SOFTWARE_ADDRESS, "1.5")

        assert response.transaction_hash == TX_HASH
        assert response.status == ReceiptStatus.SUCCESS
        assert response.amount == "1.5"
        assert response.wrapped_address == WPLS
        assert response.native_token == "PLS"
        assert response.wrapped_token == "WPLS"
        assert response.fee == "0.000252"
        assert response.nonce == 7

    @pytest.mark.asyncio
    async def test_hardware_wrap_signs_on_device_then_broadcasts(self, chain, fake_node, fake_device):
        """Nonce is fetched before signing; the submitter broadcasts the device output."""
        fake_node.set_native_balance(HARDWARE_ADDRESS, 2 * 10**18)

        with patch.object(HardwareSigner, "sign_and_send", new_callable=AsyncMock) as sign_and_send:
            response = await wrap(chain, HARDWARE_ADDRESS, "1.0")

        sign_and_send.assert_not_awaited()
        _, _, unsigned = fake_device.signed[0]
        assert unsigned.to == WPLS
        assert unsigned.value == 10**18
        assert unsigned.data == "0xd0e30db0"
        assert unsigned.gas_options.gas_limit == WRAP_GAS_LIMIT
        assert fake_node.events == ["nonce", "sign", "broadcast"]
        assert response.status == ReceiptStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_insufficient_native_balance(self, chain, fake_node):
        fake_node.set_native_balance(SOFTWARE_ADDRESS, 10**17)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await wrap(chain, SOFTWARE_ADDRESS, "1")

        assert exc_info.value.message == "Insufficient PLS balance. Available: 0.1, Required: 1"
        assert fake_node.calls["send_raw_transaction"] == 0
        assert fake_node.calls["get_transaction_count"] == 0

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, chain, fake_node):
        with pytest.raises(WalletNotFoundError):
            await wrap(chain, UNKNOWN_ADDRESS, "1")

        assert fake_node.calls["get_balance"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-1", "abc", ""])
    async def test_invalid_amount(self, chain, fake_node, amount):
        fake_node.set_native_balance(SOFTWARE_ADDRESS, 10**18)

        with pytest.raises(InvalidRequestError):
            await wrap(chain, SOFTWARE_ADDRESS, amount)

    @pytest.mark.asyncio
    async def test_gas_price_override(self, chain, fake_node):
        fake_node.set_native_balance(SOFTWARE_ADDRESS, 10**18)

        with patch.object(chain.estimator, "estimate", new_callable=AsyncMock) as estimate:
            await wrap(chain, SOFTWARE_ADDRESS, "0.5", gas_price_gwei="2")

        estimate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_wrapped_token_is_internal_failure(self, chain, network_config):
        chain.tokens = TokenRegistry(network_config)

        with pytest.raises(InternalFailureError) as exc_info:
            await wrap(chain, SOFTWARE_ADDRESS, "1")

        assert "WPLS" in exc_info.value.message


# =============================================================================
# Unwrap
# =============================================================================

class TestUnwrap:

    @pytest.mark.asyncio
    async def test_unwrap_checks_wrapped_balance(self, chain, fake_node):
        fake_node.set_token_balance(WPLS, SOFTWARE_ADDRESS, 3 * 10**18)

        response = await unwrap(chain, SOFTWARE_ADDRESS, "2")

        assert response.amount == "2"
        assert response.wrapped_token == "WPLS"
        assert fake_node.calls["get_balance"] == 0
        assert fake_node.calls["eth_call"] == 1

    @pytest.mark.asyncio
    async def test_hardware_unwrap_encodes_withdraw(self, chain, fake_node, fake_device):
        fake_node.set_token_balance(WPLS, HARDWARE_ADDRESS, 10**18)

        await unwrap(chain, HARDWARE_ADDRESS, "1")

        _, _, unsigned = fake_device.signed[0]
        assert unsigned.data == "0x2e1a7d4d" + format(10**18, "064x")
        assert unsigned.value == 0
        assert unsigned.gas_options.gas_limit == UNWRAP_GAS_LIMIT

    @pytest.mark.asyncio
    async def test_insufficient_wrapped_balance(self, chain, fake_node):
        fake_node.set_token_balance(WPLS, SOFTWARE_ADDRESS, 10**18)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await unwrap(chain, SOFTWARE_ADDRESS, "2")

        assert exc_info.value.details["token"] == "WPLS"
        assert fake_node.calls["send_raw_transaction"] == 0
