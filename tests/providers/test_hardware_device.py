"""
Tests for the external signer device bridge.
"""

import json

import httpx
import pytest

from conftest import HARDWARE_ADDRESS, WPLS
from evm_gateway.core.execution.models import GasOptions, UnsignedTransaction
from evm_gateway.core.failures import ErrorKind, classify_error
from evm_gateway.providers.hardware import (
    FAULT_TIMEOUT,
    FAULT_UNREACHABLE,
    STATUS_USER_REJECTED,
    ExternalSignerDevice,
    HardwareDeviceError,
    parse_status_word,
)

UNSIGNED = UnsignedTransaction(
    to=WPLS,
    data="0xd0e30db0",
    nonce=4,
    chain_id=369,
    gas_options=GasOptions(gas_limit=50000, gas_price=5 * 10**9),
    value=10**18,
)


def _device(handler, url="http://signer.test") -> ExternalSignerDevice:
    return ExternalSignerDevice(url=url, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.parametrize(
    "message,expected",
    [
        ("Ledger device: Condition of use not satisfied (denied by the user?) (0x6985)", 0x6985),
        ("UNKNOWN_ERROR (0x6b0c)", 0x6B0C),
        ("no status here", None),
        ("", None),
    ],
)
def test_parse_status_word(message, expected):
    assert parse_status_word(message) == expected


@pytest.mark.asyncio
async def test_sign_returns_raw_bytes():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"raw": "0xf86c01", "tx": {}}})

    device = _device(handler)
    raw = await device.sign_transaction(HARDWARE_ADDRESS, "44'/60'/0'/0/0", UNSIGNED)

    assert raw == bytes.fromhex("f86c01")
    params = seen[0]["params"][0]
    assert seen[0]["method"] == "account_signTransaction"
    assert params["from"] == HARDWARE_ADDRESS
    assert params["nonce"] == "0x4"
    assert params["gasPrice"] == hex(5 * 10**9)
    await device.close()


@pytest.mark.asyncio
async def test_device_error_carries_status_word():
    def handler(request):
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "Ledger rejected (0x6985)"}},
        )

    device = _device(handler)

    with pytest.raises(HardwareDeviceError) as exc_info:
        await device.sign_transaction(HARDWARE_ADDRESS, None, UNSIGNED)

    assert exc_info.value.status_word == STATUS_USER_REJECTED
    await device.close()


@pytest.mark.asyncio
async def test_unreachable_bridge():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    device = _device(handler)

    with pytest.raises(HardwareDeviceError) as exc_info:
        await device.sign_transaction(HARDWARE_ADDRESS, None, UNSIGNED)

    assert exc_info.value.fault == FAULT_UNREACHABLE
    assert classify_error(exc_info.value) == ErrorKind.INTERNAL_FAILURE
    await device.close()


@pytest.mark.asyncio
async def test_bridge_timeout_counts_as_rejection():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    device = _device(handler)

    with pytest.raises(HardwareDeviceError) as exc_info:
        await device.sign_transaction(HARDWARE_ADDRESS, None, UNSIGNED)

    assert exc_info.value.fault == FAULT_TIMEOUT
    assert classify_error(exc_info.value) == ErrorKind.REJECTED_BY_USER
    await device.close()


@pytest.mark.asyncio
async def test_unconfigured_bridge():
    device = ExternalSignerDevice(url="", client=httpx.AsyncClient())

    with pytest.raises(HardwareDeviceError):
        await device.sign_transaction(HARDWARE_ADDRESS, None, UNSIGNED)
    await device.close()
