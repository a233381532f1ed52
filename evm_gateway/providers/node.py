"""
JSON-RPC client for an EVM node.

Thin async wrapper over the node's ``eth_*`` methods. Every call is bounded
by a timeout so that an unresponsive endpoint can never hang a request.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class RpcError(Exception):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: Optional[int], message: str, data: Any = None):
        super().__init__(f"RPC error from {method}: {message}")
        self.method = method
        self.code = code
        self.rpc_message = message
        self.data = data


class NodeConnectionError(Exception):
    """The node could not be reached or did not answer in time."""

    def __init__(self, method: str, reason: str):
        super().__init__(f"RPC provider unavailable ({method}): {reason}")
        self.method = method
        self.reason = reason


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


class NodeClient:
    """
    Async JSON-RPC client bound to one node URL.

    Transport failures and timeouts raise ``NodeConnectionError``; JSON-RPC
    error responses raise ``RpcError`` with the node's code and message
    preserved for classification.
    """

    def __init__(
        self,
        node_url: str,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.node_url = node_url
        self.timeout_seconds = timeout_seconds or settings.rpc_timeout_seconds
        self._client = client or httpx.AsyncClient(timeout=self.timeout_seconds)
        self._ids = itertools.count(1)

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make an RPC call, bounded by ``timeout_seconds``."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }

        try:
            response = await asyncio.wait_for(
                self._client.post(self.node_url, json=payload),
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            result = response.json()
        except asyncio.TimeoutError as e:
            raise NodeConnectionError(method, f"timed out after {self.timeout_seconds}s") from e
        except httpx.HTTPError as e:
            raise NodeConnectionError(method, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise NodeConnectionError(method, f"invalid JSON response: {e}") from e

        if "error" in result and result["error"]:
            error = result["error"]
            if isinstance(error, dict):
                raise RpcError(method, error.get("code"), error.get("message", ""), error.get("data"))
            raise RpcError(method, None, str(error))

        return result.get("result")

    async def get_chain_id(self) -> int:
        return _to_int(await self.call("eth_chainId"))

    async def get_block_number(self) -> int:
        return _to_int(await self.call("eth_blockNumber"))

    async def get_block(self, block_tag: str = "latest") -> Optional[Dict[str, Any]]:
        return await self.call("eth_getBlockByNumber", [block_tag, False])

    async def get_gas_price(self) -> int:
        """Legacy gas price in wei."""
        return _to_int(await self.call("eth_gasPrice"))

    async def get_max_priority_fee(self) -> int:
        """Suggested EIP-1559 priority fee in wei."""
        return _to_int(await self.call("eth_maxPriorityFeePerGas"))

    async def get_transaction_count(self, address: str, block_tag: str = "pending") -> int:
        return _to_int(await self.call("eth_getTransactionCount", [address, block_tag]))

    async def get_balance(self, address: str, block_tag: str = "latest") -> int:
        return _to_int(await self.call("eth_getBalance", [address, block_tag]))

    async def eth_call(self, to: str, data: str, block_tag: str = "latest") -> str:
        return await self.call("eth_call", [{"to": to, "data": data}, block_tag])

    async def send_raw_transaction(self, raw_transaction: str) -> str:
        """Broadcast a signed transaction. Returns the transaction hash."""
        tx_hash = await self.call("eth_sendRawTransaction", [raw_transaction])
        logger.info(f"Transaction submitted: {tx_hash}")
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self.call("eth_getTransactionReceipt", [tx_hash])

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
