"""
Transaction builder for the wrapped-native, ERC-20 and V2 router calls the
operations need.

Calldata is encoded by hand from function selectors; every argument here is
a static ``address`` or ``uint256`` so no ABI library is required.
"""

from typing import Optional

from .models import TransactionIntent


# Wrapped native token (WETH-style)
WETH_DEPOSIT_SELECTOR = "0xd0e30db0"  # deposit()
WETH_WITHDRAW_SELECTOR = "0x2e1a7d4d"  # withdraw(uint256)

# ERC-20
ERC20_BALANCE_OF_SELECTOR = "0x70a08231"  # balanceOf(address)
ERC20_ALLOWANCE_SELECTOR = "0xdd62ed3e"  # allowance(address,address)
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)

# Uniswap V2 style router
ROUTER_ADD_LIQUIDITY_SELECTOR = "0xe8e33700"  # addLiquidity(address,address,uint256,uint256,uint256,uint256,address,uint256)
ROUTER_ADD_LIQUIDITY_ETH_SELECTOR = "0xf305d719"  # addLiquidityETH(address,uint256,uint256,uint256,address,uint256)

# Maximum uint256 for unlimited approval
MAX_UINT256 = 2**256 - 1


def _encode_uint256(value: int) -> str:
    """Encode a uint256 as a 32-byte hex string (without 0x prefix)."""
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"Value out of uint256 range: {value}")
    return format(value, "064x")


def _encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = address.lower().replace("0x", "")
    return addr.zfill(64)


def decode_uint256(result: Optional[str]) -> int:
    """Decode the first word of an ``eth_call`` result; empty results read as 0."""
    if not result or result == "0x":
        return 0
    return int(result[2:66] if result.startswith("0x") else result[:64], 16)


def encode_balance_of(owner: str) -> str:
    return ERC20_BALANCE_OF_SELECTOR + _encode_address(owner)


def encode_allowance(owner: str, spender: str) -> str:
    return ERC20_ALLOWANCE_SELECTOR + _encode_address(owner) + _encode_address(spender)


class TransactionBuilder:
    """
    Builds ``TransactionIntent``s for the supported contract calls.

    Handles:
    - Wrapping/unwrapping the native token
    - ERC-20 approvals
    - Adding liquidity through a V2 router
    """

    @staticmethod
    def build_wrap(wrapped_address: str, amount_wei: int, gas_limit: int, gas_price_gwei=None) -> TransactionIntent:
        """Build ``deposit()`` on the wrapped native token, sending ``amount_wei`` as value."""
        return TransactionIntent(
            to=wrapped_address,
            data=WETH_DEPOSIT_SELECTOR,
            value=amount_wei,
            gas_limit=gas_limit,
            gas_price_gwei=gas_price_gwei,
            description="Wrap native token",
        )

    @staticmethod
    def build_unwrap(wrapped_address: str, amount_wei: int, gas_limit: int, gas_price_gwei=None) -> TransactionIntent:
        """Build ``withdraw(amount)`` on the wrapped native token."""
        return TransactionIntent(
            to=wrapped_address,
            data=WETH_WITHDRAW_SELECTOR + _encode_uint256(amount_wei),
            value=0,
            gas_limit=gas_limit,
            gas_price_gwei=gas_price_gwei,
            description="Unwrap native token",
        )

    @staticmethod
    def build_erc20_approve(
        token_address: str,
        spender_address: str,
        gas_limit: int,
        amount: int = MAX_UINT256,
        gas_price_gwei=None,
    ) -> TransactionIntent:
        # Encode: approve(address spender, uint256 amount)
        calldata = (
            ERC20_APPROVE_SELECTOR +
            _encode_address(spender_address) +
            _encode_uint256(amount)
        )
        return TransactionIntent(
            to=token_address,
            data=calldata,
            gas_limit=gas_limit,
            gas_price_gwei=gas_price_gwei,
            description=f"Approve {spender_address[:10]}... to spend tokens",
        )

    @staticmethod
    def build_add_liquidity(
        router_address: str,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        recipient: str,
        deadline: int,
        gas_limit: int,
        gas_price_gwei=None,
    ) -> TransactionIntent:
        """
        Build ``addLiquidity`` for an ERC-20/ERC-20 pair.

        Args:
            router_address: V2 router contract
            token_a: First token of the pair
            token_b: Second token of the pair
            amount_a_desired: Amount of ``token_a`` to add (base units)
            amount_b_desired: Amount of ``token_b`` to add (base units)
            amount_a_min: Slippage floor for ``token_a``
            amount_b_min: Slippage floor for ``token_b``
            recipient: Receiver of the LP tokens
            deadline: Unix timestamp after which the router reverts
        """
        calldata = (
            ROUTER_ADD_LIQUIDITY_SELECTOR +
            _encode_address(token_a) +
            _encode_address(token_b) +
            _encode_uint256(amount_a_desired) +
            _encode_uint256(amount_b_desired) +
            _encode_uint256(amount_a_min) +
            _encode_uint256(amount_b_min) +
            _encode_address(recipient) +
            _encode_uint256(deadline)
        )
        return TransactionIntent(
            to=router_address,
            data=calldata,
            gas_limit=gas_limit,
            gas_price_gwei=gas_price_gwei,
            description="Add liquidity",
        )

    @staticmethod
    def build_add_liquidity_eth(
        router_address: str,
        token: str,
        amount_token_desired: int,
        amount_token_min: int,
        amount_native: int,
        amount_native_min: int,
        recipient: str,
        deadline: int,
        gas_limit: int,
        gas_price_gwei=None,
    ) -> TransactionIntent:
        """Build ``addLiquidityETH``; the native side travels as the transaction value."""
        calldata = (
            ROUTER_ADD_LIQUIDITY_ETH_SELECTOR +
            _encode_address(token) +
            _encode_uint256(amount_token_desired) +
            _encode_uint256(amount_token_min) +
            _encode_uint256(amount_native_min) +
            _encode_address(recipient) +
            _encode_uint256(deadline)
        )
        return TransactionIntent(
            to=router_address,
            data=calldata,
            value=amount_native,
            gas_limit=gas_limit,
            gas_price_gwei=gas_price_gwei,
            description="Add liquidity (native pair)",
        )
