#!/usr/bin/env python3
"""Simple CLI for running gateway operations locally"""

import argparse
import asyncio
import sys
from typing import List, Optional

from evm_gateway.core.chain import close_chains, get_chain
from evm_gateway.core.failures import GatewayError
from evm_gateway.core.operations import (
    add_liquidity,
    approve,
    estimate_gas,
    get_allowances,
    get_balances,
    get_status,
    unwrap,
    wrap,
)
from evm_gateway.logging_config import setup_logging
from evm_gateway.services.networks import available_networks
from evm_gateway.types import TransactionResponse


def print_transaction(title: str, result: TransactionResponse):
    """Pretty print a mined transaction"""
    icon = "✅" if result.status.value == "success" else "⛔"
    print(f"\n{icon} {title}")
    print("=" * 50)
    print(f"Hash:   {result.transaction_hash}")
    print(f"Status: {result.status.value}")
    print(f"Nonce:  {result.nonce}")
    print(f"Fee:    {result.fee}")
    extra = result.model_dump(exclude=set(TransactionResponse.model_fields))
    for key, value in extra.items():
        print(f"{key}: {value}")


async def cli_estimate_gas(network: Optional[str]):
    chain = get_chain(network)
    print(f"⛽ Estimating gas on {chain.name}...")
    report = await estimate_gas(chain)
    print(f"\nGas type:  {report.gas_type}")
    print(f"Gas price: {report.fee_per_compute_unit} {report.denomination}")
    if report.max_fee_per_gas is not None:
        print(f"Max fee:   {report.max_fee_per_gas} gwei")
        print(f"Priority:  {report.max_priority_fee_per_gas} gwei")
    print(f"Fee for {report.compute_units} gas: {report.fee} {report.fee_asset}")


async def cli_status(network: Optional[str]):
    chain = get_chain(network)
    status = await get_status(chain)
    print(f"\n🔗 {status.network} ({status.chain})")
    print(f"RPC:    {status.rpc_url}")
    print(f"Block:  {status.current_block_number}")
    print(f"Native: {status.native_currency}")
    if status.swap_provider:
        print(f"Swap:   {status.swap_provider}")


async def cli_balances(network: Optional[str], address: str, tokens: Optional[List[str]]):
    chain = get_chain(network)
    print(f"🔍 Fetching balances for {address} on {chain.name}...")
    result = await get_balances(chain, address, tokens)
    if not result.balances:
        print("No balances")
        return
    for symbol, amount in result.balances.items():
        print(f"{amount:>24} {symbol}")


async def cli_allowances(network: Optional[str], address: str, spender: str, tokens: Optional[List[str]]):
    chain = get_chain(network)
    result = await get_allowances(chain, address, spender, tokens)
    print(f"\nAllowances for {result.spender}:")
    for symbol, amount in result.approvals.items():
        print(f"{amount:>24} {symbol}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="EVM Gateway CLI")
    parser.add_argument("--network", "-n", help="Network name (default: from settings)")
    parser.add_argument("--log-level", help="Override log level")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("networks", help="List configured networks")
    subparsers.add_parser("estimate-gas", help="Current fee estimate")
    subparsers.add_parser("status", help="Node status")

    balances_parser = subparsers.add_parser("balances", help="Wallet balances")
    balances_parser.add_argument("address", help="Wallet address")
    balances_parser.add_argument("tokens", nargs="*", help="Token symbols or addresses (default: all non-zero)")

    allowances_parser = subparsers.add_parser("allowances", help="Token allowances for a spender")
    allowances_parser.add_argument("address", help="Wallet address")
    allowances_parser.add_argument("spender", help="Spender address or connector name")
    allowances_parser.add_argument("tokens", nargs="*", help="Token symbols or addresses")

    for name, help_text in (("wrap", "Wrap native token"), ("unwrap", "Unwrap wrapped native token")):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("address", help="Wallet address")
        p.add_argument("amount", help="Amount in native units")
        p.add_argument("--gas-price", help="Gas price override in gwei")

    approve_parser = subparsers.add_parser("approve", help="Approve a spender for a token")
    approve_parser.add_argument("address", help="Wallet address")
    approve_parser.add_argument("token", help="Token symbol or address")
    approve_parser.add_argument("spender", help="Spender address or connector name")
    approve_parser.add_argument("--amount", help="Amount to approve (default: unlimited)")
    approve_parser.add_argument("--gas-price", help="Gas price override in gwei")

    liquidity_parser = subparsers.add_parser("add-liquidity", help="Add liquidity through the network router")
    liquidity_parser.add_argument("address", help="Wallet address")
    liquidity_parser.add_argument("base_token", help="Base token symbol")
    liquidity_parser.add_argument("quote_token", help="Quote token symbol")
    liquidity_parser.add_argument("base_amount", help="Base token amount")
    liquidity_parser.add_argument("quote_amount", help="Quote token amount")
    liquidity_parser.add_argument("--slippage", help="Slippage tolerance in percent (default: 2)")
    liquidity_parser.add_argument("--gas-price", help="Gas price override in gwei")
    liquidity_parser.add_argument("--max-gas", type=int, help="Gas limit override")

    return parser


async def run(args: argparse.Namespace) -> None:
    command = args.command
    network = args.network

    if command == "networks":
        for name in available_networks():
            print(name)

    elif command == "estimate-gas":
        await cli_estimate_gas(network)

    elif command == "status":
        await cli_status(network)

    elif command == "balances":
        await cli_balances(network, args.address, args.tokens or None)

    elif command == "allowances":
        await cli_allowances(network, args.address, args.spender, args.tokens or None)

    elif command == "wrap":
        result = await wrap(get_chain(network), args.address, args.amount, args.gas_price)
        print_transaction("Wrap", result)

    elif command == "unwrap":
        result = await unwrap(get_chain(network), args.address, args.amount, args.gas_price)
        print_transaction("Unwrap", result)

    elif command == "approve":
        result = await approve(
            get_chain(network), args.address, args.token, args.spender, args.amount, args.gas_price
        )
        print_transaction("Approve", result)

    elif command == "add-liquidity":
        result = await add_liquidity(
            get_chain(network),
            args.address,
            args.base_token,
            args.quote_token,
            args.base_amount,
            args.quote_amount,
            slippage_pct=args.slippage,
            gas_price_gwei=args.gas_price,
            max_gas=args.max_gas,
        )
        print_transaction("Add liquidity", result)


async def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.log_level)

    try:
        await run(args)
    except GatewayError as e:
        print(f"❌ {e.kind.value}: {e.message}")
        return 1
    finally:
        await close_chains()
    return 0


def console_main() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    console_main()
