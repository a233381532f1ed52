"""
ERC-20 approvals and allowance reads against a spender.

The spender may be given as an address or as a connector name
(``pulsex`` / ``pulsex/amm``), which resolves to the network's router.
"""

import asyncio
from typing import Any, Dict, List, Optional

import structlog

from ...config import settings
from ...services.evm import checksum, format_amount, is_address
from ...types.operations import AllowancesResponse, ApproveResponse, TransactionResponse
from ..chain import Chain
from ..execution.gas_options import APPROVE_GAS_LIMIT
from ..execution.tx_builder import MAX_UINT256, TransactionBuilder
from ..failures.errors import InvalidRequestError
from .base import gateway_operation, parse_amount, require_token
from .guards import read_allowance

logger = structlog.stdlib.get_logger(__name__)


def resolve_spender(chain: Chain, spender: str) -> str:
    """Map a connector name or address to a checksummed spender address."""
    if is_address(spender):
        return checksum(spender)
    connector = (spender or "").split("/")[0].lower()
    provider = (chain.config.swap_provider or "").split("/")[0].lower()
    if connector and connector == provider and chain.config.router_address:
        return checksum(chain.config.router_address)
    raise InvalidRequestError(
        f"Unknown spender {spender!r} on {chain.name}; pass a contract address or a configured connector name",
        details={"spender": spender},
    )


@gateway_operation("approve")
async def approve(
    chain: Chain,
    address: str,
    token: str,
    spender: str,
    amount: Optional[Any] = None,
    gas_price_gwei: Optional[Any] = None,
) -> ApproveResponse:
    """Approve ``spender`` for ``amount`` of ``token``; unlimited when ``amount`` is omitted."""
    with structlog.contextvars.bound_contextvars(address=address):
        signer = chain.resolve_signer(address)
        token_info = require_token(chain.tokens, token)
        spender_address = resolve_spender(chain, spender)
        raw_amount = MAX_UINT256 if amount in (None, "") else parse_amount(amount, token_info.decimals)

        intent = TransactionBuilder.build_erc20_approve(
            token_info.address,
            spender_address,
            APPROVE_GAS_LIMIT,
            amount=raw_amount,
            gas_price_gwei=gas_price_gwei,
        )
        logger.info("approve_submit", signer=signer.kind, token=token_info.symbol, spender=spender_address)
        result = await chain.submitter.submit(signer, intent)

        return ApproveResponse(
            **TransactionResponse.result_fields(result),
            token_address=token_info.address,
            spender=spender_address,
            amount=format_amount(raw_amount, token_info.decimals),
        )


@gateway_operation("allowances")
async def get_allowances(
    chain: Chain,
    address: str,
    spender: str,
    tokens: Optional[List[str]] = None,
) -> AllowancesResponse:
    """Read current allowances of ``spender`` for each token (all list tokens when omitted)."""
    spender_address = resolve_spender(chain, spender)
    token_infos = [require_token(chain.tokens, t) for t in tokens] if tokens else chain.tokens.all()
    semaphore = asyncio.Semaphore(settings.max_concurrent_requests)

    async def read(info) -> str:
        async with semaphore:
            value = await read_allowance(chain.node, info.address, address, spender_address)
        return format_amount(value, info.decimals)

    values = await asyncio.gather(*(read(info) for info in token_infos))
    approvals: Dict[str, str] = {info.symbol: value for info, value in zip(token_infos, values)}
    return AllowancesResponse(spender=spender_address, approvals=approvals)
