from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.execution.models import ReceiptStatus, SubmissionResult
from ..services.evm import format_amount


class TransactionResponse(BaseModel):
    transaction_hash: str = Field(description="Hash of the mined transaction")
    status: ReceiptStatus = Field(description="On-chain outcome (success or reverted)")
    fee: str = Field(description="Fee charged in native units, also charged on revert")
    nonce: int = Field(description="Nonce used by the transaction")
    gas_used: int = Field(description="Gas consumed, copied from the receipt")
    effective_gas_price: int = Field(description="Effective gas price in wei, copied from the receipt")
    block_number: Optional[int] = Field(default=None, description="Block the transaction was mined in")

    @classmethod
    def result_fields(cls, result: SubmissionResult) -> Dict[str, object]:
        return {
            "transaction_hash": result.transaction_hash,
            "status": result.status,
            "fee": format_amount(result.fee_wei, 18),
            "nonce": result.nonce,
            "gas_used": result.gas_used,
            "effective_gas_price": result.effective_gas_price,
            "block_number": result.block_number,
        }


class WrapResponse(TransactionResponse):
    amount: str = Field(description="Amount wrapped or unwrapped, in native units")
    wrapped_address: str = Field(description="Wrapped native token contract")
    native_token: str = Field(description="Native token symbol, e.g. PLS")
    wrapped_token: str = Field(description="Wrapped token symbol, e.g. WPLS")


class ApproveResponse(TransactionResponse):
    token_address: str = Field(description="Approved ERC-20 token")
    spender: str = Field(description="Address allowed to spend the token")
    amount: str = Field(description="Approved amount in token units")


class AddLiquidityResponse(TransactionResponse):
    router_address: str = Field(description="Router the liquidity was added through")
    base_token: str = Field(description="Base token symbol")
    quote_token: str = Field(description="Quote token symbol")
    base_token_amount_added: str = Field(description="Base token amount sent to the router")
    quote_token_amount_added: str = Field(description="Quote token amount sent to the router")


class EstimateGasResponse(BaseModel):
    fee_per_compute_unit: Decimal = Field(description="Gas price in gwei")
    denomination: str = Field(default="gwei", description="Unit of fee_per_compute_unit")
    compute_units: int = Field(description="Gas limit the fee was priced for")
    fee_asset: str = Field(description="Native token symbol")
    fee: Decimal = Field(description="Total fee in native units")
    timestamp: int = Field(description="Unix time in milliseconds")
    gas_type: str = Field(description="Fee model: legacy or eip1559")
    max_fee_per_gas: Optional[Decimal] = Field(default=None, description="EIP-1559 max fee in gwei")
    max_priority_fee_per_gas: Optional[Decimal] = Field(default=None, description="EIP-1559 priority fee in gwei")


class StatusResponse(BaseModel):
    chain: str = Field(description="Chain family")
    network: str = Field(description="Network name")
    rpc_url: str = Field(description="Node endpoint")
    current_block_number: int = Field(description="Latest block, 0 when the node did not answer in time")
    native_currency: str = Field(description="Native token symbol")
    swap_provider: str = Field(default="", description="Default swap connector")


class BalancesResponse(BaseModel):
    balances: Dict[str, str] = Field(default_factory=dict, description="Balances keyed by token symbol")


class AllowancesResponse(BaseModel):
    spender: str = Field(description="Spender address the allowances were read for")
    approvals: Dict[str, str] = Field(default_factory=dict, description="Allowances keyed by token symbol")


class NetworksResponse(BaseModel):
    networks: List[str] = Field(default_factory=list, description="Configured network names")
