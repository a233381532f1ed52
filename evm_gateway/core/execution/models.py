"""
Transaction execution models and types.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from eth_utils import from_wei, to_checksum_address


class FeeMode(str, Enum):
    """Fee model used for an outbound transaction."""
    LEGACY = "legacy"
    EIP1559 = "eip1559"


class TransactionState(str, Enum):
    """Submission lifecycle state."""
    BUILT = "built"                  # Unsigned transaction assembled
    SIGNED = "signed"                # Signed (software signers also broadcast here)
    BROADCAST = "broadcast"          # Accepted by the node
    CONFIRMED = "confirmed"          # Mined with status 1
    REVERTED = "reverted"            # Mined with status 0
    TIMED_OUT = "timed_out"          # Deadline elapsed, may still be pending
    REJECTED_BY_USER = "rejected_by_user"  # Refused on the hardware device


class ReceiptStatus(str, Enum):
    """On-chain outcome of a mined transaction."""
    SUCCESS = "success"
    REVERTED = "reverted"


@dataclass(frozen=True)
class FeeEstimate:
    """A fee quote for one network, in gwei."""
    fee_mode: FeeMode
    gas_price_gwei: Decimal
    max_fee_per_gas_gwei: Optional[Decimal] = None
    max_priority_fee_per_gas_gwei: Optional[Decimal] = None
    base_fee_gwei: Optional[Decimal] = None
    observed_at: float = 0.0

    def __post_init__(self):
        if self.fee_mode == FeeMode.EIP1559:
            if self.max_fee_per_gas_gwei is None or self.max_priority_fee_per_gas_gwei is None:
                raise ValueError("EIP-1559 estimates require max fee and priority fee")
            if self.max_fee_per_gas_gwei < self.max_priority_fee_per_gas_gwei:
                raise ValueError("maxFeePerGas must be >= maxPriorityFeePerGas")

    @property
    def is_eip1559(self) -> bool:
        return self.fee_mode == FeeMode.EIP1559


@dataclass(frozen=True)
class GasOptions:
    """Concrete fee and limit fields for one outbound transaction (wei)."""
    gas_limit: int
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    @property
    def fee_mode(self) -> FeeMode:
        return FeeMode.LEGACY if self.gas_price is not None else FeeMode.EIP1559

    def to_dict(self) -> Dict[str, int]:
        """Fee fields keyed the way transaction dicts expect them."""
        if self.gas_price is not None:
            return {"gasPrice": self.gas_price, "gasLimit": self.gas_limit}
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "gasLimit": self.gas_limit,
        }


@dataclass(frozen=True)
class TransactionIntent:
    """What an operation wants executed; gas fields are resolved at submit time."""
    to: str
    data: str
    gas_limit: int
    value: int = 0
    gas_price_gwei: Optional[Any] = None        # Caller override, legacy pricing
    description: str = ""


@dataclass(frozen=True)
class UnsignedTransaction:
    """A fully-built transaction ready for signing."""
    to: str
    data: str
    nonce: int
    chain_id: int
    gas_options: GasOptions
    value: int = 0

    def to_signable_dict(self) -> Dict[str, Any]:
        """Integer-valued dict accepted by ``eth_account`` signing."""
        tx: Dict[str, Any] = {
            "to": to_checksum_address(self.to),
            "data": self.data,
            "value": self.value,
            "nonce": self.nonce,
            "chainId": self.chain_id,
            "gas": self.gas_options.gas_limit,
        }
        if self.gas_options.gas_price is not None:
            tx["gasPrice"] = self.gas_options.gas_price
        else:
            tx["maxFeePerGas"] = self.gas_options.max_fee_per_gas
            tx["maxPriorityFeePerGas"] = self.gas_options.max_priority_fee_per_gas
            tx["type"] = 2
        return tx

    def to_rpc_dict(self) -> Dict[str, Any]:
        """Hex-quantity dict in JSON-RPC transaction-args form."""
        tx: Dict[str, Any] = {
            "to": self.to,
            "data": self.data,
            "value": hex(self.value),
            "nonce": hex(self.nonce),
            "chainId": hex(self.chain_id),
            "gas": hex(self.gas_options.gas_limit),
        }
        if self.gas_options.gas_price is not None:
            tx["gasPrice"] = hex(self.gas_options.gas_price)
        else:
            tx["maxFeePerGas"] = hex(self.gas_options.max_fee_per_gas)
            tx["maxPriorityFeePerGas"] = hex(self.gas_options.max_priority_fee_per_gas)
        return tx


@dataclass(frozen=True)
class SubmissionResult:
    """Terminal record of one mined transaction."""
    transaction_hash: str
    status: ReceiptStatus
    gas_used: int
    effective_gas_price: int
    nonce: int
    block_number: Optional[int] = None

    @property
    def fee_wei(self) -> int:
        """Fee charged, surfaced even when the transaction reverted."""
        return self.gas_used * self.effective_gas_price

    @property
    def fee(self) -> Decimal:
        """Fee charged in native units."""
        return Decimal(from_wei(self.fee_wei, "ether"))

    @property
    def is_success(self) -> bool:
        return self.status == ReceiptStatus.SUCCESS


@dataclass
class SubmissionTrace:
    """State transitions observed while submitting one intent."""
    states: list = field(default_factory=list)

    def record(self, state: TransactionState) -> None:
        self.states.append(state)

    @property
    def current(self) -> Optional[TransactionState]:
        return self.states[-1] if self.states else None
