"""
Transaction execution core.

Provides:
- FeeEstimator: cached per-network fee quotes
- GasOptionBuilder: fee/limit fields for one transaction
- SignerResolver: software vs hardware signer handles
- TransactionSubmitter: build, sign, broadcast and confirm
"""

from .models import (
    FeeEstimate,
    FeeMode,
    GasOptions,
    ReceiptStatus,
    SubmissionResult,
    SubmissionTrace,
    TransactionIntent,
    TransactionState,
    UnsignedTransaction,
)
from .fee_estimator import FeeCache, FeeEstimator, get_fee_estimator
from .gas_options import (
    ADD_LIQUIDITY_GAS_LIMIT,
    APPROVE_GAS_LIMIT,
    ESTIMATE_REPORT_GAS_LIMIT,
    UNWRAP_GAS_LIMIT,
    WRAP_GAS_LIMIT,
    GasOptionBuilder,
)
from .signers import (
    HardwareSigner,
    SignedTransaction,
    Signer,
    SignerResolver,
    SoftwareSigner,
)
from .submitter import TransactionSubmitter
from .tx_builder import TransactionBuilder

__all__ = [
    # Models
    "FeeEstimate",
    "FeeMode",
    "GasOptions",
    "ReceiptStatus",
    "SubmissionResult",
    "SubmissionTrace",
    "TransactionIntent",
    "TransactionState",
    "UnsignedTransaction",
    # Fees
    "FeeCache",
    "FeeEstimator",
    "get_fee_estimator",
    "GasOptionBuilder",
    "WRAP_GAS_LIMIT",
    "APPROVE_GAS_LIMIT",
    "UNWRAP_GAS_LIMIT",
    "ADD_LIQUIDITY_GAS_LIMIT",
    "ESTIMATE_REPORT_GAS_LIMIT",
    # Signing
    "Signer",
    "SignedTransaction",
    "SoftwareSigner",
    "HardwareSigner",
    "SignerResolver",
    # Submission
    "TransactionSubmitter",
    "TransactionBuilder",
]
