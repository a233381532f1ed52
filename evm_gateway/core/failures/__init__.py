"""
Failure handling for the execution core.

- errors: the stable ``ErrorKind`` taxonomy and its exception classes
- classifier: ordered predicate -> kind rules over raw node/device errors
"""

from .errors import (
    DeviceLockedError,
    ErrorKind,
    GatewayError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InternalFailureError,
    InvalidGasParametersError,
    InvalidNetworkError,
    InvalidRequestError,
    NodeUnavailableError,
    NonceConflictError,
    RejectedByUserError,
    TransactionRevertedError,
    TransactionTimeoutError,
    WalletNotFoundError,
    WrongApplicationOpenError,
)
from .classifier import (
    ClassificationRule,
    ErrorClassifier,
    classify_error,
    get_error_classifier,
)

__all__ = [
    # Errors
    "ErrorKind",
    "GatewayError",
    "NodeUnavailableError",
    "InvalidNetworkError",
    "WalletNotFoundError",
    "InsufficientBalanceError",
    "InsufficientAllowanceError",
    "InvalidGasParametersError",
    "RejectedByUserError",
    "DeviceLockedError",
    "WrongApplicationOpenError",
    "NonceConflictError",
    "InvalidRequestError",
    "TransactionTimeoutError",
    "TransactionRevertedError",
    "InternalFailureError",
    # Classifier
    "ClassificationRule",
    "ErrorClassifier",
    "classify_error",
    "get_error_classifier",
]
