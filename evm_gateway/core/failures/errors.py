"""
Error Taxonomy

Stable, user-actionable failure kinds surfaced by the execution core.
Every raw node, device or transport error is mapped onto one of these
before it reaches a caller.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure kinds consumed by the API boundary."""

    NODE_UNAVAILABLE = "NodeUnavailable"
    INVALID_NETWORK = "InvalidNetwork"
    WALLET_NOT_FOUND = "WalletNotFound"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INSUFFICIENT_ALLOWANCE = "InsufficientAllowance"
    INVALID_GAS_PARAMETERS = "InvalidGasParameters"
    REJECTED_BY_USER = "RejectedByUser"
    DEVICE_LOCKED = "DeviceLocked"
    WRONG_APPLICATION_OPEN = "WrongApplicationOpen"
    NONCE_CONFLICT = "NonceConflict"
    INVALID_REQUEST = "InvalidRequest"
    TIMED_OUT = "TimedOut"
    REVERTED = "Reverted"
    INTERNAL_FAILURE = "InternalFailure"


# Status an HTTP boundary would answer with for each kind
HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NODE_UNAVAILABLE: 503,
    ErrorKind.INVALID_NETWORK: 400,
    ErrorKind.WALLET_NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_BALANCE: 400,
    ErrorKind.INSUFFICIENT_ALLOWANCE: 400,
    ErrorKind.INVALID_GAS_PARAMETERS: 400,
    ErrorKind.REJECTED_BY_USER: 400,
    ErrorKind.DEVICE_LOCKED: 400,
    ErrorKind.WRONG_APPLICATION_OPEN: 400,
    ErrorKind.NONCE_CONFLICT: 409,
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.TIMED_OUT: 408,
    ErrorKind.REVERTED: 400,
    ErrorKind.INTERNAL_FAILURE: 500,
}


class GatewayError(Exception):
    """
    Base class for classified execution failures.

    Attributes:
        kind: Stable failure kind
        message: Human-readable message (the original message for
            unclassified errors)
        details: Extra diagnostic fields
    """

    kind: ErrorKind = ErrorKind.INTERNAL_FAILURE

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.details = details or {}

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": self.kind.value,
            "message": self.message,
            "statusCode": self.http_status,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class NodeUnavailableError(GatewayError):
    """The node RPC call failed or timed out."""

    kind = ErrorKind.NODE_UNAVAILABLE


class InvalidNetworkError(GatewayError):
    """The network is not configured."""

    kind = ErrorKind.INVALID_NETWORK


class WalletNotFoundError(GatewayError):
    """No key material and no hardware registration for the address."""

    kind = ErrorKind.WALLET_NOT_FOUND


class InsufficientBalanceError(GatewayError):
    """Wallet balance is below the amount to be moved."""

    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(
        self,
        message: str = "Insufficient balance",
        token: Optional[str] = None,
        available: Optional[str] = None,
        required: Optional[str] = None,
    ):
        super().__init__(
            message,
            details={"token": token, "available": available, "required": required},
        )


class InsufficientAllowanceError(GatewayError):
    """Spender allowance is below the amount to be moved."""

    kind = ErrorKind.INSUFFICIENT_ALLOWANCE

    def __init__(
        self,
        message: str = "Insufficient allowance",
        token: Optional[str] = None,
        spender: Optional[str] = None,
        current: Optional[str] = None,
        required: Optional[str] = None,
    ):
        super().__init__(
            message,
            details={"token": token, "spender": spender, "current": current, "required": required},
        )


class InvalidGasParametersError(GatewayError):
    kind = ErrorKind.INVALID_GAS_PARAMETERS


class RejectedByUserError(GatewayError):
    """The transaction was rejected on the hardware device."""

    kind = ErrorKind.REJECTED_BY_USER


class DeviceLockedError(GatewayError):
    kind = ErrorKind.DEVICE_LOCKED


class WrongApplicationOpenError(GatewayError):
    kind = ErrorKind.WRONG_APPLICATION_OPEN


class NonceConflictError(GatewayError):
    """The node refused the broadcast because of the nonce."""

    kind = ErrorKind.NONCE_CONFLICT


class InvalidRequestError(GatewayError):
    """Malformed request input, e.g. an unparseable amount or unknown token."""

    kind = ErrorKind.INVALID_REQUEST


class TransactionTimeoutError(GatewayError):
    """
    Confirmation was not observed before the deadline.

    The transaction may still be pending; callers re-query by hash.
    """

    kind = ErrorKind.TIMED_OUT

    def __init__(
        self,
        message: str,
        transaction_hash: Optional[str] = None,
        nonce: Optional[int] = None,
    ):
        super().__init__(
            message,
            details={"transactionHash": transaction_hash, "nonce": nonce},
        )
        self.transaction_hash = transaction_hash
        self.nonce = nonce


class TransactionRevertedError(GatewayError):
    """The node reported an execution revert before the transaction was mined."""

    kind = ErrorKind.REVERTED


class InternalFailureError(GatewayError):
    kind = ErrorKind.INTERNAL_FAILURE


ERROR_CLASS_BY_KIND: Dict[ErrorKind, type] = {
    ErrorKind.INSUFFICIENT_BALANCE: InsufficientBalanceError,
    ErrorKind.INSUFFICIENT_ALLOWANCE: InsufficientAllowanceError,
    ErrorKind.TIMED_OUT: TransactionTimeoutError,
    ErrorKind.NODE_UNAVAILABLE: NodeUnavailableError,
    ErrorKind.INVALID_NETWORK: InvalidNetworkError,
    ErrorKind.WALLET_NOT_FOUND: WalletNotFoundError,
    ErrorKind.INVALID_GAS_PARAMETERS: InvalidGasParametersError,
    ErrorKind.REJECTED_BY_USER: RejectedByUserError,
    ErrorKind.DEVICE_LOCKED: DeviceLockedError,
    ErrorKind.WRONG_APPLICATION_OPEN: WrongApplicationOpenError,
    ErrorKind.NONCE_CONFLICT: NonceConflictError,
    ErrorKind.INVALID_REQUEST: InvalidRequestError,
    ErrorKind.REVERTED: TransactionRevertedError,
    ErrorKind.INTERNAL_FAILURE: InternalFailureError,
}


def error_for_kind(kind: ErrorKind, message: str, details: Optional[Dict[str, Any]] = None) -> GatewayError:
    """Instantiate the exception class registered for ``kind``."""
    error_cls = ERROR_CLASS_BY_KIND.get(kind)
    if error_cls is None:
        return GatewayError(message, kind=kind, details=details)
    error = error_cls(message)
    error.details.update(details or {})
    return error
