"""
Error Classification

Maps raw node, device and transport failures onto ``ErrorKind``.

Classification is an ordered list of (predicate -> kind) rules. Structured
fields (hardware status words, JSON-RPC codes, exception types) are checked
before message text, and the first matching rule wins. Message matching is
best-effort against third-party wording; anything unmatched becomes
``InternalFailure`` with the original message preserved.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

import httpx

from ...providers.hardware import (
    FAULT_TIMEOUT,
    STATUS_APP_NOT_OPEN,
    STATUS_CLA_NOT_SUPPORTED,
    STATUS_DEVICE_LOCKED,
    STATUS_INS_NOT_SUPPORTED,
    STATUS_LOCKED_SCREEN,
    STATUS_USER_REJECTED,
    HardwareDeviceError,
)
from ...providers.node import NodeConnectionError, RpcError
from .errors import ErrorKind, GatewayError, error_for_kind

logger = logging.getLogger(__name__)

Predicate = Callable[[BaseException], bool]


@dataclass(frozen=True)
class ClassificationRule:
    """One predicate -> kind mapping."""

    kind: ErrorKind
    predicate: Predicate
    name: str = ""

    def matches(self, error: BaseException) -> bool:
        try:
            return bool(self.predicate(error))
        except Exception:  # noqa: BLE001 - a broken predicate must not mask the error
            logger.exception(f"Classification rule {self.name or self.kind.value} failed")
            return False


def _message(error: BaseException) -> str:
    parts = [str(error)]
    rpc_message = getattr(error, "rpc_message", None)
    if rpc_message:
        parts.append(rpc_message)
    return " ".join(parts).lower()


def message_contains(*patterns: str) -> Predicate:
    lowered = [p.lower() for p in patterns]

    def predicate(error: BaseException) -> bool:
        text = _message(error)
        return any(p in text for p in lowered)

    return predicate


def status_word_in(*codes: int) -> Predicate:
    def predicate(error: BaseException) -> bool:
        return isinstance(error, HardwareDeviceError) and error.status_word in codes

    return predicate


def device_fault_in(*faults: str) -> Predicate:
    def predicate(error: BaseException) -> bool:
        return isinstance(error, HardwareDeviceError) and error.fault in faults

    return predicate


def is_instance(*types: type) -> Predicate:
    def predicate(error: BaseException) -> bool:
        return isinstance(error, types)

    return predicate


def rpc_code_in(*codes: int) -> Predicate:
    def predicate(error: BaseException) -> bool:
        return isinstance(error, RpcError) and error.code in codes

    return predicate


# JSON-RPC error code geth-style nodes use for execution reverts
RPC_CODE_EXECUTION_REVERTED = 3


DEFAULT_RULES: List[ClassificationRule] = [
    # Structured signals first
    ClassificationRule(ErrorKind.NODE_UNAVAILABLE, is_instance(NodeConnectionError, httpx.TransportError), "transport"),
    ClassificationRule(ErrorKind.REJECTED_BY_USER, status_word_in(STATUS_USER_REJECTED), "device-rejected-sw"),
    ClassificationRule(
        ErrorKind.DEVICE_LOCKED,
        status_word_in(STATUS_DEVICE_LOCKED, STATUS_LOCKED_SCREEN),
        "device-locked-sw",
    ),
    ClassificationRule(
        ErrorKind.WRONG_APPLICATION_OPEN,
        status_word_in(STATUS_CLA_NOT_SUPPORTED, STATUS_INS_NOT_SUPPORTED, STATUS_APP_NOT_OPEN),
        "wrong-app-sw",
    ),
    # Nothing was broadcast, so an unanswered device request counts as declined
    ClassificationRule(ErrorKind.REJECTED_BY_USER, device_fault_in(FAULT_TIMEOUT), "device-timeout"),
    ClassificationRule(ErrorKind.REVERTED, rpc_code_in(RPC_CODE_EXECUTION_REVERTED), "revert-code"),
    # Hardware device wording
    ClassificationRule(
        ErrorKind.REJECTED_BY_USER,
        message_contains(
            "rejected on ledger",
            "rejected by user",
            "user rejected",
            "denied by the user",
            "request denied",
            "condition of use not satisfied",
            "not confirmed on device",
        ),
        "device-rejected",
    ),
    ClassificationRule(
        ErrorKind.DEVICE_LOCKED,
        message_contains("device is locked", "ledger device is locked", "locked device", "unlock your"),
        "device-locked",
    ),
    ClassificationRule(
        ErrorKind.WRONG_APPLICATION_OPEN,
        message_contains("wrong app is open", "wrong app", "app is not open", "open the ethereum app"),
        "wrong-app",
    ),
    # Any other device or bridge fault stays out of the node and timeout rules
    ClassificationRule(ErrorKind.INTERNAL_FAILURE, is_instance(HardwareDeviceError), "device-other"),
    # Node broadcast wording
    ClassificationRule(ErrorKind.INSUFFICIENT_BALANCE, message_contains("insufficient funds"), "insufficient-funds"),
    ClassificationRule(
        ErrorKind.NONCE_CONFLICT,
        message_contains(
            "nonce too low",
            "nonce too high",
            "nonce has already been used",
            "replacement transaction underpriced",
            "already known",
            "known transaction",
        ),
        "nonce",
    ),
    ClassificationRule(ErrorKind.REVERTED, message_contains("execution reverted"), "revert"),
    ClassificationRule(
        ErrorKind.TIMED_OUT,
        is_instance(asyncio.TimeoutError),
        "timeout-type",
    ),
    ClassificationRule(ErrorKind.TIMED_OUT, message_contains("timeout", "timed out"), "timeout"),
    ClassificationRule(
        ErrorKind.INVALID_NETWORK,
        message_contains("invalid network", "unsupported network", "network not found"),
        "network",
    ),
    ClassificationRule(
        ErrorKind.NODE_UNAVAILABLE,
        message_contains("rpc provider", "could not detect network", "connection refused", "bad gateway"),
        "node",
    ),
]


class ErrorClassifier:
    """
    Ordered rule set mapping raw errors to ``ErrorKind``.

    Usage:
        classifier = ErrorClassifier()
        kind = classifier.classify(exc)
        raise classifier.wrap(exc) from exc
    """

    def __init__(self, rules: Optional[Sequence[ClassificationRule]] = None):
        self._rules: List[ClassificationRule] = list(rules if rules is not None else DEFAULT_RULES)

    @property
    def rules(self) -> List[ClassificationRule]:
        return list(self._rules)

    def extend(self, rules: Iterable[ClassificationRule], first: bool = False) -> None:
        """Add rules; ``first`` puts them ahead of the existing ones."""
        if first:
            self._rules = [*rules, *self._rules]
        else:
            self._rules.extend(rules)

    def classify(self, error: BaseException) -> ErrorKind:
        if isinstance(error, GatewayError):
            return error.kind
        for rule in self._rules:
            if rule.matches(error):
                return rule.kind
        return ErrorKind.INTERNAL_FAILURE

    def wrap(self, error: BaseException) -> GatewayError:
        """Return ``error`` as a ``GatewayError``; already-classified errors pass through."""
        if isinstance(error, GatewayError):
            return error

        kind = self.classify(error)
        message = str(error) or type(error).__name__
        wrapped = error_for_kind(kind, message, details={"cause": type(error).__name__})
        wrapped.__cause__ = error
        return wrapped


_classifier: Optional[ErrorClassifier] = None


def get_error_classifier() -> ErrorClassifier:
    """Get the shared classifier instance."""
    global _classifier
    if _classifier is None:
        _classifier = ErrorClassifier()
    return _classifier


def classify_error(error: BaseException) -> ErrorKind:
    return get_error_classifier().classify(error)
