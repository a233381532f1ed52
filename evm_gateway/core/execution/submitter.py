"""
Transaction Submitter/Confirmer

Drives one intent through ``Built -> Signed -> Broadcast`` and then races
receipt polling against the network's confirmation timeout:

- receipt first: ``Confirmed`` (status 1) or ``Reverted`` (status 0)
- timer first: ``TransactionTimeoutError``; the transaction may still land

Broadcasts are never retried. Raw node and device faults are classified
before they leave this module.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from ...config import settings
from ...providers.node import NodeClient
from ..failures.classifier import ErrorClassifier, get_error_classifier
from ..failures.errors import ErrorKind, GatewayError, TransactionTimeoutError
from .gas_options import GasOptionBuilder
from .models import (
    ReceiptStatus,
    SubmissionResult,
    SubmissionTrace,
    TransactionIntent,
    TransactionState,
    UnsignedTransaction,
)
from .signers import Signer

logger = logging.getLogger(__name__)


def _quantity(value: Any) -> int:
    if value is None:
        return 0
    return int(value, 16) if isinstance(value, str) else int(value)


class TransactionSubmitter:
    """
    Submits transaction intents on one network.

    Usage:
        submitter = TransactionSubmitter(node, gas_builder, chain_id=369, confirmation_timeout=30)
        result = await submitter.submit(signer, intent)
    """

    def __init__(
        self,
        node: NodeClient,
        gas_builder: GasOptionBuilder,
        chain_id: int,
        confirmation_timeout: float,
        poll_interval: Optional[float] = None,
        nonce_block_tag: Optional[str] = None,
        classifier: Optional[ErrorClassifier] = None,
    ):
        self.node = node
        self.gas_builder = gas_builder
        self.chain_id = chain_id
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval or settings.confirmation_poll_interval_seconds
        self.nonce_block_tag = nonce_block_tag or settings.nonce_block_tag
        self.classifier = classifier or get_error_classifier()

    async def build(self, signer: Signer, intent: TransactionIntent) -> UnsignedTransaction:
        """Assemble the unsigned transaction with a freshly fetched nonce."""
        gas_options = await self.gas_builder.build(intent.gas_price_gwei, intent.gas_limit)
        nonce = await self.node.get_transaction_count(signer.address, self.nonce_block_tag)
        return UnsignedTransaction(
            to=intent.to,
            data=intent.data,
            nonce=nonce,
            chain_id=self.chain_id,
            gas_options=gas_options,
            value=intent.value,
        )

    async def submit(
        self,
        signer: Signer,
        intent: TransactionIntent,
        trace: Optional[SubmissionTrace] = None,
    ) -> SubmissionResult:
        """
        Build, sign, broadcast and confirm ``intent``.

        Returns:
            SubmissionResult with ``Success`` or ``Reverted`` status

        Raises:
            GatewayError: classified failure; ``TransactionTimeoutError`` when
                the deadline passed before a receipt was observed
        """
        trace = trace if trace is not None else SubmissionTrace()

        try:
            unsigned = await self.build(signer, intent)
            trace.record(TransactionState.BUILT)
            logger.info(
                f"Built transaction to {unsigned.to} (nonce={unsigned.nonce}, "
                f"fee_mode={unsigned.gas_options.fee_mode.value}, signer={signer.kind})"
            )

            if signer.can_auto_send:
                tx_hash = await signer.sign_and_send(unsigned)
                trace.record(TransactionState.SIGNED)
            else:
                signed = await signer.sign(unsigned)
                trace.record(TransactionState.SIGNED)
                logger.info(f"Transaction signed on device (nonce={unsigned.nonce})")
                tx_hash = await self.node.send_raw_transaction(signed.raw_transaction)

            trace.record(TransactionState.BROADCAST)
            logger.info(f"Transaction broadcast: {tx_hash} (nonce={unsigned.nonce})")
        except Exception as e:
            error = self.classifier.wrap(e)
            if error.kind == ErrorKind.REJECTED_BY_USER:
                trace.record(TransactionState.REJECTED_BY_USER)
            logger.error(f"Submission failed before broadcast [{error.kind.value}]: {error.message}")
            if error is e:
                raise
            raise error from e

        return await self.confirm(tx_hash, unsigned.nonce, trace)

    async def confirm(
        self,
        tx_hash: str,
        nonce: int,
        trace: Optional[SubmissionTrace] = None,
    ) -> SubmissionResult:
        """Race receipt polling against the confirmation timeout."""
        trace = trace if trace is not None else SubmissionTrace()

        poller = asyncio.ensure_future(self._poll_receipt(tx_hash))
        timer = asyncio.ensure_future(asyncio.sleep(self.confirmation_timeout))
        try:
            done, _ = await asyncio.wait({poller, timer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (poller, timer):
                if not task.done():
                    task.cancel()

        if poller not in done:
            trace.record(TransactionState.TIMED_OUT)
            logger.warning(
                f"Transaction {tx_hash} not confirmed within {self.confirmation_timeout:g}s; it may still be pending"
            )
            raise TransactionTimeoutError(
                f"Transaction {tx_hash} was not confirmed within {self.confirmation_timeout:g}s "
                f"and may still be pending",
                transaction_hash=tx_hash,
                nonce=nonce,
            )

        receipt = poller.result()
        result = self._result_from_receipt(tx_hash, nonce, receipt)
        if result.is_success:
            trace.record(TransactionState.CONFIRMED)
            logger.info(f"Transaction confirmed: {tx_hash} (gas_used={result.gas_used})")
        else:
            trace.record(TransactionState.REVERTED)
            logger.error(f"Transaction reverted: {tx_hash} (gas_used={result.gas_used})")
        return result

    async def _poll_receipt(self, tx_hash: str) -> Dict[str, Any]:
        while True:
            try:
                receipt = await self.node.get_transaction_receipt(tx_hash)
                if receipt:
                    return receipt
            except GatewayError:
                raise
            except Exception as e:
                logger.warning(f"Receipt poll for {tx_hash} failed, retrying: {e}")
            await asyncio.sleep(self.poll_interval)

    @staticmethod
    def _result_from_receipt(tx_hash: str, nonce: int, receipt: Dict[str, Any]) -> SubmissionResult:
        status = ReceiptStatus.SUCCESS if _quantity(receipt.get("status")) == 1 else ReceiptStatus.REVERTED
        block_number = receipt.get("blockNumber")
        return SubmissionResult(
            transaction_hash=receipt.get("transactionHash") or tx_hash,
            status=status,
            gas_used=_quantity(receipt.get("gasUsed")),
            effective_gas_price=_quantity(receipt.get("effectiveGasPrice")),
            nonce=nonce,
            block_number=_quantity(block_number) if block_number is not None else None,
        )
