"""Payment reconciliation - allocating confirmed payments across credit sales"""

import logging
import time
import uuid
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from credit_ledger.domain.allocation import plan_allocation
from credit_ledger.domain.clock import Clock, SystemClock
from credit_ledger.domain.exceptions import (
    DuplicatePayment,
    InvalidAmount,
    LedgerError,
    PaymentVerificationFailed,
)
from credit_ledger.domain.models import (
    BulkPaymentFailure,
    BulkPaymentResult,
    GatewayCallback,
    IntentKind,
    NotificationIntent,
    PaymentConfirmation,
    PaymentEntry,
    PaymentMethod,
    ReconciliationResult,
)
from credit_ledger.infrastructure.clients.payment_gateway import PaymentVerifier
from credit_ledger.infrastructure.database.repositories import (
    PaymentRepository,
    to_obligation,
    to_payment_entry,
)
from credit_ledger.infrastructure.observability.logging import log_reconciliation
from credit_ledger.infrastructure.observability.metrics import record_failure, record_payment
from credit_ledger.services.ledger import CreditAccountLedger

logger = logging.getLogger(__name__)


def confirmation_intent(result: ReconciliationResult) -> NotificationIntent:
    """Payment-received notice handed to the dispatcher after a successful commit"""
    return NotificationIntent(
        kind=IntentKind.PAYMENT_RECEIVED,
        customer_id=result.customer_id,
        obligation_id=result.allocations[0].obligation_id if result.allocations else None,
        amount_due_cents=result.new_balance_cents,
    )


class PaymentReconciler:
    """Applies one payment as a single all-or-nothing unit"""

    def __init__(
        self,
        db: Session,
        ledger: Optional[CreditAccountLedger] = None,
        verifier: Optional[PaymentVerifier] = None,
        clock: Optional[Clock] = None,
    ):
        self.db = db
        self.clock = clock or SystemClock()
        self.ledger = ledger or CreditAccountLedger(db, clock=self.clock)
        self.verifier = verifier

    def apply_payment(self, confirmation: PaymentConfirmation) -> ReconciliationResult:
        """
        Allocate a payment oldest-sale-first and persist it atomically.

        Flow (all inside one ReconciliationTransaction):
        1. Lock the account; reject a reused idempotency key
        2. Load pending sales oldest first (or only the target sale)
        3. Plan the waterfall split; fail if the payment exceeds what is owed
        4. Apply paid-to-date/status to each touched sale
        5. Lower the account balance by the total applied
        6. Write one payment record per touched sale

        Raises:
            InvalidAmount, OverPayment, ExcessPayment, NoOutstandingObligations,
            AccountNotFound, ObligationNotFound, DuplicatePayment, LockTimeout,
            TransactionConflict, LedgerStorageError
        """
        start_time = time.time()

        try:
            if confirmation.amount_cents <= 0:
                raise InvalidAmount(f"Payment amount must be greater than 0, got {confirmation.amount_cents}")

            paid_at = confirmation.paid_at or self.clock.now()
            method = PaymentMethod(confirmation.method)
            batch_id = uuid.uuid4()

            with self.ledger.transaction(confirmation.customer_id) as txn:
                if confirmation.idempotency_key and txn.payments.key_exists(
                    confirmation.customer_id, confirmation.idempotency_key
                ):
                    raise DuplicatePayment(
                        f"Payment {confirmation.idempotency_key} was already applied for {confirmation.customer_id}"
                    )

                pending = txn.obligations.list_pending_for_account(txn.account, for_update=True)
                plan = plan_allocation(
                    [to_obligation(row) for row in pending],
                    confirmation.amount_cents,
                    confirmation.target_obligation_id,
                )

                rows = {row.id: row for row in pending}
                for allocation in plan.allocations:
                    row = rows[allocation.obligation_id]
                    row.paid_to_date_cents = allocation.paid_to_date_cents
                    row.status = allocation.status.value
                    row.last_payment_at = paid_at

                new_balance = self.ledger.record_payment(txn, plan.total_applied_cents)

                for allocation in plan.allocations:
                    txn.payments.add_payment(
                        batch_id=batch_id,
                        account=txn.account,
                        obligation_id=allocation.obligation_id,
                        amount_cents=allocation.amount_cents,
                        method=method.value,
                        paid_at=paid_at,
                        idempotency_key=confirmation.idempotency_key,
                        reference=confirmation.reference,
                        notes=confirmation.notes,
                    )

                result = ReconciliationResult(
                    batch_id=batch_id,
                    customer_id=confirmation.customer_id,
                    allocations=plan.allocations,
                    new_balance_cents=new_balance,
                    available_credit_cents=txn.account.limit_cents - new_balance,
                )

        except LedgerError as e:
            record_failure(e.code)
            logger.warning(
                f"Payment rejected: {e}",
                extra={"customer_id": confirmation.customer_id, "error_code": e.code},
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        record_payment(method.value, result.total_applied_cents)
        log_reconciliation(
            confirmation.customer_id,
            str(batch_id),
            result.total_applied_cents,
            len(result.allocations),
            result.new_balance_cents,
            duration_ms,
        )
        return result

    def apply_bulk(self, confirmations: Iterable[PaymentConfirmation]) -> BulkPaymentResult:
        """Apply each payment in its own transaction; one failure never affects another"""
        outcome = BulkPaymentResult()

        for index, confirmation in enumerate(confirmations):
            try:
                outcome.successful.append(self.apply_payment(confirmation))
            except LedgerError as e:
                outcome.failed.append(
                    BulkPaymentFailure(
                        index=index,
                        customer_id=confirmation.customer_id,
                        error_code=e.code,
                        message=str(e),
                    )
                )

        logger.info(
            "Bulk payments processed",
            extra={"successful": len(outcome.successful), "failed": len(outcome.failed)},
        )
        return outcome

    def apply_gateway_payment(self, callback: GatewayCallback) -> ReconciliationResult:
        """Verify the gateway signature, then apply as a gateway payment keyed by its payment id"""
        if self.verifier is None or not self.verifier.verify(callback.order_id, callback.payment_id, callback.signature):
            record_failure(PaymentVerificationFailed.code)
            raise PaymentVerificationFailed("Invalid payment signature")

        return self.apply_payment(
            PaymentConfirmation(
                customer_id=callback.customer_id,
                amount_cents=callback.amount_cents,
                method=PaymentMethod.GATEWAY,
                target_obligation_id=callback.target_obligation_id,
                idempotency_key=f"gateway:{callback.payment_id}",
                reference=callback.payment_id,
            )
        )

    def payment_history(
        self,
        customer_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[PaymentEntry]:
        self.ledger.get_account(customer_id)
        rows = PaymentRepository(self.db).get_payments_by_customer(customer_id, start_date, end_date)
        return [to_payment_entry(row) for row in rows]
