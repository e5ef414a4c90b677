"""Credit sale status changes outside the payment path: cancellation and manual settlement"""

import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from credit_ledger.domain.clock import Clock, SystemClock
from credit_ledger.domain.exceptions import InvalidTransition, LedgerError, ObligationNotFound
from credit_ledger.domain.lifecycle import check_transition
from credit_ledger.domain.models import Obligation, PaymentMethod, SaleStatus
from credit_ledger.infrastructure.database.repositories import ObligationRepository, to_obligation
from credit_ledger.infrastructure.observability.metrics import record_failure
from credit_ledger.services.ledger import CreditAccountLedger

logger = logging.getLogger(__name__)


class SaleLifecycle:
    """Drives pending -> completed | cancelled with the matching balance correction"""

    def __init__(self, db: Session, ledger: Optional[CreditAccountLedger] = None, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.ledger = ledger or CreditAccountLedger(db, clock=self.clock)

    def get_obligation(self, obligation_id: uuid.UUID) -> Obligation:
        row = ObligationRepository(self.db).get(obligation_id)
        if row is None:
            raise ObligationNotFound(f"Credit sale not found: {obligation_id}")
        return to_obligation(row)

    def change_status(self, obligation_id: uuid.UUID, target: SaleStatus, notes: Optional[str] = None) -> Obligation:
        target = SaleStatus(target)
        if target == SaleStatus.CANCELLED:
            return self.cancel(obligation_id, notes)
        if target == SaleStatus.COMPLETED:
            return self.mark_completed(obligation_id, notes)

        current = self.get_obligation(obligation_id).status
        try:
            check_transition(current, target)
        except LedgerError as e:
            record_failure(e.code)
            raise
        # Unreachable while pending has no inbound transition
        raise InvalidTransition(f"Cannot move sale from {current.value} to {target.value}")

    def cancel(self, obligation_id: uuid.UUID, notes: Optional[str] = None) -> Obligation:
        """
        Cancel a pending sale.

        Releases the unpaid remainder back to available credit; amounts already
        paid stay on record. The sale is kept, excluded from allocation and
        reminders from now on.
        """
        customer_id = self.get_obligation(obligation_id).customer_id

        try:
            with self.ledger.transaction(customer_id) as txn:
                row = self._locked(txn, obligation_id)
                check_transition(SaleStatus(row.status), SaleStatus.CANCELLED)

                released = row.principal_cents - row.paid_to_date_cents
                self.ledger.release_credit(txn, released)
                row.status = SaleStatus.CANCELLED.value
                obligation = to_obligation(row)
        except LedgerError as e:
            record_failure(e.code)
            raise

        logger.info(
            "Credit sale cancelled",
            extra={"customer_id": customer_id, "obligation_id": str(obligation_id), "released_cents": released},
        )
        return obligation

    def mark_completed(self, obligation_id: uuid.UUID, notes: Optional[str] = None) -> Obligation:
        """
        Settle a pending sale by manual override.

        The outstanding remainder is written off the balance and recorded as a
        ``manual`` payment so paid-to-date reaches the principal and the sale
        history still adds up.
        """
        customer_id = self.get_obligation(obligation_id).customer_id

        try:
            with self.ledger.transaction(customer_id) as txn:
                row = self._locked(txn, obligation_id)
                check_transition(SaleStatus(row.status), SaleStatus.COMPLETED)

                outstanding = row.principal_cents - row.paid_to_date_cents
                now = self.clock.now()
                self.ledger.release_credit(txn, outstanding)
                row.paid_to_date_cents = row.principal_cents
                row.status = SaleStatus.COMPLETED.value
                row.last_payment_at = now

                if outstanding > 0:
                    txn.payments.add_payment(
                        batch_id=uuid.uuid4(),
                        account=txn.account,
                        obligation_id=row.id,
                        amount_cents=outstanding,
                        method=PaymentMethod.MANUAL.value,
                        paid_at=now,
                        notes=notes or "Status override",
                    )
                obligation = to_obligation(row)
        except LedgerError as e:
            record_failure(e.code)
            raise

        logger.info(
            "Credit sale settled by override",
            extra={"customer_id": customer_id, "obligation_id": str(obligation_id), "settled_cents": outstanding},
        )
        return obligation

    def _locked(self, txn, obligation_id: uuid.UUID):
        row = txn.obligations.get(obligation_id, for_update=True)
        if row is None or row.account_id != txn.account.id:
            raise ObligationNotFound(f"Credit sale not found: {obligation_id}")
        return row
