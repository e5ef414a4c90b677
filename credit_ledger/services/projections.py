"""Read projections for reporting collaborators - no side effects"""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.domain.aging import build_aging_report
from credit_ledger.domain.clock import Clock, SystemClock
from credit_ledger.domain.exceptions import AccountNotFound
from credit_ledger.domain.models import AccountSummary, AgingReport, IntentKind, NotificationIntent
from credit_ledger.domain.reminders import ReminderPolicy, evaluate_account
from credit_ledger.infrastructure.database.repositories import (
    AccountRepository,
    ObligationRepository,
    to_account,
    to_obligation,
)
from credit_ledger.utils.date_utils import days_until


class LedgerProjections:
    def __init__(self, db: Session, clock: Optional[Clock] = None, policy: Optional[ReminderPolicy] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.policy = policy or ReminderPolicy.from_settings(settings)

    def account_summary(self, customer_id: str) -> AccountSummary:
        """Balance, available credit, and every sale with its remaining and due amounts"""
        db_account = AccountRepository(self.db).get_by_customer(customer_id)
        if db_account is None:
            raise AccountNotFound(f"Customer account not found: {customer_id}")

        rows = ObligationRepository(self.db).list_for_customer(customer_id)
        return AccountSummary(account=to_account(db_account), obligations=[to_obligation(r) for r in rows])

    def aging_report(self, customer_id: Optional[str] = None, as_of: Optional[date] = None) -> AgingReport:
        if customer_id is not None and AccountRepository(self.db).get_by_customer(customer_id) is None:
            raise AccountNotFound(f"Customer account not found: {customer_id}")

        rows = ObligationRepository(self.db).list_pending(customer_id)
        return build_aging_report([to_obligation(r) for r in rows], as_of or self.clock.today())

    def notification_preview(self, customer_id: str) -> List[NotificationIntent]:
        """
        Overdue sales, sales due within the reminder window, and the current
        credit warning, if any.

        Unlike the sweep this is not limited to trigger days; it is what a
        customer-facing inbox would show today.
        """
        db_account = AccountRepository(self.db).get_by_customer(customer_id)
        if db_account is None:
            raise AccountNotFound(f"Customer account not found: {customer_id}")

        today = self.clock.today()
        preview = []
        for row in ObligationRepository(self.db).list_pending(customer_id):
            obligation = to_obligation(row)
            offset = days_until(obligation.due_date, today)
            if offset > max(self.policy.upcoming_days):
                continue
            preview.append(
                NotificationIntent(
                    kind=IntentKind.OVERDUE if obligation.is_overdue(today) else IntentKind.UPCOMING,
                    customer_id=customer_id,
                    obligation_id=obligation.id,
                    days_offset=offset,
                    amount_due_cents=obligation.due_amount_cents,
                )
            )

        warning = evaluate_account(to_account(db_account), self.policy)
        if warning is not None:
            preview.append(warning)
        return preview
