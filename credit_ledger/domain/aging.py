"""Receivables aging buckets"""

from datetime import date
from typing import Iterable

from credit_ledger.domain.models import AgingEntry, AgingReport, Obligation, SaleStatus
from credit_ledger.utils.date_utils import days_until

CURRENT = "current"
BUCKET_0_30 = "0-30"
BUCKET_31_60 = "31-60"
BUCKET_61_90 = "61-90"
BUCKET_OVER_90 = "over_90"

BUCKETS = (CURRENT, BUCKET_0_30, BUCKET_31_60, BUCKET_61_90, BUCKET_OVER_90)


def aging_bucket(days_overdue: int) -> str:
    """
    Map days past due to a bucket.

    Not yet due (or due today) is ``current``; after that 1-30, 31-60, 61-90
    and anything beyond 90 days.
    """
    if days_overdue <= 0:
        return CURRENT
    if days_overdue <= 30:
        return BUCKET_0_30
    if days_overdue <= 60:
        return BUCKET_31_60
    if days_overdue <= 90:
        return BUCKET_61_90
    return BUCKET_OVER_90


def build_aging_report(obligations: Iterable[Obligation], as_of: date) -> AgingReport:
    report = AgingReport(as_of=as_of, buckets={name: [] for name in BUCKETS})

    for obligation in obligations:
        if obligation.status != SaleStatus.PENDING:
            continue
        days_overdue = -days_until(obligation.due_date, as_of)
        report.buckets[aging_bucket(days_overdue)].append(
            AgingEntry(
                obligation_id=obligation.id,
                customer_id=obligation.customer_id,
                remaining_balance_cents=obligation.remaining_balance_cents,
                due_amount_cents=obligation.due_amount_cents,
                due_date=obligation.due_date,
                days_overdue=max(days_overdue, 0),
            )
        )

    return report
