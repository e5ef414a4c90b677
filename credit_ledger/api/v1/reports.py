"""GET /v1/reports/aging - receivables aging buckets"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from credit_ledger.api.dependencies import get_projections
from credit_ledger.api.v1.schemas import AgingEntrySchema, AgingReportResponse
from credit_ledger.services.projections import LedgerProjections

router = APIRouter()


@router.get("/reports/aging", response_model=AgingReportResponse)
def get_aging_report(
    customer_id: Optional[str] = Query(None, description="Limit to one customer"),
    as_of: Optional[date] = Query(None, description="Report date (default: today)"),
    projections: LedgerProjections = Depends(get_projections),
):
    report = projections.aging_report(customer_id, as_of)
    return AgingReportResponse(
        as_of=report.as_of,
        buckets={
            name: [
                AgingEntrySchema(
                    obligation_id=str(e.obligation_id),
                    customer_id=e.customer_id,
                    remaining_balance_cents=e.remaining_balance_cents,
                    due_amount_cents=e.due_amount_cents,
                    due_date=e.due_date,
                    days_overdue=e.days_overdue,
                )
                for e in entries
            ]
            for name, entries in report.buckets.items()
        },
        totals=report.totals(),
    )
