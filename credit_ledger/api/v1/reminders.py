"""POST /v1/reminders/sweep - run the daily reminder sweep on demand"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from credit_ledger.api.dependencies import get_clock, get_sweep_notification_sink
from credit_ledger.api.v1.schemas import NotificationIntentSchema, SweepResponse
from credit_ledger.domain.clock import Clock
from credit_ledger.infrastructure.clients.notifications import NotificationSink
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.reminders import ReminderSweep

router = APIRouter()


@router.post("/reminders/sweep", response_model=SweepResponse)
async def run_sweep(
    run_date: Optional[date] = Query(None, description="Evaluate as of this date (default: today)"),
    db: Session = Depends(get_db),
    sink: NotificationSink = Depends(get_sweep_notification_sink),
    clock: Clock = Depends(get_clock),
):
    """Intended for an external scheduler; safe to call again the same day"""
    report = await ReminderSweep(db, sink, clock=clock).run(run_date)
    return SweepResponse(
        run_date=report.run_date,
        intents=[NotificationIntentSchema.from_domain(i) for i in report.intents],
        delivered=report.delivered,
        failed_entities=report.failed_entities,
    )
