"""Daily reminder sweep - upcoming, overdue, and credit-limit notices"""

import asyncio
import logging
import time
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.domain.clock import Clock, SystemClock
from credit_ledger.domain.models import SweepReport
from credit_ledger.domain.reminders import ReminderPolicy, evaluate_account, evaluate_obligation
from credit_ledger.infrastructure.clients.notifications import NotificationSink
from credit_ledger.infrastructure.database.repositories import (
    AccountRepository,
    ObligationRepository,
    to_account,
    to_obligation,
)
from credit_ledger.infrastructure.observability.logging import log_sweep_completed
from credit_ledger.infrastructure.observability.metrics import (
    notification_intent_counter,
    sweep_duration_histogram,
)

logger = logging.getLogger(__name__)


class DeliveryBudgetExhausted(Exception):
    """The sweep ran out of time to hand intents to the sink"""


class ReminderSweep:
    """
    One pass over every pending credit sale and every account carrying a balance.

    Read-only with respect to the ledger. Each entity is evaluated and
    dispatched on its own: a failure is logged against that entity and the
    sweep moves on. Running it twice on the same day with no ledger change
    yields the same intents both times. The caller supplies the timer; this
    class holds none.

    Delivery shares one time budget across the whole run. Once it is spent,
    remaining intents are still decided and reported but not sent, and their
    entities are listed as failed.
    """

    def __init__(
        self,
        db: Session,
        sink: NotificationSink,
        clock: Optional[Clock] = None,
        policy: Optional[ReminderPolicy] = None,
        delivery_budget_seconds: Optional[float] = None,
    ):
        self.db = db
        self.sink = sink
        self.clock = clock or SystemClock()
        self.policy = policy or ReminderPolicy.from_settings(settings)
        self.delivery_budget_seconds = (
            delivery_budget_seconds if delivery_budget_seconds is not None else settings.sweep_delivery_budget_seconds
        )
        self._deadline = 0.0

    async def run(self, today: Optional[date] = None) -> SweepReport:
        start_time = time.time()
        self._deadline = time.monotonic() + self.delivery_budget_seconds
        today = today or self.clock.today()
        report = SweepReport(run_date=today)

        for row in ObligationRepository(self.db).list_pending():
            entity = f"obligation:{row.id}"
            try:
                intent = evaluate_obligation(to_obligation(row), today, self.policy)
                if intent is not None:
                    await self._dispatch(intent, report)
            except DeliveryBudgetExhausted:
                report.failed_entities.append(entity)
            except Exception:
                logger.exception("Reminder evaluation failed", extra={"entity": entity})
                report.failed_entities.append(entity)

        for row in AccountRepository(self.db).list_warning_candidates():
            entity = f"account:{row.customer_id}"
            try:
                intent = evaluate_account(to_account(row), self.policy)
                if intent is not None:
                    await self._dispatch(intent, report)
            except DeliveryBudgetExhausted:
                report.failed_entities.append(entity)
            except Exception:
                logger.exception("Credit warning evaluation failed", extra={"entity": entity})
                report.failed_entities.append(entity)

        duration = time.time() - start_time
        sweep_duration_histogram.observe(duration)
        log_sweep_completed(
            today.isoformat(),
            len(report.intents),
            report.delivered,
            len(report.failed_entities),
            duration * 1000,
        )
        return report

    async def _dispatch(self, intent, report: SweepReport) -> None:
        # The decision stands even if delivery fails
        report.intents.append(intent)
        notification_intent_counter.labels(kind=intent.kind.value).inc()

        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise DeliveryBudgetExhausted()
        try:
            await asyncio.wait_for(self.sink.send(intent), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning(
                "Sweep delivery budget exhausted",
                extra={"budget_seconds": self.delivery_budget_seconds},
            )
            raise DeliveryBudgetExhausted()
        report.delivered += 1
