"""Run one reminder sweep; meant to be invoked daily by cron or a systemd timer

    credit-ledger-sweep                  # today, webhook dispatcher
    credit-ledger-sweep --date 2024-05-01 --dry-run
"""

import argparse
import asyncio
import logging
from datetime import date
from typing import List, Optional

from credit_ledger.config import settings
from credit_ledger.infrastructure.clients.notifications import (
    LoggingNotificationSink,
    WebhookNotificationSink,
)
from credit_ledger.infrastructure.database.session import SessionLocal
from credit_ledger.infrastructure.observability.logging import setup_logging
from credit_ledger.services.reminders import ReminderSweep


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate reminders, overdue notices, and credit warnings")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Run as of YYYY-MM-DD")
    parser.add_argument("--dry-run", action="store_true", help="Log intents instead of sending them")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(settings.log_level)

    if args.dry_run:
        sink = LoggingNotificationSink()
    else:
        sink = WebhookNotificationSink(max_retries=settings.sweep_webhook_max_retries)
    db = SessionLocal()
    try:
        report = asyncio.run(ReminderSweep(db, sink).run(args.date))
    finally:
        db.close()

    if report.failed_entities:
        logging.warning("Sweep finished with failures", extra={"failed_entities": report.failed_entities})
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
