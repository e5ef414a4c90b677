"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from credit_ledger.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_reconciliation(
    customer_id: str,
    batch_id: str,
    amount_cents: int,
    obligations_touched: int,
    new_balance_cents: int,
    duration_ms: float,
) -> None:
    """Log structured payment reconciliation outcome"""
    logging.info(
        "Payment reconciled",
        extra={
            "customer_id": customer_id,
            "batch_id": batch_id,
            "step": "reconciliation_complete",
            "amount_cents": amount_cents,
            "obligations_touched": obligations_touched,
            "new_balance_cents": new_balance_cents,
            "duration_ms": duration_ms,
        },
    )


def log_credit_extended(customer_id: str, obligation_id: str, principal_cents: int, new_balance_cents: int) -> None:
    logging.info(
        "Credit extended",
        extra={
            "customer_id": customer_id,
            "obligation_id": obligation_id,
            "step": "credit_extended",
            "principal_cents": principal_cents,
            "new_balance_cents": new_balance_cents,
        },
    )


def log_sweep_completed(run_date: str, intents: int, delivered: int, failed_entities: int, duration_ms: float) -> None:
    logging.info(
        "Reminder sweep completed",
        extra={
            "step": "sweep_complete",
            "run_date": run_date,
            "intents": intents,
            "delivered": delivered,
            "failed_entities": failed_entities,
            "duration_ms": duration_ms,
        },
    )
