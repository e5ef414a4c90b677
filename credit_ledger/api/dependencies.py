"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from credit_ledger.config import settings
from credit_ledger.domain.clock import Clock, SystemClock
from credit_ledger.infrastructure.clients.notifications import (
    LoggingNotificationSink,
    NotificationSink,
    WebhookNotificationSink,
)
from credit_ledger.infrastructure.clients.payment_gateway import HmacPaymentVerifier, PaymentVerifier
from credit_ledger.infrastructure.database.session import get_db
from credit_ledger.services.ledger import CreditAccountLedger
from credit_ledger.services.lifecycle import SaleLifecycle
from credit_ledger.services.projections import LedgerProjections
from credit_ledger.services.reconciliation import PaymentReconciler


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Clock:
    return SystemClock()


def get_notification_sink() -> NotificationSink:
    """Webhook dispatcher when configured, otherwise log-only"""
    if settings.notification_webhook_url:
        return WebhookNotificationSink()
    return LoggingNotificationSink()


def get_sweep_notification_sink(sink: NotificationSink = Depends(get_notification_sink)) -> NotificationSink:
    """Same dispatcher with the smaller per-intent retry budget of the sweep"""
    if isinstance(sink, WebhookNotificationSink):
        return WebhookNotificationSink(max_retries=settings.sweep_webhook_max_retries)
    return sink


def get_payment_verifier() -> PaymentVerifier:
    return HmacPaymentVerifier()


def get_ledger(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> CreditAccountLedger:
    return CreditAccountLedger(db, clock=clock)


def get_reconciler(
    db: Session = Depends(get_db),
    ledger: CreditAccountLedger = Depends(get_ledger),
    verifier: PaymentVerifier = Depends(get_payment_verifier),
    clock: Clock = Depends(get_clock),
) -> PaymentReconciler:
    return PaymentReconciler(db, ledger=ledger, verifier=verifier, clock=clock)


def get_lifecycle(
    db: Session = Depends(get_db),
    ledger: CreditAccountLedger = Depends(get_ledger),
    clock: Clock = Depends(get_clock),
) -> SaleLifecycle:
    return SaleLifecycle(db, ledger=ledger, clock=clock)


def get_projections(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> LedgerProjections:
    return LedgerProjections(db, clock=clock)
