"""Payment intake - cash/transfer, bulk files, and verified gateway callbacks"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from credit_ledger.api.dependencies import get_notification_sink, get_reconciler
from credit_ledger.api.v1.schemas import (
    BulkFailureSchema,
    BulkPaymentResponse,
    GatewayPaymentRequest,
    PaymentHistoryItem,
    PaymentHistoryResponse,
    PaymentRequest,
    ReconciliationResponse,
)
from credit_ledger.domain.models import GatewayCallback
from credit_ledger.infrastructure.clients.notifications import NotificationSink, deliver_quietly
from credit_ledger.services.reconciliation import PaymentReconciler, confirmation_intent

router = APIRouter()


@router.post("/payments", response_model=ReconciliationResponse)
def apply_payment(
    request_body: PaymentRequest,
    background_tasks: BackgroundTasks,
    reconciler: PaymentReconciler = Depends(get_reconciler),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """
    Apply a payment to a customer's credit sales.

    Without a target the payment is spread oldest sale first; with a target it
    applies to that sale only. Either every allocation lands or none does.
    """
    result = reconciler.apply_payment(request_body.to_domain())
    background_tasks.add_task(deliver_quietly, sink, confirmation_intent(result))
    return ReconciliationResponse.from_domain(result)


@router.post("/payments/bulk", response_model=BulkPaymentResponse)
def apply_bulk_payments(
    request_body: List[PaymentRequest],
    background_tasks: BackgroundTasks,
    reconciler: PaymentReconciler = Depends(get_reconciler),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """Each payment is applied independently; failures are reported per item"""
    outcome = reconciler.apply_bulk([p.to_domain() for p in request_body])

    for result in outcome.successful:
        background_tasks.add_task(deliver_quietly, sink, confirmation_intent(result))

    return BulkPaymentResponse(
        successful=[ReconciliationResponse.from_domain(r) for r in outcome.successful],
        failed=[
            BulkFailureSchema(index=f.index, customer_id=f.customer_id, error_code=f.error_code, message=f.message)
            for f in outcome.failed
        ],
    )


@router.post("/payments/gateway", response_model=ReconciliationResponse)
def apply_gateway_payment(
    request_body: GatewayPaymentRequest,
    background_tasks: BackgroundTasks,
    reconciler: PaymentReconciler = Depends(get_reconciler),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """Verify a gateway callback signature and apply the payment it confirms"""
    result = reconciler.apply_gateway_payment(
        GatewayCallback(
            customer_id=request_body.customer_id,
            amount_cents=request_body.amount_cents,
            order_id=request_body.order_id,
            payment_id=request_body.payment_id,
            signature=request_body.signature,
            target_obligation_id=request_body.target_obligation_id,
        )
    )
    background_tasks.add_task(deliver_quietly, sink, confirmation_intent(result))
    return ReconciliationResponse.from_domain(result)


@router.get("/payments/customer/{customer_id}", response_model=PaymentHistoryResponse)
def get_payment_history(
    customer_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    entries = reconciler.payment_history(customer_id, start_date, end_date)
    return PaymentHistoryResponse(
        customer_id=customer_id,
        payments=[
            PaymentHistoryItem(
                payment_id=str(e.id),
                batch_id=str(e.batch_id),
                obligation_id=str(e.obligation_id) if e.obligation_id else None,
                amount_cents=e.amount_cents,
                method=e.method,
                status=e.status,
                paid_at=e.paid_at,
                reference=e.reference,
                notes=e.notes,
            )
            for e in entries
        ],
    )
