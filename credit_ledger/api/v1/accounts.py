"""Customer credit accounts - open, inspect, limit, status, delete"""

from typing import List

from fastapi import APIRouter, Depends, Response

from credit_ledger.api.dependencies import get_ledger, get_projections
from credit_ledger.api.v1.schemas import (
    AccountResponse,
    AccountSummaryResponse,
    NotificationIntentSchema,
    ObligationSchema,
    OpenAccountRequest,
    SetAccountStatusRequest,
    SetLimitRequest,
)
from credit_ledger.services.ledger import CreditAccountLedger
from credit_ledger.services.projections import LedgerProjections

router = APIRouter()


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def open_account(request_body: OpenAccountRequest, ledger: CreditAccountLedger = Depends(get_ledger)):
    """Create the credit account for a new customer (balance starts at 0)"""
    account = ledger.open_account(request_body.customer_id, request_body.limit_cents)
    return AccountResponse.from_domain(account)


@router.get("/accounts/{customer_id}", response_model=AccountSummaryResponse)
def get_account(customer_id: str, projections: LedgerProjections = Depends(get_projections)):
    """
    Current balance, available credit, and every credit sale with its
    remaining balance and interest-inclusive due amount.
    """
    summary = projections.account_summary(customer_id)
    return AccountSummaryResponse(
        account=AccountResponse.from_domain(summary.account),
        total_outstanding_cents=summary.total_outstanding_cents,
        obligations=[ObligationSchema.from_domain(o) for o in summary.obligations],
    )


@router.put("/accounts/{customer_id}/limit", response_model=AccountResponse)
def set_limit(
    customer_id: str,
    request_body: SetLimitRequest,
    ledger: CreditAccountLedger = Depends(get_ledger),
):
    account = ledger.set_limit(customer_id, request_body.limit_cents)
    return AccountResponse.from_domain(account)


@router.put("/accounts/{customer_id}/status", response_model=AccountResponse)
def set_status(
    customer_id: str,
    request_body: SetAccountStatusRequest,
    ledger: CreditAccountLedger = Depends(get_ledger),
):
    account = ledger.set_status(customer_id, request_body.status)
    return AccountResponse.from_domain(account)


@router.delete("/accounts/{customer_id}", status_code=204)
def delete_account(customer_id: str, ledger: CreditAccountLedger = Depends(get_ledger)):
    ledger.delete_account(customer_id)
    return Response(status_code=204)


@router.get("/accounts/{customer_id}/notifications", response_model=List[NotificationIntentSchema])
def get_notifications(customer_id: str, projections: LedgerProjections = Depends(get_projections)):
    return [NotificationIntentSchema.from_domain(i) for i in projections.notification_preview(customer_id)]
