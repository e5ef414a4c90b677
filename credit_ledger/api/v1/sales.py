"""Credit sales - booking credit and status changes"""

import uuid

from fastapi import APIRouter, Depends

from credit_ledger.api.dependencies import get_ledger, get_lifecycle
from credit_ledger.api.v1.schemas import CreditSaleRequest, ObligationSchema, SaleStatusRequest
from credit_ledger.domain.models import CreditExtension
from credit_ledger.services.ledger import CreditAccountLedger
from credit_ledger.services.lifecycle import SaleLifecycle

router = APIRouter()


@router.post("/credit-sales", response_model=ObligationSchema, status_code=201)
def create_credit_sale(request_body: CreditSaleRequest, ledger: CreditAccountLedger = Depends(get_ledger)):
    """
    Record a sale on credit.

    Raises the customer's balance by the principal; rejected with 409 when the
    limit would be exceeded or the account is not active.
    """
    obligation = ledger.extend_credit(
        CreditExtension(
            customer_id=request_body.customer_id,
            principal_cents=request_body.principal_cents,
            interest_rate=request_body.interest_rate,
            due_date=request_body.due_date,
        )
    )
    return ObligationSchema.from_domain(obligation)


@router.get("/credit-sales/{obligation_id}", response_model=ObligationSchema)
def get_credit_sale(obligation_id: uuid.UUID, lifecycle: SaleLifecycle = Depends(get_lifecycle)):
    return ObligationSchema.from_domain(lifecycle.get_obligation(obligation_id))


@router.patch("/credit-sales/{obligation_id}/status", response_model=ObligationSchema)
def change_sale_status(
    obligation_id: uuid.UUID,
    request_body: SaleStatusRequest,
    lifecycle: SaleLifecycle = Depends(get_lifecycle),
):
    """Cancel a pending sale, or settle it by manual override"""
    obligation = lifecycle.change_status(obligation_id, request_body.status, request_body.notes)
    return ObligationSchema.from_domain(obligation)
