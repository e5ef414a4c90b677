"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import UUID4, BaseModel, Field

from credit_ledger.domain import models as domain


class OpenAccountRequest(BaseModel):
    """Request body for POST /v1/accounts"""

    customer_id: str = Field(..., min_length=1, description="Customer identifier")
    limit_cents: int = Field(0, ge=0, description="Approved credit limit in cents")


class SetLimitRequest(BaseModel):
    limit_cents: int = Field(..., description="New credit limit in cents")


class SetAccountStatusRequest(BaseModel):
    status: domain.AccountStatus


class AccountResponse(BaseModel):
    customer_id: str
    limit_cents: int
    balance_cents: int
    available_credit_cents: int
    status: domain.AccountStatus

    @classmethod
    def from_domain(cls, account: domain.CreditAccount) -> "AccountResponse":
        return cls(
            customer_id=account.customer_id,
            limit_cents=account.limit_cents,
            balance_cents=account.balance_cents,
            available_credit_cents=account.available_credit_cents,
            status=account.status,
        )


class ObligationSchema(BaseModel):
    """Single credit sale"""

    obligation_id: str
    customer_id: str
    principal_cents: int
    interest_rate: Decimal
    paid_to_date_cents: int
    remaining_balance_cents: int
    due_amount_cents: int
    due_date: date
    status: domain.SaleStatus
    created_at: datetime
    last_payment_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, obligation: domain.Obligation) -> "ObligationSchema":
        return cls(
            obligation_id=str(obligation.id),
            customer_id=obligation.customer_id,
            principal_cents=obligation.principal_cents,
            interest_rate=obligation.interest_rate,
            paid_to_date_cents=obligation.paid_to_date_cents,
            remaining_balance_cents=obligation.remaining_balance_cents,
            due_amount_cents=obligation.due_amount_cents,
            due_date=obligation.due_date,
            status=obligation.status,
            created_at=obligation.created_at,
            last_payment_at=obligation.last_payment_at,
        )


class AccountSummaryResponse(BaseModel):
    """Response for GET /v1/accounts/{customer_id}"""

    account: AccountResponse
    total_outstanding_cents: int
    obligations: List[ObligationSchema]


class CreditSaleRequest(BaseModel):
    """Request body for POST /v1/credit-sales"""

    customer_id: str = Field(..., min_length=1)
    principal_cents: int = Field(..., gt=0, description="Amount sold on credit, in cents")
    interest_rate: Decimal = Field(Decimal("0"), ge=0, description="Flat percentage on the unpaid remainder")
    due_date: date


class SaleStatusRequest(BaseModel):
    """Request body for PATCH /v1/credit-sales/{obligation_id}/status"""

    status: domain.SaleStatus
    notes: Optional[str] = None


class PaymentRequest(BaseModel):
    """Request body for POST /v1/payments"""

    customer_id: str = Field(..., min_length=1)
    amount_cents: int = Field(..., description="Payment amount in cents")
    method: domain.PaymentMethod
    paid_at: Optional[datetime] = None
    target_obligation_id: Optional[UUID4] = None
    idempotency_key: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None

    def to_domain(self) -> domain.PaymentConfirmation:
        return domain.PaymentConfirmation(
            customer_id=self.customer_id,
            amount_cents=self.amount_cents,
            method=self.method,
            paid_at=self.paid_at,
            target_obligation_id=self.target_obligation_id,
            idempotency_key=self.idempotency_key,
            reference=self.reference,
            notes=self.notes,
        )


class GatewayPaymentRequest(BaseModel):
    """Request body for POST /v1/payments/gateway"""

    customer_id: str = Field(..., min_length=1)
    amount_cents: int
    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)
    target_obligation_id: Optional[UUID4] = None


class AllocationSchema(BaseModel):
    obligation_id: str
    amount_cents: int
    paid_to_date_cents: int
    status: domain.SaleStatus


class ReconciliationResponse(BaseModel):
    """Response for POST /v1/payments"""

    batch_id: str
    customer_id: str
    applied_allocations: List[AllocationSchema]
    new_balance_cents: int
    available_credit_cents: int

    @classmethod
    def from_domain(cls, result: domain.ReconciliationResult) -> "ReconciliationResponse":
        return cls(
            batch_id=str(result.batch_id),
            customer_id=result.customer_id,
            applied_allocations=[
                AllocationSchema(
                    obligation_id=str(a.obligation_id),
                    amount_cents=a.amount_cents,
                    paid_to_date_cents=a.paid_to_date_cents,
                    status=a.status,
                )
                for a in result.allocations
            ],
            new_balance_cents=result.new_balance_cents,
            available_credit_cents=result.available_credit_cents,
        )


class BulkFailureSchema(BaseModel):
    index: int
    customer_id: str
    error_code: str
    message: str


class BulkPaymentResponse(BaseModel):
    successful: List[ReconciliationResponse]
    failed: List[BulkFailureSchema]


class PaymentHistoryItem(BaseModel):
    payment_id: str
    batch_id: str
    obligation_id: Optional[str] = None
    amount_cents: int
    method: domain.PaymentMethod
    status: domain.PaymentStatus
    paid_at: datetime
    reference: Optional[str] = None
    notes: Optional[str] = None


class PaymentHistoryResponse(BaseModel):
    """Response for GET /v1/payments/customer/{customer_id}"""

    customer_id: str
    payments: List[PaymentHistoryItem]


class NotificationIntentSchema(BaseModel):
    kind: domain.IntentKind
    customer_id: str
    obligation_id: Optional[str] = None
    days_offset: Optional[int] = None
    percentage_used: Optional[int] = None
    threshold: Optional[int] = None
    amount_due_cents: int

    @classmethod
    def from_domain(cls, intent: domain.NotificationIntent) -> "NotificationIntentSchema":
        return cls(**intent.to_payload())


class SweepResponse(BaseModel):
    run_date: date
    intents: List[NotificationIntentSchema]
    delivered: int
    failed_entities: List[str]


class AgingEntrySchema(BaseModel):
    obligation_id: str
    customer_id: str
    remaining_balance_cents: int
    due_amount_cents: int
    due_date: date
    days_overdue: int


class AgingReportResponse(BaseModel):
    """Response for GET /v1/reports/aging"""

    as_of: date
    buckets: Dict[str, List[AgingEntrySchema]]
    totals: Dict[str, int]


class ErrorResponse(BaseModel):
    code: str
    detail: str
