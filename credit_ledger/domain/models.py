"""Domain models - pure Python dataclasses representing ledger entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import List, Optional


class AccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"


class SaleStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    CHECK = "check"
    GATEWAY = "gateway"
    MANUAL = "manual"  # Status override settlement


class IntentKind(str, Enum):
    UPCOMING = "upcoming"
    OVERDUE = "overdue"
    CREDIT_WARNING = "credit_warning"
    PAYMENT_RECEIVED = "payment_received"


def apply_interest(amount_cents: int, interest_rate: Decimal) -> int:
    """Flat, non-compounding interest on an amount, rounded half-up to the cent"""
    gross = Decimal(amount_cents) * (Decimal(1) + Decimal(interest_rate) / Decimal(100))
    return int(gross.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass
class CreditAccount:
    """Per-customer running balance against an approved limit"""

    customer_id: str
    limit_cents: int
    balance_cents: int
    status: AccountStatus = AccountStatus.ACTIVE

    @property
    def available_credit_cents(self) -> int:
        return self.limit_cents - self.balance_cents

    @property
    def percentage_used(self) -> float:
        if self.limit_cents <= 0:
            return 0.0
        return self.balance_cents / self.limit_cents * 100


@dataclass
class Obligation:
    """Single credit sale with due date and partial-payment tracking"""

    id: uuid.UUID
    customer_id: str
    principal_cents: int
    interest_rate: Decimal
    paid_to_date_cents: int
    due_date: date
    status: SaleStatus
    created_at: datetime
    last_payment_at: Optional[datetime] = None

    @property
    def remaining_balance_cents(self) -> int:
        return self.principal_cents - self.paid_to_date_cents

    @property
    def due_amount_cents(self) -> int:
        return apply_interest(self.remaining_balance_cents, self.interest_rate)

    def is_overdue(self, today: date) -> bool:
        return self.status == SaleStatus.PENDING and today > self.due_date


@dataclass
class CreditExtension:
    """Request to book a new credit sale against an account"""

    customer_id: str
    principal_cents: int
    due_date: date
    interest_rate: Decimal = Decimal("0")


@dataclass
class PaymentConfirmation:
    """Confirmed incoming money for a customer (cash, transfer, or verified gateway)"""

    customer_id: str
    amount_cents: int
    method: PaymentMethod
    paid_at: Optional[datetime] = None
    target_obligation_id: Optional[uuid.UUID] = None
    idempotency_key: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class GatewayCallback:
    """Gateway payment callback awaiting signature verification"""

    customer_id: str
    amount_cents: int
    order_id: str
    payment_id: str
    signature: str
    target_obligation_id: Optional[uuid.UUID] = None


@dataclass
class Allocation:
    """Portion of one payment applied to one obligation"""

    obligation_id: uuid.UUID
    amount_cents: int
    paid_to_date_cents: int  # After this allocation
    status: SaleStatus  # After this allocation


@dataclass
class AllocationPlan:
    allocations: List[Allocation]

    @property
    def total_applied_cents(self) -> int:
        return sum(a.amount_cents for a in self.allocations)


@dataclass
class ReconciliationResult:
    """Outcome of one applied payment"""

    batch_id: uuid.UUID
    customer_id: str
    allocations: List[Allocation]
    new_balance_cents: int
    available_credit_cents: int

    @property
    def total_applied_cents(self) -> int:
        return sum(a.amount_cents for a in self.allocations)


@dataclass
class BulkPaymentFailure:
    index: int
    customer_id: str
    error_code: str
    message: str


@dataclass
class BulkPaymentResult:
    successful: List[ReconciliationResult] = field(default_factory=list)
    failed: List[BulkPaymentFailure] = field(default_factory=list)


@dataclass
class PaymentEntry:
    """Historical payment allocation record"""

    id: uuid.UUID
    batch_id: uuid.UUID
    customer_id: str
    obligation_id: Optional[uuid.UUID]
    amount_cents: int
    method: PaymentMethod
    status: PaymentStatus
    paid_at: datetime
    reference: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class NotificationIntent:
    """Decision to notify a customer; delivery is the dispatcher's problem"""

    kind: IntentKind
    customer_id: str
    amount_due_cents: int
    obligation_id: Optional[uuid.UUID] = None
    days_offset: Optional[int] = None
    percentage_used: Optional[int] = None
    threshold: Optional[int] = None

    def to_payload(self) -> dict:
        return {
            "kind": self.kind.value,
            "customer_id": self.customer_id,
            "obligation_id": str(self.obligation_id) if self.obligation_id else None,
            "days_offset": self.days_offset,
            "percentage_used": self.percentage_used,
            "threshold": self.threshold,
            "amount_due_cents": self.amount_due_cents,
        }


@dataclass
class SweepReport:
    run_date: date
    intents: List[NotificationIntent] = field(default_factory=list)
    delivered: int = 0
    failed_entities: List[str] = field(default_factory=list)


@dataclass
class AgingEntry:
    obligation_id: uuid.UUID
    customer_id: str
    remaining_balance_cents: int
    due_amount_cents: int
    due_date: date
    days_overdue: int


@dataclass
class AgingReport:
    as_of: date
    buckets: dict = field(default_factory=dict)  # bucket name -> List[AgingEntry]

    def totals(self) -> dict:
        return {
            name: sum(e.remaining_balance_cents for e in entries)
            for name, entries in self.buckets.items()
        }


@dataclass
class AccountSummary:
    account: CreditAccount
    obligations: List[Obligation]

    @property
    def total_outstanding_cents(self) -> int:
        return sum(
            o.remaining_balance_cents for o in self.obligations if o.status == SaleStatus.PENDING
        )
