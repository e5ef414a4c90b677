"""Payment allocation - oldest-obligation-first waterfall"""

import uuid
from typing import List, Optional, Sequence

from credit_ledger.domain.exceptions import (
    ExcessPayment,
    InvalidAmount,
    NoOutstandingObligations,
    ObligationNotFound,
)
from credit_ledger.domain.lifecycle import settlement_status
from credit_ledger.domain.models import Allocation, AllocationPlan, Obligation, SaleStatus


def allocation_order(obligations: Sequence[Obligation]) -> List[Obligation]:
    """Oldest debt first; id breaks ties so the order is total and reproducible"""
    return sorted(obligations, key=lambda o: (o.created_at, str(o.id)))


def select_candidates(
    obligations: Sequence[Obligation],
    target_obligation_id: Optional[uuid.UUID] = None,
) -> List[Obligation]:
    """
    Pending obligations eligible for a payment.

    With a target, the candidate set is restricted to that obligation only;
    a payment larger than its remaining balance does not spill over.
    """
    pending = [o for o in obligations if o.status == SaleStatus.PENDING]

    if target_obligation_id is not None:
        pending = [o for o in pending if o.id == target_obligation_id]
        if not pending:
            raise ObligationNotFound(f"No pending obligation {target_obligation_id} for this account")

    if not pending:
        raise NoOutstandingObligations("No pending credit sales found for this account")

    return allocation_order(pending)


def plan_allocation(
    obligations: Sequence[Obligation],
    amount_cents: int,
    target_obligation_id: Optional[uuid.UUID] = None,
) -> AllocationPlan:
    """
    Split a payment across outstanding obligations.

    Walks the candidates oldest-first, applying min(remaining payment,
    remaining balance) to each until the payment is used up. The inputs are
    not modified; the plan carries the resulting paid-to-date and status for
    every obligation it touches.

    Raises:
        InvalidAmount: amount is not positive
        NoOutstandingObligations: nothing pending to pay against
        ObligationNotFound: target is not a pending obligation of the account
        ExcessPayment: amount exceeds total outstanding on the candidates

    Example:
        obligations 200 (older), 500 (newer); pay 300
        -> [200 to older (completed), 100 to newer (pending)]
    """
    if amount_cents <= 0:
        raise InvalidAmount(f"Payment amount must be greater than 0, got {amount_cents}")

    candidates = select_candidates(obligations, target_obligation_id)

    remaining = amount_cents
    allocations = []
    for obligation in candidates:
        if remaining == 0:
            break

        applied = min(remaining, obligation.remaining_balance_cents)
        if applied <= 0:
            continue

        paid = obligation.paid_to_date_cents + applied
        allocations.append(
            Allocation(
                obligation_id=obligation.id,
                amount_cents=applied,
                paid_to_date_cents=paid,
                status=settlement_status(paid, obligation.principal_cents),
            )
        )
        remaining -= applied

    if remaining > 0:
        outstanding = sum(o.remaining_balance_cents for o in candidates)
        raise ExcessPayment(
            f"Payment {amount_cents} exceeds total outstanding {outstanding}; "
            "resubmit a smaller amount or target a specific sale"
        )

    return AllocationPlan(allocations=allocations)
