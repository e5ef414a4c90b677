"""Credit sale lifecycle: pending -> completed | cancelled, both terminal"""

from credit_ledger.domain.exceptions import InvalidTransition
from credit_ledger.domain.models import SaleStatus

ALLOWED_TRANSITIONS = {
    SaleStatus.PENDING: {SaleStatus.COMPLETED, SaleStatus.CANCELLED},
    SaleStatus.COMPLETED: set(),
    SaleStatus.CANCELLED: set(),
}


def settlement_status(paid_to_date_cents: int, principal_cents: int) -> SaleStatus:
    """Status implied by how much of the principal has been paid"""
    if paid_to_date_cents >= principal_cents:
        return SaleStatus.COMPLETED
    return SaleStatus.PENDING


def check_transition(current: SaleStatus, target: SaleStatus) -> None:
    current = SaleStatus(current)
    target = SaleStatus(target)

    if current == target:
        raise InvalidTransition(f"Sale is already {current.value}")
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot move sale from {current.value} to {target.value}")
