"""Reminder and escalation rules evaluated by the daily sweep

All functions are pure: (today, ledger snapshot) -> notification intents.
Triggers are exact day offsets, so each fires once as the calendar crosses it.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from credit_ledger.domain.models import (
    AccountStatus,
    CreditAccount,
    IntentKind,
    NotificationIntent,
    Obligation,
    SaleStatus,
)
from credit_ledger.utils.date_utils import days_until


@dataclass(frozen=True)
class ReminderPolicy:
    upcoming_days: Tuple[int, ...] = (7, 3, 1)
    overdue_days: Tuple[int, ...] = (1, 7, 30)  # Days past due
    warning_thresholds: Tuple[int, ...] = (70, 85, 95)  # Percent of limit used

    @classmethod
    def from_settings(cls, settings) -> "ReminderPolicy":
        return cls(
            upcoming_days=tuple(settings.upcoming_reminder_days),
            overdue_days=tuple(settings.overdue_notice_days),
            warning_thresholds=tuple(settings.credit_warning_thresholds),
        )


DEFAULT_POLICY = ReminderPolicy()


def evaluate_obligation(
    obligation: Obligation,
    today: date,
    policy: ReminderPolicy = DEFAULT_POLICY,
) -> Optional[NotificationIntent]:
    """Upcoming reminder or overdue notice for one sale, if today is a trigger day"""
    if obligation.status != SaleStatus.PENDING:
        return None

    offset = days_until(obligation.due_date, today)

    if offset in policy.upcoming_days:
        kind = IntentKind.UPCOMING
    elif offset < 0 and -offset in policy.overdue_days:
        kind = IntentKind.OVERDUE
    else:
        return None

    return NotificationIntent(
        kind=kind,
        customer_id=obligation.customer_id,
        obligation_id=obligation.id,
        days_offset=offset,
        amount_due_cents=obligation.due_amount_cents,
    )


def highest_threshold_met(percentage_used: float, thresholds: Iterable[int]) -> Optional[int]:
    """Walk thresholds ascending and keep the last one reached"""
    met = None
    for threshold in sorted(thresholds):
        if percentage_used >= threshold:
            met = threshold
    return met


def evaluate_account(
    account: CreditAccount,
    policy: ReminderPolicy = DEFAULT_POLICY,
) -> Optional[NotificationIntent]:
    """
    At most one credit-limit warning per account: only the highest threshold
    currently met is reported.
    """
    if account.status != AccountStatus.ACTIVE or account.balance_cents <= 0 or account.limit_cents <= 0:
        return None

    percentage_used = account.percentage_used
    threshold = highest_threshold_met(percentage_used, policy.warning_thresholds)
    if threshold is None:
        return None

    # percentage_used is rounded for display; threshold is the one actually crossed
    return NotificationIntent(
        kind=IntentKind.CREDIT_WARNING,
        customer_id=account.customer_id,
        percentage_used=round(percentage_used),
        threshold=threshold,
        amount_due_cents=account.balance_cents,
    )


def plan_sweep(
    today: date,
    obligations: Iterable[Obligation],
    accounts: Iterable[CreditAccount],
    policy: ReminderPolicy = DEFAULT_POLICY,
) -> List[NotificationIntent]:
    """Every intent a sweep on ``today`` would emit, obligations first"""
    intents = []
    for obligation in obligations:
        intent = evaluate_obligation(obligation, today, policy)
        if intent is not None:
            intents.append(intent)
    for account in accounts:
        intent = evaluate_account(account, policy)
        if intent is not None:
            intents.append(intent)
    return intents
