"""Unit tests for account rules and the sale lifecycle"""

import pytest
from decimal import Decimal
from credit_ledger.domain.exceptions import (
    AccountInactive,
    InvalidAmount,
    InvalidTransition,
    LedgerInvariantViolation,
    LimitBelowBalance,
    LimitExceeded,
    OverPayment,
)
from credit_ledger.domain.ledger import (
    assert_account_invariant,
    check_extension,
    check_limit_change,
    check_payment,
    check_release,
)
from credit_ledger.domain.lifecycle import check_transition, settlement_status
from credit_ledger.domain.models import CreditAccount, SaleStatus, apply_interest


def test_extension_within_limit():
    assert check_extension(0, 1_000, "active", 600) == 600
    assert check_extension(400, 1_000, "active", 600) == 1_000  # Exactly at the limit


def test_extension_over_limit():
    with pytest.raises(LimitExceeded):
        check_extension(800, 1_000, "active", 300)


@pytest.mark.parametrize("status", ["inactive", "blocked"])
def test_extension_requires_active_account(status):
    with pytest.raises(AccountInactive):
        check_extension(0, 1_000, status, 100)


def test_extension_rejects_non_positive_principal():
    with pytest.raises(InvalidAmount):
        check_extension(0, 1_000, "active", 0)


def test_payment_rules():
    assert check_payment(600, 600) == 0

    with pytest.raises(InvalidAmount):
        check_payment(600, 0)
    with pytest.raises(OverPayment):
        check_payment(600, 601)


def test_release_cannot_go_negative():
    assert check_release(500, 200) == 300

    with pytest.raises(LedgerInvariantViolation):
        check_release(100, 200)


def test_limit_change_revalidates_balance():
    assert check_limit_change(600, 600) == 600

    with pytest.raises(LimitBelowBalance):
        check_limit_change(600, 599)
    with pytest.raises(InvalidAmount):
        check_limit_change(0, -1)


def test_account_invariant():
    assert_account_invariant("c", 0, 0)
    assert_account_invariant("c", 1_000, 1_000)

    with pytest.raises(LedgerInvariantViolation):
        assert_account_invariant("c", 1_001, 1_000)
    with pytest.raises(LedgerInvariantViolation):
        assert_account_invariant("c", -1, 1_000)


def test_available_credit_is_derived():
    account = CreditAccount(customer_id="c", limit_cents=1_000, balance_cents=250)
    assert account.available_credit_cents == 750
    assert account.percentage_used == 25.0


def test_due_amount_applies_flat_interest_to_remainder(make_obligation):
    obligation = make_obligation(principal_cents=10_000, paid_to_date_cents=4_000, interest_rate=Decimal("5"))

    assert obligation.remaining_balance_cents == 6_000
    assert obligation.due_amount_cents == 6_300


def test_interest_rounds_half_up():
    assert apply_interest(1, Decimal("50")) == 2  # 1.5 -> 2
    assert apply_interest(333, Decimal("0")) == 333


def test_settlement_status():
    assert settlement_status(199, 200) == SaleStatus.PENDING
    assert settlement_status(200, 200) == SaleStatus.COMPLETED


def test_allowed_transitions():
    check_transition(SaleStatus.PENDING, SaleStatus.COMPLETED)
    check_transition(SaleStatus.PENDING, SaleStatus.CANCELLED)


@pytest.mark.parametrize(
    "current, target",
    [
        (SaleStatus.COMPLETED, SaleStatus.PENDING),
        (SaleStatus.COMPLETED, SaleStatus.CANCELLED),
        (SaleStatus.CANCELLED, SaleStatus.PENDING),
        (SaleStatus.CANCELLED, SaleStatus.COMPLETED),
        (SaleStatus.PENDING, SaleStatus.PENDING),
    ],
)
def test_terminal_states_have_no_exit(current, target):
    with pytest.raises(InvalidTransition):
        check_transition(current, target)
