"""Credit account rules - the limit/balance invariant and the checks guarding it"""

from credit_ledger.domain.exceptions import (
    AccountInactive,
    InvalidAmount,
    LedgerInvariantViolation,
    LimitBelowBalance,
    LimitExceeded,
    OverPayment,
)
from credit_ledger.domain.models import AccountStatus


def check_extension(balance_cents: int, limit_cents: int, status: str, principal_cents: int) -> int:
    """
    Validate booking new credit against an account.

    Returns:
        The balance after the extension.

    Raises:
        InvalidAmount: principal is not positive
        AccountInactive: account is not active
        LimitExceeded: balance + principal would pass the limit
    """
    if principal_cents <= 0:
        raise InvalidAmount(f"Principal must be greater than 0, got {principal_cents}")
    if AccountStatus(status) != AccountStatus.ACTIVE:
        raise AccountInactive(f"Account is {status}; credit purchases are not allowed")

    new_balance = balance_cents + principal_cents
    if new_balance > limit_cents:
        raise LimitExceeded(
            f"Credit limit exceeded: balance {balance_cents} + principal {principal_cents} > limit {limit_cents}"
        )
    return new_balance


def check_payment(balance_cents: int, amount_cents: int) -> int:
    """Validate a payment against the balance; returns the balance after it"""
    if amount_cents <= 0:
        raise InvalidAmount(f"Payment amount must be greater than 0, got {amount_cents}")
    if amount_cents > balance_cents:
        raise OverPayment(f"Payment {amount_cents} exceeds credit balance {balance_cents}")
    return balance_cents - amount_cents


def check_release(balance_cents: int, amount_cents: int) -> int:
    """Validate releasing reserved credit (cancellation, settlement override)"""
    if amount_cents < 0:
        raise InvalidAmount(f"Release amount cannot be negative, got {amount_cents}")
    if amount_cents > balance_cents:
        raise LedgerInvariantViolation(
            f"Releasing {amount_cents} would drive balance {balance_cents} below zero"
        )
    return balance_cents - amount_cents


def check_limit_change(balance_cents: int, new_limit_cents: int) -> int:
    if new_limit_cents < 0:
        raise InvalidAmount(f"Credit limit cannot be negative, got {new_limit_cents}")
    if new_limit_cents < balance_cents:
        raise LimitBelowBalance(
            f"New limit {new_limit_cents} is below current balance {balance_cents}"
        )
    return new_limit_cents


def assert_account_invariant(customer_id: str, balance_cents: int, limit_cents: int) -> None:
    """0 <= balance <= limit must hold before anything is committed"""
    if not 0 <= balance_cents <= limit_cents:
        raise LedgerInvariantViolation(
            f"Account {customer_id}: balance {balance_cents} outside [0, {limit_cents}]"
        )
