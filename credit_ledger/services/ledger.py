"""Credit account ledger - opening accounts, extending credit, limits and balances"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from credit_ledger.domain.clock import Clock, SystemClock
from credit_ledger.domain.exceptions import (
    AccountAlreadyExists,
    AccountHasObligations,
    AccountNotFound,
    InvalidAmount,
    LedgerError,
)
from credit_ledger.domain.ledger import check_extension, check_limit_change, check_payment, check_release
from credit_ledger.domain.models import AccountStatus, CreditAccount, CreditExtension, Obligation
from credit_ledger.infrastructure.database.repositories import (
    AccountRepository,
    to_account,
    to_obligation,
)
from credit_ledger.infrastructure.database.transaction import ReconciliationTransaction
from credit_ledger.infrastructure.observability.logging import log_credit_extended
from credit_ledger.infrastructure.observability.metrics import record_credit_extended, record_failure

logger = logging.getLogger(__name__)


class CreditAccountLedger:
    """Owns the 0 <= balance <= limit invariant of every customer account"""

    def __init__(self, db: Session, clock: Optional[Clock] = None, lock_timeout_seconds: Optional[float] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.lock_timeout_seconds = lock_timeout_seconds

    def transaction(self, customer_id: str) -> ReconciliationTransaction:
        return ReconciliationTransaction(self.db, customer_id, self.lock_timeout_seconds)

    def open_account(self, customer_id: str, limit_cents: int) -> CreditAccount:
        """Create the credit account for a new customer with a zero balance"""
        if limit_cents < 0:
            raise InvalidAmount(f"Credit limit cannot be negative, got {limit_cents}")

        repo = AccountRepository(self.db)
        if repo.get_by_customer(customer_id) is not None:
            raise AccountAlreadyExists(f"Customer {customer_id} already has a credit account")

        try:
            db_account = repo.create_account(customer_id, limit_cents, created_at=self.clock.now())
            account = to_account(db_account)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AccountAlreadyExists(f"Customer {customer_id} already has a credit account") from e

        logger.info("Credit account opened", extra={"customer_id": customer_id, "limit_cents": limit_cents})
        return account

    def get_account(self, customer_id: str) -> CreditAccount:
        db_account = AccountRepository(self.db).get_by_customer(customer_id)
        if db_account is None:
            raise AccountNotFound(f"Customer account not found: {customer_id}")
        return to_account(db_account)

    def extend_credit(self, extension: CreditExtension) -> Obligation:
        """
        Book a credit sale: creates the obligation and raises the balance by its
        principal in one transaction.

        Raises:
            InvalidAmount, AccountInactive, LimitExceeded, AccountNotFound
        """
        try:
            with self.transaction(extension.customer_id) as txn:
                if extension.interest_rate < 0:
                    raise InvalidAmount(f"Interest rate cannot be negative, got {extension.interest_rate}")

                account = txn.account
                account.balance_cents = check_extension(
                    account.balance_cents,
                    account.limit_cents,
                    account.status,
                    extension.principal_cents,
                )

                db_sale = txn.obligations.create_obligation(
                    account,
                    principal_cents=extension.principal_cents,
                    interest_rate=extension.interest_rate,
                    due_date=extension.due_date,
                    created_at=self.clock.now(),
                )
                obligation = to_obligation(db_sale)
                new_balance = account.balance_cents
        except LedgerError as e:
            record_failure(e.code)
            raise

        record_credit_extended(extension.principal_cents)
        log_credit_extended(extension.customer_id, str(obligation.id), extension.principal_cents, new_balance)
        return obligation

    def record_payment(self, txn: ReconciliationTransaction, amount_cents: int) -> int:
        """
        Lower the balance by a payment.

        Only callable inside an open ReconciliationTransaction so the balance
        can never move without the matching credit-sale updates.
        """
        if not txn.active:
            raise RuntimeError("record_payment must run inside an open ReconciliationTransaction")

        txn.account.balance_cents = check_payment(txn.account.balance_cents, amount_cents)
        return txn.account.balance_cents

    def release_credit(self, txn: ReconciliationTransaction, amount_cents: int) -> int:
        """Return reserved credit when a sale is cancelled or settled by override"""
        if not txn.active:
            raise RuntimeError("release_credit must run inside an open ReconciliationTransaction")

        txn.account.balance_cents = check_release(txn.account.balance_cents, amount_cents)
        return txn.account.balance_cents

    def set_limit(self, customer_id: str, new_limit_cents: int) -> CreditAccount:
        try:
            with self.transaction(customer_id) as txn:
                txn.account.limit_cents = check_limit_change(txn.account.balance_cents, new_limit_cents)
                account = to_account(txn.account)
        except LedgerError as e:
            record_failure(e.code)
            raise

        logger.info("Credit limit changed", extra={"customer_id": customer_id, "limit_cents": new_limit_cents})
        return account

    def set_status(self, customer_id: str, status: AccountStatus) -> CreditAccount:
        """Activate, deactivate, or block an account; existing balances are untouched"""
        with self.transaction(customer_id) as txn:
            txn.account.status = AccountStatus(status).value
            account = to_account(txn.account)

        logger.info("Account status changed", extra={"customer_id": customer_id, "status": account.status.value})
        return account

    def delete_account(self, customer_id: str) -> None:
        """Remove an account that never carried credit; refused once any sale references it"""
        with self.transaction(customer_id) as txn:
            if txn.obligations.count_for_account(txn.account) > 0:
                raise AccountHasObligations(
                    f"Account {customer_id} has credit sales on record and cannot be deleted"
                )
            txn.accounts.delete(txn.account)

        logger.info("Credit account deleted", extra={"customer_id": customer_id})
