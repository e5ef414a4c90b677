"""Reconciliation Transaction - the one atomic write boundary of the ledger

Every path that reads and then writes an account balance together with its
credit sales (extending credit, applying a payment, cancelling or settling a
sale, changing the limit) runs inside exactly one of these::

    with ReconciliationTransaction(db, customer_id) as txn:
        txn.account.balance_cents -= 100
        ...

Entry takes the account row lock (bounded wait). Clean exit re-checks the
limit/balance invariant and commits. Any exception rolls the whole unit back,
so callers never observe a half-applied write. Storage errors are translated
into the ledger error taxonomy.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from credit_ledger.config import settings
from credit_ledger.domain.exceptions import (
    AccountNotFound,
    LedgerError,
    LedgerStorageError,
    LockTimeout,
    TransactionConflict,
)
from credit_ledger.domain.ledger import assert_account_invariant
from credit_ledger.infrastructure.database.models import CustomerAccount
from credit_ledger.infrastructure.database.repositories import (
    AccountRepository,
    ObligationRepository,
    PaymentRepository,
)
from credit_ledger.infrastructure.observability.metrics import lock_timeout_counter

logger = logging.getLogger(__name__)

# PostgreSQL: lock_not_available (lock_timeout), serialization_failure, deadlock_detected
_LOCK_TIMEOUT_CODES = {"55P03"}
_CONFLICT_CODES = {"40001", "40P01"}


def translate_storage_error(exc: SQLAlchemyError) -> LedgerError:
    """Map a SQLAlchemy failure onto the ledger error taxonomy"""
    if isinstance(exc, StaleDataError):
        return TransactionConflict("Account changed concurrently; re-read and retry")

    if isinstance(exc, DBAPIError):
        pgcode = getattr(exc.orig, "pgcode", None)
        if pgcode in _LOCK_TIMEOUT_CODES:
            return LockTimeout("Timed out waiting for the account lock")
        if pgcode in _CONFLICT_CODES:
            return TransactionConflict("Concurrent transaction conflict; retry")
        if isinstance(exc, OperationalError) and "database is locked" in str(exc.orig):
            return LockTimeout("Timed out waiting for the account lock")

    return LedgerStorageError("Ledger storage failure; no changes were committed")


class ReconciliationTransaction:
    """Atomic unit of work scoped to one customer account"""

    def __init__(
        self,
        db: Session,
        customer_id: str,
        lock_timeout_seconds: Optional[float] = None,
    ):
        self.db = db
        self.customer_id = customer_id
        self.lock_timeout_seconds = (
            lock_timeout_seconds if lock_timeout_seconds is not None else settings.lock_timeout_seconds
        )
        self.accounts = AccountRepository(db)
        self.obligations = ObligationRepository(db)
        self.payments = PaymentRepository(db)
        self.account: Optional[CustomerAccount] = None
        self.active = False

    def __enter__(self) -> "ReconciliationTransaction":
        try:
            self._apply_lock_timeout()
            self.account = self.accounts.get_for_update(self.customer_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._translated(e) from e

        if self.account is None:
            self.db.rollback()
            raise AccountNotFound(f"Customer account not found: {self.customer_id}")

        self.active = True
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.active = False

        if exc_type is not None:
            self.db.rollback()
            if isinstance(exc, SQLAlchemyError):
                raise self._translated(exc) from exc
            return False

        try:
            assert_account_invariant(
                self.account.customer_id,
                self.account.balance_cents,
                self.account.limit_cents,
            )
            self.db.commit()
        except LedgerError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._translated(e) from e

        return False

    def _apply_lock_timeout(self) -> None:
        timeout_ms = int(self.lock_timeout_seconds * 1000)
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            self.db.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))
        elif dialect == "sqlite":
            # No row locks; bound the wait for the database write lock instead
            self.db.execute(text(f"PRAGMA busy_timeout = {timeout_ms}"))

    def _translated(self, exc: SQLAlchemyError) -> LedgerError:
        error = translate_storage_error(exc)
        if isinstance(error, LockTimeout):
            lock_timeout_counter.inc()
        logger.error(
            f"Reconciliation transaction failed: {error.code}",
            extra={"customer_id": self.customer_id, "error_code": error.code, "cause": str(exc)},
        )
        return error
