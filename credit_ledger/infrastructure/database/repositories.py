"""Data access layer for ledger entities"""

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from credit_ledger.domain import models as domain
from credit_ledger.infrastructure.database.models import CreditSale, CustomerAccount, Payment


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_account(row: CustomerAccount) -> domain.CreditAccount:
    return domain.CreditAccount(
        customer_id=row.customer_id,
        limit_cents=row.limit_cents,
        balance_cents=row.balance_cents,
        status=domain.AccountStatus(row.status),
    )


def to_obligation(row: CreditSale) -> domain.Obligation:
    return domain.Obligation(
        id=row.id,
        customer_id=row.customer_id,
        principal_cents=row.principal_cents,
        interest_rate=Decimal(row.interest_rate or 0),
        paid_to_date_cents=row.paid_to_date_cents,
        due_date=row.due_date,
        status=domain.SaleStatus(row.status),
        created_at=_aware(row.created_at),
        last_payment_at=_aware(row.last_payment_at),
    )


def to_payment_entry(row: Payment) -> domain.PaymentEntry:
    return domain.PaymentEntry(
        id=row.id,
        batch_id=row.batch_id,
        customer_id=row.customer_id,
        obligation_id=row.obligation_id,
        amount_cents=row.amount_cents,
        method=domain.PaymentMethod(row.method),
        status=domain.PaymentStatus(row.status),
        paid_at=_aware(row.paid_at),
        reference=row.reference,
        notes=row.notes,
    )


class AccountRepository:
    """Repository for customer credit accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(
        self,
        customer_id: str,
        limit_cents: int,
        status: str = domain.AccountStatus.ACTIVE.value,
        created_at: Optional[datetime] = None,
    ) -> CustomerAccount:
        db_account = CustomerAccount(
            customer_id=customer_id,
            limit_cents=limit_cents,
            balance_cents=0,
            status=status,
        )
        if created_at is not None:
            db_account.created_at = created_at
        self.db.add(db_account)
        self.db.flush()  # Get ID without committing
        return db_account

    def get_by_customer(self, customer_id: str) -> Optional[CustomerAccount]:
        return (
            self.db.query(CustomerAccount)
            .filter(CustomerAccount.customer_id == customer_id)
            .first()
        )

    def get_for_update(self, customer_id: str) -> Optional[CustomerAccount]:
        """Fetch the account holding its row lock until the transaction ends"""
        return (
            self.db.query(CustomerAccount)
            .filter(CustomerAccount.customer_id == customer_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def list_warning_candidates(self) -> List[CustomerAccount]:
        """Active accounts carrying a balance, the only ones a limit warning can apply to"""
        return (
            self.db.query(CustomerAccount)
            .filter(
                CustomerAccount.status == domain.AccountStatus.ACTIVE.value,
                CustomerAccount.balance_cents > 0,
            )
            .order_by(CustomerAccount.customer_id)
            .all()
        )

    def delete(self, account: CustomerAccount) -> None:
        self.db.delete(account)
        self.db.flush()


class ObligationRepository:
    """Repository for credit sales"""

    def __init__(self, db: Session):
        self.db = db

    def create_obligation(
        self,
        account: CustomerAccount,
        principal_cents: int,
        interest_rate: Decimal,
        due_date: date,
        created_at: Optional[datetime] = None,
    ) -> CreditSale:
        db_sale = CreditSale(
            account_id=account.id,
            customer_id=account.customer_id,
            principal_cents=principal_cents,
            interest_rate=interest_rate,
            paid_to_date_cents=0,
            due_date=due_date,
            status=domain.SaleStatus.PENDING.value,
        )
        if created_at is not None:
            db_sale.created_at = created_at
        self.db.add(db_sale)
        self.db.flush()
        return db_sale

    def get(self, obligation_id: uuid.UUID, for_update: bool = False) -> Optional[CreditSale]:
        query = self.db.query(CreditSale).filter(CreditSale.id == obligation_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def list_pending_for_account(self, account: CustomerAccount, for_update: bool = False) -> List[CreditSale]:
        """Pending sales oldest first, id as the tie-break"""
        query = (
            self.db.query(CreditSale)
            .filter(
                CreditSale.account_id == account.id,
                CreditSale.status == domain.SaleStatus.PENDING.value,
            )
            .order_by(CreditSale.created_at.asc(), CreditSale.id.asc())
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.all()

    def list_for_customer(self, customer_id: str) -> List[CreditSale]:
        return (
            self.db.query(CreditSale)
            .filter(CreditSale.customer_id == customer_id)
            .order_by(CreditSale.created_at.asc(), CreditSale.id.asc())
            .all()
        )

    def list_pending(self, customer_id: Optional[str] = None) -> List[CreditSale]:
        query = self.db.query(CreditSale).filter(CreditSale.status == domain.SaleStatus.PENDING.value)
        if customer_id is not None:
            query = query.filter(CreditSale.customer_id == customer_id)
        return query.order_by(CreditSale.due_date.asc(), CreditSale.id.asc()).all()

    def count_for_account(self, account: CustomerAccount) -> int:
        return self.db.query(CreditSale).filter(CreditSale.account_id == account.id).count()


class PaymentRepository:
    """Repository for payment allocation records"""

    def __init__(self, db: Session):
        self.db = db

    def add_payment(
        self,
        batch_id: uuid.UUID,
        account: CustomerAccount,
        obligation_id: Optional[uuid.UUID],
        amount_cents: int,
        method: str,
        paid_at: datetime,
        idempotency_key: Optional[str] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        db_payment = Payment(
            batch_id=batch_id,
            account_id=account.id,
            customer_id=account.customer_id,
            obligation_id=obligation_id,
            amount_cents=amount_cents,
            method=method,
            status=domain.PaymentStatus.COMPLETED.value,
            idempotency_key=idempotency_key,
            reference=reference,
            notes=notes,
            paid_at=paid_at,
        )
        self.db.add(db_payment)
        return db_payment

    def key_exists(self, customer_id: str, idempotency_key: str) -> bool:
        return (
            self.db.query(Payment.id)
            .filter(
                Payment.customer_id == customer_id,
                Payment.idempotency_key == idempotency_key,
            )
            .first()
            is not None
        )

    def get_payments_by_customer(
        self,
        customer_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Payment]:
        """Payment history, newest first, optionally bounded by inclusive dates"""
        query = self.db.query(Payment).filter(Payment.customer_id == customer_id)
        if start_date is not None:
            query = query.filter(Payment.paid_at >= datetime.combine(start_date, time.min, tzinfo=timezone.utc))
        if end_date is not None:
            query = query.filter(Payment.paid_at <= datetime.combine(end_date, time.max, tzinfo=timezone.utc))
        return query.order_by(Payment.paid_at.desc(), Payment.id.asc()).all()
