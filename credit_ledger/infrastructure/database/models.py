"""SQLAlchemy ORM models for credit accounts, credit sales, and payments"""

import uuid
from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class CustomerAccount(Base):
    """Customer credit account: approved limit and running balance"""

    __tablename__ = "credit_account"
    __table_args__ = (
        CheckConstraint("limit_cents >= 0", name="ck_credit_account_limit_nonnegative"),
        CheckConstraint(
            "balance_cents >= 0 AND balance_cents <= limit_cents",
            name="ck_credit_account_balance_within_limit",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(Text, nullable=False, unique=True, index=True)
    limit_cents = Column(BigInteger, nullable=False, default=0)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    status = Column(Text, nullable=False, default="active")
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    # Optimistic check on top of the row lock: a stale write fails instead of double-spending
    __mapper_args__ = {"version_id_col": version}

    obligations = relationship("CreditSale", back_populates="account")
    payments = relationship("Payment", back_populates="account")


class CreditSale(Base):
    """Credit sale (obligation) owed by a customer account"""

    __tablename__ = "credit_obligation"
    __table_args__ = (
        CheckConstraint("principal_cents > 0", name="ck_credit_obligation_principal_positive"),
        CheckConstraint("interest_rate >= 0", name="ck_credit_obligation_rate_nonnegative"),
        CheckConstraint(
            "paid_to_date_cents >= 0 AND paid_to_date_cents <= principal_cents",
            name="ck_credit_obligation_paid_within_principal",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("credit_account.id", ondelete="RESTRICT"), nullable=False)
    customer_id = Column(Text, nullable=False, index=True)
    principal_cents = Column(BigInteger, nullable=False)
    interest_rate = Column(Numeric(6, 3), nullable=False, default=0)
    paid_to_date_cents = Column(BigInteger, nullable=False, default=0)
    due_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="pending", index=True)
    last_payment_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    account = relationship("CustomerAccount", back_populates="obligations")
    payments = relationship("Payment", back_populates="obligation")


class Payment(Base):
    """One allocation of an incoming payment against one credit sale"""

    __tablename__ = "payment"
    __table_args__ = (CheckConstraint("amount_cents > 0", name="ck_payment_amount_positive"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    batch_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("credit_account.id", ondelete="RESTRICT"), nullable=False)
    customer_id = Column(Text, nullable=False, index=True)
    obligation_id = Column(Uuid(as_uuid=True), ForeignKey("credit_obligation.id", ondelete="RESTRICT"), nullable=True)
    amount_cents = Column(BigInteger, nullable=False)
    method = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="completed")
    idempotency_key = Column(Text, nullable=True, index=True)
    reference = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("CustomerAccount", back_populates="payments")
    obligation = relationship("CreditSale", back_populates="payments")
