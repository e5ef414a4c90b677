"""Pytest fixtures for testing"""

import uuid
import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from credit_ledger.api.main import create_app
from credit_ledger.api.dependencies import get_clock, get_notification_sink, get_payment_verifier
from credit_ledger.domain.clock import FixedClock
from credit_ledger.domain.models import Obligation, SaleStatus
from credit_ledger.infrastructure.clients.notifications import RecordingNotificationSink
from credit_ledger.infrastructure.clients.payment_gateway import HmacPaymentVerifier
from credit_ledger.infrastructure.database.models import Base
from credit_ledger.infrastructure.database.session import get_db, make_engine
from credit_ledger.services.ledger import CreditAccountLedger
from credit_ledger.services.lifecycle import SaleLifecycle
from credit_ledger.services.projections import LedgerProjections
from credit_ledger.services.reconciliation import PaymentReconciler

GATEWAY_SECRET = "test-gateway-secret"
NOW = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite database per test"""
    engine = make_engine(f"sqlite:///{tmp_path / 'ledger.db'}", lock_timeout_seconds=1.0)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def today(clock) -> date:
    return clock.today()


@pytest.fixture
def ledger(db, clock) -> CreditAccountLedger:
    return CreditAccountLedger(db, clock=clock)


@pytest.fixture
def verifier() -> HmacPaymentVerifier:
    return HmacPaymentVerifier(GATEWAY_SECRET)


@pytest.fixture
def reconciler(db, ledger, verifier, clock) -> PaymentReconciler:
    return PaymentReconciler(db, ledger=ledger, verifier=verifier, clock=clock)


@pytest.fixture
def lifecycle(db, ledger, clock) -> SaleLifecycle:
    return SaleLifecycle(db, ledger=ledger, clock=clock)


@pytest.fixture
def projections(db, clock) -> LedgerProjections:
    return LedgerProjections(db, clock=clock)


@pytest.fixture
def sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def client(db: Session, clock: FixedClock, sink: RecordingNotificationSink, verifier) -> TestClient:
    """Create FastAPI test client with test database, pinned clock, and in-memory sink"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_sink] = lambda: sink
    app.dependency_overrides[get_payment_verifier] = lambda: verifier
    return TestClient(app)


@pytest.fixture
def make_obligation():
    """Factory for in-memory obligations; created_at increases with each call"""
    counter = {"n": 0}

    def _make(
        principal_cents: int = 10_000,
        paid_to_date_cents: int = 0,
        due_date: date = NOW.date() + timedelta(days=30),
        status: SaleStatus = SaleStatus.PENDING,
        interest_rate: Decimal = Decimal("0"),
        customer_id: str = "cust_1",
        created_at: datetime | None = None,
    ) -> Obligation:
        counter["n"] += 1
        return Obligation(
            id=uuid.uuid4(),
            customer_id=customer_id,
            principal_cents=principal_cents,
            interest_rate=interest_rate,
            paid_to_date_cents=paid_to_date_cents,
            due_date=due_date,
            status=status,
            created_at=created_at or NOW + timedelta(minutes=counter["n"]),
        )

    return _make
