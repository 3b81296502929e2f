# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from fare_gate.api.v1.dependencies import get_clock  # noqa: E402
from fare_gate.core.security import SERVICE_ROLE, create_access_token  # noqa: E402
from fare_gate.core.settings import Settings  # noqa: E402
from fare_gate.db.session import Base, configure_sqlite_transactions  # noqa: E402
from fare_gate.db.session import get_db as app_get_session  # noqa: E402
from fare_gate.main import app as fastapi_app  # noqa: E402
from fare_gate.models import RedemptionContext, Ticket, TicketAccount  # noqa: E402
from fare_gate.repositories.ticket_repo import TicketRepository  # noqa: E402

TEST_DB_URL = "sqlite://"

# 2026-03-10 15:00 UTC is 08:00 in Hermosillo (UTC-7, no DST).
BASE_TIME = datetime(2026, 3, 10, 15, 0, tzinfo=UTC)

HOLDER_ID = "holder-ana"
OTHER_HOLDER_ID = "holder-bruno"
AGENT_ID = "agent-01"

_TEST_SETTINGS_INSTANCE = Settings()


class FrozenClock:
    """Controllable time source shared by services and the API."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_transactions(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Session commits and rollbacks become SAVEPOINT operations on the outer
    # transaction, which is rolled back after the test.
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(BASE_TIME)


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, db_session: Session, clock: FrozenClock) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    def _get_clock_override() -> Callable[[], datetime]:
        return clock

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_clock] = _get_clock_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_clock, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


def make_ticket(
    db: Session,
    *,
    holder_id: str = HOLDER_ID,
    issued_at: datetime = BASE_TIME,
    amount: float = 9.0,
) -> Ticket:
    ticket = TicketRepository(db).create(holder_id=holder_id, amount=amount, issued_at=issued_at)
    db.commit()
    return ticket


def make_account(db: Session, holder_id: str = HOLDER_ID, credits: int = 5) -> TicketAccount:
    account = TicketAccount(holder_id=holder_id, credit_count=credits, total_redeemed_count=0)
    db.add(account)
    db.commit()
    return account


@pytest.fixture()
def holder_account(db_session: Session) -> TicketAccount:
    """Ledger row for the primary holder with five credits."""
    return make_account(db_session)


@pytest.fixture()
def ticket(db_session: Session, holder_account: TicketAccount) -> Ticket:
    """An active ticket owned by the primary holder."""
    return make_ticket(db_session)


@pytest.fixture()
def bus_contexts(db_session: Session) -> dict[str, RedemptionContext]:
    """Two registered buses in Hermosillo."""
    contexts = {
        "bus-12": RedemptionContext(
            id="bus-12", label="Eco 12", plate="SON-1234", timezone="America/Hermosillo"
        ),
        "bus-40": RedemptionContext(
            id="bus-40", label="Eco 40", plate="SON-4040", timezone="America/Hermosillo"
        ),
    }
    db_session.add_all(contexts.values())
    db_session.commit()
    return contexts


def _bearer(subject: str, claims: dict[str, str] | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject, claims)}"}


@pytest.fixture()
def holder_headers() -> dict[str, str]:
    """Authorization headers for the primary holder."""
    return _bearer(HOLDER_ID)


@pytest.fixture()
def other_holder_headers() -> dict[str, str]:
    """Authorization headers for a second holder."""
    return _bearer(OTHER_HOLDER_ID)


@pytest.fixture()
def agent_headers() -> dict[str, str]:
    """Authorization headers for a validating agent."""
    return _bearer(AGENT_ID)


@pytest.fixture()
def service_headers() -> dict[str, Any]:
    """Authorization headers for a back-office caller."""
    return _bearer("purchase-processor", {"role": SERVICE_ROLE})
