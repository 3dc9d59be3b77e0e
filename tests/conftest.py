"""Pytest configuration and shared fixtures for Ledgerbook tests.

This module provides database fixtures, test data factories, and helper utilities
for testing ledger logic, repositories, and services without touching the real
app database.
"""

from __future__ import annotations

import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import pytest
from apscheduler.schedulers.background import BackgroundScheduler
from sqlmodel import Session, SQLModel, create_engine, select

# Import all models to ensure they're registered with SQLModel metadata
from ledgerbook.infra.repositories import (
    SQLModelBookEntryRepository,
    SQLModelPreferenceRepository,
    SQLModelSettlementRepository,
)
from ledgerbook.models import BookEntry, Settlement, User
from ledgerbook.services.book import LedgerBook
from ledgerbook.services.reminders import ReminderScheduler
from ledgerbook.services.settlements import SettlementEngine

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching ``create_session_factory``: commit or roll back."""

    @contextmanager
    def factory():
        session = Session(db_engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


@pytest.fixture
def user(session_factory) -> User:
    """Create the default ledger owner."""

    with session_factory() as session:
        existing = session.exec(select(User).where(User.username == "tester")).first()
        if existing:
            return existing
        u = User(username="tester")
        session.add(u)
        session.commit()
        session.refresh(u)
        return u


@pytest.fixture
def entry_repo(session_factory) -> SQLModelBookEntryRepository:
    return SQLModelBookEntryRepository(session_factory)


@pytest.fixture
def settlement_repo(session_factory) -> SQLModelSettlementRepository:
    return SQLModelSettlementRepository(session_factory)


@pytest.fixture
def preference_repo(session_factory) -> SQLModelPreferenceRepository:
    return SQLModelPreferenceRepository(session_factory)


@pytest.fixture
def reminders():
    """Reminder scheduler on a background scheduler that is never started.

    Jobs stay pending, so nothing fires during tests while add/remove/lookup
    still behave as in production.
    """

    return ReminderScheduler(BackgroundScheduler())


@pytest.fixture
def engine(session_factory, reminders) -> SettlementEngine:
    return SettlementEngine(session_factory, notifier=reminders)


@pytest.fixture
def book(session_factory, entry_repo, settlement_repo, reminders) -> LedgerBook:
    return LedgerBook(session_factory, entry_repo, settlement_repo, reminders)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def entry_factory(session_factory, user):
    """Factory for persisting book entries directly, bypassing the service layer.

    Returns:
        Callable: Function that creates and persists BookEntry instances
    """

    def _create_entry(
        counterparty: str = "Ali Khan",
        principal_amount: float = 1000.0,
        entry_type: str = "collect",
        currency: str = "INR",
        interest_amount: float = 0.0,
        date: datetime | None = None,
        status: str = "PENDING",
        remaining_amount: float | None = None,
        settlement_amount: float = 0.0,
        due_date: datetime | None = None,
        deleted_at: datetime | None = None,
        owner: User | None = None,
    ) -> BookEntry:
        """Create a book entry with sensible defaults.

        Args:
            counterparty: Person the money is owed to/by
            principal_amount: Original amount
            entry_type: 'collect' or 'pay'
            currency: ISO-4217 currency code
            remaining_amount: Cached balance (defaults to principal + interest)

        Returns:
            BookEntry: Persisted entry
        """
        owner = owner or user
        if remaining_amount is None:
            remaining_amount = principal_amount + interest_amount
        entry = BookEntry(
            user_id=owner.id,
            entry_type=entry_type,
            counterparty=counterparty,
            date=date or datetime(2024, 1, 15, 10, 0),
            principal_amount=principal_amount,
            interest_amount=interest_amount,
            remaining_amount=remaining_amount,
            settlement_amount=settlement_amount,
            currency=currency,
            status=status,
            due_date=due_date,
            deleted_at=deleted_at,
        )
        with session_factory() as session:
            session.add(entry)
            session.commit()
            session.refresh(entry)
        return entry

    return _create_entry


@pytest.fixture
def settlement_factory(session_factory):
    """Factory for raw settlement rows (no balance recomputation)."""

    def _create_settlement(
        entry: BookEntry,
        amount: float,
        date: datetime | None = None,
        description: str | None = None,
    ) -> Settlement:
        settlement = Settlement(
            book_entry_id=entry.id,
            amount=amount,
            date=date or datetime(2024, 2, 1, 12, 0),
            description=description,
        )
        with session_factory() as session:
            session.add(settlement)
            session.commit()
            session.refresh(settlement)
        return settlement

    return _create_settlement


# =============================================================================
# Helper Utilities
# =============================================================================


def assert_money_equal(actual: float, expected: float, tolerance: float = 0.005):
    """Assert that two money amounts agree to the cent."""
    assert (
        abs(actual - expected) < tolerance
    ), f"Expected {expected}, got {actual} (diff: {abs(actual - expected)})"
