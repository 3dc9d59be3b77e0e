"""Tests for the book entry and settlement repositories."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime

from ledgerbook.models import BookEntry, User


def test_create_and_get(entry_repo, user):
    entry = BookEntry(
        entry_type="pay",
        counterparty="Sara",
        date=datetime(2024, 4, 1),
        principal_amount=80.0,
        remaining_amount=80.0,
        currency="USD",
        status="PENDING",
    )

    created = entry_repo.create(entry, user_id=user.id)

    assert created.id is not None
    fetched = entry_repo.get_by_id(created.id, user_id=user.id)
    assert fetched.counterparty == "Sara"
    assert fetched.user_id == user.id
    assert fetched.created_at is not None


def test_entries_are_scoped_to_owner(entry_factory, entry_repo, session_factory, user):
    with session_factory() as session:
        other = User(username="someone-else")
        session.add(other)
        session.commit()
        session.refresh(other)
    foreign = entry_factory(owner=other)

    assert entry_repo.get_by_id(foreign.id, user_id=user.id) is None
    assert entry_repo.list_all(user_id=user.id) == []


def test_list_by_direction_newest_first(entry_factory, entry_repo, user):
    older = entry_factory(counterparty="Old", date=datetime(2024, 1, 1))
    newer = entry_factory(counterparty="New", date=datetime(2024, 3, 1))
    entry_factory(counterparty="Payee", entry_type="pay")

    collect = entry_repo.list_by_direction("collect", user_id=user.id)

    assert [e.id for e in collect] == [newer.id, older.id]
    assert [e.counterparty for e in entry_repo.list_by_direction("PAY", user_id=user.id)] == ["Payee"]


def test_soft_delete_hides_entry(entry_factory, entry_repo, user):
    entry = entry_factory()

    deleted = entry_repo.soft_delete(entry.id, user_id=user.id)

    assert deleted.deleted_at is not None
    assert entry_repo.get_by_id(entry.id, user_id=user.id) is None
    assert entry_repo.list_by_direction("collect", user_id=user.id) == []
    assert entry_repo.soft_delete(entry.id, user_id=user.id) is None


def test_datetime_columns_store_naive_local_times(entry_repo, user):
    for column in ("date", "due_date", "created_at", "deleted_at"):
        column_type = BookEntry.__table__.c[column].type
        assert isinstance(column_type, DateTime)
        assert column_type.timezone is False

    entry = BookEntry(
        entry_type="collect",
        counterparty="Naive",
        date=datetime(2024, 4, 1, 18, 30),
        due_date=datetime(2024, 5, 1, 9, 0),
        principal_amount=10.0,
        remaining_amount=10.0,
        currency="USD",
    )
    created = entry_repo.create(entry, user_id=user.id)

    fetched = entry_repo.get_by_id(created.id, user_id=user.id)
    assert fetched.date == datetime(2024, 4, 1, 18, 30)
    assert fetched.due_date == datetime(2024, 5, 1, 9, 0)


def test_settlement_repository_queries(entry_factory, settlement_factory, settlement_repo):
    entry = entry_factory()
    settlement_factory(entry, 100.0, date=datetime(2024, 2, 1))
    settlement_factory(entry, 50.5, date=datetime(2024, 3, 1))

    rows = settlement_repo.list_for_entry(entry.id)

    assert [r.amount for r in rows] == [50.5, 100.0]
    assert settlement_repo.sum_for_entry(entry.id) == 150.5
    assert settlement_repo.count_for_entry(entry.id) == 2
    assert settlement_repo.count_for_entry(entry.id + 1) == 0
