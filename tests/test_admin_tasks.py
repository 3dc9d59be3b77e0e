"""Tests for the full data reset."""

from __future__ import annotations

from sqlmodel import select

from ledgerbook.models import BookEntry, Settlement, User, UserPreference
from ledgerbook.services.admin_tasks import RESET_ORDER, reset_all_data


def test_reset_order_is_children_first():
    assert [m.__tablename__ for m in RESET_ORDER] == [
        "settlements",
        "book_entries",
        "user_preferences",
        "users",
    ]


def test_reset_removes_everything(
    session_factory, entry_factory, settlement_factory, preference_repo, user
):
    entry = entry_factory()
    entry_factory(entry_type="pay", deleted_at=entry.date)
    settlement_factory(entry, 10.0)
    settlement_factory(entry, 20.0)
    preference_repo.upsert(user_id=user.id, currency="INR")

    removed = reset_all_data(session_factory)

    assert removed == {
        "settlements": 2,
        "book_entries": 2,
        "user_preferences": 1,
        "users": 1,
    }
    with session_factory() as session:
        for model in (Settlement, BookEntry, UserPreference, User):
            assert session.exec(select(model)).all() == []


def test_reset_on_empty_database(session_factory):
    removed = reset_all_data(session_factory)
    assert set(removed.values()) == {0}
