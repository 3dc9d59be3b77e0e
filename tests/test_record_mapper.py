"""Tests for mapping book entries to presentation records."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from ledgerbook.models import BookEntry, Settlement
from ledgerbook.services.records import (
    UI_OVERDUE,
    to_presentation_record,
    to_transaction_entries,
    ui_status,
)


def _entry(**overrides) -> BookEntry:
    values = dict(
        id=7,
        user_id=1,
        entry_type="collect",
        counterparty="Ali Khan",
        date=datetime(2024, 1, 15, 10, 0),
        description="Dinner split",
        principal_amount=1000.0,
        interest_amount=0.0,
        remaining_amount=700.0,
        settlement_amount=300.0,
        currency="INR",
        status="PARTIALLY_SETTLED",
    )
    values.update(overrides)
    return BookEntry(**values)


def _settlement(sid: int, amount: float, when: datetime, description=None) -> Settlement:
    return Settlement(id=sid, book_entry_id=7, amount=amount, date=when, description=description)


@pytest.mark.parametrize(
    "stored, expected",
    [
        ("PENDING", "unpaid"),
        ("PARTIALLY_SETTLED", "partial"),
        ("SETTLED", "paid"),
        ("COLLECTED", "unpaid"),
        ("", "unpaid"),
        (None, "unpaid"),
    ],
)
def test_status_vocabulary(stored, expected):
    assert ui_status(stored) == expected


def test_record_fields_copy_from_entry():
    record = to_presentation_record(_entry(), [])

    assert record.id == 7
    assert record.name == "Ali Khan"
    assert record.amount == 1000.0
    assert record.remaining == 700.0
    assert record.category == "INR"
    assert record.purpose == "Dinner split"
    assert record.status == "partial"
    assert record.direction == "collect"
    assert record.date == "2024-01-15T10:00:00"
    assert record.trx_history == []
    assert record.notifications_enabled is True


def test_missing_remaining_maps_to_zero():
    record = to_presentation_record(_entry(remaining_amount=None), [])
    assert record.remaining == 0


def test_history_is_newest_first_with_default_purpose():
    settlements = [
        _settlement(1, 100.0, datetime(2024, 2, 1)),
        _settlement(2, 200.0, datetime(2024, 3, 1), description="Bank transfer"),
        _settlement(3, 50.0, datetime(2024, 2, 15)),
    ]

    history = to_transaction_entries(_entry(), settlements)

    assert [t.id for t in history] == [2, 3, 1]
    assert history[0].purpose == "Bank transfer"
    assert history[1].purpose == "Collection"
    assert {t.type for t in history} == {"income"}


def test_pay_history_is_expense():
    history = to_transaction_entries(
        _entry(entry_type="pay"), [_settlement(1, 10.0, datetime(2024, 2, 1))]
    )
    assert history[0].type == "expense"
    assert history[0].purpose == "Payment"


def test_same_day_settlements_tie_break_on_id():
    same_day = datetime(2024, 2, 1, 12, 0)
    history = to_transaction_entries(
        _entry(), [_settlement(4, 1.0, same_day), _settlement(9, 2.0, same_day)]
    )
    assert [t.id for t in history] == [9, 4]


class TestOverdue:
    def test_past_due_unpaid_entry_is_overdue(self):
        entry = _entry(status="PENDING", due_date=datetime(2024, 3, 1))
        record = to_presentation_record(entry, [], today=date(2024, 3, 2))
        assert record.status == UI_OVERDUE
        assert record.due_date == "2024-03-01T00:00:00"

    def test_due_today_is_not_overdue(self):
        entry = _entry(status="PENDING", due_date=datetime(2024, 3, 1, 18, 0))
        record = to_presentation_record(entry, [], today=date(2024, 3, 1))
        assert record.status == "unpaid"

    def test_paid_entries_never_overdue(self):
        entry = _entry(status="SETTLED", remaining_amount=0.0, due_date=datetime(2024, 3, 1))
        record = to_presentation_record(entry, [], today=date(2025, 1, 1))
        assert record.status == "paid"

    def test_without_today_status_is_unchanged(self):
        entry = _entry(status="PENDING", due_date=datetime(2000, 1, 1))
        assert to_presentation_record(entry, []).status == "unpaid"
