"""Tests for record filtering, sorting and totals."""

from __future__ import annotations

from datetime import datetime

import pytest

from ledgerbook.models import BookEntry
from ledgerbook.services.queries import (
    SORT_OPTIONS,
    filter_and_sort,
    summarize,
    total_remaining,
)
from ledgerbook.services.records import PresentationRecord
from tests.conftest import assert_money_equal


def _record(rid, name, amount, when, category="INR", status="unpaid") -> PresentationRecord:
    return PresentationRecord(
        id=rid,
        name=name,
        amount=amount,
        date=when,
        category=category,
        status=status,
        remaining=amount,
        direction="collect",
    )


@pytest.fixture
def records():
    return [
        _record(1, "Ali Khan", 1000.0, "2024-01-15T10:00:00"),
        _record(2, "bob", 250.0, "2024-03-01T09:00:00", category="USD", status="partial"),
        _record(3, "Carla", 50.0, "2023-12-31T23:00:00", status="paid"),
        _record(4, "Dalia Ali", 700.0, "2024-02-10T08:30:00", status="overdue"),
    ]


class TestFilter:
    def test_blank_search_and_all_status_keep_everything(self, records):
        assert filter_and_sort(records, "", "all") == records
        assert filter_and_sort(records) == records

    def test_search_is_case_insensitive_substring_on_name(self, records):
        result = filter_and_sort(records, "ali", "all")
        assert [r.id for r in result] == [1, 4]

    def test_search_matches_category(self, records):
        result = filter_and_sort(records, "usd", None)
        assert [r.id for r in result] == [2]

    def test_whitespace_query_is_blank(self, records):
        assert len(filter_and_sort(records, "   ")) == 4

    def test_status_filter(self, records):
        assert [r.id for r in filter_and_sort(records, None, "partial")] == [2]
        assert [r.id for r in filter_and_sort(records, None, "overdue")] == [4]

    def test_search_and_status_combine(self, records):
        assert filter_and_sort(records, "ali", "paid") == []

    def test_no_match_returns_empty(self, records):
        assert filter_and_sort(records, "zed") == []

    def test_input_is_not_mutated(self, records):
        before = list(records)
        filter_and_sort(records, "ali", "all", "name_desc")
        assert records == before


class TestSort:
    @pytest.mark.parametrize(
        "sort, expected",
        [
            ("name_asc", [1, 2, 3, 4]),
            ("name_desc", [4, 3, 2, 1]),
            ("amount_asc", [3, 2, 4, 1]),
            ("amount_desc", [1, 4, 2, 3]),
            ("date_asc", [3, 1, 4, 2]),
            ("date_desc", [2, 4, 1, 3]),
            ("oldest", [3, 1, 4, 2]),
            ("newest", [2, 4, 1, 3]),
        ],
    )
    def test_orderings(self, records, sort, expected):
        assert [r.id for r in filter_and_sort(records, sort=sort)] == expected

    def test_every_option_is_accepted(self, records):
        for option in SORT_OPTIONS:
            assert len(filter_and_sort(records, sort=option)) == 4

    def test_unknown_sort_raises(self, records):
        with pytest.raises(ValueError, match="Unknown sort option"):
            filter_and_sort(records, sort="by_mood")


def _book_entry(entry_type, remaining, status="PENDING", deleted=False) -> BookEntry:
    return BookEntry(
        user_id=1,
        entry_type=entry_type,
        counterparty="X",
        date=datetime(2024, 1, 1),
        principal_amount=remaining,
        remaining_amount=remaining,
        currency="USD",
        status=status,
        deleted_at=datetime(2024, 6, 1) if deleted else None,
    )


class TestTotals:
    def test_total_remaining_skips_deleted(self):
        entries = [
            _book_entry("collect", 100.10),
            _book_entry("collect", 200.20),
            _book_entry("collect", 999.0, deleted=True),
        ]
        assert_money_equal(total_remaining(entries), 300.30)

    def test_total_remaining_by_direction(self):
        entries = [_book_entry("collect", 10.0), _book_entry("pay", 4.0)]
        assert total_remaining(entries, "collect") == 10.0
        assert total_remaining(entries, "PAY") == 4.0

    def test_empty_total_is_zero(self):
        assert total_remaining([]) == 0.0

    def test_cents_do_not_accumulate_float_error(self):
        entries = [_book_entry("pay", 0.1) for _ in range(10)]
        assert total_remaining(entries) == 1.0

    def test_summarize(self):
        entries = [
            _book_entry("collect", 500.0),
            _book_entry("collect", 0.0, status="SETTLED"),
            _book_entry("pay", 120.0, status="PARTIALLY_SETTLED"),
            _book_entry("pay", 80.0, deleted=True),
        ]
        summary = summarize(entries)
        assert summary.to_collect == 500.0
        assert summary.to_pay == 120.0
        assert summary.net == 380.0
        assert summary.status_counts == {"PENDING": 1, "SETTLED": 1, "PARTIALLY_SETTLED": 1}
