"""Filtering, sorting and totals over ledger records."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Optional

from ..models.book_entry import BookEntry, EntryType
from .records import PresentationRecord
from .settlements import ZERO, to_money

STATUS_ALL = "all"

_SORT_KEYS: dict[str, tuple[Callable[[PresentationRecord], object], bool]] = {
    "name_asc": (lambda r: r.name.casefold(), False),
    "name_desc": (lambda r: r.name.casefold(), True),
    "amount_asc": (lambda r: r.amount, False),
    "amount_desc": (lambda r: r.amount, True),
    "date_asc": (lambda r: r.date, False),
    "date_desc": (lambda r: r.date, True),
}
# Aliases used by the list screen toggle
_SORT_KEYS["oldest"] = _SORT_KEYS["date_asc"]
_SORT_KEYS["newest"] = _SORT_KEYS["date_desc"]

SORT_OPTIONS = tuple(_SORT_KEYS)


def matches_query(record: PresentationRecord, search_query: Optional[str]) -> bool:
    """Case-insensitive substring match on counterparty name or category."""

    needle = (search_query or "").strip().lower()
    if not needle:
        return True
    return needle in (record.name or "").lower() or needle in (record.category or "").lower()


def matches_status(record: PresentationRecord, status: Optional[str]) -> bool:
    if not status or status == STATUS_ALL:
        return True
    return record.status == status


def sort_records(records: Iterable[PresentationRecord], sort: str) -> list[PresentationRecord]:
    """Order records by one of :data:`SORT_OPTIONS`."""

    try:
        key, reverse = _SORT_KEYS[sort]
    except KeyError:
        raise ValueError(f"Unknown sort option {sort!r}; expected one of {SORT_OPTIONS}") from None
    return sorted(records, key=key, reverse=reverse)


def filter_and_sort(
    records: Iterable[PresentationRecord],
    search_query: Optional[str] = None,
    status: Optional[str] = None,
    sort: Optional[str] = None,
) -> list[PresentationRecord]:
    """Keep records matching both the search query and the status filter.

    Input order is preserved unless ``sort`` names an ordering.
    """

    kept = [
        record
        for record in records
        if matches_query(record, search_query) and matches_status(record, status)
    ]
    if sort:
        return sort_records(kept, sort)
    return kept


def _live(entries: Iterable[BookEntry], direction: Optional[str]) -> list[BookEntry]:
    wanted = direction.lower() if direction else None
    return [
        entry
        for entry in entries
        if not entry.is_deleted
        and (wanted is None or (entry.entry_type or "").lower() == wanted)
    ]


def total_remaining(entries: Iterable[BookEntry], direction: Optional[str] = None) -> float:
    """Sum remaining balances of live entries, accumulated in cents."""

    total = sum((to_money(e.remaining_amount) for e in _live(entries, direction)), ZERO)
    return float(total)


@dataclass(slots=True)
class LedgerSummary:
    """Headline figures for the home screen."""

    to_collect: float
    to_pay: float
    status_counts: dict[str, int]

    @property
    def net(self) -> float:
        return float(Decimal(str(self.to_collect)) - Decimal(str(self.to_pay)))


def summarize(entries: Iterable[BookEntry]) -> LedgerSummary:
    """Outstanding totals per direction and entry counts per stored status."""

    live = _live(entries, None)
    return LedgerSummary(
        to_collect=total_remaining(live, EntryType.COLLECT.value),
        to_pay=total_remaining(live, EntryType.PAY.value),
        status_counts=dict(Counter(entry.status for entry in live)),
    )
