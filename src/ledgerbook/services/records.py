"""Map persisted book entries and settlements to presentation records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

from ..models.book_entry import BookEntry, EntryStatus, EntryType
from ..models.settlement import Settlement

UI_UNPAID = "unpaid"
UI_PARTIAL = "partial"
UI_PAID = "paid"
UI_OVERDUE = "overdue"

UI_STATUS_BY_ENTRY_STATUS: dict[str, str] = {
    EntryStatus.PENDING.value: UI_UNPAID,
    EntryStatus.PARTIALLY_SETTLED.value: UI_PARTIAL,
    EntryStatus.SETTLED.value: UI_PAID,
}


@dataclass(slots=True)
class TransactionEntry:
    """One settlement as shown in a record's history."""

    id: Optional[int]
    amount: float
    date: str
    type: str  # income | expense
    purpose: str


@dataclass(slots=True)
class PresentationRecord:
    """Read-only view of a book entry consumed by list and detail screens."""

    id: Optional[int]
    name: str
    amount: float
    date: str
    category: str
    status: str
    remaining: float
    direction: str
    purpose: Optional[str] = None
    avatar: Optional[str] = None
    due_date: Optional[str] = None
    reminder_interval: Optional[str] = None
    notifications_enabled: bool = True
    notification_id: Optional[str] = None
    trx_history: list[TransactionEntry] = field(default_factory=list)


def ui_status(raw_status: object) -> str:
    """Translate a stored status into the UI vocabulary; unknown values read as unpaid."""

    key = raw_status.value if isinstance(raw_status, EntryStatus) else raw_status
    return UI_STATUS_BY_ENTRY_STATUS.get(key, UI_UNPAID)  # type: ignore[arg-type]


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _is_pay(entry: BookEntry) -> bool:
    return (entry.entry_type or "").lower() == EntryType.PAY.value


def to_transaction_entries(
    entry: BookEntry, settlements: Iterable[Settlement]
) -> list[TransactionEntry]:
    if _is_pay(entry):
        kind, default_purpose = "expense", "Payment"
    else:
        kind, default_purpose = "income", "Collection"
    ordered = sorted(settlements, key=lambda s: (s.date, s.id or 0), reverse=True)
    return [
        TransactionEntry(
            id=s.id,
            amount=s.amount,
            date=s.date.isoformat(),
            type=kind,
            purpose=s.description or default_purpose,
        )
        for s in ordered
    ]


def to_presentation_record(
    entry: BookEntry,
    settlements: Iterable[Settlement],
    *,
    today: Optional[date] = None,
) -> PresentationRecord:
    """Build the presentation shape for *entry* without touching storage.

    When ``today`` is given, unpaid or partial entries whose due date is
    already behind it are reported as ``overdue``.
    """

    status = ui_status(entry.status)
    if (
        today is not None
        and entry.due_date is not None
        and status != UI_PAID
        and entry.due_date.date() < today
    ):
        status = UI_OVERDUE

    return PresentationRecord(
        id=entry.id,
        name=entry.counterparty,
        amount=entry.principal_amount,
        date=entry.date.isoformat(),
        category=entry.currency,
        purpose=entry.description,
        status=status,
        remaining=entry.remaining_amount if entry.remaining_amount is not None else 0,
        direction=(entry.entry_type or "").lower(),
        due_date=_iso(entry.due_date),
        reminder_interval=entry.reminder_interval,
        notifications_enabled=entry.notifications_enabled is not False,
        notification_id=entry.notification_id,
        trx_history=to_transaction_entries(entry, settlements),
    )
