"""Book service: create, edit, delete and list collect/pay entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import EntryLocked, InvalidAmount, RecordNotFound, StorageFailure
from ..domain.repositories import BookEntryRepository, SettlementRepository
from ..infra.database import SessionFactory
from ..infra.repositories.book_entry import load_live_entry
from ..infra.repositories.settlement import live_settlement_amounts, settlement_count
from ..models.book_entry import BookEntry, EntryStatus, EntryType
from .queries import total_remaining
from .records import PresentationRecord, to_presentation_record
from .reminders import REMINDER_INTERVALS, ReminderScheduler
from .settlements import recompute_balance, to_money

logger = logging.getLogger("ledgerbook.book")

# Fields that define how much is owed; frozen once a settlement exists.
AMOUNT_FIELDS = frozenset({"principal_amount", "interest_amount", "currency"})
EDITABLE_FIELDS = AMOUNT_FIELDS | {
    "counterparty",
    "description",
    "mobile_number",
    "date",
    "due_date",
    "reminder_interval",
    "notifications_enabled",
}
REMINDER_FIELDS = frozenset({"due_date", "reminder_interval", "notifications_enabled", "date"})


@dataclass(slots=True)
class BalanceDrift:
    """A cached balance that disagrees with the settlement log."""

    entry_id: int
    cached_remaining: float
    expected_remaining: float
    cached_settled: float
    expected_settled: float
    cached_status: str
    expected_status: str


def _normalize_direction(entry_type: str) -> str:
    try:
        return EntryType(entry_type.strip().lower()).value
    except ValueError:
        raise ValueError(f"Unknown entry type {entry_type!r}; expected 'collect' or 'pay'") from None


def _normalize_currency(currency: str) -> str:
    code = (currency or "").strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"Currency must be a 3-letter ISO code, got {currency!r}")
    return code


def _non_negative(value: Any, label: str) -> Decimal:
    try:
        cents = to_money(value)
    except (ArithmeticError, ValueError) as exc:
        raise InvalidAmount(f"{label} {value!r} is not a number") from exc
    if not cents.is_finite() or cents < 0:
        raise InvalidAmount(f"{label} must not be negative, got {value!r}")
    return cents


class LedgerBook:
    """Entry lifecycle on top of the repositories and the reminder scheduler."""

    def __init__(
        self,
        session_factory: SessionFactory,
        entries: BookEntryRepository,
        settlements: SettlementRepository,
        reminders: Optional[ReminderScheduler] = None,
    ):
        self.session_factory = session_factory
        self.entries = entries
        self.settlements = settlements
        self.reminders = reminders

    def create_entry(
        self,
        *,
        user_id: int,
        entry_type: str,
        counterparty: str,
        principal_amount: float,
        currency: str,
        date: Optional[datetime] = None,
        description: Optional[str] = None,
        interest_amount: float = 0.0,
        mobile_number: Optional[str] = None,
        due_date: Optional[datetime] = None,
        reminder_interval: Optional[str] = None,
        notifications_enabled: bool = True,
    ) -> BookEntry:
        """Record a new obligation; principal is fixed from here on."""

        name = (counterparty or "").strip()
        if not name:
            raise ValueError("Counterparty name is required")
        if reminder_interval is not None and reminder_interval not in REMINDER_INTERVALS:
            raise ValueError(f"Unknown reminder interval {reminder_interval!r}")
        principal = _non_negative(principal_amount, "Principal amount")
        interest = _non_negative(interest_amount, "Interest amount")
        balance = recompute_balance(principal, interest, [])

        entry = BookEntry(
            entry_type=_normalize_direction(entry_type),
            user_id=user_id,
            counterparty=name,
            date=date or datetime.now(),
            description=(description or "").strip() or None,
            principal_amount=float(principal),
            interest_amount=float(interest),
            remaining_amount=float(balance.remaining),
            settlement_amount=0.0,
            currency=_normalize_currency(currency),
            mobile_number=mobile_number,
            status=balance.status.value,
            due_date=due_date,
            reminder_interval=reminder_interval,
            notifications_enabled=notifications_enabled,
        )
        entry = self._write(self.entries.create, entry, user_id=user_id)
        logger.info(
            "Book entry created",
            extra={"entry_id": entry.id, "entry_type": entry.entry_type, "currency": entry.currency},
        )
        if entry.due_date is not None:
            entry = self._reschedule(entry, user_id=user_id)
        return entry

    def get_entry(self, entry_id: int, *, user_id: int) -> BookEntry:
        entry = self.entries.get_by_id(entry_id, user_id=user_id)
        if entry is None:
            raise RecordNotFound(entry_id)
        return entry

    def edit_entry(self, entry_id: int, *, user_id: int, **changes: Any) -> BookEntry:
        """Apply field edits in one transaction.

        Amount fields are locked after the first settlement. The cached
        balance columns are recomputed from the settlement log before commit.
        """

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {sorted(unknown)}")

        if "counterparty" in changes:
            name = (changes["counterparty"] or "").strip()
            if not name:
                raise ValueError("Counterparty name is required")
            changes["counterparty"] = name
        if "currency" in changes:
            changes["currency"] = _normalize_currency(changes["currency"])
        if changes.get("reminder_interval") not in (None, *REMINDER_INTERVALS):
            raise ValueError(f"Unknown reminder interval {changes['reminder_interval']!r}")
        for field_name in ("principal_amount", "interest_amount"):
            if field_name in changes:
                label = field_name.replace("_", " ").capitalize()
                changes[field_name] = float(_non_negative(changes[field_name], label))

        touched_amounts = AMOUNT_FIELDS.intersection(changes)
        try:
            with self.session_factory() as session:
                entry = load_live_entry(session, entry_id, user_id=user_id)
                if entry is None:
                    raise RecordNotFound(entry_id)

                for field_name, value in changes.items():
                    setattr(entry, field_name, value)
                entry.updated_at = datetime.now(timezone.utc)
                session.add(entry)
                # Flush before reading settlements: the write lock is held until commit.
                session.flush()

                if touched_amounts and settlement_count(session, entry_id) > 0:
                    raise EntryLocked(
                        f"Entry {entry_id} already has settlements; "
                        f"{sorted(touched_amounts)} cannot change"
                    )
                balance = recompute_balance(
                    entry.principal_amount,
                    entry.interest_amount,
                    live_settlement_amounts(session, entry_id),
                )
                entry.settlement_amount = float(balance.settled)
                entry.remaining_amount = float(balance.remaining)
                entry.status = balance.status.value
                session.add(entry)
                session.commit()
                session.refresh(entry)
        except SQLAlchemyError as exc:
            logger.error("Book entry edit failed", exc_info=True, extra={"entry_id": entry_id})
            raise StorageFailure(f"Could not save entry {entry_id}") from exc

        logger.info("Book entry edited", extra={"entry_id": entry_id, "fields": sorted(changes)})
        if REMINDER_FIELDS.intersection(changes):
            entry = self._reschedule(entry, user_id=user_id)
        return entry

    def delete_entry(self, entry_id: int, *, user_id: int) -> BookEntry:
        """Soft-delete an entry and drop its pending reminder."""

        try:
            entry = self.entries.soft_delete(entry_id, user_id=user_id)
        except SQLAlchemyError as exc:
            logger.error("Soft delete failed", exc_info=True, extra={"entry_id": entry_id})
            raise StorageFailure(f"Could not delete entry {entry_id}") from exc
        if entry is None:
            raise RecordNotFound(entry_id)
        if entry.notification_id and self.reminders is not None:
            self._cancel_quietly(entry.notification_id, entry_id)
        logger.info("Book entry deleted", extra={"entry_id": entry_id})
        return entry

    def list_records(
        self, entry_type: str, *, user_id: int, today: Optional[date] = None
    ) -> list[PresentationRecord]:
        """Presentation records for one direction, newest first."""

        direction = _normalize_direction(entry_type)
        return [
            to_presentation_record(entry, self.settlements.list_for_entry(entry.id), today=today)
            for entry in self.entries.list_by_direction(direction, user_id=user_id)
        ]

    def outstanding_total(self, entry_type: str, *, user_id: int) -> float:
        direction = _normalize_direction(entry_type)
        return total_remaining(self.entries.list_by_direction(direction, user_id=user_id), direction)

    def verify_balances(self, *, user_id: int) -> list[BalanceDrift]:
        """Compare every cached balance against a recomputation from the settlement log."""

        drifts: list[BalanceDrift] = []
        for entry in self.entries.list_all(user_id=user_id):
            amounts = [s.amount for s in self.settlements.list_for_entry(entry.id)]
            expected = recompute_balance(entry.principal_amount, entry.interest_amount, amounts)
            if (
                to_money(entry.remaining_amount) != expected.remaining
                or to_money(entry.settlement_amount) != expected.settled
                or entry.status != expected.status.value
            ):
                drifts.append(
                    BalanceDrift(
                        entry_id=entry.id,
                        cached_remaining=entry.remaining_amount,
                        expected_remaining=float(expected.remaining),
                        cached_settled=entry.settlement_amount,
                        expected_settled=float(expected.settled),
                        cached_status=entry.status,
                        expected_status=expected.status.value,
                    )
                )
        if drifts:
            logger.warning("Balance drift detected", extra={"entries": [d.entry_id for d in drifts]})
        return drifts

    def _reschedule(self, entry: BookEntry, *, user_id: int) -> BookEntry:
        if self.reminders is None:
            return entry
        if entry.due_date is None or entry.status == EntryStatus.SETTLED.value:
            if entry.notification_id:
                self._cancel_quietly(entry.notification_id, entry.id)
            notification_id = None
        else:
            try:
                notification_id = self.reminders.schedule_reminder(entry)
            except Exception:
                logger.warning(
                    "Could not schedule reminder", exc_info=True, extra={"entry_id": entry.id}
                )
                return entry
        if notification_id == entry.notification_id:
            return entry
        return self._store_notification(entry.id, notification_id, user_id=user_id)

    def _store_notification(
        self, entry_id: int, notification_id: Optional[str], *, user_id: int
    ) -> BookEntry:
        try:
            with self.session_factory() as session:
                entry = load_live_entry(session, entry_id, user_id=user_id)
                if entry is None:
                    raise RecordNotFound(entry_id)
                entry.notification_id = notification_id
                session.add(entry)
                session.commit()
                session.refresh(entry)
                return entry
        except SQLAlchemyError as exc:
            logger.error("Notification id write failed", exc_info=True, extra={"entry_id": entry_id})
            raise StorageFailure(f"Could not save entry {entry_id}") from exc

    def _cancel_quietly(self, notification_id: str, entry_id: Optional[int]) -> None:
        try:
            self.reminders.cancel(notification_id)  # type: ignore[union-attr]
        except Exception:
            logger.warning(
                "Could not cancel reminder",
                exc_info=True,
                extra={"entry_id": entry_id, "notification_id": notification_id},
            )

    @staticmethod
    def _write(operation, entry: BookEntry, *, user_id: int) -> BookEntry:
        try:
            return operation(entry, user_id=user_id)
        except SQLAlchemyError as exc:
            logger.error("Book entry write failed", exc_info=True, extra={"entry_id": entry.id})
            raise StorageFailure("Could not save book entry") from exc
