"""Settlement engine: validates and applies repayments to book entries."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Protocol, Union

from sqlalchemy.exc import SQLAlchemyError

from ..errors import InvalidAmount, OverSettlement, RecordNotFound, StorageFailure
from ..infra.database import SessionFactory
from ..infra.repositories.book_entry import load_live_entry
from ..infra.repositories.settlement import live_settlement_amounts
from ..models.book_entry import BookEntry, EntryStatus
from ..models.settlement import Settlement

logger = logging.getLogger("ledgerbook.settlements")

CENT = Decimal("0.01")
ZERO = Decimal("0")


class ReminderCanceller(Protocol):
    """The part of the notification collaborator the engine needs."""

    def cancel(self, notification_id: str) -> None:  # pragma: no cover - interface
        ...


def to_money(value: Union[int, float, Decimal, str, None]) -> Decimal:
    """Convert a stored or user supplied amount to cents precision."""

    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(slots=True, frozen=True)
class Balance:
    """Balance figures derived from an entry's settlement log."""

    settled: Decimal
    remaining: Decimal
    status: EntryStatus


def derive_status(settled: Decimal, remaining: Decimal) -> EntryStatus:
    """Classify settlement progress from the settled sum and the remaining balance."""

    if remaining <= ZERO:
        return EntryStatus.SETTLED
    if settled <= ZERO:
        return EntryStatus.PENDING
    return EntryStatus.PARTIALLY_SETTLED


def recompute_balance(
    principal: Union[float, Decimal],
    interest: Union[float, Decimal, None],
    settlement_amounts: Iterable[Union[float, Decimal]],
) -> Balance:
    """Derive settled, remaining and status from principal, interest and settlements."""

    due = to_money(principal) + to_money(interest)
    settled = sum((to_money(a) for a in settlement_amounts), ZERO)
    remaining = max(due - settled, ZERO)
    return Balance(settled=settled, remaining=remaining, status=derive_status(settled, remaining))


def validate_amount(amount: Union[int, float, Decimal]) -> Decimal:
    """Return *amount* in cents or raise :class:`InvalidAmount`."""

    try:
        numeric = float(amount)
    except (TypeError, ValueError) as exc:
        raise InvalidAmount(f"Amount {amount!r} is not a number") from exc
    if not math.isfinite(numeric) or numeric <= 0:
        raise InvalidAmount(f"Settlement amount must be greater than zero, got {amount!r}")
    cents = to_money(amount)
    if cents <= ZERO:
        raise InvalidAmount(f"Settlement amount {amount!r} rounds to zero")
    return cents


class SettlementEngine:
    """Applies settlements to book entries inside a single transaction."""

    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: Optional[ReminderCanceller] = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier

    def apply_settlement(
        self,
        entry: Union[BookEntry, int],
        amount: Union[int, float, Decimal],
        *,
        user_id: int,
        date: Optional[datetime] = None,
        description: Optional[str] = None,
    ) -> BookEntry:
        """Record a repayment against *entry* and return the refreshed entry.

        The remaining balance is recomputed from the settlement log, never
        incremented in place. Each call appends a new settlement row; callers
        own deduplication.

        Raises:
            InvalidAmount: amount is not positive
            RecordNotFound: entry is missing or soft-deleted
            OverSettlement: amount exceeds the remaining balance
            StorageFailure: the database write failed
        """
        cents = validate_amount(amount)
        entry_id = entry.id if isinstance(entry, BookEntry) else entry
        cancelled_notification: Optional[str] = None

        try:
            with self.session_factory() as session:
                row = load_live_entry(session, entry_id, user_id=user_id)
                if row is None:
                    raise RecordNotFound(entry_id)

                before = recompute_balance(
                    row.principal_amount,
                    row.interest_amount,
                    live_settlement_amounts(session, row.id),
                )
                if cents > before.remaining:
                    raise OverSettlement(float(cents), float(before.remaining))

                session.add(
                    Settlement(
                        book_entry_id=row.id,
                        amount=float(cents),
                        date=date or datetime.now(),
                        description=(description or "").strip() or None,
                    )
                )
                session.flush()

                after = recompute_balance(
                    row.principal_amount,
                    row.interest_amount,
                    live_settlement_amounts(session, row.id),
                )
                row.settlement_amount = float(after.settled)
                row.remaining_amount = float(after.remaining)
                row.status = after.status.value
                row.updated_at = datetime.now(timezone.utc)
                if after.status is EntryStatus.SETTLED and row.notification_id:
                    cancelled_notification = row.notification_id
                    row.notification_id = None
                session.add(row)
                session.commit()
                session.refresh(row)
        except SQLAlchemyError as exc:
            logger.error(
                "Settlement write failed",
                exc_info=True,
                extra={"entry_id": entry_id, "amount": str(cents)},
            )
            raise StorageFailure(f"Could not record settlement for entry {entry_id}") from exc

        logger.info(
            "Settlement applied",
            extra={
                "entry_id": entry_id,
                "amount": str(cents),
                "remaining": row.remaining_amount,
                "status": row.status,
            },
        )
        if cancelled_notification:
            self._cancel_reminder(cancelled_notification, entry_id)
        return row

    def _cancel_reminder(self, notification_id: str, entry_id: int) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.cancel(notification_id)
        except Exception:
            logger.warning(
                "Could not cancel reminder for settled entry",
                exc_info=True,
                extra={"entry_id": entry_id, "notification_id": notification_id},
            )
