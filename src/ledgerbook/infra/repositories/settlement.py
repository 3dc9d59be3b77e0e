"""SQLModel implementation of the settlement repository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func
from sqlmodel import Session, select

from ...models.settlement import Settlement
from ..database import SessionFactory


def live_settlement_amounts(session: Session, book_entry_id: int) -> list[float]:
    """Amounts of every live settlement for an entry, read inside *session*."""
    statement = select(Settlement.amount).where(
        Settlement.book_entry_id == book_entry_id,
        Settlement.deleted_at.is_(None),  # type: ignore[union-attr]
    )
    return list(session.exec(statement).all())


def settlement_count(session: Session, book_entry_id: int) -> int:
    """Every settlement row recorded against an entry, soft-deleted ones included."""
    statement = select(func.count(Settlement.id)).where(Settlement.book_entry_id == book_entry_id)
    return int(session.exec(statement).one())


class SQLModelSettlementRepository:
    """SQLModel-based settlement repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def list_for_entry(self, book_entry_id: int) -> list[Settlement]:
        """List live settlements for an entry, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Settlement)
                .where(
                    Settlement.book_entry_id == book_entry_id,
                    Settlement.deleted_at.is_(None),  # type: ignore[union-attr]
                )
                .order_by(Settlement.date.desc(), Settlement.id.desc())  # type: ignore[union-attr]
            )
            return list(session.exec(statement).all())

    def sum_for_entry(self, book_entry_id: int) -> float:
        """Sum live settlement amounts for an entry, accumulated in Decimal."""
        with self.session_factory() as session:
            amounts = live_settlement_amounts(session, book_entry_id)
        total = sum((Decimal(str(amount)) for amount in amounts), Decimal("0"))
        return float(total.quantize(Decimal("0.01")))

    def count_for_entry(self, book_entry_id: int) -> int:
        with self.session_factory() as session:
            return settlement_count(session, book_entry_id)
