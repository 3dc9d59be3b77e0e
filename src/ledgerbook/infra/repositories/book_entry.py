"""SQLModel implementation of the book entry repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...models.book_entry import BookEntry
from ..database import SessionFactory


def live_entry_query(*, user_id: int):
    """Base select for entries that have not been soft-deleted."""
    return select(BookEntry).where(
        BookEntry.user_id == user_id,
        BookEntry.deleted_at.is_(None),  # type: ignore[union-attr]
    )


def load_live_entry(session: Session, entry_id: int, *, user_id: int) -> Optional[BookEntry]:
    return session.exec(live_entry_query(user_id=user_id).where(BookEntry.id == entry_id)).first()


class SQLModelBookEntryRepository:
    """SQLModel-based book entry repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, entry_id: int, *, user_id: int) -> Optional[BookEntry]:
        """Retrieve a live entry by ID."""
        with self.session_factory() as session:
            return load_live_entry(session, entry_id, user_id=user_id)

    def list_by_direction(self, entry_type: str, *, user_id: int) -> list[BookEntry]:
        """List live entries of one direction ordered by date, newest first."""
        with self.session_factory() as session:
            statement = (
                live_entry_query(user_id=user_id)
                .where(func.lower(BookEntry.entry_type) == entry_type.lower())
                .order_by(BookEntry.date.desc(), BookEntry.id.desc())  # type: ignore[union-attr]
            )
            return list(session.exec(statement).all())

    def list_all(self, *, user_id: int) -> list[BookEntry]:
        """List every live entry ordered by date, newest first."""
        with self.session_factory() as session:
            statement = live_entry_query(user_id=user_id).order_by(
                BookEntry.date.desc(), BookEntry.id.desc()  # type: ignore[union-attr]
            )
            return list(session.exec(statement).all())

    def create(self, entry: BookEntry, *, user_id: int) -> BookEntry:
        """Create a new entry."""
        with self.session_factory() as session:
            entry.user_id = user_id
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry

    def soft_delete(self, entry_id: int, *, user_id: int) -> Optional[BookEntry]:
        """Mark an entry deleted; the row and its settlements stay for audit."""
        with self.session_factory() as session:
            entry = load_live_entry(session, entry_id, user_id=user_id)
            if entry is None:
                return None
            now = datetime.now(timezone.utc)
            entry.deleted_at = now
            entry.updated_at = now
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry

