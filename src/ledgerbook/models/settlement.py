"""Settlements: append-only repayments applied against a book entry."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .book_entry import BookEntry


class Settlement(SQLModel, table=True):
    """One partial or full repayment event. Never edited once written."""

    __tablename__: ClassVar[str] = "settlements"

    id: Optional[int] = Field(default=None, primary_key=True)
    book_entry_id: int = Field(foreign_key="book_entries.id", nullable=False, index=True)
    amount: float = Field(nullable=False)
    date: datetime = Field(nullable=False, index=True, sa_type=DateTime)
    description: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(
        sa_type=DateTime,
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    # Kept for audit compatibility with older databases; the ledger never sets it.
    deleted_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    book_entry: "BookEntry" = Relationship(
        back_populates="settlements",
        sa_relationship=relationship("BookEntry", back_populates="settlements"),
    )
