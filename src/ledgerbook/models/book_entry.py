"""Book entries: the debts tracked by the ledger."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .settlement import Settlement
    from .user import User


class EntryType(str, Enum):
    """Direction of an obligation."""

    COLLECT = "collect"  # money owed to the user
    PAY = "pay"  # money the user owes


class EntryStatus(str, Enum):
    """Settlement progress persisted on each entry."""

    PENDING = "PENDING"
    PARTIALLY_SETTLED = "PARTIALLY_SETTLED"
    SETTLED = "SETTLED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookEntry(SQLModel, table=True):
    """A single collect/pay obligation with cached balance columns.

    ``remaining_amount``, ``settlement_amount`` and ``status`` are derived from
    the settlement log and rewritten by the settlement engine; treat them as a
    cache. ``status`` is a plain string column so unexpected legacy values
    still load.
    """

    __tablename__: ClassVar[str] = "book_entries"

    id: Optional[int] = Field(default=None, primary_key=True)
    entry_type: str = Field(nullable=False, max_length=16, index=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    counterparty: str = Field(nullable=False, max_length=120, index=True)
    date: datetime = Field(nullable=False, index=True, sa_type=DateTime)
    description: Optional[str] = Field(default=None, max_length=255)
    principal_amount: float = Field(nullable=False)
    remaining_amount: float = Field(default=0.0, nullable=False)
    settlement_amount: float = Field(default=0.0, nullable=False)
    interest_amount: float = Field(default=0.0, nullable=False)
    currency: str = Field(nullable=False, max_length=3, description="ISO-4217 currency code")
    mobile_number: Optional[str] = Field(default=None, max_length=32)
    status: str = Field(default=EntryStatus.PENDING.value, nullable=False, max_length=32)
    due_date: Optional[datetime] = Field(default=None, sa_type=DateTime)
    reminder_interval: Optional[str] = Field(default=None, max_length=32)
    notifications_enabled: bool = Field(default=True, nullable=False)
    notification_id: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False, sa_type=DateTime)
    deleted_at: Optional[datetime] = Field(default=None, index=True, sa_type=DateTime)

    settlements: list["Settlement"] = Relationship(
        back_populates="book_entry",
        sa_relationship=relationship("Settlement", back_populates="book_entry"),
    )
    user: "User" = Relationship(
        sa_relationship=relationship("User", back_populates="book_entries")
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
