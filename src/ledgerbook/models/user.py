"""Local user profile and display preferences."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .book_entry import BookEntry


class User(SQLModel, table=True):
    """Owner of the ledger. A device normally has a single local user."""

    __tablename__: ClassVar[str] = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(nullable=False, unique=True, index=True, max_length=64)
    created_at: datetime = Field(
        sa_type=DateTime,
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    book_entries: list["BookEntry"] = Relationship(
        back_populates="user",
        sa_relationship=relationship("BookEntry", back_populates="user"),
    )


class UserPreference(SQLModel, table=True):
    """Currency, locale and theme chosen by a user."""

    __tablename__: ClassVar[str] = "user_preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, unique=True, index=True)
    currency: Optional[str] = Field(default=None, max_length=3)
    # None means "follow the device locale"
    locale: Optional[str] = Field(default=None, max_length=16)
    theme: Optional[str] = Field(default=None, max_length=16)
    updated_at: datetime = Field(
        sa_type=DateTime,
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
