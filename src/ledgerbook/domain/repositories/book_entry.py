"""Book entry repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.book_entry import BookEntry


class BookEntryRepository(Protocol):
    """Repository for managing book entries."""

    def get_by_id(self, entry_id: int, *, user_id: int) -> Optional[BookEntry]:
        """Retrieve a live (not soft-deleted) entry by ID."""
        ...

    def list_by_direction(self, entry_type: str, *, user_id: int) -> list[BookEntry]:
        """List live entries of one direction, newest first."""
        ...

    def list_all(self, *, user_id: int) -> list[BookEntry]:
        """List every live entry."""
        ...

    def create(self, entry: BookEntry, *, user_id: int) -> BookEntry:
        """Create a new entry."""
        ...

    def soft_delete(self, entry_id: int, *, user_id: int) -> Optional[BookEntry]:
        """Stamp ``deleted_at`` on an entry."""
        ...

