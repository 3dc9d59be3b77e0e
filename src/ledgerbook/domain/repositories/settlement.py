"""Settlement repository protocol."""

from __future__ import annotations

from typing import Protocol

from ...models.settlement import Settlement


class SettlementRepository(Protocol):
    """Read access to the append-only settlement log."""

    def list_for_entry(self, book_entry_id: int) -> list[Settlement]:
        """List live settlements for an entry, newest first."""
        ...

    def sum_for_entry(self, book_entry_id: int) -> float:
        """Sum live settlement amounts for an entry."""
        ...

    def count_for_entry(self, book_entry_id: int) -> int:
        """Count every settlement row recorded against an entry."""
        ...
