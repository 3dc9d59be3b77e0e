"""Concrete repository implementations using SQLModel."""

from .book_entry import SQLModelBookEntryRepository
from .preference import SQLModelPreferenceRepository
from .settlement import SQLModelSettlementRepository

__all__ = [
    "SQLModelBookEntryRepository",
    "SQLModelPreferenceRepository",
    "SQLModelSettlementRepository",
]
