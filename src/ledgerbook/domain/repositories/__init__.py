"""Repository protocol definitions for domain layer."""

from .book_entry import BookEntryRepository
from .preference import PreferenceRepository
from .settlement import SettlementRepository

__all__ = [
    "BookEntryRepository",
    "PreferenceRepository",
    "SettlementRepository",
]
