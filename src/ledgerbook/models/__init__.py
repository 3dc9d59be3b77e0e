"""SQLModel table exports."""

from .book_entry import BookEntry, EntryStatus, EntryType
from .settlement import Settlement
from .user import User, UserPreference

__all__ = [
    "BookEntry",
    "EntryStatus",
    "EntryType",
    "Settlement",
    "User",
    "UserPreference",
]
