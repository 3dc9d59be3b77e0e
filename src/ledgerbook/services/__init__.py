"""Service module exports."""

from . import (
    admin_tasks,
    book,
    currency,
    money,
    queries,
    records,
    reminders,
    settlements,
    users,
)

__all__ = [
    "admin_tasks",
    "book",
    "currency",
    "money",
    "queries",
    "records",
    "reminders",
    "settlements",
    "users",
]
