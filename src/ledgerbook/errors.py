"""Exceptions raised by the ledger core."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error the ledger core raises on purpose."""

    retryable = False


class InvalidAmount(LedgerError):
    """A settlement or principal amount is not a positive, finite number."""


class OverSettlement(LedgerError):
    """A settlement would push the remaining balance below zero."""

    def __init__(self, amount: float, remaining: float):
        super().__init__(
            f"Settlement of {amount:.2f} exceeds remaining balance {remaining:.2f}"
        )
        self.amount = amount
        self.remaining = remaining


class RecordNotFound(LedgerError):
    """The targeted book entry does not exist or was soft-deleted."""

    def __init__(self, entry_id: int | None):
        super().__init__(f"Book entry {entry_id} not found")
        self.entry_id = entry_id


class EntryLocked(LedgerError):
    """An amount field was edited after the first settlement was recorded."""


class StorageFailure(LedgerError):
    """The database rejected or failed a read/write."""

    retryable = True


__all__ = [
    "EntryLocked",
    "InvalidAmount",
    "LedgerError",
    "OverSettlement",
    "RecordNotFound",
    "StorageFailure",
]
