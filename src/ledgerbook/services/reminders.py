"""Reminder scheduling for due book entries."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from ..models.book_entry import BookEntry, EntryType

logger = logging.getLogger("ledgerbook.reminders")

DAILY_REMINDER_HOUR = 9

# Offsets before the due date, keyed by the stored reminder interval
REMINDER_OFFSETS: dict[str, timedelta] = {
    "1_day_before": timedelta(days=1),
    "2_days_before": timedelta(days=2),
    "3_days_before": timedelta(days=3),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
}
DEFAULT_OFFSET = timedelta(days=1)
REMINDER_INTERVALS = (*REMINDER_OFFSETS, "daily")


@dataclass(slots=True, frozen=True)
class Reminder:
    """Payload delivered when a reminder fires."""

    entry_id: Optional[int]
    title: str
    body: str


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def reminder_time(entry: BookEntry, now: Optional[datetime] = None) -> Optional[datetime]:
    """When to remind about *entry*, or None if that moment has already passed."""

    current = _local_naive(now or datetime.now())
    target = _local_naive(entry.due_date or entry.date)

    if entry.reminder_interval == "daily":
        fire_at = (current + timedelta(days=1)).replace(
            hour=DAILY_REMINDER_HOUR, minute=0, second=0, microsecond=0
        )
    else:
        fire_at = target - REMINDER_OFFSETS.get(entry.reminder_interval or "", DEFAULT_OFFSET)

    if fire_at < current:
        return None
    return fire_at


def build_reminder(entry: BookEntry) -> Reminder:
    due = _local_naive(entry.due_date or entry.date).date().isoformat()
    amount = f"{entry.currency} {entry.principal_amount:g}"
    if (entry.entry_type or "").lower() == EntryType.COLLECT.value:
        title = "Payment Collection Reminder"
        body = f"Reminder to collect {amount} from {entry.counterparty} (Due: {due})."
    else:
        title = "Payment Due Reminder"
        body = f"Reminder to pay {amount} to {entry.counterparty} (Due: {due})."
    return Reminder(entry_id=entry.id, title=title, body=body)


class ReminderScheduler:
    """Schedules one-shot reminder jobs on an APScheduler background scheduler."""

    def __init__(
        self,
        scheduler: Optional[BackgroundScheduler] = None,
        on_reminder: Optional[Callable[[Reminder], None]] = None,
    ):
        self.scheduler = scheduler or BackgroundScheduler()
        self.on_reminder = on_reminder

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Reminder scheduler started")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")

    def schedule_reminder(
        self, entry: BookEntry, now: Optional[datetime] = None
    ) -> Optional[str]:
        """Schedule a reminder for *entry* and return its notification id.

        Any reminder already recorded on the entry is cancelled first. Returns
        None when reminders are disabled for the entry or the reminder time has
        already passed.
        """
        if entry.notification_id:
            self.cancel(entry.notification_id)
        if entry.notifications_enabled is False:
            return None

        fire_at = reminder_time(entry, now)
        if fire_at is None:
            logger.info("Reminder date is in the past, skipping", extra={"entry_id": entry.id})
            return None

        notification_id = uuid.uuid4().hex
        reminder = build_reminder(entry)
        self.scheduler.add_job(
            func=self._deliver,
            trigger=DateTrigger(run_date=fire_at),
            args=[reminder],
            id=notification_id,
            name=reminder.title,
            replace_existing=True,
        )
        logger.info(
            "Reminder scheduled",
            extra={"entry_id": entry.id, "notification_id": notification_id, "fire_at": fire_at},
        )
        return notification_id

    def cancel(self, notification_id: str) -> None:
        """Remove a scheduled reminder; unknown ids are logged, not raised."""
        try:
            self.scheduler.remove_job(notification_id)
            logger.info("Reminder cancelled", extra={"notification_id": notification_id})
        except JobLookupError:
            logger.warning(
                "Reminder already fired or removed",
                extra={"notification_id": notification_id},
            )

    def is_scheduled(self, notification_id: str) -> bool:
        return self.scheduler.get_job(notification_id) is not None

    def _deliver(self, reminder: Reminder) -> None:
        logger.info(reminder.body, extra={"entry_id": reminder.entry_id, "title": reminder.title})
        if self.on_reminder is not None:
            try:
                self.on_reminder(reminder)
            except Exception:
                logger.error("Reminder callback failed", exc_info=True)
