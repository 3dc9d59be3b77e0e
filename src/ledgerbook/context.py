"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelBookEntryRepository,
    SQLModelPreferenceRepository,
    SQLModelSettlementRepository,
)
from .models.user import User
from .services.book import LedgerBook
from .services.currency import (
    CurrencyPreferences,
    detect_device_locale,
    load_currency_preferences,
)
from .services.reminders import ReminderScheduler
from .services.settlements import SettlementEngine
from .services.users import ensure_local_user


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    config: BaseConfig
    session_factory: SessionFactory

    # Repositories
    entry_repo: SQLModelBookEntryRepository
    settlement_repo: SQLModelSettlementRepository
    preference_repo: SQLModelPreferenceRepository

    # Services
    book: LedgerBook
    engine: SettlementEngine
    reminders: ReminderScheduler

    current_user: Optional[User] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise RuntimeError("No local user is loaded")
        return self.current_user.id

    def currency_preferences(self) -> CurrencyPreferences:
        """Display settings for the current user, read fresh from storage.

        Without a configured device locale the process locale is detected.
        """

        return load_currency_preferences(
            self.preference_repo,
            user_id=self.require_user_id(),
            device_locale=self.config.DEVICE_LOCALE or detect_device_locale(),
            fallback_currency=self.config.DEFAULT_CURRENCY,
        )


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    reminders: Optional[ReminderScheduler] = None,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    _, session_factory = bootstrap_database(config)

    entry_repo = SQLModelBookEntryRepository(session_factory)
    settlement_repo = SQLModelSettlementRepository(session_factory)
    preference_repo = SQLModelPreferenceRepository(session_factory)
    reminder_scheduler = reminders or ReminderScheduler()

    return AppContext(
        config=config,
        session_factory=session_factory,
        entry_repo=entry_repo,
        settlement_repo=settlement_repo,
        preference_repo=preference_repo,
        book=LedgerBook(session_factory, entry_repo, settlement_repo, reminder_scheduler),
        engine=SettlementEngine(session_factory, notifier=reminder_scheduler),
        reminders=reminder_scheduler,
        current_user=ensure_local_user(session_factory),
    )
