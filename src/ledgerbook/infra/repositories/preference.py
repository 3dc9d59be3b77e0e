"""Preference repository for per-user currency/locale/theme."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import select

from ...models.user import UserPreference
from ..database import SessionFactory


class SQLModelPreferenceRepository:
    """SQLModel-based user preference repository."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_for_user(self, user_id: int) -> Optional[UserPreference]:
        with self.session_factory() as session:
            return session.exec(
                select(UserPreference).where(UserPreference.user_id == user_id)
            ).first()

    def upsert(
        self,
        *,
        user_id: int,
        currency: Optional[str] = None,
        locale: Optional[str] = None,
        theme: Optional[str] = None,
    ) -> UserPreference:
        """Create or update the preference row; None leaves a field untouched."""
        with self.session_factory() as session:
            pref = session.exec(
                select(UserPreference).where(UserPreference.user_id == user_id)
            ).first()
            if pref is None:
                pref = UserPreference(user_id=user_id)
            if currency is not None:
                pref.currency = currency.strip().upper()
            if locale is not None:
                pref.locale = locale.strip() or None
            if theme is not None:
                pref.theme = theme
            pref.updated_at = datetime.now(timezone.utc)
            session.add(pref)
            session.commit()
            session.refresh(pref)
            return pref

    def clear_locale(self, *, user_id: int) -> None:
        """Drop the locale override so formatting follows the device again."""
        with self.session_factory() as session:
            pref = session.exec(
                select(UserPreference).where(UserPreference.user_id == user_id)
            ).first()
            if pref is not None and pref.locale is not None:
                pref.locale = None
                pref.updated_at = datetime.now(timezone.utc)
                session.add(pref)
                session.commit()


__all__ = ["SQLModelPreferenceRepository"]
