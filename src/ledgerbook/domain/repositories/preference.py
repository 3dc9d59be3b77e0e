"""User preference repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.user import UserPreference


class PreferenceRepository(Protocol):
    """Repository for per-user currency/locale/theme preferences."""

    def get_for_user(self, user_id: int) -> Optional[UserPreference]:
        ...

    def upsert(
        self,
        *,
        user_id: int,
        currency: Optional[str] = None,
        locale: Optional[str] = None,
        theme: Optional[str] = None,
    ) -> UserPreference:
        ...

    def clear_locale(self, *, user_id: int) -> None:
        ...
