"""Read-only access to subject notification preferences."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from healthwatch.config import settings
from healthwatch.models import User
from healthwatch.schemas.preferences import NotificationPreferences, Recipient
from healthwatch.utils.cache import CacheKeys, get_cached, set_cached

logger = logging.getLogger("healthwatch.notifications")


class PreferenceStore(Protocol):
    async def get_preferences(self, subject_id: int) -> NotificationPreferences:
        ...

    async def get_recipient(self, subject_id: int) -> Optional[Recipient]:
        ...


class SQLPreferenceStore:
    """Preferences read from the users table; unknown subjects get defaults."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _user(self, subject_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == subject_id))
        return result.scalar_one_or_none()

    async def get_preferences(self, subject_id: int) -> NotificationPreferences:
        user = await self._user(subject_id)
        if user is None:
            logger.warning("No user found for subject=%s; using default preferences", subject_id)
            return NotificationPreferences()
        return NotificationPreferences.from_settings(user.notification_settings)

    async def get_recipient(self, subject_id: int) -> Optional[Recipient]:
        user = await self._user(subject_id)
        if user is None or not user.is_active:
            return None
        return Recipient(email=user.email, display_name=user.first_name or "User")


class CachedPreferenceStore:
    """TTL cache in front of another preference store."""

    def __init__(self, inner: PreferenceStore, ttl_seconds: int | None = None):
        self.inner = inner
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else settings.preferences_cache_ttl_seconds
        )

    async def get_preferences(self, subject_id: int) -> NotificationPreferences:
        key = CacheKeys.preferences(subject_id)
        cached = await get_cached(key)
        if cached is not None:
            return cached
        preferences = await self.inner.get_preferences(subject_id)
        await set_cached(key, preferences, self.ttl_seconds)
        return preferences

    async def get_recipient(self, subject_id: int) -> Optional[Recipient]:
        key = CacheKeys.recipient(subject_id)
        cached = await get_cached(key)
        if cached is not None:
            return cached
        recipient = await self.inner.get_recipient(subject_id)
        if recipient is not None:
            await set_cached(key, recipient, self.ttl_seconds)
        return recipient


class InMemoryPreferenceStore:
    """Preference store for tests and local demos."""

    def __init__(self):
        self._preferences: dict[int, NotificationPreferences] = {}
        self._recipients: dict[int, Recipient] = {}

    def set(
        self,
        subject_id: int,
        preferences: NotificationPreferences,
        recipient: Optional[Recipient] = None,
    ) -> None:
        self._preferences[subject_id] = preferences
        if recipient is not None:
            self._recipients[subject_id] = recipient

    async def get_preferences(self, subject_id: int) -> NotificationPreferences:
        return self._preferences.get(subject_id, NotificationPreferences())

    async def get_recipient(self, subject_id: int) -> Optional[Recipient]:
        return self._recipients.get(subject_id)
