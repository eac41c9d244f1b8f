"""
Onboarding Cache.

Completion flags cached in the local key-value store. Family flags are
scoped by user id so one user's progress never shows up in another user's
session. The cache is a fallback for when the backend can't be reached:
any store failure reads as a miss and is never raised.
"""

import logging
from enum import Enum

from flowfam.storage import KeyValueStore

logger = logging.getLogger(__name__)

LANGUAGE_KEY = "@flow_fam_language"
LEGACY_LANGUAGE_KEY = "selectedLanguage"
INTRO_COMPLETE_KEY = "onboardingComplete"


class CompletionFlag(Enum):
    """User-scoped completion flags."""
    FAMILY_SETUP = "familySetupComplete"
    FAMILY_STYLE = "familyStyleComplete"

    def key_for(self, user_id: str) -> str:
        return f"{self.value}_{user_id}"

    @property
    def legacy_key(self) -> str:
        """Unscoped key older app builds wrote. Never read."""
        return self.value


def _parse_bool(raw: str | None) -> bool | None:
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


class CompletionCache:
    """Typed access to the cached onboarding flags."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Raw access with failures swallowed
    # -------------------------------------------------------------------------

    async def _get(self, key: str) -> str | None:
        try:
            return await self.store.get_item(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
            return None

    async def _set(self, key: str, value: str) -> bool:
        try:
            await self.store.set_item(key, value)
            return True
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

    async def _remove(self, key: str) -> None:
        try:
            await self.store.remove_item(key)
        except Exception as e:
            logger.warning(f"Cache remove failed for {key}: {e}")

    # -------------------------------------------------------------------------
    # Process-wide: language, intro
    # -------------------------------------------------------------------------

    async def get_language(self) -> str | None:
        language = await self._get(LANGUAGE_KEY)
        if language:
            return language
        # Builds that stored the choice under the old key
        return await self._get(LEGACY_LANGUAGE_KEY) or None

    async def set_language(self, code: str) -> None:
        await self._set(LANGUAGE_KEY, code)

    async def mark_intro_complete(self) -> None:
        await self._set(INTRO_COMPLETE_KEY, "true")

    async def intro_complete(self) -> bool:
        return _parse_bool(await self._get(INTRO_COMPLETE_KEY)) is True

    # -------------------------------------------------------------------------
    # Per-user completion flags
    # -------------------------------------------------------------------------

    async def get_flag(self, flag: CompletionFlag, user_id: str) -> bool | None:
        """Cached value, or None on miss / unreadable value."""
        return _parse_bool(await self._get(flag.key_for(user_id)))

    async def set_flag(self, flag: CompletionFlag, user_id: str, value: bool) -> None:
        await self._set(flag.key_for(user_id), "true" if value else "false")

    async def write_through(self, user_id: str, setup_complete: bool, style_complete: bool) -> None:
        """Record what the backend just told us."""
        await self.set_flag(CompletionFlag.FAMILY_SETUP, user_id, setup_complete)
        await self.set_flag(CompletionFlag.FAMILY_STYLE, user_id, style_complete)

    async def clear_user(self, user_id: str | None) -> None:
        """Forget a user's flags (sign-out). Legacy unscoped flags go too."""
        for flag in CompletionFlag:
            if user_id:
                await self._remove(flag.key_for(user_id))
            await self._remove(flag.legacy_key)
        logger.info(f"Cleared cached onboarding flags for user {user_id}")
