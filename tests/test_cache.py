"""
Tests for the onboarding completion cache.
"""

import asyncio

from flowfam.storage import MemoryStore
from onboarding.cache import (
    INTRO_COMPLETE_KEY,
    LANGUAGE_KEY,
    LEGACY_LANGUAGE_KEY,
    CompletionCache,
    CompletionFlag,
)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


class TestCompletionFlag:
    def test_keys_are_user_scoped(self):
        assert CompletionFlag.FAMILY_SETUP.key_for("u1") == "familySetupComplete_u1"
        assert CompletionFlag.FAMILY_STYLE.key_for("u1") == "familyStyleComplete_u1"

    def test_legacy_keys(self):
        assert CompletionFlag.FAMILY_SETUP.legacy_key == "familySetupComplete"


class TestFlags:
    def test_miss_is_none(self):
        cache = CompletionCache(MemoryStore())
        assert _run(cache.get_flag(CompletionFlag.FAMILY_SETUP, "u1")) is None

    def test_set_and_get(self):
        store = MemoryStore()
        cache = CompletionCache(store)
        _run(cache.set_flag(CompletionFlag.FAMILY_SETUP, "u1", True))

        assert store.snapshot() == {"familySetupComplete_u1": "true"}
        assert _run(cache.get_flag(CompletionFlag.FAMILY_SETUP, "u1")) is True

    def test_false_is_stored(self):
        cache = CompletionCache(MemoryStore())
        _run(cache.set_flag(CompletionFlag.FAMILY_STYLE, "u1", False))
        assert _run(cache.get_flag(CompletionFlag.FAMILY_STYLE, "u1")) is False

    def test_garbage_value_reads_as_miss(self):
        cache = CompletionCache(MemoryStore({"familySetupComplete_u1": "yes please"}))
        assert _run(cache.get_flag(CompletionFlag.FAMILY_SETUP, "u1")) is None

    def test_users_do_not_share_flags(self):
        cache = CompletionCache(MemoryStore())
        _run(cache.set_flag(CompletionFlag.FAMILY_SETUP, "u1", True))
        assert _run(cache.get_flag(CompletionFlag.FAMILY_SETUP, "u2")) is None

    def test_legacy_unscoped_flag_not_trusted(self):
        cache = CompletionCache(MemoryStore({"familySetupComplete": "true"}))
        assert _run(cache.get_flag(CompletionFlag.FAMILY_SETUP, "u1")) is None

    def test_write_through(self):
        store = MemoryStore()
        _run(CompletionCache(store).write_through("u1", True, False))
        assert store.snapshot() == {
            "familySetupComplete_u1": "true",
            "familyStyleComplete_u1": "false",
        }


class TestClearUser:
    def test_removes_scoped_and_legacy_flags_only(self):
        store = MemoryStore({
            "familySetupComplete_u1": "true",
            "familyStyleComplete_u1": "true",
            "familySetupComplete_u2": "true",
            "familySetupComplete": "true",
            LANGUAGE_KEY: "nl",
        })
        _run(CompletionCache(store).clear_user("u1"))

        assert store.snapshot() == {
            "familySetupComplete_u2": "true",
            LANGUAGE_KEY: "nl",
        }

    def test_unknown_user_still_clears_legacy(self):
        store = MemoryStore({"familyStyleComplete": "true"})
        _run(CompletionCache(store).clear_user(None))
        assert store.snapshot() == {}


class TestLanguageAndIntro:
    def test_language_roundtrip(self):
        cache = CompletionCache(MemoryStore())
        assert _run(cache.get_language()) is None
        _run(cache.set_language("nl"))
        assert _run(cache.get_language()) == "nl"

    def test_legacy_language_key(self):
        cache = CompletionCache(MemoryStore({LEGACY_LANGUAGE_KEY: "de"}))
        assert _run(cache.get_language()) == "de"

    def test_current_key_wins_over_legacy(self):
        cache = CompletionCache(MemoryStore({LEGACY_LANGUAGE_KEY: "de", LANGUAGE_KEY: "fr"}))
        assert _run(cache.get_language()) == "fr"

    def test_intro(self):
        store = MemoryStore()
        cache = CompletionCache(store)
        assert _run(cache.intro_complete()) is False
        _run(cache.mark_intro_complete())
        assert _run(cache.intro_complete()) is True
        assert store.snapshot()[INTRO_COMPLETE_KEY] == "true"


class TestStorageErrors:
    """A broken store behaves like an empty one and never raises."""

    def test_read_is_miss(self, broken_store):
        cache = CompletionCache(broken_store)
        assert _run(cache.get_flag(CompletionFlag.FAMILY_SETUP, "u1")) is None
        assert _run(cache.get_language()) is None
        assert _run(cache.intro_complete()) is False

    def test_write_and_clear_do_not_raise(self, broken_store):
        cache = CompletionCache(broken_store)
        _run(cache.write_through("u1", True, True))
        _run(cache.set_language("nl"))
        _run(cache.clear_user("u1"))
