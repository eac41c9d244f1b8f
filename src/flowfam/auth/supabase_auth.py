"""
Flow Fam - Supabase auth.

Email/password auth against the Supabase project. The supabase client is
synchronous, so every call runs in a worker thread to keep the event loop
(and the router's timeout) responsive.
"""

import asyncio
import logging
from typing import Any

from supabase import Client, ClientOptions, create_client

from flowfam.storage import JsonFileStore, StorageError

from .session import AuthChange, AuthError, AuthEvent, AuthService, AuthUser, SessionChannel, Session

logger = logging.getLogger(__name__)


class StoreSessionStorage:
    """
    Supabase session storage adapter over the local JSON store.

    Implements the get_item/set_item/remove_item interface the Supabase auth
    client expects. Storage failures are logged and behave like an empty
    slot, so a corrupt store signs the user out instead of crashing.
    """

    def __init__(self, store: JsonFileStore):
        self._store = store

    def get_item(self, key: str) -> str | None:
        try:
            return self._store.get_sync(key)
        except StorageError as e:
            logger.warning(f"Session storage get_item failed: {e}")
            return None

    def set_item(self, key: str, value: str) -> None:
        try:
            self._store.set_sync(key, value)
        except StorageError as e:
            logger.warning(f"Session storage set_item failed: {e}")

    def remove_item(self, key: str) -> None:
        try:
            self._store.remove_sync(key)
        except StorageError as e:
            logger.warning(f"Session storage remove_item failed: {e}")


def create_supabase_client(url: str, anon_key: str, store: JsonFileStore | None = None) -> Client:
    """Build a Supabase client, persisting the session in `store` when given."""
    if not url or not anon_key:
        raise ValueError("Supabase is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY.")

    if store is None:
        return create_client(url, anon_key)

    options = ClientOptions(
        storage=StoreSessionStorage(store),
        persist_session=True,
        auto_refresh_token=True,
    )
    return create_client(url, anon_key, options=options)


def _to_session(raw: Any) -> Session | None:
    """Convert a supabase Session into ours."""
    if raw is None or getattr(raw, "user", None) is None:
        return None
    user = raw.user
    metadata = getattr(user, "user_metadata", None) or {}
    return Session(
        user=AuthUser(id=str(user.id), email=user.email, name=metadata.get("name")),
        access_token=raw.access_token,
    )


class SupabaseAuthService(AuthService):
    """AuthService backed by Supabase email/password auth."""

    def __init__(self, client: Client, channel: SessionChannel | None = None):
        super().__init__(channel)
        self._client = client

    async def get_current_session(self) -> Session | None:
        raw = await asyncio.to_thread(self._client.auth.get_session)
        return _to_session(raw)

    async def sign_in(self, email: str, password: str) -> Session:
        logger.info(f"Signing in: {email}")
        try:
            response = await asyncio.to_thread(
                self._client.auth.sign_in_with_password,
                {"email": email, "password": password},
            )
        except Exception as e:
            logger.warning(f"Sign in failed for {email}: {e}")
            raise AuthError(getattr(e, "message", None) or "Sign in failed") from e

        session = _to_session(response.session)
        if session is None:
            raise AuthError("Sign in failed")

        self.channel.publish(AuthChange(AuthEvent.SIGNED_IN, session))
        return session

    async def sign_up(self, email: str, password: str, name: str | None = None) -> Session | None:
        logger.info(f"Signing up: {email}")
        credentials: dict[str, Any] = {"email": email, "password": password}
        if name:
            credentials["options"] = {"data": {"name": name}}

        try:
            response = await asyncio.to_thread(self._client.auth.sign_up, credentials)
        except Exception as e:
            logger.warning(f"Sign up failed for {email}: {e}")
            raise AuthError(getattr(e, "message", None) or "Sign up failed") from e

        session = _to_session(response.session)
        if session is None:
            # Email confirmation pending
            logger.info(f"Sign up for {email} awaiting email confirmation")
            return None

        self.channel.publish(AuthChange(AuthEvent.SIGNED_IN, session))
        return session

    async def sign_out(self) -> None:
        try:
            await asyncio.to_thread(self._client.auth.sign_out)
        except Exception as e:
            # Local session is dropped by the client even when the revoke call fails
            logger.warning(f"Sign out error: {e}")
        self.channel.publish(AuthChange(AuthEvent.SIGNED_OUT, None))
