"""
Auth session capability.

The onboarding router only needs to know whether there is a signed-in user
and to hear about sign-in/sign-out. AuthService is that narrow interface;
SessionChannel is the explicit message channel session changes travel on.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Sign-in / sign-up rejected. `message` is safe to show on the form."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthUser(BaseModel):
    """Signed-in user."""
    id: str
    email: str | None = None
    name: str | None = None


class Session(BaseModel):
    """Current auth session."""
    user: AuthUser
    access_token: str

    @property
    def user_id(self) -> str:
        return self.user.id


class AuthEvent(Enum):
    """Session change kinds."""
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


@dataclass(frozen=True)
class AuthChange:
    event: AuthEvent
    session: Session | None = None


AuthListener = Callable[[AuthChange], None]


class SessionChannel:
    """
    Fan-out of session changes to subscribers.

    Listeners are plain callables invoked synchronously; a listener that
    needs to do async work schedules it itself. A failing listener is logged
    and skipped so one bad subscriber can't starve the rest.
    """

    def __init__(self):
        self._listeners: list[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, change: AuthChange) -> None:
        logger.debug(f"Auth state changed: {change.event.value}")
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(f"Auth listener failed on {change.event.value}: {e}")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class AuthService(ABC):
    """Auth capability consumed by the router and the onboarding screens."""

    def __init__(self, channel: SessionChannel | None = None):
        self.channel = channel or SessionChannel()

    @abstractmethod
    async def get_current_session(self) -> Session | None:
        """Current session, or None when signed out."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Session:
        """Email/password sign-in. Raises AuthError when rejected."""

    @abstractmethod
    async def sign_up(self, email: str, password: str, name: str | None = None) -> Session | None:
        """
        Create an account. Raises AuthError when rejected.

        Returns None when the account needs email confirmation first.
        """

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Listen for session changes. Returns an unsubscribe callable."""
        return self.channel.subscribe(listener)
