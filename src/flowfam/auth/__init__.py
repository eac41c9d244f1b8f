"""Auth session capability and its Supabase implementation."""

from .session import (
    AuthChange,
    AuthError,
    AuthEvent,
    AuthService,
    AuthUser,
    Session,
    SessionChannel,
)

__all__ = [
    "AuthChange",
    "AuthError",
    "AuthEvent",
    "AuthService",
    "AuthUser",
    "Session",
    "SessionChannel",
]
