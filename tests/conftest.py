"""
Pytest configuration and fixtures for Flow Fam tests.

Fakes stand in for the three collaborators the router consumes:
auth session, family API and the key-value store.
"""

import asyncio
import os

import pytest

# Set test environment before importing flowfam modules
os.environ["FLOWFAM_ENV"] = "development"
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key-not-real")

from flowfam.api.client import ApiError, FamilyNotFoundError
from flowfam.api.schemas import CreateFamilyResponse, CompleteStyleResponse, FamilyMember
from flowfam.app import assemble
from flowfam.auth.session import AuthChange, AuthError, AuthEvent, AuthService, AuthUser, Session
from flowfam.storage import KeyValueStore, MemoryStore


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


def make_session(user_id: str = "user-1", email: str = "anna@example.com") -> Session:
    return Session(user=AuthUser(id=user_id, email=email, name="Anna"), access_token=f"token-{user_id}")


class FakeAuthService(AuthService):
    """In-memory accounts; publishes on the channel like the real service."""

    def __init__(self, session: Session | None = None, hang: bool = False, fail: bool = False):
        super().__init__()
        self.session = session
        self.hang = hang
        self.fail = fail
        self.accounts: dict[str, tuple[str, Session]] = {}
        self.session_checks = 0

    def add_account(self, email: str, password: str, user_id: str) -> None:
        self.accounts[email] = (password, make_session(user_id, email))

    async def get_current_session(self) -> Session | None:
        self.session_checks += 1
        if self.hang:
            await asyncio.sleep(3600)
        if self.fail:
            raise ConnectionError("auth server unreachable")
        return self.session

    async def sign_in(self, email: str, password: str) -> Session:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("Invalid login credentials")
        self.session = account[1]
        self.channel.publish(AuthChange(AuthEvent.SIGNED_IN, self.session))
        return self.session

    async def sign_up(self, email: str, password: str, name: str | None = None) -> Session | None:
        if email in self.accounts:
            raise AuthError("User already registered")
        self.add_account(email, password, f"user-{len(self.accounts) + 1}")
        return await self.sign_in(email, password)

    async def sign_out(self) -> None:
        self.session = None
        self.channel.publish(AuthChange(AuthEvent.SIGNED_OUT, None))


class FakeFamilyApi:
    """Backend stand-in keyed by access token."""

    def __init__(self):
        self.families: dict[str, list[FamilyMember]] = {}
        self.fail_with: Exception | None = None
        self.hang = False
        self.calls: list[str] = []

    def set_members(self, session: Session, members: list[FamilyMember]) -> None:
        self.families[session.access_token] = members

    async def get_family_members(self, access_token: str) -> list[FamilyMember]:
        self.calls.append("GET /api/families/members")
        if self.hang:
            await asyncio.sleep(3600)
        if self.fail_with is not None:
            raise self.fail_with
        if access_token not in self.families:
            raise FamilyNotFoundError(404, "Family not found")
        return list(self.families[access_token])

    async def create_family(self, access_token, family_name, members) -> CreateFamilyResponse:
        self.calls.append("POST /api/families")
        if self.fail_with is not None:
            raise self.fail_with
        self.families[access_token] = [
            FamilyMember(id=f"m{i}", name=m.name, role=m.role) for i, m in enumerate(members, start=1)
        ]
        return CreateFamilyResponse(family_id="fam-1", success=True, message="Family created successfully")

    async def update_member_style(self, access_token, member_id, color=None, avatar_url=None) -> FamilyMember:
        self.calls.append(f"PATCH /api/families/members/{member_id}")
        members = self.families[access_token]
        for index, member in enumerate(members):
            if member.id == member_id:
                updated = member.model_copy(update={"color": color, "avatar_url": avatar_url})
                members[index] = updated
                return updated
        raise ApiError(404, "Family member not found")

    async def complete_family_style(self, access_token) -> CompleteStyleResponse:
        self.calls.append("POST /api/families/complete-style")
        return CompleteStyleResponse(success=True, message="Family styling setup marked as complete")


class BrokenStore(KeyValueStore):
    """Every operation fails, like a full or corrupted device store."""

    async def get_item(self, key: str) -> str | None:
        raise OSError("storage corrupted")

    async def set_item(self, key: str, value: str) -> None:
        raise OSError("storage full")

    async def remove_item(self, key: str) -> None:
        raise OSError("storage corrupted")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def auth():
    return FakeAuthService()


@pytest.fixture
def api():
    return FakeFamilyApi()


@pytest.fixture
def build_app(store, auth, api):
    """Assemble router + flow around the fakes. Short budgets keep tests fast."""

    def _build(**overrides):
        options = {
            "store": store,
            "auth": auth,
            "api": api,
            "budget": 0.5,
            "session_timeout": 0.2,
            "remote_timeout": 0.2,
        }
        options.update(overrides)
        return assemble(**options)

    return _build


@pytest.fixture
def sample_members():
    return [
        FamilyMember(id="m1", name="Anna", role="parent", color="#4F46E5"),
        FamilyMember(id="m2", name="Ben", role="partner", color="#22C55E"),
        FamilyMember(id="m3", name="Cas", role="child", color="#F97316"),
    ]


@pytest.fixture
def new_session():
    """Factory for sessions of other users."""
    return make_session


@pytest.fixture
def broken_store():
    return BrokenStore()
