"""
Onboarding Flow.

The actions behind each onboarding screen. Each successful step records its
own completion flag locally and sends the user back through the router.

Auth and API errors are not caught here: the screen that called the step
shows them on the form.
"""

import logging

from flowfam.api.client import FamilyApiClient, FamilyNotFoundError
from flowfam.api.schemas import CreateFamilyResponse, FamilyMember
from flowfam.auth.session import AuthService, Session

from .cache import CompletionCache, CompletionFlag
from .forms import FamilySetupForm, FamilyStyleForm, validate_language
from .router import OnboardingRouter
from .state import RoutingDecision

logger = logging.getLogger(__name__)


class NotSignedInError(Exception):
    """A family step was attempted without a session."""

    def __init__(self):
        super().__init__("You need to sign in first")


class IncompleteStyleError(ValueError):
    """Some family members have no color."""

    def __init__(self, members: list[FamilyMember]):
        names = ", ".join(member.name for member in members)
        super().__init__(f"Pick a color for every family member (missing: {names})")
        self.members = members


class OnboardingFlow:
    """Screen-level onboarding actions."""

    def __init__(
        self,
        auth: AuthService,
        cache: CompletionCache,
        api: FamilyApiClient,
        router: OnboardingRouter,
    ):
        self.auth = auth
        self.cache = cache
        self.api = api
        self.router = router

    async def _require_session(self) -> Session:
        session = await self.auth.get_current_session()
        if session is None:
            raise NotSignedInError()
        return session

    # =========================================================================
    # Language
    # =========================================================================

    async def select_language(self, code: str) -> RoutingDecision | None:
        """Language screen. Raises ValueError for unknown codes."""
        language = validate_language(code)
        await self.cache.set_language(language)
        logger.info(f"Language saved: {language}")
        return await self.router.restart()

    # =========================================================================
    # Auth
    # =========================================================================

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Login screen. Raises AuthError.

        The router hears about the new session on the auth channel.
        """
        session = await self.auth.sign_in(email.strip(), password)
        await self.cache.mark_intro_complete()
        return session

    async def sign_up(self, email: str, password: str, name: str | None = None) -> Session | None:
        """Sign-up screen. Returns None when email confirmation is pending."""
        session = await self.auth.sign_up(email.strip(), password, name=name.strip() if name else None)
        await self.cache.mark_intro_complete()
        return session

    async def sign_out(self) -> None:
        """
        Profile screen sign-out.

        The signed-out user's cached flags are dropped before anyone else can
        sign in on this device. A routing run still in flight is stopped first
        so its write-through can't put them back.
        """
        await self.router.cancel()
        session = await self.auth.get_current_session()
        user_id = session.user_id if session else None
        await self.cache.clear_user(user_id)
        await self.auth.sign_out()
        logger.info(f"Signed out user {user_id}")

    # =========================================================================
    # Family setup
    # =========================================================================

    async def submit_family_setup(self, form: FamilySetupForm) -> CreateFamilyResponse:
        """Family setup screen: create the family with its members."""
        session = await self._require_session()

        logger.info(f"Creating family '{form.family_name}' for user {session.user_id}")
        result = await self.api.create_family(
            session.access_token,
            form.family_name,
            form.to_members(),
        )

        await self.cache.set_flag(CompletionFlag.FAMILY_SETUP, session.user_id, True)
        await self.router.restart()
        return result

    # =========================================================================
    # Family style
    # =========================================================================

    async def load_family_members(self) -> list[FamilyMember]:
        """Members for the style screen. Empty when no family exists yet."""
        session = await self._require_session()
        try:
            return await self.api.get_family_members(session.access_token)
        except FamilyNotFoundError:
            return []

    async def submit_family_style(self, form: FamilyStyleForm) -> list[FamilyMember]:
        """
        Family style screen: save every member's color, then mark styling done.

        Raises IncompleteStyleError when a member has no color.
        """
        session = await self._require_session()
        members = await self.load_family_members()

        missing = form.missing_members(members)
        if missing:
            raise IncompleteStyleError(missing)

        updated = []
        for member in members:
            updated.append(
                await self.api.update_member_style(
                    session.access_token,
                    member.id,
                    color=form.colors[member.id],
                    avatar_url=form.avatars.get(member.id),
                )
            )

        await self.api.complete_family_style(session.access_token)
        await self.cache.set_flag(CompletionFlag.FAMILY_STYLE, session.user_id, True)
        logger.info(f"Family style saved for {len(updated)} members")

        await self.router.restart()
        return updated
