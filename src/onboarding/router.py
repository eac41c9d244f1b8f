"""
Onboarding Router.

Decides, on app launch and after every auth/setup step, which screen the
user lands on. Four signals are gathered in precedence order (language,
session, family setup, family style) and collapsed by decide_route().

Rules the router keeps:
- Only runs from the root route. Mid-form on a deeper route it does nothing.
- Family signals come from the backend when reachable (and are written
  through to the local cache), from the cache when not, and default to
  "not done" when neither knows.
- The whole run has a wall-clock budget. Out of time means a fixed fallback
  (signed out -> auth, signed in -> family setup), never a stuck spinner.
- A new run supersedes an in-flight one. A superseded run never navigates.
- Nothing raised by a collaborator escapes a run.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from flowfam.api.client import FamilyApiClient, FamilyNotFoundError
from flowfam.auth.session import AuthChange, AuthEvent, AuthService, Session

from .cache import CompletionCache, CompletionFlag
from .navigation import Navigator, Route
from .state import OnboardingSignals, RoutingDecision, decide_route, fallback_decision

logger = logging.getLogger(__name__)

DEFAULT_BUDGET_SECONDS = 2.5
DEFAULT_SESSION_TIMEOUT_SECONDS = 2.0
DEFAULT_REMOTE_TIMEOUT_SECONDS = 1.5


@dataclass
class RunProgress:
    """How far a run got. Read by the timeout fallback."""
    language_selected: bool | None = None
    authenticated: bool | None = None
    session: Session | None = None
    family_source: str | None = None  # "remote" | "cache" | "default"


class OnboardingRouter:
    """Reconciles onboarding signals into a single navigation."""

    def __init__(
        self,
        auth: AuthService,
        cache: CompletionCache,
        api: FamilyApiClient,
        navigator: Navigator,
        budget: float = DEFAULT_BUDGET_SECONDS,
        session_timeout: float | None = DEFAULT_SESSION_TIMEOUT_SECONDS,
        remote_timeout: float | None = DEFAULT_REMOTE_TIMEOUT_SECONDS,
    ):
        self.auth = auth
        self.cache = cache
        self.api = api
        self.navigator = navigator
        self.budget = budget
        self.session_timeout = session_timeout
        self.remote_timeout = remote_timeout

        self.last_decision: RoutingDecision | None = None
        self.last_progress: RunProgress | None = None

        self._generation = 0
        self._inflight: asyncio.Task | None = None
        self._trigger_task: asyncio.Task | None = None
        self._unsubscribe: Callable[[], None] | None = None

    # =========================================================================
    # Signal checks (precedence order)
    # =========================================================================

    async def _check_language(self) -> bool:
        return bool(await self.cache.get_language())

    async def _check_session(self) -> Session | None:
        """Current session, bounded. Unreachable auth counts as signed out."""
        try:
            return await asyncio.wait_for(self.auth.get_current_session(), self.session_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Session check timed out after {self.session_timeout}s, treating as signed out")
        except Exception as e:
            logger.warning(f"Session check failed, treating as signed out: {e}")
        return None

    async def _check_family(self, session: Session, progress: RunProgress) -> tuple[bool, bool]:
        """
        (setup_complete, style_complete) for the signed-in user.

        Backend first; cache on any failure; False when the cache is empty.
        """
        user_id = session.user_id

        try:
            members = await asyncio.wait_for(
                self.api.get_family_members(session.access_token),
                self.remote_timeout,
            )
        except FamilyNotFoundError:
            members = []
        except asyncio.TimeoutError:
            logger.warning(f"Family members fetch timed out after {self.remote_timeout}s, using cache")
            return await self._cached_family(user_id, progress)
        except Exception as e:
            logger.warning(f"Family members fetch failed, using cache: {e}")
            return await self._cached_family(user_id, progress)

        setup_complete = len(members) > 0
        style_complete = setup_complete and all(member.has_color for member in members)
        progress.family_source = "remote"

        # Started writes finish even when the run is cancelled.
        write = asyncio.ensure_future(self.cache.write_through(user_id, setup_complete, style_complete))
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            await write
            raise
        return setup_complete, style_complete

    async def _cached_family(self, user_id: str, progress: RunProgress) -> tuple[bool, bool]:
        setup = await self.cache.get_flag(CompletionFlag.FAMILY_SETUP, user_id)
        style = await self.cache.get_flag(CompletionFlag.FAMILY_STYLE, user_id)
        progress.family_source = "cache" if setup is not None or style is not None else "default"
        return setup is True, style is True

    async def resolve_signals(self, progress: RunProgress | None = None, stop_early: bool = True) -> OnboardingSignals:
        """
        Gather the signals in precedence order.

        With stop_early, checks after the first unmet signal are skipped
        (their answer can't change the decision). The session is never
        checked before language, and family state never without a session.
        """
        progress = progress if progress is not None else RunProgress()

        language_selected = await self._check_language()
        progress.language_selected = language_selected
        if not language_selected and stop_early:
            return OnboardingSignals(language_selected=False)

        session = await self._check_session()
        progress.session = session
        progress.authenticated = session is not None
        if session is None:
            return OnboardingSignals(language_selected=language_selected, authenticated=False)

        setup_complete, style_complete = await self._check_family(session, progress)
        return OnboardingSignals(
            language_selected=language_selected,
            authenticated=True,
            family_setup_complete=setup_complete,
            family_style_complete=style_complete,
        )

    # =========================================================================
    # Decision
    # =========================================================================

    async def evaluate(self) -> RoutingDecision:
        """Decide without navigating. Always returns a decision within budget."""
        progress = RunProgress()
        self.last_progress = progress

        try:
            signals = await asyncio.wait_for(self.resolve_signals(progress), self.budget)
        except asyncio.TimeoutError:
            decision = fallback_decision(progress.authenticated)
            logger.warning(
                f"Routing timed out after {self.budget}s "
                f"(authenticated={progress.authenticated}), falling back to {decision.value}"
            )
            return decision
        except Exception as e:
            decision = fallback_decision(progress.authenticated)
            logger.error(f"Routing failed, falling back to {decision.value}: {e}")
            return decision

        if not signals.is_consistent:
            logger.warning("Family style marked complete without family setup, redoing setup")

        decision = decide_route(signals)
        logger.info(f"Routing decision: {decision.value} ({signals})")
        return decision

    # =========================================================================
    # Entry points
    # =========================================================================

    @property
    def checking(self) -> bool:
        """A run is in flight (placeholder is showing)."""
        return self._inflight is not None and not self._inflight.done()

    async def reconcile(self) -> RoutingDecision | None:
        """
        Route from the root screen.

        Returns the applied decision, or None when skipped (not on root) or
        superseded by a newer run.
        """
        if not self.navigator.is_at_root:
            logger.debug(f"Not on root ({self.navigator.current_route}), skipping reconciliation")
            return None

        self._generation += 1
        generation = self._generation

        previous = self._inflight
        if previous is not None and not previous.done():
            logger.debug("Superseding in-flight reconciliation")
            previous.cancel()

        self.navigator.show_loading()
        task = asyncio.create_task(self.evaluate())
        self._inflight = task

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled() or generation != self._generation:
            logger.debug(f"Discarding superseded reconciliation #{generation}")
            return None

        decision = task.result()
        self.last_decision = decision
        if self.navigator.current_route != decision.route:
            self.navigator.replace(decision.route)
        return decision

    async def restart(self) -> RoutingDecision | None:
        """Go back to root and route again (after a completed step)."""
        if not self.navigator.is_at_root:
            self.navigator.replace(Route.ROOT)
        return await self.reconcile()

    async def cancel(self) -> None:
        """
        Abandon any pending or in-flight run without navigating.

        Returns once the run has stopped, including any cache write it had
        already started.
        """
        self._generation += 1
        pending = [
            task for task in (self._trigger_task, self._inflight)
            if task is not None and not task.done()
        ]
        if not pending:
            return
        logger.debug(f"Cancelling {len(pending)} routing task(s)")
        for task in pending:
            task.cancel()
        await asyncio.wait(pending)

    def trigger(self, restart: bool = False) -> asyncio.Task:
        """Schedule a run on the running loop. Newer runs supersede older ones."""
        coro = self.restart() if restart else self.reconcile()
        self._trigger_task = asyncio.create_task(coro)
        return self._trigger_task

    async def settle(self) -> RoutingDecision | None:
        """Wait for the most recent triggered run."""
        task = self._trigger_task
        if task is None:
            return None
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    # =========================================================================
    # Auth subscription
    # =========================================================================

    def _on_auth_change(self, change: AuthChange) -> None:
        # Sign-in/out changes where the user belongs, so start over from root.
        # Token refreshes only re-check, and the root guard keeps forms intact.
        restart = change.event in (AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT)
        self.trigger(restart=restart)

    def attach(self) -> None:
        """Start listening for session changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.subscribe(self._on_auth_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
