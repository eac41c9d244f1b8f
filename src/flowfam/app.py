"""
Flow Fam - Application wiring.

Builds the collaborators once per app session and hands them to the router
and the onboarding flow. Nothing here is a module-level singleton: the CLI
(and tests) create a FlowFamApp and pass it around.
"""

import logging
from dataclasses import dataclass

from flowfam.api.client import FamilyApiClient
from flowfam.auth.session import AuthService
from flowfam.auth.supabase_auth import SupabaseAuthService, create_supabase_client
from flowfam.config import FlowFamSettings
from flowfam.storage import JsonFileStore, KeyValueStore
from onboarding.cache import CompletionCache
from onboarding.flow import OnboardingFlow
from onboarding.navigation import MemoryNavigator, Navigator
from onboarding.router import OnboardingRouter

logger = logging.getLogger(__name__)


@dataclass
class FlowFamApp:
    store: KeyValueStore
    auth: AuthService
    api: FamilyApiClient
    cache: CompletionCache
    navigator: Navigator
    router: OnboardingRouter
    flow: OnboardingFlow


def assemble(
    store: KeyValueStore,
    auth: AuthService,
    api: FamilyApiClient,
    navigator: Navigator | None = None,
    budget: float = 2.5,
    session_timeout: float | None = 2.0,
    remote_timeout: float | None = 1.5,
) -> FlowFamApp:
    """Wire router and flow around the given collaborators."""
    cache = CompletionCache(store)
    navigator = navigator or MemoryNavigator()
    router = OnboardingRouter(
        auth,
        cache,
        api,
        navigator,
        budget=budget,
        session_timeout=session_timeout,
        remote_timeout=remote_timeout,
    )
    router.attach()
    flow = OnboardingFlow(auth, cache, api, router)
    return FlowFamApp(
        store=store,
        auth=auth,
        api=api,
        cache=cache,
        navigator=navigator,
        router=router,
        flow=flow,
    )


def create_app(settings: FlowFamSettings) -> FlowFamApp:
    """Production wiring: JSON store on disk, Supabase auth, HTTP backend."""
    store = JsonFileStore(settings.resolved_store_path)
    client = create_supabase_client(settings.supabase_url, settings.supabase_anon_key, store)
    auth = SupabaseAuthService(client)
    api = FamilyApiClient(settings.backend_url, timeout=settings.http_timeout_seconds)

    if not api.is_configured:
        logger.warning("BACKEND_URL not set, family state will come from the local cache only")

    return assemble(
        store,
        auth,
        api,
        budget=settings.routing_timeout_seconds,
        session_timeout=settings.session_timeout_seconds,
        remote_timeout=settings.remote_timeout_seconds,
    )
