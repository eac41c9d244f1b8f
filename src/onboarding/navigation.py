"""
Onboarding Navigation.

Route paths and the navigator the router drives. The router only ever
replaces the current route; it never pushes.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import RoutingDecision

logger = logging.getLogger(__name__)


class Route:
    """Route paths."""
    ROOT = "/"
    LANGUAGE = "/(onboarding)/language"
    AUTH = "/(onboarding)/auth-options"
    FAMILY_SETUP = "/(onboarding)/family-setup"
    FAMILY_STYLE = "/(onboarding)/family-style"
    HOME = "/(tabs)/(home)/home"

    ROOT_ALIASES = frozenset({"", "/", "/index"})

    @classmethod
    def for_decision(cls, decision: "RoutingDecision") -> str:
        from .state import RoutingDecision

        return {
            RoutingDecision.LANGUAGE_SELECTION: cls.LANGUAGE,
            RoutingDecision.AUTH: cls.AUTH,
            RoutingDecision.FAMILY_SETUP: cls.FAMILY_SETUP,
            RoutingDecision.FAMILY_STYLE: cls.FAMILY_STYLE,
            RoutingDecision.HOME: cls.HOME,
        }[decision]

    @classmethod
    def is_root(cls, route: str) -> bool:
        return route in cls.ROOT_ALIASES


class Navigator(ABC):
    """Navigation side effects the router needs."""

    @property
    @abstractmethod
    def current_route(self) -> str:
        ...

    @abstractmethod
    def replace(self, route: str) -> None:
        """Replace the current route (no back-stack entry)."""

    @abstractmethod
    def show_loading(self) -> None:
        """Show the non-blocking 'checking' placeholder."""

    @property
    def is_at_root(self) -> bool:
        return Route.is_root(self.current_route)


class MemoryNavigator(Navigator):
    """Navigator that keeps the route history in memory."""

    def __init__(self, initial_route: str = Route.ROOT):
        self._current = initial_route
        self.history: list[str] = [initial_route]
        self.loading_shown = 0

    @property
    def current_route(self) -> str:
        return self._current

    def replace(self, route: str) -> None:
        logger.debug(f"Navigate: {self._current} -> {route}")
        self._current = route
        self.history.append(route)

    def show_loading(self) -> None:
        self.loading_shown += 1

    @property
    def navigation_count(self) -> int:
        """Replacements performed (initial route excluded)."""
        return len(self.history) - 1
