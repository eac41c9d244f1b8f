"""
Onboarding State.

The four completion signals and the routing decision they collapse into.
Everything here is pure: the router gathers the signals, this module decides.
"""

from dataclasses import dataclass, replace
from enum import Enum


class RoutingDecision(Enum):
    """Next screen to show."""
    LANGUAGE_SELECTION = "language-selection"
    AUTH = "auth"
    FAMILY_SETUP = "family-setup"
    FAMILY_STYLE = "family-style"
    HOME = "home"

    @property
    def route(self) -> str:
        from .navigation import Route
        return Route.for_decision(self)


@dataclass(frozen=True)
class OnboardingSignals:
    """
    Completion signals gathered at routing time.

    family_* are only meaningful when authenticated; see normalized().
    """
    language_selected: bool = False
    authenticated: bool = False
    family_setup_complete: bool = False
    family_style_complete: bool = False

    @property
    def is_consistent(self) -> bool:
        """Styled implies set up."""
        return self.family_setup_complete or not self.family_style_complete

    def normalized(self) -> "OnboardingSignals":
        """
        Drop signals that can't be trusted.

        - Not authenticated: family flags were never checked, force False.
        - Style complete without setup complete: corrupted, redo setup.
        """
        if not self.authenticated:
            return replace(self, family_setup_complete=False, family_style_complete=False)
        if not self.is_consistent:
            return replace(self, family_style_complete=False)
        return self


def decide_route(signals: OnboardingSignals) -> RoutingDecision:
    """
    Collapse signals into one decision. First matching rule wins.

    language -> auth -> family setup -> family style -> home
    """
    signals = signals.normalized()

    if not signals.language_selected:
        return RoutingDecision.LANGUAGE_SELECTION
    if not signals.authenticated:
        return RoutingDecision.AUTH
    if not signals.family_setup_complete:
        return RoutingDecision.FAMILY_SETUP
    if not signals.family_style_complete:
        return RoutingDecision.FAMILY_STYLE
    return RoutingDecision.HOME


def fallback_decision(authenticated: bool | None) -> RoutingDecision:
    """
    Decision used when reconciliation runs out of time.

    Unknown session counts as signed out.
    """
    if authenticated:
        return RoutingDecision.FAMILY_SETUP
    return RoutingDecision.AUTH
