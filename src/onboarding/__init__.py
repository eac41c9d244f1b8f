"""
Flow Fam Onboarding.

Launch-time routing for new and returning users. Four signals decide where
the user lands:
1. Language selected
2. Signed in
3. Family set up (members created)
4. Family styled (every member has a color)

The router reconciles them into one screen; the flow holds the actions of
the screens that flip them.
"""

from .state import OnboardingSignals, RoutingDecision, decide_route
from .router import OnboardingRouter
from .flow import OnboardingFlow

__all__ = [
    "OnboardingSignals",
    "RoutingDecision",
    "decide_route",
    "OnboardingRouter",
    "OnboardingFlow",
]
