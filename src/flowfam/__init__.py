"""
Flow Fam - family organiser app, onboarding core.

Packages:
- flowfam: configuration, auth session, local store, remote family API, CLI
- onboarding: launch-time routing and the onboarding screen actions
"""

__version__ = "1.0.0"
