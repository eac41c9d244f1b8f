"""Remote family/profile API."""

from .client import ApiError, BackendNotConfiguredError, FamilyApiClient, FamilyNotFoundError
from .schemas import FamilyMember, NewFamilyMember, Profile

__all__ = [
    "ApiError",
    "BackendNotConfiguredError",
    "FamilyApiClient",
    "FamilyNotFoundError",
    "FamilyMember",
    "NewFamilyMember",
    "Profile",
]
