"""
Wire models for the family/profile REST API.

The backend speaks camelCase for some fields (familyName, familySetupComplete)
and snake_case for others (avatar_url); aliases keep the Python side snake_case.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MemberRole = Literal["parent", "partner", "child"]


class FamilyMember(BaseModel):
    """A member as returned by GET /api/families/members."""
    id: str
    name: str
    role: MemberRole
    color: str | None = None
    avatar_url: str | None = None

    @property
    def has_color(self) -> bool:
        return bool(self.color and self.color.strip())


class FamilyMembersResponse(BaseModel):
    members: list[FamilyMember] = Field(default_factory=list)


class NewFamilyMember(BaseModel):
    name: str = Field(min_length=1)
    role: MemberRole


class CreateFamilyRequest(BaseModel):
    """Body for POST /api/families."""
    model_config = ConfigDict(populate_by_name=True)

    family_name: str = Field(alias="familyName", min_length=1)
    members: list[NewFamilyMember] = Field(min_length=1)


class CreateFamilyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    family_id: str = Field(alias="familyId")
    success: bool = True
    message: str = ""


class MemberStyleUpdate(BaseModel):
    """Body for PATCH /api/families/members/{id}. Unset fields are left alone."""
    color: str | None = None
    avatar_url: str | None = None


class CompleteStyleResponse(BaseModel):
    success: bool = True
    message: str = ""


class Profile(BaseModel):
    """GET /api/profile - user profile with the legacy setup flag."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    email: str | None = None
    name: str | None = None
    image: str | None = None
    email_verified: bool = Field(default=False, alias="emailVerified")
    family_setup_complete: bool = Field(default=False, alias="familySetupComplete")
