"""
Onboarding Forms.

Validation for the onboarding screens:
- Language selection (fixed list)
- Family setup (family name, parent, optional partner, children)
- Family style (one distinct color per member)

Messages are user-facing; the screens show them next to the field.
"""

import logging

from pydantic import BaseModel, Field, field_validator, model_validator

from flowfam.api.schemas import FamilyMember, NewFamilyMember

logger = logging.getLogger(__name__)


# =============================================================================
# Valid Options
# =============================================================================

SUPPORTED_LANGUAGES = {
    "en": "English",
    "es": "Español",
    "fr": "Français",
    "de": "Deutsch",
    "nl": "Nederlands",
}

# Colors the backend accepts for member styling
FAMILY_COLORS = [
    "#4F46E5",
    "#22C55E",
    "#F97316",
    "#EF4444",
    "#06B6D4",
    "#A855F7",
    "#F59E0B",
    "#EC4899",
    "#84CC16",
    "#64748B",
]


def validate_language(code: str) -> str:
    """Normalize and check a language code. Raises ValueError."""
    normalized = (code or "").strip().lower()
    if normalized not in SUPPORTED_LANGUAGES:
        options = ", ".join(SUPPORTED_LANGUAGES)
        raise ValueError(f"Unsupported language '{code}'. Choose one of: {options}")
    return normalized


# =============================================================================
# Family Setup
# =============================================================================


class FamilySetupForm(BaseModel):
    """Family setup screen."""
    family_name: str
    parent_name: str
    partner_name: str = ""
    children: list[str] = Field(default_factory=list)

    @field_validator("family_name")
    @classmethod
    def family_name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Family name is required")
        return v

    @field_validator("parent_name")
    @classmethod
    def parent_name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Parent name is required")
        return v

    @field_validator("partner_name")
    @classmethod
    def strip_partner(cls, v: str) -> str:
        return v.strip()

    @field_validator("children")
    @classmethod
    def drop_blank_children(cls, v: list[str]) -> list[str]:
        return [name.strip() for name in v if name and name.strip()]

    def to_members(self) -> list[NewFamilyMember]:
        """Parent first, then partner, then children."""
        members = [NewFamilyMember(name=self.parent_name, role="parent")]
        if self.partner_name:
            members.append(NewFamilyMember(name=self.partner_name, role="partner"))
        members.extend(NewFamilyMember(name=child, role="child") for child in self.children)
        return members


# =============================================================================
# Family Style
# =============================================================================


class FamilyStyleForm(BaseModel):
    """Family style screen: member id -> color (+ optional avatar URL)."""
    colors: dict[str, str] = Field(default_factory=dict)
    avatars: dict[str, str] = Field(default_factory=dict)

    @field_validator("colors")
    @classmethod
    def colors_from_palette(cls, v: dict[str, str]) -> dict[str, str]:
        normalized = {}
        for member_id, color in v.items():
            color = (color or "").strip().upper()
            if color not in FAMILY_COLORS:
                raise ValueError(f"Color {color or '(empty)'} is not available")
            normalized[member_id] = color
        return normalized

    @model_validator(mode="after")
    def colors_distinct(self) -> "FamilyStyleForm":
        used = list(self.colors.values())
        if len(used) != len(set(used)):
            raise ValueError("Each family member needs a different color")
        return self

    def missing_members(self, members: list[FamilyMember]) -> list[FamilyMember]:
        """Members that have no color picked yet."""
        return [member for member in members if member.id not in self.colors]


def default_colors(members: list[FamilyMember]) -> dict[str, str]:
    """
    Starting colors for the style screen.

    Keeps a member's existing color, otherwise assigns the next palette color
    nobody is using yet.
    """
    colors: dict[str, str] = {}
    taken = {m.color.upper() for m in members if m.has_color}
    free = [c for c in FAMILY_COLORS if c not in taken]

    for index, member in enumerate(members):
        if member.has_color:
            colors[member.id] = member.color.upper()
        elif free:
            colors[member.id] = free.pop(0)
        else:
            colors[member.id] = FAMILY_COLORS[index % len(FAMILY_COLORS)]
    return colors
