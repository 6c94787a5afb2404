# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from datetime import date as date_cls
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from roster_service.models.domain import AppUser, Position, Team

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def validate_date_key(value: str) -> str:
    """Raise ValueError unless ``value`` is a real ``YYYY-MM-DD`` date."""
    try:
        date_cls.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD")
    if len(value) != 10:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD")
    return value


# ── Roster Schemas ──

class CycleRequest(BaseModel):
    team: str = Field(..., min_length=1, max_length=255)
    identifier: str = Field(
        ..., min_length=1, max_length=255,
        description="User email, or a label for custom positions",
    )
    position: str = Field(..., min_length=1, max_length=255)

    @field_validator("identifier")
    @classmethod
    def normalise_identifier(cls, v: str) -> str:
        return v.strip()


class AbsenceRequest(BaseModel):
    is_absent: bool
    reason: Optional[str] = Field(default=None, max_length=500)
    confirm: bool = Field(
        default=False,
        description="Required when marking absent would clear assignments",
    )
    team: Optional[str] = Field(
        default=None, description="Team view the toggle comes from, if any",
    )


class AbsenceReasonRequest(BaseModel):
    reason: str = Field(..., max_length=500)


class EventNameRequest(BaseModel):
    event_name: Optional[str] = Field(default=None, max_length=255)


class RosterEntryResponse(BaseModel):
    date: str
    teams: dict[str, dict[str, list[str]]]
    absence: dict[str, dict[str, str]]
    eventName: Optional[str] = None
    updatedAt: Optional[str] = None


class StagedEditResponse(BaseModel):
    status: str = "staged"
    version: int
    entry: RosterEntryResponse


class AbsencePreviewResponse(BaseModel):
    date: str
    email: str
    conflicts: dict[str, list[str]]
    lines: list[str]
    requires_confirmation: bool


# ── Metadata Schemas ──

class TeamsUpdateRequest(BaseModel):
    teams: list[Team]


class PositionsUpdateRequest(BaseModel):
    positions: list[Position]


class UsersUpdateRequest(BaseModel):
    """``{uid: {field: value}}`` partial updates, applied in one batch."""
    updates: dict[str, dict[str, Any]] = Field(..., min_length=1)


class UserResponse(AppUser):
    id: str
