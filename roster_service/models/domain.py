# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.

Attribute names are snake_case; the document store and the HTTP API use the
camelCase aliases (``eventName``, ``maxConflict``, ...).
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Weekday = Literal[
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
]

# Python's date.weekday(): Monday == 0
WEEKDAY_INDEX: dict[str, int] = {
    "Monday": 0,
    "Tuesday": 1,
    "Wednesday": 2,
    "Thursday": 3,
    "Friday": 4,
    "Saturday": 5,
    "Sunday": 6,
}

# identifier (email, or label for custom positions) -> held position names
TeamAssignments = dict[str, list[str]]


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Position(_Document):
    """A rosterable position. Children point at their head via ``parent_id``."""
    name: str = Field(..., min_length=1, max_length=255)
    emoji: str = ""
    colour: str = ""
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    sort_by_gender: bool = Field(default=False, alias="sortByGender")
    is_custom: bool = Field(default=False, alias="isCustom")
    custom_labels: list[str] = Field(default_factory=list, alias="customLabels")


class Team(_Document):
    name: str = Field(..., min_length=1, max_length=255)
    emoji: str = ""
    positions: list[Position] = Field(default_factory=list)
    preferred_days: list[Weekday] = Field(default_factory=list, alias="preferredDays")
    max_conflict: int = Field(default=1, alias="maxConflict")
    allow_absence: bool = Field(default=True, alias="allowAbsence")

    @field_validator("max_conflict", mode="before")
    @classmethod
    def normalise_max_conflict(cls, v):
        # Stored documents may carry 0 / null for "unset"
        if not v or int(v) < 1:
            return 1
        return int(v)

    @field_validator("positions", "preferred_days", mode="before")
    @classmethod
    def default_lists(cls, v):
        return v or []

    def position_names(self) -> list[str]:
        return [p.name for p in self.positions]


class AppUser(_Document):
    name: Optional[str] = None
    email: Optional[str] = None
    teams: list[str] = Field(default_factory=list)
    team_positions: dict[str, list[str]] = Field(
        default_factory=dict, alias="teamPositions",
    )
    is_active: bool = Field(default=True, alias="isActive")
    is_approved: bool = Field(default=False, alias="isApproved")
    is_admin: bool = Field(default=False, alias="isAdmin")
    gender: str = ""
    indexed_assignments: list[str] = Field(
        default_factory=list, alias="indexedAssignments",
    )


def index_assignments(team_positions: dict[str, list[str]]) -> list[str]:
    """Flatten ``{team: [pos, ...]}`` into ``["team|pos", ...]`` lookup keys."""
    return [
        f"{team}|{position}"
        for team, positions in team_positions.items()
        for position in positions
    ]


class AbsenceRecord(_Document):
    reason: str = ""


class RosterEntry(_Document):
    """One roster document per calendar date (``date`` is ``YYYY-MM-DD``)."""
    date: str
    teams: dict[str, TeamAssignments] = Field(default_factory=dict)
    absence: dict[str, AbsenceRecord] = Field(default_factory=dict)
    event_name: Optional[str] = Field(default=None, alias="eventName")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    @classmethod
    def empty(cls, date: str) -> "RosterEntry":
        return cls(date=date)

    def assignments_for(self, team: str, identifier: str) -> list[str]:
        return list(self.teams.get(team, {}).get(identifier, []))

    def has_assignments(self) -> bool:
        return any(
            len(positions) > 0
            for team_map in self.teams.values()
            for positions in team_map.values()
        )

    def is_absent(self, identifier: str) -> bool:
        return identifier in self.absence
