# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Absence rules — pure computation.

Absence and assignment are mutually exclusive per user per date: marking a
user absent removes them from every team on that date, and un-marking does
not bring the assignments back.
"""

from typing import Optional

from roster_service.models.domain import AbsenceRecord, RosterEntry


def find_conflicts(entry: Optional[RosterEntry], email: str) -> dict[str, list[str]]:
    """Return ``{team: positions}`` for every team where ``email`` holds a position."""
    if entry is None:
        return {}
    return {
        team: list(team_map[email])
        for team, team_map in entry.teams.items()
        if team_map.get(email)
    }


def format_conflicts(conflicts: dict[str, list[str]]) -> list[str]:
    return [f"{team}: {', '.join(positions)}" for team, positions in conflicts.items()]


def set_absence(
    entry: RosterEntry,
    email: str,
    is_absent: bool,
    reason: Optional[str] = None,
) -> RosterEntry:
    """Return a copy of ``entry`` with the absence flag for ``email`` applied."""
    updated = entry.model_copy(deep=True)

    if not is_absent:
        updated.absence.pop(email, None)
        return updated

    if reason is None:
        previous = entry.absence.get(email)
        reason = previous.reason if previous else ""
    updated.absence[email] = AbsenceRecord(reason=reason)
    for team in list(updated.teams):
        updated.teams[team].pop(email, None)
        if not updated.teams[team]:
            del updated.teams[team]
    return updated


def update_absence_reason(entry: RosterEntry, email: str, reason: str) -> RosterEntry:
    """Change the reason in place. Only allowed while the user is absent."""
    if not entry.is_absent(email):
        raise ValueError(f"'{email}' is not marked absent on {entry.date}")
    updated = entry.model_copy(deep=True)
    updated.absence[email] = AbsenceRecord(reason=reason)
    return updated
