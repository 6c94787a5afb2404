# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Assignment cycling — pure computation, no I/O, no metrics, no logging.

One click on a (date, team, identifier, position group) cell advances the
identifier round-robin through the group:

    None -> group[0] -> group[1] -> ... -> group[-1] -> None
"""

from typing import Optional

from roster_service.models.domain import RosterEntry, Team
from roster_service.models.errors import AbsentConflict, MaxConflictExceeded


def next_in_cycle(group: list[str], current: list[str]) -> Optional[str]:
    """Return the group member that follows the first one held in ``current``."""
    current_index = next(
        (i for i, name in enumerate(group) if name in current), None,
    )
    if current_index is None:
        return group[0] if group else None
    if current_index == len(group) - 1:
        return None
    return group[current_index + 1]


def cycle_assignment(
    entry: RosterEntry,
    team: Team,
    identifier: str,
    group: list[str],
) -> RosterEntry:
    """
    Return a copy of ``entry`` with ``identifier`` advanced one step through
    ``group`` within ``team``. The input entry is never mutated.

    Raises AbsentConflict / MaxConflictExceeded before anything changes.
    """
    if not group:
        raise ValueError("Position group must not be empty")

    current = entry.assignments_for(team.name, identifier)
    next_position = next_in_cycle(group, current)

    # Positions outside the group are carried forward untouched
    remaining = [name for name in current if name not in group]

    if next_position is not None:
        if entry.is_absent(identifier):
            raise AbsentConflict(entry.date, identifier)
        if len(remaining) >= team.max_conflict:
            raise MaxConflictExceeded(
                entry.date, team.name, identifier, team.max_conflict,
            )
        remaining.append(next_position)

    updated = entry.model_copy(deep=True)
    team_map = updated.teams.setdefault(team.name, {})
    if remaining:
        team_map[identifier] = remaining
    else:
        team_map.pop(identifier, None)
    if not team_map:
        del updated.teams[team.name]
    return updated
