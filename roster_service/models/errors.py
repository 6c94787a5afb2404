# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain errors raised by the service layer and translated to HTTP by controllers.
"""

from typing import Optional


class RosterError(Exception):
    """Base class for roster domain errors."""

    kind: str = "roster_error"

    def to_detail(self) -> dict:
        return {"error": self.kind, "message": str(self)}


class AbsentConflict(RosterError):
    """The user is marked absent on the date and cannot be assigned."""

    kind = "absent_conflict"

    def __init__(self, date: str, identifier: str) -> None:
        super().__init__(f"'{identifier}' is marked absent on {date}")
        self.date = date
        self.identifier = identifier


class MaxConflictExceeded(RosterError):
    """The user already holds ``max_conflict`` positions in the team."""

    kind = "max_conflict_exceeded"

    def __init__(self, date: str, team: str, identifier: str, max_conflict: int) -> None:
        super().__init__(
            f"'{identifier}' already holds {max_conflict} position(s) "
            f"in team '{team}' on {date}"
        )
        self.date = date
        self.team = team
        self.identifier = identifier
        self.max_conflict = max_conflict


class DestructiveChangeRequiresConfirmation(RosterError):
    """Marking absent would clear assignments; the caller has to confirm first."""

    kind = "confirmation_required"

    def __init__(self, date: str, identifier: str, conflicts: dict[str, list[str]]) -> None:
        self.date = date
        self.identifier = identifier
        self.conflicts = conflicts
        self.lines = [
            f"{team}: {', '.join(positions)}" for team, positions in conflicts.items()
        ]
        super().__init__(
            f"Marking '{identifier}' absent on {date} clears: " + "; ".join(self.lines)
        )

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["conflicts"] = self.conflicts
        detail["lines"] = self.lines
        return detail


class RemoteSyncFailure(RosterError):
    """A write to the document store failed after all retries."""

    kind = "remote_sync_failure"

    def __init__(self, date: Optional[str], cause: Exception) -> None:
        target = f"roster entry {date}" if date else "roster batch"
        super().__init__(f"Failed to persist {target}: {cause}")
        self.date = date
        self.cause = cause


class FetchFailure(RosterError):
    """Reading teams / positions / users / roster from the store failed."""

    kind = "fetch_failure"

    def __init__(self, what: str, cause: Exception) -> None:
        super().__init__(f"Failed to load {what}: {cause}")
        self.what = what
        self.cause = cause
