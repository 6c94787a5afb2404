# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster editing commands.
Validates against metadata, applies the pure roster rules through the dirty
overlay, and records history and metrics. Every rule violation is raised
before anything is staged, so rejected edits never reach the remote layer.
"""

from typing import Any, Optional

from roster_service.core.logging import get_logger
from roster_service.metrics.prometheus import (
    ABSENCE_CHANGES,
    CONFLICTS_REJECTED,
    CYCLES_TOTAL,
    DIRTY_ENTRIES,
    SAVES_TOTAL,
)
from roster_service.models.domain import RosterEntry
from roster_service.models.errors import (
    AbsentConflict,
    DestructiveChangeRequiresConfirmation,
    MaxConflictExceeded,
    RemoteSyncFailure,
)
from roster_service.repositories.entry_store import DirtyEntryStore
from roster_service.repositories.history_repository import HistoryRepository
from roster_service.services import absence
from roster_service.services.cycle import cycle_assignment
from roster_service.services.metadata_service import MetadataService
from roster_service.services.positions import find_position, group_of
from roster_service.services.sync_service import RosterSyncService

logger = get_logger(__name__)


class RosterService:
    """Business logic for roster edits, save and discard."""

    def __init__(
        self,
        entry_store: DirtyEntryStore,
        metadata: MetadataService,
        sync: RosterSyncService,
        history_repo: HistoryRepository,
    ) -> None:
        self._entries = entry_store
        self._metadata = metadata
        self._sync = sync
        self._history = history_repo

    def _staged(self, entry: RosterEntry, version: int) -> dict[str, Any]:
        DIRTY_ENTRIES.set(len(self._entries.dirty_dates()))
        return {"entry": entry, "version": version}

    # ── Commands ──

    def cycle_assignment(
        self, date: str, team_name: str, identifier: str, position_name: str,
    ) -> dict[str, Any]:
        """
        Advance ``identifier`` one step through the group headed by
        ``position_name`` in ``team_name`` on ``date``.
        Raises KeyError / ValueError / AbsentConflict / MaxConflictExceeded.
        """
        team = self._metadata.get_team(team_name)
        if position_name not in team.position_names():
            raise KeyError(f"Team '{team_name}' has no position '{position_name}'")

        all_positions = self._metadata.list_positions()
        position = find_position(all_positions, position_name) or find_position(
            team.positions, position_name,
        )
        if position.is_custom and identifier not in position.custom_labels:
            raise ValueError(
                f"'{identifier}' is not a label of custom position '{position_name}'"
            )
        group = group_of(all_positions, position_name)

        try:
            entry, version = self._entries.stage(
                date, lambda current: cycle_assignment(current, team, identifier, group),
            )
        except (AbsentConflict, MaxConflictExceeded) as exc:
            CONFLICTS_REJECTED.labels(kind=exc.kind).inc()
            logger.info("Cycle rejected: date=%s, team=%s, reason=%s", date, team_name, exc)
            raise

        CYCLES_TOTAL.labels(team=team_name).inc()
        held = entry.assignments_for(team_name, identifier)
        self._history.record_event(
            "assignment_cycled",
            date,
            {"identifier": identifier, "group": group, "positions": held},
            team=team_name,
        )
        logger.info(
            "Assignment cycled: date=%s, team=%s, identifier=%s, positions=%s",
            date, team_name, identifier, held,
        )
        return self._staged(entry, version)

    def preview_absence(self, date: str, email: str) -> dict[str, Any]:
        """What marking ``email`` absent on ``date`` would clear."""
        conflicts = absence.find_conflicts(self._entries.resolve(date), email)
        return {
            "date": date,
            "email": email,
            "conflicts": conflicts,
            "lines": absence.format_conflicts(conflicts),
            "requires_confirmation": bool(conflicts),
        }

    def set_absence(
        self,
        date: str,
        email: str,
        is_absent: bool,
        reason: Optional[str] = None,
        confirm: bool = False,
        team_name: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Toggle absence. Marking absent while holding positions requires
        ``confirm=True``; without it DestructiveChangeRequiresConfirmation is
        raised and nothing changes.
        """
        if team_name is not None:
            team = self._metadata.get_team(team_name)
            if not team.allow_absence:
                raise PermissionError(f"Team '{team_name}' does not track absence")

        conflicts: dict[str, list[str]] = {}

        def apply(current: RosterEntry) -> RosterEntry:
            # Conflicts come from the entry being staged, under the store lock
            if is_absent:
                conflicts.update(absence.find_conflicts(current, email))
                if conflicts and not confirm:
                    raise DestructiveChangeRequiresConfirmation(date, email, dict(conflicts))
            return absence.set_absence(current, email, is_absent, reason)

        try:
            entry, version = self._entries.stage(date, apply)
        except DestructiveChangeRequiresConfirmation as exc:
            CONFLICTS_REJECTED.labels(kind=exc.kind).inc()
            raise

        action = "marked" if is_absent else "cleared"
        ABSENCE_CHANGES.labels(action=action).inc()
        self._history.record_event(
            f"absence_{action}",
            date,
            {"email": email, "reason": reason, "cleared_assignments": conflicts},
        )
        logger.info(
            "Absence %s: date=%s, email=%s, cleared_teams=%s",
            action, date, email, list(conflicts),
        )
        return self._staged(entry, version)

    def update_absence_reason(self, date: str, email: str, reason: str) -> dict[str, Any]:
        """Edit the reason of an existing absence. Raises ValueError if not absent."""
        entry, version = self._entries.stage(
            date, lambda current: absence.update_absence_reason(current, email, reason),
        )
        ABSENCE_CHANGES.labels(action="reason_updated").inc()
        self._history.record_event(
            "absence_reason_updated", date, {"email": email, "reason": reason},
        )
        return self._staged(entry, version)

    def set_event_name(self, date: str, event_name: Optional[str]) -> dict[str, Any]:
        name = (event_name or "").strip() or None

        def apply(current: RosterEntry) -> RosterEntry:
            current.event_name = name
            return current

        entry, version = self._entries.stage(date, apply)
        self._history.record_event("event_name_set", date, {"event_name": name})
        return self._staged(entry, version)

    def save(self) -> dict[str, Any]:
        """
        Persist every dirty entry, then merge them into the synced map.
        On RemoteSyncFailure the dirty overlay is kept so the save can be retried.
        """
        dirty = self._entries.dirty()
        if not dirty:
            return {"status": "nothing_to_save", "saved": []}
        try:
            self._sync.save_all(dirty)
        except RemoteSyncFailure:
            SAVES_TOTAL.labels(status="failed").inc()
            raise
        self._entries.commit()
        DIRTY_ENTRIES.set(0)
        SAVES_TOTAL.labels(status="ok").inc()
        saved = sorted(dirty)
        self._history.record_event("roster_saved", None, {"dates": saved})
        logger.info("Roster saved: dates=%d", len(saved))
        return {"status": "saved", "saved": saved}

    def discard(self) -> dict[str, Any]:
        """
        Drop every unsaved edit. Edits already pushed in the background are
        written back to their pre-edit state in the store.
        """
        baselines = self._entries.discard()
        DIRTY_ENTRIES.set(0)
        dropped = list(baselines)
        if dropped:
            self._sync.restore(baselines)
            self._history.record_event("roster_discarded", None, {"dates": dropped})
            logger.info("Roster edits discarded: dates=%d", len(dropped))
        return {"status": "discarded", "discarded": dropped}

    # ── Queries ──

    def get_entry(self, date: str) -> RosterEntry:
        entry = self._entries.resolve(date)
        if entry is None:
            raise KeyError(f"No roster entry for {date}")
        return entry

    def list_entries(
        self, start: Optional[str] = None, end: Optional[str] = None,
    ) -> list[RosterEntry]:
        return self._entries.resolve_range(start, end)

    def dirty_summary(self) -> dict[str, Any]:
        dates = self._entries.dirty_dates()
        return {"has_changes": bool(dates), "dates": dates, "count": len(dates)}
