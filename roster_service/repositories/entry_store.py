# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Roster entries — synced state plus the optimistic dirty overlay.

``entries`` holds the last state confirmed by the document store. It changes
through the sync stream, a save or a discard. ``dirty_entries`` holds local
edits that have not been saved yet. ``baselines`` keeps what
``entries[date]`` held when a date first became dirty, so a discard can put
it back. Every read resolves ``dirty_entries[date]`` first, then
``entries[date]``. Callers always get deep copies, so the maps never alias.
"""

import threading
from typing import Any, Callable, Optional

from roster_service.models.domain import RosterEntry

Mutation = Callable[[RosterEntry], RosterEntry]


class DirtyEntryStore:
    """In-memory synced + dirty roster entry maps."""

    def __init__(self) -> None:
        self._entries: dict[str, RosterEntry] = {}
        self._dirty: dict[str, RosterEntry] = {}
        self._baselines: dict[str, Optional[RosterEntry]] = {}
        self._versions: dict[str, int] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def _resolve(self, date: str) -> Optional[RosterEntry]:
        entry = self._dirty.get(date)
        return entry if entry is not None else self._entries.get(date)

    def resolve(self, date: str) -> Optional[RosterEntry]:
        with self._lock:
            entry = self._resolve(date)
            return entry.model_copy(deep=True) if entry else None

    def resolve_range(
        self, start: Optional[str] = None, end: Optional[str] = None,
    ) -> list[RosterEntry]:
        with self._lock:
            dates = sorted(set(self._entries) | set(self._dirty))
            return [
                self._resolve(d).model_copy(deep=True)
                for d in dates
                if (start is None or d >= start) and (end is None or d <= end)
            ]

    def synced(self, date: str) -> Optional[RosterEntry]:
        with self._lock:
            entry = self._entries.get(date)
            return entry.model_copy(deep=True) if entry else None

    def dirty(self) -> dict[str, RosterEntry]:
        with self._lock:
            return {d: e.model_copy(deep=True) for d, e in self._dirty.items()}

    def dirty_dates(self) -> list[str]:
        with self._lock:
            return sorted(self._dirty)

    def has_changes(self) -> bool:
        return bool(self._dirty)

    def version(self, date: str) -> int:
        return self._versions.get(date, 0)

    def has_assignments(self, date: str) -> bool:
        entry = self.resolve(date.split("T")[0])
        return entry.has_assignments() if entry else False

    def is_absent(self, date: str, email: str) -> bool:
        entry = self.resolve(date)
        return bool(entry and entry.is_absent(email))

    def absence_reason(self, date: str, email: str) -> str:
        entry = self.resolve(date)
        if entry is None or email not in entry.absence:
            return ""
        return entry.absence[email].reason

    # ── Write ──

    def stage(self, date: str, mutate: Mutation) -> tuple[RosterEntry, int]:
        """
        Clone the resolved entry (or a fresh one), apply ``mutate`` to the
        clone and store the result as the dirty entry for ``date``.
        If ``mutate`` raises, nothing is staged.
        Returns (copy of the staged entry, staged version).
        """
        with self._lock:
            current = self._resolve(date)
            clone = current.model_copy(deep=True) if current else RosterEntry.empty(date)
            staged = mutate(clone)
            if date not in self._dirty:
                synced = self._entries.get(date)
                self._baselines[date] = synced.model_copy(deep=True) if synced else None
            self._dirty[date] = staged
            self._versions[date] = self._versions.get(date, 0) + 1
            return staged.model_copy(deep=True), self._versions[date]

    def apply_remote(self, date: str, data: Optional[dict[str, Any]]) -> None:
        """Sync-stream hook: replace (or drop) the synced entry for ``date``."""
        with self._lock:
            if data is None:
                self._entries.pop(date, None)
                return
            self._entries[date] = RosterEntry.model_validate({**data, "date": date})

    def load_snapshot(self, documents: dict[str, dict[str, Any]]) -> None:
        with self._lock:
            self._entries = {
                date: RosterEntry.model_validate({**data, "date": date})
                for date, data in documents.items()
            }

    def commit(self) -> dict[str, RosterEntry]:
        """Merge every dirty entry into the synced map and clear the overlay."""
        with self._lock:
            merged = self._dirty
            for date, entry in merged.items():
                # Keep the server stamp the save stream already delivered
                synced = self._entries.get(date)
                if synced is not None and synced.updated_at:
                    entry.updated_at = synced.updated_at
            self._entries.update(merged)
            self._dirty = {}
            self._baselines = {}
            return {d: e.model_copy(deep=True) for d, e in merged.items()}

    def discard(self) -> dict[str, Optional[RosterEntry]]:
        """
        Drop the overlay and put every dirty date back to its baseline.
        Background pushes may already have copied edits into ``entries``.
        Returns {date: baseline or None}, sorted by date.
        """
        with self._lock:
            restored: dict[str, Optional[RosterEntry]] = {}
            for date in sorted(self._dirty):
                baseline = self._baselines.get(date)
                if baseline is None:
                    self._entries.pop(date, None)
                else:
                    self._entries[date] = baseline
                restored[date] = baseline.model_copy(deep=True) if baseline else None
            self._dirty = {}
            self._baselines = {}
            return restored

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._dirty.clear()
            self._baselines.clear()
            self._versions.clear()

    def count(self) -> int:
        return len(set(self._entries) | set(self._dirty))
