# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Remote sync failures.
Bounded append-only log so failed writes stay visible until acknowledged.
"""

from typing import Any, Optional

from roster_service.core.config import settings


class SyncFailureRepository:
    """In-memory sync failure log (bounded ring buffer)."""

    def __init__(self) -> None:
        self._log: list[dict[str, Any]] = []

    def get_all(self, date: Optional[str] = None) -> list[dict[str, Any]]:
        if date:
            return [f for f in self._log if f["date"] == date]
        return list(self._log)

    def count(self) -> int:
        return len(self._log)

    def append(self, record: dict[str, Any]) -> None:
        self._log.append(record)
        if len(self._log) > settings.MAX_SYNC_FAILURES:
            del self._log[: len(self._log) - settings.MAX_SYNC_FAILURES]

    def resolve_date(self, date: str) -> int:
        """Drop failures for ``date`` once a later write for it succeeded."""
        before = len(self._log)
        self._log = [f for f in self._log if f["date"] != date]
        return before - len(self._log)

    def clear(self) -> None:
        self._log.clear()
