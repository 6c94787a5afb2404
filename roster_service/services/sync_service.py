# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Remote persistence of roster edits.

Each staged edit is pushed as a full-entry overwrite. Pushes for the same
date are serialised by a per-date lock, and a push whose staged version has
been superseded by a newer edit is skipped: the newer push carries the whole
entry anyway. Failed pushes are retried with exponential backoff; after the
last attempt the failure is recorded and logged, and the optimistic local
edit is kept (no rollback).
"""

import threading
import time
import uuid
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from roster_service.core.config import settings
from roster_service.core.logging import get_logger
from roster_service.metrics.prometheus import (
    SYNC_FAILURES,
    SYNC_LATENCY,
    SYNC_SKIPPED,
    SYNC_WRITES,
)
from roster_service.models.domain import RosterEntry
from roster_service.models.errors import RemoteSyncFailure
from roster_service.repositories.document_store import DocumentStore
from roster_service.repositories.entry_store import DirtyEntryStore
from roster_service.repositories.sync_failure_repository import SyncFailureRepository

logger = get_logger(__name__)

ROSTER_COLLECTION = "roster"


class RosterSyncService:
    """Pushes staged roster entries to the document store."""

    def __init__(
        self,
        store: DocumentStore,
        entry_store: DirtyEntryStore,
        failure_repo: SyncFailureRepository,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._entries = entry_store
        self._failures = failure_repo
        self._sleep = sleep
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, date: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(date)
            if lock is None:
                lock = self._locks[date] = threading.Lock()
            return lock

    # ── Per-edit push ──

    def push(self, date: str, version: int) -> bool:
        """
        Persist the current entry for ``date`` if staged edit ``version`` is
        still the latest. Never raises; returns True when a write happened.
        """
        with self._lock_for(date):
            if version < self._entries.version(date) or date not in self._entries.dirty_dates():
                SYNC_SKIPPED.inc()
                logger.info("Roster write skipped: date=%s, version=%d", date, version)
                return False

            entry = self._entries.resolve(date)
            start = time.time()
            try:
                self._write_with_retry(date, entry)
            except RemoteSyncFailure as exc:
                self._record_failure(date, version, exc)
                return False
            finally:
                SYNC_LATENCY.observe(time.time() - start)

            SYNC_WRITES.labels(status="ok").inc()
            if self._failures.resolve_date(date):
                logger.info("Roster write recovered: date=%s", date)
            return True

    def _write_with_retry(self, date: str, entry: RosterEntry) -> None:
        attempts = settings.SYNC_MAX_RETRIES + 1
        delay = settings.SYNC_RETRY_BACKOFF
        document = entry.to_document()
        for attempt in range(1, attempts + 1):
            try:
                self._store.set(ROSTER_COLLECTION, date, document)
                return
            except SQLAlchemyError as exc:
                if attempt == attempts:
                    raise RemoteSyncFailure(date, exc) from exc
                logger.warning(
                    "Roster write failed: date=%s, attempt=%d/%d, error=%s",
                    date, attempt, attempts, exc,
                )
                self._sleep(delay)
                delay *= 2

    def _record_failure(self, date: str, version: int, exc: RemoteSyncFailure) -> None:
        SYNC_WRITES.labels(status="failed").inc()
        SYNC_FAILURES.inc()
        self._failures.append({
            "failure_id": str(uuid.uuid4()),
            "date": date,
            "version": version,
            "error": str(exc.cause),
            "error_type": type(exc.cause).__name__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        logger.error("Roster write gave up: date=%s, error=%s", date, exc.cause)

    # ── Bulk save ──

    def save_all(self, entries: dict[str, RosterEntry]) -> int:
        """Write every entry in batches of at most BATCH_LIMIT documents."""
        dates = sorted(entries)
        written = 0
        try:
            for offset in range(0, len(dates), settings.BATCH_LIMIT):
                batch = self._store.batch()
                for date in dates[offset: offset + settings.BATCH_LIMIT]:
                    batch.set(ROSTER_COLLECTION, date, entries[date].to_document())
                written += batch.commit()
        except SQLAlchemyError as exc:
            logger.error("Roster save failed after %d document(s): %s", written, exc)
            raise RemoteSyncFailure(None, exc) from exc
        for date in dates:
            self._failures.resolve_date(date)
        return written

    # ── Discard ──

    def restore(self, baselines: dict[str, Optional[RosterEntry]]) -> list[str]:
        """
        Put the stored documents of discarded dates back to their baselines.
        A date without a baseline has its document deleted; a date whose
        document already matches is left alone. Holds every date lock, so a
        push still in flight lands before the restore. Failures are recorded
        and logged, never raised. Returns the dates that were rewritten.
        """
        dates = sorted(baselines)
        restored: list[str] = []
        with ExitStack() as stack:
            for date in dates:
                stack.enter_context(self._lock_for(date))
            try:
                changed = [d for d in dates if self._stored_entry(d) != baselines[d]]
                for offset in range(0, len(changed), settings.BATCH_LIMIT):
                    chunk = changed[offset: offset + settings.BATCH_LIMIT]
                    batch = self._store.batch()
                    for date in chunk:
                        baseline = baselines[date]
                        if baseline is None:
                            batch.delete(ROSTER_COLLECTION, date)
                        else:
                            batch.set(ROSTER_COLLECTION, date, baseline.to_document())
                    batch.commit()
                    restored.extend(chunk)
            except SQLAlchemyError as exc:
                for date in dates:
                    if date not in restored:
                        self._record_failure(
                            date, self._entries.version(date), RemoteSyncFailure(date, exc),
                        )
                return restored
        if restored:
            logger.info("Roster documents restored: dates=%d", len(restored))
        return restored

    def _stored_entry(self, date: str) -> Optional[RosterEntry]:
        document = self._store.get(ROSTER_COLLECTION, date)
        if document is None:
            return None
        return RosterEntry.model_validate({**document, "date": date})

    # ── Queries ──

    def list_failures(self, date: str | None = None) -> list[dict[str, Any]]:
        return self._failures.get_all(date=date)
