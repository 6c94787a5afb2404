# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Document store — JSON documents addressed by (collection, id).

Full-document overwrite only; no field patches. Every committed change is
pushed to the collection's subscribers as ``(doc_id, data)`` (``data`` is
None for a delete), which is how synced roster state follows the backend.
"""

import json
import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from roster_service.core.config import settings
from roster_service.core.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[str, Optional[dict[str, Any]]], None]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class WriteBatch:
    """Atomic multi-document set/delete, capped at BATCH_LIMIT operations."""

    def __init__(self, store: "DocumentStore", limit: int) -> None:
        self._store = store
        self._limit = limit
        self._ops: list[tuple[str, str, str, Optional[dict[str, Any]]]] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._ops)

    def _add(self, op: str, collection: str, doc_id: str, data: Optional[dict[str, Any]]) -> None:
        if self._committed:
            raise RuntimeError("Batch already committed")
        if len(self._ops) >= self._limit:
            raise ValueError(f"Batch limit of {self._limit} operations exceeded")
        self._ops.append((op, collection, doc_id, data))

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._add("set", collection, doc_id, data)

    def delete(self, collection: str, doc_id: str) -> None:
        self._add("delete", collection, doc_id, None)

    def commit(self) -> int:
        self._committed = True
        return self._store._apply_ops(self._ops)


class DocumentStore:
    """SQLAlchemy-backed document store with in-process change subscriptions."""

    def __init__(self, engine: Engine, batch_limit: Optional[int] = None) -> None:
        self._engine = engine
        self._batch_limit = batch_limit or settings.BATCH_LIMIT
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._lock = threading.RLock()

    # ── Schema ──

    def init_schema(self) -> None:
        with self._engine.begin() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection VARCHAR(64) NOT NULL,
                    doc_id VARCHAR(255) NOT NULL,
                    data TEXT NOT NULL,
                    updated_at VARCHAR(64) NOT NULL,
                    PRIMARY KEY (collection, doc_id)
                )
            """))

    def ping(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    # ── Read ──

    def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        with self._lock, self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT data FROM documents WHERE collection = :c AND doc_id = :id"),
                {"c": collection, "id": doc_id},
            ).fetchone()
        return json.loads(row[0]) if row else None

    def get_all(self, collection: str) -> dict[str, dict[str, Any]]:
        with self._lock, self._engine.connect() as conn:
            rows = conn.execute(
                text("SELECT doc_id, data FROM documents WHERE collection = :c ORDER BY doc_id"),
                {"c": collection},
            ).fetchall()
        return {row[0]: json.loads(row[1]) for row in rows}

    # ── Write ──

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Overwrite the whole document. The store stamps ``updatedAt``."""
        batch = self.batch()
        batch.set(collection, doc_id, data)
        batch.commit()
        return self.get(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> None:
        batch = self.batch()
        batch.delete(collection, doc_id)
        batch.commit()

    def batch(self) -> WriteBatch:
        return WriteBatch(self, self._batch_limit)

    def _apply_ops(self, ops: list[tuple[str, str, str, Optional[dict[str, Any]]]]) -> int:
        changes: list[tuple[str, str, Optional[dict[str, Any]]]] = []
        with self._lock:
            with self._engine.begin() as conn:
                for op, collection, doc_id, data in ops:
                    if op == "delete":
                        conn.execute(
                            text("DELETE FROM documents WHERE collection = :c AND doc_id = :id"),
                            {"c": collection, "id": doc_id},
                        )
                        changes.append((collection, doc_id, None))
                        continue
                    stamp = _now_iso()
                    document = {**data, "updatedAt": stamp}
                    conn.execute(
                        text("""
                            INSERT INTO documents (collection, doc_id, data, updated_at)
                            VALUES (:c, :id, :data, :ts)
                            ON CONFLICT (collection, doc_id)
                            DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
                        """),
                        {"c": collection, "id": doc_id,
                         "data": json.dumps(document, ensure_ascii=False), "ts": stamp},
                    )
                    changes.append((collection, doc_id, document))
        for collection, doc_id, document in changes:
            self._notify(collection, doc_id, document)
        return len(changes)

    # ── Subscriptions ──

    def subscribe(self, collection: str, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners[collection].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[collection]:
                self._listeners[collection].remove(listener)

        return unsubscribe

    def _notify(self, collection: str, doc_id: str, document: Optional[dict[str, Any]]) -> None:
        for listener in list(self._listeners[collection]):
            try:
                listener(doc_id, document)
            except Exception as exc:
                logger.warning(
                    "Listener failed: collection=%s, doc=%s, error=%s",
                    collection, doc_id, exc,
                )

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock, self._engine.begin() as conn:
            conn.execute(text("DELETE FROM documents"))
