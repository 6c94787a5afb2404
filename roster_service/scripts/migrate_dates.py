# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Shift every roster document one day forward (or back with --rollback).

Each document is rewritten under its new date key with ``date`` updated, and
the old key is deleted. Writes are committed in batches of at most
BATCH_LIMIT operations.

Usage: python -m roster_service.scripts.migrate_dates [--rollback]
"""

import argparse
import sys
from datetime import timedelta
from typing import Optional

from roster_service.core.config import settings
from roster_service.core.database import engine
from roster_service.core.logging import get_logger
from roster_service.repositories.document_store import DocumentStore
from roster_service.services.dates import parse_date_key
from roster_service.services.sync_service import ROSTER_COLLECTION

logger = get_logger(__name__)


def shifted_key(date_key: str, days: int) -> str:
    return (parse_date_key(date_key) + timedelta(days=days)).isoformat()


def migrate(store: DocumentStore, rollback: bool = False) -> int:
    """Move every roster document by one day. Returns the number of documents moved."""
    shift = -1 if rollback else 1
    documents = store.get_all(ROSTER_COLLECTION)
    logger.info(
        "Date migration started: direction=%s, documents=%d",
        "backward" if rollback else "forward", len(documents),
    )
    if not documents:
        logger.info("No documents to migrate")
        return 0

    moves = {old: shifted_key(old, shift) for old in documents}
    targets = set(moves.values())

    ops: list[tuple[str, str, Optional[dict]]] = []
    for old, new in moves.items():
        data = {k: v for k, v in documents[old].items() if k != "updatedAt"}
        ops.append(("set", new, {**data, "date": new}))
    # A key that is also some other document's target was just rewritten
    for old in moves:
        if old not in targets:
            ops.append(("delete", old, None))

    for offset in range(0, len(ops), settings.BATCH_LIMIT):
        batch = store.batch()
        for op, doc_id, data in ops[offset: offset + settings.BATCH_LIMIT]:
            if op == "set":
                batch.set(ROSTER_COLLECTION, doc_id, data)
            else:
                batch.delete(ROSTER_COLLECTION, doc_id)
        batch.commit()
        logger.info("Batch committed: operations=%d", len(batch))

    logger.info("Date migration finished: documents=%d", len(moves))
    return len(moves)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Shift all roster dates by one day")
    ap.add_argument(
        "-r", "--rollback", action="store_true",
        help="Shift one day backward instead of forward",
    )
    return ap.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    store = DocumentStore(engine)
    try:
        migrate(store, rollback=args.rollback)
    except Exception:
        logger.exception("Date migration failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
