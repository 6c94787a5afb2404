# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from roster_service.core.config import settings
from roster_service.core.dependencies import (
    get_document_store,
    get_entry_store,
    get_failure_repo,
)

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe for Docker and orchestration."""
    entry_store = get_entry_store()
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "entries_count": entry_store.count(),
        "dirty_entries": len(entry_store.dirty_dates()),
        "sync_failures": get_failure_repo().count(),
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness probe — verifies the document store answers."""
    try:
        get_document_store().ping()
    except Exception as exc:
        raise HTTPException(status_code=503, detail=f"Document store unavailable: {exc}")
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "database": "connected",
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
