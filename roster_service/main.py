# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Roster Service
==============
Team rostering for recurring events: admins cycle users through position
groups per date, mark absences, and save or discard their session edits.

Edits are applied optimistically to a local overlay and written to the
document store in the background; a bulk save merges the overlay into the
synced state.

Port: 8005
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roster_service.controllers import (
    dashboard_controller,
    dates_controller,
    metadata_controller,
    roster_controller,
    system_controller,
)
from roster_service.core.config import settings
from roster_service.core.database import engine
from roster_service.core.dependencies import (
    get_document_store,
    get_entry_store,
    get_metadata_service,
)
from roster_service.core.logging import get_logger
from roster_service.middleware import MetricsMiddleware, RequestIDMiddleware
from roster_service.models.errors import FetchFailure
from roster_service.services.sync_service import ROSTER_COLLECTION

logger = get_logger(__name__)


def load_roster() -> int:
    """Initial fetch: replace the synced entries with every stored roster document."""
    try:
        documents = get_document_store().get_all(ROSTER_COLLECTION)
    except Exception as exc:
        raise FetchFailure("roster", exc) from exc
    get_entry_store().load_snapshot(documents)
    return len(documents)


# ── Lifespan ──
@asynccontextmanager
async def lifespan(application: FastAPI):
    get_document_store().init_schema()
    if settings.SEED_DEFAULT_METADATA:
        get_metadata_service().seed_defaults()
    try:
        count = load_roster()
        logger.info("Roster loaded: entries=%d", count)
    except FetchFailure:
        logger.exception("Could not load roster, starting with an empty view")
    yield
    engine.dispose()
    logger.info("Shutting down — connection pool disposed")


# ── FastAPI App ──
app = FastAPI(
    title="Roster Service",
    description="Assigns team members to positions on recurring event dates.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(FetchFailure)
async def fetch_failure_handler(request: Request, exc: FetchFailure):
    logger.error("Store read failed: %s", exc)
    return JSONResponse(status_code=503, content={"detail": exc.to_detail()})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc)},
    )


app.include_router(system_controller.router)
app.include_router(roster_controller.router)
app.include_router(metadata_controller.router)
app.include_router(dates_controller.router)
app.include_router(dashboard_controller.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
