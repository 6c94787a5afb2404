# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Roster entries, assignment cycling, absence, save / discard.
Thin HTTP layer — delegates ALL logic to RosterService. Accepted edits are
staged locally and their remote write is scheduled as a background task.
"""

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from roster_service.core.dependencies import (
    get_history_repo,
    get_roster_service,
    get_sync_service,
)
from roster_service.models.errors import (
    AbsentConflict,
    DestructiveChangeRequiresConfirmation,
    MaxConflictExceeded,
    RemoteSyncFailure,
)
from roster_service.repositories.history_repository import HistoryRepository
from roster_service.schemas.roster import (
    AbsencePreviewResponse,
    AbsenceReasonRequest,
    AbsenceRequest,
    CycleRequest,
    EventNameRequest,
    RosterEntryResponse,
    StagedEditResponse,
    validate_date_key,
)
from roster_service.services.roster_service import RosterService
from roster_service.services.sync_service import RosterSyncService

router = APIRouter(prefix="/api/v1", tags=["Roster"])


def _check_date(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return validate_date_key(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _staged(
    result: dict[str, Any],
    date: str,
    background_tasks: BackgroundTasks,
    sync: RosterSyncService,
) -> dict[str, Any]:
    background_tasks.add_task(sync.push, date, result["version"])
    return {
        "status": "staged",
        "version": result["version"],
        "entry": result["entry"].to_document(),
    }


# ── Session state ──

@router.get("/roster/dirty")
def get_dirty(service: RosterService = Depends(get_roster_service)):
    """Dates with unsaved local edits."""
    return service.dirty_summary()


@router.post("/roster/save")
def save_roster(service: RosterService = Depends(get_roster_service)):
    """Persist every unsaved edit and merge it into the synced state."""
    try:
        return service.save()
    except RemoteSyncFailure as e:
        raise HTTPException(status_code=502, detail=e.to_detail())


@router.post("/roster/discard")
def discard_roster(service: RosterService = Depends(get_roster_service)):
    """Drop every unsaved edit, reverting reads to the synced state."""
    return service.discard()


@router.get("/roster/sync/failures")
def list_sync_failures(
    date: Optional[str] = None,
    sync: RosterSyncService = Depends(get_sync_service),
):
    """Remote writes that failed after all retries."""
    return sync.list_failures(date=_check_date(date))


@router.get("/roster/history")
def get_roster_history(
    date: Optional[str] = None,
    event_type: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, description="Max results"),
    history_repo: HistoryRepository = Depends(get_history_repo),
):
    """Audit log for roster edits."""
    return history_repo.get_all(date=_check_date(date), event_type=event_type, limit=limit)


# ── Entries ──

@router.get("/roster", response_model=list[RosterEntryResponse])
def list_entries(
    start: Optional[str] = None,
    end: Optional[str] = None,
    service: RosterService = Depends(get_roster_service),
):
    """Resolved entries (unsaved edits shadow synced ones), ascending by date."""
    return [e.to_document() for e in service.list_entries(_check_date(start), _check_date(end))]


@router.get("/roster/{date}", response_model=RosterEntryResponse)
def get_entry(
    date: str,
    service: RosterService = Depends(get_roster_service),
):
    """Resolved entry for one date."""
    _check_date(date)
    try:
        return service.get_entry(date).to_document()
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── Edits ──

@router.post("/roster/{date}/cycle", response_model=StagedEditResponse)
def cycle_assignment(
    date: str,
    payload: CycleRequest,
    background_tasks: BackgroundTasks,
    service: RosterService = Depends(get_roster_service),
    sync: RosterSyncService = Depends(get_sync_service),
):
    """Advance a user (or custom label) one step through a position group."""
    _check_date(date)
    try:
        result = service.cycle_assignment(
            date=date,
            team_name=payload.team,
            identifier=payload.identifier,
            position_name=payload.position,
        )
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (AbsentConflict, MaxConflictExceeded) as e:
        raise HTTPException(status_code=409, detail=e.to_detail())
    return _staged(result, date, background_tasks, sync)


@router.get("/roster/{date}/absence/{email}/conflicts", response_model=AbsencePreviewResponse)
def preview_absence(
    date: str,
    email: str,
    service: RosterService = Depends(get_roster_service),
):
    """Assignments that marking this user absent would clear."""
    _check_date(date)
    return service.preview_absence(date, email)


@router.put("/roster/{date}/absence/{email}", response_model=StagedEditResponse)
def set_absence(
    date: str,
    email: str,
    payload: AbsenceRequest,
    background_tasks: BackgroundTasks,
    service: RosterService = Depends(get_roster_service),
    sync: RosterSyncService = Depends(get_sync_service),
):
    """Mark a user absent (clearing their assignments) or present again."""
    _check_date(date)
    try:
        result = service.set_absence(
            date=date,
            email=email,
            is_absent=payload.is_absent,
            reason=payload.reason,
            confirm=payload.confirm,
            team_name=payload.team,
        )
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except DestructiveChangeRequiresConfirmation as e:
        raise HTTPException(status_code=409, detail=e.to_detail())
    return _staged(result, date, background_tasks, sync)


@router.patch("/roster/{date}/absence/{email}", response_model=StagedEditResponse)
def update_absence_reason(
    date: str,
    email: str,
    payload: AbsenceReasonRequest,
    background_tasks: BackgroundTasks,
    service: RosterService = Depends(get_roster_service),
    sync: RosterSyncService = Depends(get_sync_service),
):
    """Edit the reason of an existing absence."""
    _check_date(date)
    try:
        result = service.update_absence_reason(date, email, payload.reason)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _staged(result, date, background_tasks, sync)


@router.put("/roster/{date}/event-name", response_model=StagedEditResponse)
def set_event_name(
    date: str,
    payload: EventNameRequest,
    background_tasks: BackgroundTasks,
    service: RosterService = Depends(get_roster_service),
    sync: RosterSyncService = Depends(get_sync_service),
):
    """Set or clear the free-text event label of a date."""
    _check_date(date)
    result = service.set_event_name(date, payload.event_name)
    return _staged(result, date, background_tasks, sync)
