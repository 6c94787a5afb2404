# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Teams, positions and users metadata.
Thin HTTP layer — delegates ALL logic to MetadataService.
"""

from fastapi import APIRouter, Depends, HTTPException

from roster_service.core.dependencies import get_metadata_service
from roster_service.models.domain import AppUser
from roster_service.models.errors import RemoteSyncFailure
from roster_service.schemas.roster import (
    PositionsUpdateRequest,
    TeamsUpdateRequest,
    UserResponse,
    UsersUpdateRequest,
)
from roster_service.services.metadata_service import MetadataService

router = APIRouter(prefix="/api/v1", tags=["Metadata"])


# ── Teams ──

@router.get("/teams")
def list_teams(service: MetadataService = Depends(get_metadata_service)):
    return [t.to_document() for t in service.list_teams()]


@router.get("/teams/{team}")
def get_team(team: str, service: MetadataService = Depends(get_metadata_service)):
    try:
        return service.get_team(team).to_document()
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/teams")
def replace_teams(
    payload: TeamsUpdateRequest,
    service: MetadataService = Depends(get_metadata_service),
):
    """Replace the whole team list."""
    try:
        return [t.to_document() for t in service.replace_teams(payload.teams)]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/teams/{team}/positions/{position}/users", response_model=list[UserResponse])
def users_for_position(
    team: str,
    position: str,
    service: MetadataService = Depends(get_metadata_service),
):
    """Users whose profile says they can fill ``position`` in ``team``."""
    return service.users_for_position(team, position)


# ── Positions ──

@router.get("/positions")
def list_positions(service: MetadataService = Depends(get_metadata_service)):
    return [p.to_document() for p in service.list_positions()]


@router.put("/positions")
def replace_positions(
    payload: PositionsUpdateRequest,
    service: MetadataService = Depends(get_metadata_service),
):
    """Replace the position catalogue; the parent hierarchy is validated first."""
    try:
        return [p.to_document() for p in service.replace_positions(payload.positions)]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/positions/{position}/group")
def get_position_group(
    position: str,
    service: MetadataService = Depends(get_metadata_service),
):
    """The cycle group of a position: itself followed by its children."""
    try:
        return {"position": position, "group": service.position_group(position)}
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── Users ──

@router.get("/users", response_model=list[UserResponse])
def list_users(service: MetadataService = Depends(get_metadata_service)):
    return service.list_users()


@router.put("/users/{uid}", response_model=UserResponse)
def put_user(
    uid: str,
    payload: AppUser,
    service: MetadataService = Depends(get_metadata_service),
):
    """Create or replace one user profile."""
    return service.put_user(uid, payload)


@router.patch("/users")
def bulk_update_users(
    payload: UsersUpdateRequest,
    service: MetadataService = Depends(get_metadata_service),
):
    """Apply partial updates to many users in batched writes."""
    try:
        updated = service.bulk_update_users(payload.updates)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RemoteSyncFailure as e:
        raise HTTPException(status_code=502, detail=e.to_detail())
    return {"status": "updated", "updated": updated}
