# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Per-date dashboard and the copy-paste share text.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from roster_service.core.dependencies import get_dashboard_service
from roster_service.schemas.roster import validate_date_key
from roster_service.services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/v1", tags=["Dashboard"])


def _checked(value: str) -> str:
    try:
        return validate_date_key(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/dashboard")
def dates_with_assignments(
    teams: Optional[str] = None,
    service: DashboardService = Depends(get_dashboard_service),
):
    """Upcoming dates on which the given teams (all when omitted) have assignments."""
    names = [t.strip() for t in teams.split(",") if t.strip()] if teams else None
    return {"dates": service.dates_with_assignments(names)}


@router.get("/dashboard/{date}")
def get_dashboard(
    date: str,
    teams: Optional[str] = None,
    service: DashboardService = Depends(get_dashboard_service),
):
    names = [t.strip() for t in teams.split(",") if t.strip()] if teams else None
    return service.summary(_checked(date), names)


@router.get("/dashboard/{date}/share/{team}", response_class=PlainTextResponse)
def share_text(
    date: str,
    team: str,
    service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return service.share_text(_checked(date), team)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
