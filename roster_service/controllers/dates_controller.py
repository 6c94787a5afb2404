# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Which calendar dates a team's roster shows.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from roster_service.core.config import settings
from roster_service.core.dependencies import get_metadata_service
from roster_service.schemas.roster import validate_date_key
from roster_service.services import dates as roster_dates
from roster_service.services.metadata_service import MetadataService

router = APIRouter(prefix="/api/v1", tags=["Dates"])


def _preferred_days(team: str, service: MetadataService) -> list[str]:
    try:
        return service.get_team(team).preferred_days
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _checked(value: str) -> str:
    try:
        return validate_date_key(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/teams/{team}/dates")
def upcoming_dates(
    team: str,
    year: Optional[int] = Query(default=None, ge=1, le=9999),
    end_year: Optional[int] = Query(default=None, ge=1, le=9999),
    service: MetadataService = Depends(get_metadata_service),
):
    """
    Dates on the team's preferred weekdays, from today to the end of the
    year, or across ``year``..``end_year`` when a year is given.
    """
    days = _preferred_days(team, service)
    if end_year is not None and year is not None and end_year < year:
        raise HTTPException(status_code=400, detail="end_year must not precede year")
    return {
        "team": team,
        "preferred_days": days,
        "dates": roster_dates.upcoming(days, start_year=year, end_year=end_year),
    }


@router.get("/teams/{team}/dates/previous")
def previous_dates(
    team: str,
    before: str,
    count: int = Query(default=settings.DEFAULT_PREVIOUS_COUNT, ge=1, le=366),
    service: MetadataService = Depends(get_metadata_service),
):
    """Up to ``count`` matching dates strictly before ``before``."""
    days = _preferred_days(team, service)
    return {
        "team": team,
        "dates": roster_dates.previous(days, _checked(before), count),
    }


@router.get("/teams/{team}/dates/next-year")
def next_year_dates(
    team: str,
    after: str,
    service: MetadataService = Depends(get_metadata_service),
):
    """Every matching date of the year following ``after``."""
    days = _preferred_days(team, service)
    return {
        "team": team,
        "dates": roster_dates.next_year(days, _checked(after)),
    }
