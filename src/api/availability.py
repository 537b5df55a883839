"""
Public availability API endpoints.

Provides the data the booking form needs:
- Available start times for a specialist, date and service
- Batch availability for a range of dates (calendar view)
- Resolved working window of a date
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from api.responses import (
    AvailableTimesResponse, BatchAvailableTimesResponse, CamelModel,
    DateAvailabilityResponse, DayStatusResponse,
)
from core.database import get_db
from services import AvailabilityService, ScheduleResolutionService
from utils.datetime_utils import clinic_now, parse_date_string
from utils.schedule_queries import fetch_day_snapshot, get_service_duration
from utils.specialist_helpers import verify_specialist_exists

logger = logging.getLogger(__name__)

router = APIRouter()


def _service_duration(db: Session, service_id: Optional[str]) -> int:
    try:
        return get_service_duration(db, service_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


class BatchAvailableTimesRequest(CamelModel):
    """Request model for batch availability."""
    specialist_id: str
    dates: List[str]  # Format: "YYYY-MM-DD"
    service_id: Optional[str] = None


@router.get("/available-times", summary="Get available start times", response_model=AvailableTimesResponse)
async def get_available_times(
    specialist_id: str = Query(..., alias="specialistId"),
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    service_id: Optional[str] = Query(None, alias="serviceId"),
    db: Session = Depends(get_db)
) -> AvailableTimesResponse:
    """
    Get the bookable start times of a specialist on a date.

    Returns an empty list when the date is closed, the specialist does not
    work that day, the service is not offered that day or the date is outside
    the booking horizon. Starts closer than the minimum lead time are left out.
    """
    target_date = parse_date_string(date)
    verify_specialist_exists(db, specialist_id)

    duration = _service_duration(db, service_id)
    snapshot = fetch_day_snapshot(db, specialist_id, target_date)
    times = AvailabilityService.get_available_times(snapshot, duration, service_id, now=clinic_now())

    logger.debug(f"{len(times)} available start(s) for specialist {specialist_id} on {date}")
    return AvailableTimesResponse(available_times=times)


@router.post("/available-times/batch", summary="Get available start times for several dates",
             response_model=BatchAvailableTimesResponse)
async def get_batch_available_times(
    request: BatchAvailableTimesRequest,
    db: Session = Depends(get_db)
) -> BatchAvailableTimesResponse:
    """Get the bookable start times for each requested date, in request order."""
    dates = AvailabilityService.validate_batch_dates(request.dates)
    verify_specialist_exists(db, request.specialist_id)

    duration = _service_duration(db, request.service_id)
    now = clinic_now()
    results: List[DateAvailabilityResponse] = []
    for date_str in dates:
        snapshot = fetch_day_snapshot(db, request.specialist_id, parse_date_string(date_str))
        results.append(DateAvailabilityResponse(
            date=date_str,
            available_times=AvailabilityService.get_available_times(snapshot, duration, request.service_id, now=now),
        ))

    return BatchAvailableTimesResponse(results=results)


@router.get("/specialists/{specialist_id}/day/{date}", summary="Get the resolved working window of a date",
            response_model=DayStatusResponse)
async def get_day_status(
    specialist_id: str,
    date: str,
    db: Session = Depends(get_db)
) -> DayStatusResponse:
    """Resolve which window applies on a date: closure, exception or weekly schedule."""
    target_date = parse_date_string(date)
    verify_specialist_exists(db, specialist_id)

    snapshot = fetch_day_snapshot(db, specialist_id, target_date)
    day = ScheduleResolutionService.resolve_snapshot(snapshot)

    if day.is_blocked:
        return DayStatusResponse(
            date=date,
            status="blocked",
            source=day.source.value,
            reason=day.reason,
        )

    window = day.window
    return DayStatusResponse(
        date=date,
        status="active",
        source=day.source.value,
        **window.to_dict(),
        allowed_services=list(window.allowed_services),
    )
