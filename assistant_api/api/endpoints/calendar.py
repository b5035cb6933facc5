from fastapi import APIRouter, Depends

from ..dependencies import RateLimitGuard, get_calendar_service
from ..schemas import CalendarSyncRequest, CalendarSyncResponse
from ...exceptions import ValidationError
from ...services.calendar_service import CalendarService, TripPlan

router = APIRouter()


@router.post("/calendar-sync", response_model=CalendarSyncResponse)
async def calendar_sync(
    request: CalendarSyncRequest,
    _rate_limit=Depends(RateLimitGuard("calendar")),
    calendar_service: CalendarService = Depends(get_calendar_service),
):
    """Export a trip plan as an .ics attachment and a Google Calendar link"""
    plan = request.plan
    if plan is None or not (plan.title or "").strip() or not (plan.destination or "").strip():
        raise ValidationError("Missing plan data")

    export = calendar_service.export_plan(TripPlan(
        title=plan.title.strip(),
        destination=plan.destination.strip(),
        days=plan.days,
        notes=plan.notes,
        currency=plan.currency,
        total_budget=plan.total_budget,
    ))

    return CalendarSyncResponse(
        success=True,
        file_name=export.file_name,
        ics_base64=export.ics_base64,
        google_calendar_url=export.google_calendar_url,
    )
