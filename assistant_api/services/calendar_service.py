"""
Trip-plan calendar export: an RFC 5545 VEVENT and a Google Calendar link
"""

import base64
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from urllib.parse import urlencode

import structlog

from ..utils.string_utils import slugify

logger = structlog.get_logger(__name__)

GOOGLE_CALENDAR_RENDER_URL = "https://calendar.google.com/calendar/render"
PRODID = "-//Voice Assistant//Trip Planner//EN"
UID_DOMAIN = "voice-assistant"
DEFAULT_FILE_NAME = "trip-plan"
EVENT_START_HOUR_UTC = 9
MAX_TRIP_DAYS = 3650


@dataclass(frozen=True)
class TripPlan:
    title: str
    destination: str
    days: Optional[Union[float, int]] = None
    notes: Optional[str] = None
    currency: Optional[str] = None
    total_budget: Optional[Union[float, int, str]] = None


@dataclass(frozen=True)
class CalendarEvent:
    title: str
    description: str
    location: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class CalendarExport:
    file_name: str
    ics: str
    ics_base64: str
    google_calendar_url: str


def next_morning_utc(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    tomorrow = now.date() + timedelta(days=1)
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day, EVENT_START_HOUR_UTC, 0, 0, tzinfo=timezone.utc)


def format_ics_date(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def escape_ics_text(value: Optional[str]) -> str:
    return (
        str(value or "")
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def describe_plan(plan: TripPlan) -> str:
    description = plan.notes or "Trip plan"
    budget = " ".join(str(part) for part in (plan.currency, plan.total_budget) if part not in (None, ""))
    if plan.total_budget not in (None, ""):
        description += f"\nTotal budget: {budget}"
    return description


def trip_length_days(days: Optional[Union[float, int]]) -> float:
    """Whole or fractional trip length, at least one day and at most MAX_TRIP_DAYS."""
    length = float(days or 1)
    if not math.isfinite(length) or length < 1:
        return 1.0
    return min(length, float(MAX_TRIP_DAYS))


def build_event(plan: TripPlan, now: Optional[datetime] = None) -> CalendarEvent:
    start = next_morning_utc(now)
    days = trip_length_days(plan.days)
    return CalendarEvent(
        title=plan.title,
        description=describe_plan(plan),
        location=plan.destination,
        start=start,
        end=start + timedelta(days=days),
    )


def build_ics(event: CalendarEvent, now: Optional[datetime] = None, uid: Optional[str] = None) -> str:
    uid = uid or f"{uuid.uuid4().hex}@{UID_DOMAIN}"
    return "\r\n".join([
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{format_ics_date(now or datetime.now(timezone.utc))}",
        f"DTSTART:{format_ics_date(event.start)}",
        f"DTEND:{format_ics_date(event.end)}",
        f"SUMMARY:{escape_ics_text(event.title)}",
        f"DESCRIPTION:{escape_ics_text(event.description)}",
        f"LOCATION:{escape_ics_text(event.location)}",
        "END:VEVENT",
        "END:VCALENDAR",
    ])


def build_google_calendar_url(event: CalendarEvent) -> str:
    params = {
        "action": "TEMPLATE",
        "text": event.title,
        "dates": f"{format_ics_date(event.start)}/{format_ics_date(event.end)}",
        "details": event.description,
        "location": event.location,
    }
    return f"{GOOGLE_CALENDAR_RENDER_URL}?{urlencode(params)}"


class CalendarService:
    def export_plan(self, plan: TripPlan, now: Optional[datetime] = None) -> CalendarExport:
        event = build_event(plan, now)
        ics = build_ics(event, now)
        file_name = f"{slugify(plan.title, DEFAULT_FILE_NAME)}.ics"

        logger.info("Calendar export built", file_name=file_name, destination=plan.destination,
                    start=event.start.isoformat(), end=event.end.isoformat())

        return CalendarExport(
            file_name=file_name,
            ics=ics,
            ics_base64=base64.b64encode(ics.encode("utf-8")).decode("ascii"),
            google_calendar_url=build_google_calendar_url(event),
        )
