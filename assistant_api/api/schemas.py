from typing import Any, Dict, List, Optional, Union

from pydantic import Field, field_validator

from ..utils.response_utils import CamelModel


# Chat

class ChatRequest(CamelModel):
    message: Optional[str] = Field(None, description="User utterance")
    system_prompt: Optional[str] = Field(None, description="Overrides the default assistant persona")
    user_name: Optional[str] = Field(None, max_length=100)
    search_context: Optional[str] = Field(None, description="Web search snippets to ground the reply")


class ChatMeta(CamelModel):
    provider: str
    latency_ms: int
    search_context_used: bool = False


class ChatResponse(CamelModel):
    response: str
    model: Optional[str] = None
    meta: Optional[ChatMeta] = None


# Search

class SearchRequest(CamelModel):
    query: Optional[str] = None


class SearchResultItem(CamelModel):
    title: str
    description: str
    url: str


class SearchResponse(CamelModel):
    results: List[SearchResultItem] = []
    query: Optional[str] = None
    provider: Optional[str] = None
    cached: Optional[bool] = None
    error: Optional[str] = None
    message: Optional[str] = None


# Places

class PlacesRequest(CamelModel):
    query: str = ""
    type: str = "hotel"

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return "restaurant" if "restaurant" in str(value or "").lower() else "hotel"


class GeoPoint(CamelModel):
    lat: float
    lon: float


class PlaceItem(CamelModel):
    name: str
    lat: float
    lon: float
    address: str
    source: str


class PlacesResponse(CamelModel):
    success: bool
    type: str
    location_name: Optional[str] = None
    center: Optional[GeoPoint] = None
    places: List[PlaceItem] = []
    message: Optional[str] = None


# Calendar

class TripPlanPayload(CamelModel):
    title: Optional[str] = None
    destination: Optional[str] = None
    days: Optional[float] = None
    notes: Optional[str] = None
    currency: Optional[str] = None
    total_budget: Optional[Union[int, float, str]] = None


class CalendarSyncRequest(CamelModel):
    plan: Optional[TripPlanPayload] = None


class CalendarSyncResponse(CamelModel):
    success: bool
    file_name: str
    ics_base64: str
    google_calendar_url: str


# Notifications

class NotificationRequest(CamelModel):
    token: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class NotificationResponse(CamelModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    details: Optional[Any] = None
