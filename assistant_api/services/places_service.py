import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .base import BaseHTTPService

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
OVERPASS_URL = "https://overpass-api.de/api/interpreter"

SEARCH_RADIUS_METERS = 5000
MAX_PLACES = 10

DESTINATION_PATTERNS = [
    re.compile(r"\b(?:in|near|around|at)\s+([a-zA-Z][a-zA-Z\s,.-]{1,60})$", re.IGNORECASE),
    re.compile(r"\b(?:in|near|around|at)\s+([a-zA-Z][a-zA-Z\s,.-]{1,60})\b", re.IGNORECASE),
    re.compile(r"\bto\s+([a-zA-Z][a-zA-Z\s,.-]{1,60})\b", re.IGNORECASE),
]

RESTAURANT_FILTER = '["amenity"~"restaurant|cafe|fast_food"]'
HOTEL_FILTER = '["tourism"~"hotel|guest_house|hostel|motel"]'


@dataclass(frozen=True)
class GeoLocation:
    lat: float
    lon: float
    display_name: Optional[str] = None


@dataclass(frozen=True)
class Place:
    name: str
    lat: float
    lon: float
    address: str
    source: str = "OpenStreetMap"


@dataclass
class PlacesLookup:
    success: bool
    type: str
    places: List[Place] = field(default_factory=list)
    location_name: Optional[str] = None
    center: Optional[GeoLocation] = None
    message: Optional[str] = None


def extract_destination(query: Optional[str]) -> str:
    q = str(query or "").strip()
    for pattern in DESTINATION_PATTERNS:
        match = pattern.search(q)
        if match and match.group(1):
            return match.group(1).strip()
    return ""


def build_overpass_query(lat: float, lon: float, place_type: str, radius: int = SEARCH_RADIUS_METERS) -> str:
    tag_filter = RESTAURANT_FILTER if "restaurant" in str(place_type).lower() else HOTEL_FILTER
    around = f"(around:{radius},{lat},{lon})"
    return (
        "[out:json][timeout:25];\n"
        "(\n"
        f"  node{tag_filter}{around};\n"
        f"  way{tag_filter}{around};\n"
        f"  relation{tag_filter}{around};\n"
        ");\n"
        "out center tags 25;\n"
    )


def element_to_place(element: Dict[str, Any]) -> Optional[Place]:
    center = element.get("center") or {}
    lat = element.get("lat") if isinstance(element.get("lat"), (int, float)) else center.get("lat")
    lon = element.get("lon") if isinstance(element.get("lon"), (int, float)) else center.get("lon")
    tags = element.get("tags") or {}
    name = tags.get("name")
    if not name or not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return None

    address_parts = [
        tags.get("addr:housenumber"),
        tags.get("addr:street"),
        tags.get("addr:city") or tags.get("addr:town") or tags.get("addr:village"),
    ]
    return Place(
        name=name,
        lat=float(lat),
        lon=float(lon),
        address=", ".join(part for part in address_parts if part),
    )


def unique_by_name(places: List[Place], limit: int = MAX_PLACES) -> List[Place]:
    seen = set()
    unique = []
    for place in places:
        key = place.name.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(place)
    return unique[:limit]


class PlacesService(BaseHTTPService):
    """Hotel and restaurant lookup around a destination named in free text"""

    async def find_places(self, query: str, place_type: str = "hotel") -> PlacesLookup:
        destination = extract_destination(query)
        if not destination:
            return PlacesLookup(success=False, type=place_type, message="Destination not found in query")

        geo = await self.geocode(destination)
        if not geo:
            return PlacesLookup(success=False, type=place_type, message="Could not geocode destination")

        places = await self.fetch_places(geo.lat, geo.lon, place_type)
        self.logger.info("Places lookup completed", destination=destination, type=place_type, count=len(places))

        return PlacesLookup(
            success=True,
            type=place_type,
            places=places,
            location_name=geo.display_name or destination,
            center=geo,
        )

    async def geocode(self, place: str) -> Optional[GeoLocation]:
        try:
            async with self.http_client() as client:
                response = await client.get(
                    NOMINATIM_URL,
                    params={"format": "json", "limit": 1, "q": place},
                    headers=self._default_headers(),
                    timeout=self.timeout,
                )
            if not response.is_success:
                self.logger.warning("Geocoding failed", place=place, status_code=response.status_code)
                return None
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning("Geocoding error", place=place, error=str(e))
            return None

        if not isinstance(data, list) or not data:
            return None

        first = data[0]
        try:
            return GeoLocation(lat=float(first["lat"]), lon=float(first["lon"]), display_name=first.get("display_name"))
        except (KeyError, TypeError, ValueError):
            return None

    async def fetch_places(self, lat: float, lon: float, place_type: str) -> List[Place]:
        query = build_overpass_query(lat, lon, place_type)
        try:
            async with self.http_client() as client:
                response = await client.post(
                    OVERPASS_URL,
                    data={"data": query},
                    headers=self._default_headers(),
                    timeout=self.timeout,
                )
            if not response.is_success:
                self.logger.warning("Overpass query failed", status_code=response.status_code)
                return []
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning("Overpass error", error=str(e))
            return []

        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            return []

        places = [place for place in (element_to_place(el) for el in elements) if place]
        return unique_by_name(places)
