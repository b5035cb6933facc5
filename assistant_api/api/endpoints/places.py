from fastapi import APIRouter, Depends

from ..dependencies import RateLimitGuard, get_places_service
from ..schemas import GeoPoint, PlaceItem, PlacesRequest, PlacesResponse
from ...services.places_service import PlacesService

router = APIRouter()


@router.post("/places", response_model=PlacesResponse, response_model_exclude_none=True)
async def find_places(
    request: PlacesRequest,
    _rate_limit=Depends(RateLimitGuard("places")),
    places_service: PlacesService = Depends(get_places_service),
):
    """Hotels or restaurants around the destination named in `query`"""
    lookup = await places_service.find_places(request.query, request.type)

    return PlacesResponse(
        success=lookup.success,
        type=lookup.type,
        location_name=lookup.location_name,
        center=GeoPoint(lat=lookup.center.lat, lon=lookup.center.lon) if lookup.center else None,
        places=[PlaceItem.model_validate(place) for place in lookup.places],
        message=lookup.message,
    )
