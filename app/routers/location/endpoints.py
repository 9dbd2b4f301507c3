import logging
from functools import lru_cache
from typing import List
from fastapi import APIRouter, Depends, Query

from app.common import get_current_user
from app.schemas.location import GeocodeResult, LocationReading, ReverseGeocodeResponse
from app.services.geocoding_service import GeocodingClient
from app.utils.geo_utils import is_usable_fix

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/location", tags=["location"])

@lru_cache
def get_geocoder() -> GeocodingClient:
    return GeocodingClient()

@router.get("/search", response_model=List[GeocodeResult])
async def search_locations_api(
    q: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=20),
    geocoder: GeocodingClient = Depends(get_geocoder),
    current_user: dict = Depends(get_current_user)
):
    """Places matching a free-text query. Empty when the geocoder is unavailable."""
    return await geocoder.search(q, limit)

@router.get("/reverse", response_model=ReverseGeocodeResponse)
async def reverse_geocode_api(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    geocoder: GeocodingClient = Depends(get_geocoder),
    current_user: dict = Depends(get_current_user)
):
    return ReverseGeocodeResponse(display_name=await geocoder.reverse(lat, lon))

@router.post("/fix", response_model=dict)
async def check_location_fix_api(
    reading: LocationReading,
    max_accuracy_m: float = Query(100.0, gt=0),
    current_user: dict = Depends(get_current_user)
):
    """Whether a device reading is accurate enough to place on the map."""
    return {"usable": is_usable_fix(reading, max_accuracy_m)}
