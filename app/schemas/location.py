from typing import Optional
from pydantic import BaseModel, Field

class GeocodeResult(BaseModel):
    display_name: str
    lat: float
    lon: float

class ReverseGeocodeResponse(BaseModel):
    display_name: Optional[str] = None

class LocationReading(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0)  # metres
