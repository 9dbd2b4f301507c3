import httpx
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.schemas.location import GeocodeResult

# Configure logging
logger = logging.getLogger(__name__)


class GeocodingClient:
    """
    Forward and reverse geocoding against a Nominatim server.

    Lookups degrade instead of failing: an unreachable server, a non-200
    status or an unexpected payload gives an empty result.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.nominatim_url).rstrip("/")
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.timeout = timeout if timeout is not None else settings.geocoding_timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            transport=self.transport,
        )

    async def _get(self, path: str, params: dict):
        async with self._client() as client:
            try:
                response = await client.get(path, params=params)
            except httpx.HTTPError as e:
                logger.warning(f"Geocoding request to {path} failed: {str(e)}")
                return None
        if response.status_code != 200:
            logger.warning(f"Geocoding request to {path} returned status {response.status_code}")
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning(f"Geocoding response from {path} was not JSON")
            return None

    async def search(self, query: str, limit: int = 5) -> List[GeocodeResult]:
        """Places matching a free-text query, best match first."""
        query = (query or "").strip()
        if not query:
            return []
        logger.info(f"Searching locations with query: '{query}'")
        data = await self._get("/search", {"format": "json", "q": query, "limit": limit})
        if not isinstance(data, list):
            return []
        results = []
        for place in data:
            try:
                results.append(GeocodeResult(
                    display_name=place["display_name"], lat=float(place["lat"]), lon=float(place["lon"])
                ))
            except (KeyError, TypeError, ValueError, PydanticValidationError):
                logger.debug(f"Skipping malformed geocoding result: {place}")
        return results

    async def reverse(self, lat: float, lon: float) -> Optional[str]:
        """Human-readable address for a coordinate, or None if unknown."""
        data = await self._get(
            "/reverse", {"format": "json", "lat": lat, "lon": lon, "zoom": 18, "addressdetails": 1}
        )
        if not isinstance(data, dict):
            return None
        return data.get("display_name")
