import asyncio
import logging
from typing import Any, Optional

import googlemaps
from googlemaps import exceptions as gmaps_exceptions
from pydantic import ValidationError

from src.models.place_models import Coordinates, GeocodeResult
from src.utils.config import Settings
from src.utils.errors import GeocodingError, LocationNotFound
from src.utils.validators import CoordinateValidator

class GeocodingService:
    """Resolves a free-text location or a literal "lat,lng" pair to coordinates."""

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.logger = logging.getLogger(__name__)
        self.client = client or googlemaps.Client(
            key=settings.GOOGLE_MAPS_API_KEY,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    async def resolve(self, location: str) -> Coordinates:
        location = location.strip()
        if CoordinateValidator.looks_like_coordinates(location):
            return CoordinateValidator.parse(location)
        return await self._geocode_address(location)

    async def _geocode_address(self, address: str) -> Coordinates:
        self.logger.info(f"Geocoding address: \"{address}\"")
        try:
            # googlemaps is synchronous; keep the event loop free
            loop = asyncio.get_running_loop()
            results = await loop.run_in_executor(None, self.client.geocode, address)
        except gmaps_exceptions.ApiError as e:
            raise GeocodingError(e.status) from e
        except (gmaps_exceptions.TransportError, gmaps_exceptions.Timeout) as e:
            raise GeocodingError(str(e) or type(e).__name__) from e

        if not results:
            raise LocationNotFound(address)

        try:
            top = GeocodeResult.model_validate(results[0])
        except ValidationError as e:
            raise GeocodingError("malformed geocoding result") from e

        self.logger.info(
            "Geocoding result",
            extra={"address": address, "formatted_address": top.formatted_address},
        )
        return top.geometry.location
