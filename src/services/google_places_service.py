from typing import List, Optional
import logging
from datetime import datetime, timezone
from urllib.parse import urlencode
import httpx
from pydantic import ValidationError

from src.models.place_models import (
    Coordinates,
    NearbySearchResponse,
    PlaceDetails,
    PlaceDetailsResponse,
    PlaceStub,
    VenueRecord,
)
from src.utils.config import Settings
from src.utils.errors import PlaceDetailsUnavailable, PlacesSearchError

class GooglePlacesService:
    NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
    DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
    PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"

    DETAIL_FIELDS = (
        "name,rating,price_level,formatted_address,geometry,photos,"
        "opening_hours,formatted_phone_number,website,types,reviews"
    )

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = settings.GOOGLE_MAPS_API_KEY
        self.max_photos = settings.MAX_PHOTOS_PER_PLACE
        self.photo_width = settings.PHOTO_MAX_WIDTH
        self.max_reviews = settings.MAX_REVIEWS_FOR_SUMMARY
        self.logger = logging.getLogger(__name__)
        # Shared async HTTP client with connection pooling (reused across requests)
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=50)
        )

    async def close(self):
        """Close HTTP client connections."""
        await self.http_client.aclose()

    async def nearby_search(self, coordinates: Coordinates, radius: int, max_price: int = 4) -> List[PlaceStub]:
        """Restaurants around the coordinates, in provider order.

        ZERO_RESULTS is an empty list; any other non-OK status raises PlacesSearchError.
        """
        params = {
            "location": f"{coordinates.lat},{coordinates.lng}",
            "radius": radius,
            "type": "restaurant",
            "key": self.api_key,
        }
        if max_price < 4:
            params["maxprice"] = max_price

        try:
            resp = await self.http_client.get(self.NEARBY_SEARCH_URL, params=params)
            resp.raise_for_status()
            payload = NearbySearchResponse.model_validate(resp.json())
        except httpx.HTTPError as e:
            self.logger.error(f"Places nearbysearch transport error: {e}")
            raise PlacesSearchError(type(e).__name__) from e
        except (ValueError, ValidationError) as e:
            raise PlacesSearchError("malformed response") from e

        if payload.status == "ZERO_RESULTS":
            return []
        if payload.status != "OK":
            self.logger.error(
                "Places nearbysearch failed",
                extra={"status": payload.status, "error_message": payload.error_message}
            )
            raise PlacesSearchError(payload.status)

        self.logger.info(f"Found {len(payload.results)} restaurants")
        return payload.results

    async def get_place_details(self, place_id: str) -> Optional[PlaceDetails]:
        """Full attributes for one place, or None when the provider has none to give."""
        params = {
            "place_id": place_id,
            "fields": self.DETAIL_FIELDS,
            "key": self.api_key,
        }
        try:
            resp = await self.http_client.get(self.DETAILS_URL, params=params)
            resp.raise_for_status()
            payload = PlaceDetailsResponse.model_validate(resp.json())
        except httpx.HTTPError as e:
            raise PlaceDetailsUnavailable(place_id, type(e).__name__, e) from e
        except (ValueError, ValidationError) as e:
            raise PlaceDetailsUnavailable(place_id, "malformed response", e) from e

        if payload.status != "OK" or payload.result is None:
            self.logger.warning(f"Failed to get details for {place_id}: {payload.status}")
            return None
        return payload.result

    def get_place_photo_url(self, photo_reference: str) -> str:
        """Generate URL for place photo"""
        params = {
            'maxwidth': self.photo_width,
            'photo_reference': photo_reference,
            'key': self.api_key
        }
        return f"{self.PHOTO_URL}?{urlencode(params)}"

    def to_venue_record(self, place_id: str, details: PlaceDetails) -> VenueRecord:
        """Map a details payload onto the cached venue shape."""
        photos = [self.get_place_photo_url(p.photo_reference) for p in details.photos[:self.max_photos]]
        return VenueRecord(
            place_id=place_id,
            name=details.name,
            rating=details.rating,
            price_level=details.price_level,
            formatted_address=details.formatted_address,
            location=details.geometry.location if details.geometry else None,
            photos=photos,
            opening_hours=details.opening_hours,
            phone_number=details.formatted_phone_number,
            website=details.website,
            types=details.types,
            reviews=details.reviews[:self.max_reviews],
            cached_at=datetime.now(timezone.utc),
        )
