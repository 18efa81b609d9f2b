from typing import List, Optional


class RestaurantSearchError(Exception):
    """Base class for failures that abort a whole search request."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidCoordinates(RestaurantSearchError):
    status_code = 400

    def __init__(self, location: str):
        super().__init__(f"Invalid coordinate format: \"{location}\"")
        self.location = location


class LocationNotFound(RestaurantSearchError):
    status_code = 404

    def __init__(self, location: str):
        super().__init__(
            f"Unable to find location \"{location}\". "
            "Please try a more specific address or city name."
        )
        self.location = location


class GeocodingError(RestaurantSearchError):
    status_code = 502

    def __init__(self, status: str):
        super().__init__(f"Geocoding failed: {status}")
        self.status = status


class PlacesSearchError(RestaurantSearchError):
    status_code = 502

    def __init__(self, status: str):
        super().__init__(f"Places API error: {status}")
        self.status = status


class MissingCredentials(RestaurantSearchError):
    status_code = 500

    def __init__(self, missing: List[str]):
        super().__init__(f"Missing required API keys: {', '.join(missing)}")
        self.missing = missing


class CandidateError(Exception):
    """Failure confined to a single candidate; never fails the request."""

    def __init__(self, place_id: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(f"{place_id}: {reason}")
        self.place_id = place_id
        self.reason = reason
        self.cause = cause


class PlaceDetailsUnavailable(CandidateError):
    pass


class SummaryGenerationFailed(CandidateError):
    pass


class SummaryParseFailed(CandidateError):
    pass
