import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from src.models.place_models import Review, VenueRecord
from src.services.geocoding_service import GeocodingService
from src.services.google_places_service import GooglePlacesService
from src.services.places_cache import create_in_memory_store
from src.services.restaurant_search_service import RestaurantSearchService
from src.services.review_summary_service import ReviewSummaryService
from src.services.search_events import SearchEventSink
from src.utils.config import Settings

LONG_REVIEW = "The paneer tikka was smoky and the staff were very attentive."


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeGeocodeClient:
    """Stands in for googlemaps.Client; records every geocode call."""

    def __init__(self, results=None, error=None):
        self.results = results if results is not None else []
        self.error = error
        self.calls = []

    def geocode(self, address):
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return self.results


class FakeGemini:
    """Stands in for GeminiService; answers per place_id found in the prompt."""

    def __init__(self, responses=None, default=None):
        self.responses = responses or {}
        self.default = default
        self.prompts = []

    async def generate_json_from_prompt(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for place_id, response in self.responses.items():
            if f'"place_id": "{place_id}"' in prompt:
                if isinstance(response, Exception):
                    raise response
                return response
        if self.default is None:
            raise RuntimeError("Gemini generation failed: no canned response")
        return self.default


class RecordingEventSink(SearchEventSink):
    def __init__(self):
        self.events = []

    def emit(self, event, **fields):
        self.events.append((event, fields))

    def named(self, event):
        return [fields for name, fields in self.events if name == event]


class FakePlacesApi:
    """httpx.MockTransport handler serving Nearby Search and Place Details."""

    def __init__(self, nearby=None, details=None, nearby_status="OK"):
        self.nearby = nearby or []
        self.details = details or {}
        self.nearby_status = nearby_status
        self.requests = []

    def detail_calls(self):
        return [r.url.params["place_id"] for r in self.requests if r.url.path.endswith("/details/json")]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/nearbysearch/json"):
            body = {"status": self.nearby_status, "results": self.nearby}
            return httpx.Response(200, json=body)
        if request.url.path.endswith("/details/json"):
            place_id = request.url.params["place_id"]
            detail = self.details.get(place_id)
            if isinstance(detail, Exception):
                raise detail
            if detail is None:
                return httpx.Response(200, json={"status": "NOT_FOUND"})
            return httpx.Response(200, json={"status": "OK", "result": detail})
        return httpx.Response(404)


def stub(place_id, name=None):
    return {"place_id": place_id, "name": name or f"Restaurant {place_id}"}


def detail(name, rating=None, price_level=None, reviews=None, photos=0):
    payload = {
        "name": name,
        "formatted_address": f"{name} Street 1",
        "geometry": {"location": {"lat": 12.97, "lng": 77.59}},
        "types": ["restaurant", "food"],
        "reviews": reviews if reviews is not None else [],
        "photos": [{"photo_reference": f"ref-{i}"} for i in range(photos)],
    }
    if rating is not None:
        payload["rating"] = rating
    if price_level is not None:
        payload["price_level"] = price_level
    return payload


def review(text=LONG_REVIEW, rating=5):
    return {"text": text, "rating": rating, "time": 1700000000, "author_name": "A. Diner"}


def summary_json(rank_score=80, confidence=0.9, **extra):
    payload = {
        "rank_score": rank_score,
        "short_summary": "Smoky tandoor dishes and attentive service.",
        "pros": ["Great paneer tikka"],
        "cons": ["Crowded on weekends"],
        "dishes_to_try": ["Paneer tikka"],
        "matching_menu_items": [],
        "top_positive_quote": "smoky and attentive",
        "top_negative_quote": "crowded",
        "confidence": confidence,
    }
    payload.update(extra)
    return json.dumps(payload)


def venue_record(place_id="p1", reviews=None, cached_at=None, **fields):
    return VenueRecord(
        place_id=place_id,
        name=fields.pop("name", f"Restaurant {place_id}"),
        reviews=[Review(**r) for r in (reviews or [])],
        cached_at=cached_at,
        **fields,
    )


@pytest.fixture
def settings():
    return Settings(
        GOOGLE_MAPS_API_KEY="test-maps-key",
        GEMINI_API_KEY="test-gemini-key",
        USE_FIRESTORE=False,
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 9, 21, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def events():
    return RecordingEventSink()


@pytest.fixture
def store(clock):
    return create_in_memory_store(clock)


@pytest.fixture
def build_pipeline(settings, store, events):
    """Assemble a RestaurantSearchService around fakes."""

    def _build(places_api=None, gemini=None, geocode_client=None):
        places_api = places_api or FakePlacesApi()
        gemini = gemini or FakeGemini(default=summary_json())
        geocode_client = geocode_client or FakeGeocodeClient()
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(places_api))
        places = GooglePlacesService(settings, http_client=http_client)
        summarizer = ReviewSummaryService(settings, gemini, store.summaries, events)
        return RestaurantSearchService(
            settings,
            geocoder=GeocodingService(settings, client=geocode_client),
            places=places,
            summarizer=summarizer,
            cache=store,
            events=events,
        )

    return _build
