import asyncio
from datetime import timedelta
from typing import List, Optional

from src.models.place_models import Coordinates, PlaceStub, VenueRecord
from src.models.request_models import SearchRequest
from src.models.response_models import (
    AiSummaryRecord,
    AiSummaryResponse,
    RankedResult,
    SearchLogEntry,
    SearchResponse,
)
from src.services.geocoding_service import GeocodingService
from src.services.google_places_service import GooglePlacesService
from src.services.places_cache import CacheStore
from src.services.ranking import rank_restaurants
from src.services.review_summary_service import ReviewSummaryService
from src.services.search_events import (
    ADAPTER_FAILURE,
    CACHE_HIT,
    CACHE_MISS,
    CANDIDATE_FAILED,
    CANDIDATE_SKIPPED,
    STAGE_COMPLETE,
    NullEventSink,
    SearchEventSink,
)
from src.utils.config import Settings


class RestaurantSearchService:
    """Geocode -> nearby search -> per-candidate enrichment -> score -> sort.

    Only the first two stages can fail a request. Each candidate is enriched
    in its own task; a failure there drops or degrades that candidate alone.
    """

    def __init__(
        self,
        settings: Settings,
        geocoder: GeocodingService,
        places: GooglePlacesService,
        summarizer: ReviewSummaryService,
        cache: CacheStore,
        events: Optional[SearchEventSink] = None,
    ):
        self.geocoder = geocoder
        self.places = places
        self.summarizer = summarizer
        self.cache = cache
        self.events = events or NullEventSink()
        self.max_candidates = settings.MAX_CANDIDATES
        self.max_age = timedelta(hours=settings.CACHE_MAX_AGE_HOURS)

    async def search(self, request: SearchRequest) -> SearchResponse:
        coordinates = await self.geocoder.resolve(request.location)
        self.events.emit(STAGE_COMPLETE, stage="geocode", lat=coordinates.lat, lng=coordinates.lng)

        candidates = await self.places.nearby_search(coordinates, request.radius, request.max_price)
        candidates = candidates[:self.max_candidates]
        self.events.emit(STAGE_COMPLETE, stage="search", candidates=len(candidates))

        restaurants = await self._enrich_all(candidates, request)
        self.events.emit(STAGE_COMPLETE, stage="enrich", candidates=len(candidates), enriched=len(restaurants))

        ranked = rank_restaurants(restaurants, request.max_price)
        self.events.emit(STAGE_COMPLETE, stage="rank", results=len(ranked))

        await self._log_search(request, coordinates, len(ranked))
        return SearchResponse(restaurants=ranked, search_location=coordinates, total_found=len(ranked))

    async def _enrich_all(self, candidates: List[PlaceStub], request: SearchRequest) -> List[RankedResult]:
        # One task per candidate; gather keeps slot order for the stable sort
        outcomes = await asyncio.gather(
            *(self._enrich_candidate(candidate, request) for candidate in candidates),
            return_exceptions=True,
        )

        restaurants: List[RankedResult] = []
        for candidate, outcome in zip(candidates, outcomes):
            if isinstance(outcome, BaseException):
                self.events.emit(
                    CANDIDATE_FAILED,
                    place_id=candidate.place_id,
                    place_name=candidate.name,
                    kind=type(outcome).__name__,
                    error=str(outcome),
                )
            elif outcome is None:
                self.events.emit(CANDIDATE_SKIPPED, place_id=candidate.place_id, place_name=candidate.name)
            else:
                restaurants.append(outcome)
        return restaurants

    async def _enrich_candidate(self, candidate: PlaceStub, request: SearchRequest) -> Optional[RankedResult]:
        venue = await self._get_venue(candidate)
        if venue is None:
            return None
        summary = await self._get_summary(venue, request)
        return self._to_result(venue, summary)

    async def _get_venue(self, candidate: PlaceStub) -> Optional[VenueRecord]:
        cached = await self.cache.venues.get_if_fresh(candidate.place_id, self.max_age)
        if cached is not None:
            self.events.emit(CACHE_HIT, table="venues", place_id=candidate.place_id)
            return cached
        self.events.emit(CACHE_MISS, table="venues", place_id=candidate.place_id)

        details = await self.places.get_place_details(candidate.place_id)
        if details is None:
            return None

        venue = self.places.to_venue_record(candidate.place_id, details)
        if not await self.cache.venues.upsert(venue):
            self.events.emit(ADAPTER_FAILURE, adapter="venue_cache", place_id=venue.place_id,
                             error="venue upsert failed")
        return venue

    async def _get_summary(self, venue: VenueRecord, request: SearchRequest) -> Optional[AiSummaryRecord]:
        cached = await self.cache.summaries.get_if_fresh(venue.place_id, self.max_age)
        if cached is not None:
            self.events.emit(CACHE_HIT, table="summaries", place_id=venue.place_id)
            return cached
        self.events.emit(CACHE_MISS, table="summaries", place_id=venue.place_id)

        review_texts = self.summarizer.select_review_texts(venue)
        if not review_texts:
            return None
        try:
            return await self.summarizer.summarize(venue, request, review_texts)
        except Exception as e:
            # A broken summary never costs the venue its place in the results
            self.events.emit(ADAPTER_FAILURE, adapter="summarizer", place_id=venue.place_id,
                             kind=type(e).__name__, error=str(e))
            return None

    def _to_result(self, venue: VenueRecord, summary: Optional[AiSummaryRecord]) -> RankedResult:
        ai_summary = None
        if summary is not None:
            ai_summary = AiSummaryResponse.model_validate(
                summary.model_dump(exclude={"place_id", "generated_at"})
            )
        return RankedResult(
            id=venue.place_id,
            place_id=venue.place_id,
            name=venue.name,
            rating=venue.rating,
            price_level=venue.price_level,
            formatted_address=venue.formatted_address,
            location=venue.location,
            photos=venue.photos,
            opening_hours=venue.opening_hours,
            phone_number=venue.phone_number,
            website=venue.website,
            types=venue.types,
            ai_summary=ai_summary,
        )

    async def _log_search(self, request: SearchRequest, coordinates: Coordinates, results_count: int) -> None:
        entry = SearchLogEntry(
            search_location=coordinates,
            location_query=request.location,
            filters=request.filters(),
            results_count=results_count,
        )
        if not await self.cache.searches.record(entry):
            self.events.emit(ADAPTER_FAILURE, adapter="search_log", error="search log write failed")
