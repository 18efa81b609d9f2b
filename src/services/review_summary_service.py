import json
import logging
import re
from typing import List, Optional

from pydantic import BaseModel, ValidationError

from src.models.place_models import VenueRecord
from src.models.request_models import SearchRequest
from src.models.response_models import AiSummaryRecord
from src.prompts.system_prompts import get_review_summary_prompt
from src.services.gemini_service import GeminiService
from src.services.places_cache import CacheTable, utcnow
from src.services.search_events import ADAPTER_FAILURE, NullEventSink, SearchEventSink
from src.utils.config import Settings
from src.utils.errors import CandidateError, SummaryGenerationFailed, SummaryParseFailed

_FENCE_OPEN = re.compile(r"^```[\w-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json (or bare ```) marker and a trailing ``` marker."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


class SummaryParseResult(BaseModel):
    summary: Optional[AiSummaryRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.summary is not None


def parse_summary(place_id: str, raw_text: str) -> SummaryParseResult:
    """Parse model output into a clamped AiSummaryRecord, or report why it could not be."""
    try:
        data = json.loads(strip_code_fences(raw_text))
    except (ValueError, RecursionError) as e:
        # RecursionError: pathologically nested output
        return SummaryParseResult(error=f"invalid JSON: {type(e).__name__}: {e}")
    if not isinstance(data, dict):
        return SummaryParseResult(error=f"expected a JSON object, got {type(data).__name__}")

    # The venue we asked about is the join key, whatever the model echoed back
    data["place_id"] = place_id
    data["generated_at"] = utcnow()
    try:
        return SummaryParseResult(summary=AiSummaryRecord.model_validate(data))
    except ValidationError as e:
        return SummaryParseResult(error=f"schema mismatch: {e.error_count()} error(s)")
    except RecursionError:
        return SummaryParseResult(error="schema mismatch: list items nested too deeply")


class ReviewSummaryService:
    """Turns a venue's reviews into a short structured analysis via Gemini."""

    def __init__(self, settings: Settings, gemini: GeminiService, summaries: CacheTable[AiSummaryRecord],
                 events: Optional[SearchEventSink] = None):
        self.gemini = gemini
        self.summaries = summaries
        self.events = events or NullEventSink()
        self.max_reviews = settings.MAX_REVIEWS_FOR_SUMMARY
        self.min_review_length = settings.MIN_REVIEW_LENGTH
        self.logger = logging.getLogger(__name__)

    def select_review_texts(self, venue: VenueRecord) -> List[str]:
        texts = [r.text for r in venue.reviews if r.text and len(r.text) > self.min_review_length]
        return texts[:self.max_reviews]

    async def summarize(self, venue: VenueRecord, request: SearchRequest,
                        review_texts: List[str]) -> Optional[AiSummaryRecord]:
        """Generate, validate and cache a summary; None on any soft failure."""
        prompt = get_review_summary_prompt(venue, review_texts, request)
        try:
            raw_text = await self.gemini.generate_json_from_prompt(prompt)
        except Exception as e:
            self._report(SummaryGenerationFailed(venue.place_id, str(e), e))
            return None

        self.logger.debug("[summary] raw model output\n%s", raw_text)
        result = parse_summary(venue.place_id, raw_text)
        if not result.ok:
            self._report(SummaryParseFailed(venue.place_id, result.error))
            return None

        if not await self.summaries.upsert(result.summary):
            self.events.emit(ADAPTER_FAILURE, adapter="summary_cache", place_id=venue.place_id,
                             error="summary upsert failed")
        return result.summary

    def _report(self, failure: CandidateError) -> None:
        self.events.emit(
            ADAPTER_FAILURE,
            adapter="summarizer",
            place_id=failure.place_id,
            kind=type(failure).__name__,
            error=failure.reason,
        )
