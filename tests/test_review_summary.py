import asyncio
import json

import pytest

from src.models.request_models import SearchRequest
from src.services.review_summary_service import ReviewSummaryService, parse_summary, strip_code_fences
from src.services.search_events import ADAPTER_FAILURE

from conftest import FakeGemini, LONG_REVIEW, summary_json, venue_record


@pytest.fixture
def request_with_menu():
    return SearchRequest(location="12.97,77.59", veg_only=True, menu=["Masala Dosa", "Paneer Tikka"])


def _summarizer(settings, store, events, gemini):
    return ReviewSummaryService(settings, gemini, store.summaries, events)


@pytest.mark.parametrize("raw", [
    '```json\n{"a": 1}\n```',
    '```\n{"a": 1}\n```',
    '  ```JSON {"a": 1}```  ',
    '{"a": 1}',
])
def test_strip_code_fences(raw):
    assert json.loads(strip_code_fences(raw)) == {"a": 1}


def test_parse_clamps_out_of_range_values():
    result = parse_summary("p1", summary_json(rank_score=150, confidence=1.7))
    assert result.ok
    assert result.summary.rank_score == 100
    assert result.summary.confidence == 1.0

    result = parse_summary("p1", summary_json(rank_score=-20, confidence=-0.3))
    assert result.summary.rank_score == 0
    assert result.summary.confidence == 0.0


def test_parse_defaults_lists_and_confidence():
    raw = json.dumps({"rank_score": 55, "short_summary": "Fine.", "pros": "tasty", "cons": None})
    result = parse_summary("p1", raw)
    assert result.ok
    assert result.summary.pros == []
    assert result.summary.cons == []
    assert result.summary.dishes_to_try == []
    assert result.summary.confidence == 0.0


def test_parse_uses_requested_place_id():
    result = parse_summary("p1", summary_json(place_id="someone-else"))
    assert result.summary.place_id == "p1"
    assert result.summary.generated_at is not None


@pytest.mark.parametrize("raw", [
    "Sorry, I cannot help with that.",
    '{"rank_score": 80, "short_summary": "Cut off',
    "[1, 2, 3]",
    json.dumps({"short_summary": "No score."}),
    json.dumps({"rank_score": "high", "short_summary": "Bad score."}),
    json.dumps({"rank_score": 70}),
    "[" * 100000,
])
def test_parse_failures_are_reported_not_raised(raw):
    result = parse_summary("p1", raw)
    assert not result.ok
    assert result.error


def test_select_review_texts_filters_short_reviews(settings, store, events):
    venue = venue_record("p1", reviews=[
        {"text": "Great!"},
        {"text": ""},
        {"text": "x" * 20},
        {"text": "x" * 21},
    ] + [{"text": f"{LONG_REVIEW} #{i}"} for i in range(15)])
    texts = _summarizer(settings, store, events, FakeGemini()).select_review_texts(venue)
    assert len(texts) == 12
    assert texts[0] == "x" * 21


def test_summarize_persists_clamped_record(settings, store, events, request_with_menu):
    gemini = FakeGemini(responses={"p1": "```json\n" + summary_json(rank_score=150) + "\n```"})
    venue = venue_record("p1", reviews=[{"text": LONG_REVIEW}])

    summary = asyncio.run(_summarizer(settings, store, events, gemini).summarize(venue, request_with_menu, [LONG_REVIEW]))

    assert summary.rank_score == 100
    cached = asyncio.run(store.summaries.get_if_fresh("p1"))
    assert cached.rank_score == 100
    assert 0 <= cached.confidence <= 1


def test_prompt_carries_reviews_and_filters(settings, store, events, request_with_menu):
    gemini = FakeGemini(default=summary_json())
    venue = venue_record("p1", name="Udupi Grand", types=["restaurant", "food"])

    asyncio.run(_summarizer(settings, store, events, gemini).summarize(venue, request_with_menu, [LONG_REVIEW]))

    prompt = gemini.prompts[0]
    assert "Udupi Grand" in prompt
    assert LONG_REVIEW in prompt
    assert '"veg_only": true' in prompt
    assert "Masala Dosa" in prompt
    assert "max 2 sentences" in prompt


def test_malformed_output_yields_no_summary(settings, store, events, request_with_menu):
    gemini = FakeGemini(responses={"p1": "not json at all"})
    venue = venue_record("p1")

    summary = asyncio.run(_summarizer(settings, store, events, gemini).summarize(venue, request_with_menu, [LONG_REVIEW]))

    assert summary is None
    assert asyncio.run(store.summaries.get_if_fresh("p1")) is None
    failures = events.named(ADAPTER_FAILURE)
    assert failures[0]["kind"] == "SummaryParseFailed"


def test_generation_error_yields_no_summary(settings, store, events, request_with_menu):
    gemini = FakeGemini(responses={"p1": RuntimeError("Gemini generation failed: 429")})
    venue = venue_record("p1")

    summary = asyncio.run(_summarizer(settings, store, events, gemini).summarize(venue, request_with_menu, [LONG_REVIEW]))

    assert summary is None
    assert events.named(ADAPTER_FAILURE)[0]["kind"] == "SummaryGenerationFailed"


def test_any_generator_exception_yields_no_summary(settings, store, events, request_with_menu):
    gemini = FakeGemini(responses={"p1": ValueError("sdk blew up")})
    venue = venue_record("p1")

    summary = asyncio.run(_summarizer(settings, store, events, gemini).summarize(venue, request_with_menu, [LONG_REVIEW]))

    assert summary is None
    failure = events.named(ADAPTER_FAILURE)[0]
    assert failure["kind"] == "SummaryGenerationFailed"
    assert "sdk blew up" in failure["error"]


def test_reviews_without_text_are_skipped(settings, store, events):
    venue = venue_record("p1", reviews=[{"text": None}, {"text": LONG_REVIEW}])
    texts = _summarizer(settings, store, events, FakeGemini()).select_review_texts(venue)
    assert texts == [LONG_REVIEW]
