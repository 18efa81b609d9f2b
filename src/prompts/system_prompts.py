"""
Prompts for the Gemini review summarizer
"""
import json
from typing import List

from src.models.place_models import VenueRecord
from src.models.request_models import SearchRequest

def get_review_summary_prompt(venue: VenueRecord, review_texts: List[str], request: SearchRequest) -> str:
    """Grounded, JSON-only analysis prompt for one restaurant"""
    venue_input = {
        "place_id": venue.place_id,
        "name": venue.name,
        "rating": venue.rating,
        "price_level": venue.price_level,
        "cuisine": ", ".join(venue.types),
        "address": venue.formatted_address,
        "reviews": review_texts,
        "filters": {
            "veg_only": request.veg_only,
            "jain_food": request.jain_food,
            "menu": list(request.menu),
        },
    }

    return f"""You are an assistant that MUST return JSON only.
Make sure this summary is unique for {venue.name} and based ONLY on the provided reviews, rating, price_level, and cuisine.
Do not invent facts. Do not copy summaries across restaurants.
Summaries must be short (max 2 sentences).
Include a list of suggested dishes to try based on the reviews and filters (vegetarian dishes only if veg_only is true, Jain-friendly dishes only if jain_food is true).
If the user has provided a menu, list the dishes from that menu the reviews show this restaurant offers.

Input:
{json.dumps(venue_input, ensure_ascii=False, indent=2)}

Output (strict JSON):
{{
  "place_id": "{venue.place_id}",
  "rank_score": <0-100>,
  "short_summary": "<1-2 sentences based on reviews, rating, hygiene>",
  "pros": ["...", "..."],
  "cons": ["...", "..."],
  "dishes_to_try": ["Dish 1", "Dish 2", "Dish 3"],
  "matching_menu_items": ["Dish from user menu if available"],
  "top_positive_quote": "<short excerpt>",
  "top_negative_quote": "<short excerpt>",
  "confidence": <0-1>
}}"""
