"""
Composite ranking for enriched restaurants.

total_score (0-100) = rating share (50) + AI rank share (30) + price fit share (20).
Each signal is optional; a missing one contributes nothing.
"""
from typing import List, Optional

from src.models.response_models import RankedResult

RATING_WEIGHT = 50
AI_RANK_WEIGHT = 30
PRICE_FIT_WEIGHT = 20


def price_fit(price_level: Optional[int], max_price: int) -> float:
    """1.0 when the venue sits exactly at the requested ceiling, falling 0.25 per level away."""
    if price_level is None:
        return 0.0
    return 1 - abs(price_level - max_price) / 4


def compute_total_score(rating: Optional[float], ai_rank_score: Optional[float],
                        price_level: Optional[int], max_price: int) -> int:
    score = 0.0
    if rating is not None:
        score += (rating / 5) * RATING_WEIGHT
    if ai_rank_score is not None:
        score += (ai_rank_score / 100) * AI_RANK_WEIGHT
    score += price_fit(price_level, max_price) * PRICE_FIT_WEIGHT
    # Round half up; every term is non-negative
    return int(score + 0.5)


def rank_restaurants(restaurants: List[RankedResult], max_price: int) -> List[RankedResult]:
    """Score every result and sort descending; equal scores keep their input order."""
    scored = []
    for restaurant in restaurants:
        ai_rank = restaurant.ai_summary.rank_score if restaurant.ai_summary else None
        total = compute_total_score(restaurant.rating, ai_rank, restaurant.price_level, max_price)
        scored.append(restaurant.model_copy(update={"total_score": total}))
    # sorted() is stable, including with reverse=True
    return sorted(scored, key=lambda r: r.total_score, reverse=True)
