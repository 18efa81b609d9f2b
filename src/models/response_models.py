from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional, Dict, Any

from src.models.place_models import Coordinates

def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return number

def _as_string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]

class AiSummaryRecord(BaseModel):
    place_id: str
    rank_score: int = Field(..., ge=0, le=100)
    short_summary: str
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    dishes_to_try: List[str] = Field(default_factory=list)
    matching_menu_items: List[str] = Field(default_factory=list)
    top_positive_quote: Optional[str] = None
    top_negative_quote: Optional[str] = None
    confidence: float = Field(0.0, ge=0, le=1)
    generated_at: Optional[datetime] = None

    @field_validator("rank_score", mode="before")
    @classmethod
    def _clamp_rank_score(cls, value: Any) -> int:
        score = _as_number(value)
        if score is None:
            raise ValueError("rank_score is not a number")
        return int(min(100.0, max(0.0, score)) + 0.5)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        confidence = _as_number(value)
        if confidence is None:
            return 0.0
        return min(1.0, max(0.0, confidence))

    @field_validator("pros", "cons", "dishes_to_try", "matching_menu_items", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> List[str]:
        return _as_string_list(value)

class AiSummaryResponse(BaseModel):
    rank_score: int
    short_summary: str
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    dishes_to_try: List[str] = Field(default_factory=list)
    matching_menu_items: List[str] = Field(default_factory=list)
    top_positive_quote: Optional[str] = None
    top_negative_quote: Optional[str] = None
    confidence: float

class RankedResult(BaseModel):
    id: str
    place_id: str
    name: str
    rating: Optional[float] = None
    price_level: Optional[int] = None
    formatted_address: Optional[str] = None
    location: Optional[Coordinates] = None
    photos: List[str] = Field(default_factory=list)
    opening_hours: Optional[Dict[str, Any]] = None
    phone_number: Optional[str] = None
    website: Optional[str] = None
    types: List[str] = Field(default_factory=list)
    ai_summary: Optional[AiSummaryResponse] = None
    total_score: int = 0

class SearchResponse(BaseModel):
    restaurants: List[RankedResult] = Field(default_factory=list)
    search_location: Coordinates
    total_found: int = 0

class ErrorResponse(BaseModel):
    error: str
    restaurants: List[RankedResult] = Field(default_factory=list)
    total_found: int = 0

class SearchLogEntry(BaseModel):
    search_location: Coordinates
    location_query: str
    filters: Dict[str, Any] = Field(default_factory=dict)
    results_count: int = 0
    created_at: Optional[datetime] = None
