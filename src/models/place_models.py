from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime

class Coordinates(BaseModel):
    lat: float
    lng: float

class Review(BaseModel):
    text: Optional[str] = ""
    rating: Optional[float] = None
    time: Optional[int] = None  # epoch seconds
    author_name: Optional[str] = None

# --- Google Maps Platform response shapes (validated at the adapter boundary) ---

class Geometry(BaseModel):
    location: Coordinates

class GeocodeResult(BaseModel):
    geometry: Geometry
    formatted_address: Optional[str] = None

class PlaceStub(BaseModel):
    """A Nearby Search hit, prior to enrichment."""
    place_id: str
    name: str = ""
    rating: Optional[float] = None
    price_level: Optional[int] = None
    vicinity: Optional[str] = None
    geometry: Optional[Geometry] = None

class NearbySearchResponse(BaseModel):
    status: str
    results: List[PlaceStub] = Field(default_factory=list)
    error_message: Optional[str] = None

class PhotoReference(BaseModel):
    photo_reference: str
    width: Optional[int] = None
    height: Optional[int] = None

class PlaceDetails(BaseModel):
    name: str = ""
    rating: Optional[float] = None
    price_level: Optional[int] = None
    formatted_address: Optional[str] = None
    geometry: Optional[Geometry] = None
    photos: List[PhotoReference] = Field(default_factory=list)
    opening_hours: Optional[Dict[str, Any]] = None
    formatted_phone_number: Optional[str] = None
    website: Optional[str] = None
    types: List[str] = Field(default_factory=list)
    reviews: List[Review] = Field(default_factory=list)

class PlaceDetailsResponse(BaseModel):
    status: str
    result: Optional[PlaceDetails] = None
    error_message: Optional[str] = None

# --- Cached records ---

class VenueRecord(BaseModel):
    place_id: str
    name: str
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    price_level: Optional[int] = Field(default=None, ge=0, le=4)
    formatted_address: Optional[str] = None
    location: Optional[Coordinates] = None
    photos: List[str] = Field(default_factory=list, description="Max 3 photo URLs for this place")
    opening_hours: Optional[Dict[str, Any]] = None
    phone_number: Optional[str] = None
    website: Optional[str] = None
    types: List[str] = Field(default_factory=list)
    reviews: List[Review] = Field(default_factory=list)
    cached_at: Optional[datetime] = None
