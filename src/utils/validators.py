import math
import re
from typing import Optional

from src.models.place_models import Coordinates
from src.utils.errors import InvalidCoordinates

class CoordinateValidator:
    """Recognises literal "lat,lng" locations so they bypass the geocoder."""

    # Strict numeric pair: optional leading minus, optional decimal part
    LAT_LNG_PATTERN = re.compile(r"^-?\d+\.?\d*,-?\d+\.?\d*$")
    # Anything shaped like "x,y" with no whitespace
    PAIR_SHAPE_PATTERN = re.compile(r"^[^\s,]+,[^\s,]+$")
    # A run of four or more letters marks a place name ("Paris,France")
    WORD_PATTERN = re.compile(r"[^\W\d_]{4,}")
    # Digits, signs or dots mean someone was typing a number ("12.5,x", "1e5,2")
    NUMERIC_HINT_PATTERN = re.compile(r"[\d.+-]")

    @classmethod
    def is_lat_lng(cls, location: str) -> bool:
        return cls.LAT_LNG_PATTERN.match(location.strip()) is not None

    @classmethod
    def looks_like_coordinates(cls, location: str) -> bool:
        """True for strict pairs and for malformed pairs such as "abc,def" or "12.5,x".

        Short capitalised names ("NYC,NY", "SF,CA") are left to the geocoder.
        """
        candidate = location.strip()
        if cls.is_lat_lng(candidate):
            return True
        if not cls.PAIR_SHAPE_PATTERN.match(candidate):
            return False
        if cls.WORD_PATTERN.search(candidate):
            return False
        tokens = candidate.split(",")
        if any(cls.NUMERIC_HINT_PATTERN.search(token) for token in tokens):
            return True
        return all(token.isalpha() and token.islower() for token in tokens)

    @classmethod
    def parse(cls, location: str) -> Coordinates:
        """Parse a "lat,lng" string; raise InvalidCoordinates for anything else."""
        if not cls.is_lat_lng(location):
            raise InvalidCoordinates(location)
        lat_text, lng_text = location.strip().split(",")
        lat = cls._finite(lat_text)
        lng = cls._finite(lng_text)
        if lat is None or lng is None:
            raise InvalidCoordinates(location)
        return Coordinates(lat=lat, lng=lng)

    @staticmethod
    def _finite(text: str) -> Optional[float]:
        try:
            value = float(text)
        except ValueError:
            return None
        return value if math.isfinite(value) else None
