from pydantic_settings import BaseSettings
from typing import Optional

from src.utils.errors import MissingCredentials

class Settings(BaseSettings):
    # Google Maps Platform (geocoding, places search, place details, photos)
    GOOGLE_MAPS_API_KEY: str = ""

    # Gemini: API key for the Gemini Developer API, or a Cloud project for Vertex AI
    GEMINI_API_KEY: Optional[str] = None
    GOOGLE_CLOUD_PROJECT: Optional[str] = None
    GOOGLE_CLOUD_LOCATION: str = "us-central1"
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_TEMPERATURE: float = 0.2
    GEMINI_MAX_OUTPUT_TOKENS: int = 1000

    # Firestore cache
    USE_FIRESTORE: bool = True
    FIRESTORE_PROJECT_ID: Optional[str] = None
    FIRESTORE_CREDENTIALS: Optional[str] = None  # path to Firestore service account json
    FIRESTORE_DATABASE_ID: Optional[str] = None  # defaults to '(default)'
    FIRESTORE_RESTAURANTS_COLLECTION: str = "restaurants"
    FIRESTORE_SUMMARIES_COLLECTION: str = "restaurant_ai_summaries"
    FIRESTORE_SEARCHES_COLLECTION: str = "user_searches"

    # API Configuration
    API_VERSION: str = "1.0.0"
    DEBUG_MODE: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Caching
    CACHE_MAX_AGE_HOURS: int = 24

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Search pipeline limits
    MAX_CANDIDATES: int = 25
    MAX_REVIEWS_FOR_SUMMARY: int = 12
    MIN_REVIEW_LENGTH: int = 20
    MAX_PHOTOS_PER_PLACE: int = 3
    PHOTO_MAX_WIDTH: int = 800
    HTTP_TIMEOUT_SECONDS: float = 20.0

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}

# Global settings instance
settings = Settings()

def get_settings() -> Settings:
    """Get the global settings instance"""
    return settings

def validate_settings(config: Optional[Settings] = None) -> Settings:
    """Fail fast when credentials required by the search pipeline are absent.

    Google Maps needs an API key. Gemini can be reached either with an API key
    (Gemini Developer API) or through a Cloud project (Vertex AI); one of the
    two must be configured.
    """
    config = config or settings

    missing_settings = []
    if not config.GOOGLE_MAPS_API_KEY:
        missing_settings.append("GOOGLE_MAPS_API_KEY")
    if not config.GEMINI_API_KEY and not config.GOOGLE_CLOUD_PROJECT:
        missing_settings.append("GEMINI_API_KEY or GOOGLE_CLOUD_PROJECT")

    if missing_settings:
        raise MissingCredentials(missing_settings)

    # If FIRESTORE_PROJECT_ID not set, fallback to GOOGLE_CLOUD_PROJECT (but allow split-projects)
    if not config.FIRESTORE_PROJECT_ID:
        config.FIRESTORE_PROJECT_ID = config.GOOGLE_CLOUD_PROJECT

    return config
