from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from datetime import datetime, timezone
from typing import Optional

from src.models.request_models import SearchRequest
from src.models.response_models import ErrorResponse, SearchResponse
from src.services.gemini_service import GeminiService
from src.services.geocoding_service import GeocodingService
from src.services.google_places_service import GooglePlacesService
from src.services.places_cache import create_in_memory_store
from src.services.restaurant_search_service import RestaurantSearchService
from src.services.review_summary_service import ReviewSummaryService
from src.services.search_events import LoggingEventSink
from src.utils.config import get_settings, validate_settings
from src.utils.errors import RestaurantSearchError
from src.utils.firestore_manager import FirestoreManager

# Configure logging
logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format=get_settings().LOG_FORMAT
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="AI Restaurant Finder API",
    description="Rank nearby restaurants using Google Places data and Gemini review summaries",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# The browser frontend calls this API directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global services (initialized on startup)
places_service: Optional[GooglePlacesService] = None
search_service: Optional[RestaurantSearchService] = None

@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    global places_service, search_service

    try:
        # Raises MissingCredentials before any request is served
        settings = validate_settings(get_settings())

        logger.info("Initializing services...")
        events = LoggingEventSink()

        if settings.USE_FIRESTORE:
            cache = FirestoreManager(settings).create_cache_store()
        else:
            logger.warning("USE_FIRESTORE is disabled; using a process-local cache")
            cache = create_in_memory_store()

        places_service = GooglePlacesService(settings)
        summarizer = ReviewSummaryService(settings, GeminiService(settings), cache.summaries, events)
        search_service = RestaurantSearchService(
            settings,
            geocoder=GeocodingService(settings),
            places=places_service,
            summarizer=summarizer,
            cache=cache,
            events=events,
        )
        logger.info("All services initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize services: {str(e)}")
        raise

@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown"""
    if places_service is not None:
        await places_service.close()

# Dependency to get the search pipeline
def get_search_service() -> Optional[RestaurantSearchService]:
    return search_service

def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return _error_response(422, "Invalid request: " + "; ".join(messages))

@app.post("/api/v1/search-restaurants", response_model=SearchResponse)
async def search_restaurants(req: SearchRequest, service: Optional[RestaurantSearchService] = Depends(get_search_service)):
    """Find, summarize and rank restaurants around a location"""
    if service is None:
        return _error_response(503, "Search service is not initialized")

    logger.info("[search-restaurants] Search params", extra={"search_params": req.model_dump()})
    try:
        result = await service.search(req)
        logger.info(f"[search-restaurants] Returning {result.total_found} ranked restaurants")
        return result
    except RestaurantSearchError as e:
        logger.warning(f"[search-restaurants] Search failed: {e.message}")
        return _error_response(e.status_code, e.message)
    except Exception as e:
        logger.exception("[search-restaurants] Unexpected error")
        return _error_response(500, str(e))

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy" if search_service is not None else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "restaurant_search": search_service is not None,
        },
        "version": get_settings().API_VERSION
    }

@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "AI Restaurant Finder API",
        "version": get_settings().API_VERSION,
        "description": "Find and rank restaurants near a location using AI review summaries",
        "docs": "/docs",
        "health": "/health"
    }
