#!/usr/bin/env python3
"""
Startup script for the AI Restaurant Finder API
"""

import uvicorn
import logging
from src.utils.config import get_settings, validate_settings
from src.utils.errors import MissingCredentials

def main():
    """Main startup function"""

    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format=settings.LOG_FORMAT
    )
    logger = logging.getLogger(__name__)

    try:
        validate_settings(settings)
    except MissingCredentials as e:
        logger.error(f"Invalid configuration: {e.message}")
        logger.error("Required: GOOGLE_MAPS_API_KEY, and GEMINI_API_KEY or GOOGLE_CLOUD_PROJECT")
        return 1

    try:
        logger.info("Starting AI Restaurant Finder API...")
        logger.info(f"API Version: {settings.API_VERSION}")
        logger.info(f"Debug Mode: {settings.DEBUG_MODE}")
        logger.info(f"Gemini model: {settings.GEMINI_MODEL}")
        logger.info(f"Cache backend: {'Firestore' if settings.USE_FIRESTORE else 'in-memory'}")
        logger.info(f"Host: {settings.API_HOST}:{settings.API_PORT}")

        # Start the server
        uvicorn.run(
            "src.api.main:app",
            host=settings.API_HOST,
            port=settings.API_PORT,
            reload=settings.DEBUG_MODE,
            log_level=settings.LOG_LEVEL.lower(),
            access_log=True
        )

    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")
        return 0
    except Exception as e:
        logger.error(f"Failed to start server: {str(e)}")
        return 1

if __name__ == "__main__":
    exit(main())
