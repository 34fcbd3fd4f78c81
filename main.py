#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main FastAPI application setup for Videocatalog.

Initializes the FastAPI application, sets up lifespan management for the
database and services, registers middleware, and includes API routes.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from logging_config import StructuredLogger

# Import version directly from __init__.py
from __init__ import __version__

# Import components from the package
from api import dependencies, routes
from config import config
from db.database import close_db, init_db
from exceptions import APIConfigurationError
from middleware import RequestLoggingMiddleware
from services.auth import TokenManager
from services.youtube_api import YouTubeAPIClient

# Initialize logger for this module
logger = StructuredLogger(__name__)

# --- Lifespan Management ---

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Creates the database schema on startup and populates the global service
    instances defined in api.dependencies. Disposes of the engine on shutdown.
    """
    logger.info("Starting Videocatalog FastAPI application lifespan...")

    # --- Startup ---
    init_db()
    dependencies.token_manager = TokenManager()

    try:
        dependencies.api_client = YouTubeAPIClient(config.API_KEY)
        logger.info("YouTube API client initialized successfully.")
    except APIConfigurationError as api_err:
        # The catalogue stays usable; only /videos/fetch will answer 503
        logger.critical(f"API configuration error during startup: {api_err}", exc_info=False)
        dependencies.api_client = None
    except Exception as e:
        logger.critical(f"Critical unexpected error during YouTube client initialization: {e}", exc_info=True)
        dependencies.api_client = None

    # Yield control to the running application
    yield

    # --- Shutdown ---
    logger.info("Shutting down Videocatalog FastAPI application lifespan...")
    dependencies.api_client = None
    dependencies.token_manager = None
    close_db()
    logger.info("Lifespan cleanup finished.")


# --- FastAPI Application Instantiation ---

app = FastAPI(
    lifespan=lifespan,
    title="Videocatalog API",
    description="Catalogue of video metadata with filtered search, authenticated editing and YouTube import.",
    version=__version__
)

# --- Middleware Registration ---
logger.debug("Registering middleware...")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"]
)
logger.debug(f"CORS Middleware added. Allowed origins: {config.ALLOWED_ORIGINS}")

# Added last so it wraps everything else
app.add_middleware(RequestLoggingMiddleware)

logger.debug("All middleware registered.")

# --- API Router Inclusion ---
app.include_router(routes.router)
logger.info("API routes included.")

logger.info("FastAPI application setup complete.")
