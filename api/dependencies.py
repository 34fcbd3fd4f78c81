#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI dependency injection functions for Videocatalog services.

These functions provide the database session, the catalogue service, the
YouTube API client and the token manager to the API route handlers, and
enforce the bearer-token gate on mutating endpoints.
"""

from typing import Iterator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from db.database import get_session
from db.repository import VideoRepository
from exceptions import UnauthorizedError
from services.auth import TokenManager
from services.catalog import VideoCatalogService
from services.youtube_api import YouTubeAPIClient
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

# --- Global Service Instances ---
# These variables will be populated during the application lifespan startup.
# They act as singletons for the duration of the application run.
api_client: Optional[YouTubeAPIClient] = None
token_manager: Optional[TokenManager] = None

bearer_scheme = HTTPBearer(auto_error=False)


# --- Dependency Injection Functions ---

def get_db() -> Iterator[Session]:
    """Dependency yielding a per-request database session."""
    yield from get_session()


def get_catalog_service(session: Session = Depends(get_db)) -> VideoCatalogService:
    """Dependency building the catalogue service over the request's session."""
    return VideoCatalogService(VideoRepository(session))


def get_api_client() -> YouTubeAPIClient:
    """Dependency function to get the initialized YouTubeAPIClient instance.

    Raises:
        HTTPException: 503 Service Unavailable if the client is not initialized.

    Returns:
        The singleton YouTubeAPIClient instance.
    """
    if not api_client:
        logger.critical("Dependency Error: YouTube API Client not initialized.", exc_info=False)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service Initialization Error: YouTube API Client is not available.",
            headers={"X-Error-Code": "SERVICE_UNAVAILABLE_API_CLIENT"}
        )
    return api_client


def get_token_manager() -> TokenManager:
    """Dependency function to get the initialized TokenManager instance.

    Raises:
        HTTPException: 503 Service Unavailable if the manager is not initialized.
    """
    if not token_manager:
        logger.critical("Dependency Error: Token Manager not initialized.", exc_info=False)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service Initialization Error: Authentication is not available.",
            headers={"X-Error-Code": "SERVICE_UNAVAILABLE_AUTH"}
        )
    return token_manager


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    manager: TokenManager = Depends(get_token_manager),
) -> str:
    """Dependency gating mutating endpoints behind a valid bearer token.

    Returns:
        str: The authenticated subject (user name).

    Raises:
        HTTPException: 401 with ``WWW-Authenticate: Bearer`` for a missing,
            malformed or expired token.
    """
    token = credentials.credentials if credentials else None
    try:
        return manager.validate_token(token)
    except UnauthorizedError as e:
        logger.warning(f"Rejected request: {e.message}")
        raise e.to_http_exception()
