#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
API Routes for the Videocatalog application using FastAPI.

Defines the video CRUD endpoints, the YouTube import endpoint, login and
the health check.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from models import (ErrorResponse, ImportResponse, LoginRequest, TokenResponse,
                    VideoCreate, VideoFilter, VideoRead, VideoUpdate)
from exceptions import handle_exception
from services.auth import TokenManager
from services.catalog import VideoCatalogService
from services.youtube_api import YouTubeAPIClient
from api import dependencies
from api.dependencies import (get_api_client, get_catalog_service, get_db,
                              get_token_manager, require_auth)
from logging_config import StructuredLogger

from __init__ import __version__ as app_version

logger = StructuredLogger(__name__)

# Create an API router
router = APIRouter()

# Define common error responses for OpenAPI documentation
ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid input parameters"},
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired bearer token"},
    404: {"model": ErrorResponse, "description": "Video not found or deleted"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

IMPORT_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    **ERROR_RESPONSES,
    404: {"model": ErrorResponse, "description": "The YouTube search returned no videos"},
    502: {"model": ErrorResponse, "description": "The YouTube search request failed"},
    503: {"model": ErrorResponse, "description": "YouTube API client not configured"},
}


def _raise_for(e: Exception, operation: str) -> NoReturn:
    """Log ``e`` and re-raise it as the matching HTTPException."""
    if isinstance(e, HTTPException):
        logger.error(f"HTTPException during {operation}: Status={e.status_code}, Detail='{e.detail}'", exc_info=False)
    elif hasattr(e, "error_code"):
        logger.warning(f"{type(e).__name__} during {operation}: {e}", error_code=e.error_code)
    else:
        logger.critical(f"Unexpected error during {operation}: {e}", exc_info=True)
    raise handle_exception(e)


# --- Video Endpoints ---

@router.get(
    "/videos",
    response_model=List[VideoRead],
    responses=ERROR_RESPONSES,
    summary="List Videos",
    description="Lists non-deleted videos. Every supplied filter must match: case-sensitive substring filters on "
                "title, duration and author, 'publishedAfter' (strictly later), and 'q' searching title, "
                "description and channel name."
)
def list_videos(
    title: Optional[str] = Query(None, description="Substring of the title."),
    duration: Optional[str] = Query(None, description="Substring of the duration."),
    author: Optional[str] = Query(None, description="Substring of the author name."),
    published_after: Optional[str] = Query(None, alias="publishedAfter",
                                           description="Only videos published after this ISO 8601 timestamp."),
    q: Optional[str] = Query(None, description="General search over title, description and channel name."),
    service: VideoCatalogService = Depends(get_catalog_service),
):
    """Return the filtered list of non-deleted videos.

    Empty parameters are treated as absent. A malformed ``publishedAfter``
    fails VideoFilter validation (a ValueError) and is answered with 400.
    """
    try:
        filters = VideoFilter(title=title, duration=duration, author=author,
                              published_after=published_after, q=q)
        return service.list_videos(filters)
    except Exception as e:
        _raise_for(e, "GET /videos")


@router.get(
    "/videos/{video_id}",
    response_model=VideoRead,
    responses=ERROR_RESPONSES,
    summary="Get Video",
    name="get_video",
)
def get_video(video_id: int, service: VideoCatalogService = Depends(get_catalog_service)):
    """Return one non-deleted video, or 404."""
    try:
        return service.get_video(video_id)
    except Exception as e:
        _raise_for(e, f"GET /videos/{video_id}")


@router.post(
    "/videos",
    response_model=VideoRead,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create Video",
    description="Stores a new video. The response carries a Location header pointing at the new resource."
)
def create_video(
    payload: VideoCreate,
    request: Request,
    response: Response,
    service: VideoCatalogService = Depends(get_catalog_service),
    user: str = Depends(require_auth),
):
    """Create a video and return it with its location."""
    try:
        record = service.create_video(payload)
    except Exception as e:
        _raise_for(e, "POST /videos")

    response.headers["Location"] = str(request.url_for("get_video", video_id=record.id))
    logger.info(f"Video {record.id} created by {user}.", video_id=record.id, user=user)
    return record


@router.put(
    "/videos/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=ERROR_RESPONSES,
    summary="Update Video",
    description="Overwrites every mutable field of a video. The id in the body must match the id in the path."
)
def update_video(
    video_id: int,
    payload: VideoUpdate,
    service: VideoCatalogService = Depends(get_catalog_service),
    user: str = Depends(require_auth),
):
    """Fully update a non-deleted video."""
    try:
        service.update_video(video_id, payload)
    except Exception as e:
        _raise_for(e, f"PUT /videos/{video_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/videos/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=ERROR_RESPONSES,
    summary="Delete Video",
    description="Soft-deletes a video: it is flagged as deleted and hidden from every other endpoint."
)
def delete_video(
    video_id: int,
    service: VideoCatalogService = Depends(get_catalog_service),
    user: str = Depends(require_auth),
):
    """Soft-delete a non-deleted video."""
    try:
        service.delete_video(video_id)
    except Exception as e:
        _raise_for(e, f"DELETE /videos/{video_id}")
    logger.info(f"Video {video_id} deleted by {user}.", video_id=video_id, user=user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/videos/fetch",
    response_model=ImportResponse,
    responses=IMPORT_ERROR_RESPONSES,
    summary="Import Videos from YouTube",
    description="Searches YouTube with the configured topic, region and date window, looks up each "
                "result's duration and inserts every result. Uses 100+ API quota units per call."
)
async def fetch_videos(
    user: str = Depends(require_auth),
    api_client: YouTubeAPIClient = Depends(get_api_client),
    service: VideoCatalogService = Depends(get_catalog_service),
):
    """Run the YouTube import and report how many videos were stored."""
    logger.info(f"Received /videos/fetch request from {user}.", user=user)
    try:
        count = await service.import_videos(api_client)
    except Exception as e:
        _raise_for(e, "POST /videos/fetch")

    return ImportResponse(count=count, message=f"{count} videos were added to the database.")


# --- Authentication ---

@router.post(
    "/auth/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
    summary="Login",
    description="Exchanges the API credentials for a bearer token valid for a limited time."
)
def login(credentials: LoginRequest, manager: TokenManager = Depends(get_token_manager)):
    """Issue a bearer token for valid credentials."""
    try:
        token = manager.login(credentials.username, credentials.password)
    except Exception as e:
        _raise_for(e, "POST /auth/login")
    return TokenResponse(access_token=token, expires_in=manager.ttl_seconds)


# --- Health ---

@router.get(
    "/health",
    summary="Health Check",
    description="Reports service status, database reachability and YouTube API client statistics."
)
def health_check(session: Session = Depends(get_db)):
    """Endpoint to check system health and retrieve operational statistics."""
    logger.debug("Health check endpoint requested.")
    health_data: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service_version": app_version,
        "components": {
            "database": "ready",
            "youtube_api_client": "ready" if dependencies.api_client else "unavailable",
            "auth": "ready" if dependencies.token_manager else "unavailable",
        },
    }

    try:
        session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        health_data["status"] = "degraded"
        health_data["components"]["database"] = "unavailable"

    if dependencies.api_client:
        health_data["statistics"] = {"youtube_api": dependencies.api_client.get_api_stats()}

    status_code = status.HTTP_200_OK if health_data["status"] == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    if status_code != status.HTTP_200_OK:
        raise HTTPException(status_code=status_code, detail=health_data)
    return health_data
