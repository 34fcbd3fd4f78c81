#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
YouTube Data API v3 Client for Videocatalog.

Runs the import search (one ``search.list`` call with a fixed topic, region,
result cap and publication window) and looks up each result's duration with
a ``videos.list`` call. Results are mapped into ``VideoCreate`` payloads ready
to be stored.
"""

import asyncio
import functools
import html
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import isodate
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

# Imports from this package
from config import config
from exceptions import APIConfigurationError, ExternalServiceError
from models import TITLE_MAX_LENGTH, VideoCreate
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


def obfuscate_key(key: Optional[str]) -> str:
    """Return an obfuscated version of the key suitable for logging.

    Args:
        key: The API key.

    Returns:
        str: Obfuscated key (e.g., "AIza...abc") or "[MISSING]".
    """
    if not key:
        return "[MISSING]"
    if len(key) > 7:
        return f"{key[:4]}...{key[-3:]}"
    return f"{key[0]}...{'*' * (len(key) - 1)}"


def parse_published_at(value: Optional[str]) -> Optional[datetime]:
    """Parse a YouTube ``publishedAt`` string into an aware UTC datetime.

    Args:
        value: ISO 8601 timestamp such as ``2025-03-01T12:00:00Z``.

    Returns:
        datetime: UTC datetime, or None if the value is missing or malformed.
    """
    if not value:
        return None
    try:
        dt = isodate.parse_datetime(value)
    except (ValueError, isodate.ISO8601Error) as e:
        logger.warning(f"Invalid publication date format: {value} - {e}", date_str=value, error=str(e))
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _unescape(value: Optional[str]) -> Optional[str]:
    # The search endpoint returns HTML-escaped snippet text (e.g. "&#39;")
    return html.unescape(value) if value else value


class YouTubeAPIClient:
    """Client for the YouTube Data API v3 search and video-detail endpoints.

    A failed search aborts the whole fetch with ExternalServiceError. A failed
    detail lookup only costs that item its duration, which is left empty.
    """

    # API quota costs for different endpoint calls (estimates)
    API_COST = {
        "videos.list": 1,
        "search.list": 100,
    }

    def __init__(self, api_key: Optional[str] = None, youtube: Optional[Resource] = None):
        """Initialize the YouTube API client.

        Args:
            api_key: YouTube Data API key. If None, uses config.API_KEY.
            youtube: Prebuilt API resource; built from the key when omitted.

        Raises:
            APIConfigurationError: If the API key is missing or client cannot be built.
        """
        logger.info("Initializing YouTube API Client...")
        self.api_key = api_key if api_key is not None else config.API_KEY

        if not self.api_key:
            logger.critical("YouTube API key is missing.", exc_info=False)
            raise APIConfigurationError(f"YouTube API key is not configured (env var {config.API_KEY_ENV_VAR}).")

        if youtube is not None:
            self.youtube = youtube
        else:
            try:
                # cache_discovery=False prevents issues with stale discovery documents
                self.youtube = build("youtube", "v3", developerKey=self.api_key, cache_discovery=False)
            except Exception as e:
                logger.critical(f"Error initializing YouTube API client build: {e}", error=str(e))
                raise APIConfigurationError(f"Could not initialize YouTube API service: {e}") from e

        # Statistics tracking
        self.api_calls_count = 0
        self.api_quota_used = 0
        self.failed_detail_lookups = 0

        logger.info("YouTube API Client initialized.", api_key=obfuscate_key(self.api_key))

    async def _execute_api_call(self, api_request: Any, cost: int = 1) -> dict:
        """Execute a googleapiclient request in the default executor.

        Args:
            api_request: The request object (e.g., youtube.videos().list(...)).
            cost: Estimated API quota cost for this request type.

        Returns:
            dict: The parsed JSON response from the API.

        Raises:
            HttpError: For non-2xx responses; callers decide how fatal that is.
        """
        loop = asyncio.get_running_loop()
        execute = functools.partial(api_request.execute, num_retries=0)
        try:
            response = await loop.run_in_executor(None, execute)
        finally:
            # Failed calls consume quota too
            self.api_calls_count += 1
            self.api_quota_used += cost
        return response or {}

    def _search_params(self) -> Dict[str, Any]:
        return {
            "part": "snippet",
            "type": "video",
            "q": config.SEARCH_QUERY,
            "regionCode": config.SEARCH_REGION_CODE,
            "maxResults": config.MAX_SEARCH_RESULTS,
            "publishedAfter": config.SEARCH_PUBLISHED_AFTER,
            "publishedBefore": config.SEARCH_PUBLISHED_BEFORE,
        }

    async def search_videos(self) -> List[dict]:
        """Run the fixed import search and return the raw result items.

        Raises:
            ExternalServiceError: If the search request does not succeed.
        """
        params = self._search_params()
        logger.info(
            f"Performing high-cost API search (100 units) for: '{params['q']}'",
            query=params["q"],
            region=params["regionCode"],
            max_results=params["maxResults"],
            quota_cost=self.API_COST["search.list"]
        )
        try:
            req = self.youtube.search().list(**params)
            resp = await self._execute_api_call(req, cost=self.API_COST["search.list"])
        except HttpError as http_err:
            status_code = getattr(getattr(http_err, "resp", None), "status", None)
            logger.error(
                f"YouTube search request failed. Status: {status_code}",
                status=status_code,
                error=str(http_err),
                exc_info=False
            )
            raise ExternalServiceError(f"Error searching videos on YouTube. Status: {status_code}") from http_err

        items = resp.get("items", []) or []
        logger.info(f"Search returned {len(items)} item(s).", item_count=len(items))
        return items

    async def get_video_duration(self, video_id: str) -> str:
        """Fetch the ISO 8601 duration of one video.

        Returns:
            str: The duration, or "" if the lookup fails or the video is unknown.
        """
        try:
            req = self.youtube.videos().list(part="contentDetails", id=video_id)
            resp = await self._execute_api_call(req, cost=self.API_COST["videos.list"])
        except HttpError as http_err:
            self.failed_detail_lookups += 1
            status_code = getattr(getattr(http_err, "resp", None), "status", None)
            logger.warning(
                f"Could not fetch details for video {video_id}; duration left empty.",
                video_id=video_id,
                status=status_code
            )
            return ""

        for item in resp.get("items", []) or []:
            return item.get("contentDetails", {}).get("duration", "") or ""
        return ""

    def map_search_item(self, item: dict, duration: str) -> Optional[VideoCreate]:
        """Map a search result item and its duration into a VideoCreate payload.

        Items without a title or a parseable ``publishedAt`` cannot be stored
        (both columns are required) and are skipped.

        Returns:
            VideoCreate: The mapped record, or None if the item is unusable.
        """
        snippet = item.get("snippet", {}) or {}
        published_at = parse_published_at(snippet.get("publishedAt"))
        title = _unescape(snippet.get("title"))
        if not title or published_at is None:
            logger.warning(
                "Skipping search item without title or publication date.",
                video_id=item.get("id", {}).get("videoId")
            )
            return None

        channel_title = _unescape(snippet.get("channelTitle"))
        return VideoCreate(
            title=title[:TITLE_MAX_LENGTH],
            description=_unescape(snippet.get("description")),
            channel_name=channel_title,
            published_at=published_at,
            duration=duration,
            # The platform has no separate author concept
            author=channel_title,
        )

    async def fetch_videos(self) -> List[VideoCreate]:
        """Search the platform and map every result into a VideoCreate payload.

        Detail lookups run one after the other, after the search. Items without
        a videoId, a title or a parseable publication date are skipped, so the
        result may be shorter than the search response.

        Returns:
            list: Mapped videos (possibly empty).

        Raises:
            ExternalServiceError: If the search request does not succeed.
        """
        items = await self.search_videos()

        videos: List[VideoCreate] = []
        for item in items:
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                logger.debug("Skipping search item without a videoId.")
                continue

            duration = await self.get_video_duration(video_id)
            video = self.map_search_item(item, duration)
            if video is not None:
                videos.append(video)

        logger.info(
            f"Fetched {len(videos)} video(s) from YouTube.",
            video_count=len(videos),
            api_calls=self.api_calls_count
        )
        return videos

    def get_api_stats(self) -> Dict[str, Any]:
        """Returns current API usage statistics.

        Returns:
            dict: Statistics including API calls, quota used and the obfuscated key.
        """
        return {
            "api_calls_count": self.api_calls_count,
            "api_quota_used_estimated": self.api_quota_used,
            "failed_detail_lookups": self.failed_detail_lookups,
            "api_key_info": {
                "available": bool(self.api_key),
                "obfuscated": obfuscate_key(self.api_key)
            }
        }
