#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Video catalogue service for Videocatalog.

Business rules behind the HTTP handlers: filtered listing, lookup, create,
full update, soft delete and the YouTube import. Domain failures are raised
as typed exceptions and mapped to HTTP responses by the API layer.
"""

import asyncio
import time
from typing import List, Optional

from sqlalchemy.orm.exc import StaleDataError

from db.models import VideoRecord
from db.repository import VideoRepository
from exceptions import NotFoundError, ValidationError
from logging_config import StructuredLogger
from models import VideoCreate, VideoFilter, VideoUpdate
from services.youtube_api import YouTubeAPIClient

logger = StructuredLogger(__name__)


class VideoCatalogService:
    """Orchestrates the video repository and the YouTube client."""

    def __init__(self, repository: VideoRepository):
        self.repository = repository

    def list_videos(self, filters: Optional[VideoFilter] = None) -> List[VideoRecord]:
        """Return all non-deleted videos matching ``filters`` (empty list if none)."""
        videos = self.repository.find_all(filters)
        logger.debug("Listed videos.", count=len(videos))
        return videos

    def get_video(self, video_id: int) -> VideoRecord:
        """Return the active video with ``video_id``.

        Raises:
            NotFoundError: If the video does not exist or was deleted.
        """
        record = self.repository.find_by_id(video_id)
        if record is None:
            raise NotFoundError(f"Video {video_id} not found.")
        return record

    def create_video(self, payload: VideoCreate) -> VideoRecord:
        """Persist a new video; the store assigns its id."""
        record = self.repository.insert(payload)
        logger.info("Video created.", video_id=record.id)
        return record

    def update_video(self, video_id: int, payload: VideoUpdate) -> VideoRecord:
        """Overwrite all mutable fields of an active video.

        Raises:
            ValidationError: If ``video_id`` differs from ``payload.id``.
            NotFoundError: If the video does not exist or was deleted, including
                when it disappears while the update is being written.
        """
        if video_id != payload.id:
            raise ValidationError("Video id in the path does not match the payload id.")

        record = self.get_video(video_id)
        try:
            self.repository.update(record, payload)
        except StaleDataError:
            # The row changed under us; only report NotFound if it is really gone
            if not self.repository.exists_active(video_id):
                logger.warning("Video vanished during update.", video_id=video_id)
                raise NotFoundError(f"Video {video_id} not found.")
            raise

        logger.info("Video updated.", video_id=video_id)
        return record

    def delete_video(self, video_id: int) -> VideoRecord:
        """Soft-delete an active video.

        Raises:
            NotFoundError: If the video does not exist or was already deleted.
        """
        record = self.get_video(video_id)
        self.repository.soft_delete(record)
        logger.info("Video soft-deleted.", video_id=video_id)
        return record

    async def import_videos(self, api_client: YouTubeAPIClient) -> int:
        """Fetch videos from YouTube and insert them all in one batch.

        Every video the client returns is stored, so the count equals the
        number of usable search results. Repeated imports may insert the same
        video again.

        Returns:
            int: Number of videos inserted.

        Raises:
            NotFoundError: If the platform returned no usable videos.
            ExternalServiceError: Propagated from the client when the search fails.
        """
        start_time = time.monotonic()
        videos = await api_client.fetch_videos()
        if not videos:
            logger.info("Import found no videos; nothing stored.")
            raise NotFoundError("No videos available to import from the YouTube API.")

        # Synchronous commit, run off the event loop
        loop = asyncio.get_running_loop()
        records = await loop.run_in_executor(None, self.repository.insert_many, videos)
        logger.info(
            f"Imported {len(records)} video(s).",
            count=len(records),
            processing_time_ms=round((time.monotonic() - start_time) * 1000, 2)
        )
        return len(records)
