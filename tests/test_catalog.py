"""
Tests for the VideoCatalogService class.
"""
import unittest
import sys
import os
import threading
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from db.database import Base, create_db_engine
from db.repository import VideoRepository
from exceptions import ExternalServiceError, NotFoundError, ValidationError
from models import VideoCreate, VideoUpdate
from services.catalog import VideoCatalogService
from services.youtube_api import YouTubeAPIClient

PUBLISHED = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestVideoCatalogService(unittest.IsolatedAsyncioTestCase):
    """Service rules exercised against an in-memory database."""

    def setUp(self):
        self.engine = create_db_engine("sqlite://")
        Base.metadata.create_all(self.engine)
        self.session = Session(self.engine, expire_on_commit=False)
        self.repo = VideoRepository(self.session)
        self.service = VideoCatalogService(self.repo)

        self.api_client = MagicMock(spec=YouTubeAPIClient)
        self.api_client.fetch_videos = AsyncMock()

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def _create(self, title="Novo Vídeo", **kwargs):
        return self.service.create_video(VideoCreate(title=title, published_at=PUBLISHED, **kwargs))

    async def test_create_then_get(self):
        created = self._create(author="Ana", channel_name="Canal")
        found = self.service.get_video(created.id)

        self.assertEqual(found.title, "Novo Vídeo")
        self.assertEqual(found.author, "Ana")
        self.assertEqual(found.channel_name, "Canal")
        self.assertFalse(found.deleted)

    async def test_get_unknown_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.service.get_video(999)

    async def test_update_id_mismatch_leaves_storage_untouched(self):
        created = self._create(title="Original")
        payload = VideoUpdate(id=created.id + 1, title="Changed", published_at=PUBLISHED)

        with self.assertRaises(ValidationError):
            self.service.update_video(created.id, payload)

        self.assertEqual(self.service.get_video(created.id).title, "Original")

    async def test_update_overwrites_fields(self):
        created = self._create(title="Original", author="Ana")
        payload = VideoUpdate(id=created.id, title="Changed", duration="PT2M", published_at=PUBLISHED)

        self.service.update_video(created.id, payload)

        found = self.service.get_video(created.id)
        self.assertEqual(found.title, "Changed")
        self.assertEqual(found.duration, "PT2M")
        self.assertIsNone(found.author)

    async def test_update_unknown_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.service.update_video(5, VideoUpdate(id=5, title="X", published_at=PUBLISHED))

    async def test_delete_then_everything_reports_not_found(self):
        created = self._create(author="Ana")
        self.service.delete_video(created.id)

        with self.assertRaises(NotFoundError):
            self.service.get_video(created.id)
        with self.assertRaises(NotFoundError):
            self.service.update_video(created.id, VideoUpdate(id=created.id, title="X", published_at=PUBLISHED))
        with self.assertRaises(NotFoundError):
            self.service.delete_video(created.id)

        stored = self.repo.find_by_id(created.id, include_deleted=True)
        self.assertTrue(stored.deleted)
        self.assertEqual(stored.title, "Novo Vídeo")
        self.assertEqual(stored.author, "Ana")
        self.assertEqual(self.service.list_videos(), [])

    async def test_import_inserts_every_result(self):
        self.api_client.fetch_videos.return_value = [
            VideoCreate(title=f"Video {i}", published_at=PUBLISHED, duration="PT1M") for i in range(3)
        ]

        count = await self.service.import_videos(self.api_client)

        self.assertEqual(count, 3)
        self.assertEqual(len(self.service.list_videos()), 3)

    async def test_import_commits_off_the_event_loop(self):
        self.api_client.fetch_videos.return_value = [VideoCreate(title="Um", published_at=PUBLISHED)]
        insert_threads = []
        original_insert_many = self.repo.insert_many

        def recording_insert_many(videos):
            insert_threads.append(threading.get_ident())
            return original_insert_many(videos)

        with patch.object(self.repo, "insert_many", side_effect=recording_insert_many):
            count = await self.service.import_videos(self.api_client)

        self.assertEqual(count, 1)
        self.assertEqual(len(insert_threads), 1)
        self.assertNotEqual(insert_threads[0], threading.get_ident())

    async def test_import_twice_duplicates(self):
        self.api_client.fetch_videos.return_value = [VideoCreate(title="Same", published_at=PUBLISHED)]

        await self.service.import_videos(self.api_client)
        await self.service.import_videos(self.api_client)

        self.assertEqual(len(self.service.list_videos()), 2)

    async def test_import_with_no_results_raises_not_found(self):
        self.api_client.fetch_videos.return_value = []

        with self.assertRaises(NotFoundError):
            await self.service.import_videos(self.api_client)
        self.assertEqual(self.service.list_videos(), [])

    async def test_import_search_failure_stores_nothing(self):
        self.api_client.fetch_videos.side_effect = ExternalServiceError("Error searching videos on YouTube. Status: 500")

        with self.assertRaises(ExternalServiceError):
            await self.service.import_videos(self.api_client)
        self.assertEqual(self.service.list_videos(), [])


class TestUpdateConflict(unittest.TestCase):
    """Conflicting writes during update, with the repository mocked."""

    def setUp(self):
        self.repo = MagicMock(spec=VideoRepository)
        self.record = MagicMock()
        self.repo.find_by_id.return_value = self.record
        self.repo.update.side_effect = StaleDataError("0 rows matched")
        self.service = VideoCatalogService(self.repo)
        self.payload = VideoUpdate(id=7, title="X", published_at=PUBLISHED)

    def test_conflict_on_vanished_row_is_not_found(self):
        self.repo.exists_active.return_value = False

        with self.assertRaises(NotFoundError):
            self.service.update_video(7, self.payload)
        self.repo.exists_active.assert_called_once_with(7)

    def test_conflict_on_existing_row_is_reraised(self):
        self.repo.exists_active.return_value = True

        with self.assertRaises(StaleDataError):
            self.service.update_video(7, self.payload)
        # No retry
        self.assertEqual(self.repo.update.call_count, 1)


if __name__ == '__main__':
    unittest.main()
