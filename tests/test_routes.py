"""
HTTP tests for the API routes, through FastAPI's TestClient and in-memory SQLite.
"""
import unittest
import sys
import os
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from api import dependencies
from config import config
from db.database import close_db, init_db
from exceptions import ExternalServiceError
from main import app
from models import VideoCreate
from services.auth import TokenManager
from services.catalog import VideoCatalogService
from services.youtube_api import YouTubeAPIClient

VIDEO = {
    "title": "Novo Vídeo",
    "duration": "PT4M13S",
    "author": "Ana",
    "publishedAt": "2025-03-01T12:00:00Z",
    "description": "Um vídeo novo",
    "channelName": "Canal",
}


class RoutesTestCase(unittest.TestCase):
    """Wires a fresh database and services for every test, without the lifespan."""

    def setUp(self):
        init_db("sqlite://")
        dependencies.token_manager = TokenManager(secret_key="test-secret", username="admin", password="s3cret")
        self.api_client = MagicMock(spec=YouTubeAPIClient)
        self.api_client.fetch_videos = AsyncMock(return_value=[])
        self.api_client.get_api_stats.return_value = {"api_calls_count": 0}
        dependencies.api_client = self.api_client
        self.client = TestClient(app)

        response = self.client.post("/auth/login", json={"username": "admin", "password": "s3cret"})
        self.auth = {"Authorization": f"Bearer {response.json()['access_token']}"}

    def tearDown(self):
        dependencies.api_client = None
        dependencies.token_manager = None
        close_db()

    def create(self, **overrides):
        response = self.client.post("/videos", json={**VIDEO, **overrides}, headers=self.auth)
        self.assertEqual(response.status_code, 201, response.text)
        return response


class TestVideoRoutes(RoutesTestCase):

    def test_empty_store_lists_nothing(self):
        response = self.client.get("/videos")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_create_returns_location_and_body(self):
        response = self.create()
        body = response.json()

        self.assertTrue(response.headers["Location"].endswith(f"/videos/{body['id']}"))
        self.assertEqual(body["title"], "Novo Vídeo")
        self.assertEqual(body["channelName"], "Canal")
        self.assertFalse(body["deleted"])

        fetched = self.client.get(f"/videos/{body['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json(), body)

    def test_create_accepts_snake_case(self):
        payload = {"title": "Snake", "published_at": "2025-03-01T12:00:00Z", "channel_name": "Outro"}
        response = self.client.post("/videos", json=payload, headers=self.auth)
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["channelName"], "Outro")

    def test_create_rejects_long_title(self):
        response = self.client.post("/videos", json={**VIDEO, "title": "x" * 201}, headers=self.auth)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.client.get("/videos").json(), [])

    def test_list_filters_by_title(self):
        for title in ("A", "B", "C"):
            self.create(title=title)

        response = self.client.get("/videos", params={"title": "B"})

        self.assertEqual([v["title"] for v in response.json()], ["B"])

    def test_list_filters_published_after_and_q(self):
        self.create(title="Old", publishedAt="2025-01-01T00:00:00Z")
        self.create(title="New", publishedAt="2025-06-01T00:00:00Z", channelName="Farmácia")

        after = self.client.get("/videos", params={"publishedAfter": "2025-01-01T00:00:00Z"})
        self.assertEqual([v["title"] for v in after.json()], ["New"])

        search = self.client.get("/videos", params={"q": "Farmácia"})
        self.assertEqual([v["title"] for v in search.json()], ["New"])

    def test_empty_query_parameters_are_ignored(self):
        for title in ("A", "B", "C"):
            self.create(title=title)
        deleted_id = self.create(title="D").json()["id"]
        self.client.delete(f"/videos/{deleted_id}", headers=self.auth)

        response = self.client.get("/videos?title=&duration=&author=&publishedAfter=&q=")

        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual([v["title"] for v in response.json()], ["A", "B", "C"])

    def test_published_after_with_offset(self):
        self.create(title="Ten", publishedAt="2025-03-01T10:00:00Z")

        same_instant = self.client.get("/videos", params={"publishedAfter": "2025-03-01T11:00:00+01:00"})
        earlier = self.client.get("/videos", params={"publishedAfter": "2025-03-01T09:59:00Z"})

        self.assertEqual(same_instant.json(), [])
        self.assertEqual([v["title"] for v in earlier.json()], ["Ten"])

    def test_malformed_published_after_is_400(self):
        response = self.client.get("/videos", params={"publishedAfter": "yesterday"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.headers["X-Error-Code"], "INVALID_INPUT")

    def test_get_unknown_is_404(self):
        response = self.client.get("/videos/999")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.headers["X-Error-Code"], "NOT_FOUND")

    def test_update(self):
        video_id = self.create().json()["id"]

        response = self.client.put(f"/videos/{video_id}", json={**VIDEO, "id": video_id, "title": "Editado"},
                                   headers=self.auth)

        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get(f"/videos/{video_id}").json()["title"], "Editado")

    def test_update_id_mismatch_is_400(self):
        video_id = self.create().json()["id"]

        response = self.client.put(f"/videos/{video_id}", json={**VIDEO, "id": video_id + 1, "title": "Editado"},
                                   headers=self.auth)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.headers["X-Error-Code"], "INVALID_INPUT")
        self.assertEqual(self.client.get(f"/videos/{video_id}").json()["title"], "Novo Vídeo")

    def test_update_unknown_is_404(self):
        response = self.client.put("/videos/41", json={**VIDEO, "id": 41}, headers=self.auth)
        self.assertEqual(response.status_code, 404)

    def test_delete_hides_video(self):
        video_id = self.create().json()["id"]

        response = self.client.delete(f"/videos/{video_id}", headers=self.auth)

        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get(f"/videos/{video_id}").status_code, 404)
        self.assertEqual(self.client.get("/videos").json(), [])
        self.assertEqual(self.client.delete(f"/videos/{video_id}", headers=self.auth).status_code, 404)

    def test_unexpected_error_is_generic_500(self):
        with patch.object(config, "EXPOSE_ERROR_DETAILS", False), \
                patch.object(VideoCatalogService, "list_videos", side_effect=RuntimeError("secret")):
            response = self.client.get("/videos")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Internal server error: RuntimeError")

    def test_security_headers(self):
        response = self.client.get("/videos")
        self.assertEqual(response.headers["X-Content-Type-Options"], "nosniff")

    def test_oversized_body_is_413(self):
        response = self.client.post("/videos", content=b"x" * (config.MAX_CONTENT_LENGTH + 1),
                                    headers={**self.auth, "Content-Type": "application/json"})
        self.assertEqual(response.status_code, 413)


class TestAuthGate(RoutesTestCase):

    def test_mutations_without_token_are_401(self):
        calls = [
            ("post", "/videos", {"json": VIDEO}),
            ("put", "/videos/1", {"json": {**VIDEO, "id": 1}}),
            ("delete", "/videos/1", {}),
            ("post", "/videos/fetch", {}),
        ]
        for method, path, kwargs in calls:
            response = getattr(self.client, method)(path, **kwargs)
            self.assertEqual(response.status_code, 401, f"{method} {path}")
            self.assertEqual(response.headers["WWW-Authenticate"], "Bearer")
        self.api_client.fetch_videos.assert_not_called()

    def test_invalid_token_is_401(self):
        response = self.client.post("/videos", json=VIDEO, headers={"Authorization": "Bearer nope"})
        self.assertEqual(response.status_code, 401)

    def test_reads_need_no_token(self):
        self.assertEqual(self.client.get("/videos").status_code, 200)

    def test_login_with_bad_credentials(self):
        response = self.client.post("/auth/login", json={"username": "admin", "password": "wrong"})
        self.assertEqual(response.status_code, 401)

    def test_login_returns_bearer_token(self):
        response = self.client.post("/auth/login", json={"username": "admin", "password": "s3cret"})
        body = response.json()
        self.assertEqual(body["token_type"], "bearer")
        self.assertEqual(body["expires_in"], dependencies.token_manager.ttl_seconds)


class TestFetchRoute(RoutesTestCase):

    def test_fetch_inserts_results(self):
        self.api_client.fetch_videos.return_value = [
            VideoCreate(title="Um", published_at="2025-03-01T12:00:00Z", duration="PT1M"),
            VideoCreate(title="Dois", published_at="2025-03-02T12:00:00Z", duration=""),
        ]

        response = self.client.post("/videos/fetch", headers=self.auth)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"count": 2, "message": "2 videos were added to the database."})
        self.assertEqual(len(self.client.get("/videos").json()), 2)

    def test_fetch_with_no_results_is_404(self):
        response = self.client.post("/videos/fetch", headers=self.auth)
        self.assertEqual(response.status_code, 404)

    def test_fetch_search_failure_is_502(self):
        self.api_client.fetch_videos.side_effect = ExternalServiceError("Error searching videos on YouTube. Status: 500")

        response = self.client.post("/videos/fetch", headers=self.auth)

        self.assertEqual(response.status_code, 502)
        self.assertEqual(self.client.get("/videos").json(), [])

    def test_fetch_without_client_is_503(self):
        dependencies.api_client = None
        response = self.client.post("/videos/fetch", headers=self.auth)
        self.assertEqual(response.status_code, 503)


class TestHealthRoute(RoutesTestCase):

    def test_health(self):
        response = self.client.get("/health")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["status"], "healthy")
        self.assertEqual(body["components"]["database"], "ready")
        self.assertIn("youtube_api", body["statistics"])


if __name__ == '__main__':
    unittest.main()
