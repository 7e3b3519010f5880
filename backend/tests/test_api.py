"""
API integration tests.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from alt_text.api.main import create_app
from alt_text.utils.exceptions import DocumentStoreError
from conftest import StubProvider


class TestHealthEndpoints:
    """Tests for health and metrics endpoints."""

    def test_health_check(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_provider_info(self, client):
        data = client.get("/api/health/provider").json()

        assert data["provider"] == "stub"
        assert data["model"] == "stub-vision"
        assert data["batch_size"] == 5
        assert data["save_mode"] == "explicit"
        assert data["generation_timeout"] == 120

    def test_metrics(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "alt_text_generations_total" in response.text

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestAuthentication:
    """Tests for bearer-token authentication."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/media/missing-alt"),
            ("post", "/api/media/generate-alt"),
            ("post", "/api/media/save-alt"),
            ("post", "/api/media/save-bulk-alt"),
        ],
    )
    def test_missing_token(self, client, method, path):
        if method == "get":
            response = client.get(path)
        else:
            response = client.post(path, json={})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_wrong_token(self, client):
        response = client.get("/api/media/missing-alt", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_unknown_collection(self, client, auth_headers):
        response = client.get("/api/banners/missing-alt", headers=auth_headers)

        assert response.status_code == 404


class TestMissingAlt:
    """Tests for GET /missing-alt."""

    def test_lists_images_without_alt(self, client, auth_headers):
        response = client.get("/api/media/missing-alt", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["totalDocs"] == 3
        assert sorted(doc["id"] for doc in data["docs"]) == ["1", "2", "3"]
        assert all(doc["alt"] is None for doc in data["docs"])

    def test_count_only(self, client, auth_headers):
        response = client.get("/api/media/missing-alt?countOnly=true", headers=auth_headers)

        assert response.json() == {"totalDocs": 3}

    def test_store_failure(self, app_settings, stub_provider, fetcher, auth_headers):
        store = MagicMock()
        store.find.side_effect = DocumentStoreError("down")
        app = create_app(app_settings, document_store=store, provider=stub_provider, fetcher=fetcher)

        with TestClient(app) as client:
            response = client.get("/api/media/missing-alt", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch images"}


class TestGenerateAlt:
    """Tests for POST /generate-alt."""

    def test_generates_for_raster_image(self, client, auth_headers):
        response = client.post(
            "/api/media/generate-alt",
            json={"imageId": "1", "imageUrl": "/media/beachSunset.jpg", "filename": "beachSunset.jpg"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "id": "1",
            "filename": "beachSunset.jpg",
            "suggestedAlt": "A red square on a plain background",
            "imageUrl": "/media/beachSunset.jpg",
        }

    def test_svg_uses_filename(self, client, auth_headers, stub_provider):
        response = client.post(
            "/api/media/generate-alt",
            json={"imageId": 2, "imageUrl": "/media/Company-Logo.svg", "filename": "Company-Logo.svg"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["suggestedAlt"] == "company logo"
        assert response.json()["id"] == "2"
        assert stub_provider.calls == []

    def test_missing_image_url(self, client, auth_headers):
        response = client.post(
            "/api/media/generate-alt", json={"imageId": "1", "filename": "a.png"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Image URL is required"}

    def test_not_an_image(self, client, auth_headers):
        response = client.post(
            "/api/media/generate-alt",
            json={"imageId": "5", "imageUrl": "/media/report.pdf", "filename": "report.pdf"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Not an image"
        assert '".pdf"' in response.json()["details"]

    def test_fetch_failure(self, client, auth_headers):
        response = client.post(
            "/api/media/generate-alt",
            json={"imageId": "9", "imageUrl": "/media/missing.png", "filename": "missing.png"},
            headers=auth_headers,
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to generate alt text",
            "details": "Failed to fetch image: 404",
        }

    def test_provider_failure(self, app_settings, document_store, fetcher, auth_headers):
        provider = StubProvider(responses=[RuntimeError("quota exhausted")])
        app = create_app(app_settings, document_store=document_store, provider=provider, fetcher=fetcher)

        with TestClient(app) as client:
            response = client.post(
                "/api/media/generate-alt",
                json={"imageId": "1", "imageUrl": "/media/a.png", "filename": "a.png"},
                headers=auth_headers,
            )

        assert response.status_code == 500
        assert "quota exhausted" in response.json()["details"]


class TestSaveAlt:
    """Tests for POST /save-alt."""

    def test_save_then_requery(self, client, auth_headers, document_store):
        response = client.post(
            "/api/media/save-alt",
            json={"imageId": "1", "altText": "Sunset over a beach", "collectionSlug": "media"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "id": "1"}
        assert document_store.get("media", "1")["alt"] == "Sunset over a beach"

        missing = client.get("/api/media/missing-alt", headers=auth_headers).json()
        assert "1" not in [doc["id"] for doc in missing["docs"]]
        assert missing["totalDocs"] == 2

    @pytest.mark.parametrize(
        "body",
        [
            {"altText": "x", "collectionSlug": "media"},
            {"imageId": "1", "collectionSlug": "media"},
        ],
    )
    def test_missing_fields(self, client, auth_headers, body):
        response = client.post("/api/media/save-alt", json=body, headers=auth_headers)

        assert response.status_code == 400

    def test_unknown_record(self, client, auth_headers):
        response = client.post(
            "/api/media/save-alt",
            json={"imageId": "999", "altText": "x", "collectionSlug": "media"},
            headers=auth_headers,
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save alt text"}


class TestSaveBulkAlt:
    """Tests for POST /save-bulk-alt."""

    def test_all_succeed(self, client, auth_headers, document_store):
        response = client.post(
            "/api/media/save-bulk-alt",
            json={
                "updates": [{"id": "1", "alt": "Beach"}, {"id": "3", "alt": "Team"}],
                "collectionSlug": "media",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert sorted(response.json()["success"]) == ["1", "3"]
        assert response.json()["failed"] == []
        assert document_store.get("media", "3")["alt"] == "Team"

    def test_partial_failure(self, app_settings, stub_provider, fetcher, auth_headers):
        store = MagicMock()

        def update(collection, record_id, data):
            if record_id == "2":
                raise DocumentStoreError("write conflict")
            return {"id": record_id, **data}

        store.update.side_effect = update
        app = create_app(app_settings, document_store=store, provider=stub_provider, fetcher=fetcher)

        with TestClient(app) as client:
            response = client.post(
                "/api/media/save-bulk-alt",
                json={
                    "updates": [{"id": "1", "alt": "a"}, {"id": "2", "alt": "b"}, {"id": "3", "alt": "c"}],
                    "collectionSlug": "media",
                },
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert sorted(response.json()["success"]) == ["1", "3"]
        assert response.json()["failed"] == ["2"]
        assert store.update.call_count == 3

    def test_malformed_items_fail_alone(self, client, auth_headers, document_store):
        before = document_store.get("media", "2")["alt"]

        response = client.post(
            "/api/media/save-bulk-alt",
            json={
                "updates": [{"id": "1", "alt": "ok"}, {"id": "2", "alt": None}, {"alt": "no id"}],
                "collectionSlug": "media",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"success": ["1"], "failed": ["2", "updates[2]"]}
        assert document_store.get("media", "1")["alt"] == "ok"
        assert document_store.get("media", "2")["alt"] == before

    def test_updates_required(self, client, auth_headers):
        response = client.post(
            "/api/media/save-bulk-alt", json={"collectionSlug": "media"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Updates array is required"}

    def test_updates_must_be_a_list(self, client, auth_headers):
        response = client.post(
            "/api/media/save-bulk-alt",
            json={"updates": "nope", "collectionSlug": "media"},
            headers=auth_headers,
        )

        assert response.status_code == 400
