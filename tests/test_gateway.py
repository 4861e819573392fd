"""Test suite for the extraction gateway."""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from formlens.errors import ResponseFormatError, UpstreamError
from gateway.app.cache import cache
from gateway.app.config import settings
from gateway.app.main import app, providers

PNG_B64 = "iVBORw0KGgo="


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def clean_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_key():
    with patch.object(settings, "openai_api_key", "sk-test-key-for-gateway-tests"):
        yield


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with patch.object(settings, "openai_api_key", None):
        yield


@pytest.fixture
def mock_provider(extraction_text):
    """Create a mock vision provider returning a fenced extraction result."""
    provider = MagicMock()
    provider.complete = AsyncMock(return_value=extraction_text)
    return provider


@pytest.fixture
def request_body():
    return {
        "pdfImages": [f"data:image/png;base64,{PNG_B64}", PNG_B64],
        "dimensions": [
            {"width": 612, "height": 792, "renderWidth": 1224, "renderHeight": 1584},
            {"width": 612, "height": 792, "renderWidth": 1224, "renderHeight": 1584},
        ],
        "scale": 2,
    }


class TestGatewayHealth:
    """Test the gateway health endpoint."""

    def test_health_endpoint(self, client, api_key):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["credential_configured"] is True
        assert data["model"] == settings.extraction_model
        assert set(data["cache"]) == {"entries", "max_entries", "ttl_seconds"}

    def test_health_reports_missing_credential(self, client, no_api_key):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["credential_configured"] is False


class TestExtraction:
    """Test the extraction endpoint."""

    def test_extract_success(self, client, api_key, mock_provider, request_body):
        with patch.dict(providers, {"openai": mock_provider}):
            response = client.post("/api/extract", json=request_body)

        assert response.status_code == 200
        data = response.json()
        assert data["cached"] is False
        parsed = data["parsed"]
        assert parsed["formTitle"] == "Registration"
        assert [f["name"] for f in parsed["fields"]] == ["Full Name", "Date of Birth", "Subscribe"]
        assert parsed["fields"][0]["coordinates"] == {"x": 10.0, "y": 20.0, "width": 50.0, "height": 10.0}

    def test_images_are_stripped_before_forwarding(self, client, api_key, mock_provider, request_body):
        with patch.dict(providers, {"openai": mock_provider}):
            client.post("/api/extract", json=request_body)

        vision_request = mock_provider.complete.await_args.args[0]
        assert vision_request.images == [PNG_B64, PNG_B64]
        assert vision_request.model == settings.extraction_model
        assert "Page 1: 612px width × 792px height" in vision_request.prompt

    def test_forwarded_images_are_capped(self, client, api_key, mock_provider, request_body):
        request_body["pdfImages"] = [PNG_B64] * 5
        with patch.dict(providers, {"openai": mock_provider}), patch.object(
            settings, "max_forwarded_images", 3
        ):
            client.post("/api/extract", json=request_body)

        assert len(mock_provider.complete.await_args.args[0].images) == 3

    def test_identical_request_hits_cache(self, client, api_key, mock_provider, request_body):
        with patch.dict(providers, {"openai": mock_provider}):
            first = client.post("/api/extract", json=request_body)
            second = client.post("/api/extract", json=request_body)

        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        assert first.json()["parsed"] == second.json()["parsed"]
        mock_provider.complete.assert_awaited_once()

    def test_different_scale_misses_cache(self, client, api_key, mock_provider, request_body):
        with patch.dict(providers, {"openai": mock_provider}):
            client.post("/api/extract", json=request_body)
            request_body["scale"] = 1.5
            response = client.post("/api/extract", json=request_body)

        assert response.json()["cached"] is False
        assert mock_provider.complete.await_count == 2

    def test_invalid_request(self, client, api_key):
        response = client.post("/api/extract", json={"dimensions": [], "scale": 2})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid extraction request"

    def test_non_object_body_is_rejected_with_400(self, client, api_key, mock_provider):
        with patch.dict(providers, {"openai": mock_provider}):
            response = client.post("/api/extract", json=["x"])
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid extraction request"
        assert data["type"] == "ValidationError"
        assert "details" in data
        mock_provider.complete.assert_not_awaited()

    def test_body_that_is_not_json(self, client, api_key):
        response = client.post(
            "/api/extract", content=b"not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["type"] == "ValidationError"


class TestGatewayErrorHandling:
    """Test error handling in the gateway."""

    def test_missing_credential(self, client, no_api_key, mock_provider, request_body):
        with patch.dict(providers, {"openai": mock_provider}):
            response = client.post("/api/extract", json=request_body)

        assert response.status_code == 500
        data = response.json()
        assert data["type"] == "ConfigError"
        assert "not configured" in data["error"]
        mock_provider.complete.assert_not_awaited()

    def test_upstream_error_keeps_status(self, client, api_key, mock_provider, request_body):
        mock_provider.complete.side_effect = UpstreamError(429, '{"error": "rate limited"}')
        with patch.dict(providers, {"openai": mock_provider}):
            response = client.post("/api/extract", json=request_body)

        assert response.status_code == 429
        data = response.json()
        assert data["type"] == "UpstreamError"
        assert data["details"] == '{"error": "rate limited"}'

    def test_malformed_model_output(self, client, api_key, mock_provider, request_body):
        mock_provider.complete.return_value = "not json at all"
        with patch.dict(providers, {"openai": mock_provider}):
            response = client.post("/api/extract", json=request_body)

        assert response.status_code == 500
        data = response.json()
        assert data["type"] == "ResponseFormatError"
        assert data["details"] == "not json at all"

    def test_schema_violation(self, client, api_key, mock_provider, request_body):
        mock_provider.complete.return_value = json.dumps({"fields": [{"value": "no name"}]})
        with patch.dict(providers, {"openai": mock_provider}):
            response = client.post("/api/extract", json=request_body)

        assert response.status_code == 500
        assert response.json()["type"] == "ResponseFormatError"

    def test_failures_are_not_cached(self, client, api_key, mock_provider, request_body, extraction_text):
        mock_provider.complete.side_effect = [
            ResponseFormatError("bad", raw_text="bad"),
            extraction_text,
        ]
        with patch.dict(providers, {"openai": mock_provider}):
            first = client.post("/api/extract", json=request_body)
            second = client.post("/api/extract", json=request_body)

        assert first.status_code == 500
        assert second.status_code == 200
        assert second.json()["cached"] is False

    def test_unexpected_provider_error(self, client, api_key, mock_provider, request_body):
        mock_provider.complete.side_effect = RuntimeError("boom")
        with patch.dict(providers, {"openai": mock_provider}):
            response = client.post("/api/extract", json=request_body)

        assert response.status_code == 500
        assert "boom" in response.json()["error"]
