"""
test_api.py — Tests for the FastAPI web API endpoints.

Uses FastAPI's TestClient (backed by httpx) so tests run in-process without
needing a live server.  fetch_transcript() is mocked so these tests are fast
and don't require network access.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from yt_caption_pipeline.api import _BASE_SETTINGS, app
from yt_caption_pipeline.errors import InvalidReferenceError, NoCaptionsAvailableError
from yt_caption_pipeline.models import Transcript, TranscriptSegment

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def client() -> TestClient:
    """Create a fresh TestClient for each test."""
    return TestClient(app)


# Sample transcript returned by mocked fetch_transcript() calls.
_SAMPLE = Transcript.from_segments([
    TranscriptSegment(start=0.0, text="Hello world"),
    TranscriptSegment(start=31.5, text="Second line"),
])


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------

class TestHealth:
    """Tests for GET /health."""

    def test_health_returns_ok(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# POST /transcript
# ---------------------------------------------------------------------------

class TestPostTranscript:
    """Tests for POST /transcript."""

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_returns_transcript_and_timeline(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.return_value = _SAMPLE

        resp = client.post("/transcript", json={"url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"})

        assert resp.status_code == 200
        assert resp.json() == {
            "transcript": "Hello world Second line",
            "timeline": [
                {"time": "0:00", "text": "Hello world"},
                {"time": "0:31", "text": "Second line"},
            ],
        }
        assert mock_fetch.await_args.args == ("https://www.youtube.com/watch?v=dQw4w9WgXcQ",)

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_lang_sets_target_language(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.return_value = _SAMPLE

        client.post("/transcript", json={"url": "dQw4w9WgXcQ", "lang": "de"})

        assert mock_fetch.await_args.kwargs["settings"].target_language == "de"

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_invalid_reference_returns_400(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.side_effect = InvalidReferenceError("not-a-video")

        resp = client.post("/transcript", json={"url": "not-a-video"})

        assert resp.status_code == 400
        assert "not-a-video" in resp.json()["error"]

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_no_captions_returns_404(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.side_effect = NoCaptionsAvailableError("dQw4w9WgXcQ")

        resp = client.post("/transcript", json={"url": "dQw4w9WgXcQ"})

        assert resp.status_code == 404
        assert "dQw4w9WgXcQ" in resp.json()["error"]

    def test_missing_url_is_422_with_error_body(self, client: TestClient) -> None:
        resp = client.post("/transcript", json={})
        assert resp.status_code == 422
        body = resp.json()
        assert list(body) == ["error"]
        assert "body.url" in body["error"]

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_omitted_lang_uses_server_default(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.return_value = _SAMPLE

        client.post("/transcript", json={"url": "dQw4w9WgXcQ"})

        settings = mock_fetch.await_args.kwargs["settings"]
        assert settings.target_language == _BASE_SETTINGS.target_language


# ---------------------------------------------------------------------------
# GET /transcript/{video_id}
# ---------------------------------------------------------------------------

class TestGetTranscript:
    """Tests for GET /transcript/{video_id}."""

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_json_by_default(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.return_value = _SAMPLE

        resp = client.get("/transcript/dQw4w9WgXcQ")

        assert resp.status_code == 200
        assert resp.json()["transcript"] == "Hello world Second line"

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_text_format(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.return_value = _SAMPLE

        resp = client.get("/transcript/dQw4w9WgXcQ?format=text")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "Hello world\nSecond line"

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_doc_format(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.return_value = _SAMPLE

        resp = client.get("/transcript/dQw4w9WgXcQ?format=doc")

        assert resp.text == "**[0:00]** Hello world\n\n**[0:31]** Second line"

    def test_invalid_format_returns_422(self, client: TestClient) -> None:
        resp = client.get("/transcript/dQw4w9WgXcQ?format=xml")
        assert resp.status_code == 422
        assert "query.format" in resp.json()["error"]

    @patch("yt_caption_pipeline.api.fetch_transcript", new_callable=AsyncMock)
    def test_no_captions_returns_404(self, mock_fetch: AsyncMock, client: TestClient) -> None:
        mock_fetch.side_effect = NoCaptionsAvailableError("dQw4w9WgXcQ")

        resp = client.get("/transcript/dQw4w9WgXcQ")

        assert resp.status_code == 404
        assert "error" in resp.json()
