"""
conftest.py — Shared fixtures: caption payloads and a fake video platform.

FakePlatform routes requests made through an httpx.AsyncClient to canned
responses via httpx.MockTransport, so pipeline tests exercise the real
fetcher, strategies and parsers without touching the network.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import httpx
import pytest

from yt_caption_pipeline.config import PipelineSettings
from yt_caption_pipeline.diagnostics import NullDiagnostics
from yt_caption_pipeline.fetcher import HttpFetcher
from yt_caption_pipeline.models import DiscoveryAttempt, Transcript
from yt_caption_pipeline.pipeline import TranscriptPipeline

VIDEO_ID = "ABCDEFGHIJK"
BASE = "https://www.youtube.com"


# ---------------------------------------------------------------------------
# Caption payloads: the same three lines in each wire format
# ---------------------------------------------------------------------------

EXPECTED_TEXT = (
    "Hello and welcome to the channel "
    "today we look at caption formats "
    "and why parsing them is fun & tricky"
)

TIMED_XML = (
    '<?xml version="1.0" encoding="utf-8" ?><transcript>'
    '<text start="0" dur="2.5">Hello and welcome to the channel</text>'
    '<text start="2.5" dur="3">today we look at &lt;i&gt;caption&lt;/i&gt; formats</text>'
    '<text start="65.2" dur="2">and why parsing them is fun &amp; tricky</text>'
    "</transcript>"
)

EVENT_JSON = json.dumps({
    "wireMagic": "pb3",
    "events": [
        {"tStartMs": 0, "dDurationMs": 67200, "id": 1, "wpWinPosId": 1},
        {"tStartMs": 0, "dDurationMs": 2500, "segs": [
            {"utf8": "Hello and welcome"}, {"utf8": " to the channel"},
        ]},
        {"tStartMs": 2500, "dDurationMs": 3000, "segs": [
            {"utf8": "today we look at caption formats"},
        ]},
        {"tStartMs": 65200, "dDurationMs": 2000, "segs": [
            {"utf8": "and why parsing them\nis fun & tricky"},
        ]},
        {"tStartMs": 67000, "aAppend": 1, "segs": [{"utf8": "\n"}]},
    ],
})

CUE_VTT = """WEBVTT
Kind: captions
Language: en

00:00:00.000 --> 00:00:02.500 align:start position:0%
Hello and welcome
to the channel

00:02.500 --> 00:05.500
today we look at <c>caption</c> formats

3
00:01:05.200 --> 00:01:07.200
and why parsing them is fun &amp; tricky
"""

SHORT_XML = '<transcript><text start="0" dur="1">[Music]</text></transcript>'


# ---------------------------------------------------------------------------
# Watch page builders
# ---------------------------------------------------------------------------

def caption_track(language_code: str, kind: str | None = None, url: str | None = None) -> dict:
    track: dict[str, Any] = {
        "baseUrl": url or f"{BASE}/api/timedtext?v={VIDEO_ID}&lang={language_code}"
                          + (f"&kind={kind}" if kind else ""),
        "languageCode": language_code,
        "name": {"simpleText": language_code},
        "vssId": ("a." if kind == "asr" else ".") + language_code,
        "isTranslatable": True,
    }
    if kind:
        track["kind"] = kind
    return track


def player_response(tracks: list[dict] | None) -> dict:
    response: dict[str, Any] = {"playabilityStatus": {"status": "OK"}, "videoDetails": {"videoId": VIDEO_ID}}
    if tracks is not None:
        response["captions"] = {
            "playerCaptionsTracklistRenderer": {"captionTracks": tracks, "audioTracks": []},
        }
    return response


def watch_page(tracks: list[dict] | None = None, *, tokens: bool = True) -> str:
    """A trimmed-down watch page with the player response assigned inline."""
    config = ""
    if tokens:
        config = (
            'ytcfg.set({"INNERTUBE_API_KEY":"AIzaTESTKEY","INNERTUBE_CLIENT_VERSION":"2.20240101.00.00"});'
        )
    return (
        "<!DOCTYPE html><html><head><script>"
        + config
        + "</script></head><body><script>var ytInitialPlayerResponse = "
        + json.dumps(player_response(tracks))
        + ";var meta = document.createElement('meta');</script></body></html>"
    )


# ---------------------------------------------------------------------------
# Fake platform
# ---------------------------------------------------------------------------

Responder = Callable[[httpx.Request], Any]


class FakePlatform:
    """
    Route table for httpx.MockTransport.

    Routes are matched in registration order on method, path and a subset
    of query parameters.  Unmatched requests get a 404.
    """

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, dict[str, str], Responder]] = []
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, responder: Responder | str | dict, **params: str) -> None:
        if isinstance(responder, dict):
            body = responder
            responder = lambda request: httpx.Response(200, json=body)  # noqa: E731
        elif isinstance(responder, str):
            text = responder
            responder = lambda request: httpx.Response(200, text=text)  # noqa: E731
        self.routes.append((method, path, params, responder))

    def handler(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        for method, path, params, responder in self.routes:
            if request.method != method or request.url.path != path:
                continue
            if all(request.url.params.get(k) == v for k, v in params.items()):
                return responder(request)
        return httpx.Response(404, text="")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def paths(self, method: str | None = None) -> list[str]:
        return [r.url.path for r in self.requests if method is None or r.method == method]


class RecordingDiagnostics(NullDiagnostics):
    """Keeps every event so tests can assert on the run's history."""

    def __init__(self) -> None:
        self.states: list[str] = []
        self.strategies: list[str] = []
        self.attempts: list[DiscoveryAttempt] = []
        self.accepted: list[tuple[str, Transcript]] = []
        self.exhausted = False

    def state_changed(self, video_id: str, state: str) -> None:
        self.states.append(state)

    def strategy_started(self, video_id: str, strategy: str) -> None:
        self.strategies.append(strategy)

    def attempt_recorded(self, video_id: str, attempt: DiscoveryAttempt) -> None:
        self.attempts.append(attempt)

    def transcript_accepted(self, video_id: str, strategy: str, transcript: Transcript) -> None:
        self.accepted.append((strategy, transcript))

    def pipeline_exhausted(self, video_id: str, attempts: tuple[DiscoveryAttempt, ...]) -> None:
        self.exhausted = True


def run_pipeline(
    platform: FakePlatform,
    reference: str,
    *,
    settings: PipelineSettings | None = None,
    diagnostics: RecordingDiagnostics | None = None,
) -> Transcript:
    """Run a fresh pipeline against the fake platform and return its result."""

    async def go() -> Transcript:
        async with platform.client() as client:
            pipeline = TranscriptPipeline(settings=settings, diagnostics=diagnostics)
            return await pipeline.run(reference, fetcher=HttpFetcher(client))

    return asyncio.run(go())


@pytest.fixture()
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture()
def diagnostics() -> RecordingDiagnostics:
    return RecordingDiagnostics()
