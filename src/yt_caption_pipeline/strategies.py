"""
strategies.py — The three routes for finding a video's captions.

Each strategy turns a VideoId into a stream of CaptionRequest candidates.
The pipeline fetches and parses them one at a time and stops the stream as
soon as one is accepted, so a strategy never does more work than needed.

    EmbeddedMetadataStrategy  Caption tracks embedded in the watch page.
    PlayerApiStrategy         Caption tracks from the internal player API.
    DirectEndpointStrategy    Guessed queries against the delivery endpoint,
                              then every track in its own listing.

Strategies 1 and 2 find track lists and pass them through select_track();
strategy 3 builds delivery URLs itself.  Any UpstreamFetchError or
ParseError a strategy raises ends that strategy only.
"""

from __future__ import annotations

import abc
import json
import re
from dataclasses import dataclass, field
from typing import AsyncIterator

import httpx

from yt_caption_pipeline.config import PipelineSettings
from yt_caption_pipeline.errors import ParseError
from yt_caption_pipeline.fetcher import HttpFetcher
from yt_caption_pipeline.models import CaptionRequest, CaptionTrack, VideoId
from yt_caption_pipeline.payloads import (
    RawCaptionTrack,
    parse_caption_track_list,
    parse_player_response,
    parse_track_listing,
)
from yt_caption_pipeline.selector import matches_language, needs_translation, select_track

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PLAYER_RESPONSE_ASSIGNMENT = re.compile(r"ytInitialPlayerResponse\s*=\s*")
_CAPTION_TRACKS_FRAGMENT = re.compile(r'"captionTracks"\s*:\s*')
_API_KEY = re.compile(r'"INNERTUBE_API_KEY"\s*:\s*"(?P<value>[^"]+)"')
_CLIENT_VERSION = re.compile(
    r'"(?:INNERTUBE_CLIENT_VERSION|INNERTUBE_CONTEXT_CLIENT_VERSION)"\s*:\s*"(?P<value>[^"]+)"'
)
# Some pages only carry the version inside the client context object.
_CLIENT_VERSION_FALLBACK = re.compile(r'"clientVersion"\s*:\s*"(?P<value>[^"]+)"')

_PLAYER_ENDPOINT = "/youtubei/v1/player"
_TIMEDTEXT_ENDPOINT = "/api/timedtext"

_decoder = json.JSONDecoder()


# ---------------------------------------------------------------------------
# Per-run context
# ---------------------------------------------------------------------------

@dataclass
class DiscoveryContext:
    """
    State shared by the strategies of one pipeline run, and only that run.

    The watch page is fetched at most once per run: strategies 1 and 2 both
    read it.  A failed fetch is not remembered, so strategy 2 retries it.
    """
    fetcher: HttpFetcher
    settings: PipelineSettings
    _watch_page: str | None = field(default=None, repr=False)

    def url(self, path: str) -> str:
        return self.settings.base_url.rstrip("/") + path

    async def watch_page(self, video_id: VideoId) -> str:
        if self._watch_page is None:
            self._watch_page = await self.fetcher.get_text(
                self.url("/watch"),
                params={"v": str(video_id), "hl": self.settings.target_language},
            )
        return self._watch_page


# ---------------------------------------------------------------------------
# Watch-page extraction
# ---------------------------------------------------------------------------

def _decode_at(text: str, index: int) -> object | None:
    try:
        value, _end = _decoder.raw_decode(text, index)
    except json.JSONDecodeError:
        return None
    return value


def extract_embedded_tracks(html: str) -> list[RawCaptionTrack]:
    """
    Pull the caption-track list out of a watch page.

    Tries the `ytInitialPlayerResponse = {...}` assignment first, then a bare
    `"captionTracks": [...]` fragment.  A page that carries player metadata
    but no captions gives an empty list.

    Raises:
        ParseError: If neither embedding is present or decodable.
    """
    for match in _PLAYER_RESPONSE_ASSIGNMENT.finditer(html):
        document = _decode_at(html, match.end())
        if isinstance(document, dict):
            tracks = parse_player_response(document).caption_tracks()
            if tracks:
                return tracks
            break

    fragment = _CAPTION_TRACKS_FRAGMENT.search(html)
    if fragment is not None:
        document = _decode_at(html, fragment.end())
        if isinstance(document, list):
            return parse_caption_track_list(document)

    if _PLAYER_RESPONSE_ASSIGNMENT.search(html):
        return []
    raise ParseError("Watch page carries no embedded player metadata")


def extract_innertube_tokens(html: str) -> tuple[str, str]:
    """
    Return the (API key, client version) pair the player endpoint needs.

    Raises:
        ParseError: If either token is missing from the page.
    """
    key = _API_KEY.search(html)
    version = _CLIENT_VERSION.search(html) or _CLIENT_VERSION_FALLBACK.search(html)
    if key is None or version is None:
        raise ParseError("Watch page carries no player API key or client version")
    return key.group("value"), version.group("value")


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------

def with_params(url: str, params: dict[str, str | None]) -> str:
    """
    Set query parameters on a URL, replacing any with the same name.

    Raises:
        ParseError: If the URL (usually a track URL taken from a page) is
                    not a valid URL.
    """
    try:
        result = httpx.URL(url)
        for key, value in params.items():
            if value:
                result = result.copy_set_param(key, value)
    except httpx.InvalidURL as exc:
        raise ParseError(f"Malformed caption URL {url!r}: {exc}") from exc
    return str(result)


def request_for_track(track: CaptionTrack, context: DiscoveryContext) -> CaptionRequest:
    """
    Build the fetch for a selected track: format hint plus, when the track
    isn't in the target language, translation on delivery.
    """
    target = context.settings.target_language
    source = track.source_url
    if source.startswith("/"):
        source = context.url(source)

    translate = needs_translation(track, target)
    url = with_params(source, {
        "fmt": track.format_hint,
        "tlang": target if translate else None,
    })
    label = track.describe() + (f" -> {target}" if translate else "")
    return CaptionRequest(url=url, label=label, track=track)


def _format_hint(context: DiscoveryContext) -> str | None:
    return context.settings.format_hint or None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class DiscoveryStrategy(abc.ABC):
    """A route for finding caption candidates for one video."""

    name: str = "strategy"

    @abc.abstractmethod
    def discover(self, video_id: VideoId, context: DiscoveryContext) -> AsyncIterator[CaptionRequest]:
        """Yield candidates in the order they should be tried."""

    def _select(self, raw_tracks: list[RawCaptionTrack], context: DiscoveryContext) -> list[CaptionRequest]:
        if not raw_tracks:
            return []
        hint = _format_hint(context)
        tracks = [raw.to_track(format_hint=hint) for raw in raw_tracks]
        chosen = select_track(tracks, context.settings.target_language)
        return [request_for_track(chosen, context)]


class EmbeddedMetadataStrategy(DiscoveryStrategy):
    """Read caption tracks from the metadata embedded in the watch page."""

    name = "embedded-metadata"

    async def discover(self, video_id: VideoId, context: DiscoveryContext) -> AsyncIterator[CaptionRequest]:
        html = await context.watch_page(video_id)
        for request in self._select(extract_embedded_tracks(html), context):
            yield request


class PlayerApiStrategy(DiscoveryStrategy):
    """Ask the internal player endpoint for caption metadata."""

    name = "player-api"

    async def discover(self, video_id: VideoId, context: DiscoveryContext) -> AsyncIterator[CaptionRequest]:
        html = await context.watch_page(video_id)
        api_key, client_version = extract_innertube_tokens(html)

        body = {
            "context": {
                "client": {
                    "clientName": "WEB",
                    "clientVersion": client_version,
                    "hl": context.settings.target_language,
                },
            },
            "videoId": str(video_id),
        }
        document = await context.fetcher.post_json(
            context.url(_PLAYER_ENDPOINT),
            body,
            params={"key": api_key},
        )
        player = parse_player_response(document)
        for request in self._select(player.caption_tracks(), context):
            yield request


class DirectEndpointStrategy(DiscoveryStrategy):
    """
    Query the delivery endpoint directly.

    First a fixed list of likely parameter combinations, then one query per
    track the endpoint's own listing reports.
    """

    name = "direct-endpoint"

    def _query(self, context: DiscoveryContext, params: dict[str, str | None]) -> CaptionRequest:
        params = {**params, "fmt": _format_hint(context)}
        label = " ".join(f"{k}={v}" for k, v in params.items() if v and k != "v")
        return CaptionRequest(
            url=with_params(context.url(_TIMEDTEXT_ENDPOINT), params),
            label=f"timedtext {label}".strip(),
        )

    async def discover(self, video_id: VideoId, context: DiscoveryContext) -> AsyncIterator[CaptionRequest]:
        vid = str(video_id)
        target = context.settings.target_language

        for params in (
            {"v": vid, "lang": target, "kind": "asr"},
            {"v": vid, "lang": target},
            {"v": vid, "kind": "asr", "tlang": target},
        ):
            yield self._query(context, params)

        listing_text = await context.fetcher.get_text(
            context.url(_TIMEDTEXT_ENDPOINT),
            params={"type": "list", "v": vid},
        )
        for listed in parse_track_listing(listing_text).default_first():
            translate = not matches_language(listed.lang_code, target)
            yield self._query(context, {
                "v": vid,
                "lang": listed.lang_code,
                "name": listed.name,
                "kind": listed.kind,
                "tlang": target if translate else None,
            })


def default_strategies() -> list[DiscoveryStrategy]:
    """The strategies in the order a run tries them."""
    return [
        EmbeddedMetadataStrategy(),
        PlayerApiStrategy(),
        DirectEndpointStrategy(),
    ]
