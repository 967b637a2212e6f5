"""
payloads.py — Validated shapes of what the platform sends back.

The platform has no published contract, so every payload is checked at the
boundary and turned into CaptionTrack objects before the rest of the
pipeline sees it.  Three shapes exist:

    PlayerResponse       The player JSON, embedded in the watch page as
                         `ytInitialPlayerResponse = {...}` and returned by
                         the internal player endpoint.
    CaptionTrackList     A bare `"captionTracks": [...]` fragment.
    TrackListing         The delivery endpoint's XML list of tracks
                         (`/api/timedtext?type=list`).

Unknown fields are ignored; fields we rely on but that may be missing are
Optional rather than defaulted to made-up values.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from pydantic import BaseModel, ConfigDict, Field, RootModel, ValidationError, field_validator

from yt_caption_pipeline.errors import ParseError
from yt_caption_pipeline.models import CaptionTrack, TrackKind


class _PlatformModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


# ---------------------------------------------------------------------------
# Player response (embedded metadata and player endpoint)
# ---------------------------------------------------------------------------

class _TextRun(_PlatformModel):
    text: str = ""


class TrackName(_PlatformModel):
    """Display text, either `{"simpleText": ...}` or `{"runs": [{"text": ...}]}`."""

    simple_text: str | None = Field(default=None, alias="simpleText")
    runs: list[_TextRun] = Field(default_factory=list)

    def text(self) -> str | None:
        return self.simple_text or "".join(run.text for run in self.runs) or None


class RawCaptionTrack(_PlatformModel):
    base_url: str = Field(alias="baseUrl")
    language_code: str = Field(alias="languageCode")
    kind: str | None = None
    vss_id: str | None = Field(default=None, alias="vssId")
    name: TrackName | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _plain_name(cls, value: object) -> object:
        return {"simpleText": value} if isinstance(value, str) else value

    def to_track(self, format_hint: str | None = None) -> CaptionTrack:
        return CaptionTrack(
            language_code=self.language_code,
            kind=TrackKind.from_platform(self.kind, self.vss_id),
            source_url=self.base_url,
            format_hint=format_hint,
            name=self.name.text() if self.name is not None else None,
        )


class CaptionTracklistRenderer(_PlatformModel):
    caption_tracks: list[RawCaptionTrack] = Field(default_factory=list, alias="captionTracks")


class PlayerCaptions(_PlatformModel):
    tracklist: CaptionTracklistRenderer | None = Field(
        default=None, alias="playerCaptionsTracklistRenderer",
    )


class PlayerResponse(_PlatformModel):
    captions: PlayerCaptions | None = None

    def caption_tracks(self) -> list[RawCaptionTrack]:
        if self.captions is None or self.captions.tracklist is None:
            return []
        return list(self.captions.tracklist.caption_tracks)


class CaptionTrackList(RootModel[list[RawCaptionTrack]]):
    pass


def parse_player_response(document: object) -> PlayerResponse:
    """Validate a decoded player JSON object."""
    try:
        return PlayerResponse.model_validate(document)
    except ValidationError as exc:
        raise ParseError(f"Player response failed validation: {exc.error_count()} errors") from exc


def parse_caption_track_list(document: object) -> list[RawCaptionTrack]:
    """Validate a decoded `captionTracks` array."""
    try:
        return CaptionTrackList.model_validate(document).root
    except ValidationError as exc:
        raise ParseError(f"Caption track list failed validation: {exc.error_count()} errors") from exc


# ---------------------------------------------------------------------------
# Track listing (XML)
# ---------------------------------------------------------------------------

class ListedTrack(_PlatformModel):
    """One `<track>` element from the track-listing endpoint."""

    lang_code: str
    name: str | None = None
    kind: str | None = None
    lang_default: bool = False


class TrackListing(_PlatformModel):
    tracks: list[ListedTrack] = Field(default_factory=list)

    def default_first(self) -> list[ListedTrack]:
        """The tracks in listing order, except that the video's default track leads."""
        return sorted(self.tracks, key=lambda track: not track.lang_default)


def parse_track_listing(payload: str) -> TrackListing:
    """
    Parse the `<transcript_list>` XML returned by `type=list`.

    An empty body means the video lists no tracks and yields an empty
    listing.  Malformed XML raises ParseError.
    """
    if not payload or not payload.strip():
        return TrackListing()
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise ParseError(f"Track listing is not valid XML: {exc}") from exc

    try:
        tracks = [
            ListedTrack.model_validate({k: v for k, v in el.attrib.items() if v != ""})
            for el in root.iter("track")
        ]
    except ValidationError as exc:
        raise ParseError(f"Track listing failed validation: {exc.error_count()} errors") from exc
    return TrackListing(tracks=tracks)
