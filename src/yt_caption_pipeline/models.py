"""
models.py — Core data structures shared by every stage of the pipeline.

All of these are frozen dataclasses: a VideoId is validated once and never
changes, caption tracks and attempts are created by one pipeline run and
never mutated, and a Transcript owns tuples rather than the lists the
parsers build while scanning a payload.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from yt_caption_pipeline.errors import InvalidReferenceError

# A video ID is exactly 11 characters from the base64url alphabet.
VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

def format_timestamp(seconds: float) -> str:
    """
    Render a start offset as a timeline label.

    The offset is floored to whole seconds.  Hours are shown only when
    non-zero: 83.9 → "1:23", 3723.4 → "1:02:03".
    """
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


# ---------------------------------------------------------------------------
# Video identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VideoId:
    """The platform's canonical 11-character video key."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not VIDEO_ID_PATTERN.match(self.value):
            raise InvalidReferenceError(str(self.value))

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Caption tracks
# ---------------------------------------------------------------------------

class TrackKind(str, enum.Enum):
    """Whether a track was written by a person or by speech recognition."""

    MANUAL = "manual"
    AUTO_GENERATED = "auto-generated"

    @classmethod
    def from_platform(cls, kind: str | None, vss_id: str | None = None) -> TrackKind:
        # The platform marks speech-recognition tracks with kind="asr" and
        # a vssId starting with "a.".
        if kind == "asr" or (vss_id or "").startswith("a."):
            return cls.AUTO_GENERATED
        return cls.MANUAL


@dataclass(frozen=True)
class CaptionTrack:
    """
    One caption stream offered for a video.

    Attributes:
        language_code: Platform language code, e.g. "en", "en-GB", "de".
        kind:          Manual or auto-generated.
        source_url:    Where the caption payload can be fetched.
        format_hint:   The `fmt` value to request, or None to leave it off.
        name:          Display name of the track, when the platform gives one.
    """
    language_code: str
    kind: TrackKind
    source_url: str
    format_hint: str | None = None
    name: str | None = None

    def sort_key(self) -> tuple[str, str, str]:
        return (self.language_code.lower(), self.kind.value, self.source_url)

    def describe(self) -> str:
        label = f"{self.language_code}/{self.kind.value}"
        return f"{label} ({self.name})" if self.name else label


@dataclass(frozen=True)
class CaptionRequest:
    """
    A fetchable candidate produced by a discovery strategy.

    `track` is set when the URL came from a selected CaptionTrack, and None
    when the strategy built a delivery-endpoint query directly.
    """
    url: str
    label: str
    track: CaptionTrack | None = None


# ---------------------------------------------------------------------------
# Transcripts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TranscriptSegment:
    """A single caption line and the offset (in seconds) it starts at."""

    start: float
    text: str

    @property
    def time(self) -> str:
        return format_timestamp(self.start)

    def to_dict(self) -> dict[str, str]:
        return {"time": self.time, "text": self.text}


@dataclass(frozen=True)
class Transcript:
    """
    Normalized transcript: the full text plus its timeline.

    Always build one through from_segments() (or empty()), which derives
    full_text from the same segments it stores in the timeline.
    """
    full_text: str
    timeline: tuple[TranscriptSegment, ...]

    @classmethod
    def from_segments(cls, segments: list[TranscriptSegment]) -> Transcript:
        """
        Build a transcript from parsed segments.

        Segments with empty text are dropped, and the rest are ordered by
        start offset (stable, so equal offsets keep payload order).
        """
        kept = [seg for seg in segments if seg.text]
        kept.sort(key=lambda seg: seg.start)
        timeline = tuple(kept)
        return cls(
            full_text=" ".join(seg.text for seg in timeline),
            timeline=timeline,
        )

    @classmethod
    def empty(cls) -> Transcript:
        return cls(full_text="", timeline=())

    def __bool__(self) -> bool:
        return bool(self.timeline)

    def to_response(self) -> dict:
        """Shape used by the HTTP API: transcript text plus time-labelled lines."""
        return {
            "transcript": self.full_text,
            "timeline": [seg.to_dict() for seg in self.timeline],
        }


# ---------------------------------------------------------------------------
# Discovery bookkeeping
# ---------------------------------------------------------------------------

class AttemptOutcome(str, enum.Enum):
    ACCEPTED = "accepted"
    FETCH_FAILED = "fetch-failed"
    PARSE_FAILED = "parse-failed"
    TOO_SHORT = "too-short"
    NO_CANDIDATES = "no-candidates"


@dataclass(frozen=True)
class DiscoveryAttempt:
    """What one strategy tried for one candidate, and how it went."""

    strategy: str
    target: str
    outcome: AttemptOutcome
    detail: str = ""
