"""
yt_caption_pipeline — Fetch time-aligned YouTube transcripts without an
official download API.

Public API:
    extract()               Blocking one-call interface (URL → formatted output).
    fetch_transcript()      Async: resolve, discover, fetch and parse.
    resolve_reference()     Parse a YouTube URL or validate a bare video ID.
    TranscriptPipeline      The discovery-and-parsing orchestrator.
    PipelineSettings        Thresholds, timeouts and target language.
    detect_format()         Sniff a caption payload's wire format.
    parse_payload()         Detect and parse a caption payload.
    select_track()          Pick the best caption track from a set.
    Transcript              Full text plus timeline of TranscriptSegments.

Exception hierarchy (all importable from this package):
    TranscriptError                 Base exception.
    ├── InvalidReferenceError       Input is not a video URL or ID.
    ├── NoCaptionsAvailableError    Every route failed.
    ├── UpstreamFetchError          A platform request failed (internal).
    └── ParseError                  A payload had an unknown shape (internal).

Usage:
    from yt_caption_pipeline import extract
    text = extract("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
"""

from yt_caption_pipeline.config import PipelineSettings
from yt_caption_pipeline.errors import (
    InvalidReferenceError,
    NoCaptionsAvailableError,
    ParseError,
    TranscriptError,
    UpstreamFetchError,
)
from yt_caption_pipeline.extractor import extract, fetch_transcript
from yt_caption_pipeline.models import (
    CaptionTrack,
    DiscoveryAttempt,
    TrackKind,
    Transcript,
    TranscriptSegment,
    VideoId,
)
from yt_caption_pipeline.parsers import FormatKind, detect_format, parse_payload
from yt_caption_pipeline.pipeline import TranscriptPipeline
from yt_caption_pipeline.resolver import resolve_reference
from yt_caption_pipeline.selector import select_track

__all__ = [
    "extract",
    "fetch_transcript",
    "resolve_reference",
    "TranscriptPipeline",
    "PipelineSettings",
    "detect_format",
    "parse_payload",
    "select_track",
    "FormatKind",
    "CaptionTrack",
    "DiscoveryAttempt",
    "TrackKind",
    "Transcript",
    "TranscriptSegment",
    "VideoId",
    "TranscriptError",
    "InvalidReferenceError",
    "NoCaptionsAvailableError",
    "UpstreamFetchError",
    "ParseError",
]
