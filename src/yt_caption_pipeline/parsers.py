"""
parsers.py — Turn a raw caption payload into a Transcript.

The delivery endpoint answers in one of three formats, and which one you
get depends on server-side flags rather than on the `fmt` we asked for.
So the payload is sniffed, not trusted:

    detect_format()    → which format does this look like?
    parse_event_json() → {"events": [{"tStartMs": ..., "segs": [{"utf8": ...}]}]}
    parse_cue_vtt()    → WEBVTT cues, "00:01.000 --> 00:04.000" + text lines
    parse_timed_xml()  → <text start="1.2" dur="3.4">escaped text</text>
    parse_payload()    → detect, then parse (with fallback to the others)

Each parser returns Transcript.empty() when the payload isn't its format,
so trying the next interpretation is cheap.
"""

from __future__ import annotations

import enum
import json
import math
import re
from typing import Callable

from yt_caption_pipeline.errors import ParseError
from yt_caption_pipeline.models import Transcript, TranscriptSegment, format_timestamp

__all__ = [
    "FormatKind",
    "detect_format",
    "format_timestamp",
    "parse_cue_vtt",
    "parse_event_json",
    "parse_payload",
    "parse_timed_xml",
]


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

class FormatKind(str, enum.Enum):
    EVENT_JSON = "event-json"
    CUE_VTT = "cue-vtt"
    TIMED_XML = "timed-xml"
    UNKNOWN = "unknown"


# The five entities the timed-XML format escapes.  &amp; goes first: the
# platform double-escapes text, so "&amp;#39;" must end up as "'".
_ENTITIES: list[tuple[str, str]] = [
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
]

_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

_XML_TEXT = re.compile(
    r"<text\b(?P<attrs>[^>]*)>(?P<body>.*?)</text>",
    re.DOTALL,
)
_XML_START_ATTR = re.compile(r"""\bstart\s*=\s*["'](?P<start>[^"']*)["']""")

# "01:02:03.400 --> 01:02:05.000" or "02:03.400 --> 02:05.000"; cue settings
# (align:start position:0%) may follow the end time.
_VTT_TIMECODE = re.compile(
    r"^\s*(?P<start>(?:\d+:)?\d{1,2}:\d{2}[.,]\d{1,3})\s*-->\s*"
    r"(?P<end>(?:\d+:)?\d{1,2}:\d{2}[.,]\d{1,3})"
)


# ---------------------------------------------------------------------------
# Text normalization
# ---------------------------------------------------------------------------

def _decode_entities(text: str) -> str:
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def _normalize(text: str) -> str:
    """Collapse whitespace runs (including newlines) to one space and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def _strip_markup(text: str) -> str:
    return _TAG.sub("", text)


def _valid_start(seconds: float) -> bool:
    # float() and json.loads() both accept "inf" and "nan".
    return math.isfinite(seconds) and seconds >= 0


# ---------------------------------------------------------------------------
# Format detection
# ---------------------------------------------------------------------------

def detect_format(payload: str) -> FormatKind:
    """
    Guess a payload's format from its content.

    Checks run in a fixed order and the first hit wins: event JSON, then
    cue VTT, then timed XML.  Anything else is UNKNOWN.
    """
    if not payload:
        return FormatKind.UNKNOWN

    head = payload.lstrip("\ufeff \t\r\n")
    if head.startswith("{") and '"events"' in head:
        return FormatKind.EVENT_JSON
    if head.startswith("WEBVTT") or "-->" in head:
        return FormatKind.CUE_VTT
    if _XML_TEXT.search(head):
        return FormatKind.TIMED_XML
    return FormatKind.UNKNOWN


# ---------------------------------------------------------------------------
# Timed XML
# ---------------------------------------------------------------------------

def parse_timed_xml(payload: str) -> Transcript:
    """Parse `<text start="...">` records; returns empty if there are none."""
    segments: list[TranscriptSegment] = []
    for match in _XML_TEXT.finditer(payload or ""):
        start_attr = _XML_START_ATTR.search(match.group("attrs"))
        if start_attr is None:
            continue
        try:
            start = float(start_attr.group("start"))
        except ValueError:
            continue
        if not _valid_start(start):
            continue

        # Entities first: the body often carries escaped markup such as
        # &lt;i&gt;, which should be stripped as a tag afterwards.
        text = _strip_markup(_decode_entities(match.group("body")))
        segments.append(TranscriptSegment(start=start, text=_normalize(text)))

    return Transcript.from_segments(segments)


# ---------------------------------------------------------------------------
# Event JSON
# ---------------------------------------------------------------------------

def parse_event_json(payload: str) -> Transcript:
    """Parse a `{"events": [...]}` document; returns empty on anything else."""
    try:
        document = json.loads(payload)
    except (TypeError, ValueError):
        return Transcript.empty()

    if not isinstance(document, dict) or not isinstance(document.get("events"), list):
        return Transcript.empty()

    segments: list[TranscriptSegment] = []
    for event in document["events"]:
        if not isinstance(event, dict):
            continue
        segs = event.get("segs")
        start_ms = event.get("tStartMs")
        if not isinstance(segs, list) or not isinstance(start_ms, (int, float)):
            continue
        try:
            start = start_ms / 1000.0
        except OverflowError:
            continue
        if not _valid_start(start):
            continue

        # Word-level pieces of one event are joined without a separator;
        # they already carry their own leading spaces.
        text = "".join(
            seg.get("utf8", "") for seg in segs
            if isinstance(seg, dict) and isinstance(seg.get("utf8"), str)
        )
        segments.append(TranscriptSegment(start=start, text=_normalize(text)))

    return Transcript.from_segments(segments)


# ---------------------------------------------------------------------------
# Cue VTT
# ---------------------------------------------------------------------------

def _vtt_seconds(timecode: str) -> float:
    """Convert "hh:mm:ss.mmm" or "mm:ss.mmm" to seconds."""
    parts = timecode.replace(",", ".").split(":")
    seconds = float(parts[-1])
    minutes = int(parts[-2])
    hours = int(parts[-3]) if len(parts) == 3 else 0
    return hours * 3600 + minutes * 60 + seconds


def parse_cue_vtt(payload: str) -> Transcript:
    """
    Parse WEBVTT cues.

    A cue starts at a timecode line and collects text lines until the next
    blank line.  Cue identifiers, the header and NOTE blocks are skipped
    because they never follow a timecode line directly.
    """
    segments: list[TranscriptSegment] = []
    current_start: float | None = None
    current_lines: list[str] = []

    def flush() -> None:
        if current_start is not None:
            text = _strip_markup(_decode_entities(" ".join(current_lines)))
            segments.append(TranscriptSegment(start=current_start, text=_normalize(text)))

    for line in (payload or "").splitlines():
        timecode = _VTT_TIMECODE.match(line)
        if timecode:
            flush()
            current_start = _vtt_seconds(timecode.group("start"))
            current_lines = []
        elif not line.strip():
            flush()
            current_start = None
            current_lines = []
        elif current_start is not None:
            current_lines.append(line)

    flush()
    return Transcript.from_segments(segments)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_PARSERS: dict[FormatKind, Callable[[str], Transcript]] = {
    FormatKind.EVENT_JSON: parse_event_json,
    FormatKind.CUE_VTT: parse_cue_vtt,
    FormatKind.TIMED_XML: parse_timed_xml,
}


def parse_payload(payload: str) -> tuple[FormatKind, Transcript]:
    """
    Detect a payload's format and parse it.

    The detected parser runs first; if it finds nothing, the remaining
    parsers are tried in detection order.

    Returns:
        The format that produced the transcript (or the detected format, if
        every parser came back empty) and the transcript itself.

    Raises:
        ParseError: If the payload matches no known format signature.
    """
    detected = detect_format(payload)
    order = [detected] if detected is not FormatKind.UNKNOWN else []
    order += [kind for kind in _PARSERS if kind is not detected]

    for kind in order:
        transcript = _PARSERS[kind](payload)
        if transcript:
            return kind, transcript

    if detected is FormatKind.UNKNOWN:
        preview = (payload or "")[:40]
        raise ParseError(f"Caption payload matches no known format: {preview!r}")
    return detected, Transcript.empty()
