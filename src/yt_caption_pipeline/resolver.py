"""
resolver.py — Turn a user-supplied video reference into a VideoId.

Pure string handling, no network access.  The recognised shapes are tried
in a fixed order and the first match wins:

    1. Canonical watch URL   https://www.youtube.com/watch?v=VIDEO_ID
    2. Short link            https://youtu.be/VIDEO_ID
    3. Embed-style paths     /embed/VIDEO_ID, /shorts/VIDEO_ID, /v/VIDEO_ID, /live/VIDEO_ID
    4. Bare identifier       VIDEO_ID
"""

from __future__ import annotations

import re

from yt_caption_pipeline.errors import InvalidReferenceError
from yt_caption_pipeline.models import VideoId

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# The ID must not run on into more ID characters, otherwise a 12-character
# token would resolve to its first 11.
_ID = r"(?P<id>[A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"

_REFERENCE_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    # The "v" parameter may appear anywhere in the query string, on any host
    # (www., m., music., or a mirror).
    ("watch", re.compile(r"^(?:https?://)?[^/\s]+/watch/?\?(?:[^#\s]*&)?v=" + _ID)),
    ("short-link", re.compile(r"^(?:https?://)?(?:www\.)?youtu\.be/" + _ID)),
    ("embed", re.compile(r"^(?:https?://)?[^/\s]+/(?:embed|shorts|v|live)/" + _ID)),
    ("bare-id", re.compile(r"^" + _ID + r"$")),
]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve_reference(reference: str) -> VideoId:
    """
    Extract the video identifier from a URL, or validate a bare ID.

    Args:
        reference: A video URL in any supported shape, or an 11-char ID.
                   Surrounding whitespace is ignored.

    Returns:
        The VideoId the reference points to.

    Raises:
        InvalidReferenceError: If no supported shape matches.
    """
    if not isinstance(reference, str):
        raise InvalidReferenceError(repr(reference))

    candidate = reference.strip()
    for _shape, pattern in _REFERENCE_PATTERNS:
        match = pattern.search(candidate)
        if match:
            return VideoId(match.group("id"))

    raise InvalidReferenceError(reference)
