"""
errors.py — Exception hierarchy for yt-caption-pipeline.

Every exception carries an `http_status` attribute so the FastAPI error
handler can turn a library error into a response without a lookup table.

Only InvalidReferenceError and NoCaptionsAvailableError ever leave the
pipeline.  UpstreamFetchError and ParseError are raised by the fetcher and
the parsers and absorbed by the pipeline as failed attempts.

Hierarchy:
    TranscriptError (base, 500)
    ├── InvalidReferenceError (400)
    ├── UpstreamFetchError (502)
    ├── ParseError (422)
    └── NoCaptionsAvailableError (404)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from yt_caption_pipeline.models import DiscoveryAttempt


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class TranscriptError(Exception):
    """
    Root exception for all caption pipeline errors.

    Attributes:
        message:     Human-readable description of what went wrong.
        http_status: Suggested HTTP status code for the API layer.
    """

    def __init__(self, message: str, http_status: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status


# ---------------------------------------------------------------------------
# Terminal errors (surface to the caller)
# ---------------------------------------------------------------------------

class InvalidReferenceError(TranscriptError):
    """
    Raised when a user-supplied string is neither a known video URL shape
    nor a bare video identifier.  Maps to HTTP 400; retrying won't help.
    """

    def __init__(self, reference: str) -> None:
        super().__init__(
            message=f"Invalid video reference: {reference!r}",
            http_status=400,
        )
        self.reference = reference


class NoCaptionsAvailableError(TranscriptError):
    """
    Raised when every discovery strategy and every candidate it produced
    failed to yield an acceptable transcript.

    The attempts made along the way are kept on the exception for callers
    that want to report them.  Maps to HTTP 404.
    """

    def __init__(
        self,
        video_id: str,
        attempts: Sequence[DiscoveryAttempt] = (),
    ) -> None:
        super().__init__(
            message=(
                f"No captions available for video {video_id} "
                f"({len(attempts)} attempts made)"
            ),
            http_status=404,
        )
        self.video_id = video_id
        self.attempts = tuple(attempts)


# ---------------------------------------------------------------------------
# Recoverable errors (absorbed inside the pipeline)
# ---------------------------------------------------------------------------

class UpstreamFetchError(TranscriptError):
    """
    Raised when a request to the video platform fails: a non-2xx status,
    a timeout, or a transport-level error.  Maps to HTTP 502.
    """

    def __init__(self, url: str, reason: str = "", status_code: int | None = None) -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            message=f"Upstream request failed for {url}{detail}",
            http_status=502,
        )
        self.url = url
        self.status_code = status_code


class ParseError(TranscriptError):
    """
    Raised when a payload from the platform doesn't have the shape we
    expected — a caption body in no known format, a watch page without
    embedded metadata, or JSON that fails validation.  Maps to HTTP 422.
    """

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message,
            http_status=422,
        )
