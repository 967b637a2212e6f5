"""
extractor.py — High-level entry points and output formatting.

    1. Fetching a transcript (async) → fetch_transcript()
    2. Formatting output             → format_text(), format_json(), format_doc()
    3. One-call convenience (sync)   → extract()

fetch_transcript() builds an httpx client for the run unless one is passed
in, runs the TranscriptPipeline, and closes whatever it opened.
"""

from __future__ import annotations

import asyncio

import httpx

from yt_caption_pipeline.config import PipelineSettings
from yt_caption_pipeline.diagnostics import DiagnosticsSink
from yt_caption_pipeline.fetcher import HttpFetcher, build_client
from yt_caption_pipeline.models import Transcript, format_timestamp
from yt_caption_pipeline.pipeline import TranscriptPipeline

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

OUTPUT_FORMATS = ("text", "json", "doc")

# A new "doc" paragraph starts once a segment begins this many seconds after
# the start of the current paragraph.
_DOC_PARAGRAPH_INTERVAL_SECS = 30


# ---------------------------------------------------------------------------
# Transcript fetching
# ---------------------------------------------------------------------------

async def fetch_transcript(
    reference: str,
    *,
    settings: PipelineSettings | None = None,
    client: httpx.AsyncClient | None = None,
    diagnostics: DiagnosticsSink | None = None,
) -> Transcript:
    """
    Resolve a video reference and fetch its transcript.

    Args:
        reference:   A video URL or bare 11-character ID.
        settings:    Run settings; defaults to PipelineSettings().
        client:      An AsyncClient to use.  When None, one is created with
                     the settings' headers and timeout and closed afterwards.
        diagnostics: Sink for pipeline events; discarded when None.

    Raises:
        InvalidReferenceError:     The reference isn't a video URL or ID.
        NoCaptionsAvailableError:  No strategy produced an acceptable transcript.
    """
    settings = settings or PipelineSettings()
    pipeline = TranscriptPipeline(settings=settings, diagnostics=diagnostics)

    if client is not None:
        return await pipeline.run(reference, fetcher=HttpFetcher(client))

    async with build_client(settings) as owned:
        return await pipeline.run(reference, fetcher=HttpFetcher(owned))


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_text(transcript: Transcript) -> str:
    """The transcript's text, one line per segment."""
    return "\n".join(segment.text for segment in transcript.timeline)


def format_json(transcript: Transcript) -> dict:
    """The API response shape: {"transcript": ..., "timeline": [{"time", "text"}]}."""
    return transcript.to_response()


def format_doc(transcript: Transcript) -> str:
    """
    Render the transcript as markdown paragraphs.

    Segments are joined with spaces into flowing paragraphs; a new paragraph
    starts when a segment begins 30 seconds or more after the current
    paragraph's start.  Each paragraph is prefixed with a bold **[m:ss]**
    (or **[h:mm:ss]**) marker.

    Returns:
        The markdown text, or "" for an empty transcript.
    """
    paragraphs: list[str] = []
    current_texts: list[str] = []
    paragraph_start: float | None = None

    for segment in transcript.timeline:
        if paragraph_start is None:
            paragraph_start = segment.start
        elif segment.start - paragraph_start >= _DOC_PARAGRAPH_INTERVAL_SECS:
            paragraphs.append(f"**[{format_timestamp(paragraph_start)}]** {' '.join(current_texts)}")
            paragraph_start = segment.start
            current_texts = []
        current_texts.append(segment.text)

    if current_texts and paragraph_start is not None:
        paragraphs.append(f"**[{format_timestamp(paragraph_start)}]** {' '.join(current_texts)}")

    return "\n\n".join(paragraphs)


def render(transcript: Transcript, fmt: str) -> str | dict:
    if fmt == "json":
        return format_json(transcript)
    if fmt == "doc":
        return format_doc(transcript)
    return format_text(transcript)


# ---------------------------------------------------------------------------
# High-level convenience function (main public API)
# ---------------------------------------------------------------------------

def extract(
    url_or_id: str,
    fmt: str = "text",
    *,
    settings: PipelineSettings | None = None,
    diagnostics: DiagnosticsSink | None = None,
) -> str | dict:
    """
    One-call interface: resolve → discover → fetch → parse → format.

    Blocking wrapper around fetch_transcript() for scripts and the CLI.
    Don't call it from inside a running event loop; await
    fetch_transcript() there instead.

    Args:
        url_or_id:   A video URL or bare ID.
        fmt:         "text", "json" or "doc".
        settings:    Run settings; defaults to PipelineSettings().
        diagnostics: Sink for pipeline events.

    Raises:
        ValueError:       If fmt is not a known format.
        TranscriptError:  InvalidReferenceError or NoCaptionsAvailableError.
    """
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown format {fmt!r}; expected 'text', 'json', or 'doc'")

    transcript = asyncio.run(
        fetch_transcript(url_or_id, settings=settings, diagnostics=diagnostics)
    )
    return render(transcript, fmt)
