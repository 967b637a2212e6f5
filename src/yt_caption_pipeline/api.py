"""
api.py — FastAPI service for yt-caption-pipeline.

Endpoints:
    POST /transcript               — Body {"url": ..., "lang": ""}; returns
                                     {"transcript": ..., "timeline": [...]}.
    GET  /transcript/{video_id}    — Same lookup by ID, as text, JSON or doc.
    GET  /health                   — Health check for load balancers.

Run with:
    uvicorn yt_caption_pipeline.api:app

Exception handlers turn any TranscriptError into {"error": message} with
the status code carried by the exception, and a malformed request into the
same shape with 422.
"""

from __future__ import annotations

import uuid

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from yt_caption_pipeline.config import PipelineSettings
from yt_caption_pipeline.diagnostics import LoguruDiagnostics
from yt_caption_pipeline.errors import TranscriptError
from yt_caption_pipeline.extractor import fetch_transcript, render

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="YouTube Caption Pipeline API",
    description="Find a video's caption track, whichever route still works, "
                "and return its transcript as text plus a timeline.",
    version="0.1.0",
)

# Read once at import; per-request fields are applied on top.
_BASE_SETTINGS = PipelineSettings.from_env()


class TranscriptRequest(BaseModel):
    url: str = Field(description="Video URL or bare 11-character video ID.")
    lang: str = Field(default="", description="Target language code; empty uses the server default.")


def _settings_for(lang: str) -> PipelineSettings:
    return _BASE_SETTINGS.with_overrides(target_language=lang.strip() or None)


# ---------------------------------------------------------------------------
# Global error handlers
# ---------------------------------------------------------------------------

@app.exception_handler(TranscriptError)
async def transcript_error_handler(request: Request, exc: TranscriptError) -> JSONResponse:
    """Translate any TranscriptError into {"error": message} with its status."""
    return JSONResponse(
        status_code=exc.http_status,
        content={"error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report a malformed request as {"error": message} with status 422."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content={"error": f"Invalid request: {problems}"},
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.post("/transcript")
async def create_transcript(body: TranscriptRequest) -> JSONResponse:
    """
    Fetch the transcript for the video in **url**.

    Errors come back as `{"error": "..."}`: 400 for an unrecognised
    reference, 404 when no caption track yields a usable transcript.
    """
    transcript = await fetch_transcript(
        body.url,
        settings=_settings_for(body.lang),
        diagnostics=LoguruDiagnostics(request_id=uuid.uuid4().hex[:8]),
    )
    return JSONResponse(content=transcript.to_response())


# response_model=None because the response class depends on `format`.
@app.get("/transcript/{video_id}", response_model=None)
async def get_transcript(
    video_id: str,
    format: str = Query(
        default="json",
        description="Output format: 'json' (transcript + timeline), 'text' (one line per segment), "
                    "or 'doc' (markdown paragraphs with timestamps).",
        pattern="^(text|json|doc)$",
    ),
    lang: str = Query(
        default="",
        description="Target language code; empty uses the server default.",
    ),
) -> PlainTextResponse | JSONResponse:
    """Fetch the transcript for an 11-character **video_id**."""
    transcript = await fetch_transcript(
        video_id,
        settings=_settings_for(lang),
        diagnostics=LoguruDiagnostics(request_id=uuid.uuid4().hex[:8]),
    )
    result = render(transcript, format)
    if isinstance(result, dict):
        return JSONResponse(content=result)
    return PlainTextResponse(content=result)


@app.get("/health")
async def health() -> dict:
    """Returns {"status": "ok"}."""
    return {"status": "ok"}
