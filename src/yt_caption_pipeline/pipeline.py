"""
pipeline.py — Orchestrates resolution, discovery, fetching and parsing.

    RESOLVING ──invalid──▶ InvalidReferenceError
        │
        ▼
    DISCOVERING (strategy 1..n) ──candidate──▶ PARSING ──accepted──▶ ACCEPTED
        ▲                                        │
        └──────── rejected / failed ─────────────┘
        │
        └── all strategies spent ──▶ EXHAUSTED ──▶ NoCaptionsAvailableError

Everything is awaited in sequence: strategies are ordered cheapest and most
reliable first, and the run stops at the first acceptable transcript.
Fetch and parse failures are recorded as attempts and never escape.
"""

from __future__ import annotations

import enum
from contextlib import aclosing
from typing import Callable, Sequence

from yt_caption_pipeline.config import PipelineSettings
from yt_caption_pipeline.diagnostics import DiagnosticsSink, NullDiagnostics
from yt_caption_pipeline.errors import NoCaptionsAvailableError, ParseError, UpstreamFetchError
from yt_caption_pipeline.fetcher import HttpFetcher
from yt_caption_pipeline.models import (
    AttemptOutcome,
    CaptionRequest,
    DiscoveryAttempt,
    Transcript,
    VideoId,
)
from yt_caption_pipeline.parsers import parse_payload
from yt_caption_pipeline.resolver import resolve_reference
from yt_caption_pipeline.strategies import DiscoveryContext, DiscoveryStrategy, default_strategies


class PipelineState(str, enum.Enum):
    RESOLVING = "resolving"
    DISCOVERING = "discovering"
    PARSING = "parsing"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"


class TranscriptPipeline:
    """
    Find and parse a transcript for one video reference per run() call.

    The pipeline object holds only configuration, so one instance can serve
    any number of concurrent runs; each run builds its own context.
    """

    def __init__(
        self,
        strategies: Sequence[DiscoveryStrategy] | None = None,
        settings: PipelineSettings | None = None,
        diagnostics: DiagnosticsSink | None = None,
    ) -> None:
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.settings = settings or PipelineSettings()
        self.diagnostics = diagnostics or NullDiagnostics()

    def is_acceptable(self, transcript: Transcript) -> bool:
        return len(transcript.full_text) > self.settings.min_content_chars

    async def run(self, reference: str | VideoId, *, fetcher: HttpFetcher) -> Transcript:
        """
        Resolve `reference` and return the first acceptable transcript.

        Raises:
            InvalidReferenceError:     `reference` is not a video reference.
            NoCaptionsAvailableError:  Every strategy and candidate failed.
        """
        video_id = reference if isinstance(reference, VideoId) else resolve_reference(reference)
        vid = str(video_id)
        self.diagnostics.state_changed(vid, PipelineState.RESOLVING.value)

        context = DiscoveryContext(fetcher=fetcher, settings=self.settings)
        attempts: list[DiscoveryAttempt] = []

        for strategy in self.strategies:
            self.diagnostics.state_changed(vid, PipelineState.DISCOVERING.value)
            self.diagnostics.strategy_started(vid, strategy.name)
            transcript = await self._run_strategy(strategy, video_id, context, attempts)
            if transcript is not None:
                self.diagnostics.state_changed(vid, PipelineState.ACCEPTED.value)
                self.diagnostics.transcript_accepted(vid, strategy.name, transcript)
                return transcript

        self.diagnostics.state_changed(vid, PipelineState.EXHAUSTED.value)
        self.diagnostics.pipeline_exhausted(vid, tuple(attempts))
        raise NoCaptionsAvailableError(vid, attempts)

    async def _run_strategy(
        self,
        strategy: DiscoveryStrategy,
        video_id: VideoId,
        context: DiscoveryContext,
        attempts: list[DiscoveryAttempt],
    ) -> Transcript | None:
        vid = str(video_id)
        tried = 0

        def record(target: str, outcome: AttemptOutcome, detail: str = "") -> None:
            attempt = DiscoveryAttempt(strategy.name, target, outcome, detail)
            attempts.append(attempt)
            self.diagnostics.attempt_recorded(vid, attempt)

        try:
            async with aclosing(strategy.discover(video_id, context)) as candidates:
                async for request in candidates:
                    tried += 1
                    transcript = await self._attempt(request, context, vid, record)
                    if transcript is not None:
                        return transcript
        except UpstreamFetchError as exc:
            record("discovery", AttemptOutcome.FETCH_FAILED, exc.message)
            return None
        except ParseError as exc:
            record("discovery", AttemptOutcome.PARSE_FAILED, exc.message)
            return None

        if tried == 0:
            record("discovery", AttemptOutcome.NO_CANDIDATES)
        return None

    async def _attempt(
        self,
        request: CaptionRequest,
        context: DiscoveryContext,
        vid: str,
        record: Callable[..., None],
    ) -> Transcript | None:
        try:
            payload = await context.fetcher.get_text(request.url)
        except UpstreamFetchError as exc:
            record(request.label, AttemptOutcome.FETCH_FAILED, exc.message)
            return None

        self.diagnostics.state_changed(vid, PipelineState.PARSING.value)
        try:
            kind, transcript = parse_payload(payload)
        except ParseError as exc:
            record(request.label, AttemptOutcome.PARSE_FAILED, exc.message)
            return None

        if not self.is_acceptable(transcript):
            record(
                request.label,
                AttemptOutcome.TOO_SHORT,
                f"{kind.value}, {len(transcript.full_text)} chars",
            )
            return None

        record(request.label, AttemptOutcome.ACCEPTED, kind.value)
        return transcript
