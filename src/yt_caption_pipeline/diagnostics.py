"""
diagnostics.py — Where the pipeline reports what it is doing.

The pipeline never logs directly.  It calls one method per event kind on
an injected sink, which keeps it free of side effects under test.

    NullDiagnostics      Discards everything (the pipeline's default).
    LoguruDiagnostics    Writes each event through loguru, bound to the
                         video ID.  Used by the CLI and the API.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from yt_caption_pipeline.models import AttemptOutcome, DiscoveryAttempt, Transcript


class DiagnosticsSink(Protocol):
    def state_changed(self, video_id: str, state: str) -> None: ...

    def strategy_started(self, video_id: str, strategy: str) -> None: ...

    def attempt_recorded(self, video_id: str, attempt: DiscoveryAttempt) -> None: ...

    def transcript_accepted(self, video_id: str, strategy: str, transcript: Transcript) -> None: ...

    def pipeline_exhausted(self, video_id: str, attempts: tuple[DiscoveryAttempt, ...]) -> None: ...


class NullDiagnostics:
    def state_changed(self, video_id: str, state: str) -> None:
        pass

    def strategy_started(self, video_id: str, strategy: str) -> None:
        pass

    def attempt_recorded(self, video_id: str, attempt: DiscoveryAttempt) -> None:
        pass

    def transcript_accepted(self, video_id: str, strategy: str, transcript: Transcript) -> None:
        pass

    def pipeline_exhausted(self, video_id: str, attempts: tuple[DiscoveryAttempt, ...]) -> None:
        pass


class LoguruDiagnostics:
    """Log pipeline events through loguru."""

    def __init__(self, request_id: str | None = None) -> None:
        self._logger = logger.bind(request_id=request_id or "N/A")

    def _for(self, video_id: str):
        return self._logger.bind(video_id=video_id)

    def state_changed(self, video_id: str, state: str) -> None:
        self._for(video_id).debug("Pipeline state -> {}", state)

    def strategy_started(self, video_id: str, strategy: str) -> None:
        self._for(video_id).info("Trying discovery strategy '{}'", strategy)

    def attempt_recorded(self, video_id: str, attempt: DiscoveryAttempt) -> None:
        log = self._for(video_id)
        if attempt.outcome is AttemptOutcome.ACCEPTED:
            log.debug("[{}] {} accepted", attempt.strategy, attempt.target)
        else:
            log.warning(
                "[{}] {} -> {}{}",
                attempt.strategy,
                attempt.target,
                attempt.outcome.value,
                f" ({attempt.detail})" if attempt.detail else "",
            )

    def transcript_accepted(self, video_id: str, strategy: str, transcript: Transcript) -> None:
        self._for(video_id).info(
            "Transcript accepted from '{}': {} segments, {} chars",
            strategy,
            len(transcript.timeline),
            len(transcript.full_text),
        )

    def pipeline_exhausted(self, video_id: str, attempts: tuple[DiscoveryAttempt, ...]) -> None:
        self._for(video_id).error(
            "No captions found after {} attempts", len(attempts),
        )
