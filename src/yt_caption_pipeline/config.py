"""
config.py — Tunable settings for a pipeline run.

Defaults live here as module constants.  PipelineSettings.from_env() lets a
deployment override them through YT_CAPTIONS_* environment variables, and
the CLI and API override individual fields per request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

# A transcript must be longer than this (in characters of full text) to be
# accepted.  Shorter bodies are usually error stubs or a single "[Music]".
DEFAULT_MIN_CONTENT_CHARS = 50

DEFAULT_TARGET_LANGUAGE = "en"

# Per-request timeout, in seconds.  A timeout fails one fetch, not the run.
DEFAULT_TIMEOUT_SECS = 15.0

# Sent as the `fmt` query parameter.  The server may ignore it, which is
# why payloads are sniffed at parse time.
DEFAULT_FORMAT_HINT = "json3"

DEFAULT_BASE_URL = "https://www.youtube.com"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"

_ENV_PREFIX = "YT_CAPTIONS_"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PipelineSettings:
    """
    Settings for one pipeline run.

    Attributes:
        min_content_chars: Full-text length a transcript must exceed.
        target_language:   Preferred language; other languages are
                           translated into it on delivery.
        timeout_secs:      Timeout applied to every upstream request.
        format_hint:       `fmt` value to request, or "" to send none.
        base_url:          Scheme and host of the video platform.
        user_agent:        User-Agent header for all requests.
        accept_language:   Accept-Language header for all requests.
    """
    min_content_chars: int = DEFAULT_MIN_CONTENT_CHARS
    target_language: str = DEFAULT_TARGET_LANGUAGE
    timeout_secs: float = DEFAULT_TIMEOUT_SECS
    format_hint: str = DEFAULT_FORMAT_HINT
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    def __post_init__(self) -> None:
        if self.min_content_chars < 0:
            raise ValueError("min_content_chars must be >= 0")
        if self.timeout_secs <= 0:
            raise ValueError("timeout_secs must be positive")
        if not self.target_language:
            raise ValueError("target_language must not be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PipelineSettings:
        """
        Build settings from YT_CAPTIONS_* variables, falling back to defaults.

        Recognised: YT_CAPTIONS_MIN_CHARS, YT_CAPTIONS_LANGUAGE,
        YT_CAPTIONS_TIMEOUT, YT_CAPTIONS_FORMAT_HINT, YT_CAPTIONS_BASE_URL,
        YT_CAPTIONS_USER_AGENT.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(_ENV_PREFIX + name)
            return value if value not in (None, "") else None

        overrides: dict[str, object] = {}
        if (value := get("MIN_CHARS")) is not None:
            overrides["min_content_chars"] = int(value)
        if (value := get("LANGUAGE")) is not None:
            overrides["target_language"] = value
        if (value := get("TIMEOUT")) is not None:
            overrides["timeout_secs"] = float(value)
        if (value := env.get(_ENV_PREFIX + "FORMAT_HINT")) is not None:
            # An explicitly empty hint turns the parameter off.
            overrides["format_hint"] = value
        if (value := get("BASE_URL")) is not None:
            overrides["base_url"] = value.rstrip("/")
        if (value := get("USER_AGENT")) is not None:
            overrides["user_agent"] = value
        return cls(**overrides)

    def with_overrides(self, **changes: object) -> PipelineSettings:
        """Return a copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
