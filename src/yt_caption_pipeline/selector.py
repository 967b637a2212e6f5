"""
selector.py — Choose the best caption track from a discovered set.

Priority, highest first:
    (a) target language, auto-generated
    (b) target language, manual
    (c) any language, auto-generated
    (d) the first track

Auto-generated tracks rank first because they cover the whole video;
manual tracks on the platform are sometimes partial or decorative.  Ties
inside a tier are broken by a canonical sort key, so the same set of
tracks always yields the same choice whatever order it arrived in.
"""

from __future__ import annotations

from typing import Iterable

from yt_caption_pipeline.config import DEFAULT_TARGET_LANGUAGE
from yt_caption_pipeline.models import CaptionTrack, TrackKind


def matches_language(language_code: str, target: str) -> bool:
    """
    True if a track's language code refers to the target language.

    Accepts an exact match ("en"), a regional variant ("en-GB", "en_US"),
    and the dotted form some vssIds use (".en", "a.en").
    """
    code = (language_code or "").lower()
    target = target.lower()
    return (
        code == target
        or code.startswith(target + "-")
        or code.startswith(target + "_")
        or code.endswith("." + target)
    )


def needs_translation(track: CaptionTrack, target: str = DEFAULT_TARGET_LANGUAGE) -> bool:
    """True when the track must be translated on delivery to reach `target`."""
    return not matches_language(track.language_code, target)


def _tier(track: CaptionTrack, target: str) -> int:
    in_target = matches_language(track.language_code, target)
    auto = track.kind is TrackKind.AUTO_GENERATED
    if in_target and auto:
        return 0
    if in_target:
        return 1
    if auto:
        return 2
    return 3


def select_track(
    tracks: Iterable[CaptionTrack],
    target_language: str = DEFAULT_TARGET_LANGUAGE,
) -> CaptionTrack:
    """
    Pick exactly one track.

    Raises:
        ValueError: If `tracks` is empty.
    """
    candidates = sorted(tracks, key=CaptionTrack.sort_key)
    if not candidates:
        raise ValueError("select_track() needs at least one caption track")
    return min(candidates, key=lambda track: _tier(track, target_language))
