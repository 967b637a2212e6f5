"""
cli.py — Command-line interface for yt-caption-pipeline.

Provides the `yt-captions` command group (registered as a console script
in pyproject.toml):

    get    Fetch a video's transcript.
    parse  Run the caption parsers on a payload saved to disk.

Usage examples:
    yt-captions get "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    yt-captions get dQw4w9WgXcQ --format json --lang de
    yt-captions parse captions.vtt --format doc
"""

from __future__ import annotations

import json
import sys

import click

from yt_caption_pipeline.config import PipelineSettings
from yt_caption_pipeline.diagnostics import LoguruDiagnostics
from yt_caption_pipeline.errors import ParseError, TranscriptError
from yt_caption_pipeline.extractor import OUTPUT_FORMATS, extract, render
from yt_caption_pipeline.logging_config import setup_logging
from yt_caption_pipeline.parsers import parse_payload


def _emit(result: str | dict, output: str | None) -> None:
    """Write a rendered transcript to a file, or to stdout."""
    if isinstance(result, dict):
        text = json.dumps(result, indent=2, ensure_ascii=False)
    else:
        text = result

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.write("\n")
        click.echo(f"Transcript written to {output}", err=True)
    else:
        click.echo(text)


_format_option = click.option(
    "--format", "-f",
    "fmt",                           # avoid shadowing the builtin "format"
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format: plain text, JSON with timeline, or markdown document.",
)

_output_option = click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write output to a file instead of stdout.",
)


# ---------------------------------------------------------------------------
# CLI group: the top-level `yt-captions` command
# ---------------------------------------------------------------------------

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log every discovery step and request.")
def main(verbose: bool) -> None:
    """
    YouTube caption pipeline — find, fetch and parse video transcripts.
    """
    setup_logging(verbose=verbose)


# ---------------------------------------------------------------------------
# Subcommand: get: fetch a transcript
# ---------------------------------------------------------------------------

@main.command()
@click.argument("video", metavar="URL_OR_ID")
@_format_option
@_output_option
@click.option(
    "--lang", "-l",
    default=None,
    help="Target language code (default from YT_CAPTIONS_LANGUAGE, else 'en').",
)
@click.option(
    "--min-chars",
    type=click.IntRange(min=0),
    default=None,
    help="Minimum transcript length to accept.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Per-request timeout in seconds.",
)
def get(
    video: str,
    fmt: str,
    output: str | None,
    lang: str | None,
    min_chars: int | None,
    timeout: float | None,
) -> None:
    """
    Fetch a YouTube video transcript.

    VIDEO can be any supported YouTube URL or an 11-character video ID.
    """
    settings = PipelineSettings.from_env().with_overrides(
        target_language=lang,
        min_content_chars=min_chars,
        timeout_secs=timeout,
    )

    try:
        result = extract(video, fmt=fmt, settings=settings, diagnostics=LoguruDiagnostics())
    except TranscriptError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)

    _emit(result, output)


# ---------------------------------------------------------------------------
# Subcommand: parse: parse a saved caption payload
# ---------------------------------------------------------------------------

@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@_format_option
@_output_option
def parse(path: str, fmt: str, output: str | None) -> None:
    """
    Parse a caption payload saved to PATH (timed XML, event JSON or VTT).

    The detected format is reported on stderr.
    """
    with open(path, encoding="utf-8") as fh:
        payload = fh.read()

    try:
        kind, transcript = parse_payload(payload)
    except ParseError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)

    click.echo(f"Detected format: {kind.value} ({len(transcript.timeline)} segments)", err=True)
    _emit(render(transcript, fmt), output)
