"""
test_cli.py — Tests for the `yt-captions` command group.

Covers:
    - `get` output in each format, to stdout and to a file
    - Option overrides reaching PipelineSettings
    - Error reporting and exit codes
    - `parse` on payloads saved to disk
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from loguru import logger

from conftest import CUE_VTT, EXPECTED_TEXT
from yt_caption_pipeline.cli import main
from yt_caption_pipeline.errors import NoCaptionsAvailableError


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _drop_log_sinks():
    """setup_logging() binds a sink to the runner's stderr; remove it afterwards."""
    yield
    logger.remove()


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------

class TestGet:
    """Tests for `yt-captions get`."""

    @patch("yt_caption_pipeline.cli.extract")
    def test_prints_text(self, mock_extract: MagicMock, runner: CliRunner) -> None:
        mock_extract.return_value = "Hello\nworld"

        result = runner.invoke(main, ["get", "dQw4w9WgXcQ"])

        assert result.exit_code == 0
        assert result.stdout == "Hello\nworld\n"
        assert mock_extract.call_args.kwargs["fmt"] == "text"

    @patch("yt_caption_pipeline.cli.extract")
    def test_json_is_indented(self, mock_extract: MagicMock, runner: CliRunner) -> None:
        mock_extract.return_value = {"transcript": "Hi", "timeline": [{"time": "0:00", "text": "Hi"}]}

        result = runner.invoke(main, ["get", "dQw4w9WgXcQ", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["transcript"] == "Hi"
        assert '\n  "transcript"' in result.stdout

    @patch("yt_caption_pipeline.cli.extract")
    def test_options_override_settings(self, mock_extract: MagicMock, runner: CliRunner) -> None:
        mock_extract.return_value = "ok"

        runner.invoke(main, ["get", "dQw4w9WgXcQ", "-l", "de", "--min-chars", "5", "--timeout", "2.5"])

        settings = mock_extract.call_args.kwargs["settings"]
        assert settings.target_language == "de"
        assert settings.min_content_chars == 5
        assert settings.timeout_secs == 2.5

    @patch("yt_caption_pipeline.cli.extract")
    def test_env_supplies_defaults(self, mock_extract: MagicMock, runner: CliRunner) -> None:
        mock_extract.return_value = "ok"

        runner.invoke(main, ["get", "dQw4w9WgXcQ"], env={"YT_CAPTIONS_LANGUAGE": "fr"})

        assert mock_extract.call_args.kwargs["settings"].target_language == "fr"

    @patch("yt_caption_pipeline.cli.extract")
    def test_writes_output_file(self, mock_extract: MagicMock, runner: CliRunner, tmp_path) -> None:
        mock_extract.return_value = "**[0:00]** Hello"
        out = tmp_path / "video.md"

        result = runner.invoke(main, ["get", "dQw4w9WgXcQ", "-f", "doc", "-o", str(out)])

        assert result.exit_code == 0
        assert out.read_text(encoding="utf-8") == "**[0:00]** Hello\n"
        assert result.stdout == ""
        assert str(out) in result.stderr

    @patch("yt_caption_pipeline.cli.extract")
    def test_error_exits_1(self, mock_extract: MagicMock, runner: CliRunner) -> None:
        mock_extract.side_effect = NoCaptionsAvailableError("dQw4w9WgXcQ")

        result = runner.invoke(main, ["get", "dQw4w9WgXcQ"])

        assert result.exit_code == 1
        assert result.stderr.startswith("Error: No captions available for video dQw4w9WgXcQ")

    def test_unknown_format_rejected(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["get", "dQw4w9WgXcQ", "--format", "html"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------

class TestParse:
    """Tests for `yt-captions parse`."""

    def test_parses_saved_vtt(self, runner: CliRunner, tmp_path) -> None:
        path = tmp_path / "captions.vtt"
        path.write_text(CUE_VTT, encoding="utf-8")

        result = runner.invoke(main, ["parse", str(path), "-f", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["transcript"] == EXPECTED_TEXT
        assert "Detected format: cue-vtt (3 segments)" in result.stderr

    def test_unrecognised_payload_exits_1(self, runner: CliRunner, tmp_path) -> None:
        path = tmp_path / "page.html"
        path.write_text("<html>nothing here</html>", encoding="utf-8")

        result = runner.invoke(main, ["parse", str(path)])

        assert result.exit_code == 1
        assert result.stderr.startswith("Error:")

    def test_missing_file_is_usage_error(self, runner: CliRunner, tmp_path) -> None:
        result = runner.invoke(main, ["parse", str(tmp_path / "absent.xml")])
        assert result.exit_code == 2
