"""Tests for MCP tool functions."""

import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from yt_transcript_extractor import server
from yt_transcript_extractor.errors import UpstreamBlocked
from yt_transcript_extractor.models import ExtractionResult, FailureReason
from yt_transcript_extractor.transcription import Transcription


@pytest.fixture(autouse=True)
def setup_server_state(sample_result, sample_segments, tmp_path):
    """Set up server module state for testing."""
    audio_path = tmp_path / "audio.mp3"
    audio_path.write_bytes(b"ID3")

    @asynccontextmanager
    async def downloaded(url):
        yield audio_path

    extractor = MagicMock()
    extractor.extract_transcript = AsyncMock(return_value=sample_result)
    extractor.run_source = AsyncMock(return_value=sample_result)
    extractor.policy.target = "ja"
    extractor.downloader.downloaded = MagicMock(side_effect=downloaded)
    extractor.transcriber.is_configured = MagicMock(return_value=True)
    transcription = Transcription(segments=sample_segments, language="en", duration=12.0)
    extractor.transcriber.transcribe_file = AsyncMock(return_value=transcription)
    extractor.transcriber.transcribe_url = AsyncMock(return_value=transcription)

    server._extractor = extractor
    server._settings = MagicMock()
    server._settings.rate_limit_per_minute = 100
    server._rate_window.clear()
    yield extractor
    server._rate_window.clear()


class TestGetTranscript:
    @pytest.mark.asyncio
    async def test_valid_url(self, setup_server_state):
        result = await server.get_transcript("https://youtube.com/watch?v=dQw4w9WgXcQ")
        assert "## Transcript: dQw4w9WgXcQ" in result
        assert "**Language:** en (manual) | **Method:** youtube-api" in result
        assert "Hello world this is a test" in result
        setup_server_state.extract_transcript.assert_awaited_once_with(
            "https://youtube.com/watch?v=dQw4w9WgXcQ", prefer_captions=True, audio_fallback=False
        )

    @pytest.mark.asyncio
    async def test_segments_format(self):
        result = await server.get_transcript("dQw4w9WgXcQ", format="segments")
        assert "**[0:00]** Hello world" in result
        assert "**[0:10]** goodbye world" in result

    @pytest.mark.asyncio
    async def test_both_format(self):
        result = await server.get_transcript("dQw4w9WgXcQ", format="both")
        assert "### Full Text" in result
        assert "### Timestamped Segments" in result

    @pytest.mark.asyncio
    async def test_json_format_uses_camel_case(self):
        result = json.loads(await server.get_transcript("dQw4w9WgXcQ", format="json"))
        assert result["success"] is True
        assert result["videoId"] == "dQw4w9WgXcQ"
        assert result["transcript"][0]["startTime"] == 0.0
        assert result["transcript"][0]["endTime"] == 2.5
        assert result["diagnostics"]["youtube-api"]["segmentCount"] == 5

    @pytest.mark.asyncio
    async def test_no_captions_offers_audio(self, setup_server_state, failed_result):
        setup_server_state.extract_transcript.return_value = failed_result
        result = await server.get_transcript("dQw4w9WgXcQ")
        assert result.startswith("Error: This video does not have subtitles available.")
        assert "Audio extraction is available" in result
        assert "- youtube-api: not_found: no tracks" in result

    @pytest.mark.asyncio
    async def test_invalid_url(self, setup_server_state):
        setup_server_state.extract_transcript.return_value = ExtractionResult(
            success=False,
            failure_reason=FailureReason.INVALID_URL,
            message="Invalid YouTube URL or video ID: not-a-url",
        )
        result = await server.get_transcript("not-a-url")
        assert result == "Error: Invalid YouTube URL or video ID: not-a-url"

    @pytest.mark.asyncio
    async def test_unexpected_error(self, setup_server_state):
        setup_server_state.extract_transcript.side_effect = RuntimeError("boom")
        result = await server.get_transcript("dQw4w9WgXcQ")
        assert result == "Error fetching transcript for dQw4w9WgXcQ: boom"


class TestExtractSubtitles:
    @pytest.mark.asyncio
    async def test_reports_duration(self, setup_server_state, sample_result):
        sample_result.video_duration = 125
        result = await server.extract_subtitles("https://youtu.be/dQw4w9WgXcQ")
        assert "**Duration:** 2:05" in result
        setup_server_state.run_source.assert_awaited_once_with(
            "yt-dlp-subtitles", "https://youtu.be/dQw4w9WgXcQ"
        )

    @pytest.mark.asyncio
    async def test_rejects_bare_id(self, setup_server_state):
        result = await server.extract_subtitles("dQw4w9WgXcQ")
        assert "Error: Invalid YouTube URL" in result
        setup_server_state.run_source.assert_not_awaited()


class TestTranscribe:
    @pytest.mark.asyncio
    async def test_transcribe_audio(self, setup_server_state):
        result = await server.transcribe_audio("https://files.test/a.mp3")
        assert "## Transcription: https://files.test/a.mp3" in result
        assert "**Segments:** 5" in result
        assert "**[0:02]** this is a test" in result
        setup_server_state.transcriber.transcribe_url.assert_awaited_once_with(
            "https://files.test/a.mp3", "ja"
        )

    @pytest.mark.asyncio
    async def test_transcribe_audio_without_key(self, setup_server_state):
        setup_server_state.transcriber.is_configured.return_value = False
        result = await server.transcribe_audio("https://files.test/a.mp3")
        assert result == "Error: OpenAI API key not configured"

    @pytest.mark.asyncio
    async def test_transcribe_video_uses_policy_language(self, setup_server_state, tmp_path):
        result = await server.transcribe_video("https://www.youtube.com/watch?v=dQw4w9WgXcQ", format="text")
        assert "## Transcription: dQw4w9WgXcQ" in result
        assert "Hello world this is a test" in result
        setup_server_state.downloader.downloaded.assert_called_once_with(
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        )
        setup_server_state.transcriber.transcribe_file.assert_awaited_once_with(
            tmp_path / "audio.mp3", "ja"
        )

    @pytest.mark.asyncio
    async def test_transcribe_video_blocked(self, setup_server_state):
        setup_server_state.transcriber.transcribe_file.side_effect = UpstreamBlocked("bot check")
        result = await server.transcribe_video("https://youtu.be/dQw4w9WgXcQ")
        assert result == "Error (upstream_blocked): bot check"

    @pytest.mark.asyncio
    async def test_transcribe_video_json(self):
        result = json.loads(
            await server.transcribe_video("https://youtu.be/dQw4w9WgXcQ", format="json")
        )
        assert result["method"] == "whisper"
        assert result["isAutoGenerated"] is True


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_rate_limit_exceeded(self):
        server._settings.rate_limit_per_minute = 2
        await server.get_transcript("dQw4w9WgXcQ")
        await server.get_transcript("dQw4w9WgXcQ")
        with pytest.raises(ValueError, match="Rate limit exceeded"):
            server._check_rate_limit()


def test_help_resource_lists_tools():
    text = server.help_resource()
    for tool in ("get_transcript", "extract_subtitles", "transcribe_audio", "transcribe_video"):
        assert f"### {tool}" in text
