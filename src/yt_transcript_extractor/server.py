"""YouTube Transcript Extractor MCP Server."""

import logging
import shutil
import sys
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Annotated, Literal

from pydantic import Field
from mcp.server.fastmcp import FastMCP

from yt_transcript_extractor.config import Settings, Transport
from yt_transcript_extractor.errors import TranscriptError
from yt_transcript_extractor.extractor import TranscriptExtractor
from yt_transcript_extractor.models import ExtractionResult, TranscriptSegment
from yt_transcript_extractor.providers import YtDlpSubtitleSource
from yt_transcript_extractor.transcription import Transcription
from yt_transcript_extractor.utils import (
    extract_video_id,
    format_timestamp,
    is_valid_youtube_url,
    watch_url,
)
from yt_transcript_extractor.ytdlp import YtDlp

# Logging to stderr (MCP convention)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("yt-transcript-extractor")

# Module-level state
_extractor = None
_settings = None
_rate_window = deque()

# Tool annotations for read-only API tools
TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "openWorldHint": True,
}

OutputFormat = Literal["text", "segments", "both", "json"]


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    global _extractor, _settings, _rate_window
    _settings = Settings()
    _rate_window = deque()
    _extractor = TranscriptExtractor.from_settings(_settings)

    for binary in (_settings.ytdlp_path, "ffmpeg"):
        location = shutil.which(binary)
        if location:
            logger.info(f"{binary} found at: {location}")
        else:
            logger.error(f"{binary} not found in PATH")
    logger.info(f"Caption methods: {', '.join(_settings.method_order)}")
    logger.info("Server started")
    yield

    if _extractor:
        await _extractor.close()
    logger.info("Server stopped")


mcp = FastMCP(
    "YouTube Transcript Extractor",
    instructions="Extract YouTube captions, falling back to audio transcription",
    lifespan=app_lifespan,
)


def _check_rate_limit():
    """Sliding window rate limit."""
    now = time.time()
    limit = (_settings.rate_limit_per_minute if _settings else 30)
    while _rate_window and _rate_window[0] < now - 60:
        _rate_window.popleft()
    if len(_rate_window) >= limit:
        raise ValueError(
            f"Rate limit exceeded ({limit}/min). Try again in a few seconds."
        )
    _rate_window.append(now)


def _segments_to_markdown(segments: list[TranscriptSegment]) -> str:
    """Format segments as markdown with timestamps."""
    lines = []
    for seg in segments:
        ts = format_timestamp(seg.start_time)
        lines.append(f"**[{ts}]** {seg.text}")
    return "\n".join(lines)


def _diagnostics_to_markdown(result: ExtractionResult) -> str:
    lines = []
    for method, diag in result.diagnostics.items():
        if diag.success:
            lines.append(f"- {method}: ok ({diag.segment_count} segments, {diag.language})")
        else:
            lines.append(f"- {method}: {diag.error_kind.value if diag.error_kind else 'failed'}: {diag.error}")
    return "\n".join(lines)


def _render(result: ExtractionResult, format: OutputFormat) -> str:
    if format == "json":
        return result.model_dump_json(by_alias=True, indent=2)

    if not result.success:
        body = f"Error: {result.message}"
        if result.audio_extraction_available:
            body += "\nAudio extraction is available: use transcribe_video."
        if result.diagnostics:
            body += f"\n\n### Attempts\n{_diagnostics_to_markdown(result)}"
        return body

    kind = "auto-generated" if result.is_auto_generated else "manual"
    header = (
        f"## Transcript: {result.video_id}\n"
        f"**Language:** {result.language} ({kind}) | **Method:** {result.method}\n"
    )
    if result.video_title:
        header += f"**Title:** {result.video_title}\n"

    if format == "segments":
        body = _segments_to_markdown(result.transcript)
    elif format == "both":
        body = (
            f"### Full Text\n{result.text}\n\n"
            f"### Timestamped Segments\n{_segments_to_markdown(result.transcript)}"
        )
    else:
        body = result.text

    return f"{header}\n{body}"


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def get_transcript(
    url: Annotated[str, Field(description="YouTube video URL or video ID (e.g. https://youtube.com/watch?v=dQw4w9WgXcQ or just dQw4w9WgXcQ)")],
    prefer_captions: Annotated[bool, Field(default=True, description="Also try the direct timed-text caption endpoint before the other caption methods")] = True,
    audio_fallback: Annotated[bool, Field(default=False, description="Transcribe the audio with Whisper when no captions are found")] = False,
    format: Annotated[OutputFormat, Field(default="text", description="Output format: text, segments (timestamped), both, or json (full extraction result)")] = "text",
) -> str:
    """Get the transcript of a YouTube video from its captions, trying several caption sources in order."""
    _check_rate_limit()

    try:
        result = await _extractor.extract_transcript(
            url, prefer_captions=prefer_captions, audio_fallback=audio_fallback
        )
    except Exception as e:
        return f"Error fetching transcript for {url}: {e}"
    return _render(result, format)


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def extract_subtitles(
    url: Annotated[str, Field(description="YouTube video URL")],
    format: Annotated[OutputFormat, Field(default="text", description="Output format: text, segments (timestamped), both, or json")] = "text",
) -> str:
    """Extract subtitles with yt-dlp only, including the video title and duration."""
    _check_rate_limit()

    if not is_valid_youtube_url(url):
        return f"Error: Invalid YouTube URL: {url}"

    try:
        result = await _extractor.run_source(YtDlpSubtitleSource.name, url)
    except Exception as e:
        return f"Error extracting subtitles for {url}: {e}"

    rendered = _render(result, format)
    if result.success and format != "json":
        duration = format_timestamp(result.video_duration or 0)
        rendered += f"\n\n**Duration:** {duration}"
    return rendered


def _transcription_to_markdown(title: str, transcription: Transcription, format: OutputFormat) -> str:
    if format == "json":
        result = ExtractionResult(
            success=True,
            transcript=transcription.segments,
            language=transcription.language,
            is_auto_generated=True,
            method="whisper",
            video_duration=transcription.duration,
        )
        return result.model_dump_json(by_alias=True, indent=2)
    header = (
        f"## Transcription: {title}\n"
        f"**Language:** {transcription.language} | **Segments:** {len(transcription.segments)}\n"
    )
    if format == "text":
        body = " ".join(s.text for s in transcription.segments)
    else:
        body = _segments_to_markdown(transcription.segments)
    return f"{header}\n{body}"


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def transcribe_audio(
    audio_url: Annotated[str, Field(description="URL of an audio file to transcribe")],
    language: Annotated[str, Field(default="ja", description="ISO 639-1 language hint for speech recognition")] = "ja",
    format: Annotated[OutputFormat, Field(default="segments", description="Output format: text, segments, or json")] = "segments",
) -> str:
    """Transcribe a remote audio file with the Whisper API."""
    _check_rate_limit()

    if not _extractor.transcriber.is_configured():
        return "Error: OpenAI API key not configured"

    try:
        transcription = await _extractor.transcriber.transcribe_url(audio_url, language)
    except TranscriptError as e:
        return f"Error: {e}"
    except Exception as e:
        return f"Error: Failed to transcribe audio: {e}"
    return _transcription_to_markdown(audio_url, transcription, format)


@mcp.tool(annotations=TOOL_ANNOTATIONS)
async def transcribe_video(
    url: Annotated[str, Field(description="YouTube video URL")],
    language: Annotated[str | None, Field(default=None, description="ISO 639-1 language hint; defaults to the configured caption language")] = None,
    format: Annotated[OutputFormat, Field(default="segments", description="Output format: text, segments, or json")] = "segments",
) -> str:
    """Download a video's audio with yt-dlp and transcribe it with the Whisper API."""
    _check_rate_limit()

    if not is_valid_youtube_url(url):
        return f"Error: Invalid YouTube URL: {url}"
    if not _extractor.transcriber.is_configured():
        return "Error: OpenAI API key not configured"

    video_id = extract_video_id(url)
    try:
        async with _extractor.downloader.downloaded(watch_url(video_id)) as path:
            transcription = await _extractor.transcriber.transcribe_file(
                path, language or _extractor.policy.target
            )
    except TranscriptError as e:
        return f"Error ({e.kind.value}): {e}"
    except Exception as e:
        return f"Error: Failed to process audio: {e}"
    return _transcription_to_markdown(video_id, transcription, format)


# -- MCP Resources --


@mcp.resource("youtube://health")
async def health_resource() -> str:
    """Service status and external tool availability."""
    settings = _settings or Settings()
    ytdlp = YtDlp(settings.ytdlp_path)
    ffmpeg = shutil.which("ffmpeg")
    version = await ytdlp.version()
    return (
        "# YouTube Transcript Extractor - Health\n\n"
        "status: ok\n"
        f"yt-dlp: {ytdlp.location() or 'not found'} ({version or 'unknown version'})\n"
        f"ffmpeg: {ffmpeg or 'not found'}\n"
        f"caption methods: {', '.join(settings.method_order)}\n"
        f"transcription: {'configured' if settings.openai_api_key else 'missing OpenAI API key'}\n"
    )


@mcp.resource("youtube://help")
def help_resource() -> str:
    """Usage guide for the YouTube Transcript Extractor MCP server."""
    return """# YouTube Transcript Extractor - Help Guide

## Available Tools

### get_transcript
Fetch a video's captions, trying each caption method in order:
timedtext (only with prefer_captions), youtube-api, yt-dlp-subtitles.
- Output formats: text, segments, both, json
- When no captions exist the result says audio extraction is available
- Example: get_transcript(url="https://youtube.com/watch?v=VIDEO_ID", format="segments")

### extract_subtitles
Caption extraction through yt-dlp only; reports title and duration.

### transcribe_audio
Transcribe a remote audio file with the Whisper API.
- Example: transcribe_audio(audio_url="https://example.com/a.mp3", language="ja")

### transcribe_video
Download the audio of a YouTube video and transcribe it.
- Needs yt-dlp, ffmpeg and an OpenAI API key

## Tips
- Captions in the configured language are preferred, manual over auto-generated
- The json format includes per-method diagnostics
"""


def main():
    settings = Settings()
    if settings.transport == Transport.STREAMABLE_HTTP:
        mcp.settings.host = settings.host
        mcp.settings.port = settings.port
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
