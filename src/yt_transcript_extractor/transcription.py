"""Speech-to-text through the OpenAI transcription API."""

import logging
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from yt_transcript_extractor.errors import (
    ConfigurationError,
    RateLimited,
    TranscriptError,
    classify_http_status,
)
from yt_transcript_extractor.models import TranscriptSegment
from yt_transcript_extractor.utils import make_segments, timestamp_name

logger = logging.getLogger(__name__)


@dataclass
class Transcription:
    segments: list[TranscriptSegment] = field(default_factory=list)
    language: str | None = None
    duration: float | None = None


def segments_from_response(data: dict) -> list[TranscriptSegment]:
    """Map a ``verbose_json`` response to transcript segments."""
    if data.get("segments"):
        return make_segments([
            (s.get("text", "").strip(), float(s.get("start", 0.0)), float(s.get("end", 0.0)))
            for s in data["segments"]
        ])
    text = (data.get("text") or "").strip()
    if not text:
        return []
    return make_segments([(text, 0.0, 0.0)])


class Transcriber(ABC):
    def __init__(self, client: httpx.AsyncClient | None = None, work_dir: Path | None = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(60.0, read=900.0))
        self._work_dir = Path(work_dir) if work_dir else Path(tempfile.gettempdir()) / "yt-transcript"

    @abstractmethod
    async def transcribe_file(self, path: Path, language: str) -> Transcription:
        ...

    async def transcribe_url(self, audio_url: str, language: str) -> Transcription:
        """Download a remote audio file and transcribe it."""
        self._work_dir.mkdir(parents=True, exist_ok=True)
        path = self._work_dir / f"{timestamp_name('audio')}.mp3"
        try:
            async with self._client.stream("GET", audio_url, follow_redirects=True) as resp:
                if resp.is_error:
                    raise classify_http_status(
                        resp.status_code, f"Audio download returned HTTP {resp.status_code}"
                    )
                with path.open("wb") as fh:
                    async for chunk in resp.aiter_bytes():
                        fh.write(chunk)
            logger.info(f"Audio downloaded from {audio_url}, starting transcription")
            return await self.transcribe_file(path, language)
        finally:
            path.unlink(missing_ok=True)

    def is_configured(self) -> bool:
        return True

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class WhisperTranscriber(Transcriber):
    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        url: str = "https://api.openai.com/v1/audio/transcriptions",
        client: httpx.AsyncClient | None = None,
        work_dir: Path | None = None,
    ):
        super().__init__(client=client, work_dir=work_dir)
        self._api_key = api_key
        self._model = model
        self._url = url

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def transcribe_file(self, path: Path, language: str) -> Transcription:
        if not self._api_key:
            raise ConfigurationError("OpenAI API key not configured")

        with Path(path).open("rb") as fh:
            resp = await self._client.post(
                self._url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                files={"file": (Path(path).name, fh, "audio/mpeg")},
                data={
                    "model": self._model,
                    "language": language,
                    "response_format": "verbose_json",
                },
            )

        if resp.status_code == 401:
            raise ConfigurationError("Invalid OpenAI API key")
        if resp.status_code == 429:
            raise RateLimited("OpenAI API rate limit exceeded. Please try again later.")
        if resp.is_error:
            raise TranscriptError(_api_error_message(resp))

        data = resp.json()
        segments = segments_from_response(data)
        logger.info(f"Transcription complete. {len(segments)} segments found.")
        return Transcription(
            segments=segments,
            language=language or data.get("language"),
            duration=data.get("duration"),
        )


def _api_error_message(resp: httpx.Response) -> str:
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"Failed to transcribe audio (HTTP {resp.status_code})"
