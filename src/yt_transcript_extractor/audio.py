"""Audio extraction with yt-dlp."""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from yt_transcript_extractor.errors import NotFound, RateLimited, UpstreamBlocked
from yt_transcript_extractor.utils import timestamp_name
from yt_transcript_extractor.ytdlp import YtDlp

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
]


class AudioDownloader(ABC):
    @abstractmethod
    async def download(self, url: str) -> Path:
        """Download the audio track of ``url`` and return the local file."""
        ...

    @asynccontextmanager
    async def downloaded(self, url: str) -> AsyncIterator[Path]:
        """Yield the downloaded file and delete it afterwards."""
        path = await self.download(url)
        try:
            yield path
        finally:
            path.unlink(missing_ok=True)


class YtDlpAudioDownloader(AudioDownloader):
    def __init__(
        self,
        ytdlp: YtDlp,
        work_dir: Path,
        max_attempts: int = 3,
        max_wait: float = 10.0,
    ):
        self._ytdlp = ytdlp
        self._work_dir = Path(work_dir)
        self._max_attempts = max_attempts
        self._max_wait = max_wait

    async def download(self, url: str) -> Path:
        self._work_dir.mkdir(parents=True, exist_ok=True)
        output = self._work_dir / timestamp_name("audio")

        retrying = AsyncRetrying(
            retry=retry_if_exception_type((UpstreamBlocked, RateLimited)),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_random_exponential(multiplier=1, max=self._max_wait),
            reraise=True,
        )
        mp3 = output.with_name(f"{output.name}.mp3")
        keep = None
        try:
            async for attempt in retrying:
                with attempt:
                    number = attempt.retry_state.attempt_number
                    user_agent = USER_AGENTS[(number - 1) % len(USER_AGENTS)]
                    logger.info(f"Downloading audio for {url} (attempt {number}/{self._max_attempts})")
                    await self._ytdlp.run_checked(self._args(url, output, user_agent))
            if not mp3.exists():
                raise NotFound(f"Failed to download audio for {url}")
            keep = mp3
        finally:
            # Partial downloads (.part, unconverted containers) never outlive the call.
            for leftover in self._work_dir.glob(f"{output.name}*"):
                if leftover != keep:
                    leftover.unlink(missing_ok=True)
        return mp3

    @staticmethod
    def _args(url: str, output: Path, user_agent: str) -> list[str]:
        return [
            "-x",
            "--audio-format", "mp3",
            "--audio-quality", "0",
            "--no-check-certificate",
            "--no-warnings",
            "--no-playlist",
            "--no-cache-dir",
            "--user-agent", user_agent,
            "--referer", "https://www.youtube.com/",
            "--add-header", "Accept-Language:en-US,en;q=0.9",
            "-o", f"{output}.%(ext)s",
            url,
        ]
