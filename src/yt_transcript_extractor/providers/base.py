"""Abstract base for caption sources."""

from abc import ABC, abstractmethod

import httpx

from yt_transcript_extractor.errors import NetworkError
from yt_transcript_extractor.languages import LanguagePolicy
from yt_transcript_extractor.models import RawCaptions

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.youtube.com/",
}


class CaptionSource(ABC):
    """One way of getting caption data for a video.

    ``fetch_captions`` either returns a non-empty payload or raises a
    ``TranscriptError`` subclass saying why it could not.
    """

    name: str = "unknown"
    # Only tried when the caller asks for caption-preference mode.
    requires_caption_preference: bool = False

    @abstractmethod
    async def fetch_captions(
        self, video_id: str, policy: LanguagePolicy
    ) -> RawCaptions:
        ...

    async def close(self) -> None:
        """Clean up resources."""


class HttpCaptionSource(CaptionSource):
    """Caption source backed by its own ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=BROWSER_HEADERS,
            timeout=timeout,
            follow_redirects=True,
        )

    async def _get(self, url: str, **kwargs) -> httpx.Response:
        """GET that reports timeouts and connection failures as ``NetworkError``."""
        try:
            return await self._client.get(url, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(f"Request to {url} failed: {type(e).__name__}: {e}") from e

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
