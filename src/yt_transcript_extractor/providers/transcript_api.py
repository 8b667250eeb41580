"""Caption source using youtube-transcript-api directly."""

import asyncio
import logging
from functools import partial

from youtube_transcript_api import (
    NoTranscriptFound,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)

from yt_transcript_extractor.errors import NotFound, UpstreamUnavailable
from yt_transcript_extractor.languages import LanguagePolicy
from yt_transcript_extractor.models import CaptionFormat, RawCaptions
from .base import CaptionSource

logger = logging.getLogger(__name__)


class TranscriptApiSource(CaptionSource):
    name = "transcript-api"

    def __init__(self):
        self._api = YouTubeTranscriptApi()

    async def fetch_captions(
        self, video_id: str, policy: LanguagePolicy
    ) -> RawCaptions:
        loop = asyncio.get_running_loop()
        try:
            fetched = await loop.run_in_executor(
                None,
                partial(self._fetch, video_id, policy.chain()),
            )
        except VideoUnavailable as e:
            raise UpstreamUnavailable(f"Video {video_id} is unavailable: {e}") from e
        except (TranscriptsDisabled, NoTranscriptFound) as e:
            raise NotFound(f"No transcript available for {video_id}: {e}") from e

        return RawCaptions(
            format=CaptionFormat.SEGMENTS,
            entries=[
                {"text": s.text, "start": s.start, "duration": s.duration}
                for s in fetched
            ],
            language=fetched.language_code,
            is_auto_generated=fetched.is_generated,
        )

    def _fetch(self, video_id: str, languages: list[str]):
        """Synchronous fetch in executor."""
        return self._api.fetch(video_id, languages=languages)
