"""Direct lookup on YouTube's timed-text endpoint."""

import logging

from yt_transcript_extractor.errors import NotFound, classify_http_status
from yt_transcript_extractor.languages import LanguagePolicy
from yt_transcript_extractor.models import CaptionFormat, RawCaptions
from .base import HttpCaptionSource

logger = logging.getLogger(__name__)

TIMEDTEXT_URL = "https://www.youtube.com/api/timedtext"


class TimedTextSource(HttpCaptionSource):
    name = "timedtext"
    requires_caption_preference = True

    async def fetch_captions(
        self, video_id: str, policy: LanguagePolicy
    ) -> RawCaptions:
        for lang in policy.chain():
            body = await self._lookup(video_id, lang)
            if body:
                return RawCaptions(
                    format=CaptionFormat.TIMEDTEXT_XML, content=body, language=lang
                )
            # Manual captions missing; ask for the speech-recognition track.
            body = await self._lookup(video_id, lang, kind="asr")
            if body:
                return RawCaptions(
                    format=CaptionFormat.TIMEDTEXT_XML,
                    content=body,
                    language=lang,
                    is_auto_generated=True,
                )
        raise NotFound(
            f"No timed-text captions for {video_id} in {', '.join(policy.chain())}"
        )

    async def _lookup(self, video_id: str, lang: str, kind: str | None = None) -> str:
        params = {"lang": lang, "v": video_id}
        if kind:
            params["kind"] = kind
        resp = await self._get(TIMEDTEXT_URL, params=params)
        if resp.status_code == 404:
            return ""
        if resp.is_error:
            raise classify_http_status(
                resp.status_code, f"timedtext returned HTTP {resp.status_code}"
            )
        body = resp.text.strip()
        # An empty track comes back as a bare <transcript/> document.
        if "<text" not in body:
            logger.debug(f"timedtext {video_id} lang={lang} kind={kind}: empty")
            return ""
        return body
