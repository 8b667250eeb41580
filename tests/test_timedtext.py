"""Tests for the timed-text caption source with httpx mocking."""

import httpx
import pytest
import respx

from yt_transcript_extractor.errors import NetworkError, NotFound, RateLimited
from yt_transcript_extractor.models import CaptionFormat
from yt_transcript_extractor.providers.timedtext import TIMEDTEXT_URL, TimedTextSource

XML = '<transcript><text start="0" dur="1.5">こんにちは</text></transcript>'


def timedtext_handler(responses):
    """Answer by (lang, kind) so each lookup can be scripted."""

    def handler(request):
        key = (request.url.params.get("lang"), request.url.params.get("kind"))
        return httpx.Response(200, text=responses.get(key, ""))

    return handler


@pytest.fixture
def source():
    return TimedTextSource()


class TestTimedTextSource:
    @respx.mock
    @pytest.mark.asyncio
    async def test_manual_captions(self, source, policy):
        route = respx.get(TIMEDTEXT_URL).mock(
            side_effect=timedtext_handler({("ja", None): XML})
        )
        raw = await source.fetch_captions("dQw4w9WgXcQ", policy)
        assert raw.format == CaptionFormat.TIMEDTEXT_XML
        assert raw.language == "ja"
        assert raw.is_auto_generated is False
        assert route.call_count == 1
        assert route.calls[0].request.url.params["v"] == "dQw4w9WgXcQ"

    @respx.mock
    @pytest.mark.asyncio
    async def test_falls_back_to_asr(self, source, policy):
        respx.get(TIMEDTEXT_URL).mock(
            side_effect=timedtext_handler({("ja", "asr"): XML})
        )
        raw = await source.fetch_captions("dQw4w9WgXcQ", policy)
        assert raw.language == "ja"
        assert raw.is_auto_generated is True

    @respx.mock
    @pytest.mark.asyncio
    async def test_walks_language_chain(self, source, policy):
        route = respx.get(TIMEDTEXT_URL).mock(
            side_effect=timedtext_handler({("en", None): XML})
        )
        raw = await source.fetch_captions("dQw4w9WgXcQ", policy)
        assert raw.language == "en"
        # ja, ja(asr), ja-JP, ja-JP(asr), en
        assert route.call_count == 5

    @respx.mock
    @pytest.mark.asyncio
    async def test_empty_transcript_document_is_not_found(self, source, policy):
        respx.get(TIMEDTEXT_URL).mock(return_value=httpx.Response(200, text="<transcript/>"))
        with pytest.raises(NotFound):
            await source.fetch_captions("dQw4w9WgXcQ", policy)

    @respx.mock
    @pytest.mark.asyncio
    async def test_rate_limited(self, source, policy):
        respx.get(TIMEDTEXT_URL).mock(return_value=httpx.Response(429))
        with pytest.raises(RateLimited):
            await source.fetch_captions("dQw4w9WgXcQ", policy)

    @respx.mock
    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self, source, policy):
        respx.get(TIMEDTEXT_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(NetworkError, match="ReadTimeout"):
            await source.fetch_captions("dQw4w9WgXcQ", policy)

    def test_only_in_caption_preference_mode(self):
        assert TimedTextSource.requires_caption_preference is True
