"""Shared test fixtures."""

import pytest

from yt_transcript_extractor.languages import LanguagePolicy
from yt_transcript_extractor.models import (
    CaptionFormat,
    ExtractionResult,
    MethodDiagnostic,
    RawCaptions,
)
from yt_transcript_extractor.providers.base import CaptionSource
from yt_transcript_extractor.utils import make_segments


class FakeSource(CaptionSource):
    """Caption source returning a canned payload or raising a canned error."""

    def __init__(self, name, raw=None, error=None, requires_caption_preference=False):
        self.name = name
        self.raw = raw
        self.error = error
        self.requires_caption_preference = requires_caption_preference
        self.calls = []
        self.closed = False

    async def fetch_captions(self, video_id, policy):
        self.calls.append(video_id)
        if self.error is not None:
            raise self.error
        return self.raw

    async def close(self):
        self.closed = True


def timedtext_raw(*lines, language="ja", auto=False):
    body = "".join(
        f'<text start="{start}" dur="{dur}">{text}</text>' for text, start, dur in lines
    )
    return RawCaptions(
        format=CaptionFormat.TIMEDTEXT_XML,
        content=f"<transcript>{body}</transcript>",
        language=language,
        is_auto_generated=auto,
    )


@pytest.fixture
def policy():
    return LanguagePolicy(target="ja", target_region="JP", fallback="en", fallback_region="US")


@pytest.fixture
def sample_segments():
    return make_segments([
        ("Hello world", 0.0, 2.5),
        ("this is a test", 2.5, 5.5),
        ("of the transcript", 5.5, 7.5),
        ("extraction system", 7.5, 10.0),
        ("goodbye world", 10.0, 12.0),
    ])


@pytest.fixture
def sample_result(sample_segments):
    return ExtractionResult(
        success=True,
        video_id="dQw4w9WgXcQ",
        transcript=sample_segments,
        language="en",
        is_auto_generated=False,
        method="youtube-api",
        diagnostics={
            "youtube-api": MethodDiagnostic(success=True, segment_count=5, language="en"),
        },
    )


@pytest.fixture
def failed_result():
    return ExtractionResult(
        success=False,
        video_id="dQw4w9WgXcQ",
        audio_extraction_available=True,
        failure_reason="no_captions",
        message="This video does not have subtitles available. Try using audio transcription instead.",
        diagnostics={
            "youtube-api": MethodDiagnostic(
                success=False, error="no tracks", error_kind="not_found"
            ),
        },
    )
