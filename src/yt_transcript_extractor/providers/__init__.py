"""Caption sources."""

from .base import CaptionSource
from .page_metadata import PageMetadataSource
from .timedtext import TimedTextSource
from .transcript_api import TranscriptApiSource
from .ytdlp_subtitles import YtDlpSubtitleSource

__all__ = [
    "CaptionSource",
    "PageMetadataSource",
    "TimedTextSource",
    "TranscriptApiSource",
    "YtDlpSubtitleSource",
]
