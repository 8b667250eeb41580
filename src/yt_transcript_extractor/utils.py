"""Utility functions."""

import re
import time
import uuid

from yt_transcript_extractor.models import TranscriptSegment

VIDEO_ID_PATTERNS = [
    r"[?&]v=([a-zA-Z0-9_-]{11})",
    r"youtu\.be/([a-zA-Z0-9_-]{11})",
    r"(?:embed/|/v/)([a-zA-Z0-9_-]{11})",
    r"(?:shorts/)([a-zA-Z0-9_-]{11})",
]

YOUTUBE_URL_RE = re.compile(
    r"^(https?://)?(www\.|m\.)?(youtube\.com/(watch\?v=|embed/|v/|shorts/)|youtu\.be/)[\w-]+"
)

# Whitespace plus Japanese sentence delimiters.
WORD_SPLIT_RE = re.compile(r"[\s、。！？]")


def extract_video_id(url_or_id: str) -> str | None:
    """Extract YouTube video ID from URL or return as-is if valid ID."""
    if not isinstance(url_or_id, str):
        raise TypeError(f"expected a URL string, got {type(url_or_id).__name__}")
    for pattern in VIDEO_ID_PATTERNS:
        match = re.search(pattern, url_or_id)
        if match:
            return match.group(1)
    if re.match(r"^[a-zA-Z0-9_-]{11}$", url_or_id):
        return url_or_id
    return None


def is_valid_youtube_url(url: str) -> bool:
    return bool(YOUTUBE_URL_RE.match(url))


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def split_words(text: str) -> list[str]:
    return [w for w in WORD_SPLIT_RE.split(text) if w]


def make_segments(items: list[tuple[str, float, float]]) -> list[TranscriptSegment]:
    """Number (text, start, end) tuples from 1 in the order given."""
    segments = []
    for text, start, end in items:
        segments.append(
            TranscriptSegment(
                id=len(segments) + 1,
                text=text,
                start_time=start,
                end_time=max(end, start),
                words=split_words(text),
            )
        )
    return segments


def timestamp_name(prefix: str) -> str:
    """Collision-resistant artifact name, e.g. ``subs_1718000000123_a1b2c3``."""
    return f"{prefix}_{time.time_ns() // 1_000_000}_{uuid.uuid4().hex[:6]}"


def format_timestamp(seconds: float) -> str:
    """Format seconds to HH:MM:SS or MM:SS."""
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = int(seconds % 60)
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"
