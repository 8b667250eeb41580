"""Caption tracks discovered through the video-info metadata endpoints."""

import json
import logging
from urllib.parse import parse_qs

import httpx

from yt_transcript_extractor.errors import (
    NetworkError,
    NotFound,
    ParseFailure,
    TranscriptError,
    UpstreamUnavailable,
    classify_http_status,
)
from yt_transcript_extractor.languages import LanguagePolicy
from yt_transcript_extractor.models import CaptionFormat, RawCaptions
from .base import HttpCaptionSource

logger = logging.getLogger(__name__)

VIDEO_INFO_URL = "https://www.youtube.com/get_video_info"

# Tried in order until one returns a usable player_response.
VIDEO_INFO_VARIANTS = [
    {"el": "embedded"},
    {"el": "detailpage"},
    {"html5": "1", "c": "TVHTML5", "cver": "7.20190319"},
]


def extract_player_response(body: str) -> dict:
    """Decode the ``player_response`` JSON from URL-encoded form data."""
    form = parse_qs(body)
    values = form.get("player_response")
    if not values:
        raise ParseFailure("player_response missing from video info")
    try:
        return json.loads(values[0])
    except ValueError as e:
        raise ParseFailure(f"player_response is not JSON: {e}") from e


def caption_tracks(player_response: dict) -> list[dict]:
    status = player_response.get("playabilityStatus") or {}
    if status.get("status") in ("ERROR", "LOGIN_REQUIRED", "UNPLAYABLE"):
        raise UpstreamUnavailable(status.get("reason") or "Video is unavailable")
    renderer = (player_response.get("captions") or {}).get(
        "playerCaptionsTracklistRenderer"
    ) or {}
    return [t for t in renderer.get("captionTracks") or [] if t.get("baseUrl")]


def select_track(tracks: list[dict], policy: LanguagePolicy) -> tuple[dict, bool] | None:
    manual = {t.get("languageCode", ""): t for t in tracks if t.get("kind") != "asr"}
    automatic = {t.get("languageCode", ""): t for t in tracks if t.get("kind") == "asr"}
    picked = policy.select(manual, automatic)
    if picked is None:
        return None
    code, is_auto = picked
    return (automatic if is_auto else manual)[code], is_auto


class PageMetadataSource(HttpCaptionSource):
    name = "youtube-api"

    async def fetch_captions(
        self, video_id: str, policy: LanguagePolicy
    ) -> RawCaptions:
        player_response = await self._player_response(video_id)
        tracks = caption_tracks(player_response)
        if not tracks:
            raise NotFound(f"Video {video_id} has no caption tracks")

        picked = select_track(tracks, policy)
        if picked is None:
            available = sorted({t.get("languageCode", "?") for t in tracks})
            raise NotFound(
                f"No caption track in {', '.join(policy.chain())}; "
                f"available: {', '.join(available)}"
            )
        track, is_auto = picked

        resp = await self._get(track["baseUrl"])
        if resp.is_error:
            raise classify_http_status(
                resp.status_code, f"caption track returned HTTP {resp.status_code}"
            )
        if not resp.text.strip():
            raise NotFound(f"Caption track for {video_id} is empty")

        details = player_response.get("videoDetails") or {}
        return RawCaptions(
            format=CaptionFormat.TRACK_XML,
            content=resp.text,
            language=track.get("languageCode", ""),
            is_auto_generated=is_auto,
            video_title=details.get("title"),
            video_duration=float(details["lengthSeconds"]) if details.get("lengthSeconds") else None,
        )

    async def _player_response(self, video_id: str) -> dict:
        last_error: Exception | None = None
        for variant in VIDEO_INFO_VARIANTS:
            params = {"video_id": video_id, **variant}
            try:
                resp = await self._get(VIDEO_INFO_URL, params=params)
                if resp.is_error:
                    raise classify_http_status(
                        resp.status_code, f"get_video_info returned HTTP {resp.status_code}"
                    )
                return extract_player_response(resp.text)
            except (httpx.HTTPError, TranscriptError) as e:
                logger.info(f"get_video_info variant {variant} failed for {video_id}: {e}")
                last_error = e
        if isinstance(last_error, TranscriptError):
            raise last_error
        raise NetworkError(f"No video info endpoint answered for {video_id}: {last_error}")
