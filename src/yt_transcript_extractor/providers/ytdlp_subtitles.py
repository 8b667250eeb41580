"""Subtitles downloaded with the yt-dlp command line tool."""

import logging
from pathlib import Path

from yt_transcript_extractor.errors import NotFound
from yt_transcript_extractor.languages import LanguagePolicy
from yt_transcript_extractor.models import CaptionFormat, RawCaptions
from yt_transcript_extractor.utils import timestamp_name, watch_url
from yt_transcript_extractor.ytdlp import YtDlp
from .base import CaptionSource

logger = logging.getLogger(__name__)

# Preferred first; vtt is only requested when json3 produced no file.
SUBTITLE_FORMATS = [
    ("json3", CaptionFormat.JSON3),
    ("vtt", CaptionFormat.WEBVTT),
]


class YtDlpSubtitleSource(CaptionSource):
    name = "yt-dlp-subtitles"

    def __init__(self, ytdlp: YtDlp, work_dir: Path):
        self._ytdlp = ytdlp
        self._work_dir = Path(work_dir)

    async def fetch_captions(
        self, video_id: str, policy: LanguagePolicy
    ) -> RawCaptions:
        url = watch_url(video_id)
        info = await self._ytdlp.dump_json(url)
        manual = info.get("subtitles") or {}
        automatic = info.get("automatic_captions") or {}

        picked = policy.select(manual, automatic)
        if picked is None:
            available = sorted({*manual, *automatic})
            raise NotFound(
                "This video does not have subtitles available. "
                f"Available languages: {', '.join(available) or 'none'}"
            )
        lang, is_auto = picked
        logger.info(f"yt-dlp subtitles for {video_id}: lang={lang} auto={is_auto}")

        self._work_dir.mkdir(parents=True, exist_ok=True)
        output = self._work_dir / timestamp_name("subs")
        try:
            for sub_format, caption_format in SUBTITLE_FORMATS:
                path = await self._download(url, lang, sub_format, output)
                if path is None:
                    logger.info(f"No {sub_format} subtitle file produced for {video_id}")
                    continue
                return RawCaptions(
                    format=caption_format,
                    content=path.read_text(encoding="utf-8"),
                    language=lang,
                    is_auto_generated=is_auto,
                    video_title=info.get("title"),
                    video_duration=info.get("duration"),
                )
        finally:
            for leftover in self._work_dir.glob(f"{output.name}*"):
                leftover.unlink(missing_ok=True)
        raise NotFound(f"Failed to download subtitles for {video_id}")

    async def _download(
        self, url: str, lang: str, sub_format: str, output: Path
    ) -> Path | None:
        await self._ytdlp.run_checked([
            "--write-subs",
            "--write-auto-subs",
            "--sub-lang", lang,
            "--skip-download",
            "--sub-format", sub_format,
            "--no-warnings",
            "-o", str(output),
            url,
        ])
        for candidate in (
            output.with_name(f"{output.name}.{lang}.{sub_format}"),
            output.with_name(f"{output.name}.{sub_format}"),
        ):
            if candidate.exists():
                return candidate
        return None
