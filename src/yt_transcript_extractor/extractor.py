"""Caption fallback pipeline.

Sources are tried one after another in the configured order; the first one
whose payload parses to a non-empty transcript wins. Every attempted stage
leaves a diagnostic entry on the result, whether it succeeded or not.
"""

import logging
from collections.abc import Callable

from yt_transcript_extractor.audio import AudioDownloader, YtDlpAudioDownloader
from yt_transcript_extractor.config import Settings
from yt_transcript_extractor.errors import (
    TRANSIENT_KINDS,
    ConfigurationError,
    ErrorKind,
    TranscriptError,
)
from yt_transcript_extractor.languages import LanguagePolicy
from yt_transcript_extractor.models import (
    ExtractionResult,
    FailureReason,
    MethodDiagnostic,
)
from yt_transcript_extractor.parsers import parse_captions
from yt_transcript_extractor.providers import (
    CaptionSource,
    PageMetadataSource,
    TimedTextSource,
    TranscriptApiSource,
    YtDlpSubtitleSource,
)
from yt_transcript_extractor.transcription import Transcriber, WhisperTranscriber
from yt_transcript_extractor.utils import extract_video_id, watch_url
from yt_transcript_extractor.ytdlp import YtDlp

logger = logging.getLogger(__name__)

AUDIO_METHOD = "whisper"

SOURCE_FACTORIES: dict[str, Callable[[Settings, YtDlp], CaptionSource]] = {
    TimedTextSource.name: lambda s, _: TimedTextSource(timeout=s.request_timeout),
    PageMetadataSource.name: lambda s, _: PageMetadataSource(timeout=s.request_timeout),
    YtDlpSubtitleSource.name: lambda s, ytdlp: YtDlpSubtitleSource(ytdlp, s.work_dir),
    TranscriptApiSource.name: lambda s, _: TranscriptApiSource(),
}


def build_sources(settings: Settings, ytdlp: YtDlp) -> list[CaptionSource]:
    sources = []
    for name in settings.method_order:
        factory = SOURCE_FACTORIES.get(name)
        if factory is None:
            raise ValueError(
                f"Unknown caption method {name!r}; expected one of {', '.join(SOURCE_FACTORIES)}"
            )
        sources.append(factory(settings, ytdlp))
    return sources


class TranscriptExtractor:
    def __init__(
        self,
        sources: list[CaptionSource],
        policy: LanguagePolicy,
        downloader: AudioDownloader | None = None,
        transcriber: Transcriber | None = None,
    ):
        self.sources = sources
        self.policy = policy
        self.downloader = downloader
        self.transcriber = transcriber

    @classmethod
    def from_settings(cls, settings: Settings) -> "TranscriptExtractor":
        ytdlp = YtDlp(settings.ytdlp_path, proxy=settings.proxy)
        return cls(
            sources=build_sources(settings, ytdlp),
            policy=LanguagePolicy.from_settings(settings),
            downloader=YtDlpAudioDownloader(
                ytdlp, settings.work_dir, max_attempts=settings.audio_max_attempts
            ),
            transcriber=WhisperTranscriber(
                api_key=settings.openai_api_key,
                model=settings.whisper_model,
                url=settings.transcription_url,
                work_dir=settings.work_dir,
            ),
        )

    def source(self, name: str) -> CaptionSource | None:
        return next((s for s in self.sources if s.name == name), None)

    async def extract_transcript(
        self,
        url: str,
        prefer_captions: bool = True,
        audio_fallback: bool = False,
    ) -> ExtractionResult:
        video_id = extract_video_id(url)
        if not video_id:
            return ExtractionResult(
                success=False,
                failure_reason=FailureReason.INVALID_URL,
                message=f"Invalid YouTube URL or video ID: {url}",
            )

        result = ExtractionResult(success=False, video_id=video_id)
        for source in self.sources:
            if source.requires_caption_preference and not prefer_captions:
                continue
            if await self._try_source(source, video_id, result):
                return result

        if audio_fallback and self.downloader and self.transcriber:
            if await self._try_audio(video_id, result):
                return result

        self._finish_failure(result)
        return result

    async def run_source(self, name: str, url: str) -> ExtractionResult:
        """Run a single named source, bypassing the fallback order."""
        source = self.source(name)
        if source is None:
            raise ValueError(f"Caption method {name!r} is not configured")
        video_id = extract_video_id(url)
        if not video_id:
            return ExtractionResult(
                success=False,
                failure_reason=FailureReason.INVALID_URL,
                message=f"Invalid YouTube URL or video ID: {url}",
            )
        result = ExtractionResult(success=False, video_id=video_id)
        if not await self._try_source(source, video_id, result):
            self._finish_failure(result)
        return result

    async def _try_source(
        self, source: CaptionSource, video_id: str, result: ExtractionResult
    ) -> bool:
        logger.info(f"Trying {source.name} for {video_id}")
        try:
            raw = await source.fetch_captions(video_id, self.policy)
        except TranscriptError as e:
            logger.info(f"{source.name} failed for {video_id}: {e}")
            result.diagnostics[source.name] = MethodDiagnostic(
                success=False, error=str(e), error_kind=e.kind
            )
            return False
        except Exception as e:
            logger.exception(f"{source.name} raised unexpectedly for {video_id}")
            result.diagnostics[source.name] = MethodDiagnostic(
                success=False, error=f"{type(e).__name__}: {e}", error_kind=ErrorKind.UNKNOWN
            )
            return False

        try:
            transcript = parse_captions(raw)
        except Exception as e:
            logger.exception(f"{source.name} payload for {video_id} could not be parsed")
            result.diagnostics[source.name] = MethodDiagnostic(
                success=False,
                language=raw.language,
                error=f"{type(e).__name__}: {e}",
                error_kind=ErrorKind.PARSE_FAILURE,
            )
            return False
        if not transcript:
            logger.info(f"{source.name} returned captions for {video_id} but none parsed")
            result.diagnostics[source.name] = MethodDiagnostic(
                success=False,
                language=raw.language,
                error="Caption payload contained no segments",
                error_kind=ErrorKind.PARSE_FAILURE,
            )
            return False

        logger.info(f"{source.name} produced {len(transcript)} segments for {video_id}")
        result.diagnostics[source.name] = MethodDiagnostic(
            success=True, segment_count=len(transcript), language=raw.language
        )
        result.success = True
        result.transcript = transcript
        result.language = raw.language
        result.is_auto_generated = raw.is_auto_generated
        result.method = source.name
        result.video_title = raw.video_title
        result.video_duration = raw.video_duration
        return True

    async def _try_audio(self, video_id: str, result: ExtractionResult) -> bool:
        language = self.policy.target
        logger.info(f"No captions for {video_id}; transcribing audio")
        try:
            if not self.transcriber.is_configured():
                raise ConfigurationError("OpenAI API key not configured")
            async with self.downloader.downloaded(watch_url(video_id)) as path:
                transcription = await self.transcriber.transcribe_file(path, language)
        except TranscriptError as e:
            logger.warning(f"Audio transcription failed for {video_id}: {e}")
            result.diagnostics[AUDIO_METHOD] = MethodDiagnostic(
                success=False, error=str(e), error_kind=e.kind
            )
            return False
        except Exception as e:
            logger.exception(f"Audio transcription raised unexpectedly for {video_id}")
            result.diagnostics[AUDIO_METHOD] = MethodDiagnostic(
                success=False, error=f"{type(e).__name__}: {e}", error_kind=ErrorKind.UNKNOWN
            )
            return False

        if not transcription.segments:
            result.diagnostics[AUDIO_METHOD] = MethodDiagnostic(
                success=False, error="Transcription was empty", error_kind=ErrorKind.NOT_FOUND
            )
            return False

        result.diagnostics[AUDIO_METHOD] = MethodDiagnostic(
            success=True,
            segment_count=len(transcription.segments),
            language=language,
        )
        result.success = True
        result.transcript = transcription.segments
        # Whisper reports a language name ("japanese"); keep the requested code.
        result.language = language
        result.is_auto_generated = True
        result.method = AUDIO_METHOD
        result.video_duration = transcription.duration
        return True

    @staticmethod
    def _finish_failure(result: ExtractionResult) -> None:
        kinds = {d.error_kind for d in result.diagnostics.values()}
        if ErrorKind.UPSTREAM_UNAVAILABLE in kinds:
            result.failure_reason = FailureReason.UNAVAILABLE
            result.audio_extraction_available = False
            result.message = "Video is unavailable. It might be private, deleted, or region-locked."
        elif kinds & TRANSIENT_KINDS:
            result.failure_reason = FailureReason.TRANSIENT
            result.audio_extraction_available = True
            result.message = (
                "YouTube could not be reached, or is blocking or rate limiting requests. "
                "Please try again later."
            )
        else:
            result.failure_reason = FailureReason.NO_CAPTIONS
            result.audio_extraction_available = True
            result.message = (
                "This video does not have subtitles available. "
                "Try using audio transcription instead."
            )

    async def close(self) -> None:
        for source in self.sources:
            await source.close()
        if self.transcriber:
            await self.transcriber.close()
