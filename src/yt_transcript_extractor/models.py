"""Data models for transcript results."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from yt_transcript_extractor.errors import ErrorKind


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranscriptSegment(CamelModel):
    id: int = Field(ge=1)
    text: str
    start_time: float
    end_time: float
    words: list[str] = []

    @model_validator(mode="after")
    def _check_times(self) -> "TranscriptSegment":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class CaptionFormat(str, Enum):
    TIMEDTEXT_XML = "timedtext-xml"
    TRACK_XML = "track-xml"
    WEBVTT = "vtt"
    JSON3 = "json3"
    SEGMENTS = "segments"


class RawCaptions(BaseModel):
    """Caption payload as returned by a source, before parsing."""

    format: CaptionFormat
    content: str = ""
    language: str
    is_auto_generated: bool = False
    # Already-timed entries for sources that do not hand back a text payload.
    entries: list[dict] = []
    video_title: str | None = None
    video_duration: float | None = None


class MethodDiagnostic(CamelModel):
    success: bool
    segment_count: int = 0
    language: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


class FailureReason(str, Enum):
    INVALID_URL = "invalid_url"
    NO_CAPTIONS = "no_captions"
    TRANSIENT = "transient"
    UNAVAILABLE = "unavailable"


class ExtractionResult(CamelModel):
    success: bool
    video_id: str | None = None
    transcript: list[TranscriptSegment] = []
    language: str | None = None
    is_auto_generated: bool = False
    method: str | None = None
    diagnostics: dict[str, MethodDiagnostic] = {}
    audio_extraction_available: bool = False
    failure_reason: FailureReason | None = None
    message: str = ""
    video_title: str | None = None
    video_duration: float | None = None

    @property
    def text(self) -> str:
        return " ".join(seg.text for seg in self.transcript)
