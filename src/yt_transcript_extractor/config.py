"""Configuration via environment variables."""

import tempfile
from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

DEFAULT_METHOD_ORDER = ["timedtext", "youtube-api", "yt-dlp-subtitles"]


class Transport(str, Enum):
    STDIO = "stdio"
    STREAMABLE_HTTP = "streamable-http"


class Settings(BaseSettings):
    model_config = {"env_prefix": "YT_EXTRACT_"}

    language: str = "ja"
    language_region: str = "JP"
    # Empty string disables the fallback: a missing target language is "not found".
    fallback_language: str = "en"
    fallback_region: str = "US"
    method_order: list[str] = Field(default_factory=lambda: list(DEFAULT_METHOD_ORDER))

    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("YT_EXTRACT_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    whisper_model: str = "whisper-1"
    transcription_url: str = "https://api.openai.com/v1/audio/transcriptions"

    ytdlp_path: str = "yt-dlp"
    proxy: str = ""
    audio_max_attempts: int = 3
    work_dir: Path = Path(tempfile.gettempdir()) / "yt-transcript"
    request_timeout: float = 30.0

    rate_limit_per_minute: int = 30
    transport: Transport = Transport.STDIO
    host: str = "0.0.0.0"
    port: int = 8401
