"""Error taxonomy shared by caption sources, audio and transcription."""

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UPSTREAM_BLOCKED = "upstream_blocked"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    PARSE_FAILURE = "parse_failure"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class TranscriptError(Exception):
    """Base class for expected failures while extracting a transcript."""

    kind = ErrorKind.UNKNOWN


class NotFound(TranscriptError):
    """No identifier, no captions, or no file produced."""

    kind = ErrorKind.NOT_FOUND


class UpstreamBlocked(TranscriptError):
    """YouTube actively rejected the request (bot detection, sign-in wall)."""

    kind = ErrorKind.UPSTREAM_BLOCKED


class UpstreamUnavailable(TranscriptError):
    """The video is deleted, private or region-locked."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class RateLimited(TranscriptError):
    kind = ErrorKind.RATE_LIMITED


class NetworkError(TranscriptError):
    """YouTube could not be reached (timeout, connection failure)."""

    kind = ErrorKind.NETWORK


class ParseFailure(TranscriptError):
    """A payload was received but could not be interpreted."""

    kind = ErrorKind.PARSE_FAILURE


class ConfigurationError(TranscriptError):
    """A required external credential or binary is missing."""

    kind = ErrorKind.CONFIGURATION


class DownloadError(TranscriptError):
    """yt-dlp failed for a reason we could not classify."""


TRANSIENT_KINDS = frozenset(
    {ErrorKind.UPSTREAM_BLOCKED, ErrorKind.RATE_LIMITED, ErrorKind.NETWORK}
)


def classify_http_status(status_code: int, detail: str) -> TranscriptError:
    """Map an upstream HTTP status to the matching error."""
    if status_code == 429:
        return RateLimited(detail)
    if status_code in (401, 403):
        return UpstreamBlocked(detail)
    if status_code in (404, 410):
        return UpstreamUnavailable(detail)
    return TranscriptError(detail)


def classify_ytdlp_stderr(stderr: str, returncode: int | None = None) -> TranscriptError:
    """Turn yt-dlp stderr into a typed error."""
    if "Sign in to confirm" in stderr or "bot" in stderr:
        return UpstreamBlocked(
            "YouTube is blocking the server. This is a known issue with cloud hosting providers."
        )
    if "Video unavailable" in stderr or "Private video" in stderr:
        return UpstreamUnavailable(
            "Video is unavailable. It might be private, deleted, or region-locked."
        )
    if "429" in stderr or "Too Many Requests" in stderr:
        return RateLimited("YouTube is rate limiting the server. Please try again later.")
    for line in stderr.splitlines():
        if "ERROR:" in line:
            return DownloadError(line.split("ERROR:", 1)[1].strip())
    return DownloadError(f"yt-dlp exited with code {returncode}")
