"""Caption format parsers.

Every parser turns one raw caption payload into a list of
``TranscriptSegment`` numbered from 1 in source order. Input that cannot be
interpreted yields an empty list; the caller treats that as "found nothing".
"""

import json
import logging
import re
import xml.etree.ElementTree as ET

from yt_transcript_extractor.models import CaptionFormat, RawCaptions, TranscriptSegment
from yt_transcript_extractor.utils import make_segments

logger = logging.getLogger(__name__)

DEFAULT_TRACK_DURATION = 5.0
DEFAULT_EVENT_DURATION_MS = 5000

_TIMEDTEXT_RE = re.compile(
    r'<text start="([\d.]+)" dur="([\d.]+)"[^>]*>(.*?)</text>', re.DOTALL
)

_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES))


def decode_entities(text: str) -> str:
    # Single pass so "&amp;lt;" decodes to "&lt;", not "<".
    return _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], text)


def parse_timedtext_xml(content: str) -> list[TranscriptSegment]:
    """Parse ``<text start="S" dur="D">TEXT</text>`` fragments."""
    items = []
    for start, dur, body in _TIMEDTEXT_RE.findall(content or ""):
        text = decode_entities(body).strip()
        if not text:
            continue
        try:
            begin = float(start)
            end = begin + float(dur)
        except ValueError:
            logger.debug(f"Skipping timed-text line with bad timing: start={start} dur={dur}")
            continue
        items.append((text, begin, end))
    return make_segments(items)


def parse_track_xml(content: str) -> list[TranscriptSegment]:
    """Parse a caption-track document (``<transcript><text .../></transcript>``)."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.warning(f"Caption track XML did not parse: {e}")
        return []

    elements = [root] if root.tag == "text" else root.iter("text")
    items = []
    for el in elements:
        text = "".join(el.itertext()).strip()
        if not text:
            continue
        try:
            start = float(el.get("start", "0"))
            dur = float(el.get("dur", DEFAULT_TRACK_DURATION))
        except ValueError:
            logger.debug(f"Skipping caption with bad timing: {el.attrib}")
            continue
        items.append((text, start, start + dur))
    return make_segments(items)


def parse_vtt_timestamp(ts: str) -> float:
    """Parse ``HH:MM:SS.mmm`` or ``MM:SS.mmm`` to seconds."""
    parts = ts.strip().replace(",", ".").split(":")
    if len(parts) == 3:
        return int(parts[0]) * 3600 + int(parts[1]) * 60 + float(parts[2])
    if len(parts) == 2:
        return int(parts[0]) * 60 + float(parts[1])
    raise ValueError(f"Invalid timestamp format: {ts}")


_VTT_HEADERS = ("WEBVTT", "NOTE", "STYLE", "Kind:", "Language:")
_VTT_TAG_RE = re.compile(r"<[^>]+>")


def parse_webvtt(content: str) -> list[TranscriptSegment]:
    """Parse WebVTT cues.

    A ``-->`` line sets the pending timing; the next text line closes the
    cue. Inline tags such as ``<c>`` and word timestamps are stripped.
    """
    items = []
    pending: tuple[float, float] | None = None
    for raw_line in (content or "").splitlines():
        line = raw_line.strip()
        if not line or line.startswith(_VTT_HEADERS):
            continue
        if "-->" in line:
            start_str, _, rest = line.partition("-->")
            end_str = rest.split()[0] if rest.split() else ""
            try:
                pending = (parse_vtt_timestamp(start_str), parse_vtt_timestamp(end_str))
            except ValueError:
                logger.debug(f"Skipping bad VTT timing line: {line}")
                pending = None
            continue
        if pending is None:
            # Cue identifiers and stray text outside a cue.
            continue
        text = decode_entities(_VTT_TAG_RE.sub("", line)).strip()
        if not text:
            continue
        items.append((text, pending[0], pending[1]))
        pending = None
    return make_segments(items)


def parse_json3(content: str) -> list[TranscriptSegment]:
    """Parse a json3 event stream (``{"events": [{"segs": [...]}]}``)."""
    try:
        data = json.loads(content)
    except (TypeError, ValueError) as e:
        logger.warning(f"json3 payload did not parse: {e}")
        return []
    if not isinstance(data, dict):
        return []
    events = data.get("events") or []
    if not isinstance(events, list):
        return []

    items = []
    for event in events:
        if not isinstance(event, dict) or not isinstance(event.get("segs"), list):
            continue
        text = "".join(
            str(seg.get("utf8") or "") for seg in event["segs"] if isinstance(seg, dict)
        ).strip()
        if not text:
            continue
        try:
            start = float(event.get("tStartMs") or 0) / 1000
            duration = float(event.get("dDurationMs") or DEFAULT_EVENT_DURATION_MS) / 1000
        except (TypeError, ValueError):
            logger.debug(f"Skipping json3 event with bad timing: {event}")
            continue
        items.append((text, start, start + duration))
    return make_segments(items)


def parse_entries(entries: list[dict]) -> list[TranscriptSegment]:
    """Segments from ``{"text", "start", "duration"}`` dicts."""
    items = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        text = decode_entities(str(entry.get("text", ""))).strip()
        if not text:
            continue
        try:
            start = float(entry.get("start", 0.0))
            duration = float(entry.get("duration", 0.0))
        except (TypeError, ValueError):
            continue
        items.append((text, start, start + duration))
    return make_segments(items)


_PARSERS = {
    CaptionFormat.TIMEDTEXT_XML: parse_timedtext_xml,
    CaptionFormat.TRACK_XML: parse_track_xml,
    CaptionFormat.WEBVTT: parse_webvtt,
    CaptionFormat.JSON3: parse_json3,
}


def parse_captions(raw: RawCaptions) -> list[TranscriptSegment]:
    if raw.format == CaptionFormat.SEGMENTS:
        return parse_entries(raw.entries)
    return _PARSERS[raw.format](raw.content)
