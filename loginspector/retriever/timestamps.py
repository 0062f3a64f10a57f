"""
Timestamp Extractor

Best-effort timestamp resolution for heterogeneous log records.

Resolution order, first success wins:
1. Numeric ``timestamp`` metadata (epoch seconds)
2. String ``timestamp`` metadata (generic date-time parsing)
3. Raw content scan: bracketed ISO-8601, bare ISO-8601, Apache/NCSA
4. Unknown (None), which orders before every real instant

All resolved instants are timezone-aware UTC. Naive inputs are read as UTC.
"""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional

from .models import UNKNOWN_ORDER

_ISO_BODY = r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?"

CONTENT_PATTERNS = [
    re.compile(r"\[(" + _ISO_BODY + r")\]"),
    re.compile(r"(" + _ISO_BODY + r")"),
    re.compile(r"\[(\d{2}/\w{3}/\d{4}:\d{2}:\d{2}:\d{2}\s?[+-]\d{4})\]"),
]

STRPTIME_FORMATS = [
    "%d/%b/%Y:%H:%M:%S %z",
    "%d/%b/%Y:%H:%M:%S%z",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S.%f",
    "%d-%b-%Y %H:%M:%S",
    "%b %d %Y %H:%M:%S",
    "%b %d, %Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S %Z",
]

_FRACTION_RE = re.compile(r"\.(\d+)")
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")
_NUMERIC_RE = re.compile(r"^-?\d+(?:\.\d+)?$")


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _safe_utc(value: datetime) -> Optional[datetime]:
    """UTC conversion that yields None when the shifted instant leaves the datetime range."""
    try:
        return _to_utc(value)
    except (OverflowError, ValueError):
        return None


def _from_epoch(seconds: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(float(seconds), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _normalize_iso(text: str) -> str:
    """Massage ISO-8601 variants into what ``datetime.fromisoformat`` accepts."""
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat wants exactly 3 or 6 fractional digits on older interpreters
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return _COMPACT_OFFSET_RE.sub(r"\1:\2", text)


def parse_datetime(text: str) -> Optional[datetime]:
    """
    Generic date-time parsing for a single string value.

    Accepts ISO-8601 (with ``T`` or space, optional fraction and offset),
    Apache/NCSA, RFC 2822 and a handful of common log layouts.
    Returns None when nothing fits.
    """
    if not text or not text.strip():
        return None
    text = text.strip()

    try:
        return _safe_utc(datetime.fromisoformat(_normalize_iso(text)))
    except ValueError:
        pass

    for fmt in STRPTIME_FORMATS:
        try:
            return _safe_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue

    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    return _safe_utc(parsed) if parsed is not None else None


class TimestampExtractor:
    """
    Resolves a timestamp from record metadata and raw content.

    Never raises: anything unparseable degrades to None ("unknown").
    """

    def __init__(self, field_name: str = "timestamp"):
        self.field_name = field_name

    def extract(self, metadata: Optional[Mapping[str, Any]], content: Optional[str] = None) -> Optional[datetime]:
        metadata = metadata or {}
        raw = metadata.get(self.field_name)

        if isinstance(raw, datetime):
            resolved = _safe_utc(raw)
            if resolved is not None:
                return resolved

        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            resolved = _from_epoch(raw)
            if resolved is not None:
                return resolved

        if isinstance(raw, str) and raw.strip():
            if _NUMERIC_RE.match(raw.strip()):
                resolved = _from_epoch(float(raw))
            else:
                resolved = parse_datetime(raw)
            if resolved is not None:
                return resolved

        if content is None:
            content = metadata.get("content")
        return self.scan_content(content or "")

    def scan_content(self, content: str) -> Optional[datetime]:
        """Look for a timestamp inside the raw log line."""
        if not content:
            return None
        for pattern in CONTENT_PATTERNS:
            match = pattern.search(content)
            if match:
                resolved = parse_datetime(match.group(1))
                if resolved is not None:
                    return resolved
        return None

    def ordering_value(self, metadata: Optional[Mapping[str, Any]], content: Optional[str] = None) -> float:
        """Epoch seconds for sorting; unknown timestamps order before any real instant."""
        resolved = self.extract(metadata, content)
        return resolved.timestamp() if resolved is not None else UNKNOWN_ORDER
