"""
Timeline Builder

Turns evidence records into a chronological narrative: each record with a
known timestamp becomes one classified TimelineEvent with a cleaned,
human-readable description. Also computes the first-to-last time span.
"""

import re
from typing import Iterable, List, Optional, Tuple

from .models import EventType, LogRecord, TimelineEvent, TimeSpan

# First match wins, so the order matters
EVENT_PATTERNS: List[Tuple[EventType, "re.Pattern[str]"]] = [
    (EventType.STARTED, re.compile(r"(?:started|begin|initiated|commenced)", re.IGNORECASE)),
    (EventType.COMPLETED, re.compile(r"(?:completed|finished|success|done)", re.IGNORECASE)),
    (EventType.FAILED, re.compile(r"(?:failed|error|exception|timeout|abort)", re.IGNORECASE)),
    (EventType.WARNING, re.compile(r"(?:warning|warn|caution)", re.IGNORECASE)),
    (EventType.TIMEOUT, re.compile(r"(?:timeout|timed out|expired)", re.IGNORECASE)),
    (EventType.RETRY, re.compile(r"(?:retry|retrying|attempt)", re.IGNORECASE)),
    (EventType.AUTHENTICATION, re.compile(r"(?:auth|login|authenticate)", re.IGNORECASE)),
    (EventType.DATABASE, re.compile(r"(?:database|db|sql|query)", re.IGNORECASE)),
    (EventType.PAYMENT, re.compile(r"(?:payment|transaction|charge)", re.IGNORECASE)),
    (EventType.API_CALL, re.compile(r"(?:api|http|request|response)", re.IGNORECASE)),
]

# Applied in sequence, each to the output of the previous one
DESCRIPTION_CLEAN_PATTERNS = [
    re.compile(r"^\[[\d\-\s:TZ+.]+\]\s*"),   # [2024-01-15 14:20:15]
    re.compile(r"^\w+:\s*"),                 # ERROR:
    re.compile(r"^\[\w+\]\s*"),              # [payment-service]
    re.compile(r"^[\d.\-\s:]+\s+\w+\s+"),    # 2024-01-15 14:20:15 INFO
]

DEFAULT_DESCRIPTION = "Log event"


def classify_event(content: str) -> EventType:
    """Classify a log line into an event type."""
    for event_type, pattern in EVENT_PATTERNS:
        if pattern.search(content or ""):
            return event_type
    return EventType.INFO


def clean_description(content: str, max_length: int = 100) -> str:
    """Strip leading timestamp/level/prefix noise and truncate."""
    text = (content or "").strip()
    for pattern in DESCRIPTION_CLEAN_PATTERNS:
        text = pattern.sub("", text, count=1)

    if len(text) > max_length:
        text = text[:max_length - 3] + "..."

    return text or DEFAULT_DESCRIPTION


def format_duration(seconds: int) -> str:
    """Human-readable duration: 45s, 9m 50s, 2h 5m 3s"""
    seconds = max(int(seconds), 0)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m {seconds % 60}s"


def compute_time_span(records: Iterable[LogRecord]) -> Optional[TimeSpan]:
    """First-to-last span over records with a known timestamp; None if there are none."""
    instants = sorted(r.timestamp for r in records if r.timestamp is not None)
    if not instants:
        return None

    start, end = instants[0], instants[-1]
    duration = int((end - start).total_seconds())
    return TimeSpan(
        start=start,
        end=end,
        duration_seconds=duration,
        duration_human=format_duration(duration),
    )


class TimelineBuilder:
    """
    Builds the request timeline from evidence records.

    Records without a timestamp are left out of the timeline; they still
    appear in the evidence list.
    """

    def __init__(self, description_max_length: int = 100):
        self.description_max_length = description_max_length

    def build_event(self, record: LogRecord) -> Optional[TimelineEvent]:
        if record.timestamp is None:
            return None
        return TimelineEvent(
            timestamp=record.timestamp,
            event_type=classify_event(record.content),
            description=clean_description(record.content, self.description_max_length),
            source=record.source,
        )

    def build(self, records: Iterable[LogRecord]) -> List[TimelineEvent]:
        events = [e for e in (self.build_event(r) for r in records) if e is not None]
        events.sort(key=lambda e: e.timestamp)
        return events
