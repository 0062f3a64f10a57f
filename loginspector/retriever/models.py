"""
Retriever Data Model

Value types shared by the retrieval pipeline, and their caller-facing
dict shapes. Field names in ``to_dict`` are consumed downstream and must
not change.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class LogLevel(str, Enum):
    """Normalized log severity"""
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, raw: Any) -> "LogLevel":
        if raw is None:
            return cls.UNKNOWN
        return _LEVEL_ALIASES.get(str(raw).strip().lower(), cls.UNKNOWN)

    @property
    def is_error(self) -> bool:
        return self in (LogLevel.ERROR, LogLevel.CRITICAL)


_LEVEL_ALIASES = {
    "critical": LogLevel.CRITICAL,
    "crit": LogLevel.CRITICAL,
    "fatal": LogLevel.CRITICAL,
    "panic": LogLevel.CRITICAL,
    "alert": LogLevel.CRITICAL,
    "emergency": LogLevel.CRITICAL,
    "error": LogLevel.ERROR,
    "err": LogLevel.ERROR,
    "warning": LogLevel.WARNING,
    "warn": LogLevel.WARNING,
    "info": LogLevel.INFO,
    "information": LogLevel.INFO,
    "notice": LogLevel.INFO,
    "success": LogLevel.INFO,
    "debug": LogLevel.INFO,
}


class EventType(str, Enum):
    """Timeline event classification, in matching priority order"""
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    WARNING = "warning"
    TIMEOUT = "timeout"
    RETRY = "retry"
    AUTHENTICATION = "authentication"
    DATABASE = "database"
    PAYMENT = "payment"
    API_CALL = "api_call"
    INFO = "info"


# Ordering value of a record whose timestamp could not be resolved
UNKNOWN_ORDER = float("-inf")


def format_instant(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 rendering of a resolved timestamp; None stays None."""
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class LogRecord:
    """A single indexed log line. Read-only to the retriever."""
    id: str
    content: str
    timestamp: Optional[datetime] = None
    level: LogLevel = LogLevel.UNKNOWN
    source: str = "unknown"
    tags: frozenset = frozenset()
    category: Optional[str] = None

    @property
    def has_timestamp(self) -> bool:
        return self.timestamp is not None

    @property
    def sort_key(self) -> float:
        """Epoch seconds for ordering; unknown timestamps sort before any real instant."""
        return self.timestamp.timestamp() if self.timestamp is not None else UNKNOWN_ORDER


@dataclass
class ScoredCandidate:
    """A log record ranked against one query"""
    record: LogRecord
    score: float  # 0.0 to 1.0, higher = more relevant
    distance: Optional[float] = None  # vector-space distance when known

    def __post_init__(self):
        self.score = max(0.0, min(1.0, float(self.score)))


@dataclass
class TimelineEvent:
    """Classified, timestamped projection of a log record"""
    timestamp: datetime
    event_type: EventType
    description: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": format_instant(self.timestamp),
            "event_type": self.event_type.value,
            "description": self.description,
            "source": self.source,
        }


@dataclass
class TimeSpan:
    """First-to-last timestamp span of the evidence"""
    start: datetime
    end: datetime
    duration_seconds: int
    duration_human: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": self.start.strftime("%Y-%m-%d %H:%M:%S"),
            "end_time": self.end.strftime("%Y-%m-%d %H:%M:%S"),
            "duration_seconds": self.duration_seconds,
            "duration_human": self.duration_human,
        }


@dataclass
class EvidenceEntry:
    """An evidence record with its position in the chronological story"""
    record: LogRecord
    chronological_order: int
    score: Optional[float] = None

    def to_dict(self, with_order: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.record.id,
            "content": self.record.content,
            "timestamp": format_instant(self.record.timestamp),
            "level": self.record.level.value,
            "source": self.record.source,
            "tags": sorted(self.record.tags),
        }
        if with_order:
            data["chronological_order"] = self.chronological_order
        return data


@dataclass
class Analysis:
    """Summary, root cause and confidence for a set of evidence"""
    summary: str
    root_cause: str
    confidence: str  # "Low" | "Medium" | "High"
    full_analysis: Optional[str] = None
    generated_by: str = "pattern"  # "llm" | "pattern"


@dataclass
class EvidenceBundle:
    """Aggregate result of one identifier trace"""
    identifier: str
    evidence: List[EvidenceEntry]
    timeline: List[TimelineEvent]
    services_involved: Dict[str, int]
    log_levels: Dict[str, int]
    time_span: Optional[TimeSpan]
    search_method: str
    analysis: Optional[Analysis] = None

    @property
    def total_logs(self) -> int:
        return len(self.evidence)

    def to_dict(self) -> Dict[str, Any]:
        analysis = self.analysis or Analysis(
            summary="Request context analysis completed",
            root_cause="Analysis provided in summary",
            confidence="Medium",
        )
        data = {
            "success": True,
            "reason": analysis.summary,
            "summary": analysis.summary,
            "root_cause": analysis.root_cause,
            "evidence_logs": [entry.to_dict() for entry in self.evidence],
            "request_timeline": [event.to_dict() for event in self.timeline],
            "services_involved": dict(self.services_involved),
            "log_levels": dict(self.log_levels),
            "total_logs": self.total_logs,
            "time_span": self.time_span.to_dict() if self.time_span else None,
            "search_method": self.search_method,
            "identifier": self.identifier,
            "confidence": analysis.confidence,
        }
        if analysis.full_analysis:
            data["full_analysis"] = analysis.full_analysis
        return data
