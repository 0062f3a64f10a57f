"""
Retriever - Evidence Retrieval & Correlation

Finds and correlates log evidence for identifiers and free-text queries.

Key Components:
- Searcher: Semantic and keyword candidate sourcing
- KeywordFallbackScorer / QueryKeywordScorer: Deterministic ranking
- RelevanceFilter: Thresholds, ordering and caps
- TimestampExtractor: Timestamps from metadata or raw content
- TimelineBuilder: Classified chronological events and time span
- EvidenceFormatter: Evidence bundle assembly
- EvidenceAnalyzer: LLM analysis with pattern-based fallback
- RetrievalOrchestrator: The state loop tying it together

Pipeline:
1. Semantic search (keyword scan when the circuit breaker is open or it fails)
2. Filter and order candidates
3. Build timeline, histograms and time span
4. Summarize with the LLM, or fall back to pattern analysis
"""

from .analysis import EvidenceAnalyzer
from .circuit_breaker import CircuitBreaker
from .evidence import EvidenceFormatter
from .keyword_scorer import KeywordFallbackScorer, QueryKeywordScorer
from .models import (
    Analysis,
    EventType,
    EvidenceBundle,
    EvidenceEntry,
    LogLevel,
    LogRecord,
    ScoredCandidate,
    TimelineEvent,
    TimeSpan,
)
from .orchestrator import RetrievalOrchestrator, RetrievalState
from .relevance import RelevanceFilter
from .searcher import Searcher, SearchOutcome
from .timeline import TimelineBuilder
from .timestamps import TimestampExtractor

__all__ = [
    "Analysis",
    "CircuitBreaker",
    "EventType",
    "EvidenceAnalyzer",
    "EvidenceBundle",
    "EvidenceEntry",
    "EvidenceFormatter",
    "KeywordFallbackScorer",
    "LogLevel",
    "LogRecord",
    "QueryKeywordScorer",
    "RelevanceFilter",
    "RetrievalOrchestrator",
    "RetrievalState",
    "ScoredCandidate",
    "SearchOutcome",
    "Searcher",
    "TimelineBuilder",
    "TimelineEvent",
    "TimeSpan",
    "TimestampExtractor",
]
