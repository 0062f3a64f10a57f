"""
Searcher

Sources candidate log records for the orchestrator.

Two paths:
- Semantic: the vector retriever ranks documents against the query
- Keyword: a neutral-vector scan enumerates the store, then deterministic
  scorers rank the documents

Collaborator exceptions stop here. Each call returns a SearchOutcome that
either carries candidates or the error message, never both.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..common.config import RetrievalConfig
from ..common.vector_store import VectorDocument, detect_vector_dimension, neutral_vector
from .keyword_scorer import KeywordFallbackScorer, QueryKeywordScorer, normalize_tags
from .models import LogLevel, LogRecord, ScoredCandidate
from .timestamps import TimestampExtractor

logger = logging.getLogger("loginspector.retriever.searcher")


CONTEXT_TERMS = [
    "request trace",
    "request lifecycle",
    "transaction flow",
    "request processing",
    "request context",
    "trace logs",
    "request debugging",
]

# (substrings of the identifier, extra context for the semantic query)
IDENTIFIER_HINTS = [
    (("req", "request"), "HTTP request processing"),
    (("trace",), "distributed tracing"),
    (("session",), "user session activity"),
    (("order", "transaction"), "business transaction processing"),
    (("user",), "user activity tracking"),
]


def build_search_query(identifier: str) -> str:
    """Expand an identifier with request-tracing context for semantic search."""
    lowered = identifier.lower()
    hints = [hint for needles, hint in IDENTIFIER_HINTS if any(n in lowered for n in needles)]
    return " ".join([identifier] + CONTEXT_TERMS + hints)


@dataclass
class SearchOutcome:
    """Result of one search path: candidates, or the reason it failed"""
    candidates: List[ScoredCandidate] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: Exception) -> "SearchOutcome":
        return cls(candidates=[], error=str(error) or type(error).__name__)


class Searcher:
    """
    Finds candidate records for identifier traces and free-text queries.

    Candidates are returned unfiltered; thresholds and ordering belong to
    the RelevanceFilter.
    """

    def __init__(
        self,
        retriever,
        store,
        config: Optional[RetrievalConfig] = None,
        extractor: Optional[TimestampExtractor] = None,
        neutral_dimension: int = 0,
    ):
        """
        Initialize searcher.

        Args:
            retriever: Semantic search collaborator exposing
                ``retrieve(query, max_items=...)``
            store: Vector store exposing ``query_for_vector(vector, max_items=...)``
            config: Fetch limits (defaults when omitted)
            extractor: Timestamp resolution for records
            neutral_dimension: Neutral-vector size for keyword scans (0 = detect)
        """
        self._retriever = retriever
        self._store = store
        self._config = config or RetrievalConfig()
        self._extractor = extractor or TimestampExtractor()
        self._neutral_dimension = neutral_dimension
        self._identifier_scorer = KeywordFallbackScorer()
        self._query_scorer = QueryKeywordScorer()

    # ------------------------------------------------------------------
    # Identifier traces
    # ------------------------------------------------------------------

    def semantic_trace(self, identifier: str) -> SearchOutcome:
        """Semantic candidates that literally mention the identifier."""
        try:
            documents = self._retriever.retrieve(
                build_search_query(identifier),
                max_items=self._config.semantic_fetch_limit,
            )
            candidates = [
                self._from_distance(doc)
                for doc in documents
                if self._mentions(doc, identifier)
            ]
        except Exception as e:
            logger.warning("Semantic trace for '%s' failed: %s", identifier, e)
            return SearchOutcome.failed(e)

        logger.debug("Semantic trace for '%s': %d candidates", identifier, len(candidates))
        return SearchOutcome(candidates=candidates)

    def keyword_trace(self, identifier: str) -> SearchOutcome:
        """Scan the store and score every document mentioning the identifier."""
        try:
            documents = self._scan(self._config.keyword_scan_limit)
            candidates = []
            for doc in documents:
                if not self._mentions(doc, identifier):
                    continue
                record = self._to_record(doc)
                candidates.append(ScoredCandidate(
                    record=record,
                    score=self._identifier_scorer.score(record.content, identifier),
                ))
        except Exception as e:
            logger.warning("Keyword trace for '%s' failed: %s", identifier, e)
            return SearchOutcome.failed(e)

        logger.debug("Keyword trace for '%s': %d candidates", identifier, len(candidates))
        return SearchOutcome(candidates=candidates)

    # ------------------------------------------------------------------
    # Free-text search
    # ------------------------------------------------------------------

    def semantic_search(self, query: str) -> SearchOutcome:
        try:
            documents = self._retriever.retrieve(query, max_items=self._config.search_max_results)
            candidates = [self._from_distance(doc) for doc in documents]
        except Exception as e:
            logger.warning("Semantic search for '%s' failed: %s", query, e)
            return SearchOutcome.failed(e)
        return SearchOutcome(candidates=candidates)

    def keyword_search(self, query: str) -> SearchOutcome:
        try:
            candidates = []
            for doc in self._scan(self._config.search_scan_limit):
                score = self._query_scorer.score(doc.metadata or {}, query)
                if score > 0:
                    candidates.append(ScoredCandidate(record=self._to_record(doc), score=score))
        except Exception as e:
            logger.warning("Keyword search for '%s' failed: %s", query, e)
            return SearchOutcome.failed(e)
        return SearchOutcome(candidates=candidates)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _scan(self, max_items: int) -> List[VectorDocument]:
        """Enumerate an unranked superset of the store with a neutral vector."""
        dimension = self._neutral_dimension or detect_vector_dimension(self._store)
        return list(self._store.query_for_vector(neutral_vector(dimension), max_items=max_items))

    @staticmethod
    def _mentions(doc: VectorDocument, identifier: str) -> bool:
        content = str((doc.metadata or {}).get("content") or "")
        return identifier.lower() in content.lower()

    def _from_distance(self, doc: VectorDocument) -> ScoredCandidate:
        """Semantic candidate: distance as reported, similarity as score."""
        distance = doc.score
        score = 1.0 if distance is None else 1.0 - float(distance)
        return ScoredCandidate(
            record=self._to_record(doc),
            score=score,
            distance=None if distance is None else float(distance),
        )

    def _to_record(self, doc: VectorDocument) -> LogRecord:
        """Convert a stored document to a LogRecord"""
        metadata: dict = doc.metadata or {}
        content = str(metadata.get("content") or "No content available")
        category: Any = metadata.get("category")

        return LogRecord(
            id=str(metadata.get("log_id") or doc.id),
            content=content,
            timestamp=self._extractor.extract(metadata, content),
            level=LogLevel.normalize(metadata.get("level")),
            source=str(metadata.get("source") or "unknown"),
            tags=frozenset(normalize_tags(metadata.get("tags"))),
            category=str(category) if category else None,
        )
