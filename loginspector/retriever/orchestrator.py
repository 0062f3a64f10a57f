"""
Retrieval Orchestrator

Top-level controller for identifier traces and free-text log search.

Both operations run the same explicit state loop:

    ATTEMPT_SEMANTIC -> ATTEMPT_KEYWORD -> SUMMARIZE -> PATTERN_FALLBACK -> DONE

with NO_RESULTS and FAILED as the other terminal states. Semantic search is
skipped while the shared circuit breaker is open; a semantic exception or an
empty semantic answer trips it. Every path returns a plain dict with a
``success`` flag. Nothing raises past this module.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..common.config import RetrievalConfig
from .analysis import EvidenceAnalyzer
from .circuit_breaker import CircuitBreaker
from .evidence import EvidenceFormatter
from .models import Analysis, LogRecord, ScoredCandidate
from .relevance import RelevanceFilter
from .searcher import SearchOutcome, Searcher

logger = logging.getLogger("loginspector.retriever.orchestrator")


class RetrievalState(str, Enum):
    """States of one retrieval run"""
    ATTEMPT_SEMANTIC = "attempt_semantic"
    ATTEMPT_KEYWORD = "attempt_keyword"
    SUMMARIZE = "summarize"
    PATTERN_FALLBACK = "pattern_fallback"
    NO_RESULTS = "no_results"
    FAILED = "failed"
    DONE = "done"


TERMINAL_STATES = frozenset({RetrievalState.NO_RESULTS, RetrievalState.FAILED, RetrievalState.DONE})

# search_method values
VECTOR_BASED = "vector-based"
SEMANTIC = "semantic"
KEYWORD_BASED = "keyword-based"
KEYWORD_FALLBACK = "keyword-based (fallback)"

# breaker reason when semantic search answers with nothing usable
NO_SEMANTIC_RESULTS = "semantic search returned no relevant results"

IDENTIFIER_EXAMPLES = [
    "req_12345",
    "trace-abc-def-123",
    "session_xyz789",
    "order-uuid-456",
    "user-session-789",
]

QUERY_EXAMPLES = [
    "payment errors",
    "database timeouts",
    "security threats",
    "application exceptions",
]

NO_RESULTS_SUGGESTIONS = [
    "Check if the identifier format is correct",
    "Verify logs have been properly ingested",
    "Try searching for partial identifiers",
    "Check if the request occurred within the indexed time range",
]


@dataclass
class RetrievalRun:
    """Mutable state carried through one pass of the state loop"""
    subject: str  # identifier or query
    candidates: List[ScoredCandidate] = field(default_factory=list)
    search_method: str = "none"
    fell_back: bool = False  # semantic attempted and abandoned during this run
    semantic_error: Optional[str] = None
    fallback_error: Optional[str] = None
    analysis: Optional[Analysis] = None
    reason: Optional[str] = None

    @property
    def records(self) -> List[LogRecord]:
        return [c.record for c in self.candidates]

    @property
    def keyword_method(self) -> str:
        return KEYWORD_FALLBACK if self.fell_back else KEYWORD_BASED


Step = Callable[[RetrievalRun], RetrievalState]


class RetrievalOrchestrator:
    """
    Runs identifier traces and free-text searches.

    The circuit breaker is shared by reference; pass the same instance to
    every orchestrator that talks to the same semantic collaborator.
    """

    def __init__(
        self,
        searcher: Searcher,
        analyzer: Optional[EvidenceAnalyzer] = None,
        breaker: Optional[CircuitBreaker] = None,
        config: Optional[RetrievalConfig] = None,
        relevance: Optional[RelevanceFilter] = None,
        formatter: Optional[EvidenceFormatter] = None,
    ):
        self._searcher = searcher
        self._analyzer = analyzer or EvidenceAnalyzer()
        self._breaker = breaker or CircuitBreaker()
        self._config = config or RetrievalConfig()
        self._relevance = relevance or RelevanceFilter()
        self._formatter = formatter or EvidenceFormatter()

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    # ------------------------------------------------------------------
    # State loop
    # ------------------------------------------------------------------

    def _run(self, run: RetrievalRun, steps: Dict[RetrievalState, Step]) -> RetrievalState:
        state = RetrievalState.ATTEMPT_SEMANTIC if self._breaker.available else RetrievalState.ATTEMPT_KEYWORD
        while state not in TERMINAL_STATES:
            next_state = steps[state](run)
            logger.info("'%s': %s -> %s", run.subject, state.value, next_state.value)
            state = next_state
        return state

    def _semantic_failed(self, run: RetrievalRun, outcome: SearchOutcome) -> RetrievalState:
        run.semantic_error = outcome.error
        run.fell_back = True
        self._breaker.trip(outcome.error or "semantic search failed")
        return RetrievalState.ATTEMPT_KEYWORD

    def _semantic_empty(self, run: RetrievalRun) -> RetrievalState:
        run.fell_back = True
        self._breaker.trip(NO_SEMANTIC_RESULTS)
        return RetrievalState.ATTEMPT_KEYWORD

    # ------------------------------------------------------------------
    # Identifier trace
    # ------------------------------------------------------------------

    def trace(self, identifier: Optional[str]) -> Dict[str, Any]:
        """
        Collect and correlate every log line that mentions an identifier.

        Args:
            identifier: request_id, trace_id, session_id, ...

        Returns:
            Evidence bundle dict on success; input-error, no-results or
            failure dicts otherwise (all with ``success``)
        """
        identifier = (identifier or "").strip()
        if not identifier:
            return self._trace_input_error()

        run = RetrievalRun(subject=identifier)
        try:
            final = self._run(run, {
                RetrievalState.ATTEMPT_SEMANTIC: self._trace_semantic,
                RetrievalState.ATTEMPT_KEYWORD: self._trace_keyword,
                RetrievalState.SUMMARIZE: self._trace_summarize,
                RetrievalState.PATTERN_FALLBACK: self._trace_pattern_fallback,
            })
            if final == RetrievalState.NO_RESULTS:
                return self._trace_no_results(run)
            if final == RetrievalState.FAILED:
                return self._trace_failure(run)
            return self._formatter.build(
                identifier, run.candidates, run.search_method, run.analysis
            ).to_dict()
        except Exception as e:
            logger.error("Request context trace for '%s' failed: %s", identifier, e, exc_info=True)
            run.fallback_error = run.fallback_error or str(e)
            return self._trace_failure(run)

    def _trace_semantic(self, run: RetrievalRun) -> RetrievalState:
        outcome = self._searcher.semantic_trace(run.subject)
        if not outcome.ok:
            return self._semantic_failed(run, outcome)

        kept = self._relevance.filter(
            outcome.candidates,
            self._config.relevance_threshold,
            self._config.request_max_results,
        )
        if not kept:
            return self._semantic_empty(run)

        run.candidates = kept
        run.search_method = VECTOR_BASED
        return RetrievalState.SUMMARIZE

    def _trace_keyword(self, run: RetrievalRun) -> RetrievalState:
        run.search_method = run.keyword_method
        outcome = self._searcher.keyword_trace(run.subject)
        if not outcome.ok:
            run.fallback_error = outcome.error
            logger.error("All search paths failed for '%s': %s", run.subject, outcome.error)
            return RetrievalState.FAILED

        run.candidates = self._relevance.filter(
            outcome.candidates,
            self._config.relevance_threshold,
            self._config.request_max_results,
        )
        return RetrievalState.SUMMARIZE if run.candidates else RetrievalState.NO_RESULTS

    def _trace_summarize(self, run: RetrievalRun) -> RetrievalState:
        run.analysis = self._analyzer.summarize_trace(run.subject, run.records)
        return RetrievalState.DONE if run.analysis else RetrievalState.PATTERN_FALLBACK

    def _trace_pattern_fallback(self, run: RetrievalRun) -> RetrievalState:
        run.analysis = self._analyzer.pattern_fallback(run.records)
        return RetrievalState.DONE

    @staticmethod
    def _trace_input_error() -> Dict[str, Any]:
        return {
            "success": False,
            "message": "Request identifier is required. Please provide a request_id, trace_id, or session_id to track.",
            "logs": [],
            "evidence_logs": [],
            "examples": list(IDENTIFIER_EXAMPLES),
            "search_method": "none",
        }

    @staticmethod
    def _trace_no_results(run: RetrievalRun) -> Dict[str, Any]:
        return {
            "success": False,
            "reason": f"No logs found containing identifier '{run.subject}' using {run.search_method} search.",
            "evidence_logs": [],
            "search_method": run.search_method,
            "identifier": run.subject,
            "suggestions": list(NO_RESULTS_SUGGESTIONS),
        }

    def _trace_failure(self, run: RetrievalRun) -> Dict[str, Any]:
        semantic_error = run.semantic_error or self._breaker.last_error
        if semantic_error:
            message = (
                f"Request context search failed: {semantic_error} "
                f"(Fallback also failed: {run.fallback_error})"
            )
        else:
            message = f"Request context search failed: {run.fallback_error}"
        return {
            "success": False,
            "message": message,
            "logs": [],
            "evidence_logs": [],
            "identifier": run.subject,
            "semantic_error": semantic_error,
            "fallback_error": run.fallback_error,
        }

    # ------------------------------------------------------------------
    # Free-text search
    # ------------------------------------------------------------------

    def search(self, query: Optional[str]) -> Dict[str, Any]:
        """
        Find log entries relevant to a free-text query and explain them.

        Returns:
            Dict with ``reason``, ``evidence_logs``, ``search_method``,
            ``log_count`` and ``query`` on success
        """
        query = (query or "").strip()
        if not query:
            return self._search_input_error()

        run = RetrievalRun(subject=query)
        try:
            final = self._run(run, {
                RetrievalState.ATTEMPT_SEMANTIC: self._search_semantic,
                RetrievalState.ATTEMPT_KEYWORD: self._search_keyword,
                RetrievalState.SUMMARIZE: self._search_summarize,
                RetrievalState.PATTERN_FALLBACK: self._search_pattern_fallback,
            })
            if final == RetrievalState.NO_RESULTS:
                return self._search_no_results(run)
            if final == RetrievalState.FAILED:
                return self._search_failure(run)
            entries = self._formatter.entries(run.candidates)
            return {
                "success": True,
                "reason": run.reason,
                "evidence_logs": [e.to_dict(with_order=False) for e in entries],
                "search_method": run.search_method,
                "log_count": len(entries),
                "query": query,
            }
        except Exception as e:
            logger.error("Log search for '%s' failed: %s", query, e, exc_info=True)
            run.fallback_error = run.fallback_error or str(e)
            return self._search_failure(run)

    def _search_semantic(self, run: RetrievalRun) -> RetrievalState:
        outcome = self._searcher.semantic_search(run.subject)
        if not outcome.ok:
            return self._semantic_failed(run, outcome)

        kept = self._relevance.keep(
            outcome.candidates,
            self._config.relevance_threshold,
            self._config.search_max_results,
        )
        if not kept:
            return self._semantic_empty(run)

        run.candidates = kept
        run.search_method = SEMANTIC
        return RetrievalState.SUMMARIZE

    def _search_keyword(self, run: RetrievalRun) -> RetrievalState:
        run.search_method = run.keyword_method
        outcome = self._searcher.keyword_search(run.subject)
        if not outcome.ok:
            run.fallback_error = outcome.error
            logger.error("All search paths failed for '%s': %s", run.subject, outcome.error)
            return RetrievalState.FAILED

        run.candidates = self._relevance.rank(
            outcome.candidates,
            self._config.search_min_score,
            self._config.search_max_results,
        )
        return RetrievalState.SUMMARIZE if run.candidates else RetrievalState.NO_RESULTS

    def _search_summarize(self, run: RetrievalRun) -> RetrievalState:
        run.reason = self._analyzer.summarize_search([r.content for r in run.records])
        return RetrievalState.DONE if run.reason else RetrievalState.PATTERN_FALLBACK

    def _search_pattern_fallback(self, run: RetrievalRun) -> RetrievalState:
        run.reason = self._analyzer.reason_from_patterns("\n".join(r.content for r in run.records))
        return RetrievalState.DONE

    @staticmethod
    def _search_input_error() -> Dict[str, Any]:
        return {
            "success": False,
            "message": (
                "Query parameter is required and cannot be empty. "
                "Please provide a search term to find relevant log entries."
            ),
            "logs": [],
            "evidence_logs": [],
            "examples": list(QUERY_EXAMPLES),
            "search_method": "none",
        }

    @staticmethod
    def _search_no_results(run: RetrievalRun) -> Dict[str, Any]:
        return {
            "success": False,
            "reason": (
                f"No relevant log entries found matching your query using {run.search_method} search. "
                "Try different keywords or check if the logs have been loaded correctly."
            ),
            "evidence_logs": [],
            "search_method": run.search_method,
            "query": run.subject,
        }

    def _search_failure(self, run: RetrievalRun) -> Dict[str, Any]:
        semantic_error = run.semantic_error or self._breaker.last_error
        return {
            "success": False,
            "message": f"Search failed: {semantic_error or run.fallback_error}",
            "logs": [],
            "evidence_logs": [],
            "query": run.subject,
            "semantic_error": semantic_error,
            "fallback_error": run.fallback_error,
        }
