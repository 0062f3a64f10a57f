"""
Evidence Analyzer

LLM-based explanation of evidence, with pattern-based fallback.

Model output is a best-effort convention: ``Summary:``, ``Root Cause:`` and
``Confidence:`` markers, or a JSON object with the same keys. Anything the
model path cannot deliver (no client, an exception, empty or unparsable
text) is recovered by deterministic heuristics over the evidence itself.
"""

import logging
import re
from collections import Counter
from typing import Any, List, Optional, Sequence, Tuple

from ..common.llm_utils import parse_analysis_markers
from .models import Analysis, LogLevel, LogRecord

logger = logging.getLogger("loginspector.retriever.analysis")


TRACE_ANALYSIS_PROMPT = """Analyze this request lifecycle trace for identifier '{identifier}'. Focus on:

1. What was this request trying to accomplish?
2. Did it succeed or fail? If failed, what was the root cause?
3. Which services were involved and how did they interact?
4. What was the timeline of key events?
5. Any performance issues or bottlenecks?

Log entries (chronological order):
{logs}

Provide a structured analysis. Start with these three lines:
Summary: <one sentence>
Root Cause: <one sentence, or "None" if the request succeeded>
Confidence: <High, Medium or Low>"""


SEARCH_REASON_PROMPT = """Analyze these log entries and provide a concise explanation of what caused the error or issue. Focus on the root cause, not just listing what happened:

{logs}"""


# Checked in order against the combined log text; first match wins
REASON_PATTERNS: List[Tuple["re.Pattern[str]", str]] = [
    (re.compile(r"database.*connection.*failed", re.IGNORECASE), "Database connection failure"),
    (re.compile(r"payment", re.IGNORECASE), "Payment gateway timeout"),
    (re.compile(r"timeout", re.IGNORECASE), "Request timeout occurred"),
    (re.compile(r"authentication.*failed", re.IGNORECASE), "Authentication failure"),
    (re.compile(r"permission.*denied", re.IGNORECASE), "Insufficient permissions"),
    (re.compile(r"out of memory", re.IGNORECASE), "System ran out of memory"),
    (re.compile(r"disk.*full", re.IGNORECASE), "Disk space exhausted"),
    (re.compile(r"invalid.*request", re.IGNORECASE), "Invalid request format or parameters"),
    (re.compile(r"service.*unavailable", re.IGNORECASE), "External service unavailable"),
    (re.compile(r"500.*internal.*server.*error", re.IGNORECASE), "Internal server error occurred"),
]

UNKNOWN_REASON = "Unable to determine the specific cause from the available logs."
NO_LOGS_REASON = "No relevant logs found to determine the cause."

DEFAULT_SUMMARY = "Request context analysis completed"
DEFAULT_ROOT_CAUSE = "Analysis provided in summary"
DEFAULT_CONFIDENCE = "Medium"

# Issue keywords, in tie-break order
ISSUE_KEYWORDS = {
    "timeout": ("timeout",),
    "failure": ("failed", "error"),
    "performance": ("slow", "performance"),
}

ISSUE_ROOT_CAUSES = {
    "timeout": "Request failed due to timeout issues",
    "failure": "Request failed due to processing errors",
    "performance": "Request failed due to performance issues",
}


def _content_of(result: Any) -> str:
    """Text of a text-generation result: ``{"content": ...}`` or ``.content``."""
    if isinstance(result, dict):
        content = result.get("content")
    else:
        content = getattr(result, "content", None)
    return content if isinstance(content, str) else ""


class EvidenceAnalyzer:
    """
    Explains evidence using an LLM, falling back to pattern heuristics.

    The text-generation collaborator only needs ``invoke(prompt)`` returning
    ``{"content": str}``. It is optional; without it every analysis comes
    from the fallback path.
    """

    def __init__(self, llm=None):
        self._llm = llm

    @property
    def has_llm(self) -> bool:
        if self._llm is None:
            return False
        return bool(getattr(self._llm, "is_available", True))

    def _generate(self, prompt: str) -> str:
        return _content_of(self._llm.invoke(prompt)).strip()

    # ------------------------------------------------------------------
    # Identifier traces
    # ------------------------------------------------------------------

    def summarize_trace(self, identifier: str, records: Sequence[LogRecord]) -> Optional[Analysis]:
        """
        Ask the model to analyze a request trace.

        Returns:
            Analysis generated by the model, or None when the model is
            unavailable, fails, or answers with nothing parsable
        """
        if not records or not self.has_llm:
            return None

        prompt = TRACE_ANALYSIS_PROMPT.format(
            identifier=identifier,
            logs="\n".join(r.content for r in records),
        )

        try:
            raw = self._generate(prompt)
        except Exception as e:
            logger.warning("Trace summarization failed: %s", e)
            return None

        parsed = parse_analysis_markers(raw)
        if not parsed:
            logger.warning("Trace summarization returned no usable analysis")
            return None

        return Analysis(
            summary=parsed.get("summary", DEFAULT_SUMMARY),
            root_cause=parsed.get("root_cause", DEFAULT_ROOT_CAUSE),
            confidence=parsed.get("confidence", DEFAULT_CONFIDENCE),
            full_analysis=raw,
            generated_by="llm",
        )

    def pattern_fallback(self, records: Sequence[LogRecord]) -> Analysis:
        """Derive summary, root cause and confidence from the evidence alone."""
        if not records:
            return Analysis(
                summary="No request context found",
                root_cause="Unable to locate any logs for the provided identifier",
                confidence="Low",
            )

        error_count = sum(1 for r in records if r.level.is_error)
        warning_count = sum(1 for r in records if r.level == LogLevel.WARNING)

        issues: Counter = Counter()
        for record in records:
            content = record.content.lower()
            for issue, keywords in ISSUE_KEYWORDS.items():
                if any(k in content for k in keywords):
                    issues[issue] += 1

        summary = f"Request trace contains {len(records)} log entries"

        if error_count > 0:
            return Analysis(
                summary=f"{summary} with {error_count} errors",
                root_cause=self._dominant_issue_cause(issues),
                confidence="High",
            )

        if warning_count > 0:
            return Analysis(
                summary=f"{summary} with {warning_count} warnings",
                root_cause="Request completed with warnings",
                confidence="Medium",
            )

        return Analysis(
            summary=f"{summary} - appears successful",
            root_cause="Request processed successfully",
            confidence="High",
        )

    @staticmethod
    def _dominant_issue_cause(issues: Counter) -> str:
        best = None
        for issue in ISSUE_KEYWORDS:  # dict order is the tie-break order
            if issues[issue] > 0 and (best is None or issues[issue] > issues[best]):
                best = issue
        if best is None:
            return "Request encountered errors during processing"
        return ISSUE_ROOT_CAUSES[best]

    # ------------------------------------------------------------------
    # Free-text log search
    # ------------------------------------------------------------------

    def summarize_search(self, contents: Sequence[str]) -> Optional[str]:
        """Model explanation of search hits, or None when it cannot be had."""
        if not contents or not self.has_llm:
            return None

        try:
            reason = self._generate(SEARCH_REASON_PROMPT.format(logs="\n".join(contents)))
        except Exception as e:
            logger.warning("Search explanation failed: %s", e)
            return None

        if not reason:
            logger.warning("Search explanation was empty")
            return None
        return reason

    def explain(self, contents: Sequence[str]) -> str:
        """Concise root-cause explanation for a set of log lines."""
        if not contents:
            return NO_LOGS_REASON
        return self.summarize_search(contents) or self.reason_from_patterns("\n".join(contents))

    @staticmethod
    def reason_from_patterns(logs: str) -> str:
        for pattern, reason in REASON_PATTERNS:
            if pattern.search(logs or ""):
                return reason
        return UNKNOWN_REASON
