"""
Keyword Scorers

Deterministic relevance scoring used when semantic search is unavailable.
These are stand-in ranking signals, not semantic relevance: results ranked
here are always reported as keyword-based.

- KeywordFallbackScorer: identifier matching (request/trace/session ids)
- QueryKeywordScorer: free-text queries against content, category, level and tags
"""

import re
from collections.abc import Iterable
from typing import Any, List, Mapping

# Structured fields whose value is an identifier, e.g. ``request_id: req_1``,
# ``trace_id=abc`` or ``"session_id": "xyz"``
FIELD_MARKER = r"(?:request_id|trace_id|session_id|transaction_id)[\"']?\s*[:=\s]\s*[\"']?"


class KeywordFallbackScorer:
    """
    Scores how strongly a log line refers to an identifier.

    Additive, capped at 1.0:
    - 0.3 per occurrence of the identifier
    - up to 0.2 for an early first occurrence
    - 0.3 for a whole-word match
    - 0.4 when the identifier is the value of a structured id field
    """

    OCCURRENCE_WEIGHT = 0.3
    POSITION_WEIGHT = 0.2
    WORD_BOUNDARY_BONUS = 0.3
    STRUCTURED_FIELD_BONUS = 0.4

    def score(self, content: str, query: str) -> float:
        if not content or not query or not query.strip():
            return 0.0

        content_lower = content.lower()
        needle = query.strip().lower()

        occurrences = content_lower.count(needle)
        if occurrences == 0:
            return 0.0

        score = occurrences * self.OCCURRENCE_WEIGHT

        relative_position = content_lower.find(needle) / len(content_lower)
        score += (1.0 - relative_position) * self.POSITION_WEIGHT

        escaped = re.escape(needle)
        if re.search(r"\b" + escaped + r"\b", content_lower):
            score += self.WORD_BOUNDARY_BONUS

        if re.search(FIELD_MARKER + escaped, content, re.IGNORECASE):
            score += self.STRUCTURED_FIELD_BONUS

        return max(0.0, min(score, 1.0))


class QueryKeywordScorer:
    """
    Scores a log document against a free-text query.

    Raw points are normalized by ``NORMALIZER`` and capped at 1.0.
    """

    NORMALIZER = 20.0

    SEMANTIC_MAP = {
        "payment": ["stripe", "paypal", "gateway", "transaction", "checkout", "billing"],
        "error": ["exception", "failure", "problem", "issue", "bug"],
        "timeout": ["slow", "delay", "hang", "freeze"],
        "database": ["db", "sql", "mysql", "postgres", "connection", "query"],
        "connection": ["connect", "link", "network", "socket"],
        "security": ["auth", "authentication", "login", "breach", "attack"],
        "attack": ["hack", "intrusion", "malicious", "threat"],
        "performance": ["slow", "fast", "speed", "optimization", "memory", "cpu"],
        "memory": ["ram", "heap", "allocation", "leak"],
    }

    def score(self, metadata: Mapping[str, Any], query: str) -> float:
        query_lower = (query or "").strip().lower()
        if not query_lower:
            return 0.0

        content = str(metadata.get("content") or "").lower()
        category = str(metadata.get("category") or "").lower()
        level = str(metadata.get("level") or "").lower()
        tags = [t.lower() for t in normalize_tags(metadata.get("tags"))]

        points = 0.0

        if query_lower in content:
            points += 10
        if category and (category in query_lower or query_lower in category):
            points += 8
        if level and level in query_lower:
            points += 5
        for tag in tags:
            if tag and (tag in query_lower or query_lower in tag):
                points += 6
        for word in query_lower.split():
            if len(word) > 2 and word in content:
                points += 2
        points += self.semantic_matches(query_lower, content) * 3

        return min(points / self.NORMALIZER, 1.0)

    def semantic_matches(self, query: str, content: str) -> int:
        """Count synonym hits in content for domain words present in the query."""
        matches = 0
        for key, synonyms in self.SEMANTIC_MAP.items():
            if key in query:
                matches += sum(1 for synonym in synonyms if synonym in content)
        return matches


def normalize_tags(raw: Any) -> List[str]:
    """Tags arrive as a list, a single string or nothing at all."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw else []
    if isinstance(raw, Iterable):
        return [str(t) for t in raw if t is not None and str(t)]
    return []
