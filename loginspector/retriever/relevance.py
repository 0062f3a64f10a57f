"""
Relevance Filter

Thresholds and caps a scored candidate list.

Orderings offered:
- filter(): chronological, for identifier traces (storytelling order)
- keep(): retriever order, for semantic log search
- rank(): score-descending, for keyword log search
"""

from typing import List

from .models import ScoredCandidate


class RelevanceFilter:
    """
    Drops weak candidates and orders the survivors.

    A candidate is weak when its score is below ``min_score`` or, when a
    vector distance is known, the distance exceeds ``1 - min_score``.
    """

    def is_relevant(self, candidate: ScoredCandidate, min_score: float) -> bool:
        if candidate.score < min_score:
            return False
        if candidate.distance is not None and candidate.distance > 1.0 - min_score:
            return False
        return True

    def filter(
        self,
        candidates: List[ScoredCandidate],
        min_score: float,
        max_results: int,
    ) -> List[ScoredCandidate]:
        """
        Keep relevant candidates in ascending timestamp order.

        Unknown timestamps sort first and ties keep their input order. The
        cut to ``max_results`` happens after ordering, so the earliest events
        survive rather than the highest scored ones.
        """
        survivors = [c for c in candidates if self.is_relevant(c, min_score)]
        # list.sort is stable: equal timestamps keep candidate order
        survivors.sort(key=lambda c: c.record.sort_key)
        return survivors[:max(max_results, 0)]

    def keep(
        self,
        candidates: List[ScoredCandidate],
        min_score: float,
        max_results: int,
    ) -> List[ScoredCandidate]:
        """Keep relevant candidates in the order the retriever returned them."""
        survivors = [c for c in candidates if self.is_relevant(c, min_score)]
        return survivors[:max(max_results, 0)]

    def rank(
        self,
        candidates: List[ScoredCandidate],
        min_score: float,
        max_results: int,
    ) -> List[ScoredCandidate]:
        """Keep relevant candidates, best score first."""
        survivors = [c for c in candidates if self.is_relevant(c, min_score)]
        survivors.sort(key=lambda c: c.score, reverse=True)
        return survivors[:max(max_results, 0)]
