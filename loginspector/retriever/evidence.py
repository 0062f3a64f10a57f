"""
Evidence Formatter

Pure aggregation of filtered candidates into an EvidenceBundle: evidence
entries numbered in chronological order, the timeline, per-service and
per-level histograms and the overall time span. No I/O.
"""

from collections import Counter
from typing import List, Optional

from .models import Analysis, EvidenceBundle, EvidenceEntry, ScoredCandidate
from .timeline import TimelineBuilder, compute_time_span

UNKNOWN_SOURCE = "unknown"


class EvidenceFormatter:
    """Assembles the evidence bundle for one identifier trace"""

    def __init__(self, timeline_builder: Optional[TimelineBuilder] = None):
        self._timeline = timeline_builder or TimelineBuilder()

    def entries(self, candidates: List[ScoredCandidate]) -> List[EvidenceEntry]:
        """Number candidates 1..N in the order given."""
        return [
            EvidenceEntry(record=c.record, chronological_order=i, score=c.score)
            for i, c in enumerate(candidates, start=1)
        ]

    def build(
        self,
        identifier: str,
        candidates: List[ScoredCandidate],
        search_method: str,
        analysis: Optional[Analysis] = None,
    ) -> EvidenceBundle:
        """
        Build the bundle from candidates already in chronological order.

        Args:
            identifier: The traced identifier
            candidates: Output of RelevanceFilter.filter
            search_method: Method that actually produced the candidates
            analysis: Summary/root cause/confidence, may be attached later

        Returns:
            EvidenceBundle whose histograms each sum to the evidence count,
            except that services with an unknown source are not counted
        """
        records = [c.record for c in candidates]

        services = Counter(r.source for r in records if r.source and r.source != UNKNOWN_SOURCE)
        levels = Counter(r.level.value for r in records)

        return EvidenceBundle(
            identifier=identifier,
            evidence=self.entries(candidates),
            timeline=self._timeline.build(records),
            services_involved=dict(services),
            log_levels=dict(levels),
            time_span=compute_time_span(records),
            search_method=search_method,
            analysis=analysis,
        )
