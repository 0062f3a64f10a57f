"""
Log Inspector Tools

Model-callable tools over the retrieval core, collected into a static
registry at startup.

Usage:
    from loginspector.common import load_config, LLMClient
    from loginspector.tools import build_tool_registry

    config = load_config()
    registry = build_tool_registry(config, retriever, store, LLMClient.from_config(config.llm))
    registry.invoke("request_context", {"identifier": "req_12345"})
"""

from typing import Optional

from ..common.config import InspectorConfig
from ..retriever.analysis import EvidenceAnalyzer
from ..retriever.circuit_breaker import CircuitBreaker
from ..retriever.evidence import EvidenceFormatter
from ..retriever.orchestrator import RetrievalOrchestrator
from ..retriever.searcher import Searcher
from ..retriever.timeline import TimelineBuilder
from .base import Tool, ToolRegistry
from .log_search import LogSearchTool
from .request_context import RequestContextTool


def build_tool_registry(
    config: Optional[InspectorConfig],
    retriever,
    store,
    llm=None,
    breaker: Optional[CircuitBreaker] = None,
) -> ToolRegistry:
    """
    Build the tool registry around one shared orchestrator.

    Args:
        config: Loaded configuration (defaults when None)
        retriever: Semantic search collaborator
        store: Vector store used for keyword scans
        llm: Text-generation collaborator (optional)
        breaker: Circuit breaker to share; a fresh one when omitted

    Returns:
        ToolRegistry with ``log_search`` and ``request_context``
    """
    config = config or InspectorConfig()
    retrieval = config.retrieval

    searcher = Searcher(
        retriever,
        store,
        config=retrieval,
        neutral_dimension=config.embedding.neutral_dimension,
    )
    orchestrator = RetrievalOrchestrator(
        searcher,
        analyzer=EvidenceAnalyzer(llm),
        breaker=breaker or CircuitBreaker(),
        config=retrieval,
        formatter=EvidenceFormatter(TimelineBuilder(retrieval.description_max_length)),
    )

    registry = ToolRegistry()
    registry.register(LogSearchTool(orchestrator))
    registry.register(RequestContextTool(orchestrator))
    return registry


__all__ = [
    "Tool",
    "ToolRegistry",
    "LogSearchTool",
    "RequestContextTool",
    "build_tool_registry",
]
