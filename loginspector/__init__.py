"""
Log Inspector

Evidence retrieval and correlation for incident investigation.

Philosophy:
- Every answer is backed by log records the caller can see
- Semantic search first, deterministic keyword search when it is unavailable
- Timelines are told in chronological order, not relevance order
- Errors never escape the retrieval boundary: callers branch on `success`

Usage:
    from loginspector.common import load_config, LLMClient, InMemoryLogStore, VectorRetriever
    from loginspector.retriever import RetrievalOrchestrator, CircuitBreaker
    from loginspector.tools import build_tool_registry
"""

__version__ = "0.1.0"
