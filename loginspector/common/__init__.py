"""
Log Inspector Common Module

Shared infrastructure for the retriever core and its tools: configuration,
LLM access, LLM-output parsing and the vector store collaborators.
"""

from .config import InspectorConfig, load_config
from .llm_client import LLMClient
from .vector_store import InMemoryLogStore, VectorDocument, VectorRetriever

__all__ = [
    "InspectorConfig",
    "load_config",
    "LLMClient",
    "InMemoryLogStore",
    "VectorDocument",
    "VectorRetriever",
]
