"""
Vector Store

In-memory log vector store and the semantic retriever built on top of it.

The store ranks documents by cosine distance (1 - cosine similarity, so
0.0 is identical and 2.0 is opposite). Embedding generation stays with an
external embedder; the retriever only needs ``embed_single(text)``.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Protocol

import numpy as np

logger = logging.getLogger("loginspector.common.vector_store")

NEUTRAL_VALUE = 0.5
PROBE_DIMENSION = 5
COMMON_DIMENSIONS = (1536, 768, 384)


@dataclass
class VectorDocument:
    """A stored log document with its embedding and metadata"""
    id: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    vector: Optional[List[float]] = None
    score: Optional[float] = None  # distance; lower = closer

    def with_score(self, score: Optional[float]) -> "VectorDocument":
        return replace(self, score=score)


class Embedder(Protocol):
    def embed_single(self, text: str) -> List[float]:
        ...


class InMemoryLogStore:
    """
    Flat in-memory vector index for log documents.

    Documents are held in insertion order; queries compute the cosine
    distance against every stored vector with a single matrix product.
    """

    def __init__(self, documents: Optional[Iterable[VectorDocument]] = None):
        self._documents: List[VectorDocument] = []
        self._matrix: Optional[np.ndarray] = None
        if documents:
            self.add(documents)

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def dimension(self) -> Optional[int]:
        """Vector dimension of the stored documents (None while empty)"""
        if self._matrix is None:
            return None
        return int(self._matrix.shape[1])

    def add(self, documents: Iterable[VectorDocument]) -> None:
        """
        Add documents to the store.

        Raises:
            ValueError: if a document has no vector or its dimension differs
                from the vectors already stored
        """
        rows = []
        for doc in documents:
            if doc.vector is None:
                raise ValueError(f"Document {doc.id} has no vector")
            rows.append((doc, np.asarray(doc.vector, dtype=float)))

        if not rows:
            return

        new_matrix = np.vstack([vec for _, vec in rows])
        if self._matrix is not None and new_matrix.shape[1] != self._matrix.shape[1]:
            raise ValueError(
                f"Vector dimension mismatch: {new_matrix.shape[1]} vs {self._matrix.shape[1]}"
            )

        self._documents.extend(doc for doc, _ in rows)
        self._matrix = new_matrix if self._matrix is None else np.vstack([self._matrix, new_matrix])

    def add_log(
        self,
        content: str,
        vector: List[float],
        log_id: Optional[str] = None,
        **metadata: Any,
    ) -> VectorDocument:
        """Convenience wrapper: store one raw log line with its metadata."""
        doc_id = str(uuid.uuid4())
        meta = {"content": content, "log_id": log_id or doc_id}
        meta.update(metadata)
        doc = VectorDocument(id=doc_id, metadata=meta, vector=list(vector))
        self.add([doc])
        return doc

    def query_for_vector(self, vector: List[float], max_items: int = 10) -> List[VectorDocument]:
        """
        Return up to ``max_items`` documents ordered by ascending cosine distance.

        Raises:
            ValueError: on dimension mismatch with the stored vectors
        """
        if self._matrix is None or max_items <= 0:
            return []

        query = np.asarray(vector, dtype=float)
        if query.shape != (self._matrix.shape[1],):
            raise ValueError(
                f"Vector dimension mismatch: {query.shape[0] if query.ndim else 0} vs {self._matrix.shape[1]}"
            )

        norms = np.linalg.norm(self._matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            similarities = np.where(norms > 0, self._matrix @ query / norms, 0.0)
        distances = 1.0 - np.clip(similarities, -1.0, 1.0)

        # Stable sort keeps insertion order between equal distances
        order = np.argsort(distances, kind="stable")[:max_items]
        return [self._documents[i].with_score(float(distances[i])) for i in order]


class VectorRetriever:
    """
    Semantic search collaborator: embed the query, then query the store.
    """

    def __init__(self, embedder: Embedder, store: InMemoryLogStore):
        self._embedder = embedder
        self._store = store

    def retrieve(self, query: str, max_items: int = 10) -> List[VectorDocument]:
        """Return documents nearest to ``query``; embedder/store errors propagate."""
        query_vector = self._embedder.embed_single(query)
        return self._store.query_for_vector(query_vector, max_items=max_items)


def neutral_vector(dimension: int) -> List[float]:
    """Uniform vector used to enumerate an unranked superset of the store."""
    return [NEUTRAL_VALUE] * dimension


def detect_vector_dimension(store: Any) -> int:
    """
    Find the vector dimension to use for a neutral-vector scan.

    Uses ``store.dimension`` when the store exposes it. Otherwise probes with
    a small neutral vector and reads the dimension off a returned document,
    then tries common embedding sizes, and finally falls back to the probe size.
    """
    dimension = getattr(store, "dimension", None)
    if isinstance(dimension, int) and dimension > 0:
        return dimension

    try:
        for doc in store.query_for_vector(neutral_vector(PROBE_DIMENSION), max_items=1):
            if doc.vector is not None:
                return len(doc.vector)
    except Exception as e:
        logger.debug("Dimension probe failed: %s", e)
        for candidate in COMMON_DIMENSIONS:
            try:
                if list(store.query_for_vector(neutral_vector(candidate), max_items=1)):
                    return candidate
            except Exception as probe_error:
                logger.debug("Probe with dimension %d failed: %s", candidate, probe_error)

    return PROBE_DIMENSION
