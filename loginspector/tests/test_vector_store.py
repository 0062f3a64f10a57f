"""Tests for the in-memory vector store and its collaborators."""

import logging
from unittest.mock import Mock

import pytest

from loginspector.common.vector_store import (
    InMemoryLogStore,
    VectorDocument,
    VectorRetriever,
    detect_vector_dimension,
    neutral_vector,
)


@pytest.fixture
def store():
    s = InMemoryLogStore()
    s.add_log("payment failed", [1.0, 0.0, 0.0], log_id="a", level="error")
    s.add_log("user logged in", [0.0, 1.0, 0.0], log_id="b")
    s.add_log("payment retried", [0.8, 0.2, 0.0], log_id="c")
    return s


class TestInMemoryLogStore:
    def test_add_log_sets_metadata(self, store):
        assert len(store) == 3
        assert store.dimension == 3

    def test_query_orders_by_cosine_distance(self, store):
        results = store.query_for_vector([1.0, 0.0, 0.0], max_items=3)
        assert [d.metadata["log_id"] for d in results] == ["a", "c", "b"]
        assert results[0].score == pytest.approx(0.0)
        assert results[2].score == pytest.approx(1.0)

    def test_query_respects_max_items(self, store):
        assert len(store.query_for_vector([1.0, 0.0, 0.0], max_items=1)) == 1

    def test_query_dimension_mismatch_raises(self, store):
        with pytest.raises(ValueError, match="dimension"):
            store.query_for_vector([1.0, 0.0], max_items=1)

    def test_add_dimension_mismatch_raises(self, store):
        with pytest.raises(ValueError, match="dimension"):
            store.add([VectorDocument(id="x", vector=[1.0, 2.0])])

    def test_add_without_vector_raises(self):
        with pytest.raises(ValueError, match="no vector"):
            InMemoryLogStore().add([VectorDocument(id="x")])

    def test_empty_store_returns_nothing(self):
        empty = InMemoryLogStore()
        assert empty.dimension is None
        assert empty.query_for_vector([0.5] * 5) == []

    def test_query_does_not_mutate_stored_documents(self):
        s = InMemoryLogStore()
        doc = s.add_log("disk full", [0.0, 1.0])
        result = s.query_for_vector([0.0, 1.0])[0]
        assert result.id == doc.id
        assert result.score == pytest.approx(0.0)
        assert doc.score is None


class TestVectorRetriever:
    def test_embeds_then_queries(self, store):
        embedder = Mock()
        embedder.embed_single.return_value = [0.0, 1.0, 0.0]
        results = VectorRetriever(embedder, store).retrieve("login", max_items=1)

        embedder.embed_single.assert_called_once_with("login")
        assert results[0].metadata["log_id"] == "b"

    def test_embedder_errors_propagate(self, store):
        embedder = Mock()
        embedder.embed_single.side_effect = RuntimeError("embedding service down")
        with pytest.raises(RuntimeError, match="embedding service down"):
            VectorRetriever(embedder, store).retrieve("login")


class TestDimensionDetection:
    def test_neutral_vector(self):
        assert neutral_vector(3) == [0.5, 0.5, 0.5]

    def test_uses_store_dimension(self, store):
        assert detect_vector_dimension(store) == 3

    def test_probe_reads_returned_vector(self):
        probe_store = Mock(spec=["query_for_vector"])
        probe_store.query_for_vector.return_value = [VectorDocument(id="x", vector=[0.1] * 7)]
        assert detect_vector_dimension(probe_store) == 7

    def test_probe_failure_tries_common_sizes(self, caplog):
        def query(vector, max_items=1):
            if len(vector) != 768:
                raise ValueError("dimension mismatch")
            return [VectorDocument(id="x")]

        probe_store = Mock(spec=["query_for_vector"])
        probe_store.query_for_vector.side_effect = query
        with caplog.at_level(logging.DEBUG, logger="loginspector.common.vector_store"):
            assert detect_vector_dimension(probe_store) == 768
        assert "Dimension probe failed" in caplog.text

    def test_falls_back_to_probe_size(self):
        probe_store = Mock(spec=["query_for_vector"])
        probe_store.query_for_vector.side_effect = ValueError("nope")
        assert detect_vector_dimension(probe_store) == 5
