"""Tests for candidate sourcing."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from loginspector.common.config import RetrievalConfig
from loginspector.common.vector_store import InMemoryLogStore, VectorDocument
from loginspector.retriever.models import LogLevel
from loginspector.retriever.searcher import Searcher, build_search_query


@pytest.fixture
def store():
    s = InMemoryLogStore()
    s.add_log("[2024-01-15 14:20:15] request_id=req_7 started", [1.0, 0.0], log_id="a", source="api")
    s.add_log("user bob logged in", [0.0, 1.0], log_id="b")
    s.add_log("REQ_7 finished", [0.5, 0.5], log_id="c", level="WARN", tags="edge")
    return s


class TestBuildSearchQuery:
    def test_context_terms_always_present(self):
        query = build_search_query("abc")
        assert query.startswith("abc request trace")
        assert "request debugging" in query

    def test_identifier_hints(self):
        assert "HTTP request processing" in build_search_query("req_1")
        assert "distributed tracing" in build_search_query("trace-1")
        assert "user session activity" in build_search_query("session_9")
        assert "business transaction processing" in build_search_query("order-5")
        assert "user activity tracking" in build_search_query("user-session-789")
        assert "distributed tracing" not in build_search_query("req_1")


class TestKeywordTrace:
    def test_keeps_documents_mentioning_identifier(self, store):
        outcome = Searcher(Mock(), store).keyword_trace("req_7")
        assert outcome.ok
        assert sorted(c.record.id for c in outcome.candidates) == ["a", "c"]
        assert all(0.0 < c.score <= 1.0 for c in outcome.candidates)

    def test_records_are_normalized(self, store):
        outcome = Searcher(Mock(), store).keyword_trace("req_7")
        by_id = {c.record.id: c.record for c in outcome.candidates}

        assert by_id["a"].timestamp == datetime(2024, 1, 15, 14, 20, 15, tzinfo=timezone.utc)
        assert by_id["a"].source == "api"
        assert by_id["c"].level == LogLevel.WARNING
        assert by_id["c"].tags == frozenset({"edge"})
        assert by_id["c"].source == "unknown"
        assert by_id["c"].timestamp is None

    def test_uses_scan_limit_and_neutral_vector(self):
        store = Mock(spec=["query_for_vector"])
        store.query_for_vector.return_value = []
        config = RetrievalConfig(keyword_scan_limit=123)
        Searcher(Mock(), store, config=config, neutral_dimension=4).keyword_trace("x")

        store.query_for_vector.assert_called_once_with([0.5] * 4, max_items=123)

    def test_out_of_range_timestamp_does_not_fail_trace(self):
        store = InMemoryLogStore()
        store.add_log("req_1 accepted", [1.0, 0.0], log_id="good", timestamp="2024-01-15T14:20:15Z")
        store.add_log("req_1 replayed", [0.0, 1.0], log_id="bad", timestamp="0001-01-01T00:00:00+01:00")

        outcome = Searcher(Mock(), store).keyword_trace("req_1")
        by_id = {c.record.id: c.record for c in outcome.candidates}

        assert outcome.ok
        assert set(by_id) == {"good", "bad"}
        assert by_id["bad"].timestamp is None

    def test_store_error_becomes_outcome(self):
        store = Mock(spec=["query_for_vector", "dimension"])
        store.dimension = 2
        store.query_for_vector.side_effect = RuntimeError("store offline")
        outcome = Searcher(Mock(), store).keyword_trace("x")

        assert not outcome.ok
        assert outcome.error == "store offline"
        assert outcome.candidates == []


class TestSemanticTrace:
    def test_distance_becomes_score(self):
        retriever = Mock()
        retriever.retrieve.return_value = [
            VectorDocument(id="d1", metadata={"content": "req_1 ok", "log_id": "L1"}, score=0.25),
            VectorDocument(id="d2", metadata={"content": "unrelated"}, score=0.05),
            VectorDocument(id="d3", metadata={"content": "REQ_1 again"}),
        ]
        outcome = Searcher(retriever, Mock()).semantic_trace("req_1")

        assert [c.record.id for c in outcome.candidates] == ["L1", "d3"]
        assert outcome.candidates[0].score == pytest.approx(0.75)
        assert outcome.candidates[0].distance == pytest.approx(0.25)
        assert outcome.candidates[1].score == 1.0
        assert outcome.candidates[1].distance is None

        query = retriever.retrieve.call_args.args[0]
        assert query.startswith("req_1 ")
        assert retriever.retrieve.call_args.kwargs["max_items"] == 200

    def test_retriever_error_becomes_outcome(self):
        retriever = Mock()
        retriever.retrieve.side_effect = ConnectionError("vector db unreachable")
        outcome = Searcher(retriever, Mock()).semantic_trace("req_1")
        assert outcome.error == "vector db unreachable"

    def test_blank_error_message_uses_type_name(self):
        retriever = Mock()
        retriever.retrieve.side_effect = TimeoutError()
        assert Searcher(retriever, Mock()).semantic_trace("req_1").error == "TimeoutError"


class TestFreeTextSearch:
    def test_keyword_search_scores_by_query(self, store):
        outcome = Searcher(Mock(), store).keyword_search("logged")
        assert [c.record.id for c in outcome.candidates] == ["b"]

    def test_semantic_search_uses_raw_query(self):
        retriever = Mock()
        retriever.retrieve.return_value = []
        Searcher(retriever, Mock(), config=RetrievalConfig(search_max_results=9)).semantic_search("disk full")
        retriever.retrieve.assert_called_once_with("disk full", max_items=9)
