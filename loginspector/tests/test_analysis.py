"""Tests for EvidenceAnalyzer: LLM summaries and pattern fallback."""

import logging
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from loginspector.retriever.analysis import (
    NO_LOGS_REASON,
    UNKNOWN_REASON,
    EvidenceAnalyzer,
)
from loginspector.retriever.models import LogLevel, LogRecord


def rec(content, level=LogLevel.INFO):
    return LogRecord(id=content[:10], content=content, level=level)


def llm_returning(text):
    llm = Mock()
    llm.invoke.return_value = {"content": text}
    return llm


class TestPatternFallback:
    @pytest.fixture
    def analyzer(self):
        return EvidenceAnalyzer()

    def test_error_level_gives_high_confidence(self, analyzer):
        result = analyzer.pattern_fallback([rec("Checkout started"), rec("Card declined", LogLevel.ERROR)])
        assert result.confidence == "High"
        assert result.summary == "Request trace contains 2 log entries with 1 errors"
        assert result.generated_by == "pattern"

    def test_critical_counts_as_error(self, analyzer):
        result = analyzer.pattern_fallback([rec("Kernel panic", LogLevel.CRITICAL)])
        assert result.confidence == "High"
        assert "with 1 errors" in result.summary

    def test_errors_without_issue_keywords(self, analyzer):
        result = analyzer.pattern_fallback([rec("Card declined", LogLevel.ERROR)])
        assert result.root_cause == "Request encountered errors during processing"

    def test_most_frequent_issue_wins(self, analyzer):
        records = [
            rec("Upstream timeout", LogLevel.ERROR),
            rec("Slow query detected"),
            rec("Slow response from inventory"),
        ]
        result = analyzer.pattern_fallback(records)
        assert result.root_cause == "Request failed due to performance issues"

    def test_ties_prefer_timeout_then_failure(self, analyzer):
        records = [rec("Gateway timeout", LogLevel.ERROR), rec("Charge failed", LogLevel.ERROR)]
        assert analyzer.pattern_fallback(records).root_cause == "Request failed due to timeout issues"

        records = [rec("Charge failed", LogLevel.ERROR), rec("Slow response")]
        assert analyzer.pattern_fallback(records).root_cause == "Request failed due to processing errors"

    def test_warnings_only(self, analyzer):
        result = analyzer.pattern_fallback([rec("Retry budget low", LogLevel.WARNING), rec("Done")])
        assert result.confidence == "Medium"
        assert result.root_cause == "Request completed with warnings"
        assert result.summary.endswith("with 1 warnings")

    def test_clean_trace_is_successful(self, analyzer):
        result = analyzer.pattern_fallback([rec("Order created"), rec("Order shipped")])
        assert result.confidence == "High"
        assert result.root_cause == "Request processed successfully"
        assert result.summary.endswith("appears successful")

    def test_no_records(self, analyzer):
        assert analyzer.pattern_fallback([]).confidence == "Low"


class TestSummarizeTrace:
    def test_markers_are_parsed(self):
        raw = "Summary: Payment failed\nRoot Cause: Database pool exhausted\nConfidence: low"
        analyzer = EvidenceAnalyzer(llm_returning(raw))
        result = analyzer.summarize_trace("req_1", [rec("req_1 failed", LogLevel.ERROR)])

        assert result.summary == "Payment failed"
        assert result.root_cause == "Database pool exhausted"
        assert result.confidence == "Low"
        assert result.full_analysis == raw
        assert result.generated_by == "llm"

    def test_prompt_carries_identifier_and_logs(self):
        llm = llm_returning("Summary: ok")
        EvidenceAnalyzer(llm).summarize_trace("req_42", [rec("first line"), rec("second line")])

        prompt = llm.invoke.call_args.args[0]
        assert "req_42" in prompt
        assert "first line\nsecond line" in prompt
        assert "Root Cause:" in prompt

    def test_missing_fields_take_defaults(self):
        analyzer = EvidenceAnalyzer(llm_returning("Confidence: High"))
        result = analyzer.summarize_trace("req_1", [rec("x")])
        assert result.summary == "Request context analysis completed"
        assert result.root_cause == "Analysis provided in summary"
        assert result.confidence == "High"

    def test_unparsable_output_returns_none(self, caplog):
        analyzer = EvidenceAnalyzer(llm_returning("Looks fine to me."))
        with caplog.at_level(logging.WARNING, logger="loginspector.retriever.analysis"):
            assert analyzer.summarize_trace("req_1", [rec("x")]) is None
        assert "no usable analysis" in caplog.text

    def test_empty_output_returns_none(self):
        assert EvidenceAnalyzer(llm_returning("")).summarize_trace("req_1", [rec("x")]) is None

    def test_llm_exception_returns_none(self, caplog):
        llm = Mock()
        llm.invoke.side_effect = RuntimeError("rate limited")
        with caplog.at_level(logging.WARNING, logger="loginspector.retriever.analysis"):
            assert EvidenceAnalyzer(llm).summarize_trace("req_1", [rec("x")]) is None
        assert "rate limited" in caplog.text

    def test_unavailable_client_is_not_called(self):
        llm = llm_returning("Summary: ok")
        llm.is_available = False
        assert EvidenceAnalyzer(llm).summarize_trace("req_1", [rec("x")]) is None
        llm.invoke.assert_not_called()

    def test_no_llm(self):
        assert EvidenceAnalyzer().summarize_trace("req_1", [rec("x")]) is None

    def test_attribute_style_result(self):
        llm = Mock()
        llm.invoke.return_value = SimpleNamespace(content="Summary: via attribute")
        result = EvidenceAnalyzer(llm).summarize_trace("req_1", [rec("x")])
        assert result.summary == "via attribute"


class TestExplain:
    def test_llm_reason(self):
        analyzer = EvidenceAnalyzer(llm_returning("  Connection pool exhausted by batch job  "))
        assert analyzer.explain(["db error"]) == "Connection pool exhausted by batch job"

    def test_llm_failure_uses_patterns(self):
        llm = Mock()
        llm.invoke.side_effect = RuntimeError("boom")
        analyzer = EvidenceAnalyzer(llm)
        assert analyzer.explain(["Database connection failed after 3 attempts"]) == "Database connection failure"

    def test_empty_llm_output_uses_patterns(self):
        analyzer = EvidenceAnalyzer(llm_returning(""))
        assert analyzer.explain(["Permission denied for /var/data"]) == "Insufficient permissions"

    @pytest.mark.parametrize("line,reason", [
        ("payment timeout at gateway", "Payment gateway timeout"),
        ("upstream timeout", "Request timeout occurred"),
        ("authentication for bob failed", "Authentication failure"),
        ("java.lang.OutOfMemoryError: out of memory", "System ran out of memory"),
        ("disk /dev/sda1 full", "Disk space exhausted"),
        ("invalid JSON in request body", "Invalid request format or parameters"),
        ("service inventory unavailable", "External service unavailable"),
        ("HTTP 500 Internal Server Error", "Internal server error occurred"),
        ("all good", UNKNOWN_REASON),
    ])
    def test_pattern_table(self, line, reason):
        assert EvidenceAnalyzer().explain([line]) == reason

    def test_no_contents(self):
        assert EvidenceAnalyzer().explain([]) == NO_LOGS_REASON
