"""
Unit tests for query sessions.

Tests for:
- Every no-result reason
- Retrieval scenarios end to end
- Fallback-category injection in a session
- Context truncation and coverage
- Correlation fields on log records
"""

import logging

import pytest

from excerpts import build_context
from excerpts.contracts.retrieval_contracts import NoResultReason
from excerpts.core.config import EngineConfig
from excerpts.core.exceptions import DocumentValidationError
from excerpts.retrieval.session import ContextSession


class TestNoResult:
    """Tests for sessions that produce no context."""

    def test_no_documents(self):
        """Test an empty document list."""
        result = ContextSession().run("photosynthesis", [])

        assert result.context is None
        assert result.reason is NoResultReason.NO_DOCUMENTS

    def test_initialization_failed(self, topical_document):
        """Test that an invalid configuration yields no result."""
        config = EngineConfig()
        config.retrieval.similarity_threshold = 2.0

        result = ContextSession(config).run("photosynthesis", [topical_document])

        assert result.context is None
        assert result.reason is NoResultReason.INITIALIZATION_FAILED
        assert result.total_source_chars == len(topical_document["content"])

    @pytest.mark.scenario
    def test_empty_pool(self, tiny_document):
        """Test a document whose only sentence is too short to chunk."""
        result = ContextSession().run("quick brown fox", [tiny_document])

        assert result.context is None
        assert result.reason is NoResultReason.EMPTY_POOL

    @pytest.mark.scenario
    def test_no_qualifying_matches(self, unrelated_document):
        """Test documents that never score above the threshold."""
        result = ContextSession().run("photosynthesis", [unrelated_document])

        assert result.context is None
        assert result.reason is NoResultReason.NO_QUALIFYING_MATCHES
        assert result.total_source_chars == len(unrelated_document["content"])

    def test_malformed_document_raises(self):
        """Test that malformed input is rejected, not silently skipped."""
        with pytest.raises(DocumentValidationError):
            ContextSession().run("query", [{"title": "no url or content"}])

    def test_negative_limit_raises(self, topical_document):
        """Test that a negative limit is a caller error, not a no-result."""
        with pytest.raises(ValueError, match="non-negative"):
            ContextSession().run("photosynthesis", [topical_document], limit=-1)


class TestScenarios:
    """End-to-end retrieval scenarios."""

    @pytest.mark.scenario
    def test_topical_article_found(self, topical_document, unrelated_document):
        """Test that only the relevant article is rendered."""
        result = ContextSession().run(
            "photosynthesis", [topical_document, unrelated_document]
        )

        assert result.found
        assert result.context.startswith("Source 1: Article Photosynthesis")
        assert "Source 2" not in result.context
        assert "gk0" not in result.context
        assert result.source_count == 1
        assert len(result.chunks) == 3
        assert 0.0 < result.coverage_ratio < 1.0

    @pytest.mark.scenario
    def test_search_result_injected(self, topical_document, search_result_document):
        """Test that an unranked search result is forced into the context."""
        result = ContextSession().run(
            "photosynthesis", [topical_document, search_result_document]
        )

        assert result.found
        assert "Source 2: Search Result Leaf chemistry overview." in result.context
        injected = [c for c in result.chunks if c.injected]
        assert len(injected) == 1
        assert injected[0].score == 0.5
        assert len(result.chunks) <= 5

    @pytest.mark.scenario
    def test_fallback_disabled(self, topical_document, search_result_document):
        """Test that disabling the rule keeps search results out."""
        config = EngineConfig()
        config.context.fallback_enabled = False

        result = ContextSession(config).run(
            "photosynthesis", [topical_document, search_result_document]
        )

        assert "Search Result" not in result.context

    @pytest.mark.scenario
    def test_only_search_result_below_threshold(self, search_result_document):
        """Test that a lone under-scoring search result is still surfaced."""
        result = ContextSession().run("photosynthesis", [search_result_document])

        assert result.found
        assert result.context.startswith("Source 1: Search Result")

    @pytest.mark.scenario
    def test_limit_with_fallback(self, topical_document, search_result_document):
        """Test that injection makes room within the limit."""
        result = ContextSession().run(
            "photosynthesis", [topical_document, search_result_document], limit=2
        )

        assert len(result.chunks) == 2
        assert [c.injected for c in result.chunks] == [False, True]

    @pytest.mark.scenario
    def test_truncation(self, topical_document):
        """Test that a small budget trims the context at a sentence boundary."""
        config = EngineConfig()
        config.context.max_context_chars = 120

        result = ContextSession(config).run("photosynthesis", [topical_document])

        assert result.truncated
        assert result.context.endswith(".(truncated)")
        assert len(result.context) <= 120 + len("...(truncated)")

    def test_deterministic(self, topical_document, unrelated_document, search_result_document):
        """Test that identical inputs render identical contexts."""
        documents = [topical_document, unrelated_document, search_result_document]

        first = ContextSession().run("photosynthesis", documents).context
        second = ContextSession().run("photosynthesis", documents).context

        assert first == second


class TestBuildContext:
    """Tests for the build_context convenience function."""

    def test_returns_text(self, topical_document):
        """Test that the context string is returned directly."""
        context = build_context("photosynthesis", [topical_document])

        assert context.startswith("Source 1: Article")

    def test_returns_none(self, unrelated_document):
        """Test that no result is None."""
        assert build_context("photosynthesis", [unrelated_document]) is None


class TestSessionLogging:
    """Tests for session correlation in logs."""

    def test_session_id_on_records(self, caplog, topical_document):
        """Test that session logs carry the session ID."""
        session = ContextSession(session_id="session-123")

        with caplog.at_level(logging.INFO, logger="excerpts"):
            session.run("photosynthesis", [topical_document])

        tagged = [r for r in caplog.records if getattr(r, "session_id", None) == "session-123"]
        assert tagged
        assert tagged[0].document_count == 1
        assert all(r.query == "photosynthesis" for r in tagged)

    def test_generated_session_id(self):
        """Test that sessions get unique IDs by default."""
        assert ContextSession().session_id != ContextSession().session_id
