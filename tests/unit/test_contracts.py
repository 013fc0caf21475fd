"""
Unit tests for retrieval contracts.

Tests for:
- Document validation and origin coercion
- ScoredChunk accessors and serialization
- ContextResult no-result signalling
- Boolean policy flags
"""

import json

import pytest

from excerpts.contracts.retrieval_contracts import (
    Chunk,
    ContextPolicy,
    ContextResult,
    Document,
    NoResultReason,
    ScoredChunk,
    SourceOrigin,
    parse_bool,
)
from excerpts.core.exceptions import DocumentValidationError


class TestSourceOrigin:
    """Tests for the SourceOrigin enum."""

    def test_labels(self):
        """Test the rendered labels."""
        assert SourceOrigin.ARTICLE.label == "Article"
        assert SourceOrigin.SEARCH_RESULT.label == "Search Result"

    def test_string_value(self):
        """Test that origins compare equal to their wire values."""
        assert SourceOrigin("search_result") is SourceOrigin.SEARCH_RESULT
        assert SourceOrigin.ARTICLE == "article"


class TestDocument:
    """Tests for the Document model."""

    def test_from_dict_defaults(self):
        """Test that title and origin are optional."""
        document = Document.from_dict({"url": "https://a.example", "content": "Text."})

        assert document.title == ""
        assert document.origin is SourceOrigin.ARTICLE

    def test_origin_coerced(self):
        """Test that string origins become enum members."""
        document = Document("https://a.example", "T", "Text.", origin="search_result")

        assert document.origin is SourceOrigin.SEARCH_RESULT

    def test_unknown_origin(self):
        """Test that an unknown origin is rejected."""
        with pytest.raises(DocumentValidationError) as exc_info:
            Document("https://a.example", "T", "Text.", origin="podcast")

        assert exc_info.value.field == "origin"

    def test_missing_content(self):
        """Test that content is required."""
        with pytest.raises(DocumentValidationError) as exc_info:
            Document.from_dict({"url": "https://a.example"})

        assert exc_info.value.field == "content"

    def test_empty_url(self):
        """Test that an empty url is rejected."""
        with pytest.raises(DocumentValidationError, match="url"):
            Document.from_dict({"url": "  ", "content": "Text."})

    def test_non_string_content(self):
        """Test that content must be a string."""
        with pytest.raises(DocumentValidationError):
            Document.from_dict({"url": "https://a.example", "content": 42})

    def test_not_a_mapping(self):
        """Test that non-mapping records are rejected."""
        with pytest.raises(DocumentValidationError, match="mapping"):
            Document.from_dict(["https://a.example", "Text."])

    def test_null_title_becomes_empty(self):
        """Test that a null title is treated as no title."""
        document = Document.from_dict(
            {"url": "https://a.example", "title": None, "content": "Text."}
        )

        assert document.title == ""

    def test_to_dict(self):
        """Test serialization uses the origin's wire value."""
        document = Document("https://a.example", "T", "Text.", SourceOrigin.SEARCH_RESULT)

        assert document.to_dict()["origin"] == "search_result"
        assert Document.from_dict(document.to_dict()) == document

    def test_frozen(self):
        """Test that documents are immutable."""
        document = Document("https://a.example", "T", "Text.")

        with pytest.raises(AttributeError):
            document.title = "Other"


class TestScoredChunk:
    """Tests for ScoredChunk."""

    def test_accessors(self):
        """Test url and origin come from metadata."""
        chunk = ScoredChunk(
            content="Text.",
            metadata={"url": "https://a.example", "title": "T", "origin": "search_result"},
            score=0.4,
        )

        assert chunk.url == "https://a.example"
        assert chunk.origin is SourceOrigin.SEARCH_RESULT

    def test_origin_defaults_to_article(self):
        """Test chunks without an origin are articles."""
        chunk = ScoredChunk(content="Text.", metadata={"url": "u"}, score=0.4)

        assert chunk.origin is SourceOrigin.ARTICLE

    def test_to_dict_optional_fields(self):
        """Test that chunk_id and injected appear only when set."""
        plain = ScoredChunk(content="Text.", metadata={"url": "u"}, score=0.4)
        injected = ScoredChunk(
            content="Text.", metadata={"url": "u"}, score=0.5,
            chunk_id="doc1_chunk0", injected=True,
        )

        assert set(plain.to_dict()) == {"content", "metadata", "score"}
        assert injected.to_dict()["injected"] is True
        assert ScoredChunk.from_dict(injected.to_dict()) == injected

    def test_chunk_url(self):
        """Test the Chunk url accessor."""
        chunk = Chunk("doc0_chunk0", 0, "Text.", {"url": "u"}, [0.0])

        assert chunk.url == "u"
        assert Chunk.from_dict(chunk.to_dict()) == chunk


class TestContextResult:
    """Tests for ContextResult."""

    def test_no_result(self):
        """Test the explicit no-result signal."""
        result = ContextResult.no_result(NoResultReason.EMPTY_POOL, total_source_chars=40)

        assert not result.found
        assert result.context is None
        assert result.chunks == []
        assert result.total_source_chars == 40

    def test_to_dict_is_json_serializable(self):
        """Test that results serialize to JSON."""
        result = ContextResult(
            context="Source 1: Article Text. ---",
            chunks=[ScoredChunk(content="Text.", metadata={"url": "u"}, score=0.4)],
            coverage_ratio=0.25,
            source_count=1,
        )

        data = json.loads(json.dumps(result.to_dict()))

        assert data["reason"] is None
        assert data["source_count"] == 1
        assert data["chunks"][0]["score"] == 0.4

    def test_reason_serialized_as_value(self):
        """Test the reason's wire value."""
        result = ContextResult.no_result(NoResultReason.NO_DOCUMENTS)

        assert result.to_dict()["reason"] == "no_documents"


class TestPolicyFlags:
    """Tests for boolean policy fields read from dictionaries."""

    @pytest.mark.parametrize("raw", ["false", "FALSE", " no ", "0", "off", False])
    def test_false_values(self, raw):
        """Test the accepted spellings of false."""
        assert parse_bool(raw) is False

    @pytest.mark.parametrize("raw", ["true", "Yes", "1", "on", True])
    def test_true_values(self, raw):
        """Test the accepted spellings of true."""
        assert parse_bool(raw) is True

    @pytest.mark.parametrize("raw", ["sometimes", "", 2, None])
    def test_rejected_values(self, raw):
        """Test that anything else raises ValueError."""
        with pytest.raises(ValueError):
            parse_bool(raw)

    def test_context_policy_string_flag(self):
        """Test that a string "false" disables the fallback rule."""
        assert ContextPolicy.from_dict({"fallback_enabled": "false"}).fallback_enabled is False
        assert ContextPolicy.from_dict({}).fallback_enabled is True
