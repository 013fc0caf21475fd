"""
Retrieval Contracts - data models for the in-memory retrieval engine.

These models define the structure for input documents, indexed chunks,
scored query hits, the tunable policies of each pipeline stage, and the
final assembled context result.

Uses dataclasses with to_dict/from_dict helpers for JSON output.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.exceptions import DocumentValidationError


def parse_bool(value: Any) -> bool:
    """
    Interpret a config flag given as a bool or a string.

    Accepts 1/true/yes/on and 0/false/no/off in any case.

    Raises:
        ValueError: For any other value
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
    raise ValueError(f"not a boolean: {value!r}")


class SourceOrigin(str, Enum):
    """Acquisition channel a document came from."""
    ARTICLE = "article"
    SEARCH_RESULT = "search_result"

    @property
    def label(self) -> str:
        """Human-readable label used in rendered context."""
        if self is SourceOrigin.SEARCH_RESULT:
            return "Search Result"
        return "Article"


class NoResultReason(str, Enum):
    """Why a query session produced no context."""
    NO_DOCUMENTS = "no_documents"
    INITIALIZATION_FAILED = "initialization_failed"
    EMPTY_POOL = "empty_pool"
    NO_QUALIFYING_MATCHES = "no_qualifying_matches"


@dataclass
class ChunkingPolicy:
    """
    Policy for splitting document text into chunks.

    Attributes:
        target_words: Greedy accumulation limit in words
        min_chunk_chars: Chunks must be longer than this to be kept
        min_sentence_chars: Sentences shorter than this are discarded
        min_paragraph_chars: Paragraphs must be longer than this in the paragraph fallback
        word_window_trigger_chars: Content must exceed this for the word-window fallback
    """
    target_words: int = 200
    min_chunk_chars: int = 50
    min_sentence_chars: int = 10
    min_paragraph_chars: int = 50
    word_window_trigger_chars: int = 500

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "target_words": self.target_words,
            "min_chunk_chars": self.min_chunk_chars,
            "min_sentence_chars": self.min_sentence_chars,
            "min_paragraph_chars": self.min_paragraph_chars,
            "word_window_trigger_chars": self.word_window_trigger_chars,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkingPolicy":
        """Create from dictionary."""
        return cls(
            target_words=int(data.get("target_words", 200)),
            min_chunk_chars=int(data.get("min_chunk_chars", 50)),
            min_sentence_chars=int(data.get("min_sentence_chars", 10)),
            min_paragraph_chars=int(data.get("min_paragraph_chars", 50)),
            word_window_trigger_chars=int(data.get("word_window_trigger_chars", 500)),
        )


@dataclass
class EmbeddingPolicy:
    """
    Policy for the feature-weighting embedding.

    Attributes:
        dimension: Length of every feature vector
        bigram_weight: Count increment for each adjacent token pair
        position_horizon: Token index beyond which the positional weight stops decaying
        position_decay: Weight lost by a feature first seen at or past the horizon
        min_token_length: Shortest token that counts as a feature
    """
    dimension: int = 384
    bigram_weight: float = 0.8
    position_horizon: int = 100
    position_decay: float = 0.5
    min_token_length: int = 3

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "dimension": self.dimension,
            "bigram_weight": self.bigram_weight,
            "position_horizon": self.position_horizon,
            "position_decay": self.position_decay,
            "min_token_length": self.min_token_length,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmbeddingPolicy":
        """Create from dictionary."""
        return cls(
            dimension=int(data.get("dimension", 384)),
            bigram_weight=float(data.get("bigram_weight", 0.8)),
            position_horizon=int(data.get("position_horizon", 100)),
            position_decay=float(data.get("position_decay", 0.5)),
            min_token_length=int(data.get("min_token_length", 3)),
        )


@dataclass
class RetrievalPolicy:
    """
    Policy for scoring, filtering and deduplicating query hits.

    Attributes:
        similarity_threshold: Hits must score strictly above this
        dedup_overlap_threshold: Max word overlap for a second chunk from one URL
        default_limit: Max chunks returned per query
        cosine_floor: Share of the cosine kept when vectors differ most in feature count
    """
    similarity_threshold: float = 0.275
    dedup_overlap_threshold: float = 0.5
    default_limit: int = 5
    cosine_floor: float = 0.7

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "similarity_threshold": self.similarity_threshold,
            "dedup_overlap_threshold": self.dedup_overlap_threshold,
            "default_limit": self.default_limit,
            "cosine_floor": self.cosine_floor,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetrievalPolicy":
        """Create from dictionary."""
        return cls(
            similarity_threshold=float(data.get("similarity_threshold", 0.275)),
            dedup_overlap_threshold=float(data.get("dedup_overlap_threshold", 0.5)),
            default_limit=int(data.get("default_limit", 5)),
            cosine_floor=float(data.get("cosine_floor", 0.7)),
        )


@dataclass
class ContextPolicy:
    """
    Policy for rendering the final context block.

    Attributes:
        max_context_chars: Character budget of the rendered context
        sentences_per_chunk: Complete sentences kept from each chunk
        fallback_enabled: Force search-result chunks in when none ranked
        fallback_max: Max chunks injected by the fallback rule
        fallback_score: Score assigned to injected chunks
        truncation_marker: Suffix appended when the context was trimmed
    """
    max_context_chars: int = 4000
    sentences_per_chunk: int = 5
    fallback_enabled: bool = True
    fallback_max: int = 2
    fallback_score: float = 0.5
    truncation_marker: str = "...(truncated)"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "max_context_chars": self.max_context_chars,
            "sentences_per_chunk": self.sentences_per_chunk,
            "fallback_enabled": self.fallback_enabled,
            "fallback_max": self.fallback_max,
            "fallback_score": self.fallback_score,
            "truncation_marker": self.truncation_marker,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextPolicy":
        """Create from dictionary."""
        return cls(
            max_context_chars=int(data.get("max_context_chars", 4000)),
            sentences_per_chunk=int(data.get("sentences_per_chunk", 5)),
            fallback_enabled=parse_bool(data.get("fallback_enabled", True)),
            fallback_max=int(data.get("fallback_max", 2)),
            fallback_score=float(data.get("fallback_score", 0.5)),
            truncation_marker=str(data.get("truncation_marker", "...(truncated)")),
        )


@dataclass(frozen=True)
class Document:
    """
    An already-extracted source document handed to the engine.

    Attributes:
        url: Source URL, identifies the source for grouping and dedup
        title: Document title, prepended to the first chunk
        content: Clean plain text
        origin: Acquisition channel (article or search result)
    """
    url: str
    title: str
    content: str
    origin: SourceOrigin = SourceOrigin.ARTICLE

    def __post_init__(self):
        for name in ("url", "title", "content"):
            if not isinstance(getattr(self, name), str):
                raise DocumentValidationError(
                    f"Document field '{name}' must be a string",
                    field=name,
                )
        if not self.url.strip():
            raise DocumentValidationError("Document url cannot be empty", field="url")
        if not isinstance(self.origin, SourceOrigin):
            try:
                object.__setattr__(self, "origin", SourceOrigin(self.origin))
            except ValueError:
                raise DocumentValidationError(
                    f"Unknown document origin: {self.origin!r}",
                    field="origin",
                )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "origin": self.origin.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """Create from dictionary, validating its shape."""
        if not isinstance(data, dict):
            raise DocumentValidationError(
                f"Document must be a mapping, got {type(data).__name__}"
            )
        for required in ("url", "content"):
            if required not in data:
                raise DocumentValidationError(
                    f"Document is missing required field '{required}'",
                    field=required,
                )
        return cls(
            url=data["url"],
            title=data.get("title") or "",
            content=data["content"],
            origin=data.get("origin", SourceOrigin.ARTICLE.value),
        )


@dataclass(frozen=True)
class Chunk:
    """
    A single indexed chunk of a document.

    Owned by the index; never mutated after creation.

    Attributes:
        id: Session-unique ID (doc<N>_chunk<M>)
        source_index: Position of the source document in ingestion order
        content: Chunk text (first chunk carries the title prefix)
        metadata: url, title and origin of the source document
        embedding: Fixed-length feature vector
    """
    id: str
    source_index: int
    content: str
    metadata: Dict[str, Any]
    embedding: List[float]

    @property
    def url(self) -> str:
        return self.metadata["url"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "source_index": self.source_index,
            "content": self.content,
            "metadata": dict(self.metadata),
            "embedding": list(self.embedding),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chunk":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            source_index=data["source_index"],
            content=data["content"],
            metadata=data.get("metadata", {}),
            embedding=data.get("embedding", []),
        )


@dataclass
class ScoredChunk:
    """
    A chunk scored against a query. Transient, produced per query.

    Attributes:
        content: Chunk text
        metadata: url, title and origin of the source document
        score: Similarity to the query (or the fallback score if injected)
        chunk_id: ID of the underlying chunk
        injected: True when added by the fallback-category rule
    """
    content: str
    metadata: Dict[str, Any]
    score: float
    chunk_id: Optional[str] = None
    injected: bool = False

    @property
    def url(self) -> str:
        return self.metadata["url"]

    @property
    def origin(self) -> SourceOrigin:
        return SourceOrigin(self.metadata.get("origin", SourceOrigin.ARTICLE.value))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = {
            "content": self.content,
            "metadata": dict(self.metadata),
            "score": self.score,
        }
        if self.chunk_id:
            result["chunk_id"] = self.chunk_id
        if self.injected:
            result["injected"] = True
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoredChunk":
        """Create from dictionary."""
        return cls(
            content=data["content"],
            metadata=data.get("metadata", {}),
            score=data["score"],
            chunk_id=data.get("chunk_id"),
            injected=data.get("injected", False),
        )


@dataclass
class ContextResult:
    """
    Outcome of one query session.

    A context of None is the explicit "no result" signal; reason says why.

    Attributes:
        context: Rendered context block, or None
        reason: Why no context was produced (None on success)
        chunks: Final chunks the context was rendered from
        coverage_ratio: Extracted content chars over total source chars
        total_source_chars: Character count of all ingested document content
        content_chars: Character count of extracted sentence text
        source_count: Number of rendered source groups
        truncated: Whether the context was trimmed to the budget
    """
    context: Optional[str]
    reason: Optional[NoResultReason] = None
    chunks: List[ScoredChunk] = field(default_factory=list)
    coverage_ratio: float = 0.0
    total_source_chars: int = 0
    content_chars: int = 0
    source_count: int = 0
    truncated: bool = False

    @property
    def found(self) -> bool:
        return self.context is not None

    @classmethod
    def no_result(
        cls,
        reason: NoResultReason,
        total_source_chars: int = 0,
    ) -> "ContextResult":
        """Build an empty result for the given reason."""
        return cls(context=None, reason=reason, total_source_chars=total_source_chars)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "context": self.context,
            "reason": self.reason.value if self.reason else None,
            "chunks": [c.to_dict() for c in self.chunks],
            "coverage_ratio": self.coverage_ratio,
            "total_source_chars": self.total_source_chars,
            "content_chars": self.content_chars,
            "source_count": self.source_count,
            "truncated": self.truncated,
        }


__all__ = [
    "SourceOrigin",
    "NoResultReason",
    "ChunkingPolicy",
    "EmbeddingPolicy",
    "RetrievalPolicy",
    "ContextPolicy",
    "Document",
    "Chunk",
    "ScoredChunk",
    "ContextResult",
]
