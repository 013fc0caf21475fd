"""
Vector Index - In-memory store of embedded chunks for one query session.

An explicit, caller-owned instance with an initialize/close lifecycle:

    index = VectorIndex(config)
    index.initialize()
    index.add_documents(documents)
    hits = index.query("solar panel efficiency", limit=5)
    index.close()

There is no locking. One index serves one query session; concurrent
sessions use independent instances.
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Union

from ..contracts.retrieval_contracts import (
    Chunk,
    Document,
    ScoredChunk,
    SourceOrigin,
)
from ..core.config import EngineConfig
from ..core.exceptions import ConfigError, IndexInitializationError
from .chunker import Chunker
from .dedup import deduplicate
from .embedder import Embedder
from .search import score

logger = logging.getLogger(__name__)

DocumentInput = Union[Document, Dict[str, Any]]


class VectorIndex:
    """
    Ordered collection of (chunk, embedding, metadata) entries.

    Attributes:
        config: Engine configuration
        initialized: Whether the index is ready for ingestion and queries
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        chunker: Optional[Chunker] = None,
        embedder: Optional[Embedder] = None,
    ):
        self.config = config or EngineConfig()
        self.chunker = chunker or Chunker(self.config.chunking)
        self.embedder = embedder or Embedder(self.config.embedding)
        self.initialized = False
        self._entries: List[Chunk] = []
        self._document_count = 0

    def __enter__(self) -> "VectorIndex":
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[Chunk]:
        """Stored chunks in insertion order (a copy)."""
        return list(self._entries)

    @property
    def document_count(self) -> int:
        return self._document_count

    def initialize(self) -> bool:
        """
        Reset the index to empty and mark it initialized.

        Returns:
            True on success, False if the index cannot be allocated
        """
        try:
            self._allocate()
        except IndexInitializationError as e:
            logger.error(f"Index initialization failed: {e}")
            self.initialized = False
            return False

        self.initialized = True
        logger.debug("Initialized in-memory vector index")
        return True

    def _allocate(self) -> None:
        try:
            self.config.validate()
        except ConfigError as e:
            raise IndexInitializationError(f"invalid configuration: {e}") from e

        if self.embedder.dimension != self.config.embedding.dimension:
            raise IndexInitializationError(
                f"embedder dimension {self.embedder.dimension} does not match "
                f"configured dimension {self.config.embedding.dimension}"
            )

        self._entries = []
        self._document_count = 0

    def add_documents(self, documents: Iterable[DocumentInput]) -> bool:
        """
        Chunk, embed and append documents in order.

        Initializes lazily. Documents producing no chunks are skipped.

        Args:
            documents: Document records or {url, title, content[, origin]} mappings

        Returns:
            False only if initialization fails

        Raises:
            DocumentValidationError: If a mapping does not have the document shape
        """
        validated = [d if isinstance(d, Document) else Document.from_dict(d) for d in documents]

        if not self.initialized and not self.initialize():
            return False

        start_time = time.time()
        added = 0

        for document in validated:
            doc_index = self._document_count
            self._document_count += 1

            chunk_texts = self.chunker.chunk(document.content, document.title)
            if not chunk_texts:
                logger.debug(f"Document {document.url} produced no chunks, skipping")
                continue

            metadata = {
                "url": document.url,
                "title": document.title,
                "origin": document.origin.value,
            }
            for chunk_index, text in enumerate(chunk_texts):
                self._entries.append(Chunk(
                    id=f"doc{doc_index}_chunk{chunk_index}",
                    source_index=doc_index,
                    content=text,
                    metadata=dict(metadata),
                    embedding=self.embedder.embed(text),
                ))
                added += 1

            logger.debug(f"Created {len(chunk_texts)} chunks from document {doc_index + 1}")

        execution_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Added {added} chunks from {len(validated)} documents "
            f"in {execution_ms}ms ({len(self._entries)} total)"
        )
        return True

    def rank(
        self,
        query_text: str,
        origin: Optional[SourceOrigin] = None,
    ) -> List[ScoredChunk]:
        """
        Score every stored chunk against the query, highest first.

        No threshold and no deduplication. Equal scores keep insertion order.

        Args:
            query_text: Query text
            origin: Only score chunks from this acquisition channel

        Returns:
            All (matching) chunks as ScoredChunk, sorted by score descending
        """
        if not self.initialized or not self._entries:
            return []

        query_embedding = self.embedder.embed(query_text)
        cosine_floor = self.config.retrieval.cosine_floor

        scored = []
        for entry in self._entries:
            if origin is not None and entry.metadata.get("origin") != origin.value:
                continue
            scored.append(ScoredChunk(
                content=entry.content,
                metadata=dict(entry.metadata),
                score=score(query_embedding, entry.embedding, cosine_floor),
                chunk_id=entry.id,
            ))

        # Stable sort: equal scores keep insertion order
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored

    def query(self, query_text: str, limit: Optional[int] = None) -> List[ScoredChunk]:
        """
        Retrieve the most relevant distinct chunks for a query.

        Args:
            query_text: Query text
            limit: Max results (default: retrieval.default_limit)

        Returns:
            Chunks scoring above the similarity threshold, deduplicated per
            source, truncated to limit; empty if uninitialized or empty

        Raises:
            ValueError: If limit is negative
        """
        policy = self.config.retrieval
        limit = policy.default_limit if limit is None else limit
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")

        if not self.initialized or not self._entries:
            logger.debug("Query on uninitialized or empty index")
            return []

        start_time = time.time()

        ranked = self.rank(query_text)
        qualifying = [s for s in ranked if s.score > policy.similarity_threshold]
        results = deduplicate(qualifying, limit, policy.dedup_overlap_threshold)[:limit]

        execution_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Retrieved {len(results)} chunks from {len(ranked)} candidates "
            f"({len(qualifying)} above {policy.similarity_threshold}) "
            f"in {execution_ms}ms (query: {query_text[:50]}...)"
        )
        return results

    def close(self) -> None:
        """Clear all entries and mark the index uninitialized."""
        self._entries = []
        self._document_count = 0
        self.initialized = False
        logger.debug("Closed in-memory vector index")
