"""
Retrieval module: the in-memory semantic retrieval engine.

This module provides:
- Chunking: Split documents into sentence-aligned units
- Embedding: Deterministic feature vectors for chunks and queries
- Search: Similarity scoring with a length-ratio penalty
- Index: Session-scoped store with threshold and dedup on query
- Context: Source grouping, rendering and truncation
- Session: One query run end to end
"""

from .chunker import Chunker, split_sentences
from .embedder import Embedder, normalize_text, tokenize
from .search import cosine_similarity, score
from .dedup import deduplicate, word_overlap
from .index import VectorIndex
from .context import ContextAssembler, trim_to_sentence_boundary
from .session import ContextSession, build_context

__all__ = [
    "Chunker",
    "split_sentences",
    "Embedder",
    "normalize_text",
    "tokenize",
    "cosine_similarity",
    "score",
    "deduplicate",
    "word_overlap",
    "VectorIndex",
    "ContextAssembler",
    "trim_to_sentence_boundary",
    "ContextSession",
    "build_context",
]
