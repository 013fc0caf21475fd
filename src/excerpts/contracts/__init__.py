"""
Contracts subpackage: dataclasses exchanged between pipeline stages.
"""

from .retrieval_contracts import (
    SourceOrigin,
    NoResultReason,
    ChunkingPolicy,
    EmbeddingPolicy,
    RetrievalPolicy,
    ContextPolicy,
    Document,
    Chunk,
    ScoredChunk,
    ContextResult,
)

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
