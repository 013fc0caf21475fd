"""
Excerpts - in-memory semantic retrieval for fetched documents.

Takes already-extracted {url, title, content} documents and a query, and
returns the most relevant excerpts rendered into a bounded context block.

Key components:
- contracts/: Dataclasses for documents, chunks, policies and results
- core/: Configuration, exceptions and logging utilities
- retrieval/: Chunker, embedder, scorer, index, dedup and context assembly
- cli: Command-line entry point
"""

__version__ = "0.1.0"

from .contracts.retrieval_contracts import (
    ContextResult,
    Document,
    NoResultReason,
    ScoredChunk,
    SourceOrigin,
)
from .core.config import EngineConfig
from .retrieval.index import VectorIndex
from .retrieval.session import ContextSession, build_context

__all__ = [
    "ContextResult",
    "Document",
    "NoResultReason",
    "ScoredChunk",
    "SourceOrigin",
    "EngineConfig",
    "VectorIndex",
    "ContextSession",
    "build_context",
]
