"""
Query Session - One end-to-end retrieval run over a set of documents.

Workflow:
1. Create a fresh VectorIndex and initialize it
2. Ingest the documents (chunk + embed)
3. Query for the top distinct chunks above the threshold
4. Force search-result chunks in when none ranked (fallback category)
5. Close the index
6. Render the context block and its coverage diagnostics

Every failure mode of the engine becomes a ContextResult whose context is
None, with a NoResultReason; the session never emits a partial block.
"""

import logging
import uuid
from typing import Iterable, List, Optional

from ..contracts.retrieval_contracts import (
    ContextResult,
    Document,
    NoResultReason,
    SourceOrigin,
)
from ..core.config import EngineConfig
from ..core.logging import CorrelationContext, log_with_context
from .context import ContextAssembler, apply_fallback_category
from .index import DocumentInput, VectorIndex

logger = logging.getLogger(__name__)


class ContextSession:
    """
    Runs a single query session with its own index instance.

    Sessions share nothing, so independent queries may run in separate
    sessions at the same time.

    Example:
        >>> session = ContextSession(EngineConfig())
        >>> result = session.run("how do solar panels work", documents)
        >>> if result.found:
        ...     print(result.context)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        session_id: Optional[str] = None,
    ):
        self.config = config or EngineConfig()
        self.session_id = session_id or str(uuid.uuid4())
        self.assembler = ContextAssembler(self.config.context)

    def run(
        self,
        query: str,
        documents: Iterable[DocumentInput],
        limit: Optional[int] = None,
    ) -> ContextResult:
        """
        Retrieve and render the context for a query.

        Args:
            query: Query text
            documents: Already-extracted documents (records or mappings)
            limit: Max chunks (default: retrieval.default_limit)

        Returns:
            ContextResult; context is None with a reason when nothing qualifies

        Raises:
            DocumentValidationError: If a document mapping is malformed
            ValueError: If limit is negative
        """
        docs: List[Document] = [
            d if isinstance(d, Document) else Document.from_dict(d) for d in documents
        ]
        limit = self.config.retrieval.default_limit if limit is None else limit
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")

        with CorrelationContext(session_id=self.session_id, query=query):
            return self._run(query, docs, limit)

    def _run(self, query: str, docs: List[Document], limit: int) -> ContextResult:
        if not docs:
            log_with_context(logger, logging.INFO, "No documents supplied")
            return ContextResult.no_result(NoResultReason.NO_DOCUMENTS)

        total_source_chars = sum(len(d.content) for d in docs)

        index = VectorIndex(self.config)
        if not index.initialize():
            return ContextResult.no_result(
                NoResultReason.INITIALIZATION_FAILED,
                total_source_chars=total_source_chars,
            )

        try:
            if not index.add_documents(docs):
                return ContextResult.no_result(
                    NoResultReason.INITIALIZATION_FAILED,
                    total_source_chars=total_source_chars,
                )

            if len(index) == 0:
                log_with_context(
                    logger, logging.INFO, "No document produced any chunks",
                    document_count=len(docs),
                )
                return ContextResult.no_result(
                    NoResultReason.EMPTY_POOL,
                    total_source_chars=total_source_chars,
                )

            results = index.query(query, limit)
            final_chunks = apply_fallback_category(
                results,
                index.rank(query, origin=SourceOrigin.SEARCH_RESULT),
                limit,
                self.config.context,
            )
            log_with_context(
                logger, logging.INFO,
                f"Session selected {len(final_chunks)} chunks",
                chunk_count=len(index),
                document_count=len(docs),
            )
        finally:
            index.close()

        return self.assembler.assemble(final_chunks, total_source_chars)


def build_context(
    query: str,
    documents: Iterable[DocumentInput],
    config: Optional[EngineConfig] = None,
    limit: Optional[int] = None,
) -> Optional[str]:
    """
    Convenience wrapper: run one session and return only the context text.

    Returns:
        The rendered context, or None when there is no result
    """
    return ContextSession(config).run(query, documents, limit).context
