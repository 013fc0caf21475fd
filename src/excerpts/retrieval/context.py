"""
Context Assembly - Render retrieved chunks into a bounded context block.

Groups chunks by source, keeps the first complete sentences of each chunk,
numbers the sources, and trims the result to a character budget at a
sentence boundary.

Output shape (one line per source):

    Source 1: Article <sentences> ---
    Source 2: Search Result <sentences> ---
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..contracts.retrieval_contracts import (
    ContextPolicy,
    ContextResult,
    NoResultReason,
    ScoredChunk,
    SourceOrigin,
)
from .chunker import find_sentences

logger = logging.getLogger(__name__)

_NEWLINES_RE = re.compile(r"\n+")
SENTENCE_TERMINATORS = ".!?"


def extract_complete_sentences(text: str, max_sentences: int = 5) -> str:
    """
    Return the first max_sentences complete sentences of text.

    Falls back to the raw text when it has no terminator-delimited sentence.
    """
    sentences = find_sentences(text)
    if not sentences:
        return text
    return " ".join(sentences[:max_sentences]).strip()


def trim_to_sentence_boundary(text: str, max_length: int) -> str:
    """
    Cut text to at most max_length characters, ending on a sentence terminator.

    Text already within budget is returned unchanged. Otherwise the cut is
    made after the last terminator at or before position max_length; with
    no such terminator the text is hard-cut at max_length.
    """
    if len(text) <= max_length:
        return text

    boundary = max(text.rfind(t, 0, max_length + 1) for t in SENTENCE_TERMINATORS)
    if boundary > 0:
        return text[:boundary + 1]
    return text[:max_length]


def truncate_context(
    text: str,
    max_length: int,
    marker: str = "...(truncated)",
) -> Tuple[str, bool]:
    """
    Trim an over-budget context and append the truncation marker.

    Returns:
        Tuple of (text, truncated)
    """
    if len(text) <= max_length:
        return text, False
    return trim_to_sentence_boundary(text, max_length) + marker, True


@dataclass
class SourceGroup:
    """Chunks from one source, in result order."""
    url: str
    title: str
    origin: SourceOrigin
    contents: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return _NEWLINES_RE.sub(" ", " ".join(self.contents))


def group_by_source(
    chunks: List[ScoredChunk],
    sentences_per_chunk: int = 5,
) -> List[SourceGroup]:
    """
    Group chunks by (url, title, origin), keeping first-appearance order.

    Each chunk contributes its first sentences_per_chunk complete sentences.
    """
    groups: Dict[Tuple[str, str, SourceOrigin], SourceGroup] = {}
    for chunk in chunks:
        title = chunk.metadata.get("title", "")
        key = (chunk.url, title, chunk.origin)
        group = groups.get(key)
        if group is None:
            group = SourceGroup(url=chunk.url, title=title, origin=chunk.origin)
            groups[key] = group
        group.contents.append(extract_complete_sentences(chunk.content, sentences_per_chunk))
    return list(groups.values())


def render_context(groups: List[SourceGroup]) -> str:
    """Render numbered source lines."""
    lines = [
        f"Source {n}: {group.origin.label} {group.text} ---"
        for n, group in enumerate(groups, start=1)
    ]
    return "\n".join(lines)


def apply_fallback_category(
    results: List[ScoredChunk],
    candidates: List[ScoredChunk],
    limit: int,
    policy: Optional[ContextPolicy] = None,
    origin: SourceOrigin = SourceOrigin.SEARCH_RESULT,
) -> List[ScoredChunk]:
    """
    Force chunks of an under-scoring origin into the result set.

    When no result comes from `origin` but candidates from it exist, the
    best-scoring candidates (one per URL, up to policy.fallback_max) are
    appended with policy.fallback_score, and the ranked results are cut to
    make room so the total stays within limit.

    Args:
        results: Deduplicated, truncated query results
        candidates: Chunks of `origin` sorted by raw score descending
        limit: Result limit
        policy: Context policy
        origin: Acquisition channel that must be represented

    Returns:
        Final chunk list (results unchanged when the rule does not apply)
    """
    policy = policy or ContextPolicy()

    if not policy.fallback_enabled or policy.fallback_max <= 0:
        return results
    if any(r.origin is origin for r in results):
        return results

    injected: List[ScoredChunk] = []
    seen_urls = set()
    for candidate in candidates:
        if len(injected) >= min(policy.fallback_max, limit):
            break
        if candidate.origin is not origin or candidate.url in seen_urls:
            continue
        seen_urls.add(candidate.url)
        injected.append(ScoredChunk(
            content=candidate.content,
            metadata=dict(candidate.metadata),
            score=policy.fallback_score,
            chunk_id=candidate.chunk_id,
            injected=True,
        ))

    if not injected:
        return results

    logger.warning(
        f"No {origin.value} chunks ranked; injecting {len(injected)} "
        f"with fallback score {policy.fallback_score}"
    )
    return results[:max(0, limit - len(injected))] + injected


class ContextAssembler:
    """
    Formats final chunks into the context block and its diagnostics.

    Example:
        >>> assembler = ContextAssembler(ContextPolicy(max_context_chars=4000))
        >>> result = assembler.assemble(chunks, total_source_chars=52000)
        >>> print(result.context)
    """

    def __init__(self, policy: Optional[ContextPolicy] = None):
        self.policy = policy or ContextPolicy()

    def assemble(self, chunks: List[ScoredChunk], total_source_chars: int) -> ContextResult:
        """
        Render chunks into a ContextResult.

        Args:
            chunks: Final chunks in result order
            total_source_chars: Character count of all ingested documents

        Returns:
            ContextResult; context is None when chunks is empty
        """
        if not chunks:
            return ContextResult.no_result(
                NoResultReason.NO_QUALIFYING_MATCHES,
                total_source_chars=total_source_chars,
            )

        groups = group_by_source(chunks, self.policy.sentences_per_chunk)

        content_chars = sum(len(c) for g in groups for c in g.contents)
        coverage_ratio = content_chars / total_source_chars if total_source_chars > 0 else 0.0
        logger.info(
            f"Provided {round(coverage_ratio * 100)}% of source content "
            f"({content_chars}/{total_source_chars} chars, {len(groups)} sources)"
        )

        context, truncated = truncate_context(
            render_context(groups),
            self.policy.max_context_chars,
            self.policy.truncation_marker,
        )

        return ContextResult(
            context=context.strip(),
            chunks=list(chunks),
            coverage_ratio=coverage_ratio,
            total_source_chars=total_source_chars,
            content_chars=content_chars,
            source_count=len(groups),
            truncated=truncated,
        )
