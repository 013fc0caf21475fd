"""
Deduplication - Limit near-identical chunks and per-source repetition.

Policy, applied in rank order:
- The first chunk seen for a URL is always kept.
- A later chunk from a seen URL is kept only while fewer than `limit`
  chunks are accepted and its word overlap with the accepted chunks from
  that URL (the first one included) is below the overlap threshold.
"""

import logging
from typing import Dict, FrozenSet, List

from ..contracts.retrieval_contracts import ScoredChunk
from .embedder import normalize_text

logger = logging.getLogger(__name__)


def distinct_words(text: str, min_length: int = 3) -> FrozenSet[str]:
    """Distinct normalized words of at least min_length characters."""
    return frozenset(w for w in normalize_text(text).split(" ") if len(w) >= min_length)


def word_overlap(text_a: str, text_b: str) -> float:
    """
    Jaccard overlap of the distinct words (longer than two characters) of two texts.

    Returns:
        |common| / |union|, or 0.0 when both texts have no qualifying words
    """
    words_a = distinct_words(text_a)
    words_b = distinct_words(text_b)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def deduplicate(
    ranked: List[ScoredChunk],
    limit: int,
    overlap_threshold: float = 0.5,
) -> List[ScoredChunk]:
    """
    Filter a score-sorted list down to distinct, source-diverse chunks.

    A later chunk from an already-seen URL is compared against the first
    accepted chunk from that URL and then against any other accepted chunk
    from it, so no two accepted chunks sharing a URL overlap at or above
    the threshold.

    Args:
        ranked: Threshold-filtered chunks sorted by score descending
        limit: Result limit the caller will truncate to
        overlap_threshold: Same-URL chunks must overlap strictly less than this

    Returns:
        Accepted chunks in rank order (may exceed limit; callers truncate)
    """
    accepted: List[ScoredChunk] = []
    by_url: Dict[str, List[ScoredChunk]] = {}

    for candidate in ranked:
        siblings = by_url.get(candidate.url)
        if siblings is None:
            accepted.append(candidate)
            by_url[candidate.url] = [candidate]
            continue

        if len(accepted) >= limit:
            continue

        overlap = max(word_overlap(s.content, candidate.content) for s in siblings)
        if overlap < overlap_threshold:
            accepted.append(candidate)
            siblings.append(candidate)
        else:
            logger.debug(
                f"Dropped chunk {candidate.chunk_id} from {candidate.url}: "
                f"overlap {overlap:.2f} >= {overlap_threshold}"
            )

    return accepted
