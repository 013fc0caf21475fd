"""
Embedder - Deterministic bag-of-features vectors for chunks and queries.

Not a learned embedding. Each text is reduced to unigram and bigram
features, weighted by frequency and by how early they first appear, and the
top features are laid out by rank into a fixed-length vector:

1. Normalize: lowercase, punctuation to spaces, collapse whitespace
2. Unigrams: tokens longer than two characters that are not stop words, +1 each
3. Bigrams: adjacent pairs of qualifying tokens, +bigram_weight each
4. Position: weight *= 1 - min(first_index, horizon) / horizon * decay
5. Rank by weight (ties keep first-insertion order), keep the top `dimension`
6. vector[rank] = weight / max(1, token_count)

Vector index i means "the i-th most salient feature of this text", not a
global vocabulary slot. Two vectors are only comparable through the
similarity score.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from ..contracts.retrieval_contracts import EmbeddingPolicy

logger = logging.getLogger(__name__)

STOP_WORDS: FrozenSet[str] = frozenset({
    "the", "and", "or", "of", "to", "a", "in", "that", "it", "is", "was", "for",
    "on", "with", "as", "be", "at", "this", "but", "by", "from", "an", "not",
    "what", "all", "are", "were", "when", "we", "you", "they", "have", "had",
})

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, replace punctuation with spaces, and collapse whitespace."""
    cleaned = _NON_WORD_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def tokenize(text: str) -> List[str]:
    """Normalize text and split it on whitespace."""
    normalized = normalize_text(text)
    if not normalized:
        return []
    return normalized.split(" ")


@dataclass
class Feature:
    """An accumulated unigram or bigram feature."""
    key: str
    count: float
    first_position: int
    order: int
    weight: float = 0.0


class Embedder:
    """
    Converts text into a fixed-length, non-negative feature vector.

    Deterministic: the same text always yields the same vector.

    Example:
        >>> embedder = Embedder()
        >>> vector = embedder.embed("Solar panels convert sunlight into power.")
        >>> len(vector)
        384
    """

    def __init__(
        self,
        policy: Optional[EmbeddingPolicy] = None,
        stop_words: Optional[FrozenSet[str]] = None,
    ):
        self.policy = policy or EmbeddingPolicy()
        self.stop_words = STOP_WORDS if stop_words is None else frozenset(stop_words)

    @property
    def dimension(self) -> int:
        return self.policy.dimension

    def is_feature_token(self, token: str) -> bool:
        """Whether a token is long enough and not a stop word."""
        return len(token) >= self.policy.min_token_length and token not in self.stop_words

    def extract_features(self, tokens: List[str]) -> List[Feature]:
        """
        Accumulate unigram and bigram features in a single pass per kind.

        Returns features in insertion order (unigrams by first occurrence,
        then bigrams by first occurrence), with position-weighted weights.
        """
        first_positions: Dict[str, int] = {}
        for index, token in enumerate(tokens):
            first_positions.setdefault(token, index)

        features: Dict[str, Feature] = {}

        def add(key: str, increment: float, anchor_token: str) -> None:
            feature = features.get(key)
            if feature is None:
                feature = Feature(
                    key=key,
                    count=0.0,
                    first_position=first_positions[anchor_token],
                    order=len(features),
                )
                features[key] = feature
            feature.count += increment

        qualifies = [self.is_feature_token(token) for token in tokens]

        for token, ok in zip(tokens, qualifies):
            if ok:
                add(token, 1.0, token)

        for i in range(len(tokens) - 1):
            if qualifies[i] and qualifies[i + 1]:
                add(f"{tokens[i]}_{tokens[i + 1]}", self.policy.bigram_weight, tokens[i])

        result = sorted(features.values(), key=lambda f: f.order)
        for feature in result:
            feature.weight = feature.count * self.position_weight(feature.first_position)
        return result

    def position_weight(self, position: int) -> float:
        """Multiplier for a feature first seen at token index position."""
        horizon = self.policy.position_horizon
        return 1.0 - (min(position, horizon) / horizon) * self.policy.position_decay

    def _top_features(self, tokens: List[str]) -> List[Feature]:
        # Ties keep insertion order so ranking never depends on container order.
        features = self.extract_features(tokens)
        ranked = sorted(features, key=lambda f: (-f.weight, f.order))
        return ranked[:self.policy.dimension]

    def rank_features(self, text: str) -> List[Tuple[str, float]]:
        """Return the kept (feature, weight) pairs of text, most salient first."""
        return [(f.key, f.weight) for f in self._top_features(tokenize(text))]

    def embed(self, text: str) -> List[float]:
        """
        Embed text into a vector of length policy.dimension.

        Entries are normalized by the raw token count of the text, not by
        vector norm, so vectors are not unit length.
        """
        tokens = tokenize(text)

        vector = [0.0] * self.policy.dimension
        normalizer = max(1, len(tokens))
        for rank, feature in enumerate(self._top_features(tokens)):
            vector[rank] = feature.weight / normalizer

        return vector
