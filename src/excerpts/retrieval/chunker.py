"""
Chunker - Split document text into bounded, sentence-aligned segments.

Implements a strict three-tier fallback chain:
- Sentences greedily packed up to a word budget
- Paragraphs split on blank lines
- Fixed-size word windows

A tier is only tried when the previous one produced nothing usable.
"""

import logging
import re
from typing import List, Optional

from ..contracts.retrieval_contracts import ChunkingPolicy

logger = logging.getLogger(__name__)

# A sentence is a maximal run of non-terminators followed by one or more terminators.
SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")
PARAGRAPH_BREAK_RE = re.compile(r"\n{2,}")


def find_sentences(text: str) -> List[str]:
    """
    Return every terminator-delimited sentence in text, untrimmed.

    Trailing text with no terminator is not a sentence and is dropped.
    """
    if not text:
        return []
    return SENTENCE_RE.findall(text)


def split_sentences(text: str, min_chars: int = 10) -> List[str]:
    """
    Split text into trimmed sentences, discarding fragments shorter than min_chars.

    Args:
        text: Text to segment
        min_chars: Minimum trimmed sentence length

    Returns:
        Trimmed sentences in text order
    """
    sentences = []
    for sentence in find_sentences(text):
        trimmed = sentence.strip()
        if len(trimmed) >= min_chars:
            sentences.append(trimmed)
    return sentences


def pack_sentences(
    sentences: List[str],
    target_words: int = 200,
    min_chunk_chars: int = 50,
) -> List[str]:
    """
    Greedily pack sentences into chunks of at most target_words words.

    A sentence that would push the running word count past the target closes
    the current chunk and starts the next one. A single sentence longer than
    the target still forms its own chunk. Chunks not longer than
    min_chunk_chars are dropped.
    """
    chunks = []
    current: List[str] = []
    current_words = 0

    for sentence in sentences:
        words = len(sentence.split())
        if current_words > 0 and current_words + words > target_words:
            _emit(chunks, current, min_chunk_chars)
            current = [sentence]
            current_words = words
        else:
            current.append(sentence)
            current_words += words

    _emit(chunks, current, min_chunk_chars)
    return chunks


def _emit(chunks: List[str], sentences: List[str], min_chunk_chars: int) -> None:
    text = " ".join(sentences)
    if len(text) > min_chunk_chars:
        chunks.append(text)


def split_paragraphs(text: str, min_chars: int = 50) -> List[str]:
    """Split on blank lines, keeping trimmed paragraphs longer than min_chars."""
    paragraphs = (p.strip() for p in PARAGRAPH_BREAK_RE.split(text))
    return [p for p in paragraphs if len(p) > min_chars]


def split_word_windows(
    text: str,
    window_words: int = 200,
    min_chars: int = 50,
) -> List[str]:
    """Split text into consecutive windows of window_words words."""
    if window_words <= 0:
        raise ValueError("window_words must be positive")

    words = text.split()
    windows = []
    for start in range(0, len(words), window_words):
        window = " ".join(words[start:start + window_words])
        if len(window) > min_chars:
            windows.append(window)
    return windows


class Chunker:
    """
    Chunks document content into retrieval units.

    Example:
        >>> chunker = Chunker(ChunkingPolicy(target_words=200))
        >>> chunks = chunker.chunk(content="Long article text...", title="Example")
    """

    def __init__(self, policy: Optional[ChunkingPolicy] = None):
        """
        Initialize the chunker.

        Args:
            policy: Chunking policy (uses default if not provided)
        """
        self.policy = policy or ChunkingPolicy()

    def chunk(self, content: str, title: str = "") -> List[str]:
        """
        Split content into chunks.

        The title is prepended to the first chunk only, to bias retrieval
        toward the document's topic.

        Args:
            content: Clean plain text
            title: Document title

        Returns:
            Chunk texts in document order (empty if nothing usable)
        """
        if not content:
            return []

        chunks = self._split(content)

        if chunks and title:
            chunks[0] = f"{title}. {chunks[0]}"

        return chunks

    def _split(self, content: str) -> List[str]:
        policy = self.policy

        sentences = split_sentences(content, policy.min_sentence_chars)
        if sentences:
            return pack_sentences(sentences, policy.target_words, policy.min_chunk_chars)

        paragraphs = split_paragraphs(content, policy.min_paragraph_chars)
        if len(paragraphs) <= 1 and len(content) > policy.word_window_trigger_chars:
            logger.debug("No sentence or paragraph structure, using word windows")
            return split_word_windows(content, policy.target_words, policy.min_chunk_chars)

        return paragraphs
