"""
Shared test fixtures and configuration for pytest.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Document builders
# ============================================================================

def topical_sentences(term: str, count: int, prefix: str = "w") -> List[str]:
    """
    Sentences that all open with `term`, followed by three words unique to
    the sentence. Chunks built from them have one dominant feature.
    """
    return [
        f"{term} {prefix}a{i} {prefix}b{i} {prefix}c{i}."
        for i in range(count)
    ]


def flat_sentences(count: int, prefix: str = "z") -> List[str]:
    """Sentences of four words that never repeat: no dominant feature."""
    return [
        f"{prefix}k{i} {prefix}l{i} {prefix}m{i} {prefix}n{i}."
        for i in range(count)
    ]


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "scenario: End-to-end retrieval scenarios")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def reset_package_logger():
    """Remove handlers added by configure_logging so tests stay isolated."""
    yield
    package_logger = logging.getLogger("excerpts")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def topical_document() -> Dict[str, str]:
    """600-word article about photosynthesis, term in the title."""
    return {
        "url": "https://example.org/photosynthesis",
        "title": "Photosynthesis",
        "content": " ".join(topical_sentences("Photosynthesis", 150, prefix="p")),
    }


@pytest.fixture
def distinct_topical_documents() -> List[Dict[str, str]]:
    """Three short photosynthesis articles, one chunk each, distinct URLs."""
    return [
        {
            "url": f"https://example.org/leaves/{n}",
            "title": "Photosynthesis",
            "content": " ".join(topical_sentences("Photosynthesis", 40, prefix=f"d{n}")),
        }
        for n in range(3)
    ]


@pytest.fixture
def unrelated_document() -> Dict[str, str]:
    """300-word article that never mentions the query term."""
    return {
        "url": "https://example.org/garden-notes",
        "title": "Garden notes",
        "content": " ".join(flat_sentences(75, prefix="g")),
    }


@pytest.fixture
def search_result_document() -> Dict[str, str]:
    """Short search-result snippet with a flat vocabulary."""
    return {
        "url": "https://search.example.com/result/1",
        "title": "Leaf chemistry overview",
        "content": " ".join(flat_sentences(10, prefix="s")),
        "origin": "search_result",
    }


@pytest.fixture
def tiny_document() -> Dict[str, str]:
    """A document whose only sentence is 40 characters long."""
    sentence = "The quick brown fox jumps over the dogs."
    assert len(sentence) == 40
    return {
        "url": "https://example.org/tiny",
        "title": "Tiny",
        "content": sentence,
    }
