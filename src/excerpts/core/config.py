"""
Configuration for the excerpts retrieval engine.

Defaults live on the policy dataclasses. A YAML file may override them per
section, and EXCERPTS_* environment variables override both.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..contracts.retrieval_contracts import (
    ChunkingPolicy,
    ContextPolicy,
    EmbeddingPolicy,
    RetrievalPolicy,
    parse_bool,
)
from .exceptions import ConfigError


logger = logging.getLogger(__name__)

SECTIONS = ("chunking", "embedding", "retrieval", "context")


# env var -> (section, attribute, parser)
ENV_OVERRIDES: Dict[str, tuple] = {
    "EXCERPTS_CHUNK_TARGET_WORDS": ("chunking", "target_words", int),
    "EXCERPTS_MIN_CHUNK_CHARS": ("chunking", "min_chunk_chars", int),
    "EXCERPTS_MIN_SENTENCE_CHARS": ("chunking", "min_sentence_chars", int),
    "EXCERPTS_EMBEDDING_DIMENSION": ("embedding", "dimension", int),
    "EXCERPTS_BIGRAM_WEIGHT": ("embedding", "bigram_weight", float),
    "EXCERPTS_SIMILARITY_THRESHOLD": ("retrieval", "similarity_threshold", float),
    "EXCERPTS_DEDUP_OVERLAP_THRESHOLD": ("retrieval", "dedup_overlap_threshold", float),
    "EXCERPTS_RESULT_LIMIT": ("retrieval", "default_limit", int),
    "EXCERPTS_MAX_CONTEXT_CHARS": ("context", "max_context_chars", int),
    "EXCERPTS_SENTENCES_PER_CHUNK": ("context", "sentences_per_chunk", int),
    "EXCERPTS_FALLBACK_ENABLED": ("context", "fallback_enabled", parse_bool),
}


@dataclass
class EngineConfig:
    """
    Complete engine configuration: one policy per pipeline stage.

    Example:
        >>> config = EngineConfig.load(Path("excerpts.yaml"))
        >>> config.retrieval.similarity_threshold
        0.275
    """
    chunking: ChunkingPolicy = field(default_factory=ChunkingPolicy)
    embedding: EmbeddingPolicy = field(default_factory=EmbeddingPolicy)
    retrieval: RetrievalPolicy = field(default_factory=RetrievalPolicy)
    context: ContextPolicy = field(default_factory=ContextPolicy)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "chunking": self.chunking.to_dict(),
            "embedding": self.embedding.to_dict(),
            "retrieval": self.retrieval.to_dict(),
            "context": self.context.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create from a dictionary of sections; missing sections use defaults."""
        if not isinstance(data, dict):
            raise ConfigError("Config must be a mapping of sections")
        unknown = set(data) - set(SECTIONS)
        if unknown:
            raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown))}")
        for name in SECTIONS:
            section = data.get(name)
            if section is not None and not isinstance(section, dict):
                raise ConfigError(
                    f"Config section '{name}' must be a mapping, got {type(section).__name__}",
                    key=name,
                )
        try:
            return cls(
                chunking=ChunkingPolicy.from_dict(data.get("chunking") or {}),
                embedding=EmbeddingPolicy.from_dict(data.get("embedding") or {}),
                retrieval=RetrievalPolicy.from_dict(data.get("retrieval") or {}),
                context=ContextPolicy.from_dict(data.get("context") or {}),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}") from e

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "EngineConfig":
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        logger.info(f"Loading config from: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        return cls.from_dict(data)

    @classmethod
    def load(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> "EngineConfig":
        """
        Load configuration: defaults, then YAML file, then environment.

        Args:
            config_path: Optional YAML config file
            environ: Environment mapping (default: os.environ)

        Returns:
            Validated EngineConfig
        """
        config = cls.from_yaml(config_path) if config_path else cls()
        config.apply_env_overrides(environ)
        config.validate()
        return config

    def apply_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> None:
        """Apply EXCERPTS_* environment variable overrides in place."""
        environ = os.environ if environ is None else environ
        for key, (section, attribute, parser) in ENV_OVERRIDES.items():
            raw = environ.get(key)
            if raw is None or raw == "":
                continue
            try:
                value = parser(raw)
            except ValueError as e:
                raise ConfigError(f"Cannot parse {key}={raw!r}: {e}", key=key) from e
            setattr(getattr(self, section), attribute, value)
            logger.debug(f"Config override {key} -> {section}.{attribute}={value!r}")

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ConfigError: If any size is non-positive or a ratio is outside [0, 1]
        """
        positive = {
            "chunking.target_words": self.chunking.target_words,
            "embedding.dimension": self.embedding.dimension,
            "embedding.position_horizon": self.embedding.position_horizon,
            "retrieval.default_limit": self.retrieval.default_limit,
            "context.max_context_chars": self.context.max_context_chars,
            "context.sentences_per_chunk": self.context.sentences_per_chunk,
        }
        for key, value in positive.items():
            if value <= 0:
                raise ConfigError(f"{key} must be positive, got {value}", key=key)

        non_negative = {
            "chunking.min_chunk_chars": self.chunking.min_chunk_chars,
            "chunking.min_sentence_chars": self.chunking.min_sentence_chars,
            "chunking.min_paragraph_chars": self.chunking.min_paragraph_chars,
            "chunking.word_window_trigger_chars": self.chunking.word_window_trigger_chars,
            "embedding.bigram_weight": self.embedding.bigram_weight,
            "embedding.min_token_length": self.embedding.min_token_length,
            "context.fallback_max": self.context.fallback_max,
        }
        for key, value in non_negative.items():
            if value < 0:
                raise ConfigError(f"{key} must be non-negative, got {value}", key=key)

        unit_interval = {
            "embedding.position_decay": self.embedding.position_decay,
            "retrieval.similarity_threshold": self.retrieval.similarity_threshold,
            "retrieval.dedup_overlap_threshold": self.retrieval.dedup_overlap_threshold,
            "retrieval.cosine_floor": self.retrieval.cosine_floor,
            "context.fallback_score": self.context.fallback_score,
        }
        for key, value in unit_interval.items():
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{key} must be within [0, 1], got {value}", key=key)
