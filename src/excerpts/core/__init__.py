"""
Core subpackage for the excerpts retrieval engine.

Contains configuration (core.config), exceptions, and logging utilities.
"""

from .exceptions import (
    ExcerptsError,
    ConfigError,
    DocumentValidationError,
    IndexInitializationError,
)

__all__ = [
    "ExcerptsError",
    "ConfigError",
    "DocumentValidationError",
    "IndexInitializationError",
]
