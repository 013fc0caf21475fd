"""
Custom exceptions for the excerpts retrieval engine.
"""


class ExcerptsError(Exception):
    """Base exception for all retrieval engine errors."""
    pass


class ConfigError(ExcerptsError):
    """
    Error in engine configuration.

    Raised when:
    - Configuration file is missing or invalid
    - Configuration values are out of valid range
    - An environment override cannot be parsed
    """

    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key


class DocumentValidationError(ExcerptsError):
    """
    Error validating an input document.

    Raised when:
    - A document is not a mapping or record
    - A required field is missing or not a string
    - The url is empty
    - The origin is not a known acquisition channel
    """

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class IndexInitializationError(ExcerptsError):
    """
    Error resetting or allocating the retrieval index.

    Raised when:
    - The index configuration cannot be validated
    - Entry storage cannot be allocated

    Never escapes the index: it is logged and reported as a failed
    initialization (no result for the session).
    """
    pass
