"""Exception types raised by the LinguaFlow services."""
from __future__ import annotations


class LinguaFlowError(Exception):
    """Base exception for LinguaFlow errors."""


class ContentGenerationError(LinguaFlowError):
    """Raised when vocabulary, placement or story content cannot be produced.

    ``retryable`` is set for transient failures such as timeouts, where the
    same request may succeed if the learner tries again.
    """

    def __init__(self, message: str, *, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class StoryGenerationError(ContentGenerationError):
    """Raised when the end-of-session story cannot be produced."""


class ResponseDecodeError(LinguaFlowError, ValueError):
    """Raised when a provider response does not match the expected shape."""
