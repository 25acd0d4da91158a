"""
Errors Module - Exception taxonomy for the analysis pipeline.
=============================================================

- TransientNetworkError: retried inside the request client, never escapes it
- ProviderRejectionError: terminal 4xx (other than 429) from a provider
- SearchProviderError / ModelProviderError: a provider call failed
- NoEvidenceError: nothing usable was found for a course
"""

from typing import Optional


class CoraError(Exception):
    """Base exception for the analyzer."""

    pass


class TransientNetworkError(CoraError):
    """A failure worth retrying: HTTP 5xx, 429, or a transport error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderRejectionError(CoraError):
    """A provider refused the request with a non-retryable status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class SearchProviderError(CoraError):
    """The search provider could not answer a query."""

    pass


class ModelProviderError(CoraError):
    """The language-model provider call failed."""

    pass


class NoEvidenceError(CoraError):
    """No usable summaries and no embedded rating were collected."""

    def __init__(self, message: str = "No evidence available: no usable summaries or embedded rating"):
        super().__init__(message)
