"""
Network Module - Outbound HTTP with retries and enrollment lookups.
===================================================================

- http_client: RetryingHttpClient with exponential backoff and jitter
- enrollments: Enrollment/waitlist history client
"""

from cora_analyzer.network.http_client import RequestResult, RetryingHttpClient
from cora_analyzer.network.enrollments import EnrollmentClient

__all__ = [
    "RequestResult",
    "RetryingHttpClient",
    "EnrollmentClient",
]
