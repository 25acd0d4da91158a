"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- Course identities and sample pages
- In-memory store and a controllable clock
- HTTP clients backed by httpx.MockTransport
- Fake search/model providers
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx
import pytest

# Keep tests offline regardless of the developer's .env
os.environ["CORA_USE_STUBS"] = "true"


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeSearchProvider:
    """Search provider answering from a query → results mapping."""

    def __init__(self, responses: Optional[dict[str, list]] = None, error: Optional[Exception] = None):
        self.responses = responses or {}
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def search(self, query: str, site: str):
        self.calls.append((query, site))
        if self.error is not None:
            raise self.error
        return list(self.responses.get(query, []))


class ScriptedModelProvider:
    """Model provider returning fixed text per request type."""

    model_name = "fake-model"

    def __init__(self, responses: Optional[dict[str, str]] = None, fail_on: tuple[str, ...] = ()):
        self.responses = responses or {}
        self.fail_on = fail_on
        self.requests: list = []

    async def generate(self, request):
        from cora_analyzer.llm.providers import ModelResponse

        self.requests.append(request)
        if request.request_type in self.fail_on:
            raise RuntimeError(f"{request.request_type} unavailable")
        return ModelResponse(
            content=self.responses.get(request.request_type, ""),
            model=self.model_name,
            usage={"total_tokens": 42},
        )


# ─────────────────────────────────────────────────────────────────────────────
# Identity Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def identity():
    """CS 1110 taught by John Smith."""
    from cora_analyzer.shared.schemas import CourseIdentity

    return CourseIdentity(
        course_number="CS 1110",
        course_name="Introduction to Programming",
        professor_name="John Smith",
    )


@pytest.fixture
def identity_without_professor():
    from cora_analyzer.shared.schemas import CourseIdentity

    return CourseIdentity(course_number="CS 2130", course_name="Computer Systems and Organization")


@pytest.fixture
def sample_rating():
    """A parsed model rating."""
    from cora_analyzer.shared.schemas import FinalRating

    return FinalRating(
        overall_rating=4.2,
        difficulty_rating=3.1,
        course_summary="Clear lectures and weekly labs.",
        professor_summary="Engaging and fair.",
        full_analysis="OVERALL RATING: 4.2",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Store and Clock Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def memory_store():
    from cora_analyzer.shared.storage import MemoryStore

    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_config():
    from cora_analyzer.shared.config import CacheConfig

    return CacheConfig()


# ─────────────────────────────────────────────────────────────────────────────
# HTTP Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_http(sleep_recorder: SleepRecorder) -> Callable[..., Any]:
    """Build a RetryingHttpClient whose requests are answered by handler."""
    from cora_analyzer.network.http_client import RetryingHttpClient
    from cora_analyzer.shared.config import HttpConfig

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RetryingHttpClient(
            client=client,
            sleep=sleep_recorder,
            config=HttpConfig(),
            **kwargs,
        )

    return factory


# ─────────────────────────────────────────────────────────────────────────────
# Provider Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def final_rating_text() -> str:
    return (
        "OVERALL RATING: 3.8\n\n"
        "DIFFICULTY RATING: 2.9\n\n"
        "COURSE CONTENT SUMMARY:\nA gentle introduction to Python with weekly projects.\n\n"
        "PROFESSOR SUMMARY:\nJohn Smith is patient and explains clearly.\n"
    )


@pytest.fixture
def model_provider(final_rating_text: str) -> ScriptedModelProvider:
    return ScriptedModelProvider(
        responses={
            "CONTENT_FILTERING": "Smith's CS 1110 lectures are clear.",
            "PAGE_SUMMARIZATION": 'SUMMARY: Clear lectures.\nQUOTE: "CS 1110 is great"',
            "FINAL_RATING": final_rating_text,
        }
    )


@pytest.fixture
def audit_log(memory_store):
    from cora_analyzer.llm.audit import AuditLog
    from cora_analyzer.shared.config import AuditConfig

    return AuditLog(memory_store, config=AuditConfig())


@pytest.fixture
def gateway(model_provider, audit_log):
    from cora_analyzer.llm.gateway import ModelGateway
    from cora_analyzer.shared.config import GenerationConfig

    return ModelGateway(model_provider, audit_log, config=GenerationConfig())


# ─────────────────────────────────────────────────────────────────────────────
# Sample Page Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def aggregator_html() -> str:
    """An aggregator course page with an embedded rating."""
    return """
    <html>
    <head>
        <title>CS 1110 - John Smith</title>
        <style>.rating { color: green; }</style>
        <script>window.tracking = "Overall: 1.0";</script>
    </head>
    <body>
        <h1>CS 1110 &amp; John Smith</h1>
        <div>Overall Rating: 4.5 / 5</div>
        <div>Difficulty: 2.8 / 5</div>
        <p>Students say the labs are &quot;worth it&quot;.</p>
    </body>
    </html>
    """
