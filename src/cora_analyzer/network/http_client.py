"""
HTTP Client Module - Outbound requests with retries and backoff.
================================================================

Every network-facing component goes through RetryingHttpClient:
- Up to max_retries retries (4 attempts by default)
- Retries only transient failures: HTTP 5xx, HTTP 429, transport errors
  (a non-HTTP scheme such as ftp:// fails at once)
- Exponential backoff capped at max_delay, plus up to 20% random jitter
- Never raises: exhaustion or rejection comes back as a failed RequestResult
"""

import asyncio
import json
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from cora_analyzer.shared.config import HttpConfig, get_settings
from cora_analyzer.shared.errors import ProviderRejectionError, TransientNetworkError
from cora_analyzer.shared.logging import get_logger

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Data Classes
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class RequestResult:
    """Outcome of a request after all retries."""

    url: str
    success: bool
    status_code: Optional[int] = None
    text: str = ""
    attempts: int = 0
    error: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.text)


class BackoffWait(wait_base):
    """tenacity wait strategy delegating to a 0-indexed backoff function."""

    def __init__(self, compute: Callable[[int], float]):
        self._compute = compute

    def __call__(self, retry_state: RetryCallState) -> float:
        return self._compute(retry_state.attempt_number - 1)


def _describe_error(response: httpx.Response) -> str:
    """Prefer the provider's own error message over the bare status line."""
    fallback = f"HTTP {response.status_code}"
    text = response.text
    try:
        body = response.json()
    except ValueError:
        return f"{fallback}: {text}" if text else fallback

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"{fallback}: {error['message']}"
        if isinstance(error, str):
            return f"{fallback}: {error}"
    return f"{fallback}: {text}" if text else fallback


# ─────────────────────────────────────────────────────────────────────────────
# Client Class
# ─────────────────────────────────────────────────────────────────────────────


class RetryingHttpClient:
    """
    Async HTTP client with exponential backoff and jitter.

    Example:
        >>> async with RetryingHttpClient() as client:
        ...     result = await client.request("https://example.com")
        ...     if result.success:
        ...         print(result.text[:100])
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: Optional[int] = None,
        initial_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        jitter_ratio: Optional[float] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        config: Optional[HttpConfig] = None,
    ):
        """
        Initialize the client.

        Args:
            client: Existing httpx.AsyncClient to use (not closed by us)
            max_retries: Retries after the first attempt
            initial_delay: Base delay in seconds for the first retry
            max_delay: Cap on the pre-jitter delay in seconds
            jitter_ratio: Upper bound of jitter as a fraction of the delay
            timeout: Per-request timeout in seconds
            user_agent: User agent string
            sleep: Awaitable sleep used between attempts
            rng: Random source for jitter
            config: HTTP settings (default from config)
        """
        http_config = config or get_settings().http

        self.max_retries = max_retries if max_retries is not None else http_config.max_retries
        self.initial_delay = (
            initial_delay if initial_delay is not None else http_config.initial_delay
        )
        self.max_delay = max_delay if max_delay is not None else http_config.max_delay
        self.jitter_ratio = jitter_ratio if jitter_ratio is not None else http_config.jitter_ratio
        self.timeout = timeout if timeout is not None else http_config.timeout
        self.user_agent = user_agent or http_config.user_agent

        self._sleep = sleep
        self._rng = rng or random.Random()
        self._client = client
        self._owns_client = client is None

        logger.debug(
            f"HTTP client initialized: retries={self.max_retries}, "
            f"delay={self.initial_delay}s..{self.max_delay}s, timeout={self.timeout}s"
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
        return self._client

    # ── Backoff ──────────────────────────────────────────────────────────────

    def base_delay(self, attempt: int) -> float:
        """Pre-jitter delay in seconds before retry number attempt (0-indexed)."""
        return min(self.max_delay, self.initial_delay * (2**attempt))

    def compute_backoff(self, attempt: int) -> float:
        """Delay in seconds including jitter of up to jitter_ratio of the base."""
        delay = self.base_delay(attempt)
        return delay + delay * self.jitter_ratio * self._rng.random()

    # ── Requests ─────────────────────────────────────────────────────────────

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]],
        headers: Optional[dict[str, str]],
        json_body: Any,
    ) -> httpx.Response:
        """Make one attempt and classify the outcome."""
        try:
            response = await self.client.request(
                method, url, params=params, headers=headers, json=json_body
            )
        except httpx.UnsupportedProtocol:
            raise
        except httpx.TransportError as e:
            raise TransientNetworkError(f"{type(e).__name__}: {e}") from e

        status = response.status_code
        if status >= 500 or status == 429:
            raise TransientNetworkError(_describe_error(response), status_code=status)
        if status >= 400:
            raise ProviderRejectionError(_describe_error(response), status_code=status)
        return response

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{self.max_retries + 1} failed: {exc}. "
            f"Retrying in {delay:.2f}s"
        )

    async def request(
        self,
        url: str,
        method: str = "GET",
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json: Any = None,
    ) -> RequestResult:
        """
        Perform a request, retrying transient failures.

        Args:
            url: Target URL
            method: HTTP method
            params: Query string parameters
            headers: Extra request headers
            json: JSON body

        Returns:
            RequestResult; success=False carries the last error
        """
        attempts = 0
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=BackoffWait(self.compute_backoff),
            retry=retry_if_exception_type(TransientNetworkError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    response = await self._send(method, url, params, headers, json)
        except TransientNetworkError as e:
            logger.error(f"All {attempts} attempts failed for {url}: {e}")
            return RequestResult(
                url=url, success=False, status_code=e.status_code, attempts=attempts, error=str(e)
            )
        except ProviderRejectionError as e:
            logger.error(f"Request rejected for {url}: {e}")
            return RequestResult(
                url=url, success=False, status_code=e.status_code, attempts=attempts, error=str(e)
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Request failed for {url}: {e}")
            return RequestResult(url=url, success=False, attempts=attempts, error=str(e))

        logger.debug(f"{method} {url} -> {response.status_code} after {attempts} attempt(s)")
        return RequestResult(
            url=url,
            success=True,
            status_code=response.status_code,
            text=response.text,
            attempts=attempts,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RetryingHttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.aclose()
