"""
Outbound HTTP client with exponential backoff.

Every call to the content store and to the translation backend goes
through RetryingHttpClient:
- 429 answers are retried, honoring a Retry-After hint when present
- connection errors, timeouts and 502/503/504 are retried with backoff
- 401/403 and 404 are mapped to fatal errors and never retried
- each attempt is counted on a run-scoped CallCounter
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from sitelocalizer.config import MAX_HTTP_ATTEMPTS, RETRY_BASE_DELAY, REQUEST_TIMEOUT
from .exceptions import (
    AuthenticationError,
    ContentNotFoundError,
    RateLimitError,
    RequestFailedError,
    RetryExhaustedError,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = (502, 503, 504)


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (first call included)
        initial_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        backoff_factor: Multiplier for exponential backoff
        jitter: Add random jitter to delays (0.0-1.0)
    """
    max_attempts: int = MAX_HTTP_ATTEMPTS
    initial_delay: float = RETRY_BASE_DELAY
    max_delay: float = 60.0
    backoff_factor: float = 2.0
    jitter: float = 0.0


class CallCounter:
    """Counts outbound calls for one run.

    Shared by the clients of a run and read by the orchestrator; only ever
    touched from the event loop thread.
    """

    def __init__(self):
        self.count = 0

    def increment(self) -> int:
        self.count += 1
        return self.count


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header (delta-seconds or HTTP-date)."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class RetryingHttpClient:
    """Async JSON HTTP client wrapping httpx.AsyncClient with retry logic."""

    def __init__(
        self,
        base_url: str = "",
        headers: Optional[Dict[str, str]] = None,
        timeout: float = REQUEST_TIMEOUT,
        retry_config: Optional[RetryConfig] = None,
        call_counter: Optional[CallCounter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            base_url: Prefix for relative request URLs
            headers: Default headers sent with every request
            timeout: Request timeout in seconds
            retry_config: Backoff settings
            call_counter: Run-scoped counter incremented on every attempt
            transport: Optional httpx transport (tests use httpx.MockTransport)
            sleep: Awaitable used between attempts
        """
        self.base_url = base_url
        self.headers = dict(headers or {})
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self.call_counter = call_counter or CallCounter()
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a persistent HTTP client with connection pooling"""
        if self._client is None:
            kwargs: Dict[str, Any] = dict(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(self.timeout),
                headers=self.headers,
            )
            if self.base_url:
                kwargs['base_url'] = self.base_url
            if self._transport is not None:
                kwargs['transport'] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> 'RetryingHttpClient':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _calculate_delay(self, attempt: int) -> float:
        config = self.retry_config
        delay = config.initial_delay * (config.backoff_factor ** (attempt - 1))
        delay = min(delay, config.max_delay)
        if config.jitter > 0:
            delay += delay * config.jitter * random.random()
        return delay

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RequestFailedError(
                f"Invalid JSON in response from {response.request.url}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def _raise_for_status(self, response: httpx.Response, method: str, url: str):
        status = response.status_code
        context = {'method': method, 'url': url}
        if status in (401, 403):
            raise AuthenticationError(f"Authentication failed ({status})", context=context)
        if status == 404:
            raise ContentNotFoundError(f"Resource not found: {url}", context=context)
        raise RequestFailedError(
            f"{method} {url} failed with status {status}",
            status_code=status,
            body=response.text,
            context=context,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            AuthenticationError: 401/403
            ContentNotFoundError: 404
            RequestFailedError: Any other non-success status
            RetryExhaustedError: Rate limit or transient failures outlasted max_attempts
        """
        client = await self._get_client()
        max_attempts = max(1, self.retry_config.max_attempts)
        attempt = 0
        last_error: Optional[Exception] = None

        while attempt < max_attempts:
            attempt += 1
            self.call_counter.increment()
            delay: Optional[float] = None

            try:
                response = await client.request(
                    method, url, params=params, json=json, headers=headers
                )
            except httpx.TransportError as e:
                last_error = TransientNetworkError(
                    f"{type(e).__name__}: {e}", context={'method': method, 'url': url}
                )
            else:
                if response.status_code == 429:
                    retry_after = parse_retry_after(response.headers.get('Retry-After'))
                    last_error = RateLimitError(
                        f"Rate limited on {method} {url}", retry_after=retry_after
                    )
                    if retry_after is not None:
                        delay = min(retry_after, self.retry_config.max_delay)
                elif response.status_code in TRANSIENT_STATUSES:
                    last_error = TransientNetworkError(
                        f"{method} {url} answered {response.status_code}",
                        context={'status_code': response.status_code},
                    )
                elif response.is_success:
                    if attempt > 1:
                        logger.info(f"{method} {url} succeeded after {attempt} attempts")
                    return self._decode(response)
                else:
                    self._raise_for_status(response, method, url)

            if attempt >= max_attempts:
                break

            if delay is None:
                delay = self._calculate_delay(attempt)
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed for {method} {url}: "
                f"{type(last_error).__name__}. Retrying in {delay:.2f}s..."
            )
            await self._sleep(delay)

        logger.error(f"Retry exhausted for {method} {url} after {attempt} attempts: {last_error}")
        raise RetryExhaustedError(
            f"Maximum retry attempts ({max_attempts}) exceeded for {method} {url}",
            original_error=last_error,
            attempts=attempt,
        )

    async def get(self, url: str, **kwargs) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> Any:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> Any:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs) -> Any:
        return await self.request("PATCH", url, **kwargs)
