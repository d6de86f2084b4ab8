"""Unit tests for RetryingHttpClient."""

import httpx
import pytest

from sitelocalizer.core.exceptions import (
    AuthenticationError,
    ContentNotFoundError,
    RateLimitError,
    RequestFailedError,
    RetryExhaustedError,
    TransientNetworkError,
)
from sitelocalizer.core.http_client import CallCounter, RetryConfig, RetryingHttpClient, parse_retry_after


def fresh(response):
    """Copy a canned response so it can be served more than once."""
    return httpx.Response(response.status_code, headers=response.headers, content=response.content)


class Script:
    """MockTransport handler answering from a list of responses or exceptions."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, Exception):
            raise answer
        return fresh(answer)


def make_client(script, max_attempts=3, counter=None):
    sleeps = []

    async def sleep(delay):
        sleeps.append(delay)

    client = RetryingHttpClient(
        base_url="https://api.test",
        transport=httpx.MockTransport(script),
        retry_config=RetryConfig(max_attempts=max_attempts, initial_delay=1.0, backoff_factor=2.0),
        call_counter=counter,
        sleep=sleep,
    )
    return client, sleeps


class TestSuccess:
    """Test successful requests."""

    @pytest.mark.asyncio
    async def test_json_body_returned(self):
        script = Script(httpx.Response(200, json={"ok": True}))
        client, sleeps = make_client(script)

        assert await client.get("/thing", params={"a": "1"}) == {"ok": True}
        assert sleeps == []
        assert script.requests[0].url == "https://api.test/thing?a=1"
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_dict(self):
        client, _ = make_client(Script(httpx.Response(204)))
        assert await client.post("/thing", json={"x": 1}) == {}
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json_is_request_failure(self):
        client, _ = make_client(Script(httpx.Response(200, text="not json")))
        with pytest.raises(RequestFailedError):
            await client.get("/thing")
        await client.close()

    @pytest.mark.asyncio
    async def test_default_headers_sent(self):
        script = Script(httpx.Response(200, json={}))
        client = RetryingHttpClient(
            base_url="https://api.test",
            headers={"Authorization": "Bearer abc"},
            transport=httpx.MockTransport(script),
        )
        async with client:
            await client.get("/thing")
        assert script.requests[0].headers["Authorization"] == "Bearer abc"


class TestRetries:
    """Test backoff and retry behavior."""

    @pytest.mark.asyncio
    async def test_rate_limit_honors_retry_after(self):
        script = Script(
            httpx.Response(429, headers={"Retry-After": "7"}),
            httpx.Response(200, json={"done": 1}),
        )
        client, sleeps = make_client(script)

        assert await client.get("/thing") == {"done": 1}
        assert sleeps == [7.0]

    @pytest.mark.asyncio
    async def test_exponential_backoff_without_hint(self):
        script = Script(
            httpx.Response(429),
            httpx.Response(503),
            httpx.Response(200, json={}),
        )
        client, sleeps = make_client(script, max_attempts=4)

        await client.get("/thing")
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_transport_error_retried(self):
        script = Script(httpx.ConnectError("refused"), httpx.Response(200, json={"x": 1}))
        client, sleeps = make_client(script)

        assert await client.get("/thing") == {"x": 1}
        assert len(sleeps) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_exhaustion(self):
        script = Script(httpx.Response(429, headers={"Retry-After": "1"}))
        client, sleeps = make_client(script, max_attempts=3)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await client.get("/thing")

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.original_error, RateLimitError)
        assert exc_info.value.original_error.retry_after == 1.0
        assert len(script.requests) == 3
        assert len(sleeps) == 2

    @pytest.mark.asyncio
    async def test_network_exhaustion(self):
        client, _ = make_client(Script(httpx.ReadTimeout("slow")), max_attempts=2)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await client.get("/thing")
        assert isinstance(exc_info.value.original_error, TransientNetworkError)


class TestFatalStatuses:
    """Test statuses that are never retried."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_authentication(self, status):
        script = Script(httpx.Response(status, json={"message": "nope"}))
        client, sleeps = make_client(script)

        with pytest.raises(AuthenticationError):
            await client.get("/thing")
        assert len(script.requests) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_not_found(self):
        script = Script(httpx.Response(404))
        client, _ = make_client(script)

        with pytest.raises(ContentNotFoundError):
            await client.get("/missing")
        assert len(script.requests) == 1

    @pytest.mark.asyncio
    async def test_other_error_keeps_status_and_body(self):
        script = Script(httpx.Response(500, text="boom"))
        client, _ = make_client(script)

        with pytest.raises(RequestFailedError) as exc_info:
            await client.get("/thing")
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"
        assert len(script.requests) == 1


class TestCallCounter:
    """Test run-scoped call counting."""

    @pytest.mark.asyncio
    async def test_every_attempt_counted(self):
        counter = CallCounter()
        script = Script(httpx.Response(503), httpx.Response(200, json={}))
        client, _ = make_client(script, counter=counter)

        await client.get("/a")
        await client.get("/b")

        assert counter.count == 3

    def test_counters_are_independent(self):
        first, second = CallCounter(), CallCounter()
        first.increment()
        assert second.count == 0


class TestRetryAfterParsing:
    """Test Retry-After header parsing."""

    def test_seconds(self):
        assert parse_retry_after("12") == 12.0
        assert parse_retry_after(" 0.5 ") == 0.5

    def test_missing_or_garbage(self):
        assert parse_retry_after(None) is None
        assert parse_retry_after("") is None
        assert parse_retry_after("soon") is None

    def test_negative_clamped(self):
        assert parse_retry_after("-3") == 0.0

    def test_past_http_date_clamped(self):
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0
