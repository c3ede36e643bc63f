"""
JSON-over-HTTP plumbing shared by the external feeds.

DESIGN DECISION: The feeds are plain GET requests returning JSON, so we
use urllib behind a tiny transport callable instead of an HTTP SDK.
The transport is injectable; tests pass a fake one and never touch the
network.

The blocking request runs in a worker thread so the caller's event loop
stays responsive while a feed is slow. Network-level failures are retried
with tenacity; an HTTP error status is an answer, not a glitch, and is
reported immediately.
"""

import asyncio
import json
from http.client import HTTPException
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from budgetbuddy.audit.logger import get_logger

logger = get_logger(__name__)

# Connection-level failures worth another attempt
RETRYABLE_ERRORS = (OSError, HTTPException)


class ExternalServiceError(Exception):
    """
    Base exception for feed failures.

    `service` labels which feed failed and `display_name` is how the UI
    names it;
    `status` is the HTTP status when the feed answered with an error.
    """

    service = "external"
    display_name = "External API"

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: bytes


Transport = Callable[[str, dict[str, str], float], HttpResponse]


def urllib_transport(url: str, headers: dict[str, str], timeout: float) -> HttpResponse:
    """
    Perform a blocking GET.

    Error statuses come back as a response; connection problems raise
    OSError (URLError, timeouts) or HTTPException (truncated bodies,
    bad status lines). A malformed URL raises ValueError.
    """
    request = Request(url, headers=headers, method="GET")
    try:
        with urlopen(request, timeout=timeout) as response:
            return HttpResponse(status=response.status, body=response.read())
    except HTTPError as e:
        return HttpResponse(status=e.code, body=b"")


class JsonHttpClient:
    """GET a URL and decode JSON, raising one labelled error type on failure."""

    USER_AGENT = "BudgetBuddy/1.0"

    def __init__(
        self,
        error_cls: type[ExternalServiceError],
        timeout_seconds: float = 10.0,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 1.0,
        transport: Optional[Transport] = None,
    ):
        self._error_cls = error_cls
        self._timeout = timeout_seconds
        self._attempts = retry_attempts
        self._backoff = retry_backoff_seconds
        self._transport = transport or urllib_transport

    async def _send(self, url: str, headers: dict[str, str]) -> HttpResponse:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._backoff, max=10),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        ):
            with attempt:
                return await asyncio.to_thread(self._transport, url, headers, self._timeout)
        raise AssertionError("unreachable")

    async def get_json(self, url: str, headers: Optional[dict[str, str]] = None) -> Any:
        """
        Fetch and decode a JSON document.

        Raises:
            ExternalServiceError subclass: unreachable host, broken
            response, malformed URL, error status, or a body that isn't JSON
        """
        service = self._error_cls.service
        label = self._error_cls.display_name
        request_headers = {"User-Agent": self.USER_AGENT, "Accept": "application/json"}
        request_headers.update(headers or {})

        try:
            response = await self._send(url, request_headers)
        except RETRYABLE_ERRORS as e:
            logger.warning("feed_unreachable", service=service, url=url, error=str(e))
            raise self._error_cls(f"{label} unreachable: {e}") from e
        except ValueError as e:
            logger.error("feed_bad_request", service=service, url=url, error=str(e))
            raise self._error_cls(f"{label} request failed: {e}") from e

        if not 200 <= response.status < 300:
            logger.warning("feed_error_status", service=service, url=url, status=response.status)
            raise self._error_cls(f"{label} error: {response.status}", status=response.status)

        try:
            return json.loads(response.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise self._error_cls(f"{label} returned invalid JSON", status=response.status) from e
