"""
Header-driven rate limiting for outbound HTTP calls.

Every request to a rate-limited host (``api.github.com`` by default) goes
through that host's lock: the caller waits until the quota reset time when the
last response reported no remaining requests, issues the request while still
holding the lock, and records the new quota from the response headers. Only
one request per host is in flight at a time. Requests to any other host bypass
the limiter.

``requests`` is blocking, so each call runs in a worker thread through
:func:`asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional
from urllib.parse import urlparse

import requests

from docbot.datatypes.github_datatypes import RateLimitState
from docbot.util.logger import get_logger

logger = get_logger("rate_limiter")

RATE_LIMITED_STATUSES = frozenset({403, 429})


def _header_number(headers, name: str) -> Optional[float]:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class RateLimiter:
    """Gate in front of a ``requests.Session`` that honours ``X-RateLimit-*`` headers.

    Args:
        session: Session used for the actual calls; a new one is created when omitted.
        hosts: Host names whose requests are rate limited.
        max_retries: How many times a request rejected for exceeding the limit
            (HTTP 403/429 with an exhausted quota or ``Retry-After``) is retried.
        timeout: Per-request timeout in seconds passed to ``requests``.
        clock: Returns the current Unix time; injectable for tests.
        sleep: Coroutine used to wait for the reset; injectable for tests.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        hosts: Iterable[str] = ("api.github.com",),
        max_retries: int = 3,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._session = session or requests.Session()
        self.hosts = frozenset(host.lower() for host in hosts)
        self.max_retries = max(0, max_retries)
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._states: Dict[str, RateLimitState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def session(self) -> requests.Session:
        return self._session

    def is_limited(self, url: str) -> bool:
        return (urlparse(url).hostname or "").lower() in self.hosts

    def state_for(self, host: str) -> RateLimitState:
        return self._states.setdefault(host.lower(), RateLimitState())

    def _lock_for(self, host: str) -> asyncio.Lock:
        return self._locks.setdefault(host.lower(), asyncio.Lock())

    async def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        return await asyncio.to_thread(self._session.request, method, url, **kwargs)

    def _update_state(self, state: RateLimitState, response: requests.Response) -> None:
        remaining = _header_number(response.headers, "X-RateLimit-Remaining")
        reset_at = _header_number(response.headers, "X-RateLimit-Reset")
        if remaining is not None:
            state.remaining = int(remaining)
        if reset_at is not None:
            state.reset_at = reset_at

        retry_after = _header_number(response.headers, "Retry-After")
        if retry_after is not None and response.status_code in RATE_LIMITED_STATUSES:
            state.remaining = 0
            state.reset_at = max(state.reset_at, self._clock() + retry_after)

    def _was_rejected(self, state: RateLimitState, response: requests.Response) -> bool:
        """Return True when the host refused the request because the quota ran out."""
        if response.status_code not in RATE_LIMITED_STATUSES:
            return False
        return state.remaining == 0 or "Retry-After" in response.headers

    async def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Issue an HTTP request, waiting for the host's quota when needed.

        Raises:
            requests.RequestException: Transport errors are not caught here.
        """
        if not self.is_limited(url):
            return await self._send(method, url, **kwargs)

        host = (urlparse(url).hostname or "").lower()
        state = self.state_for(host)
        lock = self._lock_for(host)

        attempt = 0
        while True:
            async with lock:
                now = self._clock()
                if state.is_exhausted(now):
                    delay = state.seconds_until_reset(now)
                    logger.info("[RATE LIMIT] %s quota exhausted; waiting %.1f seconds before continuing.", host, delay)
                    await self._sleep(delay)

                response = await self._send(method, url, **kwargs)
                self._update_state(state, response)

            if self._was_rejected(state, response) and attempt < self.max_retries:
                attempt += 1
                logger.warning(
                    "[RATE LIMIT] %s rejected %s %s with HTTP %d; retrying (%d/%d).",
                    host, method, url, response.status_code, attempt, self.max_retries,
                )
                response.close()
                continue
            return response

    async def get(self, url: str, **kwargs: Any) -> requests.Response:
        return await self.request("GET", url, **kwargs)

    def close(self) -> None:
        self._session.close()
