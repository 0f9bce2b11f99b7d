# file: scamlookup/net/http.py
"""
Async HTTP utilities (httpx) and a per-provider token-bucket rate limiter.

Provider calls are single attempts: there is no retry or backoff here. The
limiter is only consulted when rate-limit enforcement is switched on.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable

import httpx

from scamlookup.core.models import CallDescriptor


@dataclass(frozen=True, slots=True)
class HttpClientConfig:
    user_agent: str = "scamlookup/0.1 (+https://example.invalid)"
    max_connections: int = 20
    follow_redirects: bool = False
    # Per-provider timeouts are applied per request; this is only the client default.
    default_timeout_seconds: float = 30.0


@asynccontextmanager
async def build_async_client(config: HttpClientConfig) -> AsyncIterator[httpx.AsyncClient]:
    timeout = httpx.Timeout(config.default_timeout_seconds)
    limits = httpx.Limits(max_connections=config.max_connections)
    headers = {"User-Agent": config.user_agent, "Accept": "application/json"}
    async with httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        headers=headers,
        follow_redirects=config.follow_redirects,
    ) as client:
        yield client


async def send_call(
    client: httpx.AsyncClient, descriptor: CallDescriptor, *, timeout_seconds: float
) -> httpx.Response:
    """
    Send one descriptor and return the fully read response.

    Transport errors and httpx timeouts propagate; status codes are not checked.
    """

    content = descriptor.body.encode("utf-8") if descriptor.body is not None else None
    return await client.request(
        descriptor.method,
        descriptor.url,
        headers=descriptor.headers,
        content=content,
        timeout=httpx.Timeout(timeout_seconds),
    )


class ProviderRateLimiter:
    """
    Token bucket per provider id.

    A provider allowed `n` requests per minute gets a bucket of `n` tokens that
    refills at `n / 60` tokens per second. One limiter instance is meant to be
    shared by every dispatch in the process so concurrent lookups against the
    same provider are throttled against each other.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._locks: dict[str, asyncio.Lock] = {}
        self._tokens: dict[str, float] = {}
        self._updated: dict[str, float] = {}

    def _refill(self, key: str, per_minute: int) -> float:
        now = self._clock()
        capacity = float(per_minute)
        tokens = self._tokens.get(key, capacity)
        last = self._updated.get(key, now)
        tokens = min(capacity, tokens + (now - last) * (capacity / 60.0))
        self._tokens[key] = tokens
        self._updated[key] = now
        return tokens

    def available(self, key: str, per_minute: int) -> float:
        """Tokens currently available for `key` (after refilling)."""

        if per_minute <= 0:
            return float("inf")
        return self._refill(key, per_minute)

    async def acquire(self, key: str, per_minute: int) -> None:
        """Wait until a token is available for `key`, then take it. 0 means unlimited."""

        if per_minute <= 0:
            return

        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock

        async with lock:
            tokens = self._refill(key, per_minute)
            if tokens < 1.0:
                await self._sleep((1.0 - tokens) * 60.0 / per_minute)
                tokens = self._refill(key, per_minute)
            self._tokens[key] = max(0.0, tokens - 1.0)
