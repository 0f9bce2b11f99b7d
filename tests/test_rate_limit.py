# file: tests/test_rate_limit.py
from __future__ import annotations

import asyncio

import pytest

from scamlookup.net.http import ProviderRateLimiter


class _FakeTime:
    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.asyncio
async def test_bucket_allows_a_burst_then_waits() -> None:
    t = _FakeTime()
    limiter = ProviderRateLimiter(clock=t.clock, sleep=t.sleep)

    for _ in range(3):
        await limiter.acquire("p", 3)
    assert t.sleeps == []

    await limiter.acquire("p", 3)
    assert t.sleeps == [pytest.approx(20.0)]


@pytest.mark.asyncio
async def test_tokens_refill_over_time() -> None:
    t = _FakeTime()
    limiter = ProviderRateLimiter(clock=t.clock, sleep=t.sleep)

    await limiter.acquire("p", 60)
    assert limiter.available("p", 60) == pytest.approx(59.0)
    t.now += 0.5
    assert limiter.available("p", 60) == pytest.approx(59.5)
    t.now += 3600
    assert limiter.available("p", 60) == pytest.approx(60.0)


@pytest.mark.asyncio
async def test_buckets_are_per_provider_and_zero_is_unlimited() -> None:
    t = _FakeTime()
    limiter = ProviderRateLimiter(clock=t.clock, sleep=t.sleep)

    await limiter.acquire("a", 1)
    await limiter.acquire("b", 1)
    for _ in range(100):
        await limiter.acquire("free", 0)
    assert t.sleeps == []
    assert limiter.available("free", 0) == float("inf")


@pytest.mark.asyncio
async def test_concurrent_waiters_are_serialized() -> None:
    t = _FakeTime()
    limiter = ProviderRateLimiter(clock=t.clock, sleep=t.sleep)

    await asyncio.gather(*(limiter.acquire("p", 1) for _ in range(3)))
    assert t.sleeps == [pytest.approx(60.0), pytest.approx(60.0)]
