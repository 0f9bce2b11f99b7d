# file: scamlookup/core/dispatch.py
"""
Concurrent fan-out of one lookup to every enabled provider of its type.

Each provider call runs in its own task inside its own error and timeout
boundary; the dispatcher joins all of them and returns results in registry
order. No provider failure escapes `dispatch`; only a failure to read the
registry itself propagates.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from scamlookup.core.builder import build_call
from scamlookup.core.errors import (
    ConfigurationError,
    HttpError,
    NetworkError,
    ProviderCallError,
    ProviderTimeoutError,
    UnknownError,
)
from scamlookup.core.models import CallDescriptor, LookupResult, ProviderConfig, ProviderOutcome
from scamlookup.core.normalize import normalize
from scamlookup.core.sanitize import sanitize_descriptor
from scamlookup.net.http import ProviderRateLimiter, send_call
from scamlookup.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProviderCall:
    """
    Everything one provider call produced.

    `descriptor` is the unsanitized request (None when building it failed); it
    must go through `sanitize_descriptor` before it is shown or logged.
    """

    config: ProviderConfig
    descriptor: CallDescriptor | None
    result: LookupResult


class Dispatcher:
    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        client: httpx.AsyncClient,
        rate_limiter: ProviderRateLimiter | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._registry = registry
        self._client = client
        self._rate_limiter = rate_limiter
        self._clock = clock

    async def dispatch(self, lookup_type: str, value: str) -> list[LookupResult]:
        """Call every enabled provider for `lookup_type` and return their results."""

        calls = await self.run(lookup_type, value)
        return [c.result for c in calls]

    async def run(self, lookup_type: str, value: str) -> list[ProviderCall]:
        # Registry failures are infrastructure failures and propagate.
        providers = await asyncio.to_thread(self._registry.find_enabled, lookup_type)
        if not providers:
            logger.info("No enabled providers for lookup type %s", lookup_type)
            return []

        logger.info("Dispatching %s lookup to %d provider(s)", lookup_type, len(providers))
        tasks = [asyncio.create_task(self.call_provider(p, value)) for p in providers]
        # gather keeps task order, so results follow registry order.
        return list(await asyncio.gather(*tasks))

    async def call_provider(self, config: ProviderConfig, value: str) -> ProviderCall:
        """Build, send and normalize a single provider call. Never raises provider errors."""

        try:
            descriptor = build_call(config, value)
        except ConfigurationError as exc:
            logger.warning("Provider %s skipped: configuration error: %s", config.id, exc)
            outcome = ProviderOutcome(
                elapsed_millis=0, error_kind="configuration", error_message=str(exc)
            )
            return ProviderCall(config, None, normalize(config.id, config.name, outcome))
        except Exception as exc:
            logger.warning(
                "Provider %s skipped: unexpected error while building request",
                config.id,
                exc_info=True,
            )
            outcome = ProviderOutcome(
                elapsed_millis=0,
                error_kind="unknown",
                error_message=f"{type(exc).__name__}: {exc}",
            )
            return ProviderCall(config, None, normalize(config.id, config.name, outcome))

        if logger.isEnabledFor(logging.DEBUG):
            echo = sanitize_descriptor(descriptor, secrets=[config.secret_key])
            logger.debug("Provider %s request: %s %s", config.id, echo.method, echo.url)

        try:
            outcome = await self._execute(config, descriptor)
            result = normalize(config.id, config.name, outcome)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(
                "Provider %s failed: unexpected error while handling the response",
                config.id,
                exc_info=True,
            )
            outcome = ProviderOutcome(
                elapsed_millis=0,
                error_kind="unknown",
                error_message=f"{type(exc).__name__}: {exc}",
            )
            return ProviderCall(config, descriptor, normalize(config.id, config.name, outcome))

        if outcome.ok:
            logger.debug("Provider %s answered in %d ms", config.id, outcome.elapsed_millis)
        else:
            logger.warning(
                "Provider %s failed (%s) after %d ms",
                config.id,
                outcome.error_kind,
                outcome.elapsed_millis,
            )
        return ProviderCall(config, descriptor, result)

    async def _send(self, config: ProviderConfig, descriptor: CallDescriptor) -> httpx.Response:
        if self._rate_limiter is not None:
            await self._rate_limiter.acquire(config.id, config.rate_limit_per_minute)
        return await send_call(self._client, descriptor, timeout_seconds=config.timeout_seconds)

    async def _attempt(
        self, config: ProviderConfig, descriptor: CallDescriptor
    ) -> tuple[int, Any]:
        """One bounded attempt; returns (status, decoded body) or raises a `ProviderCallError`."""

        try:
            response = await asyncio.wait_for(
                self._send(config, descriptor), timeout=config.timeout_seconds
            )
        except asyncio.CancelledError:
            raise
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise ProviderTimeoutError(
                f"No response within {config.timeout_seconds:g}s"
            ) from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"{type(exc).__name__}: {exc}") from exc
        except Exception as exc:
            raise UnknownError(f"{type(exc).__name__}: {exc}") from exc

        status = response.status_code
        if not 200 <= status < 300:
            raise HttpError(f"HTTP {status} {response.reason_phrase}".strip(), status_code=status)

        if not response.content.strip():
            return status, None
        try:
            return status, response.json()
        except ValueError as exc:
            raise UnknownError("Response body is not valid JSON") from exc
        except RecursionError as exc:
            raise UnknownError("Response body is nested too deeply to decode") from exc

    async def _execute(self, config: ProviderConfig, descriptor: CallDescriptor) -> ProviderOutcome:
        started = self._clock()
        try:
            status, body = await self._attempt(config, descriptor)
        except ProviderCallError as exc:
            if isinstance(exc, UnknownError) and exc.__cause__ is not None:
                logger.debug("Provider %s raised unexpectedly", config.id, exc_info=exc.__cause__)
            return ProviderOutcome(
                elapsed_millis=self._elapsed(started),
                status_code=exc.status_code if isinstance(exc, HttpError) else None,
                error_kind=exc.error_kind,
                error_message=str(exc),
            )
        return ProviderOutcome(elapsed_millis=self._elapsed(started), status_code=status, body=body)

    def _elapsed(self, started: float) -> int:
        return max(0, int(round((self._clock() - started) * 1000)))
