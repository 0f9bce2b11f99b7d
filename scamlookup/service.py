# file: scamlookup/service.py
"""
Aggregation entry points used by the HTTP layer and the CLI.

`perform_lookup` runs Dispatcher -> Normalizer -> Sanitizer for one
`(lookup_type, value)` pair and returns a sanitized `AggregatedResponse`.
`test_provider` is the admin diagnostic for a single provider record.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Sequence

import httpx

from scamlookup.config import LookupSettings
from scamlookup.core.dispatch import Dispatcher, ProviderCall
from scamlookup.core.errors import InvalidLookupError
from scamlookup.core.inputs import check_lookup, normalize_value
from scamlookup.core.models import AggregatedResponse, CallDescriptor, LookupResult
from scamlookup.core.sanitize import sanitize, sanitize_descriptor
from scamlookup.net.http import ProviderRateLimiter, build_async_client
from scamlookup.providers.loader import registry_from_settings
from scamlookup.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10

DEFAULT_TEST_INPUTS: dict[str, str] = {
    "phone": "+1234567890",
    "email": "test@example.com",
    "url": "https://example.com",
    "ip": "8.8.8.8",
    "domain": "example.com",
}


@dataclass(frozen=True, slots=True)
class ProviderDiagnostic:
    """Admin-facing result of testing one provider. Always sanitized."""

    provider_id: str
    provider_name: str
    lookup_type: str
    test_input: str
    result: LookupResult | None
    request: CallDescriptor | None
    skipped: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "providerId": self.provider_id,
            "providerName": self.provider_name,
            "lookupType": self.lookup_type,
            "testInput": self.test_input,
            "skipped": self.skipped,
            "result": self.result.to_dict() if self.result is not None else None,
            "request": self.request.to_dict() if self.request is not None else None,
        }


class LookupService:
    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        client: httpx.AsyncClient,
        settings: LookupSettings | None = None,
        rate_limiter: ProviderRateLimiter | None = None,
    ) -> None:
        self._registry = registry
        self._settings = settings or LookupSettings()
        if self._settings.enforce_rate_limits:
            limiter = rate_limiter or ProviderRateLimiter()
        else:
            # Advisory only: rate_limit_per_minute is stored but not consulted.
            limiter = None
        self._dispatcher = Dispatcher(registry, client=client, rate_limiter=limiter)

    @property
    def settings(self) -> LookupSettings:
        return self._settings

    def _prepare(self, lookup_type: str, value: str) -> tuple[str, str]:
        kind, cleaned = check_lookup(lookup_type, value)
        if self._settings.normalize_inputs:
            cleaned = normalize_value(kind, cleaned, default_region=self._settings.default_region)
        return kind, cleaned

    def _public_result(self, call: ProviderCall) -> LookupResult:
        result = sanitize(
            call.result,
            secrets=[call.config.secret_key],
            marker=self._settings.redaction_marker,
        )
        if not self._settings.include_raw_body:
            result = dataclasses.replace(result, raw_body=None)
        return result

    async def perform_lookup(self, lookup_type: str, value: str) -> AggregatedResponse:
        """
        Query every enabled provider for `lookup_type` and aggregate the answers.

        Zero configured providers yields an empty result list, and provider
        failures are reported per result; only registry read failures raise.

        Raises:
            InvalidLookupError: unknown lookup type or empty/invalid value.
        """

        kind, cleaned = self._prepare(lookup_type, value)
        calls = await self._dispatcher.run(kind, cleaned)
        results = [self._public_result(c) for c in calls]
        failed = sum(1 for r in results if not r.success)
        if failed:
            logger.info("%s lookup finished: %d/%d provider(s) failed", kind, failed, len(results))
        return AggregatedResponse(lookup_type=kind, value=cleaned, results=results)

    async def perform_batch(self, checks: Sequence[tuple[str, str]]) -> list[AggregatedResponse]:
        """Run up to `MAX_BATCH_SIZE` lookups concurrently; output follows input order."""

        if not checks:
            raise InvalidLookupError("Batch must contain at least one lookup")
        if len(checks) > MAX_BATCH_SIZE:
            raise InvalidLookupError(f"At most {MAX_BATCH_SIZE} lookups per batch")
        # Validate everything up front so a bad item never leaves others half-run.
        prepared = [self._prepare(t, v) for t, v in checks]
        return list(await asyncio.gather(*(self.perform_lookup(t, v) for t, v in prepared)))

    async def test_provider(
        self,
        provider_id: str,
        test_input: str | None = None,
        *,
        include_disabled: bool = False,
    ) -> ProviderDiagnostic:
        """
        Run one provider against a test value and echo the (sanitized) request.

        Raises:
            KeyError: unknown provider id.
        """

        config = await asyncio.to_thread(self._registry.get, provider_id)
        if config is None:
            raise KeyError(provider_id)

        value = (test_input or "").strip() or DEFAULT_TEST_INPUTS[config.lookup_type]
        if not config.enabled and not include_disabled:
            return ProviderDiagnostic(
                provider_id=config.id,
                provider_name=config.name,
                lookup_type=config.lookup_type,
                test_input=value,
                result=None,
                request=None,
                skipped="disabled",
            )

        call = await self._dispatcher.call_provider(config, value)
        request = None
        if call.descriptor is not None:
            request = sanitize_descriptor(
                call.descriptor,
                secrets=[config.secret_key],
                marker=self._settings.redaction_marker,
            )
        return ProviderDiagnostic(
            provider_id=config.id,
            provider_name=config.name,
            lookup_type=config.lookup_type,
            test_input=value,
            result=sanitize(
                call.result, secrets=[config.secret_key], marker=self._settings.redaction_marker
            ),
            request=request,
        )


@asynccontextmanager
async def open_service(
    settings: LookupSettings, *, registry: ProviderRegistry | None = None
) -> AsyncIterator[LookupService]:
    """Build a `LookupService` with its own HTTP client from settings."""

    if registry is None:
        registry = registry_from_settings(settings)
    async with build_async_client(settings.http_config()) as client:
        yield LookupService(registry, client=client, settings=settings)


async def perform_lookup(
    lookup_type: str, value: str, *, settings: LookupSettings
) -> AggregatedResponse:
    """One-shot convenience wrapper around `open_service(...).perform_lookup`."""

    async with open_service(settings) as service:
        return await service.perform_lookup(lookup_type, value)
