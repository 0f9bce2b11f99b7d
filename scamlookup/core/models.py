# file: scamlookup/core/models.py
"""
Data model for provider configuration and lookup results.

`ProviderConfig` is operator-authored and validated with pydantic. Everything
produced per lookup (descriptors, outcomes, results) is an ephemeral frozen
dataclass that is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, get_args

from pydantic import BaseModel, Field, field_validator
from pydantic import ConfigDict as PydanticConfigDict
from pydantic.alias_generators import to_camel

from scamlookup.core.errors import ErrorKind

LookupType = Literal["phone", "email", "url", "ip", "domain"]

LOOKUP_TYPES: tuple[str, ...] = get_args(LookupType)

HTTP_METHODS = ("GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE")

# Methods that never carry a request body.
QUERY_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class ProviderConfig(BaseModel):
    """
    A registered external lookup service and its call templates.

    Accepts both snake_case and camelCase field names so records can come from
    YAML files written by hand or from JSON produced by an admin UI.
    """

    model_config = PydanticConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    lookup_type: LookupType
    enabled: bool = True
    endpoint_template: str = Field(min_length=1)
    http_method: str = "GET"
    header_templates: dict[str, str] = Field(default_factory=dict)
    body_template: str | None = None
    secret_key: str = Field(default="", repr=False)
    rate_limit_per_minute: int = Field(default=60, ge=0)
    timeout_seconds: float = Field(default=30, gt=0)
    description: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # SQL-backed stores hand out integer ids.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("lookup_type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("http_method")
    @classmethod
    def _check_method(cls, value: str) -> str:
        method = value.strip().upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {value!r}")
        return method

    @property
    def sends_body(self) -> bool:
        return self.body_template is not None and self.http_method not in QUERY_METHODS


@dataclass(frozen=True, slots=True)
class CallDescriptor:
    """A fully substituted outbound request for one provider."""

    provider_id: str
    method: str
    url: str
    headers: dict[str, str]
    body: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "providerId": self.provider_id,
            "method": self.method,
            "url": self.url,
            "headers": dict(self.headers),
            "body": self.body,
        }


@dataclass(frozen=True, slots=True)
class ProviderOutcome:
    """
    What happened on the wire for one provider call.

    `error_kind is None` means the provider answered with a 2xx status; the
    decoded JSON (or `None` for an empty body) is in `body`.
    """

    elapsed_millis: int
    status_code: int | None = None
    body: Any = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


@dataclass(frozen=True, slots=True)
class LookupResult:
    provider_id: str
    provider_name: str
    success: bool
    elapsed_millis: int
    http_status: int | None = None
    normalized_fields: dict[str, Any] = field(default_factory=dict)
    raw_body: Any = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None

    def to_dict(self, *, include_raw_body: bool = True) -> dict[str, Any]:
        out: dict[str, Any] = {
            "providerId": self.provider_id,
            "providerName": self.provider_name,
            "success": self.success,
            "httpStatus": self.http_status,
            "elapsedMillis": self.elapsed_millis,
            "normalizedFields": dict(self.normalized_fields),
            "errorKind": self.error_kind,
            "errorMessage": self.error_message,
        }
        if include_raw_body and self.raw_body is not None:
            out["rawBody"] = self.raw_body
        return out


@dataclass(frozen=True, slots=True)
class AggregatedResponse:
    """
    The answer to one lookup.

    `results` follows the registry's provider order, not response arrival order.
    """

    lookup_type: str
    value: str
    results: list[LookupResult]

    def to_dict(self, *, include_raw_body: bool = True) -> dict[str, Any]:
        return {
            "lookupType": self.lookup_type,
            "value": self.value,
            "totalProviders": len(self.results),
            "results": [r.to_dict(include_raw_body=include_raw_body) for r in self.results],
        }
