# file: scamlookup/core/sanitize.py
"""
Strip credentials and internal details before data crosses a trust boundary.

Applied unconditionally: to every result in a public response, and to the
request echo shown on the admin diagnostic path (which is rendered in a
browser, so a key must not show up in screenshots or shared screens either).
"""

from __future__ import annotations

import dataclasses
import json
import re
from typing import Any, Iterable, Mapping
from urllib.parse import quote, quote_plus

from scamlookup.core.models import CallDescriptor, LookupResult

REDACTED = "[REDACTED]"

_CREDENTIAL_HEADERS = frozenset(
    {"authorization", "proxy-authorization", "cookie", "set-cookie", "key"}
)
_CREDENTIAL_FRAGMENTS = ("api-key", "apikey", "api_key", "token", "secret", "password")

_CREDENTIAL_BODY_KEYS = frozenset(
    {
        "key",
        "apikey",
        "api_key",
        "api-key",
        "x-api-key",
        "access_token",
        "token",
        "secret",
        "password",
        "authorization",
    }
)

_URL = re.compile(r"https?://[^\s'\"<>]+", re.IGNORECASE)


def is_credential_header(name: str) -> bool:
    lowered = name.strip().lower()
    if lowered in _CREDENTIAL_HEADERS:
        return True
    return any(fragment in lowered for fragment in _CREDENTIAL_FRAGMENTS)


def secret_variants(secrets: Iterable[str]) -> list[str]:
    """
    Every textual form a secret can take once templated: raw, percent-encoded
    and JSON-escaped. Longest first so a longer form is never left half-redacted.
    """

    variants: set[str] = set()
    for secret in secrets:
        if not secret:
            continue
        variants.add(secret)
        variants.add(quote(secret, safe=""))
        variants.add(quote_plus(secret, safe=""))
        variants.add(json.dumps(secret)[1:-1])
    return sorted(variants, key=len, reverse=True)


def redact_text(text: str, variants: Iterable[str], *, marker: str = REDACTED) -> str:
    """
    Replace every variant in `text` with `marker`.

    A variant that is itself part of the marker is deleted instead, and any
    occurrence formed across a replacement boundary is deleted in a final loop
    (each pass shrinks the text, so it terminates).
    """

    variants = [v for v in variants if v]
    for variant in variants:
        if variant in text:
            text = text.replace(variant, "" if variant in marker else marker)
    while any(variant in text for variant in variants):
        for variant in variants:
            text = text.replace(variant, "")
    return text


def _redact_scalar(value: Any, variants: list[str], *, marker: str) -> Any:
    if isinstance(value, str):
        return redact_text(value, variants, marker=marker)
    # A numeric secret echoed back as a JSON number is still the secret.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        text = str(value)
        if any(variant in text for variant in variants if variant):
            return redact_text(text, variants, marker=marker)
    return value


def redact_value(value: Any, variants: list[str], *, marker: str = REDACTED) -> Any:
    """
    Redact secrets from a JSON-like value, including mapping keys and numbers.

    The value is walked with an explicit stack, so provider bodies of any
    nesting depth are handled without hitting the recursion limit.
    """

    root: list[Any] = [None]
    stack: list[tuple[Any, Any, Any]] = [(value, root, 0)]
    while stack:
        node, parent, slot = stack.pop()
        if isinstance(node, Mapping):
            out: dict[Any, Any] = {}
            parent[slot] = out
            pending = []
            for k, v in node.items():
                key = redact_text(k, variants, marker=marker) if isinstance(k, str) else k
                credential = isinstance(k, str) and k.lower() in _CREDENTIAL_BODY_KEYS
                if credential and v not in (None, ""):
                    out[key] = redact_text(marker, variants, marker=marker)
                else:
                    out[key] = None
                    pending.append((v, out, key))
            # Reversed so later keys still win when two keys redact to the same text.
            stack.extend(reversed(pending))
        elif isinstance(node, (list, tuple)):
            items: list[Any] = [None] * len(node)
            parent[slot] = items
            stack.extend((v, items, i) for i, v in enumerate(node))
        else:
            parent[slot] = _redact_scalar(node, variants, marker=marker)
    return root[0]


def _scrub_message(message: str | None, variants: list[str], *, marker: str) -> str | None:
    if message is None:
        return None
    return redact_text(_URL.sub(marker, message), variants, marker=marker)


def sanitize(
    result: LookupResult, *, secrets: Iterable[str] = (), marker: str = REDACTED
) -> LookupResult:
    """
    Return a copy of `result` with provider secrets and endpoints removed.

    Args:
        result: A normalized result.
        secrets: The provider's secret key(s); every textual form is redacted.
        marker: Replacement text.
    """

    variants = secret_variants(secrets)
    return dataclasses.replace(
        result,
        normalized_fields=redact_value(result.normalized_fields, variants, marker=marker),
        raw_body=redact_value(result.raw_body, variants, marker=marker),
        error_message=_scrub_message(result.error_message, variants, marker=marker),
    )


def sanitize_descriptor(
    descriptor: CallDescriptor, *, secrets: Iterable[str] = (), marker: str = REDACTED
) -> CallDescriptor:
    """
    Return a diagnostic-safe copy of a request descriptor.

    Credential headers are removed entirely; secret values are redacted from
    the URL, the remaining headers and the body.
    """

    variants = secret_variants(secrets)
    headers = {
        name: redact_text(value, variants, marker=marker)
        for name, value in descriptor.headers.items()
        if not is_credential_header(name)
    }
    body = descriptor.body
    if body is not None:
        body = redact_text(body, variants, marker=marker)
    return dataclasses.replace(
        descriptor,
        url=redact_text(descriptor.url, variants, marker=marker),
        headers=headers,
        body=body,
    )
