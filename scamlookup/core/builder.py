# file: scamlookup/core/builder.py
"""
Turn a provider configuration plus a lookup value into a ready-to-send request.

The builder never performs I/O. A malformed endpoint is reported as a
`ConfigurationError` here so the provider's call is stopped before any network
activity.
"""

from __future__ import annotations

import re

import httpx

from scamlookup.core.errors import ConfigurationError
from scamlookup.core.models import CallDescriptor, ProviderConfig
from scamlookup.core.template import substitute

# RFC 7230 token characters.
_HEADER_NAME = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def build_bindings(config: ProviderConfig, value: str) -> dict[str, str]:
    """
    Bind the placeholder vocabulary for one call.

    Only the alias matching the provider's own lookup type is bound; a
    `{{email}}` placeholder in a phone provider stays literal.
    """

    return {
        "input": value,
        "apiKey": config.secret_key,
        "key": config.secret_key,
        config.lookup_type: value,
    }


def _check_url(provider_id: str, url: str) -> None:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, ValueError, TypeError) as exc:
        raise ConfigurationError(
            f"Provider {provider_id!r}: endpoint does not resolve to a valid URL ({exc})"
        ) from exc
    if parsed.scheme not in ("http", "https"):
        raise ConfigurationError(
            f"Provider {provider_id!r}: endpoint scheme must be http or https"
        )
    if not parsed.host:
        raise ConfigurationError(f"Provider {provider_id!r}: endpoint has no host")


def build_call(config: ProviderConfig, value: str) -> CallDescriptor:
    """
    Build the outbound request descriptor for `config` and `value`.

    Raises:
        ConfigurationError: if the endpoint is not an absolute http(s) URL after
            substitution, or a header name is not a valid HTTP token.
    """

    bindings = build_bindings(config, value)

    url = substitute(config.endpoint_template, bindings, "url")
    _check_url(config.id, url)

    headers: dict[str, str] = {}
    for name, template in config.header_templates.items():
        if not _HEADER_NAME.match(name):
            raise ConfigurationError(f"Provider {config.id!r}: invalid header name {name!r}")
        headers[name] = substitute(template, bindings, "header")

    body: str | None = None
    body_template = config.body_template
    if config.sends_body and body_template is not None:
        body = substitute(body_template, bindings, "json")
        if not any(k.lower() == "content-type" for k in headers):
            headers["Content-Type"] = "application/json"

    return CallDescriptor(
        provider_id=config.id,
        method=config.http_method,
        url=url,
        headers=headers,
        body=body,
    )
