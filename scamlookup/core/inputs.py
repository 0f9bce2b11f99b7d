# file: scamlookup/core/inputs.py
"""
Validation and optional canonicalization of caller-supplied lookup values.

Validation (known lookup type, non-empty value) always runs. Canonicalization
is opt-in: when it is off, providers see exactly what the caller typed.
"""

from __future__ import annotations

import ipaddress
import re

import phonenumbers
from phonenumbers import NumberParseException
from phonenumbers.phonenumberutil import PhoneNumberFormat

from scamlookup.core.errors import InvalidLookupError
from scamlookup.core.models import LOOKUP_TYPES

_NON_DIALABLE = re.compile(r"[^\d+]+")


def check_lookup(lookup_type: str, value: str) -> tuple[str, str]:
    """
    Validate a raw `(lookup_type, value)` request.

    Returns the lower-cased type and the value with surrounding whitespace removed.

    Raises:
        InvalidLookupError: unknown type or empty value.
    """

    kind = (lookup_type or "").strip().lower()
    if kind not in LOOKUP_TYPES:
        raise InvalidLookupError(
            f"Unsupported lookup type {lookup_type!r}; expected one of: {', '.join(LOOKUP_TYPES)}"
        )
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidLookupError("Lookup value must not be empty")
    return kind, cleaned


def sanitize_number(raw: str) -> str:
    """
    Strip separators from phone input and turn a `00` international prefix into `+`.

    This does not validate.
    """

    s = _NON_DIALABLE.sub("", raw.strip())
    if s.startswith("00"):
        s = f"+{s[2:]}"
    return s


def normalize_phone(raw: str, *, default_region: str | None = None) -> str:
    """
    Return the E.164 form of a phone number.

    Raises:
        InvalidLookupError: missing country code without a default region, or a
            number `phonenumbers` cannot parse or does not consider valid.
    """

    sanitized = sanitize_number(raw)
    if not sanitized.startswith("+") and not default_region:
        raise InvalidLookupError(
            "Missing country code. Provide an E.164 number (e.g., +14155552671) "
            "or configure a default region (e.g., US)."
        )
    region = default_region.upper() if default_region else None
    try:
        parsed = phonenumbers.parse(sanitized, region)
    except NumberParseException as exc:
        raise InvalidLookupError(f"Cannot parse phone number: {exc}") from exc
    if not phonenumbers.is_valid_number(parsed):
        raise InvalidLookupError("Invalid phone number.")
    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def normalize_email(raw: str) -> str:
    local, sep, domain = raw.strip().rpartition("@")
    if not sep or not local or not domain:
        raise InvalidLookupError("Email address must look like local@domain")
    return f"{local}@{domain.lower()}"


def normalize_domain(raw: str) -> str:
    domain = raw.strip().lower().rstrip(".")
    if not domain:
        raise InvalidLookupError("Domain must not be empty")
    return domain


def normalize_ip(raw: str) -> str:
    try:
        return str(ipaddress.ip_address(raw.strip()))
    except ValueError as exc:
        raise InvalidLookupError(f"Invalid IP address: {raw!r}") from exc


def normalize_value(lookup_type: str, value: str, *, default_region: str | None = None) -> str:
    """Canonicalize `value` for its lookup type (URLs are only trimmed)."""

    if lookup_type == "phone":
        return normalize_phone(value, default_region=default_region)
    if lookup_type == "email":
        return normalize_email(value)
    if lookup_type == "domain":
        return normalize_domain(value)
    if lookup_type == "ip":
        return normalize_ip(value)
    return value.strip()
