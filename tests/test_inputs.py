# file: tests/test_inputs.py
from __future__ import annotations

import phonenumbers
import pytest
from phonenumbers.phonenumberutil import PhoneNumberFormat

from scamlookup.core.errors import InvalidLookupError
from scamlookup.core.inputs import (
    check_lookup,
    normalize_email,
    normalize_ip,
    normalize_phone,
    normalize_value,
    sanitize_number,
)


def test_check_lookup_lowercases_type_and_trims_value() -> None:
    assert check_lookup(" Phone ", "  +1 555-0100 ") == ("phone", "+1 555-0100")


@pytest.mark.parametrize(("lookup_type", "value"), [("sms", "x"), ("email", ""), ("ip", " \t")])
def test_check_lookup_rejects_bad_requests(lookup_type, value) -> None:
    with pytest.raises(InvalidLookupError):
        check_lookup(lookup_type, value)


def test_sanitize_number_converts_00_prefix() -> None:
    assert sanitize_number("0044 20 8366 1177") == "+442083661177"


def test_normalize_phone_to_e164() -> None:
    example = phonenumbers.example_number("GB")
    e164 = phonenumbers.format_number(example, PhoneNumberFormat.E164)
    national = phonenumbers.format_number(example, PhoneNumberFormat.NATIONAL)
    assert normalize_phone(e164) == e164
    assert normalize_phone(national, default_region="gb") == e164


def test_normalize_phone_requires_country_or_region() -> None:
    with pytest.raises(InvalidLookupError, match="country code"):
        normalize_phone("020 8366 1177")


def test_normalize_phone_rejects_invalid_numbers() -> None:
    with pytest.raises(InvalidLookupError):
        normalize_phone("+1 000")


def test_other_normalizers() -> None:
    assert normalize_email("Someone@Example.COM") == "Someone@example.com"
    assert normalize_ip(" 2001:DB8::1 ") == "2001:db8::1"
    assert normalize_value("domain", "Example.COM.") == "example.com"
    assert normalize_value("url", " https://x.example/A ") == "https://x.example/A"

    with pytest.raises(InvalidLookupError):
        normalize_email("no-at-sign")
    with pytest.raises(InvalidLookupError):
        normalize_ip("999.1.1.1")
