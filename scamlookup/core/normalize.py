# file: scamlookup/core/normalize.py
"""
Best-effort normalization of heterogeneous provider responses.

Every provider invents its own JSON shape. Each semantic field has an ordered
list of known key aliases (dotted paths are nested lookups); the first alias
that yields a usable value wins and a missing field is simply absent.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from scamlookup.core.models import LookupResult, ProviderOutcome

logger = logging.getLogger(__name__)

RISK_SCORE_ALIASES: tuple[str, ...] = (
    "risk_score",
    "fraud_score",
    "riskScore",
    "abuseConfidenceScore",
    "abuse_confidence_score",
    "score",
    "details.fraud_score",
    "details.risk_score",
    "data.abuseConfidenceScore",
    "data.risk_score",
    "data.fraud_score",
    "data.score",
)

REPUTATION_ALIASES: tuple[str, ...] = (
    "reputation",
    "data.reputation",
    "details.reputation",
    "overall_reputation",
)

VALID_ALIASES: tuple[str, ...] = ("valid", "is_valid", "isValid", "data.valid", "data.is_valid")

STATUS_ALIASES: tuple[str, ...] = ("status", "data.status")

STRING_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "country": ("country", "country_code", "countryCode", "data.countryCode", "data.country"),
    "region": ("region", "data.region"),
    "carrier": ("carrier", "data.carrier"),
    "lineType": ("line_type", "lineType", "data.line_type", "data.lineType"),
    "lastSeen": ("lastReportedAt", "last_seen", "lastSeen", "data.lastReportedAt"),
}

REPORT_COUNT_ALIASES: tuple[str, ...] = (
    "totalReports",
    "total_reports",
    "reportCount",
    "data.totalReports",
)

# (flag key, display label)
RISK_FACTOR_FLAGS: tuple[tuple[str, str], ...] = (
    ("VOIP", "VOIP"),
    ("prepaid", "Prepaid"),
    ("risky", "Risky"),
    ("disposable", "Disposable"),
    ("suspect", "Suspicious"),
    ("recent_abuse", "Recent Abuse"),
    ("malware", "Malware"),
    ("phishing", "Phishing"),
    ("suspicious", "Suspicious"),
    ("vpn", "VPN"),
    ("tor", "Tor"),
    ("proxy", "Proxy"),
    ("bot_status", "Bot"),
)

MALICIOUS_THRESHOLD = 80.0
SUSPICIOUS_THRESHOLD = 20.0


def lookup_path(data: Any, path: str) -> Any:
    """Follow a dotted path through nested mappings; `None` when any step is missing."""

    current = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def _as_number(value: Any) -> float | int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            n = float(value.strip())
        except ValueError:
            return None
        return int(n) if n.is_integer() else n
    return None


def _as_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _as_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _as_count(value: Any) -> int | None:
    n = _as_number(value)
    if n is None or n < 0:
        return None
    return int(n)


def first_match(
    data: Any, aliases: Sequence[str], coerce: Callable[[Any], Any]
) -> Any:
    """Return the first alias value that survives `coerce` (which returns None to reject)."""

    for alias in aliases:
        value = coerce(lookup_path(data, alias))
        if value is not None:
            return value
    return None


def risk_factors(data: Any) -> list[str]:
    labels: list[str] = []
    scopes = [data]
    nested = lookup_path(data, "data")
    if isinstance(nested, Mapping):
        scopes.append(nested)
    for key, label in RISK_FACTOR_FLAGS:
        if any(isinstance(s, Mapping) and s.get(key) is True for s in scopes):
            if label not in labels:
                labels.append(label)
    return labels


def status_from_score(score: float | int | None) -> str:
    if score is None:
        return "unknown"
    if score >= MALICIOUS_THRESHOLD:
        return "malicious"
    if score >= SUSPICIOUS_THRESHOLD:
        return "suspicious"
    return "safe"


def extract_fields(data: Any) -> dict[str, Any]:
    """
    Extract the common summary fields from a decoded provider body.

    Only fields that were found are present in the returned mapping, except
    `status`, which is always derived.
    """

    fields: dict[str, Any] = {}
    if not isinstance(data, Mapping):
        fields["status"] = "unknown"
        return fields

    score = first_match(data, RISK_SCORE_ALIASES, _as_number)
    if score is not None:
        fields["riskScore"] = score

    reputation = first_match(data, REPUTATION_ALIASES, _as_text)
    if reputation is not None:
        fields["reputation"] = reputation

    valid = first_match(data, VALID_ALIASES, _as_bool)
    if valid is not None:
        fields["valid"] = valid

    for name, aliases in STRING_FIELD_ALIASES.items():
        value = first_match(data, aliases, _as_text)
        if value is not None:
            fields[name] = value

    count = first_match(data, REPORT_COUNT_ALIASES, _as_count)
    if count is not None:
        fields["reportCount"] = count

    factors = risk_factors(data)
    if factors:
        fields["riskFactors"] = factors

    fields["status"] = first_match(data, STATUS_ALIASES, _as_text) or status_from_score(score)
    return fields


def _reported_failure(body: Any) -> str | None:
    # Some providers answer 200 with {"success": false, "message": "..."}.
    if isinstance(body, Mapping) and body.get("success") is False:
        message = body.get("message") or body.get("error")
        return str(message) if message else "Provider reported failure"
    return None


def normalize(provider_id: str, provider_name: str, outcome: ProviderOutcome) -> LookupResult:
    """Map one provider outcome to the uniform `LookupResult` shape."""

    if not outcome.ok:
        return LookupResult(
            provider_id=provider_id,
            provider_name=provider_name,
            success=False,
            elapsed_millis=outcome.elapsed_millis,
            http_status=outcome.status_code,
            error_kind=outcome.error_kind,
            error_message=outcome.error_message,
        )

    failure = _reported_failure(outcome.body)
    if failure is not None:
        logger.debug("Provider %s reported failure in a %s body", provider_id, outcome.status_code)
        return LookupResult(
            provider_id=provider_id,
            provider_name=provider_name,
            success=False,
            elapsed_millis=outcome.elapsed_millis,
            http_status=outcome.status_code,
            error_kind="httpError",
            error_message=failure,
        )

    return LookupResult(
        provider_id=provider_id,
        provider_name=provider_name,
        success=True,
        elapsed_millis=outcome.elapsed_millis,
        http_status=outcome.status_code,
        normalized_fields=extract_fields(outcome.body),
        raw_body=outcome.body,
    )
