# file: scamlookup/io/report.py
"""
Report export helpers.

Reports are the plain dictionaries produced by `AggregatedResponse.to_dict()`
(optionally with a `metadata` block), so they are already sanitized and
JSON-serializable.
"""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

CSV_FIELDS = [
    "row_index",
    "lookup_type",
    "value",
    "provider_id",
    "provider_name",
    "success",
    "http_status",
    "status",
    "risk_score",
    "reputation",
    "valid",
    "elapsed_millis",
    "error_kind",
    "error_message",
]


def utc_now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def export_json(report: Mapping[str, Any], path: Path) -> None:
    """Write a report to disk as pretty-printed JSON."""

    path.write_text(json.dumps(report, indent=2, sort_keys=True), encoding="utf-8")


def _safe_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=True)


def _iter_result_rows(report: Mapping[str, Any]) -> Iterable[dict[str, str]]:
    results = report.get("results")
    if not isinstance(results, list):
        return []
    lookup_type = _safe_str(report.get("lookupType"))
    value = _safe_str(report.get("value"))
    rows: list[dict[str, str]] = []
    for item in results:
        if not isinstance(item, dict):
            continue
        fields = item.get("normalizedFields")
        if not isinstance(fields, dict):
            fields = {}
        rows.append(
            {
                "lookup_type": lookup_type,
                "value": value,
                "provider_id": _safe_str(item.get("providerId")),
                "provider_name": _safe_str(item.get("providerName")),
                "success": _safe_str(item.get("success")),
                "http_status": _safe_str(item.get("httpStatus")),
                "status": _safe_str(fields.get("status")),
                "risk_score": _safe_str(fields.get("riskScore")),
                "reputation": _safe_str(fields.get("reputation")),
                "valid": _safe_str(fields.get("valid")),
                "elapsed_millis": _safe_str(item.get("elapsedMillis")),
                "error_kind": _safe_str(item.get("errorKind")),
                "error_message": _safe_str(item.get("errorMessage")),
            }
        )
    return rows


def export_csv(report: Mapping[str, Any], path: Path) -> None:
    """
    Export a lookup report as CSV, one row per provider result.

    A batch report (a `batch` list of lookup reports) yields the rows of every
    lookup in order.
    """

    reports: list[Mapping[str, Any]]
    batch = report.get("batch")
    if isinstance(batch, list):
        reports = [r for r in batch if isinstance(r, dict)]
    else:
        reports = [report]

    rows: list[dict[str, str]] = []
    for r in reports:
        rows.extend(_iter_result_rows(r))

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for idx, row in enumerate(rows, start=1):
            row["row_index"] = str(idx)
            writer.writerow(row)
