# file: tests/test_report.py
from __future__ import annotations

import csv
import json
from pathlib import Path

from scamlookup.core.models import AggregatedResponse, LookupResult
from scamlookup.io.report import CSV_FIELDS, export_csv, export_json


def _report() -> dict:
    response = AggregatedResponse(
        lookup_type="phone",
        value="+15550100",
        results=[
            LookupResult(
                provider_id="ipqs",
                provider_name="IPQS",
                success=True,
                elapsed_millis=120,
                http_status=200,
                normalized_fields={"riskScore": 85, "valid": True, "status": "malicious"},
                raw_body={"fraud_score": 85},
            ),
            LookupResult(
                provider_id="down",
                provider_name="Down",
                success=False,
                elapsed_millis=30,
                error_kind="network",
                error_message="ConnectError: refused",
            ),
        ],
    )
    return {"metadata": {"tool": "scamlookup"}, **response.to_dict()}


def test_export_csv_one_row_per_result(tmp_path: Path) -> None:
    path = tmp_path / "out.csv"
    export_csv(_report(), path)

    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        assert reader.fieldnames == CSV_FIELDS
        rows = list(reader)

    assert [r["provider_id"] for r in rows] == ["ipqs", "down"]
    assert rows[0]["row_index"] == "1"
    assert rows[0]["risk_score"] == "85"
    assert rows[0]["valid"] == "true"
    assert rows[0]["status"] == "malicious"
    assert rows[0]["lookup_type"] == "phone"
    assert rows[1]["success"] == "false"
    assert rows[1]["error_kind"] == "network"
    assert rows[1]["http_status"] == ""


def test_export_csv_flattens_batches(tmp_path: Path) -> None:
    path = tmp_path / "batch.csv"
    empty = {"lookupType": "ip", "value": "1.1.1.1", "results": []}
    export_csv({"batch": [_report(), empty, _report()]}, path)
    with path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["row_index"] for r in rows] == ["1", "2", "3", "4"]


def test_export_json_round_trips(tmp_path: Path) -> None:
    path = tmp_path / "out.json"
    report = _report()
    export_json(report, path)
    assert json.loads(path.read_text(encoding="utf-8")) == report
