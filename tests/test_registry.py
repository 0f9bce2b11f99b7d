# file: tests/test_registry.py
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from scamlookup.config import LookupSettings
from scamlookup.core.models import ProviderConfig
from scamlookup.providers import (
    InMemoryProviderRegistry,
    ProviderFileError,
    SQLiteProviderRegistry,
    admin_view,
    load_providers_file,
    mask_secret,
    parse_providers,
    public_view,
    registry_from_settings,
)


def _config(pid: str, lookup_type: str = "phone", **overrides) -> ProviderConfig:
    data = {
        "id": pid,
        "name": f"Provider {pid}",
        "lookup_type": lookup_type,
        "endpoint_template": "https://svc.example/{{input}}",
        "secret_key": "abcd1234wxyz",
    }
    data.update(overrides)
    return ProviderConfig.model_validate(data)


@pytest.fixture(params=["memory", "sqlite"])
def registry(request, tmp_path: Path):
    if request.param == "memory":
        return InMemoryProviderRegistry()
    return SQLiteProviderRegistry(tmp_path / "providers.sqlite3")


def test_find_enabled_filters_and_keeps_insertion_order(registry) -> None:
    for config in [
        _config("b"),
        _config("a"),
        _config("off", enabled=False),
        _config("mail", "email"),
        _config("c"),
    ]:
        registry.create(config)

    assert [c.id for c in registry.find_enabled("phone")] == ["b", "a", "c"]
    assert [c.id for c in registry.find_enabled("email")] == ["mail"]
    assert registry.find_enabled("ip") == []
    assert [c.id for c in registry.list_all()] == ["b", "a", "off", "mail", "c"]


def test_duplicate_ids_are_rejected(registry) -> None:
    registry.create(_config("a"))
    with pytest.raises(ValueError):
        registry.create(_config("a"))


def test_update_changes_fields_and_keeps_order(registry) -> None:
    registry.create(_config("a"))
    registry.create(_config("b"))

    updated = registry.update("a", enabled=False, timeoutSeconds=5)
    assert updated is not None
    assert updated.enabled is False
    assert updated.timeout_seconds == 5
    assert registry.get("a") == updated
    assert [c.id for c in registry.find_enabled("phone")] == ["b"]

    registry.update("a", enabled=True)
    assert [c.id for c in registry.find_enabled("phone")] == ["a", "b"]


def test_lookup_type_is_immutable(registry) -> None:
    registry.create(_config("a"))
    with pytest.raises(ValueError, match="immutable"):
        registry.update("a", lookup_type="email")
    assert registry.get("a").lookup_type == "phone"


def test_update_and_delete_unknown_ids(registry) -> None:
    assert registry.update("nope", enabled=False) is None
    assert registry.delete("nope") is False
    assert registry.get("nope") is None


def test_delete(registry) -> None:
    registry.create(_config("a"))
    assert registry.delete("a") is True
    assert registry.list_all() == []


def test_sqlite_registry_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "db" / "providers.sqlite3"
    SQLiteProviderRegistry(path).create(_config("a", header_templates={"X-Key": "{{apiKey}}"}))

    reopened = SQLiteProviderRegistry(path)
    (config,) = reopened.list_all()
    assert config.header_templates == {"X-Key": "{{apiKey}}"}
    assert config.secret_key == "abcd1234wxyz"


def test_provider_config_defaults_and_validation() -> None:
    config = ProviderConfig.model_validate(
        {
            "id": 7,
            "name": "N",
            "lookupType": "PHONE",
            "endpointTemplate": "https://x/",
            "httpMethod": "post",
        }
    )
    assert config.id == "7"
    assert config.lookup_type == "phone"
    assert config.http_method == "POST"
    assert config.rate_limit_per_minute == 60
    assert config.timeout_seconds == 30
    assert config.enabled is True
    assert "secret_key" not in repr(_config("a"))

    with pytest.raises(ValidationError):
        _config("a", lookup_type="fax")
    with pytest.raises(ValidationError):
        _config("a", http_method="TRACE")
    with pytest.raises(ValidationError):
        _config("a", timeout_seconds=0)


@pytest.mark.parametrize(
    ("secret", "masked"),
    [("", ""), ("abc", "***"), ("abcd", "***"), ("abcd1234wxyz", "***wxyz")],
)
def test_mask_secret(secret, masked) -> None:
    assert mask_secret(secret) == masked


def test_views() -> None:
    config = _config("a", description="Phone fraud scores")
    assert public_view(config) == {
        "id": "a",
        "name": "Provider a",
        "lookupType": "phone",
        "description": "Phone fraud scores",
        "enabled": True,
    }
    admin = admin_view(config)
    assert admin["secretKey"] == "***wxyz"
    assert admin["endpointTemplate"] == "https://svc.example/{{input}}"
    assert admin["rateLimitPerMinute"] == 60
    assert "abcd1234wxyz" not in str(admin)


def test_load_providers_file(tmp_path: Path) -> None:
    path = tmp_path / "providers.yaml"
    path.write_text(
        """
providers:
  - id: ipqs-phone
    name: IPQualityScore Phone
    lookup_type: phone
    endpoint_template: "https://ipqualityscore.com/api/json/phone/{{apiKey}}/{{input}}"
    secret_key: k
    timeout_seconds: 10
  - id: abuseipdb
    name: AbuseIPDB
    lookupType: ip
    endpointTemplate: "https://api.abuseipdb.com/api/v2/check?ipAddress={{ip}}"
    headerTemplates:
      Key: "{{apiKey}}"
""",
        encoding="utf-8",
    )
    configs = load_providers_file(path)
    assert [c.id for c in configs] == ["ipqs-phone", "abuseipdb"]
    assert configs[0].timeout_seconds == 10
    assert configs[1].header_templates == {"Key": "{{apiKey}}"}


def test_bad_providers_data_is_reported() -> None:
    assert parse_providers(None) == []
    with pytest.raises(ProviderFileError):
        parse_providers({"providers": "nope"})
    with pytest.raises(ProviderFileError, match=r"providers\[1\]"):
        parse_providers(
            [{"id": "a", "name": "A", "lookup_type": "ip", "endpoint_template": "x"}, {"id": "b"}]
        )


def test_registry_from_settings_prefers_database(tmp_path: Path) -> None:
    providers_file = tmp_path / "providers.yaml"
    providers_file.write_text("providers: []\n", encoding="utf-8")

    db = registry_from_settings(
        LookupSettings(providers_db=tmp_path / "p.sqlite3", providers_file=providers_file)
    )
    assert isinstance(db, SQLiteProviderRegistry)

    from_file = registry_from_settings(LookupSettings(providers_file=providers_file))
    assert isinstance(from_file, InMemoryProviderRegistry)
    assert from_file.list_all() == []

    assert registry_from_settings(LookupSettings()).list_all() == []
