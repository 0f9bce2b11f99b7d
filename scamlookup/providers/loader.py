# file: scamlookup/providers/loader.py
"""
Load provider configurations from YAML and pick a registry backend.

YAML layout::

    providers:
      - id: ipqs-phone
        name: IPQualityScore Phone
        lookup_type: phone
        endpoint_template: "https://ipqualityscore.com/api/json/phone/{{apiKey}}/{{input}}"
        secret_key: "..."
        timeout_seconds: 10
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from scamlookup.core.models import ProviderConfig
from scamlookup.providers.registry import InMemoryProviderRegistry, ProviderRegistry
from scamlookup.providers.sqlite_store import SQLiteProviderRegistry

if TYPE_CHECKING:
    from scamlookup.config import LookupSettings

logger = logging.getLogger(__name__)


class ProviderFileError(ValueError):
    """Raised when a providers file cannot be read or a record is invalid."""


def parse_providers(raw: Any, *, source: str = "<data>") -> list[ProviderConfig]:
    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = raw.get("providers", [])
    if not isinstance(raw, list):
        raise ProviderFileError(f"{source}: expected a list under 'providers'")

    configs: list[ProviderConfig] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ProviderFileError(f"{source}: providers[{index}] must be a mapping")
        try:
            configs.append(ProviderConfig.model_validate(item))
        except ValidationError as exc:
            raise ProviderFileError(f"{source}: providers[{index}] is invalid: {exc}") from exc
    return configs


def load_providers_file(path: Path) -> list[ProviderConfig]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ProviderFileError(f"Cannot read providers file {path}: {exc}") from exc
    return parse_providers(raw, source=str(path))


def registry_from_settings(settings: LookupSettings) -> ProviderRegistry:
    """SQLite store if configured, else the YAML file, else an empty registry."""

    if settings.providers_db is not None:
        logger.debug("Using SQLite provider registry at %s", settings.providers_db)
        return SQLiteProviderRegistry(settings.providers_db)
    if settings.providers_file is not None:
        configs = load_providers_file(settings.providers_file)
        logger.debug("Loaded %d provider(s) from %s", len(configs), settings.providers_file)
        return InMemoryProviderRegistry(configs)
    logger.warning("No providers configured; every lookup will return an empty result list")
    return InMemoryProviderRegistry()
