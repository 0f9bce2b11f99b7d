# file: scamlookup/providers/__init__.py
"""Provider registry backends and listing views."""

from __future__ import annotations

from .loader import ProviderFileError, load_providers_file, parse_providers, registry_from_settings
from .registry import (
    InMemoryProviderRegistry,
    ProviderRegistry,
    admin_view,
    mask_secret,
    public_view,
)
from .sqlite_store import SQLiteProviderRegistry

__all__ = [
    "ProviderFileError",
    "load_providers_file",
    "parse_providers",
    "registry_from_settings",
    "InMemoryProviderRegistry",
    "ProviderRegistry",
    "admin_view",
    "mask_secret",
    "public_view",
    "SQLiteProviderRegistry",
]
