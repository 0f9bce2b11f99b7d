# file: scamlookup/providers/registry.py
"""
Provider registry contract plus an in-memory implementation.

The registry is the only stateful piece of the lookup path. Dispatches only
read from it; operators create, edit and delete records through the same
interface.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any

from scamlookup.core.models import ProviderConfig


class ProviderRegistry(ABC):
    """Read and management contract for provider configurations."""

    @abstractmethod
    def find_enabled(self, lookup_type: str) -> list[ProviderConfig]:
        """Enabled providers for `lookup_type`, in stable insertion order."""

        raise NotImplementedError

    @abstractmethod
    def get(self, provider_id: str) -> ProviderConfig | None:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[ProviderConfig]:
        raise NotImplementedError

    @abstractmethod
    def create(self, config: ProviderConfig) -> ProviderConfig:
        """Add a provider. Raises `ValueError` if the id is already taken."""

        raise NotImplementedError

    @abstractmethod
    def update(self, provider_id: str, **changes: Any) -> ProviderConfig | None:
        """
        Apply `changes` (field names, snake_case or camelCase) to a provider.

        Returns the updated record, or None when the id is unknown. Raises
        `ValueError` when `changes` would alter the lookup type.
        """

        raise NotImplementedError

    @abstractmethod
    def delete(self, provider_id: str) -> bool:
        raise NotImplementedError


def apply_changes(config: ProviderConfig, changes: dict[str, Any]) -> ProviderConfig:
    """Validate `changes` against `config` and return the new record."""

    by_alias = {f.alias: name for name, f in ProviderConfig.model_fields.items() if f.alias}
    data = config.model_dump()
    for key, value in changes.items():
        data[by_alias.get(key, key)] = value
    incoming = ProviderConfig.model_validate(data)
    if incoming.lookup_type != config.lookup_type:
        raise ValueError(
            f"Provider {config.id!r}: lookup type is immutable "
            f"({config.lookup_type!r} -> {incoming.lookup_type!r})"
        )
    if incoming.id != config.id:
        raise ValueError(f"Provider {config.id!r}: id is immutable")
    return incoming


def mask_secret(secret: str) -> str:
    if len(secret) <= 4:
        return "***" if secret else ""
    return "***" + secret[-4:]


def public_view(config: ProviderConfig) -> dict[str, Any]:
    """Minimal listing safe for any signed-in user."""

    return {
        "id": config.id,
        "name": config.name,
        "lookupType": config.lookup_type,
        "description": config.description,
        "enabled": config.enabled,
    }


def admin_view(config: ProviderConfig) -> dict[str, Any]:
    """Full record for operators, with the secret key masked."""

    data = config.model_dump(by_alias=True)
    data["secretKey"] = mask_secret(config.secret_key)
    return data


class InMemoryProviderRegistry(ProviderRegistry):
    """Registry backed by an ordered dict; safe for concurrent readers and writers."""

    def __init__(self, configs: list[ProviderConfig] | None = None) -> None:
        self._lock = threading.Lock()
        self._configs: dict[str, ProviderConfig] = {}
        for config in configs or []:
            self.create(config)

    def find_enabled(self, lookup_type: str) -> list[ProviderConfig]:
        with self._lock:
            return [
                c for c in self._configs.values() if c.enabled and c.lookup_type == lookup_type
            ]

    def get(self, provider_id: str) -> ProviderConfig | None:
        with self._lock:
            return self._configs.get(provider_id)

    def list_all(self) -> list[ProviderConfig]:
        with self._lock:
            return list(self._configs.values())

    def create(self, config: ProviderConfig) -> ProviderConfig:
        with self._lock:
            if config.id in self._configs:
                raise ValueError(f"Provider id already exists: {config.id!r}")
            self._configs[config.id] = config
            return config

    def update(self, provider_id: str, **changes: Any) -> ProviderConfig | None:
        with self._lock:
            current = self._configs.get(provider_id)
            if current is None:
                return None
            updated = apply_changes(current, changes)
            self._configs[provider_id] = updated
            return updated

    def delete(self, provider_id: str) -> bool:
        with self._lock:
            return self._configs.pop(provider_id, None) is not None
