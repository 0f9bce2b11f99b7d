# file: scamlookup/config.py
"""
Configuration loader.

Design goals:
- No secrets in settings: provider keys live only in provider records.
- Support `.env` for local development.
- Support YAML for non-secret defaults.
- Validate configuration with pydantic.

Precedence (highest to lowest):
1. OS environment variables
2. `.env` values
3. YAML config file values
4. Code defaults
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, Field
from pydantic import ConfigDict as PydanticConfigDict

from scamlookup.core.sanitize import REDACTED
from scamlookup.net.http import HttpClientConfig


class LookupSettings(BaseModel):
    model_config = PydanticConfigDict(extra="ignore")

    # General
    log_level: str = "INFO"
    json_logging: bool = False

    # HTTP
    http_user_agent: str = "scamlookup/0.1 (+https://example.invalid)"
    http_max_connections: int = Field(default=20, ge=1)
    http_follow_redirects: bool = False

    # Provider registry
    providers_file: Path | None = None
    providers_db: Path | None = None

    # Lookup behaviour
    enforce_rate_limits: bool = False
    include_raw_body: bool = True
    normalize_inputs: bool = False
    default_region: str | None = None
    redaction_marker: str = Field(default=REDACTED, min_length=1)

    def http_config(self) -> HttpClientConfig:
        return HttpClientConfig(
            user_agent=self.http_user_agent,
            max_connections=self.http_max_connections,
            follow_redirects=self.http_follow_redirects,
        )


_ENV_MAP: dict[str, str] = {
    "SCAMLOOKUP_LOG_LEVEL": "log_level",
    "SCAMLOOKUP_JSON_LOGGING": "json_logging",
    "SCAMLOOKUP_HTTP_USER_AGENT": "http_user_agent",
    "SCAMLOOKUP_HTTP_MAX_CONNECTIONS": "http_max_connections",
    "SCAMLOOKUP_HTTP_FOLLOW_REDIRECTS": "http_follow_redirects",
    "SCAMLOOKUP_PROVIDERS_FILE": "providers_file",
    "SCAMLOOKUP_PROVIDERS_DB": "providers_db",
    "SCAMLOOKUP_ENFORCE_RATE_LIMITS": "enforce_rate_limits",
    "SCAMLOOKUP_INCLUDE_RAW_BODY": "include_raw_body",
    "SCAMLOOKUP_NORMALIZE_INPUTS": "normalize_inputs",
    "SCAMLOOKUP_DEFAULT_REGION": "default_region",
    "SCAMLOOKUP_REDACTION_MARKER": "redaction_marker",
}


def _read_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    return raw if isinstance(raw, dict) else {}


def _read_dotenv(path: Path) -> dict[str, str]:
    # dotenv_values does not mutate os.environ; it just parses the file.
    values = dotenv_values(path)
    out: dict[str, str] = {}
    for k, v in values.items():
        if isinstance(k, str) and isinstance(v, str):
            out[k] = v
    return out


def _overlay_env(target: dict[str, Any], env: dict[str, str]) -> None:
    for env_key, field_name in _ENV_MAP.items():
        if env_key in env:
            target[field_name] = env[env_key]


def load_settings(
    *, yaml_path: Path | None = None, env_path: Path | None = None
) -> LookupSettings:
    """
    Load settings from YAML and .env, with OS env overrides.

    Args:
        yaml_path: Optional YAML config path.
        env_path: Optional .env path (default: `.env` if present).
    """

    data: dict[str, Any] = {}

    if env_path is None:
        maybe = Path(".env")
        env_path = maybe if maybe.exists() else None

    dotenv = _read_dotenv(env_path) if env_path is not None and env_path.exists() else {}

    # YAML path resolution:
    # - explicit yaml_path wins
    # - else SCAMLOOKUP_CONFIG from OS env wins
    # - else SCAMLOOKUP_CONFIG from .env
    if yaml_path is None:
        cfg = os.environ.get("SCAMLOOKUP_CONFIG") or dotenv.get("SCAMLOOKUP_CONFIG")
        if cfg:
            yaml_path = Path(cfg)

    if yaml_path is not None and yaml_path.exists():
        data.update(_read_yaml(yaml_path))

    if dotenv:
        _overlay_env(data, dotenv)

    os_env: dict[str, str] = {k: v for k, v in os.environ.items() if k in _ENV_MAP}
    _overlay_env(data, os_env)

    return LookupSettings.model_validate(data)
