# file: scamlookup/logging_config.py
"""
Logging configuration.

scamlookup uses standard library logging. Two things matter for this package:

- httpx logs every request line (including the full URL) at INFO. Provider URLs
  routinely embed API keys, so those loggers are capped at WARNING.
- `SecretRedactingFilter` scrubs known provider secrets from any record that
  does get emitted, as a last line of defence.

A JSON formatter is available for container/CI log ingestion.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Iterable

from scamlookup.core.sanitize import REDACTED, redact_text, secret_variants

# Attributes every LogRecord has; anything else was passed via `extra=`.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

# Loggers that print outbound URLs.
_URL_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for k, v in record.__dict__.items():
            if k in _RECORD_ATTRS or k.startswith("_"):
                continue
            payload[k] = v
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


class SecretRedactingFilter(logging.Filter):
    """Replace registered secret values in log messages with a marker."""

    def __init__(self, secrets: Iterable[str] = (), *, marker: str = REDACTED) -> None:
        super().__init__()
        self._marker = marker
        self._variants: list[str] = []
        self.add_secrets(secrets)

    def add_secrets(self, secrets: Iterable[str]) -> None:
        self._variants = secret_variants([*self._variants, *secrets])

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._variants:
            return True
        message = record.getMessage()
        redacted = redact_text(message, self._variants, marker=self._marker)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(
    *,
    level: str = "INFO",
    json_logging: bool = False,
    secrets: Iterable[str] = (),
    marker: str = REDACTED,
) -> SecretRedactingFilter:
    """
    Configure root logging for CLI or service use.

    Returns the installed redaction filter so callers can register more secrets
    later (e.g. after loading provider records).
    """

    root = logging.getLogger()
    root.setLevel(level.upper())

    # Replace existing handlers to avoid duplicate logs when called more than once.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    if json_logging:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    redactor = SecretRedactingFilter(secrets, marker=marker)
    handler.addFilter(redactor)
    root.addHandler(handler)

    for name in _URL_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return redactor
