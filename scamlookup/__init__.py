# file: scamlookup/__init__.py
"""
scamlookup - template-driven multi-provider lookup aggregator.

Operators register external verification services (phone/email/URL/IP/domain
reputation checkers) purely through configuration. At query time the values are
substituted into each provider's templates, every enabled provider for the
lookup type is called concurrently, and the heterogeneous responses are
normalized and sanitized into a single aggregated answer.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
