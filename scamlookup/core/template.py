# file: scamlookup/core/template.py
"""
Placeholder substitution for provider templates.

Templates use a closed vocabulary of `{{name}}` placeholders. There are no
expressions, loops or conditionals, so substitution always terminates and has
no side effects. All functions in this module are pure and do no I/O.

Unknown or unbound placeholders are left in the output as literal text: an
operator typo in one template should surface as an odd request for that one
provider, not as a crash.
"""

from __future__ import annotations

import json
import re
from typing import Literal, Mapping
from urllib.parse import quote

TemplateContext = Literal["url", "header", "json"]

PLACEHOLDER_NAMES = frozenset(
    {
        "input",
        "apiKey",
        "key",
        "phone",
        "email",
        "url",
        "ip",
        "domain",
    }
)

_PLACEHOLDER = re.compile(r"\{\{([A-Za-z_][A-Za-z0-9_]*)\}\}")

# C0 controls and DEL; CR/LF would let a value inject extra header lines.
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def escape_url(value: str) -> str:
    """Percent-encode a value for a URL path segment or query value."""

    return quote(value, safe="")


def escape_header(value: str) -> str:
    """Drop control characters so a value cannot break out of its header line."""

    return _CONTROL_CHARS.sub("", value)


def escape_json(value: str) -> str:
    """Return `value` as the inside of a JSON string literal (no quotes)."""

    return json.dumps(value)[1:-1]


_ESCAPERS = {
    "url": escape_url,
    "header": escape_header,
    "json": escape_json,
}


def find_placeholders(template: str) -> list[str]:
    """Return placeholder names in order of appearance (duplicates kept)."""

    return _PLACEHOLDER.findall(template)


def substitute(template: str, bindings: Mapping[str, str], context: TemplateContext) -> str:
    """
    Substitute known placeholders in `template` with escaped binding values.

    Args:
        template: Template text containing `{{name}}` placeholders.
        bindings: Placeholder name -> raw (unescaped) value.
        context: Where the result is used; selects the escaping rule.

    Returns:
        The substituted string. A template with no placeholders is returned
        unchanged.
    """

    try:
        escape = _ESCAPERS[context]
    except KeyError:
        raise ValueError(f"Unknown template context: {context!r}") from None

    if "{{" not in template:
        return template

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in PLACEHOLDER_NAMES or name not in bindings:
            return match.group(0)
        return escape(bindings[name])

    return _PLACEHOLDER.sub(_replace, template)
