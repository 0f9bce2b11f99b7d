# file: tests/test_template.py
from __future__ import annotations

import json
from urllib.parse import parse_qs, urlsplit

import pytest

from scamlookup.core.template import escape_header, find_placeholders, substitute


@pytest.mark.parametrize("context", ["url", "header", "json"])
def test_template_without_placeholders_is_returned_unchanged(context) -> None:
    template = "https://api.example/v1/lookup?fixed=1&x=%20"
    assert substitute(template, {"input": "anything", "apiKey": "k"}, context) == template
    assert substitute(template, {}, context) == template


def test_url_context_never_leaks_a_raw_ampersand_into_the_query() -> None:
    value = 'a&b=c "quoted" \x01 Ωmega'
    bindings = {"input": value, "apiKey": "K"}
    url = substitute("https://x.example/q?v={{input}}&k={{apiKey}}", bindings, "url")

    query = urlsplit(url).query
    assert query.count("&") == 1
    assert parse_qs(query) == {"v": [value], "k": ["K"]}


def test_url_context_encodes_path_separators() -> None:
    url = substitute("https://x.example/phone/{{input}}", {"input": "+1 555/0100"}, "url")
    assert url == "https://x.example/phone/%2B1%20555%2F0100"


def test_json_context_yields_embeddable_string_content() -> None:
    value = 'he said "hi"\n\tback\\slash \x07 Ωmega'
    body = substitute('{"q": "{{input}}"}', {"input": value}, "json")
    assert json.loads(body) == {"q": value}


def test_header_context_strips_line_breaks() -> None:
    value = "token\r\nX-Injected: 1"
    out = substitute("Bearer {{apiKey}}", {"apiKey": value}, "header")
    assert out == "Bearer tokenX-Injected: 1"
    assert escape_header("a\x00b\x7fc") == "abc"


def test_unknown_and_unbound_placeholders_stay_literal() -> None:
    bindings = {"input": "v"}
    assert substitute("{{input}}-{{nope}}-{{email}}", bindings, "url") == "v-{{nope}}-{{email}}"


def test_repeated_placeholders_are_all_substituted() -> None:
    assert substitute("{{key}}:{{key}}", {"key": "s"}, "header") == "s:s"


def test_substituted_values_are_not_rescanned() -> None:
    # A value that looks like a placeholder must not be expanded again.
    out = substitute("{{input}}", {"input": "{{apiKey}}", "apiKey": "SECRET"}, "header")
    assert out == "{{apiKey}}"


def test_find_placeholders_keeps_order_and_duplicates() -> None:
    assert find_placeholders("{{a}}/{{input}}?k={{a}}") == ["a", "input", "a"]


def test_unknown_context_is_rejected() -> None:
    with pytest.raises(ValueError):
        substitute("{{input}}", {"input": "x"}, "xml")  # type: ignore[arg-type]
