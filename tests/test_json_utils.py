#tests/test_json_utils.py
"""
Tests for llm_stack.json_utils.

Covers:
- JSON object salvage from noisy replies (fences, prose, nested braces,
  braces inside strings)
- load_json_or_none error reporting
"""

from __future__ import annotations

from llm_stack.json_utils import extract_json_object, load_json_or_none


def test_extract_plain_object():
    assert extract_json_object('  {"a": 1}  ') == '{"a": 1}'


def test_extract_from_fences_and_prose():
    raw = 'Here:\n```json\n{"a": {"b": 2}}\n```\nDone.'
    assert extract_json_object(raw) == '{"a": {"b": 2}}'


def test_extract_ignores_braces_in_strings():
    raw = 'x {"thought": "a } b \\" {", "n": 1} trailing }'
    assert extract_json_object(raw) == '{"thought": "a } b \\" {", "n": 1}'


def test_extract_without_object_returns_stripped_input():
    assert extract_json_object("  nothing here ") == "nothing here"
    assert extract_json_object("") == ""
    # unbalanced
    assert extract_json_object('{"a": 1') == '{"a": 1'


def test_load_json_or_none():
    data, err = load_json_or_none('{"ok": true}')
    assert data == {"ok": True}
    assert err is None

    data, err = load_json_or_none("{oops", context="decide")
    assert data is None
    assert err.startswith("decide: JSONDecodeError")

    data, err = load_json_or_none("[1, 2]", context="decide")
    assert data is None
    assert err == "decide: expected a JSON object, got list"
