"""Tests for planforge.repair.balancer."""

from __future__ import annotations

import json

import pytest

from planforge.repair.balancer import balance_brackets


class TestBalanceBrackets:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ('{"a": [1, 2', '{"a": [1, 2]}'),
            ('{"a": {"b": [{"c": 1', '{"a": {"b": [{"c": 1}]}}'),
            ('{"a": "unterminated', '{"a": "unterminated"}'),
            ('{"a": 1, "b', '{"a": 1, "b": null}'),
            ('{"a": 1, "b"', '{"a": 1, "b": null}'),
            ('{"a":', '{"a": null}'),
            ('["x", "y', '["x", "y"]'),
            ('{"a": "[{"', '{"a": "[{"}'),
        ],
    )
    def test_closes(self, text, expected):
        assert balance_brackets(text) == expected
        json.loads(expected)

    def test_pending_escape(self):
        fixed = balance_brackets('{"a": "x\\')
        assert json.loads(fixed) == {"a": "x\\"}

    def test_balanced_unchanged(self):
        text = '{"a": [1, {"b": "}"}]}'
        assert balance_brackets(text) == text

    def test_mismatched_closer_ignored(self):
        assert balance_brackets("[1}") == "[1}]"

    def test_append_only(self):
        for text in ('{"a": [', "[[{", '{"k": "v', "}", ""):
            assert balance_brackets(text).startswith(text)
