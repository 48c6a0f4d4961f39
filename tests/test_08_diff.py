#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for line diffs between content values."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from wikicontent.core.exceptions import ModelMismatchError
from wikicontent.models import CssContent, JavaScriptContent, WikitextContent
from wikicontent.services.diff import diff_lines
from wikicontent.services.language import Language


# =============================================================================
# diff_lines
# =============================================================================

def test_diff_lines_identical():
    result = diff_lines(["a", "b"], ["a", "b"])
    assert result.is_empty()
    assert result.to_groups() == [{"type": "equal", "lines": ["a", "b"]}]


def test_diff_lines_replace_is_delete_then_insert():
    result = diff_lines(["one", "two", "three"], ["one", "2", "three"])
    assert [op.type for op in result.ops] == ["equal", "delete", "insert", "equal"]
    assert result.deleted_lines == ["two"]
    assert result.added_lines == ["2"]


def test_diff_lines_pure_insert_and_delete():
    assert diff_lines([], ["x"]).added_lines == ["x"]
    assert diff_lines(["x"], []).deleted_lines == ["x"]


# =============================================================================
# Content.diff
# =============================================================================

def test_diff_identical_content(context):
    a = WikitextContent("same\ntext", context)
    assert a.diff(WikitextContent("same\ntext", context)).is_empty()


def test_diff_compares_against_other_value(context):
    a = WikitextContent("line one\nline two", context)
    b = WikitextContent("line one\nline 2\nline three", context)
    result = a.diff(b)
    assert not result.is_empty()
    assert result.deleted_lines == ["line two"]
    assert result.added_lines == ["line 2", "line three"]


def test_diff_other_direction(context):
    a = CssContent("a {}\n", context)
    b = CssContent("a {}\nb {}\n", context)
    assert b.diff(a).deleted_lines == ["b {}"]


def test_diff_model_mismatch(context):
    with pytest.raises(ModelMismatchError):
        WikitextContent("x", context).diff(JavaScriptContent("x", context))


def test_diff_uses_given_language_for_segmentation(context):
    calls = []

    class Recording(Language):
        def segment_for_diff(self, text):
            calls.append(text)
            return text

    WikitextContent("a", context).diff(WikitextContent("b", context), language=Recording("zh"))
    assert calls == ["a", "b"]
