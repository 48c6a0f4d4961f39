#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for article counting under each count method."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from wikicontent.models import CssContent, JavaScriptContent, WikitextContent


# ── any ──────────────────────────────────────────────────────────────────────

def test_any_counts_everything(make_context):
    assert WikitextContent("stub", make_context(count_method="any")).is_countable()


# ── comma ────────────────────────────────────────────────────────────────────

def test_comma_counts_text_with_comma(make_context):
    assert WikitextContent("Apples, pears.", make_context(count_method="comma")).is_countable()


def test_comma_ignores_links(make_context):
    c = WikitextContent("See [[Apples]] and [[Pears]].", make_context(count_method="comma"))
    assert c.is_countable() is False
    assert c.is_countable(has_links=True) is False


# ── link ─────────────────────────────────────────────────────────────────────

def test_link_counts_text_with_link(make_context):
    assert WikitextContent("See [[Apples]].", make_context(count_method="link")).is_countable()


def test_link_rejects_text_without_link(make_context):
    assert WikitextContent("No links, none.", make_context(count_method="link")).is_countable() is False


def test_link_uses_hint_without_parsing(make_context, title):
    ctx = make_context(count_method="link")
    assert WikitextContent("plain", ctx).is_countable(has_links=True) is True
    assert WikitextContent("[[Apples]]", ctx).is_countable(has_links=False) is False


def test_link_with_explicit_title(make_context, title):
    ctx = make_context(count_method="link")
    assert WikitextContent("[[Apples]]", ctx).is_countable(title=title)


def test_category_is_not_a_link(make_context):
    c = WikitextContent("[[Category:Fruit]]", make_context(count_method="link"))
    assert c.is_countable() is False


def test_link_inside_nowiki_does_not_count(make_context):
    c = WikitextContent("<nowiki>[[Apples]]</nowiki>", make_context(count_method="link"))
    assert c.is_countable() is False


# ── script models ────────────────────────────────────────────────────────────

@pytest.mark.parametrize("cls", [JavaScriptContent, CssContent])
@pytest.mark.parametrize("method,expected", [("any", True), ("comma", False), ("link", False)])
def test_script_models_count_only_under_any(make_context, cls, method, expected):
    assert cls("a, b", make_context(count_method=method)).is_countable() is expected
