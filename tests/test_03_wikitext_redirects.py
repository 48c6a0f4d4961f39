#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for #REDIRECT handling in wikitext content."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from wikicontent.core.exceptions import RenderError
from wikicontent.models import WikitextContent
from wikicontent.services.titles import Title


# =============================================================================
# Redirect target
# =============================================================================

def test_redirect_directive_resolves_target(context):
    c = WikitextContent("#REDIRECT [[Target Page]]", context)
    assert c.is_redirect()
    assert c.get_redirect_target() == Title.new_from_text("Target Page")


def test_plain_paragraph_is_not_a_redirect(context):
    c = WikitextContent("Just a paragraph about [[Target Page]].", context)
    assert c.is_redirect() is False
    assert c.get_redirect_target() is None
    assert c.get_redirect_chain() is None
    assert c.get_ultimate_redirect_target() is None


def test_redirect_keyword_is_case_insensitive(context):
    assert WikitextContent("#redirect [[Elsewhere]]", context).is_redirect()


def test_redirect_with_label_and_colon(context):
    c = WikitextContent("#REDIRECT: [[Target|label]]", context)
    assert c.get_redirect_target().prefixed_text == "Target"


def test_redirect_keeps_fragment(context):
    target = WikitextContent("#REDIRECT [[Manual#Install]]", context).get_redirect_target()
    assert target.text == "Manual"
    assert target.fragment == "Install"


def test_redirect_to_other_namespace(context):
    target = WikitextContent("#REDIRECT [[help:editing_pages]]", context).get_redirect_target()
    assert target.namespace == "Help"
    assert target.text == "Editing pages"


def test_redirect_must_lead_the_text(context):
    assert not WikitextContent("Intro\n#REDIRECT [[Target]]", context).is_redirect()


def test_redirect_to_invalid_title_is_not_a_redirect(context):
    assert not WikitextContent("#REDIRECT [[<bad>]]", context).is_redirect()


# =============================================================================
# Chains
# =============================================================================

def test_chain_stops_after_one_hop_by_default(context, page_store):
    page_store["B"] = "#REDIRECT [[C]]"
    chain = WikitextContent("#REDIRECT [[B]]", context).get_redirect_chain()
    assert [t.prefixed_text for t in chain] == ["B"]


def test_chain_follows_up_to_max_redirects(make_context, page_store):
    page_store.update({"B": "#REDIRECT [[C]]", "C": "#REDIRECT [[D]]", "D": "Final."})
    c = WikitextContent("#REDIRECT [[B]]", make_context(max_redirects=5))
    assert [t.prefixed_text for t in c.get_redirect_chain()] == ["B", "C", "D"]
    assert c.get_ultimate_redirect_target().prefixed_text == "D"


def test_chain_is_bounded(make_context, page_store):
    for i in range(10):
        page_store[f"P{i}"] = f"#REDIRECT [[P{i + 1}]]"
    c = WikitextContent("#REDIRECT [[P0]]", make_context(max_redirects=3))
    assert [t.prefixed_text for t in c.get_redirect_chain()] == ["P0", "P1", "P2"]


def test_chain_stops_on_loop(make_context, page_store):
    page_store.update({"A": "#REDIRECT [[B]]", "B": "#REDIRECT [[A]]"})
    chain = WikitextContent("#REDIRECT [[A]]", make_context(max_redirects=10)).get_redirect_chain()
    assert [t.prefixed_text for t in chain] == ["A", "B"]


def test_chain_stops_at_missing_page(make_context):
    c = WikitextContent("#REDIRECT [[Nowhere]]", make_context(max_redirects=4))
    assert c.get_ultimate_redirect_target().prefixed_text == "Nowhere"


# =============================================================================
# Rendering and updating
# =============================================================================

def test_get_html_fails_loudly(context):
    with pytest.raises(RenderError):
        WikitextContent("#REDIRECT [[Target]]", context).get_html()


def test_redirect_parser_output(context, title):
    out = WikitextContent("#REDIRECT [[Target Page]]", context).get_parser_output(title)
    assert 'class="redirectMsg"' in out.get_text()
    assert "Target Page" in out.get_text()
    assert out.redirect_target == "Target Page"
    assert "Target Page" in out.links


def test_redirect_is_never_countable(make_context):
    c = WikitextContent("#REDIRECT [[Target]]", make_context(count_method="any"))
    assert c.is_countable() is False


def test_update_redirect_points_elsewhere(context):
    c = WikitextContent("#REDIRECT [[Old]]\n[[Category:Redirects]]", context)
    moved = c.update_redirect(Title.new_from_text("New home"))
    assert moved.get_native_data() == "#REDIRECT [[New home]]\n[[Category:Redirects]]"
    assert c.get_redirect_target().text == "Old"


def test_update_redirect_on_non_redirect_is_noop(context):
    c = WikitextContent("Text", context)
    assert c.update_redirect(Title.new_from_text("X")) is c
