#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for content handlers and the handler registry."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from wikicontent.core.exceptions import ModelMismatchError, UnknownContentModelError, UnsupportedFormatError
from wikicontent.models import CssContent, JavaScriptContent, TextContent, WikitextContent
from wikicontent.models.content import ContentFormat
from wikicontent.services.handlers import (
    ContentHandlerRegistry,
    TextContentHandler,
    WikitextContentHandler,
)
from wikicontent.services.language import Language


@pytest.fixture
def registry():
    return ContentHandlerRegistry.with_defaults()


# ── Registry ─────────────────────────────────────────────────────────────────

def test_default_models(registry):
    assert sorted(registry.models()) == ["css", "javascript", "text", "wikitext"]
    assert registry.is_defined_model("wikitext")
    assert not registry.is_defined_model("json")


def test_unknown_model(registry, context):
    with pytest.raises(UnknownContentModelError) as exc:
        registry.handler_for("json")
    assert exc.value.model == "json"
    with pytest.raises(UnknownContentModelError):
        registry.make_content("{}", context, model="json")


@pytest.mark.parametrize("model,cls", [
    ("wikitext", WikitextContent),
    ("javascript", JavaScriptContent),
    ("css", CssContent),
    ("text", TextContent),
])
def test_make_content_per_model(registry, context, model, cls):
    content = registry.make_content("body", context, model=model)
    assert type(content) is cls
    assert content.model == model
    assert registry.get_for_content(content).get_model_id() == model


def test_register_replaces_handler(registry):
    class LoudWikitext(WikitextContentHandler):
        pass

    handler = LoudWikitext()
    registry.register(handler)
    assert registry.handler_for("wikitext") is handler


# ── Formats ──────────────────────────────────────────────────────────────────

def test_default_formats(registry):
    assert registry.handler_for("wikitext").get_default_format() == ContentFormat.WIKITEXT
    assert registry.handler_for("javascript").get_supported_formats() == [ContentFormat.JAVASCRIPT]
    assert registry.handler_for("text").is_supported_format(None)


def test_unsupported_format(registry, context):
    with pytest.raises(UnsupportedFormatError) as exc:
        registry.make_content("x", context, model="css", fmt=ContentFormat.JAVASCRIPT)
    assert exc.value.format == ContentFormat.JAVASCRIPT
    assert exc.value.model == "css"
    assert isinstance(exc.value, ModelMismatchError)


def test_serialize_checks_model(registry, context):
    handler = registry.handler_for("css")
    with pytest.raises(ModelMismatchError):
        handler.serialize_content(WikitextContent("x", context))
    assert handler.serialize_content(CssContent("p {}", context)) == "p {}"


def test_content_serialize_with_format(context):
    c = WikitextContent("text", context)
    assert c.serialize() == "text"
    assert c.serialize(ContentFormat.WIKITEXT) == "text"
    with pytest.raises(UnsupportedFormatError):
        c.serialize(ContentFormat.CSS)


def test_make_empty_content(registry, context):
    empty = registry.handler_for("wikitext").make_empty_content(context)
    assert isinstance(empty, WikitextContent)
    assert empty.is_empty()
    assert empty.get_size() == 0


# ── Model names ──────────────────────────────────────────────────────────────

def test_model_names(registry):
    en = Language("en")
    assert registry.get_content_model_name("javascript", en) == "JavaScript"
    assert registry.get_content_model_name("text", en) == "plain text"
    assert registry.get_content_model_name("json", en) == "json"


def test_model_name_without_language():
    assert TextContentHandler().get_model_name() == "text"


def test_model_name_from_custom_messages(registry):
    de = Language("de", {"content-model-css": "CSS-Stylesheet"})
    assert registry.get_content_model_name("css", de) == "CSS-Stylesheet"
