#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Content handlers
================
One ``ContentHandler`` per content model: which serialization formats it
speaks, how to turn a blob into a content value and back, and what an empty
value looks like.

``ContentHandlerRegistry`` maps model ids to handlers.  It is built once
(see ``build_context``) and handed to whoever needs a lookup.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from wikicontent.core.exceptions import ModelMismatchError, UnknownContentModelError, UnsupportedFormatError
from wikicontent.models.code import CssContent, JavaScriptContent
from wikicontent.models.content import Content, ContentFormat, ContentModel, TextContent
from wikicontent.models.wikitext import WikitextContent

if TYPE_CHECKING:
    from wikicontent.core.context import ContentContext
    from wikicontent.services.language import Language

log = logging.getLogger(__name__)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Handlers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ContentHandler:
    """Serialization rules for text-backed models."""

    model_id: str = ContentModel.TEXT
    formats: tuple[str, ...] = (ContentFormat.TEXT,)
    content_class: type[TextContent] = TextContent

    def __repr__(self) -> str:
        return f"<{type(self).__name__} model={self.model_id!s}>"

    def get_model_id(self) -> str:
        return str(self.model_id)

    def get_default_format(self) -> str:
        return self.formats[0]

    def get_supported_formats(self) -> list[str]:
        return list(self.formats)

    def is_supported_format(self, fmt: Optional[str]) -> bool:
        if not fmt:
            return True
        return fmt in self.formats

    def check_format(self, fmt: Optional[str]) -> None:
        if not self.is_supported_format(fmt):
            raise UnsupportedFormatError(fmt, self.get_model_id())

    def check_model(self, model: str) -> None:
        if str(model) != self.get_model_id():
            raise ModelMismatchError(self.get_model_id(), str(model))

    def serialize_content(self, content: Content, fmt: Optional[str] = None) -> str:
        self.check_model(content.model)
        self.check_format(fmt)
        return content.get_native_data()

    def unserialize_content(self, blob: str, context: ContentContext, fmt: Optional[str] = None) -> Content:
        self.check_format(fmt)
        return self._make(blob, context)

    def make_empty_content(self, context: ContentContext) -> Content:
        return self._make("", context)

    def _make(self, text: str, context: ContentContext) -> Content:
        return self.content_class(text, context)

    def get_model_name(self, language: Optional[Language] = None) -> str:
        """Localised model name, falling back to the id."""
        key = f"content-model-{self.get_model_id()}"
        if language is not None and language.has_message(key):
            return language.get_message(key)
        return self.get_model_id()


class TextContentHandler(ContentHandler):
    pass


class WikitextContentHandler(ContentHandler):
    model_id = ContentModel.WIKITEXT
    formats = (ContentFormat.WIKITEXT,)
    content_class = WikitextContent


class JavaScriptContentHandler(ContentHandler):
    model_id = ContentModel.JAVASCRIPT
    formats = (ContentFormat.JAVASCRIPT,)
    content_class = JavaScriptContent


class CssContentHandler(ContentHandler):
    model_id = ContentModel.CSS
    formats = (ContentFormat.CSS,)
    content_class = CssContent


DEFAULT_HANDLERS = (
    WikitextContentHandler,
    JavaScriptContentHandler,
    CssContentHandler,
    TextContentHandler,
)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Registry
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ContentHandlerRegistry:

    def __init__(self, handlers: tuple[ContentHandler, ...] = ()):
        self._handlers: dict[str, ContentHandler] = {}
        for handler in handlers:
            self.register(handler)

    @classmethod
    def with_defaults(cls) -> ContentHandlerRegistry:
        return cls(tuple(handler_cls() for handler_cls in DEFAULT_HANDLERS))

    def register(self, handler: ContentHandler) -> None:
        model = handler.get_model_id()
        if model in self._handlers:
            log.debug("Replacing content handler for %s", model)
        self._handlers[model] = handler

    def models(self) -> list[str]:
        return list(self._handlers)

    def is_defined_model(self, model: str) -> bool:
        return str(model) in self._handlers

    def handler_for(self, model: str) -> ContentHandler:
        try:
            return self._handlers[str(model)]
        except KeyError:
            raise UnknownContentModelError(str(model)) from None

    def get_for_content(self, content: Content) -> ContentHandler:
        return self.handler_for(content.model)

    def make_content(
        self,
        text: str,
        context: ContentContext,
        model: str = ContentModel.WIKITEXT,
        fmt: Optional[str] = None,
    ) -> Content:
        return self.handler_for(model).unserialize_content(text, context, fmt)

    def get_content_model_name(self, model: str, language: Optional[Language] = None) -> str:
        if not self.is_defined_model(model):
            return str(model)
        return self.handler_for(model).get_model_name(language)


# -----------------------------------------------------------------------------
