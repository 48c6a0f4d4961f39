#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Collaborator wiring.

A ``ContentContext`` bundles everything a content value talks to: the
configuration slice, the handler registry, the parser, the content
language and the hook registry.  Build one with ``build_context()`` at
startup and pass it to every content value you construct.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from wikicontent.core.config import ContentConfig, Settings, get_settings
from wikicontent.services.handlers import ContentHandlerRegistry
from wikicontent.services.hooks import HookRegistry
from wikicontent.services.language import Language
from wikicontent.services.renderer import Parser
from wikicontent.services.titles import Title

PageLookup = Callable[[Title], Optional[str]]


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ContentContext:
    config: ContentConfig
    registry: ContentHandlerRegistry
    parser: Parser
    language: Language
    hooks: HookRegistry
    page_lookup: Optional[PageLookup] = None

    def make_content(self, text: str, model: str = "wikitext", fmt: Optional[str] = None):
        return self.registry.make_content(text, self, model=model, fmt=fmt)


# -----------------------------------------------------------------------------

def build_context(
    settings: Optional[Settings] = None,
    *,
    config: Optional[ContentConfig] = None,
    language: Optional[Language] = None,
    hooks: Optional[HookRegistry] = None,
    page_lookup: Optional[PageLookup] = None,
    parser: Optional[Parser] = None,
) -> ContentContext:
    """Assemble a context; anything not given is derived from *settings*."""
    if config is None:
        config = ContentConfig.from_settings(settings or get_settings())
    language = language or Language(config.content_language)
    return ContentContext(
        config=config,
        registry=ContentHandlerRegistry.with_defaults(),
        parser=parser or Parser(language=language, base_url=config.base_url),
        language=language,
        hooks=hooks or HookRegistry(),
        page_lookup=page_lookup,
    )


# -----------------------------------------------------------------------------
