#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Content values
==============
A page body interpreted under one content model.

Content values are immutable: every transformation (section replace,
pre-save transform, ...) returns a new value.  Operations a model does not
support answer with a sentinel (``None`` / ``False``), never an exception;
mixing two models raises ``ModelMismatchError``.

Every value carries the ``ContentContext`` it was built with; that is where
the parser, language, handler registry, hooks and configuration come from.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Protocol, Union, runtime_checkable

from wikicontent.core.exceptions import ModelMismatchError, UnsupportedFormatError
from wikicontent.schemas import DiffResult, ParserOptions, ParserOutput, SecondaryDataUpdate, UserIdentity
from wikicontent.services.diff import diff_lines
from wikicontent.services.renderer import RENDERER_VERSION
from wikicontent.services.titles import Title

if TYPE_CHECKING:
    from wikicontent.core.context import ContentContext
    from wikicontent.services.handlers import ContentHandler
    from wikicontent.services.language import Language


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Models and formats
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ContentModel(str, Enum):
    WIKITEXT   = "wikitext"
    JAVASCRIPT = "javascript"
    CSS        = "css"
    TEXT       = "text"

    def __str__(self) -> str:
        return self.value


class ContentFormat:
    WIKITEXT   = "text/x-wiki"
    JAVASCRIPT = "text/javascript"
    CSS        = "text/css"
    TEXT       = "text/plain"


SectionId = Union[int, str]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Capabilities
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@runtime_checkable
class ContentValue(Protocol):
    """What every content value offers, whatever its model."""

    @property
    def model(self) -> str: ...

    def get_native_data(self) -> Any: ...
    def get_size(self) -> int: ...
    def is_empty(self) -> bool: ...
    def is_valid(self) -> bool: ...
    def equals(self, other: Optional[ContentValue]) -> bool: ...
    def copy(self) -> ContentValue: ...
    def is_countable(self, has_links: Optional[bool] = None, title: Optional[Title] = None) -> bool: ...
    def get_parser_output(self, title: Title, revision_id: Optional[int] = None,
                          options: Optional[ParserOptions] = None,
                          generate_html: bool = True) -> ParserOutput: ...
    def get_redirect_target(self) -> Optional[Title]: ...
    def get_section(self, section: SectionId) -> Union[ContentValue, bool, None]: ...


@runtime_checkable
class TextBacked(Protocol):
    """Values whose native data is a flat string."""

    def get_text(self) -> str: ...
    def get_text_for_summary(self, max_length: int = 250) -> str: ...
    def get_text_for_search_index(self) -> str: ...
    def get_wikitext_for_transclusion(self) -> Optional[str]: ...


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Content
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Content(ABC):

    def __init__(self, model: str, context: ContentContext):
        self._model = str(model)
        self._context = context

    def __repr__(self) -> str:
        return f"<{type(self).__name__} model={self._model!r} size={self.get_size()}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Content):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return hash((self._model, self.get_native_data()))

    # ── identity ───────────────────────────────────────────────────────────

    @property
    def model(self) -> str:
        return self._model

    @property
    def context(self) -> ContentContext:
        return self._context

    def get_model(self) -> str:
        return self._model

    @abstractmethod
    def get_native_data(self) -> Any:
        ...

    @abstractmethod
    def get_size(self) -> int:
        ...

    def is_empty(self) -> bool:
        return self.get_size() == 0

    def is_valid(self) -> bool:
        return True

    def equals(self, other: Optional[Content]) -> bool:
        if other is None:
            return False
        if other is self:
            return True
        if not isinstance(other, Content) or other.model != self.model:
            return False
        return self.get_native_data() == other.get_native_data()

    @abstractmethod
    def copy(self) -> Content:
        ...

    # ── handler ────────────────────────────────────────────────────────────

    def get_content_handler(self) -> ContentHandler:
        return self._context.registry.get_for_content(self)

    def get_default_format(self) -> str:
        return self.get_content_handler().get_default_format()

    def get_supported_formats(self) -> list[str]:
        return self.get_content_handler().get_supported_formats()

    def is_supported_format(self, fmt: Optional[str] = None) -> bool:
        if not fmt:
            return True
        return self.get_content_handler().is_supported_format(fmt)

    def check_format(self, fmt: Optional[str]) -> None:
        if not self.is_supported_format(fmt):
            raise UnsupportedFormatError(fmt, self.model)

    def check_model(self, model: str) -> None:
        if str(model) != self.model:
            raise ModelMismatchError(self.model, str(model))

    def serialize(self, fmt: Optional[str] = None) -> str:
        return self.get_content_handler().serialize_content(self, fmt)

    # ── text views ─────────────────────────────────────────────────────────

    @abstractmethod
    def get_text_for_search_index(self) -> str:
        ...

    @abstractmethod
    def get_wikitext_for_transclusion(self) -> Optional[str]:
        ...

    @abstractmethod
    def get_text_for_summary(self, max_length: int = 250) -> str:
        ...

    # ── rendering ──────────────────────────────────────────────────────────

    @abstractmethod
    def is_countable(self, has_links: Optional[bool] = None, title: Optional[Title] = None) -> bool:
        ...

    @abstractmethod
    def get_parser_output(
        self,
        title: Title,
        revision_id: Optional[int] = None,
        options: Optional[ParserOptions] = None,
        generate_html: bool = True,
    ) -> ParserOutput:
        ...

    def get_secondary_data_updates(
        self,
        title: Title,
        previous: Optional[Content] = None,
        recursive: bool = False,
    ) -> list[SecondaryDataUpdate]:
        """Updates derived from a render without HTML; *previous* is not used here."""
        output = self.get_parser_output(title, generate_html=False)
        return output.get_secondary_data_updates(title.prefixed_text, recursive=recursive)

    # ── redirects ──────────────────────────────────────────────────────────

    def get_redirect_target(self) -> Optional[Title]:
        return None

    def get_ultimate_redirect_target(self) -> Optional[Title]:
        return None

    def get_redirect_chain(self) -> Optional[list[Title]]:
        return None

    def is_redirect(self) -> bool:
        return self.get_redirect_target() is not None

    def update_redirect(self, target: Title) -> Content:
        return self

    # ── sections ───────────────────────────────────────────────────────────

    def get_section(self, section: SectionId) -> Union[Content, bool, None]:
        """None: sections unsupported.  False: no such section."""
        return None

    def replace_section(
        self,
        section: SectionId,
        with_content: Content,
        section_title: str = "",
    ) -> Optional[Content]:
        return None

    def add_section_header(self, header: str) -> Content:
        return self

    # ── transforms ─────────────────────────────────────────────────────────

    def pre_save_transform(
        self,
        title: Title,
        user: UserIdentity,
        options: Optional[ParserOptions] = None,
    ) -> Content:
        return self

    def preload_transform(self, title: Title, options: Optional[ParserOptions] = None) -> Content:
        return self

    # ── diff ───────────────────────────────────────────────────────────────

    def diff(self, other: Content, language: Optional[Language] = None) -> DiffResult:
        """
        Line diff turning this value into *other*.  Both sides are
        segmented by *language* (the content language by default).
        """
        self.check_model(other.model)
        language = language or self._context.language
        old = language.segment_for_diff(self.serialize())
        new = language.segment_for_diff(other.serialize())
        return diff_lines(old.split("\n"), new.split("\n"))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Text content
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_NEWLINES_RE = re.compile(r"[\n\r]")


class TextContent(Content):
    """Flat text.  Concrete for the ``text`` model and the base of the others."""

    html_class = "mw-text"

    def __init__(self, text: str, context: ContentContext, model: str = ContentModel.TEXT):
        super().__init__(model, context)
        if not isinstance(text, str):
            raise TypeError(f"{type(self).__name__} expects str, got {type(text).__name__}")
        self._text = text

    def get_native_data(self) -> str:
        return self._text

    def get_text(self) -> str:
        return self.get_native_data()

    def get_size(self) -> int:
        return len(self.get_native_data().encode("utf-8"))

    def copy(self) -> TextContent:
        # Immutable, so the value is its own copy
        return self

    def get_text_for_search_index(self) -> str:
        return self.get_native_data()

    def get_wikitext_for_transclusion(self) -> Optional[str]:
        return self.get_native_data()

    def get_text_for_summary(self, max_length: int = 250) -> str:
        text = _NEWLINES_RE.sub(" ", self.get_native_data())
        return self._context.language.truncate(text, max(0, max_length))

    def is_countable(self, has_links: Optional[bool] = None, title: Optional[Title] = None) -> bool:
        if self.is_redirect():
            return False
        return self._context.config.count_method == "any"

    def get_html(self) -> str:
        return (
            f'<pre class="mw-code {self.html_class}" dir="ltr">\n'
            f"{_html.escape(self.get_native_data())}\n"
            "</pre>\n"
        )

    def get_parser_output(
        self,
        title: Title,
        revision_id: Optional[int] = None,
        options: Optional[ParserOptions] = None,
        generate_html: bool = True,
    ) -> ParserOutput:
        return ParserOutput(
            html=self.get_html() if generate_html else "",
            text_available=generate_html,
            title=title.prefixed_text,
            revision_id=revision_id,
            renderer_version=RENDERER_VERSION,
        )


# -----------------------------------------------------------------------------
