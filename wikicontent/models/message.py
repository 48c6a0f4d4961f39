#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Message content
===============
A localised interface message (key + parameters + options) posing as
content.  The text is resolved through the context's ``Language`` each time
it is asked for.

The model is always ``wikitext``.  That tag is nominal: depending on the
options the resolved form may be plain text, escaped text or HTML.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

from wikicontent.models.content import Content, ContentModel, TextContent

if TYPE_CHECKING:
    from wikicontent.core.context import ContentContext


_PARSE_OPTIONS = ("parse", "parseinline")


# -----------------------------------------------------------------------------

class MessageContent(TextContent):

    def __init__(
        self,
        key: str,
        context: ContentContext,
        params: Optional[Sequence[object]] = None,
        options: Union[str, Iterable[str], None] = None,
    ):
        # Resolved lazily through the language, so there is no stored text
        Content.__init__(self, ContentModel.WIKITEXT, context)
        if options is None:
            options = []
        elif isinstance(options, str):
            options = [options]
        self._key = key
        self._params = tuple(params or ())
        self._options = tuple(options)

    def __repr__(self) -> str:
        return f"<MessageContent key={self._key!r} options={list(self._options)!r}>"

    @property
    def key(self) -> str:
        return self._key

    @property
    def params(self) -> tuple:
        return self._params

    @property
    def options(self) -> tuple:
        return self._options

    def get_native_data(self) -> str:
        """The message text with the parse options removed."""
        options = [o for o in self._options if o not in _PARSE_OPTIONS]
        return self._context.language.get_message(self._key, self._params, options)

    def get_html(self) -> str:
        """The message rendered with the given options plus ``parse``."""
        options = [*self._options, "parse"]
        return self._context.language.get_message(
            self._key, self._params, options, parser=self._context.parser)


# -----------------------------------------------------------------------------
