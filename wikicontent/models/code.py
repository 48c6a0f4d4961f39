#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Script and stylesheet content.  Rendered as escaped source in a
preformatted block; no redirects, no sections.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import TYPE_CHECKING

from wikicontent.models.content import ContentModel, TextContent

if TYPE_CHECKING:
    from wikicontent.core.context import ContentContext


# -----------------------------------------------------------------------------

class JavaScriptContent(TextContent):

    html_class = "mw-js"

    def __init__(self, text: str, context: ContentContext):
        super().__init__(text, context, model=ContentModel.JAVASCRIPT)


class CssContent(TextContent):

    html_class = "mw-css"

    def __init__(self, text: str, context: ContentContext):
        super().__init__(text, context, model=ContentModel.CSS)


# -----------------------------------------------------------------------------
