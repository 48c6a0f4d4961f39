import logging

from wikicontent._version import __version__
from wikicontent.core.context import ContentContext, build_context
from wikicontent.models import (
    ContentModel, ContentFormat,
    Content, TextContent, WikitextContent,
    JavaScriptContent, CssContent, MessageContent,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "ContentContext", "build_context",
    "ContentModel", "ContentFormat",
    "Content", "TextContent", "WikitextContent",
    "JavaScriptContent", "CssContent", "MessageContent",
]
