from wikicontent.models.content import (
    ContentModel, ContentFormat,
    ContentValue, TextBacked,
    Content, TextContent,
)
from wikicontent.models.wikitext import WikitextContent
from wikicontent.models.code import JavaScriptContent, CssContent
from wikicontent.models.message import MessageContent

__all__ = [
    "ContentModel", "ContentFormat",
    "ContentValue", "TextBacked",
    "Content", "TextContent",
    "WikitextContent",
    "JavaScriptContent", "CssContent",
    "MessageContent",
]
