#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Wikitext content: the markup model.  Rendering, sections, redirects and the
save/preload transforms are all delegated to the context's ``Parser``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional, Union

from wikicontent.core.exceptions import RenderError
from wikicontent.models.content import Content, ContentModel, SectionId, TextContent
from wikicontent.schemas import ParserOptions, ParserOutput, UserIdentity
from wikicontent.services.hooks import PLACE_NEW_SECTION
from wikicontent.services.renderer import REDIRECT_RE
from wikicontent.services.titles import Title

if TYPE_CHECKING:
    from wikicontent.core.context import ContentContext

log = logging.getLogger(__name__)


# An unfinished [[link left at the end of a truncated summary
_DANGLING_LINK_RE = re.compile(r"\[\[([^\]]*)\]?$")


# -----------------------------------------------------------------------------

class WikitextContent(TextContent):

    def __init__(self, text: str, context: ContentContext):
        super().__init__(text, context, model=ContentModel.WIKITEXT)

    def _new(self, text: str) -> WikitextContent:
        return WikitextContent(text, self._context)

    def get_html(self) -> str:
        raise RenderError("get_html() not implemented for wikitext. Use get_parser_output().get_text()")

    # ── rendering ──────────────────────────────────────────────────────────

    def get_parser_output(
        self,
        title: Title,
        revision_id: Optional[int] = None,
        options: Optional[ParserOptions] = None,
        generate_html: bool = True,
    ) -> ParserOutput:
        return self._context.parser.parse(
            self._text,
            title,
            options or ParserOptions(),
            revision_id=revision_id,
            generate_html=generate_html,
        )

    def is_countable(self, has_links: Optional[bool] = None, title: Optional[Title] = None) -> bool:
        """
        Whether the page counts as an article under the configured method:
        ``any`` always, ``comma`` if the text holds a comma, ``link`` if it
        links anywhere.  Redirects never count.
        """
        if self.is_redirect():
            return False

        method = self._context.config.count_method
        if method == "any":
            return True
        if method == "comma":
            return "," in self._text
        if method == "link":
            if has_links is None:
                title = title or Title.new_from_text(
                    self._context.language.get_message("mainpage"),
                    default_namespace=self._context.config.default_namespace,
                )
                has_links = self.get_parser_output(title, generate_html=False).has_links()
            return has_links
        return False

    def get_text_for_summary(self, max_length: int = 250) -> str:
        truncated = super().get_text_for_summary(max_length)
        return _DANGLING_LINK_RE.sub(r"\1", truncated)

    # ── redirects ──────────────────────────────────────────────────────────

    def get_redirect_target(self) -> Optional[Title]:
        return self._context.parser.get_redirect_target(self._text, self._context.config.default_namespace)

    def get_redirect_chain(self) -> Optional[list[Title]]:
        return self._context.parser.get_redirect_chain(
            self._text,
            page_lookup=self._context.page_lookup,
            max_redirects=self._context.config.max_redirects,
            namespace=self._context.config.default_namespace,
        )

    def get_ultimate_redirect_target(self) -> Optional[Title]:
        chain = self.get_redirect_chain()
        return chain[-1] if chain else None

    def update_redirect(self, target: Title) -> Content:
        """Point an existing redirect at *target*; non-redirects come back unchanged."""
        if not self.is_redirect():
            return self
        m = REDIRECT_RE.match(self._text)
        start, end = m.span(1)
        return self._new(self._text[:start] + target.full_text + self._text[end:])

    # ── sections ───────────────────────────────────────────────────────────

    def get_section(self, section: SectionId) -> Union[WikitextContent, bool]:
        text = self._context.parser.get_section(self._text, section)
        if text is None:
            return False
        return self._new(text)

    def replace_section(
        self,
        section: SectionId,
        with_content: Content,
        section_title: str = "",
    ) -> Optional[WikitextContent]:
        """
        Replace *section* with *with_content* and return the whole page.

        ``""`` replaces everything, ``"new"`` appends a section (headed by
        *section_title* when given), anything else names an existing
        section.  Returns None when that section does not exist.
        """
        self.check_model(with_content.model)

        if section == "":
            return with_content

        old_text = self._text
        text = with_content.get_native_data()

        if section == "new":
            subject = ""
            if section_title:
                subject = self._context.language.get_message(
                    "newsectionheaderdefaultlevel", [section_title]) + "\n\n"
            text = self._context.hooks.run_transform(PLACE_NEW_SECTION, text, self, old_text, subject)
            if old_text.strip():
                return self._new(f"{old_text}\n\n{subject}{text}")
            return self._new(f"{subject}{text}")

        replaced = self._context.parser.replace_section(old_text, section, text)
        if replaced is None:
            log.warning("replace_section: no section %r in %d-byte page", section, self.get_size())
            return None
        return self._new(replaced)

    def add_section_header(self, header: str) -> WikitextContent:
        heading = self._context.language.get_message("newsectionheaderdefaultlevel", [header])
        return self._new(f"{heading}\n\n{self._text}")

    # ── transforms ─────────────────────────────────────────────────────────

    def pre_save_transform(
        self,
        title: Title,
        user: UserIdentity,
        options: Optional[ParserOptions] = None,
    ) -> WikitextContent:
        text = self._context.parser.pre_save_transform(self._text, title, user, options or ParserOptions())
        return self if text == self._text else self._new(text)

    def preload_transform(self, title: Title, options: Optional[ParserOptions] = None) -> WikitextContent:
        text = self._context.parser.get_preload_text(self._text, title, options or ParserOptions())
        return self if text == self._text else self._new(text)


# -----------------------------------------------------------------------------
