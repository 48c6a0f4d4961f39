#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page titles
===========
A ``Title`` names a page: namespace + text (+ optional #fragment).

``Title.new_from_text("Help:Editing pages#Links")`` normalises underscores,
whitespace and first-letter case; it returns ``None`` for titles that can
never exist (empty, or containing ``[ ] { } | < >``).
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict


MAIN_NAMESPACE = "Main"

KNOWN_NAMESPACES = (
    "Talk", "User", "User talk", "Project", "Project talk",
    "File", "Image", "MediaWiki", "Template", "Help", "Category", "Special",
)

_ILLEGAL_RE = re.compile(r"[\[\]{}|<>\x00-\x1f]")
_PREFIX_RE = re.compile(r"^([^:]+?)\s*:\s*(.*)$")
_MAX_TITLE_BYTES = 255


# -----------------------------------------------------------------------------

def _slugify(text: str) -> str:
    """Convert a page title to a URL slug."""
    text = text.strip().lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def _ucfirst(text: str) -> str:
    return text[:1].upper() + text[1:]


# -----------------------------------------------------------------------------

class Title(BaseModel):

    model_config = ConfigDict(frozen=True)

    namespace: str = MAIN_NAMESPACE
    text: str
    fragment: str = ""

    # ── construction ───────────────────────────────────────────────────────

    @classmethod
    def new_from_text(
        cls,
        text: Optional[str],
        default_namespace: str = MAIN_NAMESPACE,
        namespaces: Iterable[str] = (),
    ) -> Optional[Title]:
        if text is None:
            return None
        text = re.sub(r"[\s_]+", " ", text).strip()

        fragment = ""
        if "#" in text:
            text, fragment = text.split("#", 1)
            text, fragment = text.strip(), fragment.strip()

        namespace = default_namespace
        if text.startswith(":"):
            # Leading colon forces the main namespace
            text = text[1:].strip()
            namespace = MAIN_NAMESPACE

        known = {ns.lower(): ns for ns in (*KNOWN_NAMESPACES, *namespaces)}
        m = _PREFIX_RE.match(text)
        if m and m.group(1).lower() in known:
            namespace = known[m.group(1).lower()]
            text = m.group(2).strip()

        if not text or _ILLEGAL_RE.search(text):
            return None
        if len(text.encode("utf-8")) > _MAX_TITLE_BYTES:
            return None

        return cls(namespace=namespace, text=_ucfirst(text), fragment=fragment)

    # ── derived names ──────────────────────────────────────────────────────

    @property
    def prefixed_text(self) -> str:
        if self.namespace == MAIN_NAMESPACE:
            return self.text
        return f"{self.namespace}:{self.text}"

    @property
    def full_text(self) -> str:
        return f"{self.prefixed_text}#{self.fragment}" if self.fragment else self.prefixed_text

    @property
    def dbkey(self) -> str:
        return self.prefixed_text.replace(" ", "_")

    @property
    def slug(self) -> str:
        return _slugify(self.text)

    def url(self, base_url: str = "") -> str:
        href = f"{base_url}/wiki/{self.namespace}/{self.slug}"
        return f"{href}#{_slugify(self.fragment)}" if self.fragment else href

    def without_fragment(self) -> Title:
        return self if not self.fragment else self.model_copy(update={"fragment": ""})

    def same_page(self, other: Optional[Title]) -> bool:
        return other is not None and self.dbkey == other.dbkey

    def __str__(self) -> str:
        return self.full_text


# -----------------------------------------------------------------------------
