#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Language
========
Content-language services used by content values:

  - ``truncate()``         byte-budget truncation that never cuts a glyph
  - ``segment_for_diff()`` line segmentation before diffing
  - ``get_message()``      localised message lookup with $1..$n parameters
  - ``timeanddate()``      timestamps as written by signatures
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import logging
import re
import unicodedata
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

if TYPE_CHECKING:
    from wikicontent.services.renderer import Parser

log = logging.getLogger(__name__)


# Languages whose converter offers script variants, and the variant used as
# default where it differs from the language code.
LANGUAGES_WITH_VARIANTS = ("gan", "iu", "kk", "ku", "shi", "sr", "tg", "uz", "zh")
LANGUAGES_WITH_STATIC_DEFAULT_VARIANT = {
    "crh": "crh-latn",
    "kk": "kk-cyrl",
    "ku": "ku-latn",
    "shi": "shi-latn",
    "sr": "sr-ec",
    "tg": "tg-cyrl",
    "uz": "uz-latn",
}


DEFAULT_MESSAGES: dict[str, str] = {
    "newsectionheaderdefaultlevel": "== $1 ==",
    "signature": "[[User:$1|$2]]",
    "signature-anon": "[[Special:Contributions/$1|$2]]",
    "redirectto": "Redirect to:",
    "redirectedfrom": "(Redirected from $1)",
    "content-model-wikitext": "wikitext",
    "content-model-javascript": "JavaScript",
    "content-model-css": "CSS",
    "content-model-text": "plain text",
    "mainpage": "Main Page",
}

MESSAGE_OPTIONS = frozenset({"parse", "parseinline", "escape", "escapenoentities", "content"})

_PARAM_RE = re.compile(r"\$(\d+)")


# -----------------------------------------------------------------------------

class Language:

    def __init__(self, code: str = "en", messages: Optional[dict[str, str]] = None):
        self.code = code
        self._messages = dict(DEFAULT_MESSAGES)
        if messages:
            self._messages.update(messages)

    def __repr__(self) -> str:
        return f"Language({self.code!r})"

    # ── text utilities ─────────────────────────────────────────────────────

    def truncate(self, text: str, length: int, ellipsis: str = "...", adjust_length: bool = True) -> str:
        """
        Cut *text* to at most *length* UTF-8 bytes, ellipsis included.

        The cut never lands inside a multi-byte character, and a base
        character whose combining marks would be cut off is dropped too.
        """
        if length <= 0:
            return ellipsis if text else ""
        raw = text.encode("utf-8")
        if len(raw) <= length:
            return text

        budget = length
        if adjust_length:
            budget -= len(ellipsis.encode("utf-8"))
        if budget <= 0:
            return ellipsis

        kept = raw[:budget].decode("utf-8", errors="ignore")
        rest = text[len(kept):]
        if rest and unicodedata.combining(rest[0]):
            # The glyph continues past the cut: drop its partial start
            while kept and unicodedata.combining(kept[-1]):
                kept = kept[:-1]
            kept = kept[:-1]
        return kept + ellipsis

    def segment_for_diff(self, text: str) -> str:
        """Hook for languages without word spacing; identity for the rest."""
        return text

    def unsegment_for_diff(self, text: str) -> str:
        return text

    def timeanddate(self, ts: datetime) -> str:
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        ts = ts.astimezone(timezone.utc)
        return f"{ts:%H:%M}, {ts.day} {ts:%B %Y} (UTC)"

    @property
    def static_default_variant(self) -> str:
        return LANGUAGES_WITH_STATIC_DEFAULT_VARIANT.get(self.code, self.code)

    # ── messages ───────────────────────────────────────────────────────────

    def has_message(self, key: str) -> bool:
        return key in self._messages

    def get_message(
        self,
        key: str,
        params: Optional[Sequence[object]] = None,
        options: Iterable[str] = (),
        parser: Optional[Parser] = None,
    ) -> str:
        """
        Resolve message *key*, substitute ``$1..$n`` with *params*, then
        apply *options*:

          parse        render to HTML (block level)
          parseinline  render to HTML without the wrapping <p>
          escape       HTML-escape the plain text
        """
        options = set(options)
        unknown = options - MESSAGE_OPTIONS
        if unknown:
            raise ValueError(f"Unknown message option(s): {', '.join(sorted(unknown))}")

        template = self._messages.get(key)
        if template is None:
            log.debug("Message %r not defined for %s", key, self.code)
            missing = f"⧼{key}⧽"
            return _html.escape(missing) if options & {"parse", "parseinline", "escape"} else missing

        values = [str(p) for p in (params or ())]

        def _sub(m: re.Match) -> str:
            idx = int(m.group(1)) - 1
            return values[idx] if 0 <= idx < len(values) else m.group(0)

        text = _PARAM_RE.sub(_sub, template)

        if "parse" in options or "parseinline" in options:
            if parser is None:
                raise ValueError(f"Message {key!r}: parsing requested but no parser given")
            rendered = parser.render_fragment(text).strip()
            if "parseinline" in options:
                m = re.match(r"^<p>(.*)</p>$", rendered, re.DOTALL)
                if m:
                    rendered = m.group(1)
            return rendered
        if "escape" in options:
            return _html.escape(text)
        if "escapenoentities" in options:
            return _html.escape(text, quote=False)
        return text


# -----------------------------------------------------------------------------
