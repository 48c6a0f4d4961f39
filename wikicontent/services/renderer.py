#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Wikitext parser
===============
The render collaborator behind ``WikitextContent``.

  - ``render()``                 wikitext → HTML fragment
  - ``Parser.parse()``           wikitext → ParserOutput (HTML + links,
                                 templates, categories, sections, ...)
  - ``Parser.get_section()`` / ``Parser.replace_section()``
  - ``Parser.pre_save_transform()``  signatures, timestamps, pipe trick
  - ``Parser.get_preload_text()``    <noinclude>/<includeonly>/<onlyinclude>
  - ``Parser.get_redirect_target()`` / ``get_redirect_chain()``

Supported syntax
----------------
= H1 =  /  == H2 ==  / ... / ====== H6 ======
'''bold'''  /  ''italic''  /  '''''bold-italic'''''
[[Page Title]]  /  [[Page Title|Display Text]]     inter-page links
[[Category:Name]]                                  stripped, collected in footer
[[File:name.png|thumb|200px|Caption]]              images (via attachments map)
[https://example.com Display]                      external links
----                                               <hr>
* item  /  ** nested                               unordered lists
# item  /  ## nested                               ordered lists
; term : definition                                definition lists
{{template}}                                       rendered as a notice box
{| ... |}                                          tables
<syntaxhighlight lang="python">...</syntaxhighlight>    highlighted code
<pre>...</pre>, ```lang fences, space-indented lines    preformatted
<ref>...</ref> + <references />                    footnotes
<nowiki>...</nowiki>                               literal text
__TOC__ / {{toc}} / __NOTOC__                      table of contents
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from wikicontent.schemas import ParserOptions, ParserOutput, SectionInfo, UserIdentity
from wikicontent.services.language import Language
from wikicontent.services.titles import MAIN_NAMESPACE, Title

log = logging.getLogger(__name__)


# Bump this whenever the render pipeline changes so stale cached output is
# discarded by the parser cache.
RENDERER_VERSION = 13

# Sentinel injected by _expand_macros() in place of {{toc}} / __TOC__.
_TOC_SENTINEL = '<!--WIKICONTENT-TOC-PLACEHOLDER-->'

SectionId = Union[int, str]
PageLookup = Callable[[Title], Optional[str]]


# -----------------------------------------------------------------------------
# Regions the parser must not look inside
# -----------------------------------------------------------------------------

_PROTECTED_RE = re.compile(
    r"<!--.*?(?:-->|\Z)"
    r"|<nowiki>.*?</nowiki>"
    r"|<pre\b[^>]*>.*?</pre>"
    r"|<syntaxhighlight\b[^>]*>.*?</syntaxhighlight>"
    r"|^```[^\n]*\n.*?^```[^\n]*$",
    re.IGNORECASE | re.DOTALL | re.MULTILINE,
)

_INCLUDEONLY_RE  = re.compile(r"<includeonly>.*?(?:</includeonly>|\Z)", re.IGNORECASE | re.DOTALL)
_NOINCLUDE_RE    = re.compile(r"<noinclude>.*?(?:</noinclude>|\Z)", re.IGNORECASE | re.DOTALL)
_ONLYINCLUDE_RE  = re.compile(r"<onlyinclude>(.*?)</onlyinclude>", re.IGNORECASE | re.DOTALL)
_INCLUSION_TAG_RE = re.compile(r"</?(?:noinclude|includeonly|onlyinclude)\s*>", re.IGNORECASE)


def _mask_protected(text: str) -> str:
    """Blank out protected regions, keeping offsets and newlines intact."""
    return _PROTECTED_RE.sub(lambda m: re.sub(r"[^\n]", " ", m.group(0)), text)


def _map_unprotected(text: str, fn: Callable[[str], str], keep_comments: bool = True) -> str:
    """Apply *fn* to every chunk of *text* outside protected regions."""
    out: list[str] = []
    pos = 0
    for m in _PROTECTED_RE.finditer(text):
        out.append(fn(text[pos:m.start()]))
        if keep_comments or not m.group(0).startswith("<!--"):
            out.append(m.group(0))
        pos = m.end()
    out.append(fn(text[pos:]))
    return "".join(out)


def _strip_for_view(text: str) -> str:
    """Drop comments and <includeonly> blocks; unwrap the other inclusion tags."""
    def _clean(chunk: str) -> str:
        chunk = _INCLUDEONLY_RE.sub("", chunk)
        return _INCLUSION_TAG_RE.sub("", chunk)
    return _map_unprotected(text, _clean, keep_comments=False)


# -----------------------------------------------------------------------------
# Syntax highlighting via Pygments
# -----------------------------------------------------------------------------

def _highlight_code(code: str, lang: str) -> str:
    """Highlight *code* using Pygments.  Unknown languages fall back to plain text."""
    from pygments import highlight
    from pygments.formatters import HtmlFormatter
    from pygments.lexers import TextLexer, get_lexer_by_name
    from pygments.util import ClassNotFound

    lang = lang.strip()
    try:
        lexer = get_lexer_by_name(lang, stripall=True) if lang else TextLexer()
    except ClassNotFound:
        lexer = TextLexer()
    return highlight(code, lexer, HtmlFormatter(nowrap=False, cssclass="highlight"))


def _pre(code: str) -> str:
    return f"<pre><code>{_html.escape(code)}</code></pre>"


# -----------------------------------------------------------------------------
# Link syntax
# -----------------------------------------------------------------------------

_WIKILINK_RE  = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")
_CATEGORY_RE  = re.compile(r"\[\[Category:([^\]|]+)(?:\|[^\]]*)?\]\]\n?", re.IGNORECASE)
_FILE_LINK_RE = re.compile(r"\[\[(?:File|Image):[^\]|][^\]]*\]\]", re.IGNORECASE)
_FILE_SIZE_RE = re.compile(r"^(?:(\d+)x(\d+)|(\d+)x|x(\d+)|(\d+))px$", re.IGNORECASE)
_FILE_OPTIONS = ("thumb", "thumbnail", "frame", "frameless", "border",
                 "left", "right", "center", "none")
_TEMPLATE_RE  = re.compile(r"\{\{\s*([^{}|]+?)\s*(?:\|[^{}]*)?\}\}")
_URL_RE       = re.compile(r"(?:https?|ftp)://[^\s<>\[\]\"'|]+", re.IGNORECASE)


def _link_title(target: str, namespace: str) -> Optional[Title]:
    return Title.new_from_text(target, default_namespace=namespace)


# -----------------------------------------------------------------------------
# Wikitext → HTML
# -----------------------------------------------------------------------------

_BLOCK_START_RE = re.compile(r"^\s*<(figure|div|table|blockquote|ul|ol|dl|pre|hr)\b", re.IGNORECASE)
_HEADING_RE_BLOCK = re.compile(r"^(={1,6})\s*(.+?)\s*(=+)\s*$")
_REF_NAMED_RE  = re.compile(r'<ref\s+name=["\']([^"\']+)["\'][^>/]*>(.*?)</ref>', re.IGNORECASE | re.DOTALL)
_REF_EMPTY_RE  = re.compile(r'<ref\s+name=["\']([^"\']+)["\'][^/>]*/>', re.IGNORECASE)
_REF_PLAIN_RE  = re.compile(r"<ref>(.*?)</ref>", re.IGNORECASE | re.DOTALL)
_REFERENCES_RE = re.compile(r"^\s*<references\s*/>\s*$", re.IGNORECASE)
_NOWIKI_RE     = re.compile(r"<nowiki>(.*?)</nowiki>|<nowiki\s*/>", re.IGNORECASE | re.DOTALL)
_PLACEHOLDER_CHARS_RE = re.compile(r"[\x00\x07]")


class _WikitextRenderer:
    """One render of one page; footnotes and categories accumulate as it goes."""

    # Prefix of a line standing in for a finished HTML block
    _HTML = "\x00HTML\x00"

    def __init__(self, namespace: str, base_url: str, attachments: Optional[dict[str, str]]):
        self.namespace = namespace
        self.base_url = base_url
        self.attachments = attachments or {}
        self.notes: list[str] = []
        self.note_names: dict[str, int] = {}
        self.categories: list[str] = []
        self.literals: list[str] = []
        self.blocks: list[str] = []
        self.out: list[str] = []
        self.ul_depth = 0
        self.ol_depth = 0
        self.in_dl = False
        self.para: list[str] = []

    def render(self, text: str) -> str:
        # \x00 and \x07 mark placeholders; they never reach the output
        text = _PLACEHOLDER_CHARS_RE.sub("", text)
        text = _NOWIKI_RE.sub(self._stash_literal, text)
        lines = self._code_blocks(text.splitlines())
        lines = self._footnotes("\n".join(lines)).splitlines()
        lines = self._tables(lines)
        for line in lines:
            if not line.startswith(self._HTML):
                self.categories.extend(m.group(1).strip() for m in _CATEGORY_RE.finditer(line))
        for line in lines:
            self._block(line)
        self._flush_para()
        self._close_lists()
        if self.categories:
            self.out.append(self._category_box())
        return self._restore_literals("\n".join(self.out))

    def _block_token(self, html: str) -> str:
        self.blocks.append(html)
        return f"{self._HTML}{len(self.blocks) - 1}"

    # ── <nowiki> ───────────────────────────────────────────────────────────

    def _stash_literal(self, m: re.Match) -> str:
        self.literals.append(m.group(1) or "")
        return f"\x07{len(self.literals) - 1}\x07"

    def _restore_literals(self, html: str) -> str:
        return re.sub(r"\x07(\d+)\x07", lambda m: _html.escape(self.literals[int(m.group(1))]), html)

    # ── code blocks ────────────────────────────────────────────────────────

    def _collect_until(self, lines: list[str], i: int, first: str, close_re: str) -> tuple[str, int, str]:
        """
        Gather lines from *first* up to the closing tag.
        Returns (code, next index, text following the closing tag on its line).
        """
        collected: list[str] = []
        tail = ""
        rest = first
        while i < len(lines):
            close = re.search(close_re, rest, re.IGNORECASE)
            if close:
                collected.append(rest[:close.start()])
                tail = rest[close.end():]
                break
            collected.append(rest)
            i += 1
            rest = lines[i] if i < len(lines) else ""
        code = "\n".join(collected)
        if code.startswith("\n"):
            code = code[1:]
        return code, i + 1, tail.lstrip()

    def _code_blocks(self, lines: list[str]) -> list[str]:
        result: list[str] = []
        i = 0
        while i < len(lines):
            line = lines[i]

            m = re.match(r'^\s*<syntaxhighlight(?:\s+lang=["\']?([\w+-]+)["\']?)?[^>]*>', line, re.IGNORECASE)
            if m:
                code, i, tail = self._collect_until(lines, i, line[m.end():], r"</syntaxhighlight>")
                lang = m.group(1) or ""
                result.append(self._block_token(_highlight_code(code, lang) if lang else _pre(code)))
                if tail:
                    lines.insert(i, tail)
                continue

            m = re.match(r"^\s*<pre\b[^>]*>", line, re.IGNORECASE)
            if m:
                code, i, tail = self._collect_until(lines, i, line[m.end():], r"</pre>")
                result.append(self._block_token(_pre(code)))
                if tail:
                    lines.insert(i, tail)
                continue

            m = re.match(r"^```([\w+-]*)\s*$", line)
            if m:
                lang = m.group(1)
                i += 1
                start = i
                while i < len(lines) and not lines[i].startswith("```"):
                    i += 1
                code = "\n".join(lines[start:i])
                result.append(self._block_token(_highlight_code(code, lang) if lang else _pre(code)))
                i += 1
                continue

            # Leading space = preformatted, one space stripped
            if line.startswith(" ") and line.strip():
                start = i
                while i < len(lines) and lines[i].startswith(" ") and lines[i].strip():
                    i += 1
                result.append(self._block_token(_pre("\n".join(l[1:] for l in lines[start:i]))))
                continue

            result.append(line)
            i += 1
        return result

    # ── footnotes ──────────────────────────────────────────────────────────

    @staticmethod
    def _marker(idx: int) -> str:
        return f'<sup class="reference"><a href="#cite-note-{idx}" id="cite-ref-{idx}">[{idx}]</a></sup>'

    def _add_note(self, note: str, name: Optional[str] = None) -> int:
        if name is not None and name in self.note_names:
            return self.note_names[name]
        self.notes.append(note.strip())
        idx = len(self.notes)
        if name is not None:
            self.note_names[name] = idx
        return idx

    def _footnotes(self, text: str) -> str:
        text = _REF_NAMED_RE.sub(lambda m: self._marker(self._add_note(m.group(2), m.group(1))), text)

        def _backref(m: re.Match) -> str:
            idx = self.note_names.get(m.group(1))
            return m.group(0) if idx is None else self._marker(idx)
        text = _REF_EMPTY_RE.sub(_backref, text)

        return _REF_PLAIN_RE.sub(lambda m: self._marker(self._add_note(m.group(1))), text)

    def _references(self) -> str:
        items = "\n".join(
            f'<li id="cite-note-{i}"><a href="#cite-ref-{i}">↑</a> {self._inline(note)}</li>'
            for i, note in enumerate(self.notes, 1)
        )
        return f'<div class="references"><ol>{items}</ol></div>'

    # ── inline markup ──────────────────────────────────────────────────────

    def _file(self, m: re.Match) -> str:
        inner = m.group(0)[2:-2]
        parts = [p.strip() for p in inner.split("|")]
        name = parts[0].split(":", 1)[1].strip()
        opts = {p.lower() for p in parts[1:] if p.lower() in _FILE_OPTIONS}

        width = height = ""
        caption = ""
        for p in parts[1:]:
            size = _FILE_SIZE_RE.match(p)
            if size:
                if not (width or height):
                    width  = size.group(1) or size.group(3) or size.group(5) or ""
                    height = size.group(2) or size.group(4) or ""
            elif p.lower() not in opts and not caption:
                caption = p

        url = self.attachments.get(name, "")
        if not url:
            return (f'<a href="/special/upload?filename={_html.escape(name)}" class="missing-file" '
                    f'title="Upload {_html.escape(name)}">File:{_html.escape(name)}</a>')

        thumb = bool(opts & {"thumb", "thumbnail", "frame"})
        align = next((f"img-{o}" for o in ("left", "right", "center") if o in opts), "img-right" if thumb else "")
        size_attrs = (f' width="{width}"' if width else "") + (f' height="{height}"' if height else "")
        img_class = "wiki-thumb" if thumb else "wiki-img"
        if thumb:
            figcaption = f"<figcaption>{caption}</figcaption>" if caption else ""
            return (f'<figure class="wiki-figure {align}">'
                    f'<img src="{url}" alt="{caption}" class="{img_class}"{size_attrs} loading="lazy" />'
                    f'{figcaption}</figure>')
        return f'<img src="{url}" alt="{caption}" class="{img_class} {align}"{size_attrs} loading="lazy" />'

    def _wikilink(self, m: re.Match) -> str:
        target = m.group(1).strip()
        label = (m.group(2) or target.lstrip(":")).strip()
        if target.startswith("#"):
            return f'<a href="#{_slugify_anchor(target[1:])}">{label}</a>'
        title = _link_title(target, self.namespace)
        if title is None:
            return m.group(0)
        return f'<a href="{title.url(self.base_url)}" class="wikilink" title="{_html.escape(title.prefixed_text)}">{label}</a>'

    def _inline(self, text: str) -> str:
        text = _CATEGORY_RE.sub("", text)

        # [URL label] and bare [URL]
        text = re.sub(r"\[(\w+://[^\s\]]+)\s+([^\]]+)\]",
                      lambda m: f'<a href="{m.group(1)}" class="external">{m.group(2)}</a>', text)
        text = re.sub(r"\[(\w+://[^\s\]]+)\]",
                      lambda m: f'<a href="{m.group(1)}" class="external">{m.group(1)}</a>', text)
        # Free URLs not already inside an attribute or anchor text
        text = re.sub(r'(?<!["\'>=\[])(https?://[^\s<>\'"]+)(?=[\s<>\'"]|$)',
                      lambda m: f'<a href="{m.group(1)}" class="external">{m.group(1)}</a>', text)

        text = _FILE_LINK_RE.sub(self._file, text)
        text = _WIKILINK_RE.sub(self._wikilink, text)

        text = re.sub(r"'{5}(.+?)'{5}", r"<b><i>\1</i></b>", text)
        text = re.sub(r"'{3}(.+?)'{3}", r"<b>\1</b>", text)
        text = re.sub(r"'{2}(.+?)'{2}", r"<i>\1</i>", text)
        return text

    # ── tables ─────────────────────────────────────────────────────────────

    def _cells(self, line: str, tag: str) -> list[str]:
        """Split one cell line into <td>/<th> elements (handles || / !! and cell attrs)."""
        sep = "||" if tag == "td" else "!!"
        raw = re.sub(r"^[|!]\s*", "", line)
        cells: list[str] = []
        for part in raw.split(sep):
            part = part.strip()
            attr = re.match(r"^([^|]+)\|(?!\|)(.*)$", part)
            attrs, body = (attr.group(1).strip(), attr.group(2).strip()) if attr else ("", part)
            attr_str = f" {attrs}" if attrs else ""
            cells.append(f"<{tag}{attr_str}>{self._inline(body)}</{tag}>")
        return cells

    def _table(self, block: list[str]) -> str:
        m = re.match(r"^\{\|(.*)$", block[0])
        table_attrs = m.group(1).strip() if m else ""
        caption: Optional[str] = None
        rows: list[str] = []
        row: list[str] = []

        def _end_row() -> None:
            if row:
                rows.append("<tr>" + "".join(row) + "</tr>")
                row.clear()

        for line in block[1:]:
            stripped = line.strip()
            if stripped.startswith("|}"):
                _end_row()
            elif stripped.startswith("|+"):
                caption = self._inline(stripped[2:].strip())
            elif stripped.startswith("|-"):
                _end_row()
            elif stripped.startswith("!"):
                row.extend(self._cells(stripped, "th"))
            elif stripped.startswith("|"):
                row.extend(self._cells(stripped, "td"))
            elif row and stripped:
                # Continuation of the previous cell
                close = re.search(r"</t[dh]>$", row[-1])
                if close:
                    row[-1] = row[-1][:close.start()] + " " + self._inline(stripped) + row[-1][close.start():]
        _end_row()

        attr_str = f" {table_attrs}" if table_attrs else ""
        if "class=" not in attr_str:
            attr_str = ' class="wikitable"' + attr_str
        parts = [f"<table{attr_str}>"]
        if caption:
            parts.append(f"<caption>{caption}</caption>")
        parts.extend(rows)
        parts.append("</table>")
        return "".join(parts)

    def _tables(self, lines: list[str]) -> list[str]:
        result: list[str] = []
        i = 0
        while i < len(lines):
            if not lines[i].startswith("{|"):
                result.append(lines[i])
                i += 1
                continue
            block: list[str] = []
            while i < len(lines):
                block.append(lines[i])
                i += 1
                if block[-1].strip().startswith("|}"):
                    break
            result.append(self._block_token(self._table(block)))
        return result

    # ── block level ────────────────────────────────────────────────────────

    def _flush_para(self) -> None:
        if not self.para:
            return
        rendered = [self._inline(l) for l in self.para]
        self.para.clear()
        if len(rendered) == 1 and _BLOCK_START_RE.match(rendered[0]):
            self.out.append(rendered[0])
        else:
            self.out.append(f"<p>{'<br>'.join(rendered)}</p>")

    def _close_ul(self) -> None:
        self.out.extend(["</ul>"] * self.ul_depth)
        self.ul_depth = 0

    def _close_ol(self) -> None:
        self.out.extend(["</ol>"] * self.ol_depth)
        self.ol_depth = 0

    def _close_dl(self) -> None:
        if self.in_dl:
            self.out.append("</dl>")
            self.in_dl = False

    def _close_lists(self) -> None:
        self._close_ul()
        self._close_ol()
        self._close_dl()

    def _list_item(self, tag: str, depth: int, body: str) -> None:
        current = self.ul_depth if tag == "ul" else self.ol_depth
        if depth > current:
            self.out.extend([f"<{tag}>"] * (depth - current))
        elif depth < current:
            self.out.extend([f"</{tag}>"] * (current - depth))
        if tag == "ul":
            self.ul_depth = depth
        else:
            self.ol_depth = depth
        self.out.append(f"<li>{self._inline(body)}</li>")

    def _block(self, line: str) -> None:
        if line.startswith(self._HTML):
            self._flush_para()
            self._close_lists()
            self.out.append(self.blocks[int(line[len(self._HTML):])])
            return

        stripped = _CATEGORY_RE.sub("", line).rstrip()
        if not stripped.strip():
            self._flush_para()
            self._close_lists()
            return

        m = _HEADING_RE_BLOCK.match(stripped)
        if m:
            self._flush_para()
            self._close_lists()
            level = min(len(m.group(1)), len(m.group(3)), 6)
            self.out.append(f"<h{level}>{self._inline(m.group(2))}</h{level}>")
            return

        if re.match(r"^-{4,}\s*$", stripped):
            self._flush_para()
            self._close_lists()
            self.out.append("<hr>")
            return

        if _REFERENCES_RE.match(stripped):
            self._flush_para()
            self._close_lists()
            if self.notes:
                self.out.append(self._references())
            return

        if re.match(r"^\{\{.+\}\}\s*$", stripped):
            self._flush_para()
            self._close_lists()
            inner = re.sub(r"^\{\{|\}\}$", "", stripped.strip()).strip()
            self.out.append(
                f'<div class="wiki-template"><strong>{{{{</strong> {self._inline(inner)} '
                f'<strong>}}}}</strong></div>'
            )
            return

        m = re.match(r"^(\*+)\s*(.*)", stripped)
        if m:
            self._flush_para()
            self._close_ol()
            self._close_dl()
            self._list_item("ul", len(m.group(1)), m.group(2))
            return

        m = re.match(r"^(#+)\s*(.*)", stripped)
        if m:
            self._flush_para()
            self._close_ul()
            self._close_dl()
            self._list_item("ol", len(m.group(1)), m.group(2))
            return

        m = re.match(r"^;\s*(.+?)\s*:\s*(.*)", stripped)
        if m:
            self._flush_para()
            self._close_ul()
            self._close_ol()
            if not self.in_dl:
                self.out.append("<dl>")
                self.in_dl = True
            self.out.append(f"<dt>{self._inline(m.group(1))}</dt><dd>{self._inline(m.group(2))}</dd>")
            return

        self._close_lists()
        self.para.append(stripped)

    def _category_box(self) -> str:
        links = " · ".join(
            f'<a href="{self.base_url}/wiki/Category/{_html.escape(c)}" class="category-link">{c}</a>'
            for c in self.categories
        )
        return f'<div class="catlinks"><strong>Categories:</strong> {links}</div>'


# -----------------------------------------------------------------------------
# Table of contents
# -----------------------------------------------------------------------------

_MACRO_TOC_RE = re.compile(r"\{\{\s*[Tt][Oo][Cc]\s*\}\}")
_MAGIC_TOC_RE = re.compile(r"__TOC__")
_NOTOC_RE     = re.compile(r"__NOTOC__")
_HEADING_HTML_RE = re.compile(r"<(h[1-6])(?:\s[^>]*)?>(.+?)</h[1-6]>", re.IGNORECASE | re.DOTALL)
_STRIP_TAGS_RE   = re.compile(r"<[^>]+>")


def _expand_macros(content: str) -> tuple[str, bool]:
    """Swap TOC macros for the sentinel; report whether __NOTOC__ was present."""
    notoc = bool(_NOTOC_RE.search(content))
    content = _NOTOC_RE.sub("", content)
    content = _MACRO_TOC_RE.sub(_TOC_SENTINEL, content)
    content = _MAGIC_TOC_RE.sub(_TOC_SENTINEL, content)
    return content, notoc


def _slugify_anchor(text: str) -> str:
    """Convert heading text to a URL-safe anchor ID."""
    text = _STRIP_TAGS_RE.sub("", text)
    text = re.sub(r"'{2,}", "", text)
    text = text.strip().lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-") or "section"


class _AnchorAllocator:
    """Hands out unique anchors: ``intro``, ``intro-1``, ``intro-2`` ..."""

    def __init__(self) -> None:
        self.used: dict[str, int] = {}

    def __call__(self, raw_text: str) -> str:
        base = _slugify_anchor(raw_text)
        count = self.used.get(base, 0)
        self.used[base] = count + 1
        return base if count == 0 else f"{base}-{count}"


def _add_toc(html: str, show_toc: bool = True) -> str:
    """Give every heading an id and put the TOC where the sentinel sits."""
    anchor_for = _AnchorAllocator()
    entries: list[tuple[int, str, str]] = []

    def _with_id(m: re.Match) -> str:
        tag, inner = m.group(1).lower(), m.group(2)
        plain = _STRIP_TAGS_RE.sub("", inner).strip()
        anchor = anchor_for(plain)
        entries.append((int(tag[1]), anchor, plain))
        return f'<{tag} id="{anchor}">{inner}</{tag}>'

    html = _HEADING_HTML_RE.sub(_with_id, html)
    html = re.sub(r"<p>\s*" + re.escape(_TOC_SENTINEL) + r"\s*</p>", _TOC_SENTINEL, html)

    if _TOC_SENTINEL not in html:
        return html
    if not show_toc or not entries:
        return html.replace(_TOC_SENTINEL, "")

    base_level = min(level for level, _, _ in entries)
    toc = ['<div class="toc">', '<div class="toc-title">Contents</div>', '<ol class="toc-list">']
    depth: list[int] = []
    for level, anchor, plain in entries:
        rel = level - base_level
        while len(depth) < rel:
            toc.append("<ol>")
            depth.append(rel)
        while depth and depth[-1] > rel:
            toc.append("</ol>")
            depth.pop()
        toc.append(f'<li><a href="#{anchor}">{plain}</a></li>')
    toc.extend(["</ol>"] * len(depth))
    toc.extend(["</ol>", "</div>"])

    # Only the first placeholder becomes a TOC
    html = html.replace(_TOC_SENTINEL, "\n".join(toc), 1)
    return html.replace(_TOC_SENTINEL, "")


# -----------------------------------------------------------------------------
# External link post-processor
# -----------------------------------------------------------------------------

_EXT_LINK_RE = re.compile(r"<a\s([^>]*href=[\"'](?:https?://|//)[^\"'>][^>]*)>", re.IGNORECASE)


def _add_external_link_targets(html: str) -> str:
    """Add target="_blank" rel="noopener noreferrer" to external <a> tags."""
    def _patch(m: re.Match) -> str:
        attrs = m.group(1)
        if "target=" in attrs:
            return m.group(0)
        return f'<a {attrs} target="_blank" rel="noopener noreferrer">'
    return _EXT_LINK_RE.sub(_patch, html)


# -----------------------------------------------------------------------------
# Public render function
# -----------------------------------------------------------------------------

def render(
    content: str,
    namespace: str = MAIN_NAMESPACE,
    base_url: str = "",
    attachments: dict[str, str] | None = None,
    enable_toc: bool = True,
) -> str:
    """
    Render wikitext *content* to an HTML fragment.

    Parameters
    ----------
    content     : raw wikitext
    namespace   : namespace of the page being rendered; unprefixed links
                  resolve into it
    base_url    : site base URL prefix for links
    attachments : optional mapping of filename → URL used by [[File:...]]
    enable_toc  : False suppresses the TOC even where a macro asks for one
    """
    content, notoc = _expand_macros(_strip_for_view(content))
    html = _WikitextRenderer(namespace, base_url, attachments).render(content)
    return _add_toc(_add_external_link_targets(html), show_toc=enable_toc and not notoc)


# -----------------------------------------------------------------------------
# Metadata extraction
# -----------------------------------------------------------------------------

def extract_categories(content: str) -> list[str]:
    """Return a sorted, deduplicated list of category names declared in *content*."""
    seen: set[str] = set()
    result: list[str] = []
    for m in _CATEGORY_RE.finditer(_mask_protected(content)):
        name = m.group(1).strip()
        if name.lower() not in seen:
            seen.add(name.lower())
            result.append(name)
    return sorted(result, key=str.lower)


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _extract_links(masked: str, namespace: str) -> tuple[list[str], list[str]]:
    """Return (page links, image names) from masked wikitext."""
    links: list[str] = []
    images: list[str] = []
    for m in _WIKILINK_RE.finditer(masked):
        target = m.group(1).strip()
        lowered = target.lower()
        if lowered.startswith("category:"):
            continue
        if lowered.startswith(("file:", "image:")):
            images.append(target.split(":", 1)[1].strip())
            continue
        title = _link_title(target, namespace)
        if title is not None:
            links.append(title.prefixed_text)
    return _dedupe(links), _dedupe(images)


def _extract_templates(masked: str) -> list[str]:
    templates: list[str] = []
    for m in _TEMPLATE_RE.finditer(masked):
        name = m.group(1).strip()
        if name.lower() == "toc" or name.startswith("#") or name.lower().startswith(("subst:", "safesubst:")):
            continue
        title = Title.new_from_text(name, default_namespace="Template")
        if title is not None:
            templates.append(title.prefixed_text)
    return _dedupe(templates)


def _extract_external_links(masked: str) -> list[str]:
    return _dedupe([m.group(0).rstrip(".,;:!?)") for m in _URL_RE.finditer(masked)])


# -----------------------------------------------------------------------------
# Sections
# -----------------------------------------------------------------------------

_SECTION_HEADING_RE = re.compile(r"^(=+)(.+?)(=+)[ \t]*\r?$", re.MULTILINE)


def _headings(text: str) -> list[tuple[int, int, str]]:
    """Return (offset, level, line) for every section heading in *text*."""
    found: list[tuple[int, int, str]] = []
    for m in _SECTION_HEADING_RE.finditer(_mask_protected(text)):
        left, right = len(m.group(1)), len(m.group(3))
        level = min(left, right, 6)
        line = "=" * (left - level) + m.group(2) + "=" * (right - level)
        found.append((m.start(), level, line.strip()))
    return found


def _section_span(text: str, section: SectionId) -> Optional[tuple[int, int]]:
    """Offsets of *section* (with its subsections) or None when there is none."""
    headings = _headings(text)

    if isinstance(section, int) or (isinstance(section, str) and section.strip().isdigit()):
        index = int(section)
    elif isinstance(section, str) and section.strip():
        wanted = _slugify_anchor(section.strip())
        anchor_for = _AnchorAllocator()
        index = next(
            (i for i, (_, _, line) in enumerate(headings, 1) if anchor_for(line) == wanted),
            -1,
        )
    else:
        return None

    if index == 0:
        return 0, headings[0][0] if headings else len(text)
    if index < 1 or index > len(headings):
        return None

    start, level, _ = headings[index - 1]
    end = next((off for off, lvl, _ in headings[index:] if lvl <= level), len(text))
    return start, end


# -----------------------------------------------------------------------------
# Redirects
# -----------------------------------------------------------------------------

REDIRECT_RE = re.compile(r"^\s*#REDIRECT\s*:?\s*\[\[([^\]|]+)(?:\|[^\]]*)?\]\]", re.IGNORECASE)


def parse_redirect(content: str) -> str | None:
    """Return the raw redirect target if *content* starts with ``#REDIRECT [[...]]``."""
    m = REDIRECT_RE.match(content)
    return m.group(1).strip() if m else None


# -----------------------------------------------------------------------------
# Pre-save transform
# -----------------------------------------------------------------------------

_TILDES_RE    = re.compile(r"~~~~~|~~~~|~~~")
_PIPE_TRICK_RE = re.compile(r"\[\[([^\]|]+)\|\]\]")


def _pipe_trick(m: re.Match) -> str:
    target = m.group(1)
    label = re.sub(r"^:?[^:]+:", "", target.strip()) if ":" in target else target.strip()
    label = re.sub(r"\s*\([^()]*\)$", "", label)
    label = label.split(",", 1)[0]
    return f"[[{target}|{label.strip()}]]"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Parser
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Parser:
    """Stateless wikitext parser; safe to share between content values."""

    def __init__(
        self,
        language: Optional[Language] = None,
        base_url: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.language = language or Language()
        self.base_url = base_url
        self.clock = clock

    # ── rendering ──────────────────────────────────────────────────────────

    def parse(
        self,
        text: str,
        title: Title,
        options: Optional[ParserOptions] = None,
        revision_id: Optional[int] = None,
        generate_html: bool = True,
    ) -> ParserOutput:
        options = options or ParserOptions()
        view_text = _strip_for_view(text)
        masked = _mask_protected(view_text)

        links, images = _extract_links(masked, title.namespace)
        redirect = self.get_redirect_target(view_text, title.namespace)
        if redirect is not None:
            links = _dedupe([redirect.prefixed_text, *links])

        html = ""
        if generate_html:
            body = view_text
            if redirect is not None:
                body = REDIRECT_RE.sub("", view_text, count=1)
            html = render(
                body,
                namespace=title.namespace,
                base_url=self.base_url,
                attachments=options.attachments,
                enable_toc=options.enable_toc,
            )
            if redirect is not None:
                html = self._redirect_notice(redirect) + html

        return ParserOutput(
            html=html,
            text_available=generate_html,
            title=title.prefixed_text,
            revision_id=revision_id,
            links=links,
            templates=_extract_templates(masked),
            categories=extract_categories(view_text),
            external_links=_extract_external_links(masked),
            images=images,
            sections=self.get_sections(text),
            redirect_target=redirect.full_text if redirect is not None else None,
            renderer_version=RENDERER_VERSION,
        )

    def render_fragment(self, text: str, title: Optional[Title] = None) -> str:
        namespace = title.namespace if title is not None else MAIN_NAMESPACE
        return render(text, namespace=namespace, base_url=self.base_url, enable_toc=False)

    def _redirect_notice(self, target: Title) -> str:
        label = _html.escape(target.full_text)
        return (
            '<div class="redirectMsg">'
            f'<p>{_html.escape(self.language.get_message("redirectto"))}</p>'
            f'<ul class="redirectText"><li><a href="{target.url(self.base_url)}" class="wikilink">{label}</a></li></ul>'
            '</div>\n'
        )

    # ── sections ───────────────────────────────────────────────────────────

    def get_sections(self, text: str) -> list[SectionInfo]:
        anchor_for = _AnchorAllocator()
        return [
            SectionInfo(index=i, level=level, line=line, anchor=anchor_for(line),
                        byte_offset=len(text[:offset].encode("utf-8")))
            for i, (offset, level, line) in enumerate(_headings(text), 1)
        ]

    def get_section(self, text: str, section: SectionId) -> Optional[str]:
        """Text of *section* without trailing whitespace, or None if it does not exist."""
        span = _section_span(text, section)
        if span is None:
            return None
        start, end = span
        return text[start:end].rstrip()

    def replace_section(self, text: str, section: SectionId, new_text: str) -> Optional[str]:
        """
        Swap *section* for *new_text*. Everything outside the section's
        (rstripped) span is kept byte for byte. None if the section is missing.
        """
        span = _section_span(text, section)
        if span is None:
            return None
        start, end = span
        end = start + len(text[start:end].rstrip())
        rest = text[end:]
        if new_text and rest and not rest.startswith(("\n", "\r")) and not new_text.endswith("\n"):
            # Empty lead section directly followed by a heading
            new_text += "\n\n"
        return text[:start] + new_text + rest

    # ── transforms ─────────────────────────────────────────────────────────

    def signature(self, user: UserIdentity) -> str:
        if user.is_registered:
            return self.language.get_message("signature", [user.name, user.nickname or user.name])
        return self.language.get_message("signature-anon", [user.name, user.name])

    def pre_save_transform(
        self,
        text: str,
        title: Title,
        user: UserIdentity,
        options: Optional[ParserOptions] = None,
    ) -> str:
        options = options or ParserOptions()
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        stamp = self.language.timeanddate(options.timestamp or self.clock())
        sig = self.signature(user)
        expansions = {5: stamp, 4: f"{sig} {stamp}", 3: sig}

        def _pass(chunk: str) -> str:
            chunk = _TILDES_RE.sub(lambda m: expansions[len(m.group(0))], chunk)
            return _PIPE_TRICK_RE.sub(_pipe_trick, chunk)

        return _map_unprotected(text, _pass).rstrip()

    def get_preload_text(self, text: str, title: Title, options: Optional[ParserOptions] = None) -> str:
        only = _ONLYINCLUDE_RE.findall(text)
        if only:
            text = "".join(only)
        text = _NOINCLUDE_RE.sub("", text)
        return re.sub(r"</?includeonly\s*>", "", text, flags=re.IGNORECASE)

    # ── redirects ──────────────────────────────────────────────────────────

    def get_redirect_target(self, text: str, namespace: str = MAIN_NAMESPACE) -> Optional[Title]:
        target = parse_redirect(text)
        if target is None:
            return None
        return Title.new_from_text(target, default_namespace=namespace)

    def get_redirect_chain(
        self,
        text: str,
        page_lookup: Optional[PageLookup] = None,
        max_redirects: int = 1,
        namespace: str = MAIN_NAMESPACE,
    ) -> Optional[list[Title]]:
        """
        Titles visited following the redirect in *text*, destination last.

        At most ``max(1, max_redirects)`` titles are returned; a loop back
        to an already visited page stops the walk.
        """
        title = self.get_redirect_target(text, namespace)
        if title is None:
            return None
        chain = [title]
        remaining = max_redirects
        while page_lookup is not None and remaining > 1:
            remaining -= 1
            target_text = page_lookup(title.without_fragment())
            if target_text is None:
                break
            next_title = self.get_redirect_target(target_text, title.namespace)
            if next_title is None:
                break
            if any(next_title.same_page(seen) for seen in chain):
                log.debug("Redirect loop at %s", next_title.prefixed_text)
                break
            chain.append(next_title)
            title = next_title
        return chain


# -----------------------------------------------------------------------------

def is_cache_valid(output: ParserOutput | None) -> bool:
    """Return True only if *output* was produced by the current renderer version."""
    return output is not None and output.renderer_version == RENDERER_VERSION


# -----------------------------------------------------------------------------
