#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Parser cache
============
In-memory store of render results, keyed by page and render options.

An entry is served only while it still matches what would be rendered now:
same revision, same content, same renderer version, not expired.  Every
successful ``save()`` fires the ``ParserCacheSaveComplete`` hook exactly
once with the committed output.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Optional

from wikicontent.schemas import ParserOptions, ParserOutput
from wikicontent.services.hooks import PARSER_CACHE_SAVE_COMPLETE, HookRegistry
from wikicontent.services.renderer import is_cache_valid
from wikicontent.services.titles import Title

if TYPE_CHECKING:
    from wikicontent.models.content import Content

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def content_hash(content: Content) -> str:
    return hashlib.sha1(content.serialize().encode("utf-8")).hexdigest()


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class _Entry:
    output: ParserOutput
    revision_id: Optional[int]
    content_hash: str
    cache_time: datetime


class ParserCache:

    def __init__(
        self,
        name: str = "pcache",
        hooks: Optional[HookRegistry] = None,
        expiry: int = 60 * 60 * 24,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.name = name
        self.hooks = hooks or HookRegistry()
        self.expiry = expiry
        self.clock = clock
        self._entries: dict[str, _Entry] = {}

    def __repr__(self) -> str:
        return f"<ParserCache {self.name!r} entries={len(self._entries)}>"

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def make_key(title: Title, options: ParserOptions) -> str:
        return f"{title.dbkey}!{options.options_hash()}"

    # ── read ───────────────────────────────────────────────────────────────

    def get(
        self,
        title: Title,
        content: Content,
        options: Optional[ParserOptions] = None,
        revision_id: Optional[int] = None,
    ) -> Optional[ParserOutput]:
        """Cached output for this exact content, or None."""
        options = options or ParserOptions()
        key = self.make_key(title, options)
        entry = self._entries.get(key)
        if entry is None:
            log.debug("%s: miss %s", self.name, key)
            return None

        reason = self._stale_reason(entry, content, revision_id)
        if reason:
            log.debug("%s: discarding %s (%s)", self.name, key, reason)
            del self._entries[key]
            return None

        log.debug("%s: hit %s", self.name, key)
        return entry.output.model_copy(deep=True)

    def _stale_reason(self, entry: _Entry, content: Content, revision_id: Optional[int]) -> str:
        if not is_cache_valid(entry.output):
            return "renderer version"
        if self.expiry and self.clock() - entry.cache_time > timedelta(seconds=self.expiry):
            return "expired"
        if revision_id is not None and entry.revision_id != revision_id:
            return "revision"
        if entry.content_hash != content_hash(content):
            return "content changed"
        return ""

    # ── write ──────────────────────────────────────────────────────────────

    def save(
        self,
        output: ParserOutput,
        title: Title,
        content: Content,
        options: Optional[ParserOptions] = None,
        revision_id: Optional[int] = None,
    ) -> ParserOutput:
        """Commit a copy of *output* and return another copy of what was stored."""
        if not output.text_available:
            log.debug("%s: not caching metadata-only output for %s", self.name, title.prefixed_text)
            return output

        options = options or ParserOptions()
        now = self.clock()
        committed = output.model_copy(deep=True, update={
            "cache_time": now,
            "revision_id": revision_id if revision_id is not None else output.revision_id,
        })

        key = self.make_key(title, options)
        self._entries[key] = _Entry(
            output=committed,
            revision_id=revision_id,
            content_hash=content_hash(content),
            cache_time=now,
        )
        log.debug("%s: saved %s rev=%s", self.name, key, revision_id)

        # One copy per observer; neither the entry nor later observers see changes
        for callback in self.hooks.handlers(PARSER_CACHE_SAVE_COMPLETE):
            if callback(self, committed.model_copy(deep=True), title, options, revision_id) is False:
                log.debug("%s: save-complete handler %r aborted the chain for %s", self.name, callback, key)
                break
        return committed.model_copy(deep=True)

    def get_or_render(
        self,
        title: Title,
        content: Content,
        options: Optional[ParserOptions] = None,
        revision_id: Optional[int] = None,
    ) -> ParserOutput:
        options = options or ParserOptions()
        cached = self.get(title, content, options, revision_id)
        if cached is not None:
            return cached
        output = content.get_parser_output(title, revision_id=revision_id, options=options)
        return self.save(output, title, content, options, revision_id)

    def delete(self, title: Title, options: Optional[ParserOptions] = None) -> bool:
        """Drop the entry for *title*; every options variant when *options* is None."""
        if options is not None:
            return self._entries.pop(self.make_key(title, options), None) is not None
        prefix = f"{title.dbkey}!"
        doomed = [k for k in self._entries if k.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        return bool(doomed)

    def clear(self) -> None:
        self._entries.clear()


# -----------------------------------------------------------------------------
