#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 value objects exchanged between content values and their
collaborators (parser, parser cache, diff).
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Users
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class UserIdentity(BaseModel):
    """Who is saving. ``id == 0`` means anonymous; the name is then an IP."""

    model_config = ConfigDict(frozen=True)

    id: int = 0
    name: str
    nickname: Optional[str] = None

    @property
    def is_registered(self) -> bool:
        return self.id != 0


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Parser options
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

# Options that change the rendered HTML and therefore split the parser cache.
_RENDER_OPTION_FIELDS = ("attachments", "user_language", "enable_toc", "interface_message")


class ParserOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    attachments: dict[str, str] = Field(default_factory=dict)   # filename → URL
    user_language: str = "en"
    timestamp: Optional[datetime] = None     # "now" for signatures; None = clock
    enable_toc: bool = True
    preview: bool = False
    interface_message: bool = False

    def options_hash(self) -> str:
        """Stable digest of the options that affect rendered output."""
        data = {name: getattr(self, name) for name in _RENDER_OPTION_FIELDS}
        raw = json.dumps(data, sort_keys=True, default=str)
        return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Parser output
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SectionInfo(BaseModel):
    index: int           # 1-based, as used by section edit links
    level: int
    line: str            # heading text without the = markers
    anchor: str
    byte_offset: int


# -----------------------------------------------------------------------------

class SecondaryDataUpdate(BaseModel):
    """Descriptor for an update to some secondary data store."""

    kind: str
    title: str


class LinksUpdate(SecondaryDataUpdate):
    kind: Literal["links"] = "links"
    recursive: bool = False
    links: list[str] = Field(default_factory=list)
    templates: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    external_links: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)


# -----------------------------------------------------------------------------

class ParserOutput(BaseModel):
    """Rendered HTML plus the metadata secondary updates are derived from."""

    html: str = ""
    text_available: bool = True
    title: str = ""
    revision_id: Optional[int] = None
    links: list[str] = Field(default_factory=list)
    templates: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    external_links: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    sections: list[SectionInfo] = Field(default_factory=list)
    redirect_target: Optional[str] = None
    renderer_version: int = 0
    cache_time: Optional[datetime] = None
    extra_updates: list[SecondaryDataUpdate] = Field(default_factory=list)

    def get_text(self) -> str:
        return self.html

    def has_links(self) -> bool:
        return bool(self.links)

    def add_secondary_data_update(self, update: SecondaryDataUpdate) -> None:
        self.extra_updates.append(update)

    def get_secondary_data_updates(self, title: str, recursive: bool = False) -> list[SecondaryDataUpdate]:
        """The links update for *title*, followed by any registered extras."""
        links_update = LinksUpdate(
            title=title,
            recursive=recursive,
            links=list(self.links),
            templates=list(self.templates),
            categories=list(self.categories),
            external_links=list(self.external_links),
            images=list(self.images),
        )
        return [links_update, *self.extra_updates]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Diff
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DiffOp(BaseModel):
    type: Literal["equal", "insert", "delete"]
    lines: list[str]


class DiffResult(BaseModel):
    ops: list[DiffOp] = Field(default_factory=list)

    def is_empty(self) -> bool:
        """True when both sides were identical."""
        return all(op.type == "equal" for op in self.ops)

    @property
    def added_lines(self) -> list[str]:
        return [line for op in self.ops if op.type == "insert" for line in op.lines]

    @property
    def deleted_lines(self) -> list[str]:
        return [line for op in self.ops if op.type == "delete" for line in op.lines]

    def to_groups(self) -> list[dict]:
        return [op.model_dump() for op in self.ops]


# -----------------------------------------------------------------------------
