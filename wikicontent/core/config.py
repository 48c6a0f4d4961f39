#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Content configuration.

All values can be overridden via environment variables or a .env file.
Content values never read ``Settings`` themselves: a frozen ``ContentConfig``
is derived once and handed to them through the ``ContentContext``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wikicontent._version import __version__ as _pkg_version


CountMethod = Literal["any", "comma", "link"]


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "WikiContent"
    app_version: str = _pkg_version
    base_url: str = ""
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"

    # ── Content ────────────────────────────────────────────────────────────

    default_namespace: str = "Main"
    article_count_method: CountMethod = "link"
    content_language: str = "en"
    max_redirects: int = Field(default=1, ge=0)

    # ── Parser cache ───────────────────────────────────────────────────────

    parser_cache_expiry: int = 60 * 60 * 24   # 1 day

    # ── User option defaults ───────────────────────────────────────────────

    default_skin: str = "vector"
    installed_skins: list[str] = ["vector", "monobook", "timeless", "minerva"]
    default_user_options: dict[str, Any] = {
        "editsection": 1,
        "editfont": "monospace",
        "numberheadings": 0,
        "rcdays": 7,
        "rclimit": 50,
        "showhiddencats": 0,
        "thumbsize": 5,
        "watchcreations": 1,
    }
    valid_namespaces: list[int] = list(range(0, 16))
    namespaces_to_be_searched_default: dict[int, bool] = {0: True}

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"


# -----------------------------------------------------------------------------

class ContentConfig(BaseModel):
    """The slice of configuration content values are allowed to see."""

    model_config = ConfigDict(frozen=True)

    count_method: CountMethod = "link"
    content_language: str = "en"
    max_redirects: int = Field(default=1, ge=0)
    base_url: str = ""
    default_namespace: str = "Main"

    @classmethod
    def from_settings(cls, settings: Settings) -> ContentConfig:
        return cls(
            count_method=settings.article_count_method,
            content_language=settings.content_language,
            max_redirects=settings.max_redirects,
            base_url=settings.base_url,
            default_namespace=settings.default_namespace,
        )


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
