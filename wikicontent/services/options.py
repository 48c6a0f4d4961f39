#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Default user options
====================
``DefaultOptionsLookup`` answers option queries for users that have no
stored preferences (anonymous users, or any user in a database-less test
run) from site configuration alone.

The generic defaults are computed at most once per lookup and memoised;
``reset()`` drops the memo.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from wikicontent.core.config import Settings
from wikicontent.core.exceptions import PreconditionError
from wikicontent.schemas import UserIdentity
from wikicontent.services.hooks import USER_GET_DEFAULT_OPTIONS, HookRegistry
from wikicontent.services.language import LANGUAGES_WITH_STATIC_DEFAULT_VARIANT, LANGUAGES_WITH_VARIANTS, Language

log = logging.getLogger(__name__)


# Option flags for get_options()
EXCLUDE_DEFAULTS = 1

# Numeric skin settings from old preference rows
_LEGACY_SKIN_KEYS = {"0": "", "2": "cologneblue"}


def normalize_skin_key(key: Optional[str], default_skin: str, installed: list[str]) -> str:
    """Map a skin preference to an installed skin, falling back to the default."""
    installed_keys = [s.lower() for s in installed]
    key = (key or "").strip().lower()
    if key in ("", "default"):
        key = default_skin.lower()
    if key in installed_keys:
        return key
    key = _LEGACY_SKIN_KEYS.get(key, key) or default_skin.lower()
    if key in installed_keys:
        return key
    if default_skin.lower() in installed_keys:
        return default_skin.lower()
    return installed_keys[0] if installed_keys else "fallback"


# -----------------------------------------------------------------------------

Predicate = Callable[[UserIdentity], bool]


class ConditionalDefaultsLookup:
    """
    Per-user defaults: for each option, an ordered list of
    ``(value, predicate)``; the first predicate matching the user wins.
    """

    def __init__(self, rules: Optional[dict[str, list[tuple[Any, Predicate]]]] = None):
        self._rules = {name: list(cases) for name, cases in (rules or {}).items()}

    def add(self, option: str, value: Any, predicate: Predicate) -> None:
        self._rules.setdefault(option, []).append((value, predicate))

    def get_conditionally_default_options(self) -> list[str]:
        return list(self._rules)

    def get_option_default_for_user(self, option: str, user: UserIdentity) -> Any:
        for value, predicate in self._rules.get(option, ()):
            if predicate(user):
                return value
        return None


# -----------------------------------------------------------------------------

class DefaultOptionsLookup:

    def __init__(
        self,
        settings: Settings,
        content_language: Language,
        hooks: Optional[HookRegistry] = None,
        conditional_defaults: Optional[ConditionalDefaultsLookup] = None,
        is_databaseless_test: bool = False,
    ):
        self.settings = settings
        self.content_language = content_language
        self.hooks = hooks or HookRegistry()
        self.conditional_defaults = conditional_defaults or ConditionalDefaultsLookup()
        self.is_databaseless_test = is_databaseless_test
        self._defaults: Optional[dict[str, Any]] = None

    def reset(self) -> None:
        self._defaults = None

    def _generic_defaults(self) -> dict[str, Any]:
        if self._defaults is not None:
            return self._defaults

        defaults = dict(self.settings.default_user_options)

        # The static default variant is not always the language code
        code = self.content_language.code
        defaults["language"] = code
        defaults["variant"] = LANGUAGES_WITH_STATIC_DEFAULT_VARIANT.get(code, code)
        for lang in LANGUAGES_WITH_VARIANTS:
            defaults[f"variant-{lang}"] = LANGUAGES_WITH_STATIC_DEFAULT_VARIANT.get(lang, lang)

        searched = self.settings.namespaces_to_be_searched_default
        for ns in self.settings.valid_namespaces:
            defaults[f"searchNs{ns}"] = 1 if searched.get(ns, False) else 0

        defaults["skin"] = normalize_skin_key(
            self.settings.default_skin, self.settings.default_skin, self.settings.installed_skins)

        self.hooks.run(USER_GET_DEFAULT_OPTIONS, defaults)
        log.debug("Computed %d default user options", len(defaults))

        self._defaults = defaults
        return defaults

    def get_default_options(self, user: Optional[UserIdentity] = None) -> dict[str, Any]:
        defaults = dict(self._generic_defaults())
        if user is not None:
            lookup = self.conditional_defaults
            for name in lookup.get_conditionally_default_options():
                value = lookup.get_option_default_for_user(name, user)
                if value is not None:
                    defaults[name] = value
        return defaults

    def get_default_option(self, name: str, user: Optional[UserIdentity] = None) -> Any:
        return self.get_default_options(user).get(name)

    def get_option(self, user: UserIdentity, name: str, default_override: Any = None) -> Any:
        self._verify_usable(user, "get_option")
        value = self.get_default_option(name)
        return default_override if value is None else value

    def get_options(self, user: UserIdentity, flags: int = 0) -> dict[str, Any]:
        self._verify_usable(user, "get_options")
        if flags & EXCLUDE_DEFAULTS:
            return {}
        return self.get_default_options()

    def _verify_usable(self, user: UserIdentity, fname: str) -> None:
        if self.is_databaseless_test:
            return
        if user.is_registered:
            raise PreconditionError(f"{fname} called on a registered user", details={"user": user.name})


# -----------------------------------------------------------------------------
