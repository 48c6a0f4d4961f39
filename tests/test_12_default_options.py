#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the default user options lookup."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from wikicontent.core.config import Settings
from wikicontent.core.exceptions import PreconditionError
from wikicontent.schemas import UserIdentity
from wikicontent.services.hooks import USER_GET_DEFAULT_OPTIONS
from wikicontent.services.language import Language
from wikicontent.services.options import (
    EXCLUDE_DEFAULTS,
    ConditionalDefaultsLookup,
    DefaultOptionsLookup,
    normalize_skin_key,
)


ANON = UserIdentity(name="127.0.0.1")
ALICE = UserIdentity(id=7, name="Alice")


@pytest.fixture
def lookup(settings, language, hooks):
    return DefaultOptionsLookup(settings, language, hooks=hooks)


# =============================================================================
# Generic defaults
# =============================================================================

def test_configured_defaults_are_included(lookup):
    defaults = lookup.get_default_options()
    assert defaults["rclimit"] == 50
    assert defaults["editfont"] == "monospace"


def test_language_and_variant_follow_content_language(settings, hooks):
    defaults = DefaultOptionsLookup(settings, Language("sr"), hooks=hooks).get_default_options()
    assert defaults["language"] == "sr"
    assert defaults["variant"] == "sr-ec"


def test_variant_defaults_to_language_code(lookup):
    defaults = lookup.get_default_options()
    assert defaults["language"] == "en"
    assert defaults["variant"] == "en"


def test_per_language_variant_options(lookup):
    defaults = lookup.get_default_options()
    assert defaults["variant-zh"] == "zh"
    assert defaults["variant-kk"] == "kk-cyrl"
    assert "variant-en" not in defaults


def test_search_namespace_options(lookup):
    defaults = lookup.get_default_options()
    assert defaults["searchNs0"] == 1
    assert defaults["searchNs1"] == 0
    assert defaults["searchNs15"] == 0
    assert "searchNs16" not in defaults


def test_skin_is_normalised(hooks, language):
    settings = Settings(_env_file=None, environment="testing", default_skin="MonoBook")
    assert DefaultOptionsLookup(settings, language, hooks=hooks).get_default_option("skin") == "monobook"


# ── memoisation ─────────────────────────────────────────────────────────────

def test_hook_runs_once_until_reset(lookup, hooks):
    calls = []
    hooks.register(USER_GET_DEFAULT_OPTIONS, lambda defaults: calls.append(1))

    lookup.get_default_options()
    lookup.get_default_option("rclimit")
    assert len(calls) == 1

    lookup.reset()
    lookup.get_default_options()
    assert len(calls) == 2


def test_hook_can_change_defaults(lookup, hooks):
    def _customise(defaults):
        defaults["rclimit"] = 100
        defaults["gadget-foo"] = 1

    hooks.register(USER_GET_DEFAULT_OPTIONS, _customise)
    defaults = lookup.get_default_options()
    assert defaults["rclimit"] == 100
    assert defaults["gadget-foo"] == 1


def test_callers_get_a_copy(lookup):
    lookup.get_default_options()["rclimit"] = -1
    assert lookup.get_default_option("rclimit") == 50


def test_unknown_option_is_none(lookup):
    assert lookup.get_default_option("no-such-option") is None


# =============================================================================
# Conditional defaults
# =============================================================================

def test_first_matching_rule_wins(settings, language, hooks):
    conditional = ConditionalDefaultsLookup()
    conditional.add("rclimit", 500, lambda user: user.name.startswith("A"))
    conditional.add("rclimit", 250, lambda user: user.is_registered)
    lookup = DefaultOptionsLookup(settings, language, hooks=hooks, conditional_defaults=conditional)

    assert lookup.get_default_option("rclimit", ALICE) == 500
    assert lookup.get_default_option("rclimit", UserIdentity(id=9, name="Bob")) == 250
    assert lookup.get_default_option("rclimit", ANON) == 50
    assert lookup.get_default_option("rclimit") == 50


def test_conditional_rules_from_constructor():
    conditional = ConditionalDefaultsLookup({"thumbsize": [(3, lambda user: True)]})
    assert conditional.get_conditionally_default_options() == ["thumbsize"]
    assert conditional.get_option_default_for_user("thumbsize", ANON) == 3
    assert conditional.get_option_default_for_user("rclimit", ANON) is None


# =============================================================================
# Per-user queries
# =============================================================================

def test_anonymous_user_gets_defaults(lookup):
    assert lookup.get_option(ANON, "rcdays") == 7
    assert lookup.get_options(ANON)["watchcreations"] == 1


def test_default_override_for_missing_option(lookup):
    assert lookup.get_option(ANON, "no-such-option", "fallback") == "fallback"
    assert lookup.get_option(ANON, "rcdays", "fallback") == 7


def test_exclude_defaults_flag(lookup):
    assert lookup.get_options(ANON, EXCLUDE_DEFAULTS) == {}


def test_registered_user_is_rejected(lookup):
    with pytest.raises(PreconditionError) as exc:
        lookup.get_option(ALICE, "rcdays")
    assert exc.value.details == {"user": "Alice"}
    with pytest.raises(PreconditionError):
        lookup.get_options(ALICE)


def test_registered_user_allowed_in_databaseless_tests(settings, language, hooks):
    lookup = DefaultOptionsLookup(settings, language, hooks=hooks, is_databaseless_test=True)
    assert lookup.get_option(ALICE, "rcdays") == 7


# =============================================================================
# Skin keys
# =============================================================================

INSTALLED = ["vector", "monobook", "timeless"]


@pytest.mark.parametrize("key,expected", [
    ("monobook", "monobook"),
    ("Timeless", "timeless"),
    ("", "vector"),
    (None, "vector"),
    ("default", "vector"),
    ("0", "vector"),
    ("2", "vector"),
    ("no-such-skin", "vector"),
])
def test_normalize_skin_key(key, expected):
    assert normalize_skin_key(key, "vector", INSTALLED) == expected


def test_normalize_skin_key_without_usable_default():
    assert normalize_skin_key("nope", "missing", ["timeless"]) == "timeless"
    assert normalize_skin_key("nope", "missing", []) == "fallback"
