#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for WikiContent tests.
Everything runs in memory: pages live in a plain dict behind ``page_lookup``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from wikicontent.core.config import ContentConfig, Settings
from wikicontent.core.context import build_context
from wikicontent.services.hooks import HookRegistry
from wikicontent.services.language import Language
from wikicontent.services.renderer import Parser
from wikicontent.services.titles import Title


# -----------------------------------------------------------------------------

FIXED_NOW = datetime(2024, 1, 15, 12, 34, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    return Settings(_env_file=None, environment="testing")


@pytest.fixture
def language():
    return Language("en")


@pytest.fixture
def hooks():
    return HookRegistry()


@pytest.fixture
def parser(language):
    return Parser(language=language, clock=lambda: FIXED_NOW)


@pytest.fixture
def page_store():
    """Stored wikitext by prefixed title; tests add pages as they need them."""
    return {}


@pytest.fixture
def make_context(settings, language, hooks, parser, page_store):
    """Build a context; keyword arguments override ``ContentConfig`` fields."""
    def _make(**overrides):
        config = ContentConfig.from_settings(settings).model_copy(update=overrides)
        return build_context(
            config=config,
            language=language,
            hooks=hooks,
            parser=parser,
            page_lookup=lambda title: page_store.get(title.prefixed_text),
        )
    return _make


@pytest.fixture
def context(make_context):
    return make_context()


@pytest.fixture
def title():
    return Title.new_from_text("Sandbox")


# -----------------------------------------------------------------------------
