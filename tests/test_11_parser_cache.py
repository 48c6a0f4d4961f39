#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the parser cache and its save-complete notification."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from wikicontent.models import WikitextContent
from wikicontent.schemas import ParserOptions
from wikicontent.services.hooks import PARSER_CACHE_SAVE_COMPLETE, ParserCacheSaveCompleteHook
from wikicontent.services.parser_cache import ParserCache
from wikicontent.services.renderer import RENDERER_VERSION


class Clock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cache(hooks, clock):
    return ParserCache("test", hooks=hooks, expiry=3600, clock=clock)


@pytest.fixture
def page(context):
    return WikitextContent("Hello [[World]].", context)


# =============================================================================
# get / save
# =============================================================================

def test_empty_cache_misses(cache, page, title):
    assert cache.get(title, page) is None


def test_save_then_get(cache, page, title):
    output = page.get_parser_output(title, revision_id=10)
    cache.save(output, title, page, revision_id=10)
    hit = cache.get(title, page, revision_id=10)
    assert hit is not None
    assert hit.get_text() == output.get_text()
    assert hit.revision_id == 10
    assert hit.cache_time == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert hit.renderer_version == RENDERER_VERSION


def test_committed_entry_is_a_private_copy(cache, page, title):
    output = page.get_parser_output(title)
    cache.save(output, title, page)
    output.html = "tampered"
    cache.get(title, page).html = "tampered again"
    assert cache.get(title, page).get_text() != "tampered"
    assert "tampered" not in cache.get(title, page).get_text()


def test_options_split_the_cache(cache, page, title):
    cache.save(page.get_parser_output(title), title, page, ParserOptions(enable_toc=True))
    assert cache.get(title, page, ParserOptions(enable_toc=False)) is None
    assert cache.get(title, page, ParserOptions(enable_toc=True)) is not None


def test_changed_content_is_stale(cache, page, title, context):
    cache.save(page.get_parser_output(title), title, page)
    edited = WikitextContent("Hello [[Mars]].", context)
    assert cache.get(title, edited) is None
    assert len(cache) == 0


def test_other_revision_is_stale(cache, page, title):
    cache.save(page.get_parser_output(title), title, page, revision_id=1)
    assert cache.get(title, page, revision_id=2) is None


def test_expired_entry_is_stale(cache, page, title, clock):
    cache.save(page.get_parser_output(title), title, page)
    clock.now += timedelta(hours=2)
    assert cache.get(title, page) is None


def test_old_renderer_version_is_stale(cache, page, title):
    output = page.get_parser_output(title).model_copy(update={"renderer_version": RENDERER_VERSION - 1})
    cache.save(output, title, page)
    assert cache.get(title, page) is None


def test_metadata_only_output_is_not_cached(cache, page, title, hooks):
    fired = []
    hooks.register(PARSER_CACHE_SAVE_COMPLETE, lambda *args: fired.append(args))
    cache.save(page.get_parser_output(title, generate_html=False), title, page)
    assert len(cache) == 0
    assert fired == []


def test_get_or_render(cache, page, title, hooks):
    fired = []
    hooks.register(PARSER_CACHE_SAVE_COMPLETE, lambda *args: fired.append(args))
    first = cache.get_or_render(title, page, revision_id=3)
    second = cache.get_or_render(title, page, revision_id=3)
    assert first.get_text() == second.get_text()
    assert len(fired) == 1


def test_delete(cache, page, title):
    cache.save(page.get_parser_output(title), title, page, ParserOptions(enable_toc=True))
    cache.save(page.get_parser_output(title), title, page, ParserOptions(enable_toc=False))
    assert len(cache) == 2
    assert cache.delete(title, ParserOptions(enable_toc=False)) is True
    assert len(cache) == 1
    assert cache.delete(title) is True
    assert cache.delete(title) is False


# =============================================================================
# ParserCacheSaveComplete
# =============================================================================

class Recorder:
    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def on_parser_cache_save_complete(self, parser_cache, parser_output, title, options, revision_id):
        self.calls.append((parser_cache, parser_output, title, options, revision_id))
        return self.result


def test_recorder_satisfies_protocol():
    assert isinstance(Recorder(), ParserCacheSaveCompleteHook)


def test_hook_fires_once_per_save_with_payload(cache, page, title, hooks):
    recorder = Recorder()
    hooks.register_parser_cache_save_complete(recorder)
    options = ParserOptions(user_language="de")

    cache.save(page.get_parser_output(title), title, page, options, revision_id=42)

    assert len(recorder.calls) == 1
    parser_cache, output, hook_title, hook_options, revision_id = recorder.calls[0]
    assert parser_cache is cache
    assert "World" in output.get_text()
    assert hook_title == title
    assert hook_options == options
    assert revision_id == 42


def test_hook_cannot_alter_committed_entry(cache, page, title, hooks):
    def _vandal(parser_cache, parser_output, *rest):
        parser_output.html = "vandalised"
        parser_output.links.clear()

    hooks.register(PARSER_CACHE_SAVE_COMPLETE, _vandal)
    cache.save(page.get_parser_output(title), title, page)
    hit = cache.get(title, page)
    assert hit.get_text() != "vandalised"
    assert hit.links == ["World"]


def test_negative_hook_result_keeps_entry(cache, page, title, hooks):
    hooks.register_parser_cache_save_complete(Recorder(result=False))
    cache.save(page.get_parser_output(title), title, page)
    assert cache.get(title, page) is not None


def test_hook_not_fired_on_cache_hit(cache, page, title, hooks):
    recorder = Recorder()
    hooks.register_parser_cache_save_complete(recorder)
    cache.save(page.get_parser_output(title), title, page)
    cache.get(title, page)
    cache.get(title, page)
    assert len(recorder.calls) == 1


def test_each_handler_gets_its_own_copy(cache, page, title, hooks):
    seen = []

    def _first(parser_cache, parser_output, *rest):
        parser_output.links.append("Tampered")
        seen.append(list(parser_output.links))

    def _second(parser_cache, parser_output, *rest):
        seen.append(list(parser_output.links))

    hooks.register(PARSER_CACHE_SAVE_COMPLETE, _first)
    hooks.register(PARSER_CACHE_SAVE_COMPLETE, _second)
    cache.save(page.get_parser_output(title), title, page)

    assert seen == [["World", "Tampered"], ["World"]]


def test_negative_hook_result_stops_later_handlers(cache, page, title, hooks):
    first, second = Recorder(result=False), Recorder()
    hooks.register_parser_cache_save_complete(first)
    hooks.register_parser_cache_save_complete(second)
    cache.save(page.get_parser_output(title), title, page)
    assert len(first.calls) == 1
    assert second.calls == []
