#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Hooks
=====
Ordered, synchronous extension points.

  register(name, callback)           append a callback
  run(name, *args)                   notify; a ``False`` return stops the chain
  run_transform(name, value, *args)  each callback may replace *value*

Callbacks run in registration order.  Nothing is dispatched asynchronously.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from wikicontent.schemas import ParserOptions, ParserOutput
    from wikicontent.services.parser_cache import ParserCache
    from wikicontent.services.titles import Title

log = logging.getLogger(__name__)


PLACE_NEW_SECTION          = "PlaceNewSection"
PARSER_CACHE_SAVE_COMPLETE = "ParserCacheSaveComplete"
USER_GET_DEFAULT_OPTIONS   = "UserGetDefaultOptions"

Callback = Callable[..., Any]


# -----------------------------------------------------------------------------

@runtime_checkable
class ParserCacheSaveCompleteHook(Protocol):
    """
    Observer notified once a render result has been committed to the cache.

    Each handler gets its own copy of the committed ``parser_output`` and
    must not rely on changing it.  Returning ``False`` aborts the chain:
    later handlers are not called.  The entry stays committed either way.
    """

    def on_parser_cache_save_complete(
        self,
        parser_cache: ParserCache,
        parser_output: ParserOutput,
        title: Title,
        options: ParserOptions,
        revision_id: Optional[int],
    ) -> Optional[bool]:
        ...


# -----------------------------------------------------------------------------

class HookRegistry:

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callback]] = defaultdict(list)

    def register(self, name: str, callback: Callback) -> None:
        if not callable(callback):
            raise TypeError(f"Hook {name!r}: handler must be callable, got {type(callback).__name__}")
        self._handlers[name].append(callback)

    def register_parser_cache_save_complete(self, handler: ParserCacheSaveCompleteHook) -> None:
        self.register(PARSER_CACHE_SAVE_COMPLETE, handler.on_parser_cache_save_complete)

    def handlers(self, name: str) -> list[Callback]:
        return list(self._handlers.get(name, ()))

    def is_registered(self, name: str) -> bool:
        return bool(self._handlers.get(name))

    def clear(self, name: Optional[str] = None) -> None:
        if name is None:
            self._handlers.clear()
        else:
            self._handlers.pop(name, None)

    def run(self, name: str, *args: Any) -> bool:
        """Call every handler for *name*; False as soon as one returns False."""
        for callback in self.handlers(name):
            if callback(*args) is False:
                log.debug("Hook %s: handler %r aborted the chain", name, callback)
                return False
        return True

    def run_transform(self, name: str, value: Any, *args: Any) -> Any:
        """Thread *value* through the handlers; a non-None return replaces it."""
        for callback in self.handlers(name):
            result = callback(value, *args)
            if result is not None:
                value = result
        return value


# -----------------------------------------------------------------------------
