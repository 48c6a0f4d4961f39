#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Content exceptions
==================

  - ModelMismatchError      → the operation was given content or a format of
                              another model. Fatal, never retried.
  - UnknownContentModelError → no handler is registered for a model id.
  - RenderError             → raised by the render path; not caught here.
  - PreconditionError       → a service was called in a context it does not
                              support.

"This model has no redirects / sections" is not an error: those operations
return ``None`` (or ``False`` for a missing section).
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional


class ContentError(Exception):
    """Base exception for all content errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# -----------------------------------------------------------------------------

class ModelMismatchError(ContentError):
    """Two content models (or a model and a format) do not match."""

    def __init__(self, expected: str, actual: str, message: Optional[str] = None):
        super().__init__(
            message or f"Bad content model: expected {expected} but got {actual}.",
            {"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class UnsupportedFormatError(ModelMismatchError):
    """A serialization format that the content model does not support."""

    def __init__(self, fmt: str, model: str):
        super().__init__(
            model, fmt,
            message=f"Format {fmt} is not supported for content model {model}",
        )
        self.format = fmt
        self.model = model


# -----------------------------------------------------------------------------

class UnknownContentModelError(ContentError):

    def __init__(self, model: str):
        super().__init__(f"No handler registered for content model '{model}'", {"model": model})
        self.model = model


# -----------------------------------------------------------------------------

class RenderError(ContentError):
    """Raised by the render path (parser, HTML generation)."""
    pass


class PreconditionError(ContentError):
    pass


# -----------------------------------------------------------------------------
