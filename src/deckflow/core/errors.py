"""Typed failures raised by the generation pipeline.

Every stage of the pipeline raises exactly one of these on failure.  The HTTP
boundary turns them into ``{"error": message}`` responses using
:attr:`PipelineError.status_code`.

``raw_text`` holds the offending model output for local diagnostics.  It is
logged but never placed into a response body.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all pipeline failures.

    Attributes:
        message: Human-readable description that is safe to return to callers.
        raw_text: Model output that triggered the failure, if any.
    """

    status_code: int = 500

    def __init__(self, message: str, *, raw_text: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.raw_text = raw_text


class InvalidRequest(PipelineError):
    """The caller sent a malformed or out-of-range request."""

    status_code = 400


class UpstreamFailure(PipelineError):
    """The completion endpoint was unreachable, refused the call, or timed out."""


class MalformedOutput(PipelineError):
    """The model answered with text that cannot be decoded as expected."""


class ShapeMismatch(PipelineError):
    """The model output decoded but broke the count or shape rules."""
