"""
=============================================================================
REPLY ERRORS
=============================================================================

    ReplyError
    ├── RenderError              recovered by Engine -> well-formed 500
    │   ├── TemplateNotFound
    │   ├── RenderExecutionError
    │   └── EncodeError
    ├── TransportWriteError      channel broken; logged and dropped
    └── TemplateLoadError        startup failure; raised to the caller

Only RenderError subclasses take part in the engine's fallback. Their
``str()`` is the text a debug-mode client sees in the error body.

=============================================================================
"""

from typing import Optional


class ReplyError(Exception):
    """Base class for every error raised by this package."""


class RenderError(ReplyError):
    """A renderer could not produce a body. Nothing was written."""


class TemplateNotFound(RenderError):
    """The render key does not name a template known to the renderer."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"no such template '{key}'")


class RenderExecutionError(RenderError):
    """
    A template was found but failed while executing against the payload.

    ``cause`` holds the template engine's own exception; it is also chained
    as ``__cause__`` so tracebacks show both.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class EncodeError(RenderError):
    """The payload could not be serialized."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class TransportWriteError(ReplyError):
    """Writing to the client failed, usually because it disconnected."""


class TemplateLoadError(ReplyError):
    """Template files could not be discovered or compiled."""
