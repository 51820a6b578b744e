"""
=============================================================================
RENDERER CONTRACT
=============================================================================

A Renderer turns (status code, Options) into bytes on a Transport for one
output format. Every renderer follows the same write discipline:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   render_body(options)          per-call buffer, nothing sent yet   │
    │        │                                                             │
    │        ├── raises RenderError ─► transport untouched, caller        │
    │        │                         decides what to send instead       │
    │        ▼                                                             │
    │   set Content-Type, nosniff, Content-Length                          │
    │   write_header(code)                                                 │
    │   write(body)                   whole body in one write             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Because the body is complete before the status line goes out, a client can
never see a 200 followed by half a page. The buffer lives in the call, not
on the renderer, so one renderer instance is safe to share between request
threads.

``write_error`` is the terminal fallback. It never raises: if even the
error body cannot be rendered, the transport's built-in plain-text error is
used.

=============================================================================
"""

from abc import ABC, abstractmethod
import logging

from ..errors import RenderError, TransportWriteError
from ..http.transport import Transport
from ..options import Options


logger = logging.getLogger(__name__)


class Renderer(ABC):
    """Base class for output formats."""

    content_type: str = "application/octet-stream"

    @abstractmethod
    def render_body(self, options: Options) -> bytes:
        """
        Produce the complete response body for ``options``.

        Raises:
            RenderError: The body could not be produced.
        """

    @abstractmethod
    def error_options(self, message: str) -> Options:
        """Options that render the error body carrying ``message``."""

    @abstractmethod
    def empty_options(self) -> Options:
        """Options that render this format's no-content body."""

    def render(self, transport: Transport, code: int, options: Options) -> None:
        """
        Render ``options`` and send it with status ``code``.

        Raises:
            RenderError: Nothing was written to ``transport``.
        """
        body = self.render_body(options)
        self._flush(transport, code, body)

    def write_error(self, transport: Transport, message: str, code: int) -> None:
        """Send an error body carrying ``message`` with status ``code``."""
        try:
            body = self.render_body(self.error_options(message))
        except RenderError as e:
            logger.error("error body for %d could not be rendered: %s", code, e)
            try:
                transport.send_error(code, message)
            except TransportWriteError as write_error:
                logger.warning("reply %d not delivered: %s", code, write_error)
            return
        self._flush(transport, code, body)

    def _flush(self, transport: Transport, code: int, body: bytes) -> None:
        transport.headers["Content-Type"] = self.content_type
        transport.headers["X-Content-Type-Options"] = "nosniff"
        transport.headers["Content-Length"] = str(len(body))
        try:
            transport.write_header(code)
            transport.write(body)
        except TransportWriteError as e:
            # nothing more can reach this client
            logger.warning("reply %d not delivered: %s", code, e)
