"""
=============================================================================
TRANSPORTS
=============================================================================

A Transport is the one thing a renderer writes to. It has four operations,
used in this order:

    transport.headers["Content-Type"] = ...   1. set headers
    transport.write_header(201)               2. send the status line
    transport.write(body)                     3. send body bytes
    transport.send_error(500, "...")          last resort only

Once the status line is out, headers and code are fixed. That is why the
renderers buffer the whole body first: a failure discovered half-way
through a template would otherwise leave a 200 and half a page on the wire.

    ┌────────────────────┬────────────────────────────────────────────────┐
    │ ResponseRecorder   │ keeps everything in memory; tests, or handlers │
    │                    │ that return an HTTPResponse                     │
    ├────────────────────┼────────────────────────────────────────────────┤
    │ SocketTransport    │ writes straight to a connected TCP socket      │
    └────────────────────┴────────────────────────────────────────────────┘

=============================================================================
"""

from abc import ABC, abstractmethod
import io
import logging
import socket
from typing import Optional

from ..errors import TransportWriteError
from .response import HTTPResponse, Headers, SERVER_NAME
from .status_codes import body_allowed


logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    Base class for the response channel of one request.

    Subclasses implement ``_send_head`` and ``_send_body``; the base class
    enforces the write ordering. A transport belongs to a single request
    and is not shared between threads.
    """

    def __init__(self):
        self.headers = Headers()
        self.code: Optional[int] = None

    @property
    def header_written(self) -> bool:
        return self.code is not None

    def write_header(self, code: int) -> None:
        """Send the status line and headers. Later calls are ignored."""
        if self.header_written:
            logger.debug("superfluous write_header(%d); status %d already sent", code, self.code)
            return
        self.code = int(code)
        self._send_head(self.code)

    def write(self, data: bytes) -> int:
        """
        Send body bytes, sending a 200 status line first if none was sent.

        Raises:
            TransportWriteError: The client is gone.
        """
        if not self.header_written:
            self.write_header(200)
        return self._send_body(data)

    def send_error(self, code: int, message: str) -> None:
        """
        Write a minimal plain-text error response.

        This does not go through any renderer, so it works when the
        renderer's own error path is broken. If a status line was already
        sent the code cannot change and only the text is written.
        """
        self.headers.pop("Content-Length", None)
        self.headers["Content-Type"] = "text/plain; charset=utf-8"
        self.headers["X-Content-Type-Options"] = "nosniff"
        self.write_header(code)
        self.write(f"{message}\n".encode("utf-8"))

    @abstractmethod
    def _send_head(self, code: int) -> None:
        ...

    @abstractmethod
    def _send_body(self, data: bytes) -> int:
        ...


class ResponseRecorder(Transport):
    """
    In-memory transport.

    Headers are snapshotted when the status line is written, like a real
    connection: setting a header afterwards does not change ``response()``.

        recorder = ResponseRecorder()
        engine.not_found(recorder)
        recorder.code          # 404
        recorder.body          # b'{"error":"Not Found"}\\n'
    """

    def __init__(self):
        super().__init__()
        self._sent_headers: Optional[Headers] = None
        self._body = io.BytesIO()

    def _send_head(self, code: int) -> None:
        self._sent_headers = self.headers.copy()

    def _send_body(self, data: bytes) -> int:
        return self._body.write(data)

    @property
    def body(self) -> bytes:
        return self._body.getvalue()

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def response(self) -> HTTPResponse:
        """Return what a client would have received."""
        headers = self._sent_headers if self._sent_headers is not None else self.headers
        return HTTPResponse(
            status=self.code if self.code is not None else 200,
            headers=headers.copy(),
            body=self.body,
        )


class SocketTransport(Transport):
    """
    Transport over a connected socket.

    The renderers set Content-Length before writing the status line, so
    the connection can stay open. If a caller writes without one, the
    response is delimited by closing the connection instead.

    1xx, 204 and 304 responses go out as a bare head: Content-Length is
    left off and body writes are dropped, so a keep-alive client never
    reads body bytes as the start of the next response.
    """

    def __init__(self, sock: socket.socket, server_name: str = SERVER_NAME):
        super().__init__()
        self.socket = sock
        self.server_name = server_name
        self.bytes_sent = 0

    def _send_head(self, code: int) -> None:
        headers = self.headers.copy()
        if not body_allowed(code):
            headers.pop("Content-Length", None)
        elif "Content-Length" not in headers:
            headers["Connection"] = "close"
        head = HTTPResponse(status=code, headers=headers).head_bytes(self.server_name)
        self._sendall(head)

    def _send_body(self, data: bytes) -> int:
        if not body_allowed(self.code):
            if data:
                logger.debug("dropped %d body bytes on a %d response", len(data), self.code)
            return 0
        self._sendall(data)
        return len(data)

    def _sendall(self, data: bytes) -> None:
        try:
            self.socket.sendall(data)
        except OSError as e:
            # ConnectionResetError and BrokenPipeError are OSErrors too
            raise TransportWriteError(f"send failed: {e}") from e
        self.bytes_sent += len(data)
