"""
=============================================================================
HTTP RESPONSE VALUE
=============================================================================

A finished reply as data: status, headers, body. Transports that buffer a
whole reply (``ResponseRecorder``) hand one of these back, and transports
that talk to a socket use ``to_bytes()`` to put it on the wire.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   HTTP/1.1 201 Created\r\n                  ← status line           │
    │   Content-Type: application/json\r\n                                │
    │   X-Content-Type-Options: nosniff\r\n                               │
    │   Content-Length: 20\r\n                    ← auto-added            │
    │   Date: Mon, 19 Oct 2026 10:00:00 GMT\r\n   ← auto-added            │
    │   Server: reply/1.0\r\n                     ← auto-added            │
    │   \r\n                                                              │
    │   {"name":"Sherlock"}                                               │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional, Tuple

from .status_codes import status_text


SERVER_NAME = "reply/1.0"


class Headers(MutableMapping):
    """
    Case-insensitive header mapping that remembers the spelling it was given.

        >>> h = Headers()
        >>> h["content-type"] = "application/json"
        >>> h["Content-Type"]
        'application/json'

    Setting a header that already exists (in any case) replaces it.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, Tuple[str, str]] = {}
        if initial:
            self.update(initial)

    def __setitem__(self, name: str, value: str) -> None:
        self._items[name.lower()] = (name, value)

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()][1]

    def __delitem__(self, name: str) -> None:
        del self._items[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def copy(self) -> "Headers":
        return Headers(dict(self.items()))


@dataclass
class HTTPResponse:
    """A complete HTTP response ready for serialization."""

    status: int = 200
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        ``HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE``, e.g. ``HTTP/1.1 200 OK``.

        Codes outside the catalog keep a trailing space with an empty
        phrase, which RFC 7230 permits.
        """
        return f"{self.version} {int(self.status)} {status_text(self.status)}"

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def to_bytes(self, server_name: str = SERVER_NAME) -> bytes:
        """
        Serialize the response for ``socket.sendall()``.

        Content-Length, Date and Server are filled in when missing; headers
        set by the renderer are never overwritten.
        """
        response_headers = self.headers.copy()

        # Content-Length: the client reads exactly this many body bytes
        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        return _head_bytes(self.status_line, response_headers, server_name) + self.body

    def head_bytes(self, server_name: str = SERVER_NAME) -> bytes:
        """
        Serialize only the status line and headers, ending with the blank line.

        Used by streaming transports that send the body separately. Unlike
        ``to_bytes()`` no Content-Length is invented.
        """
        return _head_bytes(self.status_line, self.headers.copy(), server_name)


def _head_bytes(status_line: str, headers: Headers, server_name: str) -> bytes:
    if "Date" not in headers:
        headers["Date"] = format_http_date(datetime.now(timezone.utc))

    if "Server" not in headers:
        headers["Server"] = server_name

    lines = [status_line]
    for name, value in headers.items():
        lines.append(f"{name}: {value}")
    lines.append("")

    return "\r\n".join(lines).encode("latin-1") + b"\r\n"


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date.

    Example: ``Mon, 19 Oct 2026 10:00:00 GMT``. HTTP dates are always GMT;
    pass an aware UTC datetime.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
