"""
HTTP primitives the reply engine writes through.

    status_codes.py   HTTPStatus catalog and status_text()
    response.py       HTTPResponse value, Headers, HTTP-date formatting
    transport.py      Transport base class, ResponseRecorder, SocketTransport
"""

from .response import HTTPResponse, Headers, format_http_date
from .status_codes import HTTPStatus, body_allowed, status_text
from .transport import Transport, ResponseRecorder, SocketTransport

__all__ = [
    "HTTPStatus",
    "status_text",
    "body_allowed",
    "HTTPResponse",
    "Headers",
    "format_http_date",
    "Transport",
    "ResponseRecorder",
    "SocketTransport",
]
