"""
=============================================================================
REPLY - Fail-safe HTTP replies in JSON or HTML
=============================================================================

Route handlers say what they want to send; the engine makes sure the
client receives exactly one well-formed response.

    from reply import Engine, Options, ResponseRecorder

    engine = Engine.json()
    engine.created(transport, Options(data={"name": "Sherlock"}))
    engine.not_found(transport)
    engine.method_not_allowed(transport, "GET", "POST")

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   handler ──Options──► Engine ──► Renderer ──► Transport ──► client │
    │                          │          │                                │
    │                          │          ├── JSONRenderer                 │
    │                          │          └── TemplateRenderer (Jinja2)    │
    │                          │                                           │
    │                          └── render failed? write_error(..., 500)   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    reply/
    ├── engine.py          reply_or_error, named status helpers
    ├── options.py         what to render
    ├── errors.py          exception taxonomy
    ├── templates.py       template_map() loader, default templates
    ├── config.py          ReplyConfig
    ├── log.py             setup_logging
    ├── renderers/         Renderer contract, JSON and template renderers
    └── http/              HTTPStatus, HTTPResponse, transports

=============================================================================
GUARANTEES
=============================================================================

1. No partial output: a body is fully rendered before any byte is sent.
2. Failed renders become a 500. Clients see "Internal Server Error"
   unless Options.debug is set, in which case they see the real error.
3. A TemplateRenderer can always render ``error`` and ``empty``.

=============================================================================
"""

__version__ = "1.0.0"

from .config import ReplyConfig
from .engine import Engine, ERROR_REPLIES, SUCCESS_REPLIES
from .errors import (
    EncodeError,
    RenderError,
    RenderExecutionError,
    ReplyError,
    TemplateLoadError,
    TemplateNotFound,
    TransportWriteError,
)
from .http import (
    Headers,
    HTTPResponse,
    HTTPStatus,
    ResponseRecorder,
    SocketTransport,
    Transport,
    status_text,
)
from .log import setup_logging
from .options import Options
from .renderers import JSONRenderer, Renderer, TemplateRenderer
from .templates import default_environment, template_map

__all__ = [
    # Engine
    "Engine",
    "Options",
    "SUCCESS_REPLIES",
    "ERROR_REPLIES",

    # Renderers
    "Renderer",
    "JSONRenderer",
    "TemplateRenderer",
    "template_map",
    "default_environment",

    # HTTP
    "HTTPStatus",
    "status_text",
    "HTTPResponse",
    "Headers",
    "Transport",
    "ResponseRecorder",
    "SocketTransport",

    # Errors
    "ReplyError",
    "RenderError",
    "TemplateNotFound",
    "RenderExecutionError",
    "EncodeError",
    "TransportWriteError",
    "TemplateLoadError",

    # Setup
    "ReplyConfig",
    "setup_logging",
]
