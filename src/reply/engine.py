"""
=============================================================================
REPLY ENGINE
=============================================================================

The Engine is what route handlers talk to. It owns one Renderer and turns
"reply with this status and these options" into exactly one well-formed
response, whatever goes wrong while rendering.

=============================================================================
WRITE-OR-FALLBACK
=============================================================================

    reply_or_error(transport, code, options)

        ┌───────────┐   render ok    ┌──────────┐
        │  ATTEMPT  │───────────────►│   DONE   │  code + rendered body
        └─────┬─────┘                └──────────┘
              │ RenderError                ▲
              ▼                            │
        ┌───────────┐  write_error(msg, 500)
        │ FALLBACK  │──────────────────────┘
        └───────────┘

        msg = str(error)              if options.debug
              "Internal Server Error" otherwise

A failed render never leaves a partial body behind: renderers buffer the
whole body before the status line is sent. The real error is always logged
at WARNING; only debug mode puts it in front of the client.

=============================================================================
NAMED REPLIES
=============================================================================

The status-named helpers are generated from two tables rather than written
out one by one:

    engine.ok(transport, options)          SUCCESS_REPLIES: reply_or_error
    engine.created(transport, options)
    engine.not_found(transport)            ERROR_REPLIES: error body with
    engine.too_many_requests(transport)    the status reason phrase

``no_content``, ``reset_content``, ``method_not_allowed`` and
``internal_server_error`` need more than a status code and are written
by hand.

=============================================================================
"""

from functools import partialmethod
import logging
from typing import Iterable, Optional, Union

from .config import ReplyConfig
from .errors import RenderError
from .http.status_codes import HTTPStatus, status_text
from .http.transport import Transport
from .log import setup_logging
from .options import Options
from .renderers import JSONRenderer, Renderer, TemplateRenderer
from .templates import template_map


SUCCESS_REPLIES = {
    status.name.lower(): status
    for status in (
        HTTPStatus.OK,
        HTTPStatus.CREATED,
        HTTPStatus.ACCEPTED,
        HTTPStatus.NON_AUTHORITATIVE_INFORMATION,
        HTTPStatus.MULTI_STATUS,
        HTTPStatus.ALREADY_REPORTED,
        HTTPStatus.IM_USED,
    )
}

ERROR_REPLIES = {
    status.name.lower(): status
    for status in HTTPStatus
    if status.is_error
    and status not in (HTTPStatus.METHOD_NOT_ALLOWED, HTTPStatus.INTERNAL_SERVER_ERROR)
}


class Engine:
    """
    Writes replies through a single Renderer.

    An Engine is built once at startup and shared by all request threads;
    it keeps no per-request state.

        engine = Engine(JSONRenderer())
        engine.created(transport, Options(data={"name": "Sherlock"}))
        engine.not_found(transport)
    """

    def __init__(self, renderer: Renderer, logger: Optional[logging.Logger] = None, debug: bool = False):
        self.renderer = renderer
        self.logger = logger or logging.getLogger(__name__)
        self.debug = debug

    @classmethod
    def json(cls, **kwargs) -> "Engine":
        """Engine with a JSONRenderer."""
        return cls(JSONRenderer(), **kwargs)

    @classmethod
    def html(cls, templates=None, **kwargs) -> "Engine":
        """Engine with a TemplateRenderer over ``templates`` plus the defaults."""
        return cls(TemplateRenderer(templates), **kwargs)

    @classmethod
    def from_config(cls, config: ReplyConfig, logger: Optional[logging.Logger] = None) -> "Engine":
        """
        Validate ``config``, set up logging and build the engine it describes.

        The engine logs to ``config.logger_name`` unless ``logger`` is given.

        Raises:
            ValueError: Invalid configuration.
            TemplateLoadError: Templates could not be loaded.
        """
        config.validate()
        setup_logging(config.log_level, config.log_format, logger_name=config.logger_name)
        if config.renderer == "template":
            templates = template_map(
                config.template_dir,
                config.template_pattern,
                base=config.base_template,
            )
            renderer: Renderer = TemplateRenderer(templates)
        else:
            renderer = JSONRenderer()
        if logger is None:
            logger = logging.getLogger(config.logger_name)
        return cls(renderer, logger=logger, debug=config.debug)

    def options(self, render_key: str = "", sub_template: str = "", data=None) -> Options:
        """Build Options carrying this engine's debug setting."""
        return Options(render_key=render_key, sub_template=sub_template, data=data, debug=self.debug)

    # =========================================================================
    # CORE
    # =========================================================================

    def reply_or_error(self, transport: Transport, code: int, options: Optional[Options] = None) -> None:
        """
        Reply with ``code`` and the rendered ``options``, or a 500 if rendering fails.

        Never raises for a render failure. Whether the 500 body shows the
        real error is decided by ``options.debug``.
        """
        if options is None:
            options = self.options()
        try:
            self.renderer.render(transport, code, options)
        except RenderError as e:
            self.logger.warning("reply %d failed, sending 500: %s", code, e)
            if options.debug:
                message = str(e)
            else:
                message = status_text(HTTPStatus.INTERNAL_SERVER_ERROR)
            self.renderer.write_error(transport, message, HTTPStatus.INTERNAL_SERVER_ERROR)

    reply = reply_or_error

    def error(self, transport: Transport, code: int, message: Optional[str] = None) -> None:
        """Reply with the error body for ``code``, carrying its reason phrase by default."""
        if message is None:
            message = status_text(code)
        self.renderer.write_error(transport, message, code)

    # =========================================================================
    # SPECIAL CASES
    # =========================================================================

    def no_content(self, transport: Transport) -> None:
        """204 with the renderer's empty body: ``null`` for JSON, nothing for HTML."""
        self.reply_or_error(transport, HTTPStatus.NO_CONTENT, self.renderer.empty_options())

    def reset_content(self, transport: Transport) -> None:
        """205 with the renderer's empty body, telling the client to clear its form."""
        self.reply_or_error(transport, HTTPStatus.RESET_CONTENT, self.renderer.empty_options())

    def method_not_allowed(self, transport: Transport, *methods: Union[str, Iterable[str]]) -> None:
        """
        Set ``Allow`` and reply 405.

        Takes methods as arguments or as one iterable:

            engine.method_not_allowed(transport, "GET", "POST")
            engine.method_not_allowed(transport, ["GET", "POST"])
        """
        if len(methods) == 1 and not isinstance(methods[0], str):
            methods = tuple(methods[0])
        # the header must be in place before write_error sends the status line
        transport.headers["Allow"] = ", ".join(methods)
        self.error(transport, HTTPStatus.METHOD_NOT_ALLOWED)

    def internal_server_error(self, transport: Transport, err: BaseException) -> None:
        """Log ``err`` with its traceback and the current stack, then reply 500."""
        exc_info = (type(err), err, err.__traceback__) if isinstance(err, BaseException) else None
        try:
            self.logger.error("%s", err, exc_info=exc_info, stack_info=True)
        except Exception:
            # a broken logger must not cost the client its reply
            if logging.lastResort is not None:
                logging.lastResort.handle(logging.makeLogRecord({
                    "name": self.logger.name,
                    "levelno": logging.ERROR,
                    "levelname": "ERROR",
                    "msg": "%s",
                    "args": (err,),
                    "exc_info": exc_info,
                }))
        self.error(transport, HTTPStatus.INTERNAL_SERVER_ERROR)

    # =========================================================================
    # GENERATED HELPERS
    # =========================================================================

    def _reply_with(self, code: int, transport: Transport, options: Optional[Options] = None) -> None:
        self.reply_or_error(transport, code, options)

    def _error_with(self, code: int, transport: Transport) -> None:
        self.error(transport, code)


for _name, _status in SUCCESS_REPLIES.items():
    setattr(Engine, _name, partialmethod(Engine._reply_with, _status))

for _name, _status in ERROR_REPLIES.items():
    setattr(Engine, _name, partialmethod(Engine._error_with, _status))

del _name, _status
