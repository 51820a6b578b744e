"""
JSON renderer.

Success bodies are the compact JSON encoding of ``options.data`` followed by
a newline; error bodies are always ``{"error":"<message>"}``.

    >>> recorder = ResponseRecorder()
    >>> JSONRenderer().render(recorder, 201, Options(data={"name": "Sherlock"}))
    >>> recorder.body
    b'{"name":"Sherlock"}\\n'
"""

import dataclasses
import json
from typing import Any, Callable, Optional

from ..errors import EncodeError
from ..options import Options
from .base import Renderer


def encode_default(value: Any) -> Any:
    """
    Fallback encoder for values ``json`` does not know.

    Dataclass instances encode as their fields. Everything else is an
    error, which the engine turns into a 500.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JSONRenderer(Renderer):
    """Renderer for ``application/json`` replies. Holds no per-call state."""

    content_type = "application/json"

    def __init__(self, default: Optional[Callable[[Any], Any]] = None):
        self.default = default or encode_default

    def render_body(self, options: Options) -> bytes:
        try:
            text = json.dumps(
                options.data,
                default=self.default,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            )
        except Exception as e:
            # includes whatever a caller-supplied default hook raises
            raise EncodeError(f"json: {e}", cause=e) from e
        return (text + "\n").encode("utf-8")

    def error_options(self, message: str) -> Options:
        return Options(data={"error": message})

    def empty_options(self) -> Options:
        return Options(data=None)
