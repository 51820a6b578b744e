"""
Per-call reply options.

An Options value says *what* to write; the renderer decides *how*. The same
value works against either renderer, so a handler can be moved from HTML to
JSON output without touching its call sites:

    engine.ok(transport, Options(render_key="user.html", data=user))

The JSON renderer ignores ``render_key`` and ``sub_template``.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Options:
    """What to render for a single reply."""

    render_key: str = ""
    """Name of the template to execute. Required by TemplateRenderer."""

    sub_template: str = ""
    """Optional block inside the ``render_key`` template to execute instead of its root."""

    data: Any = None
    """Payload handed to the renderer as-is."""

    debug: bool = False
    """Expose the real error text to the client when rendering fails."""
