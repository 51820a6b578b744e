"""
Output formats for the reply engine.

    base.py                Renderer contract and the buffered write
    json_renderer.py       application/json
    template_renderer.py   text/html from Jinja2 templates
"""

from .base import Renderer
from .json_renderer import JSONRenderer, encode_default
from .template_renderer import TemplateRenderer, template_context

__all__ = [
    "Renderer",
    "JSONRenderer",
    "TemplateRenderer",
    "encode_default",
    "template_context",
]
