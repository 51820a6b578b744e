"""
=============================================================================
TEMPLATE RENDERER
=============================================================================

Renders HTML replies from a fixed set of compiled Jinja2 templates.

=============================================================================
LOOKUP
=============================================================================

    Options(render_key="user.html")                    whole template
    Options(render_key="user.html", sub_template="row") one {% block row %}

    render_key missing from the map        -> TemplateNotFound
    sub_template not a block of it or of   -> RenderExecutionError
      any layout it extends
    template raises while executing        -> RenderExecutionError

A block the page does not define itself is taken from the layout chain,
with the page's overrides still applied to blocks nested inside it.

Every failure happens before anything is sent, so the engine can still
reply with a clean 500.

=============================================================================
DEFAULTS
=============================================================================

Two names are always resolvable, whatever the caller supplied:

    error   <p>{{ Error }}</p>     used by write_error
    empty   (renders nothing)      used by Engine.no_content

A caller-supplied ``error`` or ``empty`` wins over the default. The merged
map is built once in ``__init__`` and exposed read-only.

=============================================================================
"""

import dataclasses
import io
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from jinja2 import Environment, Template

from ..errors import RenderExecutionError, TemplateNotFound
from ..options import Options
from ..templates import EMPTY_TEMPLATE_NAME, ERROR_TEMPLATE_NAME, default_templates, layout_blocks
from .base import Renderer


def template_context(data: Any) -> Dict[str, Any]:
    """
    Turn a payload into template variables.

    - mapping     -> its items
    - dataclass   -> its fields
    - None        -> no variables
    - anything else is available as ``data``
    """
    if data is None:
        return {}
    if isinstance(data, Mapping):
        return dict(data)
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {f.name: getattr(data, f.name) for f in dataclasses.fields(data)}
    return {"data": data}


class TemplateRenderer(Renderer):
    """
    Renderer for ``text/html`` replies.

    Raises TemplateLoadError from the constructor when a template extends a
    layout that cannot be loaded.
    """

    content_type = "text/html; charset=utf-8"

    def __init__(
        self,
        templates: Optional[Mapping[str, Template]] = None,
        environment: Optional[Environment] = None,
    ):
        merged = dict(templates or {})
        for name, template in default_templates(environment).items():
            merged.setdefault(name, template)
        self.templates: Mapping[str, Template] = MappingProxyType(merged)
        self._blocks = {name: layout_blocks(template) for name, template in merged.items()}

    def render_body(self, options: Options) -> bytes:
        key = options.render_key
        template = self.templates.get(key)
        if template is None:
            raise TemplateNotFound(key)

        blocks = self._blocks[key]
        if options.sub_template and options.sub_template not in blocks:
            raise RenderExecutionError(
                f"template '{key}': no such block '{options.sub_template}'"
            )

        buffer = io.StringIO()
        try:
            context = template_context(options.data)
            if options.sub_template:
                ctx = template.new_context(context)
                ctx.blocks.update((name, list(chain)) for name, chain in blocks.items())
                chunks = ctx.blocks[options.sub_template][0](ctx)
            else:
                chunks = template.generate(context)
            for chunk in chunks:
                buffer.write(chunk)
        except Exception as e:
            # any failure inside the template
            raise RenderExecutionError(f"template '{key}': {e}", cause=e) from e
        return buffer.getvalue().encode("utf-8")

    def error_options(self, message: str) -> Options:
        return Options(render_key=ERROR_TEMPLATE_NAME, data={"Error": message})

    def empty_options(self) -> Options:
        return Options(render_key=EMPTY_TEMPLATE_NAME)
