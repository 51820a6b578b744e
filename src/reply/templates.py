"""
=============================================================================
TEMPLATE LOADING
=============================================================================

Builds the name -> compiled template mapping a TemplateRenderer serves
from. Template syntax and execution belong to Jinja2; this module only
finds files, compiles them once at startup and names them.

=============================================================================
LAYOUT
=============================================================================

    templates/
    ├── base.html              {% block main %}{% endblock %} inside a page shell
    └── pages/
        ├── hello.html         {% block main %}Hello, {{ Name }}{% endblock %}
        └── hey.html           {% block main %}Hey, {{ Name }}{% endblock %}

    template_map("templates", "pages/*.html", base="base.html")
        -> {"hello.html": <Template>, "hey.html": <Template>}

Keys are file base names, so ``pages/hello.html`` is rendered with
``Options(render_key="hello.html")``. When ``base`` is given every page
that does not already ``{% extends %}`` something is compiled as a child of
the base layout.

=============================================================================
ENVIRONMENT
=============================================================================

- autoescape is on: ``{{ Error }}`` containing ``<script>`` renders as
  ``&lt;script&gt;``.
- StrictUndefined: a template that reads a field the payload lacks raises
  instead of rendering an empty string, so the engine replies 500 rather
  than 200 with a hole in the page.
- helper functions are available both as globals (``{{ upper(Name) }}``)
  and as filters (``{{ Name | upper }}``).

=============================================================================
"""

import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
    nodes,
    select_autoescape,
)

from .errors import TemplateLoadError


logger = logging.getLogger(__name__)


ERROR_TEMPLATE_NAME = "error"
EMPTY_TEMPLATE_NAME = "empty"

# Rendered against {"Error": message}.
ERROR_TEMPLATE_SOURCE = "<p>{{ Error }}</p>"
EMPTY_TEMPLATE_SOURCE = ""

_EXTENDS_RE = re.compile(r"{%-?\s*extends\s")


def default_environment(
    funcs: Optional[Mapping[str, Callable[..., Any]]] = None,
    loader=None,
) -> Environment:
    """Return a Jinja2 environment configured for HTML replies."""
    env = Environment(
        loader=loader,
        autoescape=select_autoescape(
            enabled_extensions=("html", "htm", "xml"),
            default_for_string=True,
            default=True,
        ),
        undefined=StrictUndefined,
    )
    if funcs:
        env.globals.update(funcs)
        env.filters.update(funcs)
    return env


def default_templates(env: Optional[Environment] = None) -> Dict[str, Template]:
    """Compile the built-in ``error`` and ``empty`` templates."""
    env = env or default_environment()
    return {
        ERROR_TEMPLATE_NAME: env.from_string(ERROR_TEMPLATE_SOURCE),
        EMPTY_TEMPLATE_NAME: env.from_string(EMPTY_TEMPLATE_SOURCE),
    }


class LayoutLoader(FileSystemLoader):
    """
    FileSystemLoader that makes selected pages extend a base layout.

    Only names in ``pages`` are wrapped; partials the layout includes are
    loaded untouched. The ``extends`` tag is prepended on the first line so
    error line numbers still match the file.
    """

    def __init__(self, searchpath: Union[str, Path], base: str, pages: Iterable[str]):
        super().__init__(str(searchpath))
        self.base = base
        self.pages = frozenset(pages)

    def get_source(self, environment, template):
        source, filename, uptodate = super().get_source(environment, template)
        if template in self.pages and not _EXTENDS_RE.search(source):
            source = f"{{% extends {self.base!r} %}}{source}"
        return source, filename, uptodate


def _extends_target(template: Template) -> Optional[str]:
    env = template.environment
    if template.name is None or env.loader is None:
        return None
    source, _, _ = env.loader.get_source(env, template.name)
    extends = env.parse(source, template.name).find(nodes.Extends)
    if extends is None or not isinstance(extends.template, nodes.Const):
        return None
    return extends.template.value


def layout_blocks(template: Template) -> Dict[str, List[Callable]]:
    """
    Collect the blocks of ``template`` and of every layout it extends.

    Each name maps to its definitions, nearest first. That is the shape of
    Jinja2's ``Context.blocks``, so a block taken from the base layout
    still picks up the page's overrides of blocks nested inside it, and
    ``super()`` works.

    Templates without a name or loader (``env.from_string``) only have
    their own blocks.

    Raises:
        TemplateLoadError: A layout in the chain is missing or invalid.
    """
    blocks = {name: [block] for name, block in template.blocks.items()}
    seen = {template.name}
    current = template
    try:
        parent = _extends_target(current)
        while parent is not None and parent not in seen:
            seen.add(parent)
            current = template.environment.get_template(parent)
            for name, block in current.blocks.items():
                blocks.setdefault(name, []).append(block)
            parent = _extends_target(current)
    except (TemplateError, OSError) as e:
        raise TemplateLoadError(f"layout of {template.name!r}: {e}") from e
    return blocks


def template_map(
    root: Union[str, Path],
    pattern: str,
    base: Optional[str] = None,
    funcs: Optional[Mapping[str, Callable[..., Any]]] = None,
) -> Dict[str, Template]:
    """
    Compile every file under ``root`` matching ``pattern``.

    Args:
        root: Directory the pattern and ``base`` are relative to.
        pattern: Glob for page templates, e.g. ``"pages/*.html"``.
        base: Optional layout every page extends, relative to ``root``.
        funcs: Helper functions callable from template bodies.

    Returns:
        Mapping of file base name to compiled template.

    Raises:
        TemplateLoadError: Bad pattern, missing directory or base, unreadable
            file, or a template syntax error.
    """
    root = Path(root)
    if not root.is_dir():
        raise TemplateLoadError(f"template directory not found: {root}")
    if not pattern or Path(pattern).is_absolute():
        raise TemplateLoadError(f"bad template pattern {pattern!r}: must be relative")

    try:
        sources = sorted(path for path in root.glob(pattern) if path.is_file())
    except (ValueError, NotImplementedError, OSError) as e:
        raise TemplateLoadError(f"bad template pattern {pattern!r}: {e}") from e

    pages = [path.relative_to(root).as_posix() for path in sources]
    if base:
        pages = [page for page in pages if page != base]
        loader = LayoutLoader(root, base, pages)
    else:
        loader = FileSystemLoader(str(root))
    env = default_environment(funcs, loader=loader)

    if base:
        try:
            env.get_template(base)
        except TemplateError as e:
            raise TemplateLoadError(f"base template {base!r}: {e}") from e

    cache: Dict[str, Template] = {}
    for page in pages:
        name = Path(page).name
        if name in cache:
            logger.warning("template %s shadows an earlier file named %s", page, name)
        try:
            cache[name] = env.get_template(page)
        except (TemplateError, OSError, UnicodeDecodeError) as e:
            raise TemplateLoadError(f"template {page!r}: {e}") from e

    logger.debug("loaded %d templates from %s", len(cache), root)
    return cache
