"""
pytest configuration and fixtures.
"""

import logging
from pathlib import Path
from typing import Dict

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from jinja2 import Template

from reply import Engine, JSONRenderer, ResponseRecorder, TemplateRenderer
from reply.templates import default_environment


@pytest.fixture
def recorder() -> ResponseRecorder:
    """Fresh in-memory transport."""
    return ResponseRecorder()


@pytest.fixture
def env():
    """Jinja2 environment configured the way the loader configures it."""
    return default_environment()


@pytest.fixture
def foo_templates(env) -> Dict[str, Template]:
    """One page with a ``base`` block greeting ``Name``."""
    return {
        "foo": env.from_string("{% block base %}Hello, {{ Name }}{% endblock %}"),
    }


@pytest.fixture
def json_engine() -> Engine:
    return Engine(JSONRenderer())


@pytest.fixture
def html_engine(foo_templates) -> Engine:
    return Engine(TemplateRenderer(foo_templates))


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """
    On-disk template tree:

        base.html
        pages/hello.html
        pages/hey.html
    """
    pages = tmp_path / "pages"
    pages.mkdir()
    (tmp_path / "base.html").write_text(
        "<main>Base here. {% block main %}{% endblock %}</main>"
    )
    (pages / "hello.html").write_text("{% block main %}Hello, {{ Name | upper }}{% endblock %}")
    (pages / "hey.html").write_text("{% block main %}Hey, {{ Name }}{% endblock %}")
    return tmp_path


@pytest.fixture(autouse=True)
def restore_log_levels():
    """Undo logger levels changed by setup_logging during a test."""
    root = logging.getLogger()
    saved = (root.level, root.handlers[:], logging.getLogger("reply").level)
    yield
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    logging.getLogger("reply").setLevel(saved[2])
