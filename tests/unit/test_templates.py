"""
Unit tests for template loading.
"""

import pytest

from reply import (
    Options,
    RenderExecutionError,
    ResponseRecorder,
    TemplateLoadError,
    TemplateRenderer,
    template_map,
)
from reply.templates import default_environment, default_templates, layout_blocks


FUNCS = {"upper": lambda s: s.upper()}


class TestTemplateMap:
    """Tests for template_map()."""

    def test_keys_are_base_names(self, template_dir):
        pages = template_map(template_dir, "pages/*.html", base="base.html", funcs=FUNCS)

        assert sorted(pages) == ["hello.html", "hey.html"]

    def test_pages_extend_base(self, template_dir):
        """Test a page renders inside the base layout."""
        pages = template_map(template_dir, "pages/*.html", base="base.html", funcs=FUNCS)

        assert pages["hey.html"].render(Name="Watson") == "<main>Base here. Hey, Watson</main>"

    def test_funcs_available_as_filters(self, template_dir):
        pages = template_map(template_dir, "pages/*.html", base="base.html", funcs=FUNCS)

        assert pages["hello.html"].render(Name="Sherlock") == "<main>Base here. Hello, SHERLOCK</main>"

    def test_block_of_loaded_page(self, template_dir):
        """Test a page's own block can be rendered without the layout."""
        renderer = TemplateRenderer(template_map(template_dir, "pages/*.html", base="base.html", funcs=FUNCS))
        recorder = ResponseRecorder()

        renderer.render(recorder, 200, Options(render_key="hey.html", sub_template="main", data={"Name": "Watson"}))

        assert recorder.text == "Hey, Watson"

    def test_without_base(self, template_dir):
        pages = template_map(template_dir, "pages/hey.html")

        assert pages["hey.html"].render(Name="Watson") == "Hey, Watson"

    def test_page_that_already_extends(self, template_dir):
        (template_dir / "pages" / "own.html").write_text(
            '{% extends "base.html" %}{% block main %}Own{% endblock %}'
        )
        pages = template_map(template_dir, "pages/*.html", base="base.html", funcs=FUNCS)

        assert pages["own.html"].render() == "<main>Base here. Own</main>"

    def test_base_excluded_from_pages(self, template_dir):
        pages = template_map(template_dir, "*.html", base="base.html")

        assert "base.html" not in pages

    def test_autoescape(self, template_dir):
        pages = template_map(template_dir, "pages/hey.html")

        assert pages["hey.html"].render(Name="<i>x</i>") == "Hey, &lt;i&gt;x&lt;/i&gt;"

    def test_no_matches(self, template_dir):
        assert template_map(template_dir, "pages/*.txt") == {}

    @pytest.mark.parametrize("pattern", ["", "/etc/*.html"])
    def test_bad_pattern(self, template_dir, pattern):
        with pytest.raises(TemplateLoadError, match="bad template pattern"):
            template_map(template_dir, pattern)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(TemplateLoadError, match="not found"):
            template_map(tmp_path / "nope", "*.html")

    def test_syntax_error(self, template_dir):
        """Test an invalid page fails the whole load."""
        (template_dir / "pages" / "hello.html").write_text("{% block main %}")

        with pytest.raises(TemplateLoadError, match="hello.html") as exc_info:
            template_map(template_dir, "pages/*.html", base="base.html", funcs=FUNCS)

        assert exc_info.value.__cause__ is not None

    def test_missing_base(self, template_dir):
        with pytest.raises(TemplateLoadError, match="missing.html"):
            template_map(template_dir, "pages/*.html", base="missing.html")


class TestDefaults:
    """Tests for the built-in templates and environment."""

    def test_default_templates(self):
        templates = default_templates()

        assert templates["error"].render(Error="Gone") == "<p>Gone</p>"
        assert templates["empty"].render() == ""

    def test_strict_undefined(self):
        env = default_environment()

        with pytest.raises(Exception, match="Error"):
            env.from_string("<p>{{ Error }}</p>").render()

    def test_funcs_as_globals(self):
        env = default_environment({"shout": lambda s: s + "!"})

        assert env.from_string("{{ shout('hi') }}").render() == "hi!"


@pytest.fixture
def layout_dir(template_dir):
    """A layout with a ``nav`` block no page defines, and a page overriding ``brand``."""
    (template_dir / "layout.html").write_text(
        "<nav>{% block nav %}{% block brand %}Reply{% endblock %} | {{ Name }}{% endblock %}</nav>"
        "{% block main %}{% endblock %}"
    )
    (template_dir / "pages" / "branded.html").write_text(
        "{% block brand %}Baker Street{% endblock %}{% block main %}Hi{% endblock %}"
    )
    (template_dir / "pages" / "footer.html").write_text(
        "{% block main %}[{{ super() }}]{% endblock %}"
    )
    return template_dir


class TestLayoutBlocks:
    """Tests for rendering blocks that live in the layout."""

    def render(self, layout_dir, key, block):
        renderer = TemplateRenderer(template_map(layout_dir, "pages/*.html", base="layout.html", funcs=FUNCS))
        recorder = ResponseRecorder()
        renderer.render(recorder, 200, Options(render_key=key, sub_template=block, data={"Name": "Sherlock"}))
        return recorder

    def test_block_only_in_layout(self, layout_dir):
        recorder = self.render(layout_dir, "hey.html", "nav")

        assert recorder.code == 200
        assert recorder.text == "Reply | Sherlock"

    def test_page_override_inside_layout_block(self, layout_dir):
        """Test a layout block uses the page's version of a nested block."""
        assert self.render(layout_dir, "branded.html", "nav").text == "Baker Street | Sherlock"

    def test_page_block_still_wins(self, layout_dir):
        assert self.render(layout_dir, "hey.html", "main").text == "Hey, Sherlock"

    def test_super(self, layout_dir):
        (layout_dir / "layout.html").write_text("{% block main %}base{% endblock %}")

        assert self.render(layout_dir, "footer.html", "main").text == "[base]"

    def test_layout_blocks_order(self, layout_dir):
        pages = template_map(layout_dir, "pages/*.html", base="layout.html", funcs=FUNCS)

        blocks = layout_blocks(pages["branded.html"])

        assert set(blocks) == {"nav", "brand", "main"}
        assert len(blocks["brand"]) == 2
        assert len(blocks["nav"]) == 1

    def test_string_template_has_own_blocks(self, foo_templates):
        assert set(layout_blocks(foo_templates["foo"])) == {"base"}

    def test_unknown_block_in_chain(self, layout_dir):
        renderer = TemplateRenderer(template_map(layout_dir, "pages/*.html", base="layout.html", funcs=FUNCS))

        with pytest.raises(RenderExecutionError, match="no such block 'aside'"):
            renderer.render(ResponseRecorder(), 200, Options(render_key="hey.html", sub_template="aside"))
