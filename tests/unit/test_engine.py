"""
Unit tests for the reply engine.
"""

from concurrent.futures import ThreadPoolExecutor
import dataclasses
import logging

import pytest

from reply import (
    Engine,
    ERROR_REPLIES,
    HTTPStatus,
    JSONRenderer,
    Options,
    ResponseRecorder,
    SUCCESS_REPLIES,
    TemplateRenderer,
    status_text,
    template_map,
)


def engines(foo_templates=None):
    return {
        "template": Engine(TemplateRenderer(foo_templates or {})),
        "json": Engine(JSONRenderer()),
    }


class TestReplyOrError:
    """Tests for the write-or-fallback protocol."""

    def test_json_created(self, json_engine, recorder):
        """Test a JSON payload is written with the requested code."""
        json_engine.reply_or_error(recorder, 201, Options(data={"name": "Sherlock"}))

        assert recorder.code == 201
        assert recorder.text.strip() == '{"name":"Sherlock"}'
        assert recorder.headers["Content-Type"] == "application/json"
        assert recorder.headers["X-Content-Type-Options"] == "nosniff"

    def test_template_ok(self, html_engine, recorder):
        """Test a named block is rendered with the payload."""
        html_engine.reply_or_error(
            recorder, 200, Options(render_key="foo", sub_template="base", data={"Name": "Sherlock"})
        )

        assert recorder.code == 200
        assert recorder.text == "Hello, Sherlock"
        assert recorder.headers["Content-Type"] == "text/html; charset=utf-8"

    def test_empty_key_production(self, recorder):
        """Test an unbound template key falls back to a masked 500."""
        engine = Engine(TemplateRenderer({}))
        engine.reply_or_error(recorder, 200, Options(render_key=""))

        assert recorder.code == 500
        assert recorder.text == "<p>Internal Server Error</p>"

    def test_empty_key_debug(self, recorder):
        """Test debug mode shows the lookup error."""
        engine = Engine(TemplateRenderer({}))
        engine.reply_or_error(recorder, 200, Options(render_key="", debug=True))

        assert recorder.code == 500
        assert recorder.text == "<p>no such template &#39;&#39;</p>"

    def test_missing_field_never_partial(self, html_engine, recorder):
        """Test a payload missing a template field gives a clean 500."""
        html_engine.reply_or_error(recorder, 200, Options(render_key="foo", data={"Fame": "Stars"}))

        assert recorder.code == 500
        assert recorder.text == "<p>Internal Server Error</p>"
        assert "Hello" not in recorder.text

    def test_unencodable_json(self, json_engine, recorder):
        """Test an unserializable payload gives the JSON error body."""
        json_engine.reply_or_error(recorder, 200, Options(data={"foo": {1, 2}}))

        assert recorder.code == 500
        assert recorder.text.strip() == '{"error":"Internal Server Error"}'

    def test_block_from_layout(self, template_dir, recorder):
        """Test a block defined only by the base layout is a 200, not a fallback."""
        (template_dir / "base.html").write_text(
            "{% block nav %}Home{% endblock %}<main>{% block main %}{% endblock %}</main>"
        )
        engine = Engine.html(template_map(template_dir, "pages/hey.html", base="base.html"))

        engine.ok(recorder, Options(render_key="hey.html", sub_template="nav", data={"Name": "S"}))

        assert recorder.code == 200
        assert recorder.text == "Home"

    def test_failing_encoder_hook(self, recorder):
        """Test an exception from a custom encoder hook still ends in a 500."""
        def hook(value):
            raise AttributeError("boom")

        engine = Engine(JSONRenderer(default=hook))
        engine.ok(recorder, Options(data={"a": object()}, debug=True))

        assert recorder.code == 500
        assert recorder.text.strip() == '{"error":"json: boom"}'

    @pytest.mark.parametrize("renderer", ["template", "json"])
    def test_debug_transparency(self, renderer, foo_templates):
        """Test debug bodies carry the error text and production bodies never do."""
        failing = {
            "template": Options(render_key="foo", data={"Fame": "Stars"}),
            "json": Options(data=object()),
        }[renderer]
        engine = engines(foo_templates)[renderer]

        debug = ResponseRecorder()
        engine.reply_or_error(debug, 200, dataclasses.replace(failing, debug=True))
        production = ResponseRecorder()
        engine.reply_or_error(production, 200, failing)

        assert debug.code == production.code == 500
        assert "Internal Server Error" not in debug.text
        assert "Internal Server Error" in production.text
        assert ("Name" if renderer == "template" else "object") in debug.text
        assert "Name" not in production.text and "object" not in production.text

    def test_fallback_is_logged(self, json_engine, recorder, caplog):
        """Test operators see the real error even in production mode."""
        with caplog.at_level(logging.WARNING, logger="reply"):
            json_engine.reply_or_error(recorder, 200, Options(data={"foo": {1}}))

        assert "set is not JSON serializable" in caplog.text

    def test_default_options(self, json_engine, recorder):
        """Test omitted options reply with a null payload."""
        json_engine.reply(recorder, 200)

        assert recorder.code == 200
        assert recorder.text.strip() == "null"


class TestErrorReplies:
    """Tests for status-named error helpers."""

    @pytest.mark.parametrize("name,code", [
        ("bad_request", 400),
        ("unauthorized", 401),
        ("forbidden", 403),
        ("not_found", 404),
        ("not_acceptable", 406),
        ("request_timeout", 408),
        ("conflict", 409),
        ("gone", 410),
        ("unprocessable_entity", 422),
        ("too_many_requests", 429),
        ("service_unavailable", 503),
    ])
    def test_template_and_json_bodies(self, name, code):
        """Test each helper writes its status and reason phrase."""
        phrase = status_text(code)

        html = ResponseRecorder()
        getattr(engines()["template"], name)(html)
        assert html.code == code
        assert html.text == f"<p>{phrase}</p>"

        js = ResponseRecorder()
        getattr(engines()["json"], name)(js)
        assert js.code == code
        assert js.text.strip() == f'{{"error":"{phrase}"}}'

    def test_every_error_status_has_a_helper(self):
        """Test the generated table covers the 4xx/5xx catalog."""
        engine = Engine.json()
        for status in HTTPStatus:
            if status.is_error:
                name = status.name.lower()
                assert hasattr(engine, name), name

        assert "method_not_allowed" not in ERROR_REPLIES
        assert "internal_server_error" not in ERROR_REPLIES
        assert ERROR_REPLIES["im_a_teapot"] == 418

    def test_error_with_message(self, json_engine, recorder):
        """Test a custom message replaces the reason phrase."""
        json_engine.error(recorder, 409, "name already taken")

        assert recorder.code == 409
        assert recorder.text.strip() == '{"error":"name already taken"}'


class TestSuccessReplies:
    """Tests for status-named success helpers."""

    @pytest.mark.parametrize("name,code", sorted(SUCCESS_REPLIES.items()))
    def test_json(self, name, code):
        """Test each success helper replies with its code."""
        recorder = ResponseRecorder()
        getattr(Engine.json(), name)(recorder, Options(data={"name": "Sherlock"}))

        assert recorder.code == code
        assert recorder.text.strip() == '{"name":"Sherlock"}'

    @pytest.mark.parametrize("name,code", [("ok", 200), ("created", 201)])
    def test_template(self, name, code, html_engine):
        recorder = ResponseRecorder()
        getattr(html_engine, name)(
            recorder, Options(render_key="foo", sub_template="base", data={"Name": "Sherlock"})
        )

        assert recorder.code == code
        assert recorder.text == "Hello, Sherlock"


class TestSpecialReplies:
    """Tests for helpers that need more than a status code."""

    def test_no_content_json(self, json_engine, recorder):
        """Test 204 on JSON writes null."""
        json_engine.no_content(recorder)

        assert recorder.code == 204
        assert recorder.text.strip() == "null"

    def test_no_content_template(self, html_engine, recorder):
        """Test 204 on templates writes nothing."""
        html_engine.no_content(recorder)

        assert recorder.code == 204
        assert recorder.body == b""

    def test_reset_content(self, html_engine, recorder):
        html_engine.reset_content(recorder)

        assert recorder.code == 205
        assert recorder.body == b""

    @pytest.mark.parametrize("renderer", ["template", "json"])
    @pytest.mark.parametrize("methods,allow", [
        (["GET"], "GET"),
        (["GET", "POST"], "GET, POST"),
    ])
    def test_method_not_allowed(self, renderer, methods, allow):
        """Test the Allow header is sent with the 405 body."""
        recorder = ResponseRecorder()
        engines()[renderer].method_not_allowed(recorder, *methods)

        response = recorder.response()
        assert response.status == 405
        assert response.headers["Allow"] == allow
        if renderer == "json":
            assert recorder.text.strip() == '{"error":"Method Not Allowed"}'
        else:
            assert recorder.text == "<p>Method Not Allowed</p>"

    def test_method_not_allowed_iterable(self, json_engine, recorder):
        """Test methods may be passed as one list."""
        json_engine.method_not_allowed(recorder, ["GET", "HEAD"])

        assert recorder.response().headers["Allow"] == "GET, HEAD"

    def test_internal_server_error_logs(self, json_engine, recorder, caplog):
        """Test the error and a stack trace are logged, client sees the phrase."""
        try:
            raise RuntimeError("sample error")
        except RuntimeError as e:
            err = e

        with caplog.at_level(logging.ERROR, logger="reply"):
            json_engine.internal_server_error(recorder, err)

        assert recorder.code == 500
        assert recorder.text.strip() == '{"error":"Internal Server Error"}'
        assert "sample error" in caplog.text
        record = caplog.records[-1]
        assert record.exc_info[1] is err
        assert record.stack_info

    def test_internal_server_error_broken_logger(self, recorder, capsys):
        """Test a logger that raises does not stop the reply, and the error still reaches stderr."""
        class BrokenLogger(logging.Logger):
            def error(self, *args, **kwargs):
                raise OSError("disk full")

        engine = Engine(JSONRenderer(), logger=BrokenLogger("broken"))
        engine.internal_server_error(recorder, ValueError("boom"))

        assert recorder.code == 500
        assert recorder.text.strip() == '{"error":"Internal Server Error"}'
        assert "boom" in capsys.readouterr().err


class TestEngineConstruction:
    """Tests for engine factories."""

    def test_html_factory_adds_defaults(self):
        engine = Engine.html()
        assert set(engine.renderer.templates) == {"error", "empty"}

    def test_options_carry_debug(self):
        """Test Engine.options stamps the engine's debug flag."""
        engine = Engine.json(debug=True)
        options = engine.options(data={"a": 1})

        assert options.debug is True
        assert options.data == {"a": 1}


class TestConcurrency:
    """Tests for sharing one engine between request threads."""

    @pytest.mark.parametrize("renderer", ["template", "json"])
    def test_buffers_are_per_call(self, renderer, foo_templates):
        """Test concurrent replies never see each other's output."""
        engine = engines(foo_templates)[renderer]

        def handle(i):
            recorder = ResponseRecorder()
            engine.ok(recorder, Options(render_key="foo", data={"Name": f"n{i}"}))
            return i, recorder.text

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(handle, range(200)))

        for i, text in results:
            if renderer == "template":
                assert text == f"Hello, n{i}"
            else:
                assert text.strip() == f'{{"Name":"n{i}"}}'
