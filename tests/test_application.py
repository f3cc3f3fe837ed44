"""
Test 4: Application (application.py, response.py)

Tests create_application, dispatch, features and responses.
"""

import pytest

from wirebind.application import Application, Call, DefaultHeaders, create_application
from wirebind.config import AppConfig
from wirebind.di.core import Container
from wirebind.faults import ConfigFault, RouterFrozenFault
from wirebind.response import MethodNotAllowed, NotFound, Response
from wirebind.routing.router import Router

from tests.conftest import FailingController, MarkerController


class EchoController:
    label = "echo"

    def register_routes(self, router):
        router.get("/echo/{word}", self.echo)
        router.post("/echo/{word}", self.echo)
        router.get("/async", self.async_handler)
        router.get("/empty", lambda call: None)
        router.get("/boom", self.boom)
        router.get("/fault", self.fault)

    def echo(self, call: Call):
        return {"word": call.params["word"], "method": call.method, "q": call.query.get("q")}

    async def async_handler(self, call: Call):
        return "from coroutine"

    def boom(self, call: Call):
        raise RuntimeError("boom")

    def fault(self, call: Call):
        raise ConfigFault("bad value", key="thing")


def echo_mapper(builder, application):
    builder.bind(EchoController).singleton()


# ============================================================================
# create_application
# ============================================================================

class TestCreateApplication:

    def test_binds_application_config_and_router(self):
        app = create_application()
        assert app.container.resolve(Application) is app
        assert app.container.resolve(AppConfig) is app.config
        assert app.container.resolve(Router) is app.router

    def test_freezes_container_and_router(self):
        app = create_application(echo_mapper)
        assert app.container.frozen
        assert app.router.frozen
        with pytest.raises(RouterFrozenFault):
            app.router.get("/late", lambda call: "late")

    def test_mapper_receives_builder_and_application(self):
        seen = {}

        def mapper(builder, application):
            seen["container"] = builder.container
            seen["application"] = application

        app = create_application(mapper)
        assert seen["container"] is app.container
        assert seen["application"] is app

    def test_report(self):
        app = create_application(echo_mapper)
        assert app.report.ok
        assert app.report.registered == ["echo"]

    def test_fail_fast_from_config(self):
        def mapper(builder, application):
            builder.bind(FailingController).singleton()

        with pytest.raises(RuntimeError):
            create_application(mapper)

    def test_continue_mode_from_config(self):
        calls = []

        # Factories without a return annotation need the tag explicitly
        def mapper(builder, application):
            builder.bind(FailingController).singleton()
            builder.bind("ok", tags=("controller",)).singleton(lambda: MarkerController("ok", calls))

        app = create_application(mapper, config=AppConfig(fail_fast=False))
        assert calls == ["ok"]
        assert len(app.report.failures) == 1
        assert app.router.has_route("GET", "/ok")

    def test_name(self):
        app = create_application(config=AppConfig(app_name="demo"))
        assert app.name == "demo"
        assert app.container.name == "demo"


# ============================================================================
# Dispatch
# ============================================================================

class TestDispatch:

    @pytest.fixture
    def app(self):
        return create_application(echo_mapper)

    @pytest.mark.asyncio
    async def test_dispatch_with_params_and_query(self, app):
        response = await app.dispatch("GET", "/echo/hi", query={"q": "x"})
        assert response.status == 200
        assert response.json_body() == {"word": "hi", "method": "GET", "q": "x"}

    @pytest.mark.asyncio
    async def test_async_handler(self, app):
        response = await app.dispatch("GET", "/async")
        assert response.body == b"from coroutine"
        assert response.headers["content-type"] == "text/plain; charset=utf-8"

    @pytest.mark.asyncio
    async def test_none_is_no_content(self, app):
        response = await app.dispatch("GET", "/empty")
        assert response.status == 204
        assert "content-type" not in response.headers
        assert response.body == b""

    @pytest.mark.asyncio
    async def test_not_found(self, app):
        response = await app.dispatch("GET", "/nowhere")
        assert response.status == 404

    @pytest.mark.asyncio
    async def test_method_not_allowed(self, app):
        response = await app.dispatch("DELETE", "/echo/hi")
        assert response.status == 405
        assert response.headers["allow"] == "GET, POST"

    @pytest.mark.asyncio
    async def test_handler_error_is_500(self, app):
        response = await app.dispatch("GET", "/boom")
        assert response.status == 500
        assert response.json_body() == {"error": "Internal Server Error"}

    @pytest.mark.asyncio
    async def test_handler_fault_is_serialized(self, app):
        response = await app.dispatch("GET", "/fault")
        assert response.status == 500
        assert response.json_body()["error"]["code"] == "CONFIG_INVALID"


# ============================================================================
# Features
# ============================================================================

class TestDefaultHeaders:

    @pytest.mark.asyncio
    async def test_date_and_server_headers(self):
        def mapper(builder, application):
            application.install(DefaultHeaders())
            builder.bind(EchoController).singleton()

        app = create_application(mapper, config=AppConfig(server_header="demo/1.0"))
        response = await app.dispatch("GET", "/echo/x")
        assert response.headers["server"] == "demo/1.0"
        assert response.headers["date"].endswith("GMT")

    @pytest.mark.asyncio
    async def test_extra_headers_from_config(self):
        def mapper(builder, application):
            application.install(DefaultHeaders(headers={"X-Frame-Options": "DENY"}))

        config = AppConfig(default_headers={"X-App": "wb"})
        app = create_application(mapper, config=config)
        response = await app.dispatch("GET", "/missing")
        assert response.status == 404
        assert response.headers["x-app"] == "wb"
        assert response.headers["x-frame-options"] == "DENY"

    def test_install_is_idempotent(self):
        app = Application()
        first = app.install(DefaultHeaders())
        assert app.install(DefaultHeaders(server="other")) is first
        assert app.feature(DefaultHeaders) is first
        assert len(app.features) == 1

    def test_handler_headers_win(self):
        app = Application()
        feature = app.install(DefaultHeaders())
        response = Response.text("hi", headers={"Server": "custom"})
        feature.on_response(None, response)
        assert response.headers["server"] == "custom"


# ============================================================================
# Responses
# ============================================================================

class TestResponse:

    def test_coerce(self):
        assert Response.coerce({"a": 1}).headers["content-type"].startswith("application/json")
        assert Response.coerce([1, 2]).json_body() == [1, 2]
        assert Response.coerce("text").body == b"text"
        assert Response.coerce(b"raw").headers["content-type"] == "application/octet-stream"
        assert Response.coerce(None).status == 204
        original = Response.text("x")
        assert Response.coerce(original) is original

    def test_coerce_unsupported(self):
        with pytest.raises(TypeError):
            Response.coerce(object())

    def test_helpers(self):
        assert NotFound("gone").json_body() == {"error": "gone"}
        assert MethodNotAllowed(["POST", "GET"]).headers["allow"] == "GET, POST"

    def test_header_names_are_lowercase(self):
        response = Response("x", headers={"X-Custom": "1"})
        response.set_header("X-Other", "2")
        assert response.headers == {
            "x-custom": "1",
            "content-type": "text/plain; charset=utf-8",
            "x-other": "2",
        }

    @pytest.mark.asyncio
    async def test_send_asgi(self):
        messages = []

        async def send(message):
            messages.append(message)

        await Response.text("hello").send_asgi(send)

        start, body = messages
        assert start["status"] == 200
        assert (b"content-length", b"5") in start["headers"]
        assert body["body"] == b"hello"


class TestCall:

    def test_call_exposes_container(self):
        app = create_application()
        call = Call(application=app, method="GET", path="/")
        assert isinstance(call.container, Container)
        assert call.container is app.container
