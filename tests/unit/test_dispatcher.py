"""
Unit tests for Dispatcher and the demo route table.

Covers the end-to-end dispatch properties: unknown paths never reach a
leaf, /post needs a valid bearer token, stages run in registration
order and repeated dispatch is stable.
"""

import json

import pytest

from httpchain import Dispatcher, JWTVerifier, create_router
from httpchain.errors import Rejection, RouterFrozenError
from httpchain.http import Request, Response, parse_request
from httpchain.middleware import AuthMiddleware, NotFoundMiddleware, function_middleware
from httpchain.router import Router


class TestDispatcher:

    def test_unknown_path_is_404_without_running_a_chain(self, spy_leaf, make_request):
        router = Router()
        router.add("/", spy_leaf)
        dispatcher = Dispatcher(router)

        response = dispatcher.dispatch(make_request("/unknown"))

        assert response.status == 404
        assert response.body == b"404 page not found"
        assert response.rejection is Rejection.ROUTE_NOT_FOUND
        assert spy_leaf.call_count == 0

    def test_known_path_runs_its_chain(self, spy_leaf, make_request):
        router = Router()
        router.add("/", spy_leaf)

        response = Dispatcher(router).dispatch(make_request("/"))

        assert response.status == 200
        assert response.body == b"leaf"
        assert spy_leaf.call_count == 1

    def test_creating_dispatcher_freezes_router(self, spy_leaf):
        router = Router()
        router.add("/", spy_leaf)
        Dispatcher(router)

        with pytest.raises(RouterFrozenError):
            router.add("/late", spy_leaf)

    def test_uses_given_response(self, spy_leaf, make_request):
        router = Router()
        router.add("/", spy_leaf)
        response = Response()

        assert Dispatcher(router).dispatch(make_request("/"), response) is response

    def test_response_version_follows_request(self, spy_leaf):
        router = Router()
        router.add("/", spy_leaf)

        response = Dispatcher(router)(Request(method="GET", path="/", version="HTTP/1.0"))

        assert response.status_line == "HTTP/1.0 200 OK"

    def test_handler_exception_becomes_500(self, make_request, caplog):
        def broken(request, response):
            response.set_header("X-Partial", "1")
            raise RuntimeError("boom")

        router = Router()
        router.add("/", broken)

        response = Dispatcher(router).dispatch(make_request("/"))

        assert response.status == 500
        assert response.body == b"Internal Server Error"
        assert "X-Partial" not in response.headers
        assert "boom" in caplog.text

    def test_exception_after_write_keeps_written_response(self, make_request):
        def write_then_fail(request, response):
            response.write("partial")
            raise RuntimeError("late failure")

        router = Router()
        router.add("/", write_then_fail)

        response = Dispatcher(router).dispatch(make_request("/"))

        assert response.status == 200
        assert response.body == b"partial"

    def test_leaf_that_writes_nothing_leaves_default(self, make_request):
        router = Router()
        router.add("/", lambda request, response: None)

        response = Dispatcher(router).dispatch(make_request("/"))

        assert response.status == 200
        assert response.body == b""
        assert response.written is False


class TestDemoRoutes:
    """The /, /post, /health table from create_router()."""

    def test_index(self, demo_dispatcher, make_request):
        response = demo_dispatcher.dispatch(make_request("/"))

        assert response.status == 200
        assert response.body == b"Middlewares in Go!"
        assert "X-Request-ID" in response.headers

    def test_post_without_authorization_is_401(self, demo_dispatcher, make_request):
        response = demo_dispatcher.dispatch(make_request("/post", method="POST"))

        assert response.status == 401
        assert response.body == b"Unauthorized"

    def test_post_with_valid_token(self, demo_dispatcher, make_request, valid_token):
        response = demo_dispatcher.dispatch(
            make_request("/post", method="POST", authorization=f"Bearer {valid_token}")
        )

        assert response.status == 200
        assert json.loads(response.body) == {"message": "Authorized"}

    def test_post_with_tampered_token(self, demo_dispatcher, make_request, valid_token):
        header, payload, signature = valid_token.split(".")
        first = "A" if signature[0] != "A" else "B"
        tampered = f"{header}.{payload}.{first}{signature[1:]}"

        response = demo_dispatcher.dispatch(
            make_request("/post", method="POST", authorization=f"Bearer {tampered}")
        )

        assert response.status == 401

    def test_post_with_token_signed_by_other_key(self, demo_dispatcher, make_request):
        other = JWTVerifier("another-secret-0123456789abcdef0123456789")
        token = other.issue({"sub": "mallory"})

        response = demo_dispatcher.dispatch(
            make_request("/post", method="POST", authorization=f"Bearer {token}")
        )

        assert response.status == 401

    def test_unknown_path(self, demo_dispatcher, make_request):
        response = demo_dispatcher.dispatch(make_request("/unknown"))

        assert response.status == 404
        assert response.body == b"404 page not found"

    def test_health(self, demo_dispatcher, make_request):
        response = demo_dispatcher.dispatch(make_request("/health"))
        body = json.loads(response.body)

        assert response.status == 200
        assert body["status"] == "healthy"
        assert body["routes"] == 3
        assert response.headers["Cache-Control"] == "no-store"

    def test_chain_layout(self, demo_dispatcher):
        router = demo_dispatcher.router

        assert router.lookup("/").stages == (
            "NotFoundMiddleware", "LoggingMiddleware", "TextHandler",
        )
        assert router.lookup("/post").stages == (
            "NotFoundMiddleware", "LoggingMiddleware", "AuthMiddleware", "JSONHandler",
        )
        assert router.lookup("/health").stages == ("NotFoundMiddleware", "HealthHandler")

    def test_scenario_sequence(self, demo_dispatcher, make_request):
        """GET /, POST /post without a token, GET /unknown."""
        statuses = [
            demo_dispatcher.dispatch(make_request("/")).status,
            demo_dispatcher.dispatch(make_request("/post", method="POST")).status,
            demo_dispatcher.dispatch(make_request("/unknown")).status,
        ]

        assert statuses == [200, 401, 404]

    def test_repeated_dispatch_is_idempotent(self, spy_leaf, verifier, make_request, valid_token):
        router = Router()
        router.add(
            "/post",
            spy_leaf,
            NotFoundMiddleware.factory(allowed=router.has_route),
            AuthMiddleware.factory(verifier=verifier),
        )
        dispatcher = Dispatcher(router)
        paths_before = router.paths()
        request = make_request("/post", method="POST", authorization=f"Bearer {valid_token}")

        first = dispatcher.dispatch(request)
        second = dispatcher.dispatch(request)

        assert first is not second
        assert (first.status, first.body) == (second.status, second.body) == (200, b"leaf")
        assert spy_leaf.call_count == 2
        assert router.paths() == paths_before == {"/post"}

    @pytest.mark.parametrize("target", ["//evil", "/;x", "/post;jsessionid=1", "/%70ost"])
    def test_paths_are_matched_as_sent(self, demo_dispatcher, target):
        request = parse_request(f"GET {target} HTTP/1.1\r\n\r\n".encode())

        response = demo_dispatcher.dispatch(request)

        assert response.status == 404
        assert response.body == b"404 page not found"

    def test_index_body_is_configurable(self, verifier, make_request):
        dispatcher = Dispatcher(create_router(verifier, index_body="hello"))

        assert dispatcher.dispatch(make_request("/")).body == b"hello"


class TestStageOrdering:
    """NotFound, then Auth, then the leaf, with each rejection stopping the chain."""

    @pytest.fixture
    def traced(self, spy_leaf, trace):
        def tap(label):
            @function_middleware
            def record(request, response, next_handler):
                trace.append(label)
                next_handler(request, response)
            return record

        router = Router()
        router.add(
            "/post",
            spy_leaf,
            tap("not_found"),
            NotFoundMiddleware.factory(allowed=router.has_route),
            tap("auth"),
            AuthMiddleware.factory(verifier=lambda token: (token == "ok", None)),
            tap("leaf"),
        )
        return Dispatcher(router)

    def test_full_pass(self, traced, trace, spy_leaf, make_request):
        response = traced.dispatch(make_request("/post", authorization="Bearer ok"))

        assert trace == ["not_found", "auth", "leaf"]
        assert spy_leaf.call_count == 1
        assert response.status == 200

    def test_auth_rejection_stops_before_leaf(self, traced, trace, spy_leaf, make_request):
        response = traced.dispatch(make_request("/post", authorization="Bearer nope"))

        assert trace == ["not_found", "auth"]
        assert spy_leaf.call_count == 0
        assert response.status == 401

    def test_not_found_layer_uses_same_table(self, spy_leaf, make_request):
        """NotFound sourced from the router agrees with the router's own check."""
        router = Router()
        allowed = NotFoundMiddleware.factory(allowed=router.has_route)
        router.add("/", spy_leaf, allowed)
        dispatcher = Dispatcher(router)

        for path in ("/", "/missing"):
            response = dispatcher.dispatch(make_request(path))
            assert (response.status == 200) == router.has_route(path)


def test_dispatch_is_callable(demo_dispatcher, make_request):
    assert demo_dispatcher(make_request("/")).status == 200
