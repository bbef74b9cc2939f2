"""
Unit tests for HTTP request parsing and the read-only Request.
"""

import dataclasses

import pytest

from httpchain.http.request import (
    Request,
    RequestParser,
    HTTPParseError,
    parse_request,
)


@pytest.fixture
def sample_get_request() -> bytes:
    return (
        b"GET /post?draft=1&tag=a&tag=b HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Authorization: Bearer abc.def.ghi\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    body = b'{"title": "hello"}'
    return (
        b"POST /post HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json; charset=utf-8\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Request line, path without query and client address."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/post"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        """Header names are lowercased; Authorization is exposed raw."""
        request = parse_request(sample_get_request)

        assert request.headers["host"] == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.authorization == "Bearer abc.def.ghi"
        assert request.is_keep_alive is True

    def test_parse_query_params(self, sample_get_request: bytes):
        """Query string is split off the path and parsed."""
        request = parse_request(sample_get_request)

        assert request.get_query("draft") == "1"
        assert request.query_params["tag"] == ["a", "b"]
        assert request.get_query("missing") is None
        assert request.get_query("missing", "default") == "default"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """Body is read by Content-Length; content type loses parameters."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.content_type == "application/json"
        assert request.body == b'{"title": "hello"}'
        assert request.content_length == len(request.body)
        assert request.is_keep_alive is False

    def test_path_kept_as_sent(self):
        """Only the query is decoded; the path is left untouched."""
        raw = b"GET /search%20me?q=hello%20world HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/search%20me"
        assert request.get_query("q") == "hello world"

    @pytest.mark.parametrize("target", ["//evil", "/;x", "/post;jsessionid=1", "/%70ost", "/post/"])
    def test_unusual_paths_not_rewritten(self, target):
        request = parse_request(f"GET {target} HTTP/1.1\r\n\r\n".encode())

        assert request.path == target

    def test_only_first_question_mark_splits(self):
        request = parse_request(b"GET /search?q=a?b HTTP/1.1\r\n\r\n")

        assert request.path == "/search"
        assert request.get_query("q") == "a?b"

    def test_absolute_form_target(self):
        request = parse_request(b"GET http://example.com/post?x=1 HTTP/1.1\r\n\r\n")

        assert request.path == "/post"
        assert request.get_query("x") == "1"

    def test_parse_invalid_method(self):
        """Unknown methods are rejected with 405."""
        raw = b"BREW /pot HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 405

    def test_parse_invalid_request_line(self):
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_parse_unsupported_version(self):
        raw = b"GET / HTTP/2.0\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 505

    def test_parse_missing_terminator(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_parse_missing_headers(self):
        """A request with no headers at all is valid."""
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        assert request.path == "/"
        assert len(request.headers) == 0
        assert request.authorization == ""

    def test_parse_request_too_large(self):
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_parse_short_body(self):
        """Fewer body bytes than Content-Length promises."""
        raw = b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_parse_invalid_content_length(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: lots\r\n\r\n"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_http_version_keep_alive_defaults(self):
        """HTTP/1.0 closes by default; HTTP/1.1 keeps alive by default."""
        request_10 = parse_request(b"GET / HTTP/1.0\r\nHost: test\r\n\r\n")
        assert request_10.version == "HTTP/1.0"
        assert request_10.is_keep_alive is False

        request_11 = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request_11.is_keep_alive is True

    def test_repeated_headers_are_joined(self):
        raw = b"GET / HTTP/1.1\r\nAccept: text/plain\r\nAccept: application/json\r\n\r\n"
        request = parse_request(raw)

        assert request.get_header("accept") == "text/plain, application/json"

    def test_obsolete_line_folding(self):
        raw = b"GET / HTTP/1.1\r\nX-Long: first\r\n  second\r\n\r\n"
        request = parse_request(raw)

        assert request.get_header("X-Long") == "first second"

    def test_case_insensitive_headers(self):
        raw = b"GET / HTTP/1.1\r\nAUTHORIZATION: Bearer t\r\n\r\n"
        request = parse_request(raw)

        assert request.get_header("Authorization") == "Bearer t"
        assert request.get_header("authorization") == "Bearer t"


class TestRequest:
    """Tests for the Request dataclass."""

    def test_get_header_default(self):
        request = Request(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_method_is_uppercased(self):
        assert Request(method="post", path="/post").method == "POST"

    def test_fields_are_frozen(self):
        """No stage can swap out a field for a later stage."""
        request = Request(method="GET", path="/")

        with pytest.raises(dataclasses.FrozenInstanceError):
            request.path = "/post"

    def test_headers_are_read_only(self):
        request = Request(method="GET", path="/", headers={"Authorization": "Bearer t"})

        with pytest.raises(TypeError):
            request.headers["authorization"] = "Bearer forged"

        assert request.authorization == "Bearer t"

    def test_headers_copied_from_caller(self):
        """Mutating the dict passed in does not leak into the request."""
        headers = {"X-Trace": "1"}
        request = Request(method="GET", path="/", headers=headers)
        headers["X-Trace"] = "2"

        assert request.get_header("x-trace") == "1"
