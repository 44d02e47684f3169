"""
Unit tests for HTTP response building and serialization.
"""

import gzip
from unittest import mock

import pytest

from minihttp.http.request import Version
from minihttp.http.response import (
    HTTPResponse,
    ResponseBuilder,
    serialize,
    ok,
    created,
    not_found,
    internal_error,
)
from minihttp.http.status_codes import HTTPStatus, reason_phrase, UNKNOWN_STATUS_PHRASE


def split_wire(raw: bytes):
    """Split serialized bytes into (head lines, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    return head.decode().split("\r\n"), body


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        response = HTTPResponse(status_code=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status_code=HTTPStatus.NOT_FOUND, version=Version.HTTP_1_0)
        assert response.status_line == "HTTP/1.0 404 Not Found"

    def test_status_line_unknown_code(self):
        response = HTTPResponse(status_code=418)
        assert response.status_line == "HTTP/1.1 418 Unknown Status"

    def test_to_bytes_includes_headers(self):
        """Test that to_bytes includes all headers."""
        response = HTTPResponse(
            status_code=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_to_bytes_no_headers_no_body(self):
        """Zero headers: status line, then exactly one blank line."""
        assert HTTPResponse().to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    @pytest.mark.parametrize("headers", [
        {},
        {"A": "1"},
        {"A": "1", "B": "2", "C": "3"},
    ])
    @pytest.mark.parametrize("body", [None, b"", b"abc", b"\r\n\r\n"])
    def test_exactly_one_blank_line(self, headers, body):
        """The header block ends with exactly one blank line, whatever the count."""
        result = HTTPResponse(headers=headers, body=body).to_bytes()
        body_bytes = body or b""
        head = result[:len(result) - len(body_bytes)]

        assert head.endswith(b"\r\n\r\n")
        assert not head.endswith(b"\r\n\r\n\r\n")
        assert head.count(b"\r\n\r\n") == 1
        assert result[len(head):] == body_bytes

    def test_to_bytes_sets_content_length(self):
        """Content-Length is set from the body."""
        response = HTTPResponse(body=b"hello world")
        result = response.to_bytes()

        assert b"Content-Length: 11\r\n" in result

    def test_content_length_overrides_wrong_value(self):
        """A stale Content-Length (any spelling) is replaced, not duplicated."""
        response = HTTPResponse(headers={"content-length": "999"}, body=b"abc")
        lines, _ = split_wire(response.to_bytes())

        assert "Content-Length: 3" in lines
        assert not any(line.lower() == "content-length: 999" for line in lines)

    def test_empty_body_has_zero_length(self):
        lines, body = split_wire(HTTPResponse(body=b"").to_bytes())

        assert "Content-Length: 0" in lines
        assert body == b""

    def test_idempotent(self):
        """Serializing the same response twice gives identical bytes."""
        response = HTTPResponse(
            headers={"Content-Type": "text/plain"},
            body=b"abc" * 100,
            should_compress=True,
        )

        assert response.to_bytes() == response.to_bytes()
        assert serialize(response) == response.to_bytes()

    def test_to_bytes_does_not_mutate(self):
        response = HTTPResponse(headers={"Content-Type": "text/plain"}, body=b"abc",
                                should_compress=True)
        response.to_bytes()

        assert response.headers == {"Content-Type": "text/plain"}
        assert response.body == b"abc"

    def test_get_header_case_insensitive(self):
        response = HTTPResponse(headers={"Content-Type": "text/plain"})

        assert response.get_header("content-type") == "text/plain"
        assert response.get_header("X-Missing") is None


class TestCompression:
    """Tests for the gzip step of serialization."""

    def test_gzip_body(self):
        """Compressed body decodes to the original; length is the wire length."""
        response = HTTPResponse(
            headers={"Content-Type": "text/plain"},
            body=b"abc",
            should_compress=True,
        )
        lines, body = split_wire(response.to_bytes())

        assert "Content-Encoding: gzip" in lines
        assert f"Content-Length: {len(body)}" in lines
        assert gzip.decompress(body) == b"abc"

    def test_no_body_no_compression(self):
        """should_compress without a body adds nothing."""
        result = HTTPResponse(should_compress=True).to_bytes()

        assert result == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_not_compressed_unless_asked(self):
        lines, body = split_wire(HTTPResponse(body=b"abc").to_bytes())

        assert not any(line.startswith("Content-Encoding") for line in lines)
        assert body == b"abc"

    def test_existing_encoding_header_overwritten(self):
        response = HTTPResponse(
            headers={"content-encoding": "identity"},
            body=b"abc",
            should_compress=True,
        )
        lines, _ = split_wire(response.to_bytes())

        assert "Content-Encoding: gzip" in lines
        assert "content-encoding: identity" not in lines

    def test_compression_failure_falls_back(self):
        """If gzip blows up, the original body goes out uncompressed."""
        response = HTTPResponse(body=b"abc", should_compress=True)

        with mock.patch("minihttp.http.response.gzip.compress", side_effect=OSError("boom")):
            lines, body = split_wire(response.to_bytes())

        assert body == b"abc"
        assert "Content-Length: 3" in lines
        assert not any(line.startswith("Content-Encoding") for line in lines)

    def test_compression_level(self):
        """The configured level is used."""
        body = b"minihttp " * 500
        response = HTTPResponse(body=body, should_compress=True)

        fast = split_wire(response.to_bytes(compression_level=1))[1]
        small = split_wire(response.to_bytes(compression_level=9))[1]

        assert gzip.decompress(fast) == gzip.decompress(small) == body
        assert len(small) <= len(fast)


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_status(self):
        """Test setting status code."""
        response = ResponseBuilder().status(HTTPStatus.CREATED).build()
        assert response.status_code == HTTPStatus.CREATED

    def test_version(self):
        response = ResponseBuilder(Version.HTTP_2_0).build()
        assert response.version is Version.HTTP_2_0

        response = ResponseBuilder().version(Version.HTTP_1_0).build()
        assert response.version is Version.HTTP_1_0

    def test_text_body(self):
        """Test plain text body."""
        response = ResponseBuilder().text("Hello, World!").build()

        assert response.headers["Content-Type"] == "text/plain"
        assert response.body == b"Hello, World!"

    def test_empty_text_body_is_present(self):
        response = ResponseBuilder().text("").build()
        assert response.body == b""

    def test_octet_stream(self):
        response = ResponseBuilder().octet_stream(b"\x00\x01").build()

        assert response.headers["Content-Type"] == "application/octet-stream"
        assert response.body == b"\x00\x01"

    def test_compress_flag(self):
        assert ResponseBuilder().compress().build().should_compress is True
        assert ResponseBuilder().compress(False).build().should_compress is False
        assert ResponseBuilder().build().should_compress is False

    def test_method_chaining(self):
        """Test that methods can be chained."""
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("X-Custom", "value")
            .body("test")
            .build())

        assert response.status_code == HTTPStatus.OK
        assert response.headers["X-Custom"] == "value"
        assert response.body == b"test"

    def test_build_copies_headers(self):
        """Built responses don't share header dicts with the builder."""
        builder = ResponseBuilder().header("X-One", "1")
        first = builder.build()
        builder.header("X-Two", "2")

        assert "X-Two" not in first.headers


class TestConvenienceFunctions:
    """Tests for response convenience functions."""

    @pytest.mark.parametrize("factory,status", [
        (ok, 200),
        (created, 201),
        (not_found, 404),
        (internal_error, 500),
    ])
    def test_bodiless(self, factory, status):
        response = factory(Version.HTTP_1_0)

        assert response.status_code == status
        assert response.version is Version.HTTP_1_0
        assert response.body is None
        assert response.headers == {}

    def test_not_found_wire(self):
        assert not_found().to_bytes() == b"HTTP/1.1 404 Not Found\r\n\r\n"


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.CREATED.phrase == "Created"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"

    def test_status_categories(self):
        assert HTTPStatus.CREATED.is_success
        assert not HTTPStatus.OK.is_error
        assert HTTPStatus.NOT_FOUND.is_error
        assert HTTPStatus.INTERNAL_SERVER_ERROR.is_error

    @pytest.mark.parametrize("code", [100, 204, 301, 400, 405, 503, 999])
    def test_unknown_codes(self, code):
        assert reason_phrase(code) == UNKNOWN_STATUS_PHRASE == "Unknown Status"
