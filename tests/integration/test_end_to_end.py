"""
Integration tests: a real listener on a loopback port, raw sockets as the client.
"""

import gzip
import threading
from pathlib import Path

import pytest

from conftest import send_raw, split_response


class TestRoutes:
    """End-to-end behaviour of the default routes."""

    @pytest.mark.parametrize("extra_headers", [
        b"",
        b"Accept-Encoding: gzip\r\n",
        b"User-Agent: x\r\nX-Anything: y\r\n",
    ])
    def test_root_always_200_empty(self, test_server, extra_headers: bytes):
        status, headers, body = test_server.request(
            b"GET / HTTP/1.1\r\n" + extra_headers + b"\r\n"
        )

        assert status == "HTTP/1.1 200 OK"
        assert body == b""

    def test_echo_gzip(self, test_server):
        status, headers, body = test_server.request(
            b"GET /echo/abc HTTP/1.1\r\nAccept-Encoding: gzip\r\n\r\n"
        )

        assert status == "HTTP/1.1 200 OK"
        assert headers["content-encoding"] == "gzip"
        assert int(headers["content-length"]) == len(body)
        assert gzip.decompress(body) == b"abc"

    def test_echo_plain(self, test_server):
        status, headers, body = test_server.request(b"GET /echo/abc HTTP/1.1\r\n\r\n")

        assert status == "HTTP/1.1 200 OK"
        assert body == b"abc"
        assert "content-encoding" not in headers

    def test_echo_sample_request(self, test_server, sample_get_request: bytes):
        """gzip listed among other encodings still counts."""
        _, headers, body = test_server.request(sample_get_request)

        assert headers["content-encoding"] == "gzip"
        assert gzip.decompress(body) == b"abc"

    def test_user_agent(self, test_server):
        status, headers, body = test_server.request(
            b"GET /user-agent HTTP/1.1\r\nUser-Agent: test-client\r\n\r\n"
        )

        assert status == "HTTP/1.1 200 OK"
        assert headers["content-type"] == "text/plain"
        assert body == b"test-client"

    def test_nonexistent_path(self, test_server):
        status, _, body = test_server.request(b"GET /nonexistent/path HTTP/1.1\r\n\r\n")

        assert status == "HTTP/1.1 404 Not Found"
        assert body == b""

    def test_unknown_method(self, test_server):
        status, _, _ = test_server.request(b"BREW / HTTP/1.1\r\n\r\n")

        assert status == "HTTP/1.1 404 Not Found"

    def test_files_unconfigured_is_404(self, test_server):
        status, _, _ = test_server.request(
            b"POST /files/x HTTP/1.1\r\nContent-Length: 4\r\n\r\ndata"
        )

        assert status == "HTTP/1.1 404 Not Found"

    def test_malformed_content_length(self, test_server):
        status, _, _ = test_server.request(
            b"POST /echo/x HTTP/1.1\r\nContent-Length: nope\r\n\r\n"
        )

        assert status == "HTTP/1.1 500 Internal Server Error"


class TestFiles:
    """GET/POST /files/{name} with a configured directory."""

    def test_post_then_get(self, files_server, tmp_path: Path):
        data = b"\x00binary\r\n\r\nstuff\xff"
        status, _, _ = files_server.request(
            b"POST /files/foo.txt HTTP/1.1\r\nContent-Length: %d\r\n\r\n" % len(data) + data
        )
        assert status == "HTTP/1.1 201 Created"

        status, headers, body = files_server.request(b"GET /files/foo.txt HTTP/1.1\r\n\r\n")

        assert status == "HTTP/1.1 200 OK"
        assert headers["content-type"] == "application/octet-stream"
        assert body == data
        assert (tmp_path / "foo.txt").read_bytes() == data

    def test_sample_upload(self, files_server, tmp_path: Path,
                           sample_post_request: bytes):
        status, _, _ = files_server.request(sample_post_request)

        assert status == "HTTP/1.1 201 Created"
        assert (tmp_path / "notes.txt").read_bytes() == b"hello, files!"

    def test_get_missing(self, files_server):
        status, _, _ = files_server.request(b"GET /files/missing HTTP/1.1\r\n\r\n")

        assert status == "HTTP/1.1 404 Not Found"


class TestConnections:
    """One response per connection, connections isolated from each other."""

    def test_connection_closed_after_response(self, test_server):
        """send_raw reads to EOF, so returning at all means the server closed."""
        raw = send_raw(test_server.port, b"GET /echo/one HTTP/1.1\r\n\r\n")

        assert raw.count(b"HTTP/1.1 ") == 1
        assert raw.endswith(b"one")

    def test_concurrent_clients(self, test_server):
        results = {}

        def client(i: int):
            raw = send_raw(test_server.port, b"GET /echo/c%d HTTP/1.1\r\n\r\n" % i)
            results[i] = split_response(raw)[2]

        threads = [threading.Thread(target=client, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10.0)

        assert results == {i: b"c%d" % i for i in range(10)}

    def test_bad_request_does_not_affect_next(self, test_server):
        send_raw(test_server.port, b"\xff\xfe garbage\r\n\r\n")

        status, _, _ = test_server.request(b"GET / HTTP/1.1\r\n\r\n")

        assert status == "HTTP/1.1 200 OK"
