"""Tests configurations and fixtures."""

from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from threading import Thread
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from pytest_silk.core import DocumentParser

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


class HelloHandler(BaseHTTPRequestHandler):
    """Greets the `name` query parameter in plain text."""

    def do_GET(self) -> None:  # noqa: N802
        """Answer `GET /hello?name=...`."""
        url = urlsplit(self.path)
        if url.path != '/hello':
            self.send_error(404)
            return

        name = parse_qs(url.query).get('name', ['World'])[0]
        body = f'Hello {name}.\n'.encode()

        self.send_response(200)
        self.send_header('Content-Type', 'text/html; charset=utf-8')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, *args: object) -> None:
        """Keep test output quiet."""


@pytest.fixture
def hello_server() -> 'Iterator[str]':
    """Serve `HelloHandler` on a free local port.

    Returns:
        Root URL of the running server.
    """
    server = ThreadingHTTPServer(('127.0.0.1', 0), HelloHandler)
    thread = Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield f'http://127.0.0.1:{server.server_port}'

    server.shutdown()
    server.server_close()
    thread.join()


@pytest.fixture
def parser() -> DocumentParser:
    """Provide a document parser with default settings."""
    return DocumentParser()


@pytest.fixture
def sent() -> list[httpx.Request]:
    """Collect requests received by a mock transport."""
    return []


@pytest.fixture
def mock_transport(sent: list[httpx.Request]) -> 'Callable[..., httpx.MockTransport]':
    """Provide a factory for `httpx.MockTransport` test doubles.

    The returned factory wraps a handler so that every request passing
    through the transport is also recorded in the `sent` fixture.
    """
    def make(handler: 'Callable[[httpx.Request], httpx.Response]') -> httpx.MockTransport:
        def record(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return handler(request)

        return httpx.MockTransport(record)

    return make


@pytest.fixture
def logged() -> list[str]:
    """Collect diagnostic lines logged by a runner."""
    return []
