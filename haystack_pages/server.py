"""On-demand HTTP server rendering documents per request.

Requests are answered straight from the source tree: every hit re-reads and
re-renders the matching file.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from dataclasses import dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Iterator

from .config import ThemeConfig
from .render import DocumentRenderer, RenderError
from .resolver import BadRequest, NotFound, Render, ServeStatic, resolve_request

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


class _ThreadingHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True


@dataclass(frozen=True, slots=True)
class Response:
    status: int
    content_type: str
    body: bytes

    @classmethod
    def text(cls, status: int, message: str) -> "Response":
        return cls(status=status, content_type=TEXT_CONTENT_TYPE, body=message.encode("utf-8"))


def answer_request(
    url_path: str,
    source_root: Path,
    renderer: DocumentRenderer,
    theme: ThemeConfig,
) -> Response:
    """Resolve ``url_path`` and build the matching response."""
    action = resolve_request(url_path, source_root)

    if isinstance(action, BadRequest):
        return Response.text(HTTPStatus.BAD_REQUEST, "Bad Request")
    if isinstance(action, NotFound):
        return Response.text(HTTPStatus.NOT_FOUND, "Not Found")
    if isinstance(action, Render):
        try:
            page = renderer.render_file(action.source, theme)
        except (OSError, UnicodeDecodeError, RenderError) as exc:
            logger.error("Failed to render %s: %s", action.source, exc)
            return Response.text(HTTPStatus.INTERNAL_SERVER_ERROR, f"Error reading {action.source}: {exc}")
        return Response(status=HTTPStatus.OK, content_type=HTML_CONTENT_TYPE, body=page.encode("utf-8"))
    if isinstance(action, ServeStatic):
        try:
            payload = action.path.read_bytes()
        except OSError as exc:
            logger.error("Failed to read %s: %s", action.path, exc)
            return Response.text(HTTPStatus.INTERNAL_SERVER_ERROR, f"Error reading {action.path}: {exc}")
        return Response(status=HTTPStatus.OK, content_type=action.mime_type, body=payload)
    raise TypeError(f"Unhandled resolver action: {action!r}")


def make_request_handler(
    source_root: Path,
    renderer: DocumentRenderer,
    theme: ThemeConfig,
) -> type[BaseHTTPRequestHandler]:
    """Create a request handler that renders documents under ``source_root``."""

    class DocumentRequestHandler(BaseHTTPRequestHandler):
        server_version = "haystack"

        def do_GET(self) -> None:
            self._respond(include_body=True)

        def do_HEAD(self) -> None:
            self._respond(include_body=False)

        def log_message(self, format: str, *args: Any) -> None:
            logger.info("%s - %s", self.address_string(), format % args)

        def _respond(self, *, include_body: bool) -> None:
            response = answer_request(self.path, source_root, renderer, theme)
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(response.body)))
            self.end_headers()
            if include_body:
                self.wfile.write(response.body)

    return DocumentRequestHandler


@contextlib.contextmanager
def serve(
    host: str,
    port: int,
    handler: type[BaseHTTPRequestHandler],
) -> Iterator[ThreadingHTTPServer]:
    """Context manager that creates and cleans up the HTTP server."""
    server = _ThreadingHTTPServer((host, port), handler)
    try:
        yield server
    finally:
        server.server_close()


def bound_address(server: ThreadingHTTPServer) -> tuple[str, int]:
    """Host and port the server actually listens on (handles 0.0.0.0 and bytes)."""
    raw_host = server.server_address[0]
    host = raw_host.decode("utf-8", "ignore") if isinstance(raw_host, bytes) else str(raw_host)
    return host, int(server.server_address[1])


def site_url(host: str, port: int) -> str:
    """Browsable URL for a listening address; wildcard hosts map to loopback."""
    url_host = "127.0.0.1" if host in {"0.0.0.0", ""} else host
    return f"http://{url_host}:{port}/"


@dataclass(slots=True)
class ServerHandle:
    server: ThreadingHTTPServer
    thread: threading.Thread
    host: str
    port: int

    @property
    def url(self) -> str:
        return site_url(self.host, self.port)


def start_server(
    source_root: Path,
    renderer: DocumentRenderer,
    theme: ThemeConfig,
    *,
    host: str = "127.0.0.1",
    port: int = 4000,
) -> ServerHandle:
    """Start the document server in a background thread.

    Returns a handle that can be passed to ``stop_server``. Bind failures raise
    ``OSError``.
    """
    handler = make_request_handler(source_root, renderer, theme)
    server = _ThreadingHTTPServer((host, port), handler)
    bound_host, bound_port = bound_address(server)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return ServerHandle(server=server, thread=thread, host=bound_host, port=bound_port)


def stop_server(handle: ServerHandle | None) -> None:
    """Stop a running server started by ``start_server``."""
    if handle is None:
        return
    try:
        handle.server.shutdown()
    finally:
        handle.server.server_close()
    if handle.thread.is_alive():
        handle.thread.join(timeout=2.0)
