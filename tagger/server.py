"""
Directory browser with thumbnail previews.

Serves an HTML listing of any directory under the working root, showing a
thumbnail next to each file. Thumbnails are read from a shared thumbnail
cache (the freedesktop layout most desktop file managers fill in) and are
served under /thumb/.

The browser never reads or writes the tag snapshot. It only uses the path
sandbox, once for the root and once for the thumbnail directory, so a
request can never reach outside either.
"""

import hashlib
import html
import logging
import mimetypes
import os
import posixpath
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import quote, unquote_to_bytes, urlparse

from .sandbox import NotFoundError, OutsideRootError, confine, expand, normalize_root

logger = logging.getLogger(__name__)

THUMB_PREFIX = "/thumb/"

# Seconds a connection may stay idle while reading or writing
REQUEST_TIMEOUT = 10

PAGE_HEAD = (
    "<html><head><meta charset='UTF-8'><title>File Browser</title>"
    "<style>body { font-family: Arial, sans-serif; } "
    "table { border-collapse: collapse; } td { padding: 2px 8px; } "
    "a { text-decoration: none; color: #333; } a:hover { text-decoration: underline; }"
    "</style></head><body>"
)
PAGE_TAIL = "</table></body></html>"

DIR_ICON = "\N{FILE FOLDER}"


def thumbnail_name(path: str) -> str:
    """Thumbnail file name for an absolute path: md5 of its file:// URI."""
    digest = hashlib.md5(b"file://" + os.fsencode(path)).hexdigest()
    return f"{digest}.png"


def _display(name: str) -> str:
    """HTML-safe text for a file name that may not decode as UTF-8."""
    return html.escape(os.fsencode(name).decode("utf-8", errors="replace"))


def _href(key: str) -> str:
    return quote(os.fsencode(key))


def render_listing(root: str, key: str) -> str:
    """HTML listing of the directory at key, directories first."""
    directory = expand(root, key)
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda e: (not e.is_dir(), e.name))

    parent = posixpath.dirname(key)
    rows = [
        f"<h1>Browsing: {_display(key)}</h1><table>",
        f'<tr><td></td><td><a href="{_href(parent)}">{DIR_ICON} ..</a></td></tr>',
    ]
    for entry in entries:
        name = _display(entry.name)
        if entry.is_dir():
            href = _href(posixpath.join(key, entry.name))
            rows.append(f'<tr><td></td><td><a href="{href}">{DIR_ICON} {name}</a></td></tr>')
        else:
            thumb = THUMB_PREFIX + thumbnail_name(os.path.join(directory, entry.name))
            rows.append(
                f'<tr><td><img src="{thumb}" alt=""></td><td><span>{name}</span></td></tr>'
            )
    return PAGE_HEAD + "".join(rows) + PAGE_TAIL


def make_handler(root: Path, thumbnails: Path) -> type[BaseHTTPRequestHandler]:
    """Build a request handler class bound to root and thumbnail directory."""
    root_path = normalize_root(root)
    thumb_path = normalize_root(thumbnails)

    class BrowserHandler(BaseHTTPRequestHandler):
        timeout = REQUEST_TIMEOUT

        def log_message(self, format, *args):
            logger.debug("%s - %s", self.address_string(), format % args)

        def _send(self, body: bytes, content_type: str) -> None:
            self.send_response(200)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def do_GET(self):
            path = os.fsdecode(unquote_to_bytes(urlparse(self.path).path)) or "/"
            try:
                if path.startswith(THUMB_PREFIX):
                    self._serve_thumbnail(path[len(THUMB_PREFIX):])
                else:
                    self._serve_directory(path)
            except OutsideRootError:
                self.send_error(403, "Forbidden")
            except NotFoundError:
                self.send_error(404, "Not found")
            except OSError as e:
                logger.warning("Error serving %s: %s", path, e)
                self.send_error(500, "Internal server error")

        def _serve_directory(self, path: str) -> None:
            key = confine(root_path, os.path.join(root_path, path.lstrip("/")))
            if not os.path.isdir(expand(root_path, key)):
                self.send_error(400, "Not a directory")
                return
            self._send(render_listing(root_path, key).encode("utf-8"), "text/html; charset=utf-8")

        def _serve_thumbnail(self, name: str) -> None:
            key = confine(thumb_path, os.path.join(thumb_path, name))
            full = expand(thumb_path, key)
            if not os.path.isfile(full):
                raise NotFoundError(name)
            content_type = mimetypes.guess_type(full)[0] or "application/octet-stream"
            with open(full, "rb") as f:
                self._send(f.read(), content_type)

    return BrowserHandler


def make_server(root: Path, thumbnails: Path, host: str, port: int) -> ThreadingHTTPServer:
    """Create (but don't start) a browser server. Port 0 picks a free port."""
    server = ThreadingHTTPServer((host, port), make_handler(root, thumbnails))
    server.daemon_threads = True
    return server


def serve(root: Path, thumbnails: Path, host: str, port: int) -> None:
    """Run the browser until interrupted."""
    server = make_server(root, thumbnails, host, port)
    bound_host, bound_port = server.server_address[:2]
    logger.info("Browsing %s at http://%s:%d/ (thumbnails from %s)", root, bound_host, bound_port, thumbnails)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    finally:
        server.server_close()
