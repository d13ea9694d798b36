"""
Threaded HTTP server for a single file.

Every GET / re-opens the file, so the response always reflects what is on
disk right now. Each connection gets its own thread, so a client that
connects and never sends a request only ties up that thread.
"""

import functools
import os
import sys
from datetime import datetime, timezone
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import quote, urlsplit

from pipeserve import __version__
from pipeserve.errors import BindError

ROUTE = "/"
INLINE_TYPES = ("text", "image", "audio", "video")


def content_disposition(path: str, ctype: str) -> str:
    """inline for things a browser can show, attachment for everything else."""
    kind = "inline" if ctype.split("/", 1)[0] in INLINE_TYPES else "attachment"
    name = os.path.basename(path)
    if name.isascii() and '"' not in name and "\\" not in name:
        return f'{kind}; filename="{name}"'
    return f"{kind}; filename*=UTF-8''{quote(name)}"


class ResourceHandler(SimpleHTTPRequestHandler):
    server_version = f"pipeserve/{__version__}"

    def send_head(self):
        # do_GET and do_HEAD both come through here; do_GET then copies the
        # returned file to the socket.
        if urlsplit(self.path).path != ROUTE:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return None

        path = self.server.resource.path
        try:
            f = open(path, "rb")
        except FileNotFoundError:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return None
        except OSError as e:
            self.send_error(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                explain=f"Can't read file: {e.strerror or e}",
            )
            return None

        try:
            fs = os.fstat(f.fileno())
            ctype = self.guess_type(path)
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", ctype)
            self.send_header("Content-Length", str(fs.st_size))
            self.send_header("Last-Modified", self.date_time_string(fs.st_mtime))
            self.send_header("Content-Disposition", content_disposition(path, ctype))
            self.end_headers()
            return f
        except Exception:
            f.close()
            raise

    def log_message(self, format, *args):
        if self.server.quiet:
            return
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        print(f"[{stamp}] {self.address_string()} {format % args}", file=sys.stderr)


class ResourceServer(ThreadingHTTPServer):
    """ThreadingHTTPServer that serves one Resource, one thread per connection."""

    def __init__(self, server_address, resource, quiet=False, handler_class=ResourceHandler):
        self.resource = resource
        self.quiet = quiet
        # Pin the handler's directory so requests never depend on the cwd.
        handler = functools.partial(handler_class, directory=os.path.dirname(resource.path))
        try:
            super().__init__(server_address, handler)
        except OSError as e:
            host, port = server_address[:2]
            raise BindError(f"can't bind {host}:{port}: {e.strerror or e}") from e

    def handle_error(self, request, client_address):
        _, exc, _ = sys.exc_info()
        print(f"WARNING: request from {client_address[0]} failed: {exc!r}", file=sys.stderr)


def serve(resource, port: int, quiet=False):
    """Bind 0.0.0.0:port and serve resource until the process is stopped."""
    with ResourceServer(("0.0.0.0", port), resource, quiet=quiet) as httpd:
        print(f"Serving {resource.path} on port {httpd.server_port} (threaded)")
        httpd.serve_forever()
