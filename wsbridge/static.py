import asyncio
import html
import logging
import mimetypes
from http import HTTPStatus
from pathlib import Path
from urllib.parse import quote, unquote

from websockets.datastructures import Headers
from websockets.http11 import Response

log = logging.getLogger(__name__)

INDEX_FILE = "index.html"


def make_response(status, body=b"", content_type="text/plain; charset=utf-8", **extra):
    status = HTTPStatus(status)
    headers = Headers({
        "Content-Type": content_type,
        "Content-Length": str(len(body)),
        "Connection": "close",
    })
    for name, value in extra.items():
        headers[name.replace("_", "-")] = value
    return Response(status.value, status.phrase, headers, body)


class StaticFiles:
    """Serve files below ``root`` in answer to plain GET requests."""

    def __init__(self, root):
        self.root = Path(root).resolve()

    def resolve(self, request_path):
        """Map a request path to a file system path, or None if it escapes the root."""
        rel = unquote(request_path.split("?", 1)[0]).lstrip("/")
        try:
            path = (self.root / rel).resolve()
        except ValueError:
            # embedded NUL byte
            return None
        if path != self.root and self.root not in path.parents:
            return None
        return path

    async def respond(self, request):
        url_path = request.path.split("?", 1)[0]
        path = self.resolve(url_path)
        if path is None or not path.exists():
            log.debug("Not found: %s", request.path)
            return make_response(HTTPStatus.NOT_FOUND, b"404 page not found\n")

        if path.is_dir():
            if not url_path.endswith("/"):
                return make_response(HTTPStatus.MOVED_PERMANENTLY, Location=url_path + "/")
            index = path / INDEX_FILE
            if not index.is_file():
                return self.listing(path)
            path = index

        log.debug("Serving file %s", request.path)
        try:
            body = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            log.warning("Cannot read %s: %s", path, exc)
            return make_response(HTTPStatus.FORBIDDEN, b"403 Forbidden\n")
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return make_response(HTTPStatus.OK, body, content_type)

    def listing(self, directory):
        names = sorted(
            entry.name + ("/" if entry.is_dir() else "") for entry in directory.iterdir()
        )
        lines = ["<!doctype html>", '<meta name="viewport" content="width=device-width">', "<pre>"]
        lines += [f'<a href="{quote(name)}">{html.escape(name)}</a>' for name in names]
        lines.append("</pre>\n")
        body = "\n".join(lines).encode()
        return make_response(HTTPStatus.OK, body, "text/html; charset=utf-8")
