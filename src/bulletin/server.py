#!/usr/bin/env python3
"""
Bulletin HTTP front end

This module provides:
- BulletinHTTPHandler: /add and /del registration endpoints, the /services
  JSON listing and the HTML service list served on every other path
- create_server: binds a ThreadingHTTPServer to a registry
- start_server: serves a bound server from a daemon thread
"""

import json
import logging
import re
import threading
import urllib.parse
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from jinja2 import Environment, PackageLoader

from .registry import ServiceRegistry

logger = logging.getLogger(__name__)

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_LINK_SCHEMES = {"", "http", "https"}


def safe_href(url: str) -> str:
    """Return *url* if it is safe to link to, else ``#``."""
    try:
        scheme = urllib.parse.urlsplit(url).scheme.lower()
    except ValueError:
        return "#"
    return url if scheme in _LINK_SCHEMES else "#"


def _get_template_env() -> Environment:
    env = Environment(
        loader=PackageLoader("bulletin", "templates"),
        autoescape=True,
    )
    env.filters["safe_href"] = safe_href
    return env


def unescape_url(value: str) -> str:
    """Percent-decode a registered URL, rejecting malformed escapes."""
    if _BAD_ESCAPE.search(value):
        raise ValueError(f"malformed percent escape in {value!r}")
    return urllib.parse.unquote(value, errors="strict")


def render_service_list(services) -> str:
    """Render the HTML service list for an iterable of ServiceEntry."""
    template = _get_template_env().get_template("services.html.j2")
    return template.render(services=sorted(services, key=lambda s: s.name))


# ---------------------------------------------------------------------------
# HTTP handler
# ---------------------------------------------------------------------------

def _make_handler(registry: ServiceRegistry):
    """Create a handler class bound to the given registry instance."""

    class BulletinHTTPHandler(BaseHTTPRequestHandler):

        def log_message(self, format, *args):
            logger.debug("%s - %s", self.address_string(), format % args)

        def _send(self, body: bytes, content_type: str, status: int):
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _json_response(self, data: Any, status: int = HTTPStatus.OK):
            self._send(json.dumps(data).encode(), "application/json", status)

        def do_GET(self):
            parsed = urllib.parse.urlparse(self.path)
            qs = urllib.parse.parse_qs(parsed.query, keep_blank_values=True)

            if parsed.path == "/add":
                self._add_service(qs)
            elif parsed.path == "/del":
                self._delete_service(qs)
            elif parsed.path == "/services":
                services = sorted(registry.snapshot().values(), key=lambda s: s.name)
                self._json_response([s.to_dict() for s in services])
            else:
                page = render_service_list(registry.snapshot().values())
                self._send(page.encode("utf-8"), "text/html; charset=utf-8", HTTPStatus.OK)

        def _add_service(self, qs):
            name = qs.get("name", [""])[0]
            raw_url = qs.get("url")
            if not name or raw_url is None:
                self._json_response(
                    {"status": "false", "msg": "wrong query string"},
                    status=HTTPStatus.BAD_REQUEST,
                )
                return
            try:
                url = unescape_url(raw_url[0])
            except (ValueError, UnicodeDecodeError):
                self._json_response(
                    {"status": "false", "msg": "invalid url parameter"},
                    status=HTTPStatus.BAD_REQUEST,
                )
                return
            registry.set_url(name, url)
            logger.info("Registered %s -> %s", name, url)
            self._json_response({"status": "true"})

        def _delete_service(self, qs):
            names = qs.get("name")
            if names is None:
                self._json_response(
                    {"status": "false", "msg": "Bad Request"},
                    status=HTTPStatus.BAD_REQUEST,
                )
                return
            name = names[0]
            if registry.delete(name):
                logger.info("Deleted %s", name)
                self._json_response({"status": "true"})
            else:
                self._json_response({"status": "false"})

    return BulletinHTTPHandler


def create_server(
    registry: ServiceRegistry,
    host: str = "0.0.0.0",
    port: int = 8087,
) -> ThreadingHTTPServer:
    """Bind a ThreadingHTTPServer for *registry*.  Raises OSError if the bind fails."""
    handler = _make_handler(registry)
    server = ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server


def start_server(
    registry: ServiceRegistry,
    host: str = "0.0.0.0",
    port: int = 8087,
) -> ThreadingHTTPServer:
    """Start a ThreadingHTTPServer in a daemon thread and return the server."""
    server = create_server(registry, host=host, port=port)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server
