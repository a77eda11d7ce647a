from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class _TargetHandler(BaseHTTPRequestHandler):
    """Fake service endpoints: /ok -> 200, /fail -> 500, /slow sleeps, /empty -> 204."""

    def log_message(self, format, *args):
        pass

    def do_GET(self):
        if self.path == "/slow":
            time.sleep(1.0)
            code = 200
        elif self.path == "/ok":
            code = 200
        elif self.path == "/empty":
            code = 204
        else:
            code = 500
        self.send_response(code)
        self.send_header("Content-Length", "0")
        self.end_headers()


@pytest.fixture
def target_server():
    """Yield the base URL of a loopback server with fake service endpoints."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _TargetHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()
