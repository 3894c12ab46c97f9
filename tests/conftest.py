import os
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class NumbersHandler(BaseHTTPRequestHandler):
    # path -> (status, body, delay before headers[, delay between headers and body])
    routes = {
        "/primes": (200, json.dumps({"numbers": [2, 3, 5, 7, 11]}), 0),
        "/fibo": (200, json.dumps({"numbers": [1, 1, 2, 3, 5, 8]}), 0),
        "/even": (200, json.dumps({"numbers": [2, 4, 6, 8]}), 0),
        "/rand": (200, json.dumps({"numbers": []}), 0),
    }

    def do_GET(self):
        status, body, delay, *rest = self.routes.get(self.path, (404, "not found", 0))
        body_delay = rest[0] if rest else 0
        if delay:
            time.sleep(delay)
        data = body.encode()
        try:
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            if body_delay:
                time.sleep(body_delay)
            self.wfile.write(data)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def number_server():
    """Local test server; tests patch ``routes`` on the returned handler class."""
    handler = type("Handler", (NumbersHandler,), {"routes": dict(NumbersHandler.routes)})
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address
    server.base_url = f"http://{host}:{port}"
    server.handler = handler
    yield server
    server.shutdown()
    server.server_close()
