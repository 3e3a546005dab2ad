import threading
from http.server import ThreadingHTTPServer, BaseHTTPRequestHandler

import pytest


@pytest.fixture(scope="module")
def http_server():
    """A small text API: /ping, a /data store, an /echo endpoint, 404 elsewhere."""
    store = {}

    class Handler(BaseHTTPRequestHandler):
        def log_message(self, fmt, *args):  # silence test logs
            return

        def _reply(self, status: int, body: str):
            b = body.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(b)))
            self.end_headers()
            self.wfile.write(b)

        def _read_body(self) -> str:
            length = int(self.headers.get("Content-Length", "0"))
            return self.rfile.read(length).decode("utf-8") if length else ""

        def do_GET(self):
            if self.path == "/ping":
                self._reply(200, "pong")
            elif self.path == "/redirect":
                self.send_response(302)
                self.send_header("Location", "/ping")
                self.send_header("Content-Length", "0")
                self.end_headers()
            elif self.path.lstrip("/") in store:
                self._reply(200, store[self.path.lstrip("/")])
            else:
                self._reply(404, "not found")

        def do_PUT(self):
            data = self._read_body()
            store[self.path.lstrip("/")] = data
            self._reply(200, data)

        def do_POST(self):
            data = self._read_body()
            store[self.path.lstrip("/")] = data
            self._reply(201, data)

        def do_DELETE(self):
            store.pop(self.path.lstrip("/"), None)
            self._reply(200, "deleted")

    srv = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    host, port = srv.server_address
    t = threading.Thread(target=srv.serve_forever, daemon=True)
    t.start()
    try:
        yield f"http://{host}:{port}"
    finally:
        srv.shutdown()
        srv.server_close()
        t.join(timeout=2)
