"""
Minimal HTTP liveness endpoint for the tracker process.
Serves GET /health on PORT so container healthchecks succeed.
Runs in a daemon thread; no-op when PORT is not set (e.g. local dev).
"""
from __future__ import annotations

import json
import os
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Callable, Optional

StatusFn = Callable[[], dict[str, Any]]


def health_payload(service_name: str, status_fn: Optional[StatusFn] = None) -> bytes:
    body: dict[str, Any] = {"status": "ok", "service": service_name}
    if status_fn is not None:
        body.update(status_fn())
    return json.dumps(body).encode("utf-8")


def start_health_server(service_name: str, status_fn: Optional[StatusFn] = None) -> None:
    """
    Start a daemon thread that listens on PORT and responds to GET /health.
    status_fn, when given, contributes extra fields to every response.
    """
    port_str = os.environ.get("PORT")
    if not port_str:
        return
    try:
        port = int(port_str)
    except ValueError:
        return

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            if self.path.rstrip("/") != "/health":
                self.send_response(404)
                self.end_headers()
                return
            body = health_payload(service_name, status_fn)
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:
            pass

    def serve() -> None:
        with HTTPServer(("0.0.0.0", port), Handler) as httpd:
            httpd.serve_forever()

    threading.Thread(target=serve, name="health-server", daemon=True).start()
