"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json

SERVICE_NAME = "vesta-operations"


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def _write_json(self, status_code: int, payload: dict) -> None:
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_GET(self):
        """Handle GET request."""
        self._write_json(200, {"status": "ok", "service": SERVICE_NAME})

    def do_POST(self):
        """Handle POST request (same as GET for health check)."""
        self.do_GET()
