"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
from datetime import datetime, timezone
import json

from roomswap.models.responses import HealthResponse


def build_health_response() -> HealthResponse:
    """Liveness payload; does not touch the listing store."""
    return HealthResponse(
        message="Room swap service is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Handle GET request."""
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        response = json.dumps(build_health_response().to_api())
        self.wfile.write(response.encode('utf-8'))

    def do_HEAD(self):
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
