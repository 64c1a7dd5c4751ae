"""Health check endpoint reporting which backing services are configured."""

from http.server import BaseHTTPRequestHandler
import json

from src.utils.config import AppConfig

SERVICE_NAME = "listing-case-backend"


def health_report() -> tuple[int, dict]:
    """Status code and body: 200 when every service is configured, else 503 listing the gaps."""
    services = AppConfig.settings_status()
    missing = sorted(name for name, configured in services.items() if not configured)
    body = {
        "status": "degraded" if missing else "ok",
        "service": SERVICE_NAME,
        "services": services,
    }
    if missing:
        body["missing"] = missing
    return (503 if missing else 200), body


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        status_code, body = health_report()
        self.send_response(status_code)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(body).encode('utf-8'))

    def do_POST(self):
        """Same as GET."""
        self.do_GET()
