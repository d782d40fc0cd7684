"""Local HTTP server exposing the insight tools.

Routes:
    GET  /                   banner
    GET  /health             liveness probe
    GET  /api/tools          tool list with input schemas
    POST /api/tools/<name>   run a tool with a JSON object body
"""

from __future__ import annotations

import datetime
import json
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .errors import DevInsightError, TargetNotFoundError, ToolError
from .logging_config import get_logger
from .tools import call_tool, list_tools

logger = get_logger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001
TOOLS_PREFIX = "/api/tools/"
MAX_BODY_BYTES = 1024 * 1024


class ToolRequestHandler(BaseHTTPRequestHandler):
    """Serves tool calls as JSON over HTTP."""

    def do_GET(self):
        if self.path == "/":
            self._send_json(200, {"message": "DevInsight server is running."})
        elif self.path == "/health":
            self._send_json(200, {
                "status": "ok",
                "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            })
        elif self.path == "/api/tools":
            self._send_json(200, {"tools": list_tools()})
        else:
            self._send_json(404, {"error": f"Not found: {self.path}"})

    def do_POST(self):
        if not self.path.startswith(TOOLS_PREFIX):
            self._send_json(404, {"error": f"Not found: {self.path}"})
            return
        name = self.path[len(TOOLS_PREFIX):]

        try:
            arguments = self._read_json()
        except ValueError as e:
            self._send_json(400, {"error": str(e)})
            return

        try:
            result = call_tool(name, arguments)
        except ToolError as e:
            self._send_json(400, {"error": str(e)})
        except TargetNotFoundError as e:
            self._send_json(404, {"error": str(e)})
        except DevInsightError as e:
            self._send_json(500, {"error": str(e)})
        except Exception as e:
            logger.exception("Unhandled error in tool %s", name)
            self._send_json(500, {"error": f"Internal error: {e}"})
        else:
            self._send_json(200, {"result": result})

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length") or 0)
        if length > MAX_BODY_BYTES:
            raise ValueError("Request body too large")
        if length == 0:
            return {}
        try:
            data = json.loads(self.rfile.read(length).decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid JSON body: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")
        return data

    def _send_json(self, status: int, payload: dict[str, Any]):
        content = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(content)))
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(content)

    def log_message(self, format, *args):
        """Route access logs through logging instead of stderr."""
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> ThreadingHTTPServer:
    """Build (but do not start) the tool server. Port 0 picks a free port."""
    ThreadingHTTPServer.allow_reuse_address = True
    return ThreadingHTTPServer((host, port), ToolRequestHandler)


def start_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Serve until interrupted.

    Args:
        host: Interface to bind
        port: Port to serve on
    """
    server = make_server(host, port)
    logger.info("DevInsight server running on http://%s:%d", host, server.server_address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
