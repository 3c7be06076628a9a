# gxregistry/server.py
"""
HTTP front end for the registry.

Endpoints:
    POST /publish          - Publish {name, hash, author}
    POST /command          - Run a chat command {sender, target, content}
    GET  /packages         - Full name -> entry mapping
    GET  /packages/:name   - One entry
    GET  /health           - Liveness
"""

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict
from urllib.parse import unquote, urlparse

from .bot import CommandHandler, Message
from .errors import PersistFailed
from .service import RegistryService

logger = logging.getLogger(__name__)


class RegistryServer:
    """
    HTTP server wrapping a RegistryService.

    Each request is handled on its own thread.

    Usage:
        server = RegistryServer(service, port=8080)
        server.start()  # Blocking
    """

    def __init__(self, service: RegistryService, host: str = "127.0.0.1", port: int = 8080,
                 command_prefix: str = "!gx"):
        self.service = service
        self.commands = CommandHandler(service, prefix=command_prefix)
        self.host = host
        self.port = port
        self._httpd = None

    def _create_handler(server_instance):
        """Create request handler with access to server instance."""

        class RequestHandler(BaseHTTPRequestHandler):
            server_ref = server_instance

            def log_message(self, format, *args):
                logger.debug(format % args)

            def _send_json(self, data: Any, status: int = 200):
                body = json.dumps(data).encode()
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _send_error(self, message: str, status: int = 400, kind: str = None):
                data = {"error": message}
                if kind:
                    data["kind"] = kind
                self._send_json(data, status)

            def _read_json(self) -> Dict[str, Any]:
                content_length = int(self.headers.get("Content-Length", 0))
                body = self.rfile.read(content_length).decode()
                data = json.loads(body) if body else {}
                if not isinstance(data, dict):
                    raise ValueError("Request body must be a JSON object")
                return data

            def do_GET(self):
                path = urlparse(self.path).path
                service = self.server_ref.service

                if path == "/packages":
                    self._send_json(service.registry.to_dict())

                elif path.startswith("/packages/"):
                    name = unquote(path[len("/packages/"):])
                    entry = service.get(name)
                    if entry is None:
                        self._send_error(f"no such package: {name}", 404)
                        return
                    self._send_json({"name": entry.name, **entry.to_dict()})

                elif path == "/health":
                    self._send_json({"status": "ok"})

                else:
                    self._send_error("Not found", 404)

            def do_POST(self):
                path = urlparse(self.path).path
                try:
                    data = self._read_json()
                except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
                    self._send_error(f"Invalid JSON: {e}")
                    return

                if path == "/publish":
                    name = data.get("name")
                    address = data.get("hash")
                    author = data.get("author", "")
                    if not isinstance(name, str) or not isinstance(address, str) \
                            or not isinstance(author, str):
                        self._send_error("name, hash and author must be strings")
                        return
                    try:
                        result = self.server_ref.service.publish(name, address, author)
                    except ValueError as e:
                        self._send_error(str(e))
                        return
                    except Exception as e:
                        logger.exception(f"Publish of {name} crashed")
                        self._send_error(str(e), 500)
                        return

                    if result.success:
                        self._send_json({"status": "success", **result.to_dict()})
                    else:
                        status = 500 if isinstance(result.error, PersistFailed) else 400
                        self._send_error(result.message, status, kind=result.error_kind)

                elif path == "/command":
                    message = Message(
                        sender=str(data.get("sender", "")),
                        target=str(data.get("target", "")),
                        content=str(data.get("content", "")),
                    )
                    try:
                        reply = self.server_ref.commands.handle(message)
                    except Exception as e:
                        logger.exception("Command crashed")
                        self._send_error(str(e), 500)
                        return
                    self._send_json({
                        "target": reply.target if reply else None,
                        "reply": reply.text if reply else None,
                    })

                else:
                    self._send_error("Not found", 404)

        return RequestHandler

    def make_server(self) -> ThreadingHTTPServer:
        handler = self._create_handler()
        self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
        self._httpd.daemon_threads = True
        # Port 0 binds an ephemeral port
        self.port = self._httpd.server_address[1]
        return self._httpd

    def start(self):
        """Start the HTTP server (blocking)."""
        httpd = self._httpd or self.make_server()
        logger.info(f"Registry server starting on {self.host}:{self.port}")
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            httpd.server_close()

    def start_background(self) -> threading.Thread:
        """Start the server in a background thread."""
        if self._httpd is None:
            self.make_server()
        thread = threading.Thread(target=self.start)
        thread.daemon = True
        thread.start()
        return thread

    def shutdown(self):
        if self._httpd is not None:
            self._httpd.shutdown()
