"""
=============================================================================
HTTP SERVER
=============================================================================

Serving adapter around a Dispatcher: accepts TCP connections, parses
HTTP/1.1 requests, hands each one to the dispatcher and writes the
resulting response back to the socket.

    ┌──────────────┐   Connection   ┌────────────┐  task   ┌──────────────┐
    │ SocketServer │ ─────────────► │ ThreadPool │ ──────► │ worker loop  │
    └──────────────┘                └────────────┘         └──────┬───────┘
                                                                  │
             read_request() ─► RequestParser ─► Dispatcher.dispatch()
                                                                  │
                              send_response(response.to_bytes()) ◄┘

The server never looks inside chains. Everything about which path
exists, who may call it and what gets written lives in the Router and
the middleware; this module only moves bytes.

Concurrency: each worker owns one connection at a time, and with it the
Request/Response pairs created on it. The route table and chains are
frozen before the first request, so workers share them read-only.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core.connection import Connection, ConnectionState, RequestTooLarge
from .core.socket_server import SocketServer
from .core.thread_pool import ThreadPool
from .dispatcher import Dispatcher
from .http.request import RequestParser, HTTPParseError
from .http.response import Response, error_response
from .http.status_codes import HTTPStatus, phrase_for
from .logs import setup_logging


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Threaded HTTP/1.1 server for a Dispatcher.

    Example:
        dispatcher = create_app(config)
        server = HTTPServer(dispatcher, config)
        server.run()  # Blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, dispatcher: Dispatcher, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._dispatcher = dispatcher
        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._running = False

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, configure_logging: bool = True):
        """
        Start serving (blocking).

        Args:
            configure_logging: Call setup_logging() with the configured
                               level first. Embedders with their own
                               logging setup pass False.
        """
        if configure_logging:
            setup_logging(self.config.log_level)

        self._running = True
        self._thread_pool.start()

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        self._dispatcher.router.print_routes()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask the accept loop to stop; run() then finishes its cleanup."""
        self._socket_server.shutdown()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Queue a connection for a worker, or answer 503 when saturated."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            timeout=self.config.timeout,
        )

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Service Unavailable")
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Keep-alive loop for one connection (runs in a worker thread).

        read → parse → dispatch → send, repeated while the client keeps
        the connection open.
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    try:
                        request = self._parser.parse(raw_request, conn.address)
                    except HTTPParseError as e:
                        logger.info(f"[{conn.id}] Bad request: {e}")
                        self._send_error(conn, e.status_code, phrase_for(e.status_code))
                        break

                    conn.state = ConnectionState.PROCESSING
                    response = self._dispatcher.dispatch(request)

                    keep_alive = request.is_keep_alive and self.config.keep_alive
                    self._add_connection_headers(response, keep_alive)

                    payload = response.to_bytes(
                        self.config.server_name, include_body=request.method != "HEAD"
                    )
                    if not conn.send_response(payload):
                        break

                    if not keep_alive:
                        break

                    conn.set_keep_alive()

                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request Timeout")
                    break

                except RequestTooLarge as e:
                    logger.info(f"[{conn.id}] {e}")
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, "Payload Too Large")
                    break

                except Exception as e:
                    logger.exception(f"[{conn.id}] Connection error: {e}")
                    break

    def _add_connection_headers(self, response: Response, keep_alive: bool):
        # The response is already committed, so these go straight into the
        # header dict rather than through set_header().
        if keep_alive:
            response.headers.setdefault("Connection", "keep-alive")
            response.headers.setdefault(
                "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
            )
        else:
            response.headers["Connection"] = "close"

    def _send_error(self, conn: Connection, status: int, message: str):
        """Send a plain-text error for failures that happen outside any chain."""
        response = error_response(status, message)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))
