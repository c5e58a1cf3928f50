import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional

from .parsing import GSIParseError, parse_game_state
from .schemas import Snapshot

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 10 * 1024 * 1024

SnapshotCallback = Callable[[Snapshot], object]


class GameStateHandler(BaseHTTPRequestHandler):
    """Accepts GSI POSTs on any path and forwards parsed snapshots to the server's callback."""

    def do_POST(self):
        raw_length = self.headers.get("Content-Length") or "0"
        try:
            length = int(raw_length)
        except ValueError:
            length = -1
        if length < 0:
            logger.warning(f"Rejecting GSI request with Content-Length {raw_length!r}")
            self._reply(400, b"Bad Request")
            return
        if length > MAX_BODY_BYTES:
            logger.warning(f"Rejecting GSI payload of {length} bytes")
            self._reply(413, b"Payload Too Large")
            return

        body = self.rfile.read(length)
        try:
            snapshot = parse_game_state(json.loads(body.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, GSIParseError) as e:
            logger.warning(f"Dropping malformed game state: {e}")
            self._reply(400, b"Bad Request")
            return

        try:
            self.server.on_snapshot(snapshot)
        except Exception:
            logger.exception("Error handing snapshot to the coach")
            self._reply(500, b"Internal Server Error")
            return
        self._reply(200, b"OK")

    def _reply(self, status: int, body: bytes):
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug(format % args)


class GSIServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, on_snapshot: SnapshotCallback):
        super().__init__(address, GameStateHandler)
        self.on_snapshot = on_snapshot


class GSIReceiver:
    """
    Runs the GSI HTTP listener on a background thread.

    :param on_snapshot: Called with every successfully parsed Snapshot.
    :param host: Interface to bind.
    :param port: Port to bind; 0 picks a free one.
    """

    def __init__(self, on_snapshot: SnapshotCallback, host: str = "127.0.0.1", port: int = 3000):
        self.on_snapshot = on_snapshot
        self.host = host
        self.requested_port = port
        self.server: Optional[GSIServer] = None
        self.thread: Optional[threading.Thread] = None

    @property
    def port(self) -> Optional[int]:
        return self.server.server_address[1] if self.server else None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def start(self):
        self.server = GSIServer((self.host, self.requested_port), self.on_snapshot)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        logger.info(f"GSI receiver listening on {self.url}")

    def stop(self):
        if self.server is None:
            return
        self.server.shutdown()
        self.server.server_close()
        if self.thread is not None:
            self.thread.join(timeout=5)
        logger.info("GSI receiver stopped")
        self.server = None
        self.thread = None
