"""
Runs the live-status app with uvicorn in a background thread.
"""
import logging
import socket
import tempfile
import threading
import time
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .app import LiveReviewStore, StatusProvider, create_app

logger = logging.getLogger(__name__)

STARTUP_TIMEOUT_SECONDS = 5.0


def port_available(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def open_in_browser(url: str) -> None:
    try:
        webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning(f"Could not open browser for {url}: {e}")


class LiveServer:
    """
    Serves review pages on http://localhost:<port>/review/<id>.

    If the port is taken the page is written to the temp directory and a
    file:// URL is returned instead; that copy does not update live.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 5175, open_browser: bool = True):
        self.host = host
        self.port = port
        self.open_browser = open_browser
        self.store = LiveReviewStore()
        self.app = create_app(self.store)
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._server is not None and self._server.started

    def serve(self, review_id: str, html: str, status: StatusProvider, open_now: Optional[bool] = None) -> str:
        """
        Publish a review page and return its URL.

        `open_now` overrides the configured browser behaviour; pass False to
        defer opening until the first unit completes.
        """
        self.store.register(review_id, html, status)

        if self.running or self._start():
            url = f"http://{self._display_host()}:{self.port}/review/{review_id}"
        else:
            path = Path(tempfile.gettempdir()) / f"code-gate-{review_id}.html"
            path.write_text(html, encoding="utf-8")
            url = path.as_uri()
            logger.warning(f"Port {self.port} is in use, review page written to {path}")

        should_open = self.open_browser if open_now is None else open_now
        if should_open:
            open_in_browser(url)
        return url

    def open(self, url: str) -> None:
        if self.open_browser:
            open_in_browser(url)

    def _start(self) -> bool:
        if not port_available(self.host, self.port):
            return False

        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_level="warning")
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._server.run, name="code-gate-live", daemon=True)
        self._thread.start()

        deadline = time.time() + STARTUP_TIMEOUT_SECONDS
        while not self._server.started and self._thread.is_alive() and time.time() < deadline:
            time.sleep(0.05)

        if not self._server.started:
            logger.warning(f"Live server did not start on {self.host}:{self.port}")
            self.stop()
            return False

        logger.info(f"Live server listening on {self.host}:{self.port}")
        return True

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=STARTUP_TIMEOUT_SECONDS)
        self._server = None
        self._thread = None

    def _display_host(self) -> str:
        return "localhost" if self.host in ("127.0.0.1", "0.0.0.0", "::") else self.host
