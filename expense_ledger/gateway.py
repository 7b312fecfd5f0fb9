"""
Gateway lifecycle.

Runs the FastAPI app under uvicorn in a background thread so the
primary client keeps working while other devices on the LAN use
the HTTP surface. Requests are served concurrently: sync route
handlers run on uvicorn's worker thread pool.
"""

import logging
import socket
import threading
import time

import uvicorn
from fastapi import FastAPI

logger = logging.getLogger(__name__)

START_TIMEOUT = 10.0


def lan_address() -> str:
    """
    First non-loopback IPv4 address of this machine.

    Connecting a UDP socket sends nothing; it only makes the OS
    pick the outgoing interface.
    """
    probe = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        probe.connect(("10.255.255.255", 1))
        address = probe.getsockname()[0]
    except OSError:
        address = "127.0.0.1"
    finally:
        probe.close()
    return address


class Gateway:
    """
    Start and stop the HTTP listener.

    Usage:
        gateway = Gateway(app, port=8080)
        url = gateway.start()
        ...
        gateway.stop()
    """

    def __init__(self, app: FastAPI, host: str = "0.0.0.0", port: int = 8080):
        self.app = app
        self.host = host
        self.port = port
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def bound_port(self) -> int | None:
        """The listening port, resolved when port 0 was requested."""
        if self._server is None or not self._server.started:
            return None
        for server in self._server.servers:
            for sock in server.sockets:
                return sock.getsockname()[1]
        return self.port

    @property
    def url(self) -> str | None:
        port = self.bound_port
        if port is None:
            return None
        host = lan_address() if self.host in ("0.0.0.0", "") else self.host
        return f"http://{host}:{port}"

    def start(self) -> str:
        """
        Start listening and return the gateway URL.

        Raises RuntimeError if the listener does not come up.
        """
        with self._lock:
            if self.is_running:
                return self.url

            config = uvicorn.Config(
                self.app,
                host=self.host,
                port=self.port,
                log_config=None,
                lifespan="on",
            )
            self._server = uvicorn.Server(config)
            self._thread = threading.Thread(
                target=self._server.run,
                name="ledger-gateway",
                daemon=True,
            )
            self._thread.start()

            deadline = time.monotonic() + START_TIMEOUT
            while not self._server.started:
                if not self._thread.is_alive() or time.monotonic() > deadline:
                    self._server.should_exit = True
                    self._thread.join(timeout=START_TIMEOUT)
                    self._server = None
                    self._thread = None
                    raise RuntimeError(
                        f"Gateway failed to start on {self.host}:{self.port}"
                    )
                time.sleep(0.05)

            url = self.url
            logger.info("Gateway listening at %s", url)
            return url

    def stop(self) -> None:
        """Stop listening. In-flight requests finish first."""
        with self._lock:
            if self._server is None:
                return
            self._server.should_exit = True
            if self._thread is not None:
                self._thread.join(timeout=START_TIMEOUT)
            self._server = None
            self._thread = None
            logger.info("Gateway stopped")
