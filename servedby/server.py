# servedby/server.py
# Thin wrapper around uvicorn: bind eagerly, serve until asked to stop.

from __future__ import annotations

import logging
import socket
import threading

import uvicorn
from fastapi import FastAPI

from servedby.errors import BindError

log = logging.getLogger("servedby")


def parse_listen(listen: str) -> tuple[str, int]:
    """
    Split "host:port" into its parts. An empty host (":5678") means all
    interfaces; IPv6 hosts are bracketed ("[::1]:5678").
    """
    host, sep, port = listen.rpartition(":")
    if not sep:
        raise BindError(f"invalid listen address {listen!r}: missing port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_num = int(port)
    except ValueError as e:
        raise BindError(f"invalid listen address {listen!r}: bad port") from e
    if not 0 <= port_num <= 65535:
        raise BindError(f"invalid listen address {listen!r}: port out of range")
    return host or "0.0.0.0", port_num


class Server:
    def __init__(self, listen: str, app: FastAPI):
        host, port = parse_listen(listen)
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(socket.SOMAXCONN)
        except OSError as e:
            sock.close()
            raise BindError(f"cannot listen on {listen}: {e}") from e

        self.listen = listen
        self._sock = sock
        self._server = uvicorn.Server(
            uvicorn.Config(app, log_config=None, access_log=False, lifespan="off")
        )
        self._stopped = threading.Event()

    @property
    def address(self) -> tuple[str, int]:
        return self._sock.getsockname()[:2]

    @property
    def started(self) -> bool:
        return self._server.started

    def start(self) -> None:
        """Serve on the bound socket; blocks until stop() or a fatal serve error."""
        try:
            self._server.run(sockets=[self._sock])
        finally:
            self._sock.close()
            self._stopped.set()

    def stop(self, timeout: float | None = 10.0) -> None:
        """Ask uvicorn to drain and exit, then wait for start() to return."""
        self._server.should_exit = True
        if not self._stopped.wait(timeout):
            log.warning("server did not stop within %ss; forcing exit", timeout)
            self._server.force_exit = True
