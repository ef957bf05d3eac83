# servedby/lifecycle.py
"""
Process lifecycle: RUNNING -> STOPPING -> STOPPED.

The server runs on a background thread while the main thread consumes
signals one at a time:

- SIGINT / SIGTERM : graceful stop, exit code 2
- every other catchable asynchronous signal (SIGHUP, SIGQUIT, SIGALRM,
  SIGUSR1, real-time signals, ...) : logged and ignored

The watched signals are blocked before the server thread starts so they are
only ever delivered through sigwait() on the main thread.
"""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Protocol

log = logging.getLogger("servedby")

STOP_SIGNALS = frozenset({signal.SIGINT, signal.SIGTERM})

# Cannot be caught (KILL, STOP) or only raised synchronously by a fault in this process
_UNWATCHABLE = frozenset(
    {
        signal.SIGKILL,
        signal.SIGSTOP,
        signal.SIGSEGV,
        signal.SIGBUS,
        signal.SIGFPE,
        signal.SIGILL,
    }
)

IGNORED_SIGNALS = frozenset(signal.valid_signals()) - STOP_SIGNALS - _UNWATCHABLE
WATCHED_SIGNALS = STOP_SIGNALS | IGNORED_SIGNALS

EXIT_INTERRUPTED = 2


class State(str, Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Stoppable(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


def signal_name(sig: int) -> str:
    """Name for log lines; real-time signals have no Signals member."""
    try:
        return signal.Signals(sig).name
    except ValueError:
        return f"signal {sig}"


def block_watched_signals() -> None:
    signal.pthread_sigmask(signal.SIG_BLOCK, WATCHED_SIGNALS)


def sigwait_source() -> Iterator[int]:
    """Yield watched signal numbers forever, blocking between them."""
    while True:
        yield signal.sigwait(WATCHED_SIGNALS)


class Lifecycle:
    def __init__(self, server: Stoppable):
        self.server = server
        self.state = State.RUNNING
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self.server.start, name="http-server", daemon=True)
        self._thread.start()

    def handle(self, sig: int) -> bool:
        """Process one signal; True once the process should exit."""
        if sig in STOP_SIGNALS:
            log.info("Received %s, shutting down", signal_name(sig))
            self.state = State.STOPPING
            self.server.stop()
            self.state = State.STOPPED
            return True
        log.error("Unknown signal %s, ignoring", signal_name(sig))
        return False

    def run(self, signals: Iterable[int]) -> int:
        for sig in signals:
            if self.handle(sig):
                return EXIT_INTERRUPTED
        # Signal source ran dry without an interrupt; treat like one
        self.handle(signal.SIGINT)
        return EXIT_INTERRUPTED


def serve_until_signalled(
    server: Stoppable,
    signals: Iterable[int] | None = None,
) -> int:
    """Start `server` in the background and block on signals. Returns the exit code."""
    if signals is None:
        block_watched_signals()
        signals = sigwait_source()
    lifecycle = Lifecycle(server)
    lifecycle.start()
    return lifecycle.run(signals)
