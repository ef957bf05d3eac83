import logging
import signal
import threading

from servedby.lifecycle import (
    EXIT_INTERRUPTED,
    IGNORED_SIGNALS,
    STOP_SIGNALS,
    WATCHED_SIGNALS,
    Lifecycle,
    State,
    serve_until_signalled,
    signal_name,
)


class FakeServer:
    def __init__(self):
        self.started = threading.Event()
        self.stopped = threading.Event()
        self.stop_calls = 0

    def start(self):
        self.started.set()
        self.stopped.wait(5)

    def stop(self):
        self.stop_calls += 1
        self.stopped.set()


def test_interrupt_stops_and_exits_2():
    server = FakeServer()
    code = serve_until_signalled(server, signals=iter([signal.SIGINT]))
    assert code == EXIT_INTERRUPTED == 2
    assert server.started.wait(1)
    assert server.stop_calls == 1


def test_other_signals_are_ignored():
    server = FakeServer()
    lc = Lifecycle(server)
    lc.start()

    for sig in (signal.SIGHUP, signal.SIGUSR1, signal.SIGUSR2):
        assert lc.handle(sig) is False
        assert lc.state == State.RUNNING
    assert server.stop_calls == 0

    assert lc.handle(signal.SIGINT) is True
    assert lc.state == State.STOPPED
    assert server.stop_calls == 1


def test_run_consumes_until_interrupt():
    server = FakeServer()
    lc = Lifecycle(server)
    lc.start()
    remaining = iter([signal.SIGHUP, signal.SIGUSR1, signal.SIGTERM, signal.SIGHUP])
    assert lc.run(remaining) == 2
    # The trailing SIGHUP was never consumed
    assert next(remaining) == signal.SIGHUP
    assert server.stop_calls == 1


def test_unknown_signal_is_logged(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("servedby"), "propagate", True)
    lc = Lifecycle(FakeServer())
    with caplog.at_level("ERROR", logger="servedby"):
        lc.handle(signal.SIGUSR1)
    assert "Unknown signal SIGUSR1" in caplog.text


def test_watched_set_covers_default_fatal_signals():
    for sig in (signal.SIGQUIT, signal.SIGALRM, signal.SIGHUP, signal.SIGUSR1, signal.SIGPIPE):
        assert sig in IGNORED_SIGNALS
    assert STOP_SIGNALS <= WATCHED_SIGNALS
    for sig in (signal.SIGKILL, signal.SIGSTOP, signal.SIGSEGV, signal.SIGBUS):
        assert sig not in WATCHED_SIGNALS


def test_realtime_signal_is_ignored_by_number(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("servedby"), "propagate", True)
    server = FakeServer()
    lc = Lifecycle(server)
    rt = int(signal.SIGRTMIN) + 3
    with caplog.at_level("ERROR", logger="servedby"):
        assert lc.handle(rt) is False
    assert lc.state == State.RUNNING
    assert f"Unknown signal signal {rt}" in caplog.text
    assert signal_name(signal.SIGQUIT) == "SIGQUIT"
