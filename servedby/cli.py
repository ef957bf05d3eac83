# servedby/cli.py
"""
Command-line entry point.

    servedby -text "hello" [-listen :5678]
    servedby -version

Exit codes: 0 after -version, 2 after an interrupt, 127 on bad input or
when the listener cannot be bound.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable
from typing import TextIO

from servedby.config import DEFAULT_LISTEN, load_settings
from servedby.errors import BindError, ConfigError
from servedby.lifecycle import block_watched_signals, serve_until_signalled, sigwait_source
from servedby.main import create_app, human_version
from servedby.observability import setup_json_logging
from servedby.server import Server

EXIT_OK = 0
EXIT_USAGE = 127


class _HelpRequested(Exception):
    def __init__(self, status: int):
        super().__init__(status)
        self.status = status


class _ArgumentParser(argparse.ArgumentParser):
    """argparse that writes to an injected stream and never calls sys.exit."""

    def __init__(self, *args, stream: TextIO, **kwargs):
        super().__init__(*args, **kwargs)
        self.stream = stream

    def print_usage(self, file=None):
        super().print_usage(file or self.stream)

    def print_help(self, file=None):
        super().print_help(file or self.stream)

    def exit(self, status=0, message=None):
        if message:
            self.stream.write(message)
        raise _HelpRequested(status)

    def error(self, message):
        raise ConfigError(message)


def build_parser(stream: TextIO) -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="servedby", stream=stream)
    parser.add_argument(
        "-listen", "--listen", default=DEFAULT_LISTEN, help="address and port to listen"
    )
    parser.add_argument("-text", "--text", default="", help="text to put on the webpage")
    parser.add_argument(
        "-version", "--version", action="store_true", help="display version information"
    )
    parser.add_argument("args", nargs="*", help=argparse.SUPPRESS)
    return parser


def main(
    argv: list[str] | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    signals: Iterable[int] | None = None,
) -> int:
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    parser = build_parser(stderr)
    try:
        opts = parser.parse_args(argv)
    except _HelpRequested as e:
        return e.status
    except ConfigError as e:
        parser.print_usage()
        print(f"servedby: error: {e}", file=stderr)
        return EXIT_USAGE

    if opts.version:
        print(human_version(), file=stderr)
        return EXIT_OK

    if not opts.text:
        print("Missing -text option!", file=stderr)
        return EXIT_USAGE

    if opts.args:
        print("Too many arguments!", file=stderr)
        return EXIT_USAGE

    try:
        settings = load_settings(listen=opts.listen, text=opts.text)
    except ConfigError as e:
        print(e, file=stderr)
        return EXIT_USAGE

    log = setup_json_logging(settings.log_level, stream=stdout)

    try:
        server = Server(settings.listen, create_app(settings))
    except BindError as e:
        log.error("Error starting server: %s", e)
        return EXIT_USAGE

    if signals is None:
        # Block before announcing readiness; later signals all go through sigwait
        block_watched_signals()
        signals = sigwait_source()

    log.info("Server is listening on %s", settings.listen)
    return serve_until_signalled(server, signals)


def run() -> None:
    sys.exit(main())
