"""
Serve a file, or stdin, over HTTP on every interface.

Usage:
  make dist | pipeserve               # capture stdin, serve on port 9000
  pipeserve report.pdf -p 8080        # serve an existing file
  pipeserve - --cleanup               # delete the captured copy on exit
"""

import argparse
import atexit
import contextlib
import os
import signal
import sys
import threading

from pipeserve import __version__
from pipeserve.config import DEFAULT_PORT, load_settings, parse_port
from pipeserve.errors import PipeserveError
from pipeserve.interfaces import format_table, listening_on
from pipeserve.serve import serve
from pipeserve.source import STDIN_ARG, StdinSource, parse_source, resolve


def _arg_type(parse):
    def convert(value):
        try:
            return parse(value)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e)) from None

    return convert


def build_parser() -> argparse.ArgumentParser:
    # port and cleanup default to None so PIPESERVE_* only fills in what
    # wasn't given here.
    parser = argparse.ArgumentParser(
        prog="pipeserve",
        description="Serve a single file, or whatever is piped in, over HTTP.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=STDIN_ARG,
        help="file to serve, or - to read stdin (default: -)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=_arg_type(parse_port),
        default=None,
        help=f"port to listen on (default: $PIPESERVE_PORT or {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--cleanup",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="delete the captured stdin file on exit (default: $PIPESERVE_CLEANUP)",
    )
    parser.add_argument("--quiet", action="store_true", help="don't log requests")
    parser.add_argument("--version", action="version", version=f"pipeserve {__version__}")
    return parser


def remove_capture(path: str):
    with contextlib.suppress(FileNotFoundError):
        os.remove(path)


def _interrupt(signum, frame):
    raise KeyboardInterrupt


def main(argv=None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as e:
        return e.code

    try:
        settings = load_settings(port=args.port, cleanup=args.cleanup)
    except PipeserveError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    source = parse_source(args.path)
    if isinstance(source, StdinSource) and sys.stdin.isatty():
        print("Reading from stdin, end with Ctrl-D...", file=sys.stderr)

    captured = threading.Event()
    try:
        resource = resolve(source, tmpdir=settings.tmpdir, done=captured)
    except PipeserveError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if captured.is_set():
        print(f"Captured stdin to {resource.path} ({os.path.getsize(resource.path)} bytes)")
    if resource.captured and settings.cleanup:
        atexit.register(remove_capture, resource.path)

    print("Listening on:")
    print(format_table(listening_on(settings.port)))

    previous = signal.signal(signal.SIGTERM, _interrupt)
    try:
        serve(resource, settings.port, quiet=args.quiet)
    except PipeserveError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        signal.signal(signal.SIGTERM, previous)
    return 0


if __name__ == "__main__":
    sys.exit(main())
