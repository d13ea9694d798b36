"""
Resolve the input argument into a file the server can expose.

A path is used as-is. Stdin is copied to a fresh temp file first; the copy
has to finish before anything is served, so that clients never see a file
that is still growing.
"""

import os
import shutil
import sys
import tempfile
import threading
from dataclasses import dataclass

from pipeserve.errors import CaptureError, NotApplicable

STDIN_ARG = "-"
CHUNK_SIZE = 64 * 1024
CAPTURE_PREFIX = "pipeserve-"


@dataclass(frozen=True)
class StdinSource:
    pass


@dataclass(frozen=True)
class FileSource:
    path: str


@dataclass(frozen=True)
class Resource:
    path: str
    captured: bool = False


def parse_source(arg: str) -> StdinSource | FileSource:
    """Map the positional CLI argument to a source: "-" reads stdin."""
    if arg == STDIN_ARG:
        return StdinSource()
    return FileSource(arg)


def resolve(source, stdin=None, tmpdir=None, done: threading.Event | None = None) -> Resource:
    """
    Turn a source into a Resource.

    For StdinSource the stream (default: sys.stdin.buffer) is captured to a
    temp file under tmpdir; this blocks until end of stream. done, if given,
    is set once the capture has finished, whether or not it succeeded.
    """
    if isinstance(source, FileSource):
        return Resource(path=_checked_path(source.path))

    if stdin is None:
        stdin = sys.stdin.buffer
    return capture(stdin, tmpdir=tmpdir, done=done)


def _checked_path(path: str) -> str:
    if not path or "\x00" in path:
        raise NotApplicable(f"not a usable path: {path!r}")
    try:
        os.fsencode(path)
    except UnicodeEncodeError as e:
        raise NotApplicable(f"path can't be encoded for this filesystem: {path!r}") from e
    return os.path.abspath(path)


def capture(stream, tmpdir=None, done: threading.Event | None = None) -> Resource:
    """
    Copy a binary stream to a new temp file and return it as a Resource.

    The file is left behind on failure, partially written.
    """
    try:
        try:
            fd, path = tempfile.mkstemp(prefix=CAPTURE_PREFIX, dir=tmpdir)
        except OSError as e:
            raise CaptureError(f"can't create capture file: {e}") from e

        try:
            with open(fd, "wb", buffering=CHUNK_SIZE) as out:
                shutil.copyfileobj(stream, out, CHUNK_SIZE)
        except OSError as e:
            raise CaptureError(f"capture to {path} failed: {e}") from e
    finally:
        if done is not None:
            done.set()

    return Resource(path=os.path.abspath(path), captured=True)
