import io
import os
import threading

import pytest

from pipeserve.errors import CaptureError, NotApplicable
from pipeserve.source import (
    CAPTURE_PREFIX,
    CHUNK_SIZE,
    FileSource,
    Resource,
    StdinSource,
    capture,
    parse_source,
    resolve,
)


class BrokenStream:
    """Yields one chunk, then fails like a dropped pipe."""

    def __init__(self, first: bytes):
        self.first = first

    def read(self, size=-1):
        if self.first:
            chunk, self.first = self.first, b""
            return chunk
        raise OSError("stream went away")


def test_parse_source():
    assert parse_source("-") == StdinSource()
    assert parse_source("build/out.tar") == FileSource("build/out.tar")


def test_resolve_file_is_absolute_and_not_copied(tmp_path):
    target = tmp_path / "report.pdf"
    target.write_bytes(b"%PDF-1.4")
    before = sorted(os.listdir(tmp_path))

    resource = resolve(FileSource("report.pdf"))

    assert resource == Resource(path=str(target), captured=False)
    assert sorted(os.listdir(tmp_path)) == before


def test_resolve_missing_file_is_not_an_error(tmp_path):
    resource = resolve(FileSource("nope.bin"))
    assert resource.path == str(tmp_path / "nope.bin")


@pytest.mark.parametrize("path", ["", "a\x00b"])
def test_resolve_unusable_path(path):
    with pytest.raises(NotApplicable):
        resolve(FileSource(path))


def test_capture_round_trip(tmp_path):
    done = threading.Event()

    resource = resolve(StdinSource(), stdin=io.BytesIO(b"hello world"), tmpdir=tmp_path, done=done)

    assert resource.captured
    assert done.is_set()
    assert os.listdir(tmp_path) == [os.path.basename(resource.path)]
    assert os.path.basename(resource.path).startswith(CAPTURE_PREFIX)
    with open(resource.path, "rb") as f:
        assert f.read() == b"hello world"


def test_capture_spanning_many_chunks(tmp_path):
    payload = os.urandom(CHUNK_SIZE * 5 + 17)

    resource = capture(io.BytesIO(payload), tmpdir=tmp_path)

    with open(resource.path, "rb") as f:
        assert f.read() == payload


def test_capture_empty_stream(tmp_path):
    resource = capture(io.BytesIO(b""), tmpdir=tmp_path)
    assert os.path.getsize(resource.path) == 0


def test_captures_never_share_a_file(tmp_path):
    first = capture(io.BytesIO(b"one"), tmpdir=tmp_path)
    second = capture(io.BytesIO(b"two"), tmpdir=tmp_path)

    assert first.path != second.path
    assert len(os.listdir(tmp_path)) == 2


def test_failed_capture_leaves_partial_file(tmp_path):
    done = threading.Event()

    with pytest.raises(CaptureError) as excinfo:
        capture(BrokenStream(b"partial"), tmpdir=tmp_path, done=done)

    assert isinstance(excinfo.value.__cause__, OSError)
    assert done.is_set()
    (leftover,) = os.listdir(tmp_path)
    assert (tmp_path / leftover).read_bytes() == b"partial"


def test_capture_into_missing_directory(tmp_path):
    done = threading.Event()

    with pytest.raises(CaptureError):
        capture(io.BytesIO(b"data"), tmpdir=tmp_path / "missing", done=done)

    assert done.is_set()
