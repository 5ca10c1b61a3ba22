import io

import pytest

from filesystem.config import WriteConfig
from filesystem.exceptions import UnableToWriteFile
from filesystem.utils import (
    FilesystemMiddleware,
    LoggingMiddleware,
    MiddlewareFilesystem,
    MimeTypeDetector,
    ValidationMiddleware,
    apply_middleware,
    measure_stream_size,
)


class RecordingMiddleware(FilesystemMiddleware):
    def __init__(self):
        self.events = []

    def before_write(self, path, payload, config=None):
        self.events.append(("before", path, payload.kind))
        return path, payload, config

    def after_write(self, path, payload):
        self.events.append(("after", path, payload.kind))

    def on_error(self, error, operation, **kwargs):
        self.events.append(("error", operation, type(error).__name__))


def test_apply_middleware_without_middlewares_returns_adapter(adapter):
    assert apply_middleware(adapter, []) is adapter


def test_hooks_run_around_writes(adapter):
    recorder = RecordingMiddleware()
    fs = apply_middleware(adapter, [LoggingMiddleware(), recorder])

    fs.write("a.txt", "hello")
    fs.write_stream("b.txt", io.BytesIO(b"world"))

    assert recorder.events == [
        ("before", "a.txt", "buffer"),
        ("after", "a.txt", "buffer"),
        ("before", "b.txt", "stream"),
        ("after", "b.txt", "stream"),
    ]
    assert fs.read("a.txt") == b"hello"
    assert fs.read("b.txt") == b"world"


def test_write_errors_reach_every_middleware(adapter, connection):
    recorder = RecordingMiddleware()
    fs = apply_middleware(adapter, [recorder])
    connection.fail("put_object", status=500)

    with pytest.raises(UnableToWriteFile):
        fs.write("a.txt", "hello")

    assert recorder.events[-1] == ("error", "write", "UnableToWriteFile")


def test_validation_rejects_large_payloads(adapter, connection):
    fs = apply_middleware(adapter, [ValidationMiddleware(max_size=4)])

    with pytest.raises(UnableToWriteFile):
        fs.write("a.txt", "hello")
    with pytest.raises(UnableToWriteFile):
        fs.write_stream("b.txt", io.BytesIO(b"hello"))

    assert connection.called("put_object") == []


def test_validation_checks_content_type(adapter):
    fs = apply_middleware(adapter, [ValidationMiddleware(allowed_types=["image/png"])])

    fs.write("ok.png", b"png")
    fs.write("override", b"png", WriteConfig(mimetype="image/png"))
    with pytest.raises(UnableToWriteFile) as exc_info:
        fs.write("notes.txt", b"text")

    assert "text/plain" in str(exc_info.value)


def test_wrapper_delegates_everything_else(adapter):
    fs = apply_middleware(adapter, [LoggingMiddleware()])
    assert isinstance(fs, MiddlewareFilesystem)

    fs.write("dir/a.txt", "hello")
    fs.move("dir/a.txt", "dir/b.txt")

    assert fs.file_exists("dir/b.txt") is True
    assert fs.file_size("dir/b.txt").file_size == 5
    assert [item.path for item in fs.list_contents("dir")] == ["dir/b.txt"]
    # Legacy extras fall through to the adapter
    assert fs.has("dir/b.txt").path == "dir/b.txt"
    assert fs.delete_dir("dir") is True
    assert fs.file_exists("dir/b.txt") is False


def test_measure_stream_size():
    stream = io.BytesIO(b"abcdef")
    stream.seek(2)

    assert measure_stream_size(stream) == 4
    assert stream.tell() == 2


def test_validation_uses_the_adapter_detector(adapter, connection):
    fs = apply_middleware(
        adapter,
        [ValidationMiddleware(
            allowed_types=["application/octet-stream", "text/plain"],
            mime_type_detector=adapter.mime_type_detector
        )]
    )

    fs.write("notes.txt", b"text")
    # Nothing is detected for a bare name, so no allowed type matches
    with pytest.raises(UnableToWriteFile) as exc_info:
        fs.write("blob", b"data")

    assert "unknown" in str(exc_info.value)
    assert connection.names() == ["root/notes.txt"]
    assert adapter.mime_type("notes.txt").mime_type == "text/plain"


def test_mime_type_detector():
    detector = MimeTypeDetector()

    assert detector.detect_mime_type("photo.png") == "image/png"
    assert detector.detect_mime_type("unknown") is None
