"""In-memory stand-in for ``swiftclient.client.Connection``."""
import hashlib
import io
from datetime import datetime, timezone
from email.utils import formatdate

import pytest
from swiftclient.exceptions import ClientException

from filesystem.adapters.swift import SwiftAdapter

FIXED_TIME = 1700000000


class FakeSwiftConnection:
    """Keeps objects in a dict and mimics the client calls the adapter makes.

    ``fail(method, status, after)`` makes ``method`` raise a
    ``ClientException`` once it has succeeded ``after`` times.
    """

    def __init__(self, containers=("files",)):
        self.containers = {name: {} for name in containers}
        self.calls: list[tuple] = []
        self.closed = False
        self._failures: dict[str, tuple[int, int]] = {}
        self._successes: dict[str, int] = {}

    # Failure injection
    def fail(self, method: str, status: int = 500, after: int = 0) -> None:
        self._failures[method] = (status, after)

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        if method in self._failures:
            status, after = self._failures[method]
            if self._successes.get(method, 0) >= after:
                raise ClientException(f"{method} failed", http_status=status)
        self._successes[method] = self._successes.get(method, 0) + 1

    def _container(self, container: str) -> dict:
        if container not in self.containers:
            raise ClientException("Container GET failed", http_status=404)
        return self.containers[container]

    def _object(self, container: str, name: str) -> dict:
        objects = self._container(container)
        if name not in objects:
            raise ClientException("Object HEAD failed", http_status=404)
        return objects[name]

    def _data(self, container: str, name: str) -> bytes:
        obj = self._object(container, name)
        manifest = obj["headers"].get("x-object-manifest")
        if manifest is None:
            return obj["data"]
        segment_container, segment_prefix = manifest.split("/", 1)
        segments = self._container(segment_container)
        return b"".join(
            segments[key]["data"]
            for key in sorted(segments)
            if key.startswith(segment_prefix)
        )

    def _headers(self, container: str, name: str) -> dict:
        obj = self._object(container, name)
        data = self._data(container, name)
        headers = {
            "content-length": str(len(data)),
            "content-type": obj["content_type"],
            "last-modified": formatdate(FIXED_TIME, usegmt=True),
            "etag": f'"{hashlib.md5(data).hexdigest()}"',
        }
        headers.update(obj["headers"])
        return headers

    # Connection API
    def put_object(
        self,
        container,
        obj,
        contents,
        content_length=None,
        etag=None,
        chunk_size=None,
        content_type=None,
        headers=None,
        query_string=None,
        response_dict=None
    ):
        self._record("put_object", container, obj)
        objects = self._container(container)
        if hasattr(contents, "read"):
            data = contents.read()
        else:
            data = bytes(contents or b"")
        objects[obj] = {
            "data": data,
            "content_type": content_type or "application/octet-stream",
            "headers": {k.lower(): v for k, v in (headers or {}).items()},
        }
        return hashlib.md5(data).hexdigest()

    def head_object(self, container, obj, headers=None, query_string=None):
        self._record("head_object", container, obj)
        return self._headers(container, obj)

    def get_object(self, container, obj, resp_chunk_size=None, query_string=None,
                   response_dict=None, headers=None):
        self._record("get_object", container, obj)
        data = self._data(container, obj)
        if resp_chunk_size:
            return self._headers(container, obj), io.BytesIO(data)
        return self._headers(container, obj), data

    def copy_object(self, container, obj, destination=None, headers=None,
                    fresh_metadata=None, response_dict=None):
        self._record("copy_object", container, obj, destination)
        source = self._object(container, obj)
        data = self._data(container, obj)
        _, dest_container, dest_name = destination.split("/", 2)
        self._container(dest_container)[dest_name] = {
            "data": data,
            "content_type": source["content_type"],
            "headers": {},
        }

    def delete_object(self, container, obj, query_string=None, response_dict=None,
                      headers=None):
        self._record("delete_object", container, obj)
        self._object(container, obj)
        del self.containers[container][obj]

    def get_container(self, container, marker=None, limit=None, prefix=None,
                      delimiter=None, end_marker=None, path=None,
                      full_listing=False, headers=None, query_string=None):
        self._record("get_container", container, prefix, marker)
        objects = self._container(container)
        names = sorted(
            name for name in objects
            if (not prefix or name.startswith(prefix)) and (marker is None or name > marker)
        )
        if limit is not None:
            names = names[:limit]
        listed = datetime.fromtimestamp(FIXED_TIME, timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")
        listing = [
            {
                "name": name,
                "bytes": len(objects[name]["data"]),
                "content_type": objects[name]["content_type"],
                "hash": hashlib.md5(objects[name]["data"]).hexdigest(),
                "last_modified": listed,
            }
            for name in names
        ]
        return {"x-container-object-count": str(len(objects))}, listing

    def head_container(self, container, headers=None):
        self._record("head_container", container)
        self._container(container)
        return {"x-container-object-count": str(len(self.containers[container]))}

    def put_container(self, container, headers=None, response_dict=None, query_string=None):
        self._record("put_container", container)
        self.containers.setdefault(container, {})

    def close(self):
        self.closed = True

    # Test helpers
    def names(self, container: str = "files") -> list[str]:
        return sorted(self.containers[container])

    def called(self, method: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == method]


@pytest.fixture
def connection() -> FakeSwiftConnection:
    return FakeSwiftConnection()


@pytest.fixture
def adapter(connection: FakeSwiftConnection) -> SwiftAdapter:
    return SwiftAdapter(connection, "files", prefix="root")

