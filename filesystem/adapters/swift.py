"""OpenStack Swift filesystem adapter implementation."""
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, BinaryIO, Iterator, Optional, Union

import requests
from swiftclient.client import Connection
from swiftclient.exceptions import ClientException

from core.config import SwiftSettings
from core.logging_config import get_logger
from ..base import FilesystemAdapter
from ..config import VisibilityConverter, WriteConfig
from ..exceptions import (
    ConfigurationError,
    CorruptedPathDetected,
    PathTraversalDetected,
    TransientError,
    UnableToCheckFileExistence,
    UnableToCopyFile,
    UnableToDeleteDirectory,
    UnableToDeleteFile,
    UnableToListContents,
    UnableToMoveFile,
    UnableToReadFile,
    UnableToRetrieveMetadata,
    UnableToSetVisibility,
    UnableToWriteFile,
)
from ..models import BufferPayload, FileAttributes, Payload, StreamPayload
from ..prefixer import PathPrefixer
from ..utils import MimeTypeDetector, measure_stream_size, to_bytes, with_retry

logger = get_logger(__name__)

# Anything the client raises once its own retries are exhausted
REMOTE_ERRORS = (ClientException, requests.exceptions.RequestException)


class SwiftAdapter(FilesystemAdapter):
    """Filesystem adapter bound to a single Swift container.

    Logical paths are turned into object names by the prefixer; directories
    only exist as name prefixes. Nothing is cached: every call goes to the
    store.
    """

    def __init__(
        self,
        connection: Connection,
        container: str,
        visibility: Optional[VisibilityConverter] = None,
        mime_type_detector: Optional[MimeTypeDetector] = None,
        prefix: Optional[str] = None,
        chunk_size: int = 64 * 1024,
        listing_page_size: int = 10000
    ):
        """Initialize Swift adapter.

        Args:
            connection: swiftclient connection
            container: Name of the container every path lives in
            visibility: Visibility value converter
            mime_type_detector: Detector used to pick the Content-Type on write
            prefix: Root prefix prepended to every object name
            chunk_size: Chunk size for streamed uploads and downloads
            listing_page_size: Objects requested per listing page
        """
        self.connection = connection
        self.container = container
        self.prefixer = PathPrefixer(prefix)
        self.visibility_converter = visibility or VisibilityConverter()
        self.mime_type_detector = mime_type_detector or MimeTypeDetector()
        self.chunk_size = chunk_size
        self.listing_page_size = listing_page_size

    # Writes
    def write(
        self,
        path: str,
        contents: Union[bytes, str],
        config: Optional[WriteConfig] = None
    ) -> None:
        """Write in-memory contents to ``path``."""
        self._upload(path, BufferPayload(to_bytes(contents)), config or WriteConfig())

    def write_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: Optional[WriteConfig] = None
    ) -> None:
        """Write the remaining contents of ``stream`` to ``path``."""
        self._upload(path, StreamPayload(stream), config or WriteConfig())

    def _upload(self, path: str, payload: Payload, config: WriteConfig) -> None:
        key = self.prefixer.prefix_path(path)
        content_type = config.get("mimetype") or self.mime_type_detector.detect_mime_type(path)

        try:
            if payload.kind == "stream":
                # Unseekable streams cannot be measured and go up in one
                # chunked request
                size = measure_stream_size(payload.stream)
                threshold = config.get("swiftLargeObjectThreshold")
                if (size or 0) > threshold:
                    self._create_large_object(key, payload.stream, content_type, config)
                else:
                    self.connection.put_object(
                        self.container,
                        key,
                        payload.stream,
                        content_length=size,
                        chunk_size=self.chunk_size,
                        content_type=content_type
                    )
            else:
                size = len(payload.data)
                self.connection.put_object(
                    self.container,
                    key,
                    payload.data,
                    content_length=size,
                    content_type=content_type
                )
        except REMOTE_ERRORS as e:
            logger.error("Swift write failed", key=key, error=str(e))
            raise UnableToWriteFile.at_location(path, str(e)) from e

        logger.info("Wrote object to Swift", key=key, kind=payload.kind, size=size)

    def _create_large_object(
        self,
        key: str,
        stream: BinaryIO,
        content_type: Optional[str],
        config: WriteConfig
    ) -> None:
        """Upload ``stream`` as numbered segments plus a DLO manifest at ``key``."""
        segment_size = config.get("swiftSegmentSize")
        segment_container = config.get("swiftSegmentContainer", self.container)
        segment_prefix = f"{key}/"

        count = 0
        while True:
            chunk = stream.read(segment_size)
            if not chunk:
                break
            self.connection.put_object(
                segment_container,
                f"{segment_prefix}{count:08d}",
                chunk,
                content_length=len(chunk)
            )
            count += 1

        self.connection.put_object(
            self.container,
            key,
            b"",
            content_length=0,
            content_type=content_type,
            headers={"X-Object-Manifest": f"{segment_container}/{segment_prefix}"}
        )
        # The manifest joins everything under the prefix, so segments left
        # over from a longer previous upload must go
        stale = self._delete_stale_segments(segment_container, segment_prefix, count)
        logger.info(
            "Created Swift large object",
            key=key,
            segments=count,
            stale_segments=stale,
            segment_container=segment_container
        )

    def _delete_stale_segments(self, container: str, segment_prefix: str, count: int) -> int:
        stale = [
            obj["name"]
            for obj in self._iter_objects(segment_prefix, container)
            if _segment_index(obj["name"], segment_prefix) >= count
        ]
        for name in stale:
            self.connection.delete_object(container, name)
        return len(stale)

    # Reads
    def read(self, path: str) -> bytes:
        """Read the full contents of ``path``."""
        key = self.prefixer.prefix_path(path)
        try:
            self.connection.head_object(self.container, key)
            _, body = self.connection.get_object(self.container, key)
        except REMOTE_ERRORS as e:
            raise UnableToReadFile.from_location(path, str(e)) from e

        logger.debug("Read object from Swift", key=key, size=len(body))
        return body

    def read_stream(self, path: str) -> tuple[FileAttributes, BinaryIO]:
        """Return attributes and a lazily consumed body for ``path``."""
        key = self.prefixer.prefix_path(path)
        try:
            headers = self.connection.head_object(self.container, key)
            _, body = self.connection.get_object(
                self.container,
                key,
                resp_chunk_size=self.chunk_size
            )
        except REMOTE_ERRORS as e:
            raise UnableToReadFile.from_location(path, str(e)) from e

        if getattr(body, "seekable", None) and body.seekable():
            body.seek(0)
        return self._normalize_headers(key, headers), body

    # Existence and metadata
    def file_exists(self, path: str) -> bool:
        """Check whether ``path`` exists; only a 404 counts as absent."""
        key = self.prefixer.prefix_path(path)
        try:
            self.connection.head_object(self.container, key)
        except REMOTE_ERRORS as e:
            if _http_status(e) == 404:
                return False
            raise UnableToCheckFileExistence.for_location(path, str(e)) from e
        return True

    def has(self, path: str) -> Union[FileAttributes, bool]:
        """Legacy lookup: attributes when present, ``False`` on a 404."""
        key = self.prefixer.prefix_path(path)
        try:
            headers = self.connection.head_object(self.container, key)
        except REMOTE_ERRORS as e:
            if _http_status(e) == 404:
                return False
            raise UnableToCheckFileExistence.for_location(path, str(e)) from e
        return self._normalize_headers(key, headers)

    def mime_type(self, path: str) -> FileAttributes:
        try:
            return self._retrieve(path)
        except REMOTE_ERRORS as e:
            raise UnableToRetrieveMetadata.mime_type(path, str(e)) from e

    def last_modified(self, path: str) -> FileAttributes:
        try:
            return self._retrieve(path)
        except REMOTE_ERRORS as e:
            raise UnableToRetrieveMetadata.last_modified(path, str(e)) from e

    def file_size(self, path: str) -> FileAttributes:
        try:
            return self._retrieve(path)
        except REMOTE_ERRORS as e:
            raise UnableToRetrieveMetadata.file_size(path, str(e)) from e

    def visibility(self, path: str) -> FileAttributes:
        raise UnableToRetrieveMetadata.visibility(
            path, "visibility is not supported by the Swift adapter"
        )

    def set_visibility(self, path: str, visibility: str) -> None:
        """Validate ``visibility`` and otherwise do nothing.

        Unlike :meth:`visibility` this does not raise for valid values;
        the asymmetry is kept for callers relying on it.
        """
        self.visibility_converter.validate(visibility)
        error = UnableToSetVisibility.at_location(
            path, "visibility is not supported by the Swift adapter"
        )
        logger.warning(str(error), visibility=visibility)

    # Deletes, moves, directories
    def delete(self, path: str) -> None:
        key = self.prefixer.prefix_path(path)
        try:
            self.connection.delete_object(self.container, key)
        except REMOTE_ERRORS as e:
            raise UnableToDeleteFile.at_location(path, str(e)) from e

        logger.info("Deleted object from Swift", key=key)

    def move(
        self,
        source: str,
        destination: str,
        config: Optional[WriteConfig] = None
    ) -> None:
        """Server-side copy to ``destination``, then delete ``source``.

        A failed copy leaves the source untouched. A failed delete after a
        successful copy raises :class:`UnableToMoveFile` with ``copied=True``;
        both objects then exist.
        """
        source_key = self.prefixer.prefix_path(source)
        destination_key = self.prefixer.prefix_path(destination)
        if source_key == destination_key:
            # Copy onto itself followed by the delete would lose the object
            logger.debug("Swift move to same key skipped", key=source_key)
            return
        target = f"/{self.container}/{destination_key.lstrip('/')}"

        try:
            self.connection.copy_object(self.container, source_key, destination=target)
        except REMOTE_ERRORS as e:
            raise UnableToMoveFile.from_location_to(source, destination, str(e)) from e

        try:
            self.connection.delete_object(self.container, source_key)
        except REMOTE_ERRORS as e:
            logger.warning(
                "Swift move left source behind",
                source=source_key,
                destination=destination_key,
                error=str(e)
            )
            raise UnableToMoveFile.source_not_deleted(source, destination, str(e)) from e

        logger.info("Moved object in Swift", source=source_key, destination=destination_key)

    def copy(
        self,
        source: str,
        destination: str,
        config: Optional[WriteConfig] = None
    ) -> None:
        raise UnableToCopyFile.from_location_to(
            source, destination, "copy is not supported by the Swift adapter"
        )

    def delete_directory(self, path: str) -> None:
        # Prefix deletes are only offered through the legacy delete_dir()
        raise UnableToDeleteDirectory.at_location(
            path, "directory deletes are not supported by the Swift adapter"
        )

    def create_directory(self, path: str, config: Optional[WriteConfig] = None) -> None:
        # Directories are implied by object name prefixes
        pass

    def delete_dir(self, dirname: str) -> bool:
        """Legacy bulk delete of every object below ``dirname``.

        Refuses the root and invalid paths. Stops at the first remote error and reports
        ``False``; objects deleted before that stay deleted.
        """
        dirname = dirname.strip().rstrip("/") + "/"
        try:
            normalized = self.prefixer.normalizer.normalize(dirname)
        except (PathTraversalDetected, CorruptedPathDetected) as e:
            logger.warning("Refusing to delete invalid directory", dirname=dirname, error=str(e))
            return False
        if dirname == "/" or normalized == "":
            logger.warning("Refusing to delete the storage root", dirname=dirname)
            return False

        prefix = self.prefixer.prefix_directory_path(dirname)
        deleted = 0
        try:
            for obj in self._iter_objects(prefix):
                self.connection.delete_object(self.container, obj["name"])
                deleted += 1
        except REMOTE_ERRORS as e:
            logger.error(
                "Swift directory delete aborted",
                prefix=prefix,
                deleted=deleted,
                error=str(e)
            )
            return False

        logger.info("Deleted directory from Swift", prefix=prefix, deleted=deleted)
        return True

    # Listing
    def list_contents(self, path: str = "", deep: bool = False) -> Iterator[FileAttributes]:
        """Yield every object whose name starts with the prefixed ``path``.

        Listing is a flat name-prefix match, so ``deep`` makes no difference.
        """
        prefix = self.prefixer.prefix_path(path)
        try:
            for obj in self._iter_objects(prefix):
                if not obj.get("bytes"):
                    # Large object manifests are listed with 0 bytes
                    headers = self.connection.head_object(self.container, obj["name"])
                    if "x-object-manifest" in headers:
                        yield self._normalize_headers(obj["name"], headers)
                        continue
                yield self._normalize_listing(obj)
        except REMOTE_ERRORS as e:
            raise UnableToListContents.at_location(path, deep, str(e)) from e

    def _iter_objects(
        self,
        prefix: str,
        container: Optional[str] = None
    ) -> Iterator[dict[str, Any]]:
        marker = None
        while True:
            _, objects = self.connection.get_container(
                container or self.container,
                marker=marker,
                limit=self.listing_page_size,
                prefix=prefix or None
            )
            yield from objects
            if len(objects) < self.listing_page_size:
                return
            marker = objects[-1]["name"]

    # Normalization
    def _retrieve(self, path: str) -> FileAttributes:
        key = self.prefixer.prefix_path(path)
        headers = self.connection.head_object(self.container, key)
        return self._normalize_headers(key, headers)

    def _normalize_headers(self, key: str, headers: dict[str, Any]) -> FileAttributes:
        size = headers.get("content-length")
        return self._attributes(
            key,
            size=int(size) if size is not None else None,
            content_type=headers.get("content-type"),
            last_modified=headers.get("last-modified"),
            etag=headers.get("etag")
        )

    def _normalize_listing(self, obj: dict[str, Any]) -> FileAttributes:
        return self._attributes(
            obj["name"],
            size=obj.get("bytes"),
            content_type=obj.get("content_type"),
            last_modified=obj.get("last_modified"),
            etag=obj.get("hash")
        )

    def _attributes(
        self,
        key: str,
        size: Optional[int],
        content_type: Optional[str],
        last_modified: Any,
        etag: Optional[str]
    ) -> FileAttributes:
        mime_type = content_type.split(";")[0].strip() if content_type else None
        extra = {"etag": etag.strip('"')} if etag else {}
        return FileAttributes(
            path=self.prefixer.strip_prefix(key),
            file_size=size,
            visibility=None,
            last_modified=_to_timestamp(last_modified),
            mime_type=mime_type or None,
            extra_metadata=extra
        )

    def close(self) -> None:
        self.connection.close()


def _http_status(error: Exception) -> Optional[int]:
    return getattr(error, "http_status", None)


def _segment_index(name: str, segment_prefix: str) -> int:
    """Index of a numbered segment; -1 for any other object under the prefix."""
    suffix = name[len(segment_prefix):]
    return int(suffix) if suffix.isdigit() else -1


def _to_timestamp(value: Any) -> Optional[int]:
    """Seconds since epoch from an HTTP date, an ISO-8601 listing date, or a datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        try:
            moment = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        # Swift reports UTC without an offset in listings
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def create_connection(config: SwiftSettings) -> Connection:
    """Build a swiftclient connection from settings."""
    if config.preauthurl and config.preauthtoken:
        credentials = {
            "preauthurl": config.preauthurl,
            "preauthtoken": config.preauthtoken,
        }
    elif config.auth_url and config.user and config.key:
        credentials = {
            "authurl": config.auth_url,
            "user": config.user,
            "key": config.key,
            "auth_version": config.auth_version,
        }
    else:
        raise ConfigurationError(
            "Swift requires auth_url/user/key or preauthurl/preauthtoken"
        )

    os_options = {
        "project_name": config.project_name,
        "user_domain_name": config.user_domain_name,
        "project_domain_name": config.project_domain_name,
        "region_name": config.region_name,
    }

    return Connection(
        os_options={k: v for k, v in os_options.items() if v},
        retries=config.retries,
        timeout=config.timeout,
        insecure=config.insecure,
        **credentials
    )


def ensure_container(
    connection: Connection,
    container: str,
    create: bool = False,
    max_attempts: int = 3
) -> None:
    """Check the container is reachable, creating it when allowed.

    Retries only on transient (5xx / transport) failures.
    """

    @with_retry(max_attempts=max_attempts)
    def _check() -> None:
        try:
            connection.head_container(container)
        except REMOTE_ERRORS as e:
            status = _http_status(e)
            if status == 404 and create:
                logger.info("Creating Swift container", container=container)
                connection.put_container(container)
                return
            if status == 404:
                raise ConfigurationError(f"Swift container '{container}' does not exist") from e
            if status in (401, 403):
                raise ConfigurationError(f"Access denied to Swift container '{container}'") from e
            raise TransientError(f"Swift container check failed: {e}") from e

    _check()


def build_swift_adapter(config: SwiftSettings) -> SwiftAdapter:
    """Build Swift filesystem adapter.

    Args:
        config: Swift settings

    Returns:
        Configured Swift adapter instance
    """
    if not config.container:
        raise ConfigurationError("Swift container name is required")

    connection = create_connection(config)
    try:
        ensure_container(
            connection,
            config.container,
            create=config.create_container,
            max_attempts=config.max_retry_attempts
        )
    except Exception:
        connection.close()
        raise

    return SwiftAdapter(connection, config.container, prefix=config.prefix)
