"""Filesystem utility functions and middleware support."""
import io
import mimetypes
import time
from typing import Any, BinaryIO, Iterator, Optional, Union

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from core.logging_config import get_logger
from .base import FilesystemAdapter
from .config import WriteConfig
from .exceptions import TransientError, UnableToWriteFile
from .models import BufferPayload, FileAttributes, Payload, StreamPayload

logger = get_logger(__name__)


class MimeTypeDetector:
    """Extension based MIME type detection."""

    def detect_mime_type(self, path: str) -> Optional[str]:
        """Best guess for ``path``; ``None`` lets the store decide."""
        content_type, _ = mimetypes.guess_type(path)
        return content_type


def to_bytes(contents: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(contents, str):
        return contents.encode("utf-8")
    return bytes(contents)


def measure_stream_size(stream: BinaryIO) -> Optional[int]:
    """Bytes left in ``stream`` from its current position.

    Returns ``None`` for streams that cannot seek; the position is
    restored before returning.
    """
    try:
        if not stream.seekable():
            return None
        position = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(position)
    except (AttributeError, OSError, ValueError):
        return None
    return end - position


def payload_size(payload: Payload) -> Optional[int]:
    if payload.kind == "buffer":
        return len(payload.data)
    return measure_stream_size(payload.stream)


# Retry decorator for transient errors
def with_retry(
    max_attempts: int = 3,
    wait_multiplier: int = 1,
    wait_max: int = 10
):
    """Decorator to retry operations on transient errors.

    Args:
        max_attempts: Maximum number of attempts
        wait_multiplier: Exponential backoff multiplier
        wait_max: Maximum wait time between retries
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=wait_multiplier, max=wait_max),
        retry=retry_if_exception_type(TransientError),
        reraise=True
    )


# Middleware support
class FilesystemMiddleware:
    """Base class for filesystem middleware."""

    def before_write(
        self,
        path: str,
        payload: Payload,
        config: Optional[WriteConfig] = None
    ) -> tuple[str, Payload, Optional[WriteConfig]]:
        """Process before write.

        Returns:
            Potentially modified (path, payload, config)
        """
        return path, payload, config

    def after_write(self, path: str, payload: Payload) -> None:
        """Process after successful write."""
        pass

    def on_error(
        self,
        error: Exception,
        operation: str,
        **kwargs
    ) -> None:
        """Handle errors during operations."""
        pass


class LoggingMiddleware(FilesystemMiddleware):
    """Middleware for structured logging of filesystem writes."""

    def before_write(
        self,
        path: str,
        payload: Payload,
        config: Optional[WriteConfig] = None
    ) -> tuple[str, Payload, Optional[WriteConfig]]:
        """Log before write."""
        logger.info(
            "Filesystem write starting",
            path=path,
            kind=payload.kind,
            size=payload_size(payload)
        )
        return path, payload, config

    def after_write(self, path: str, payload: Payload) -> None:
        """Log after successful write."""
        logger.info("Filesystem write completed", path=path, kind=payload.kind)

    def on_error(
        self,
        error: Exception,
        operation: str,
        **kwargs
    ) -> None:
        """Log filesystem errors."""
        logger.error(
            "Filesystem operation failed",
            operation=operation,
            error=str(error),
            **kwargs
        )


class ValidationMiddleware(FilesystemMiddleware):
    """Middleware for validating writes."""

    def __init__(
        self,
        max_size: int = 100 * 1024 * 1024,  # 100MB
        allowed_types: Optional[list[str]] = None,
        mime_type_detector: Optional[MimeTypeDetector] = None
    ):
        """Initialize validation middleware.

        Args:
            max_size: Maximum file size in bytes
            allowed_types: Allowed MIME types
            mime_type_detector: Detector the adapter uses to pick the stored type
        """
        self.max_size = max_size
        self.allowed_types = allowed_types
        self.mime_type_detector = mime_type_detector or MimeTypeDetector()

    def before_write(
        self,
        path: str,
        payload: Payload,
        config: Optional[WriteConfig] = None
    ) -> tuple[str, Payload, Optional[WriteConfig]]:
        """Validate before write."""
        # Unseekable streams have no size to check
        size = payload_size(payload)
        if size is not None and size > self.max_size:
            raise UnableToWriteFile.at_location(
                path, f"file too large: {size} > {self.max_size}"
            )

        if self.allowed_types:
            # Same choice the adapter makes, so what passes is what gets stored
            content_type = (
                (config.get("mimetype") if config else None)
                or self.mime_type_detector.detect_mime_type(path)
            )
            if content_type not in self.allowed_types:
                raise UnableToWriteFile.at_location(
                    path, f"content type not allowed: {content_type or 'unknown'}"
                )

        return path, payload, config


class MiddlewareFilesystem(FilesystemAdapter):
    """Filesystem adapter wrapper with middleware support."""

    def __init__(
        self,
        adapter: FilesystemAdapter,
        middlewares: list[FilesystemMiddleware]
    ):
        """Initialize middleware filesystem.

        Args:
            adapter: Underlying filesystem adapter
            middlewares: List of middleware to apply
        """
        self.adapter = adapter
        self.middlewares = middlewares

    def _write(self, path: str, payload: Payload, config: Optional[WriteConfig]) -> None:
        for middleware in self.middlewares:
            try:
                path, payload, config = middleware.before_write(path, payload, config)
            except Exception as e:
                for mw in self.middlewares:
                    mw.on_error(e, "before_write", path=path)
                raise

        try:
            start_time = time.time()
            if payload.kind == "buffer":
                self.adapter.write(path, payload.data, config)
            else:
                self.adapter.write_stream(path, payload.stream, config)
            elapsed_ms = (time.time() - start_time) * 1000

            logger.info(
                "Filesystem write performance",
                path=path,
                elapsed_ms=f"{elapsed_ms:.2f}"
            )
        except Exception as e:
            for middleware in self.middlewares:
                middleware.on_error(e, "write", path=path)
            raise

        for middleware in self.middlewares:
            try:
                middleware.after_write(path, payload)
            except Exception as e:
                for mw in self.middlewares:
                    mw.on_error(e, "after_write", path=path)
                raise

    def write(
        self,
        path: str,
        contents: Union[bytes, str],
        config: Optional[WriteConfig] = None
    ) -> None:
        """Write with middleware processing."""
        self._write(path, BufferPayload(to_bytes(contents)), config)

    def write_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: Optional[WriteConfig] = None
    ) -> None:
        """Write stream with middleware processing."""
        self._write(path, StreamPayload(stream), config)

    # Delegate other methods to underlying adapter
    def file_exists(self, path: str) -> bool:
        return self.adapter.file_exists(path)

    def read(self, path: str) -> bytes:
        return self.adapter.read(path)

    def read_stream(self, path: str) -> tuple[FileAttributes, BinaryIO]:
        return self.adapter.read_stream(path)

    def delete(self, path: str) -> None:
        self.adapter.delete(path)

    def delete_directory(self, path: str) -> None:
        self.adapter.delete_directory(path)

    def create_directory(self, path: str, config: Optional[WriteConfig] = None) -> None:
        self.adapter.create_directory(path, config)

    def set_visibility(self, path: str, visibility: str) -> None:
        self.adapter.set_visibility(path, visibility)

    def visibility(self, path: str) -> FileAttributes:
        return self.adapter.visibility(path)

    def mime_type(self, path: str) -> FileAttributes:
        return self.adapter.mime_type(path)

    def last_modified(self, path: str) -> FileAttributes:
        return self.adapter.last_modified(path)

    def file_size(self, path: str) -> FileAttributes:
        return self.adapter.file_size(path)

    def list_contents(self, path: str = "", deep: bool = False) -> Iterator[FileAttributes]:
        return self.adapter.list_contents(path, deep)

    def move(
        self,
        source: str,
        destination: str,
        config: Optional[WriteConfig] = None
    ) -> None:
        self.adapter.move(source, destination, config)

    def copy(
        self,
        source: str,
        destination: str,
        config: Optional[WriteConfig] = None
    ) -> None:
        self.adapter.copy(source, destination, config)

    def __getattr__(self, name: str) -> Any:
        # Adapter specific extras (legacy has/delete_dir, close, ...)
        if name == "adapter":
            raise AttributeError(name)
        return getattr(self.adapter, name)


def apply_middleware(
    adapter: FilesystemAdapter,
    middlewares: list[FilesystemMiddleware]
) -> FilesystemAdapter:
    """Apply middleware to a filesystem adapter.

    Args:
        adapter: Base filesystem adapter
        middlewares: List of middleware to apply

    Returns:
        Adapter wrapped with middleware
    """
    if not middlewares:
        return adapter

    return MiddlewareFilesystem(adapter, middlewares)
