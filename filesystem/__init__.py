"""Filesystem entry point and lifecycle management."""
from typing import Optional

from core.config import Settings, settings as default_settings
from core.logging_config import get_logger
from .base import FilesystemAdapter
from .factory import create_adapter
from .utils import (
    LoggingMiddleware,
    ValidationMiddleware,
    apply_middleware
)

logger = get_logger(__name__)

# Global filesystem instance
_filesystem: Optional[FilesystemAdapter] = None


def init_filesystem(settings: Optional[Settings] = None) -> FilesystemAdapter:
    """Initialize the filesystem adapter.

    Builds the configured adapter and wraps it with logging and, when
    enabled, validation middleware.
    """
    global _filesystem

    if _filesystem is not None:
        logger.warning("Filesystem already initialized")
        return _filesystem

    s = settings or default_settings
    try:
        adapter = create_adapter(s)

        middlewares = [LoggingMiddleware()]
        if s.filesystem.validation_enabled:
            middlewares.append(
                ValidationMiddleware(
                    s.filesystem.max_file_size,
                    s.filesystem.allowed_types,
                    getattr(adapter, "mime_type_detector", None)
                )
            )

        _filesystem = apply_middleware(adapter, middlewares)

        logger.info(
            "Filesystem initialized",
            adapter=s.filesystem.type,
            container=s.swift.container,
            prefix=s.swift.prefix
        )
    except Exception as e:
        logger.error("Failed to initialize filesystem", error=str(e))
        raise

    return _filesystem


def get_filesystem() -> FilesystemAdapter:
    """Get the filesystem adapter.

    Raises:
        RuntimeError: If the filesystem is not initialized
    """
    if _filesystem is None:
        raise RuntimeError(
            "Filesystem not initialized. "
            "Call init_filesystem() during startup."
        )
    return _filesystem


def shutdown_filesystem() -> None:
    """Close the adapter's connection and forget it."""
    global _filesystem

    if _filesystem is None:
        return

    try:
        close = getattr(_filesystem, "close", None)
        if close is not None:
            close()
        logger.info("Filesystem shutdown")
    except Exception as e:
        logger.error("Error during filesystem shutdown", error=str(e))
    finally:
        _filesystem = None


# Export public interface
__all__ = [
    # Lifecycle
    "init_filesystem",
    "get_filesystem",
    "shutdown_filesystem",

    # Configuration
    "AdapterType",
    "Visibility",
    "VisibilityConverter",
    "WriteConfig",

    # Base types
    "FilesystemAdapter",

    # Models
    "FileAttributes",
    "BufferPayload",
    "StreamPayload",

    # Paths
    "PathNormalizer",
    "PathPrefixer",

    # Exceptions
    "FilesystemException",
    "FilesystemOperationFailed",
    "UnableToWriteFile",
    "UnableToReadFile",
    "UnableToCheckFileExistence",
    "UnableToRetrieveMetadata",
    "UnableToDeleteFile",
    "UnableToDeleteDirectory",
    "UnableToMoveFile",
    "UnableToCopyFile",
    "UnableToSetVisibility",
    "UnableToListContents",
    "PathTraversalDetected",
    "CorruptedPathDetected",
    "InvalidVisibilityProvided",
    "ConfigurationError",
    "TransientError",

    # Utils
    "MimeTypeDetector",
]

# Import models and exceptions for easier access
from .config import (
    AdapterType,
    Visibility,
    VisibilityConverter,
    WriteConfig
)
from .models import (
    FileAttributes,
    BufferPayload,
    StreamPayload
)
from .prefixer import (
    PathNormalizer,
    PathPrefixer
)
from .exceptions import (
    FilesystemException,
    FilesystemOperationFailed,
    UnableToWriteFile,
    UnableToReadFile,
    UnableToCheckFileExistence,
    UnableToRetrieveMetadata,
    UnableToDeleteFile,
    UnableToDeleteDirectory,
    UnableToMoveFile,
    UnableToCopyFile,
    UnableToSetVisibility,
    UnableToListContents,
    PathTraversalDetected,
    CorruptedPathDetected,
    InvalidVisibilityProvided,
    ConfigurationError,
    TransientError
)
from .utils import (
    MimeTypeDetector
)
