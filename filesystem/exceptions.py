"""Filesystem exceptions.

Every failed adapter operation surfaces as exactly one of the
``UnableTo*`` kinds below, carrying the logical location it was asked
about. The remote cause, when there is one, is chained via ``raise ... from``.
"""
from typing import Optional


class FilesystemException(Exception):
    """Base filesystem exception."""
    pass


class FilesystemOperationFailed(FilesystemException):
    """An adapter operation could not be completed."""

    operation: str = "UNKNOWN"

    def __init__(self, message: str, location: str = "", reason: str = ""):
        super().__init__(message)
        self.location = location
        self.reason = reason


def _with_reason(message: str, reason: str) -> str:
    return f"{message}: {reason}" if reason else f"{message}."


class UnableToWriteFile(FilesystemOperationFailed):
    operation = "WRITE"

    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToWriteFile":
        return cls(_with_reason(f"Unable to write file at location: {location}", reason), location, reason)


class UnableToReadFile(FilesystemOperationFailed):
    operation = "READ"

    @classmethod
    def from_location(cls, location: str, reason: str = "") -> "UnableToReadFile":
        return cls(_with_reason(f"Unable to read file from location: {location}", reason), location, reason)


class UnableToCheckFileExistence(FilesystemOperationFailed):
    operation = "FILE_EXISTS"

    @classmethod
    def for_location(cls, location: str, reason: str = "") -> "UnableToCheckFileExistence":
        return cls(_with_reason(f"Unable to check existence for: {location}", reason), location, reason)


class UnableToRetrieveMetadata(FilesystemOperationFailed):
    """Metadata lookup failed; ``metadata_type`` names the requested field."""

    operation = "RETRIEVE_METADATA"

    def __init__(self, message: str, location: str = "", reason: str = "", metadata_type: str = ""):
        super().__init__(message, location, reason)
        self.metadata_type = metadata_type

    @classmethod
    def create(cls, location: str, metadata_type: str, reason: str = "") -> "UnableToRetrieveMetadata":
        message = _with_reason(f"Unable to retrieve the {metadata_type} for file at location: {location}", reason)
        return cls(message, location, reason, metadata_type)

    @classmethod
    def last_modified(cls, location: str, reason: str = "") -> "UnableToRetrieveMetadata":
        return cls.create(location, "last_modified", reason)

    @classmethod
    def mime_type(cls, location: str, reason: str = "") -> "UnableToRetrieveMetadata":
        return cls.create(location, "mime_type", reason)

    @classmethod
    def file_size(cls, location: str, reason: str = "") -> "UnableToRetrieveMetadata":
        return cls.create(location, "file_size", reason)

    @classmethod
    def visibility(cls, location: str, reason: str = "") -> "UnableToRetrieveMetadata":
        return cls.create(location, "visibility", reason)


class UnableToDeleteFile(FilesystemOperationFailed):
    operation = "DELETE"

    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToDeleteFile":
        return cls(_with_reason(f"Unable to delete file located at: {location}", reason), location, reason)


class UnableToDeleteDirectory(FilesystemOperationFailed):
    operation = "DELETE_DIRECTORY"

    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToDeleteDirectory":
        return cls(_with_reason(f"Unable to delete directory located at: {location}", reason), location, reason)


class UnableToMoveFile(FilesystemOperationFailed):
    """Move failed.

    ``copied`` is True when the server-side copy succeeded but removing the
    source did not: both objects exist and nothing was rolled back.
    """

    operation = "MOVE"

    def __init__(
        self,
        message: str,
        source: str,
        destination: str,
        reason: str = "",
        copied: bool = False
    ):
        super().__init__(message, source, reason)
        self.source = source
        self.destination = destination
        self.copied = copied

    @classmethod
    def from_location_to(cls, source: str, destination: str, reason: str = "") -> "UnableToMoveFile":
        message = _with_reason(f"Unable to move file from {source} to {destination}", reason)
        return cls(message, source, destination, reason)

    @classmethod
    def source_not_deleted(cls, source: str, destination: str, reason: str = "") -> "UnableToMoveFile":
        message = _with_reason(
            f"Copied {source} to {destination} but could not delete the source",
            reason
        )
        return cls(message, source, destination, reason, copied=True)


class UnableToCopyFile(FilesystemOperationFailed):
    operation = "COPY"

    def __init__(self, message: str, source: str, destination: str, reason: str = ""):
        super().__init__(message, source, reason)
        self.source = source
        self.destination = destination

    @classmethod
    def from_location_to(cls, source: str, destination: str, reason: str = "") -> "UnableToCopyFile":
        message = _with_reason(f"Unable to copy file from {source} to {destination}", reason)
        return cls(message, source, destination, reason)


class UnableToSetVisibility(FilesystemOperationFailed):
    operation = "SET_VISIBILITY"

    @classmethod
    def at_location(cls, location: str, reason: str = "") -> "UnableToSetVisibility":
        return cls(_with_reason(f"Unable to set visibility for file {location}", reason), location, reason)


class UnableToListContents(FilesystemOperationFailed):
    operation = "LIST_CONTENTS"

    def __init__(self, message: str, location: str = "", reason: str = "", deep: bool = False):
        super().__init__(message, location, reason)
        self.deep = deep

    @classmethod
    def at_location(cls, location: str, deep: bool = False, reason: str = "") -> "UnableToListContents":
        message = _with_reason(f"Unable to list contents for '{location}', {'deep' if deep else 'shallow'} listing", reason)
        return cls(message, location, reason, deep)


class PathTraversalDetected(FilesystemException):
    """Path resolves outside of the filesystem root."""

    def __init__(self, path: str):
        super().__init__(f"Path traversal detected: {path}")
        self.path = path


class CorruptedPathDetected(FilesystemException):
    """Path contains control characters."""

    def __init__(self, path: str):
        super().__init__(f"Corrupted path detected: {path!r}")
        self.path = path


class InvalidVisibilityProvided(FilesystemException):
    """Visibility value is not one of the supported values."""

    def __init__(self, visibility: str, expected: Optional[list[str]] = None):
        expected_text = ", ".join(expected or [])
        super().__init__(f"Invalid visibility provided. Expected one of [{expected_text}], received {visibility!r}")
        self.visibility = visibility


class ConfigurationError(FilesystemException):
    """Filesystem configuration error."""
    pass


class TransientError(FilesystemException):
    """Transient error (network, rate limit, server error)."""
    pass
