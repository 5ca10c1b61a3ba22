"""Filesystem adapter protocol definitions."""
from typing import BinaryIO, Iterator, Optional, Protocol, Union, runtime_checkable

from .config import WriteConfig
from .models import FileAttributes


@runtime_checkable
class FilesystemAdapter(Protocol):
    """Generic filesystem contract for duck typing."""

    def file_exists(self, path: str) -> bool:
        """Check whether a file exists."""
        ...

    def write(
        self,
        path: str,
        contents: Union[bytes, str],
        config: Optional[WriteConfig] = None
    ) -> None:
        """Write in-memory contents."""
        ...

    def write_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: Optional[WriteConfig] = None
    ) -> None:
        """Write the contents of a readable stream."""
        ...

    def read(self, path: str) -> bytes:
        """Read a file fully."""
        ...

    def read_stream(self, path: str) -> tuple[FileAttributes, BinaryIO]:
        """Open a file for lazy reading."""
        ...

    def delete(self, path: str) -> None:
        """Delete a file."""
        ...

    def delete_directory(self, path: str) -> None:
        """Delete a directory and everything below it."""
        ...

    def create_directory(self, path: str, config: Optional[WriteConfig] = None) -> None:
        """Create a directory."""
        ...

    def set_visibility(self, path: str, visibility: str) -> None:
        """Set file visibility."""
        ...

    def visibility(self, path: str) -> FileAttributes:
        """Get file visibility."""
        ...

    def mime_type(self, path: str) -> FileAttributes:
        """Get file MIME type."""
        ...

    def last_modified(self, path: str) -> FileAttributes:
        """Get file modification time."""
        ...

    def file_size(self, path: str) -> FileAttributes:
        """Get file size."""
        ...

    def list_contents(self, path: str = "", deep: bool = False) -> Iterator[FileAttributes]:
        """List files below a path."""
        ...

    def move(
        self,
        source: str,
        destination: str,
        config: Optional[WriteConfig] = None
    ) -> None:
        """Move a file."""
        ...

    def copy(
        self,
        source: str,
        destination: str,
        config: Optional[WriteConfig] = None
    ) -> None:
        """Copy a file."""
        ...
