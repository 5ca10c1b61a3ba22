"""Filesystem data transfer objects."""
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Literal, Optional, Union

from pydantic import BaseModel, Field


class FileAttributes(BaseModel):
    """Read-only projection of a stored object."""
    path: str
    file_size: Optional[int] = None
    visibility: Optional[str] = None
    last_modified: Optional[int] = None  # seconds since epoch
    mime_type: Optional[str] = None
    extra_metadata: dict[str, Any] = Field(default_factory=dict)
    type: Literal["file"] = "file"

    def is_file(self) -> bool:
        return True

    def is_dir(self) -> bool:
        return False


@dataclass(frozen=True)
class BufferPayload:
    """Bounded in-memory contents."""
    data: bytes
    kind: Literal["buffer"] = field(default="buffer", init=False)


@dataclass(frozen=True)
class StreamPayload:
    """Readable binary stream, consumed once."""
    stream: BinaryIO
    kind: Literal["stream"] = field(default="stream", init=False)


Payload = Union[BufferPayload, StreamPayload]
