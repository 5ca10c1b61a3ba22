"""Per-operation configuration and visibility values."""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidVisibilityProvided


class AdapterType(str, Enum):
    """Filesystem adapter types."""
    SWIFT = "swift"


class Visibility(str, Enum):
    """Portable visibility values."""
    PUBLIC = "public"
    PRIVATE = "private"


class VisibilityConverter:
    """Validates portable visibility values.

    Swift access control is container-level, so nothing is ever mapped
    onto an object; the converter only guards the accepted vocabulary.
    """

    def __init__(self, default_for_directories: Visibility = Visibility.PRIVATE):
        self.default_for_directories = default_for_directories

    def validate(self, visibility: str) -> Visibility:
        try:
            return Visibility(visibility)
        except ValueError:
            raise InvalidVisibilityProvided(visibility, [v.value for v in Visibility]) from None


class WriteConfig(BaseModel):
    """Per-call write options.

    Accepts both ``swift_large_object_threshold`` and the camelCase
    ``swiftLargeObjectThreshold`` spelling.
    """
    swift_large_object_threshold: int = Field(
        default=300 * 1024 * 1024,  # 300MiB
        alias="swiftLargeObjectThreshold"
    )
    swift_segment_size: int = Field(
        default=100 * 1024 * 1024,  # 100MiB
        alias="swiftSegmentSize",
        gt=0
    )
    swift_segment_container: Optional[str] = Field(
        default=None,
        alias="swiftSegmentContainer"
    )
    mimetype: Optional[str] = None
    visibility: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def get(self, key: str, default: Any = None) -> Any:
        """Read an option by field name or alias, falling back to ``default``."""
        for name, info in type(self).model_fields.items():
            if key in (name, info.alias):
                value = getattr(self, name)
                return default if value is None else value
        extra = self.model_extra or {}
        return extra.get(key, default)
