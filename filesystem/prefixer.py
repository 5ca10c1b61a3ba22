"""Logical path <-> storage key translation."""
import re
from typing import Optional

from .exceptions import CorruptedPathDetected, PathTraversalDetected

_SEPARATORS = "\\/"
# C0 control characters except tab/newline/carriage return, plus DEL and C1
_FUNKY_CHARACTERS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


class PathNormalizer:
    """Collapse a logical path into its canonical ``a/b/c`` form."""

    def normalize(self, path: str) -> str:
        path = path.replace("\\", "/")
        if _FUNKY_CHARACTERS.search(path):
            raise CorruptedPathDetected(path)
        return self._normalize_relative_path(path)

    @staticmethod
    def _normalize_relative_path(path: str) -> str:
        parts: list[str] = []
        for part in path.split("/"):
            if part in ("", "."):
                continue
            if part == "..":
                if not parts:
                    raise PathTraversalDetected(path)
                parts.pop()
                continue
            parts.append(part)
        return "/".join(parts)


class PathPrefixer:
    """Prepends and strips a fixed root prefix.

    For every valid logical path ``p``:
    ``strip_prefix(prefix_path(p)) == PathNormalizer().normalize(p)``.
    """

    def __init__(
        self,
        prefix: Optional[str] = None,
        separator: str = "/",
        normalizer: Optional[PathNormalizer] = None
    ):
        self.separator = separator
        self.normalizer = normalizer or PathNormalizer()
        prefix = (prefix or "").strip(_SEPARATORS)
        # Object names never start with a separator; "/" alone means no prefix
        self.prefix = f"{prefix}{separator}" if prefix else ""

    def prefix_path(self, path: str) -> str:
        return self.prefix + self.normalizer.normalize(path)

    def strip_prefix(self, path: str) -> str:
        if self.prefix and path.startswith(self.prefix):
            return path[len(self.prefix):]
        return path

    def strip_directory_prefix(self, path: str) -> str:
        return self.strip_prefix(path).rstrip(_SEPARATORS)

    def prefix_directory_path(self, path: str) -> str:
        prefixed = self.prefix_path(path)
        if prefixed == "" or prefixed.endswith(self.separator):
            return prefixed
        return prefixed + self.separator
