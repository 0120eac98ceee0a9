"""Hierarchical document paths and single-segment wildcard patterns.

Paths are slash separated (``area/greater-boston/cities/boston``). A pattern
uses ``{name}`` for a segment that matches anything and binds it by name.
"""

from dataclasses import dataclass

from domain.exceptions import InvalidPathError


def _split(raw: str) -> tuple[str, ...]:
    stripped = raw.strip().strip("/")
    if not stripped:
        raise InvalidPathError(raw, "path is empty")
    segments = tuple(stripped.split("/"))
    if any(not segment for segment in segments):
        raise InvalidPathError(raw, "path contains an empty segment")
    return segments


@dataclass(frozen=True)
class DocumentPath:
    """Immutable path addressing a Record (or, for transactions, a Record field)."""

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise InvalidPathError("", "path is empty")

    @classmethod
    def parse(cls, raw: "str | DocumentPath") -> "DocumentPath":
        if isinstance(raw, DocumentPath):
            return raw
        return cls(_split(raw))

    @property
    def key(self) -> str:
        """Last segment, used as the Record's own id."""
        return self.segments[-1]

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def parent(self) -> "DocumentPath":
        return self.ancestor(1)

    def ancestor(self, levels: int) -> "DocumentPath":
        """Go ``levels`` segments up.

        Raises:
            InvalidPathError: when the path is not deep enough
        """
        if levels < 0:
            raise ValueError("levels must be >= 0")
        if levels >= self.depth:
            raise InvalidPathError(str(self), f"cannot go {levels} levels up")
        if levels == 0:
            return self
        return DocumentPath(self.segments[:-levels])

    def child(self, key: str) -> "DocumentPath":
        return DocumentPath(self.segments + _split(key))

    def __str__(self) -> str:
        return "/".join(self.segments)


@dataclass(frozen=True)
class PathPattern:
    """Path pattern such as ``rooms/{roomId}/messages/{messageId}``."""

    raw: str
    segments: tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> "PathPattern":
        segments = _split(raw)
        names = [s[1:-1] for s in segments if cls._is_wildcard(s)]
        if any(not name for name in names):
            raise InvalidPathError(raw, "wildcard without a name")
        if len(names) != len(set(names)):
            raise InvalidPathError(raw, "duplicate wildcard name")
        return cls(raw=raw, segments=segments)

    @staticmethod
    def _is_wildcard(segment: str) -> bool:
        return segment.startswith("{") and segment.endswith("}")

    @property
    def wildcards(self) -> list[str]:
        return [s[1:-1] for s in self.segments if self._is_wildcard(s)]

    def match(self, path: DocumentPath | str) -> dict[str, str] | None:
        """Return the bound wildcard values, or None when the path does not match."""
        path = DocumentPath.parse(path)
        if path.depth != len(self.segments):
            return None

        params: dict[str, str] = {}
        for expected, actual in zip(self.segments, path.segments):
            if self._is_wildcard(expected):
                params[expected[1:-1]] = actual
            elif expected != actual:
                return None
        return params

    def __str__(self) -> str:
        return self.raw
