"""Hierarchical workload identifiers.

Workloads on the server are addressed by slash-separated paths such as
``/product/frontend``. A PathId may be relative until it is appended to a
base path and canonicalised.
"""

from dataclasses import dataclass
from typing import Self


@dataclass(frozen=True, slots=True)
class PathId:
    """A slash-separated workload path.

    Attributes:
        parts: Path segments, without separators.
        absolute: Whether the path is rooted at ``/``.
    """

    parts: tuple[str, ...] = ()
    absolute: bool = True

    @classmethod
    def parse(cls, value: "str | PathId") -> Self:
        """Parse a path string; empty segments are dropped."""
        if isinstance(value, PathId):
            return cls(value.parts, value.absolute)
        parts = tuple(part for part in value.split("/") if part)
        return cls(parts, absolute=value.startswith("/"))

    @classmethod
    def root(cls) -> Self:
        """Return the root path ``/``."""
        return cls((), absolute=True)

    @property
    def is_root(self) -> bool:
        return not self.parts

    @property
    def parent(self) -> "PathId":
        if self.is_root:
            return self
        return PathId(self.parts[:-1], self.absolute)

    def append(self, other: "str | PathId") -> "PathId":
        """Return this path with ``other``'s segments appended."""
        suffix = PathId.parse(other)
        return PathId(self.parts + suffix.parts, self.absolute)

    def to_root_path(self) -> "PathId":
        """Return the same segments as an absolute path."""
        return PathId(self.parts, absolute=True)

    def canonical(self) -> "PathId":
        """Resolve ``.`` and ``..`` segments into an absolute path."""
        resolved: list[str] = []
        for part in self.parts:
            if part == ".":
                continue
            if part == "..":
                if resolved:
                    _ = resolved.pop()
                continue
            resolved.append(part)
        return PathId(tuple(resolved), absolute=True)

    def is_within(self, other: "PathId") -> bool:
        """Return True if this path equals or lies below ``other``."""
        return self.parts[: len(other.parts)] == other.parts

    def __str__(self) -> str:
        joined = "/".join(self.parts)
        return f"/{joined}" if self.absolute else joined
