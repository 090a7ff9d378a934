"""Address segments for scalar leaves inside a document container.

The textual form is dotted with bracketed indexes, for example
``Document[2].Fields[0].Values[1]``. Each dotted part is either a plain key
(``Fields``) or a key followed by one list index (``Fields[0]``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from core.utils.errors import PathResolutionError

_INDEXED_PART_RE = re.compile(r"([^\[\]]+)\[(\d+)\]")
_KEY_PART_RE = re.compile(r"[^\[\]]+")


@dataclass(frozen=True)
class KeySegment:
    """Plain mapping key."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class IndexSegment:
    """Mapping key whose value is a list, followed by one list index."""

    name: str
    index: int

    def __str__(self) -> str:
        return f"{self.name}[{self.index}]"


PathSegment = Union[KeySegment, IndexSegment]


@dataclass(frozen=True)
class FieldPath:
    """Ordered, non-empty sequence of path segments."""

    segments: tuple[PathSegment, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("FieldPath requires at least one segment")

    def __str__(self) -> str:
        return ".".join(str(segment) for segment in self.segments)

    def key(self, name: str) -> FieldPath:
        return FieldPath(self.segments + (KeySegment(name),))

    def index(self, name: str, index: int) -> FieldPath:
        return FieldPath(self.segments + (IndexSegment(name, index),))

    @classmethod
    def root(cls, name: str, index: int | None = None) -> FieldPath:
        if index is None:
            return cls((KeySegment(name),))
        return cls((IndexSegment(name, index),))

    @classmethod
    def parse(cls, text: str) -> FieldPath:
        """Parse the textual form back into segments.

        Raises:
            PathResolutionError: when any dotted part is malformed.
        """

        if not text:
            raise PathResolutionError("Empty field path", path=text)

        segments: list[PathSegment] = []
        for part in text.split("."):
            indexed = _INDEXED_PART_RE.fullmatch(part)
            if indexed is not None:
                segments.append(IndexSegment(indexed.group(1), int(indexed.group(2))))
                continue
            if _KEY_PART_RE.fullmatch(part) is None:
                raise PathResolutionError(
                    f"Malformed path segment '{part}'", path=text, segment=part
                )
            segments.append(KeySegment(part))
        return cls(tuple(segments))


def coerce_path(path: str | FieldPath) -> FieldPath:
    if isinstance(path, FieldPath):
        return path
    return FieldPath.parse(path)
