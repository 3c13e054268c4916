"""BindingPath — relation traversal from the query's root entity."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterator

_SEGMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


def is_valid_segment(segment: str) -> bool:
    """True if *segment* is a usable relation or field name."""
    return bool(_SEGMENT_RE.match(segment))


@dataclass(frozen=True)
class BindingPath:
    """
    Ordered sequence of relation names, e.g. ``("space_center", "country")``.

    Two paths are equal iff their segments are equal element-wise.  The
    empty path is :attr:`ROOT` and stands for the root entity itself; it
    is never joined.
    """

    parts: tuple[str, ...] = ()

    ROOT: ClassVar[BindingPath]

    def __post_init__(self) -> None:
        if not isinstance(self.parts, tuple):
            object.__setattr__(self, "parts", tuple(self.parts))
        for part in self.parts:
            if not is_valid_segment(part):
                raise ValueError(f"Invalid relation name {part!r} in path {self.parts}")

    @classmethod
    def of(cls, *parts: str) -> BindingPath:
        return cls(tuple(parts))

    @classmethod
    def from_dotted(cls, dotted: str) -> BindingPath:
        """Parse ``"a.b.c"`` into a path.  The empty string is ROOT."""
        if not dotted:
            return cls.ROOT
        return cls(tuple(dotted.split(".")))

    @property
    def is_root(self) -> bool:
        return not self.parts

    @property
    def parent(self) -> BindingPath:
        if self.is_root:
            raise ValueError("ROOT has no parent")
        return BindingPath(self.parts[:-1])

    @property
    def relation(self) -> str:
        """Terminal relation name."""
        if self.is_root:
            raise ValueError("ROOT has no relation name")
        return self.parts[-1]

    @property
    def alias(self) -> str:
        """Alias derived from the full path, never from the last segment alone."""
        return ".".join(self.parts)

    def child(self, name: str) -> BindingPath:
        return BindingPath((*self.parts, name))

    def prefixes(self) -> list[BindingPath]:
        """Non-root prefixes, shortest first, ending with ``self``."""
        return [BindingPath(self.parts[: i + 1]) for i in range(len(self.parts))]

    def __iter__(self) -> Iterator[str]:
        return iter(self.parts)

    def __len__(self) -> int:
        return len(self.parts)

    def __str__(self) -> str:
        return self.alias or "<root>"


BindingPath.ROOT = BindingPath(())
