"""Prefix tree over path segments used for route matching."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field


@dataclass
class Node:
    """A node in the route tree; ``pattern`` is set only where a route ends."""

    pattern: str = ""
    part: str = ""
    children: list[Node] = field(default_factory=list)
    is_wild: bool = False

    def _match_child(self, part: str) -> Node | None:
        return next(
            (child for child in self.children if child.part == part or child.is_wild),
            None,
        )

    def _match_children(self, part: str) -> Iterator[Node]:
        return (child for child in self.children if child.part == part or child.is_wild)

    def insert(self, pattern: str, parts: Sequence[str], height: int = 0) -> None:
        """Insert ``pattern`` whose segments are ``parts``, starting at depth ``height``."""
        if height == len(parts):
            self.pattern = pattern
            return

        part = parts[height]
        child = self._match_child(part)
        if child is None:
            child = Node(part=part, is_wild=part.startswith((":", "*")))
            self.children.append(child)
        child.insert(pattern, parts, height + 1)

    def search(self, parts: Sequence[str], height: int = 0) -> Node | None:
        """Return the node whose route matches ``parts``, or None."""
        if height == len(parts) or self.part.startswith("*"):
            return self if self.pattern else None

        part = parts[height]
        for child in self._match_children(part):
            result = child.search(parts, height + 1)
            if result is not None:
                return result
        return None