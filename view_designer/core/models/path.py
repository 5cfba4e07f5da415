from __future__ import annotations

"""Positional addressing of nodes inside a view component tree.

A path is the chain of child indices walked from the root, written in text
form as ``root.children[2].children[0]``. Paths are positional, not stable
identities: removing or reordering a sibling that precedes the addressed index
makes a previously computed path point at a different node (or nowhere). Paths
must therefore be resolved freshly against the current document on every use.

Resolution never raises; malformed text and out-of-range indices both resolve
to ``None`` (NotFound).
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple, Union

if TYPE_CHECKING:
    from view_designer.core.models import Node

__all__ = ["NodePath", "PathLike", "ROOT_SEGMENT", "resolve", "resolve_parent"]

ROOT_SEGMENT = "root"

_SEGMENT_RE = re.compile(r"children\[(\d+)\]")


@dataclass(frozen=True)
class NodePath:
    """Immutable value type holding the child indices from the root to a node."""

    indices: Tuple[int, ...] = ()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def root(cls) -> "NodePath":
        return cls(())

    @classmethod
    def parse(cls, text: str) -> Optional["NodePath"]:
        """Parse ``root.children[i]...`` text; return None for malformed input.

        The empty string is accepted as the relative form of the root path.
        """
        if not isinstance(text, str):
            return None
        text = text.strip()
        if text in ("", ROOT_SEGMENT):
            return cls(())

        parts = text.split(".")
        if parts[0] != ROOT_SEGMENT:
            return None

        indices = []
        for part in parts[1:]:
            match = _SEGMENT_RE.fullmatch(part)
            if match is None:
                return None
            indices.append(int(match.group(1)))
        return cls(tuple(indices))

    @classmethod
    def coerce(cls, value: "PathLike") -> Optional["NodePath"]:
        """Accept a NodePath or its text form; anything else yields None."""
        if isinstance(value, NodePath):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        return None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    @property
    def is_root(self) -> bool:
        return not self.indices

    @property
    def parent(self) -> Optional["NodePath"]:
        if self.is_root:
            return None
        return NodePath(self.indices[:-1])

    @property
    def index(self) -> Optional[int]:
        """Index of the addressed node within its parent (None for root)."""
        if self.is_root:
            return None
        return self.indices[-1]

    @property
    def depth(self) -> int:
        return len(self.indices)

    def child(self, index: int) -> "NodePath":
        return NodePath(self.indices + (int(index),))

    def sibling(self, index: int) -> Optional["NodePath"]:
        parent = self.parent
        return parent.child(index) if parent is not None else None

    def is_ancestor_of(self, other: "NodePath") -> bool:
        """True when *other* lies strictly below this path."""
        return (
            len(other.indices) > len(self.indices)
            and other.indices[: len(self.indices)] == self.indices
        )

    def __str__(self) -> str:
        return ROOT_SEGMENT + "".join(f".children[{i}]" for i in self.indices)


PathLike = Union[NodePath, str]


def resolve(root: Optional["Node"], path: PathLike) -> Optional["Node"]:
    """Resolve *path* against *root*; return the node or None when not found."""
    if root is None:
        return None
    node_path = NodePath.coerce(path)
    if node_path is None:
        return None

    current = root
    for index in node_path.indices:
        children = current.children
        if not children or index >= len(children):
            return None
        current = children[index]
    return current


def resolve_parent(root: Optional["Node"], path: PathLike) -> Optional[Tuple["Node", int]]:
    """Return ``(parent_node, index)`` for a resolvable non-root *path*."""
    node_path = NodePath.coerce(path)
    if node_path is None or node_path.is_root:
        return None
    parent = resolve(root, node_path.parent)
    if parent is None or not parent.children:
        return None
    index = node_path.index
    if index is None or index >= len(parent.children):
        return None
    return parent, index
