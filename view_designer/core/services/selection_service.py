from __future__ import annotations

"""Selection model for the canvas: zero, one or many selected node paths.

The model stores positional :class:`NodePath` values only. It never resolves
them; the document controller checks paths against the current document and
prunes stale entries after structural changes.
"""

from typing import Callable, List, Optional

from view_designer.core.models import NodePath

__all__ = ["SelectionModel"]


class SelectionModel:
    """Ordered set of selected paths plus a distinguished primary path.

    The primary path is the one whose properties are shown for single-target
    editing: the most recently selected path, or after a removal the first
    remaining member.
    """

    def __init__(self) -> None:
        self._paths: List[NodePath] = []
        self._primary: Optional[NodePath] = None

    @property
    def paths(self) -> List[NodePath]:
        return list(self._paths)

    @property
    def primary(self) -> Optional[NodePath]:
        return self._primary

    @property
    def is_empty(self) -> bool:
        return not self._paths

    def contains(self, path: NodePath) -> bool:
        return path in self._paths

    def select(self, path: NodePath) -> None:
        """Replace the selection with exactly *path*."""
        self._paths = [path]
        self._primary = path

    def toggle(self, path: NodePath) -> bool:
        """Remove *path* if selected, else add it as primary.

        Returns True when the path is selected afterwards.
        """
        if path in self._paths:
            self._paths = [p for p in self._paths if p != path]
            self._primary = self._paths[0] if self._paths else None
            return False
        self._paths.append(path)
        self._primary = path
        return True

    def clear(self) -> None:
        self._paths = []
        self._primary = None

    def prune(self, keep: Callable[[NodePath], bool]) -> List[NodePath]:
        """Drop paths for which *keep* is False; return the dropped paths."""
        dropped = [p for p in self._paths if not keep(p)]
        if not dropped:
            return []
        self._paths = [p for p in self._paths if keep(p)]
        if self._primary is not None and self._primary not in self._paths:
            self._primary = self._paths[0] if self._paths else None
        return dropped

    def snapshot(self) -> dict:
        """Plain-data view for presentation layers."""
        return {
            "paths": [str(p) for p in self._paths],
            "primary": str(self._primary) if self._primary is not None else None,
        }
