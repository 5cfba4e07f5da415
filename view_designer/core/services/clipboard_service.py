from __future__ import annotations

"""Session clipboard holding at most one copied or cut component subtree."""

import logging
from typing import Optional

from view_designer.core.models import Node

__all__ = ["ClipboardService"]

logger = logging.getLogger(__name__)


class ClipboardService:
    """Single-slot clipboard.

    The slot survives document switches within a session; it only changes on
    an explicit copy or cut. Content goes in and comes out as deep clones so the
    slot never shares nodes with any document.
    """

    def __init__(self) -> None:
        self._content: Optional[Node] = None

    @property
    def is_empty(self) -> bool:
        return self._content is None

    def store(self, node: Node) -> None:
        self._content = node.clone()
        logger.debug("Clipboard holds '%s'", node.component_type)

    def peek(self) -> Optional[Node]:
        """Return a clone of the current content, or None when empty."""
        return self._content.clone() if self._content is not None else None
