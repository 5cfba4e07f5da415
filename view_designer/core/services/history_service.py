from __future__ import annotations

"""Undo/redo snapshot management for :class:`ViewDocument`.

This service is UI-agnostic and performs pure in-memory history tracking of
whole-document snapshots. It is a linear log with a cursor, not a diff/patch
log.

Design principles
-----------------
- No UI imports and no I/O (filesystem/console).
- Snapshots are deep-copied on the way in and on the way out, so a stored
  entry can never be aliased by a caller.
- Committing after an undo discards the redo branch (standard behaviour).
- Memory usage controlled by a max_history policy (oldest entries trimmed,
  cursor shifted so the most recent window is always kept).
"""

import copy
import logging
from typing import List, Optional

from view_designer.core.models import ViewDocument

__all__ = ["HistoryService", "DEFAULT_MAX_HISTORY"]

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 50


class HistoryService:
    """Linear history of document snapshots with an undo/redo cursor.

    Parameters
    ----------
    max_history : int, default=50
        Maximum number of snapshots retained (including the initial one).
        Values lower than 1 are coerced to 1.

    Notes
    -----
    ``can_undo`` is ``cursor > 0`` and ``can_redo`` is
    ``cursor < len(entries) - 1``. An empty history (nothing initialized)
    can do neither.

    Examples
    --------
    >>> history = HistoryService(max_history=10)
    >>> history.initialize(doc)
    >>> history.commit(edited_doc)
    >>> history.undo() == doc
    True
    """

    def __init__(self, max_history: int = DEFAULT_MAX_HISTORY) -> None:
        self._max_history: int = max(1, int(max_history))
        self._entries: List[ViewDocument] = []
        self._cursor: int = -1

    # --------------------------------------------------------------------- API

    @property
    def max_history(self) -> int:
        return self._max_history

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> List[ViewDocument]:
        """Copies of all retained snapshots, oldest first."""
        return [copy.deepcopy(e) for e in self._entries]

    @property
    def current(self) -> Optional[ViewDocument]:
        if self._cursor < 0:
            return None
        return copy.deepcopy(self._entries[self._cursor])

    def initialize(self, document: Optional[ViewDocument]) -> None:
        """Reset to a single-entry history holding *document* (or empty for None)."""
        if document is None:
            self.clear()
            return
        self._entries = [copy.deepcopy(document)]
        self._cursor = 0
        logger.debug("History initialized")

    def commit(self, document: ViewDocument) -> None:
        """Record *document* as the new current state.

        Entries after the cursor (the redo branch) are discarded. When the
        retained count exceeds max_history the oldest entries are dropped and
        the cursor is shifted accordingly.
        """
        del self._entries[self._cursor + 1:]
        self._entries.append(copy.deepcopy(document))

        overflow = len(self._entries) - self._max_history
        if overflow > 0:
            del self._entries[0:overflow]
        self._cursor = len(self._entries) - 1
        logger.debug("History commit: entries=%d cursor=%d", len(self._entries), self._cursor)

    def undo(self) -> Optional[ViewDocument]:
        """Step back one entry and return it, or None when nothing to undo."""
        if not self.can_undo():
            return None
        self._cursor -= 1
        return copy.deepcopy(self._entries[self._cursor])

    def redo(self) -> Optional[ViewDocument]:
        """Step forward one entry and return it, or None when nothing to redo."""
        if not self.can_redo():
            return None
        self._cursor += 1
        return copy.deepcopy(self._entries[self._cursor])

    def can_undo(self) -> bool:
        """Return True if an undo operation is currently possible."""
        return self._cursor > 0

    def can_redo(self) -> bool:
        """Return True if a redo operation is currently possible."""
        return 0 <= self._cursor < len(self._entries) - 1

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._entries)
