from __future__ import annotations

"""Editing, history and persistence services.

Services are UI-agnostic and instantiated directly; the document controller
wires them together.
"""

from .clipboard_service import ClipboardService  # noqa: F401
from .history_service import HistoryService  # noqa: F401
from .mutation_service import OperationResult, TreeMutationService  # noqa: F401
from .repository_service import GatewayViewRepository, LoadedView, SaveReceipt  # noqa: F401
from .selection_service import SelectionModel  # noqa: F401
from .validation_service import ValidationResult, ViewValidator, validate_view  # noqa: F401

__all__: list[str] = [
    "ClipboardService",
    "HistoryService",
    "OperationResult",
    "TreeMutationService",
    "GatewayViewRepository",
    "LoadedView",
    "SaveReceipt",
    "SelectionModel",
    "ValidationResult",
    "ViewValidator",
    "validate_view",
]
