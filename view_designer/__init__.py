from __future__ import annotations

"""Top-level package for the headless core of the view designer.

This package hosts the GUI-agnostic document model and editing services.
Front-ends (canvas, property panels, CLI) should only depend on the public API
exposed here rather than importing internal modules directly.
"""

from .core.models import Node, NodePath, ViewDocument  # re-export for convenience
from .ui.controllers import DocumentController

__version__ = "0.3.0"

__all__: list[str] = [
    "DocumentController",
    "Node",
    "NodePath",
    "ViewDocument",
]
