"""UI controllers package for the view designer.

Controllers own transient editing state (current document, selection,
clipboard, history) and delegate edits to the core services.
"""

from .document_controller import DocumentController  # noqa: F401

__all__: list[str] = ["DocumentController"]
