from __future__ import annotations

"""Document controller: the single stateful façade of the view designer core.

The controller owns the current :class:`ViewDocument` together with the
selection, the clipboard and the undo/redo history, and keeps them mutually
consistent. Every cross-cutting effect (delete clears the selection, loading
resets history, undo prunes stale selection paths) is an explicit step inside
the operation that causes it; there are no observers.

All edit operations return an :class:`OperationResult`. Failed and no-op
operations leave document, history, selection and clipboard untouched.
"""

import dataclasses
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from view_designer.config import ConfigManager
from view_designer.core.errors import ErrorKind, ModelError, NotFoundError, RepositoryError
from view_designer.core.models import Binding, Node, NodePath, PathLike, ViewDocument
from view_designer.core.services.clipboard_service import ClipboardService
from view_designer.core.services.history_service import DEFAULT_MAX_HISTORY, HistoryService
from view_designer.core.services.mutation_service import (
    AlignMode,
    OperationResult,
    ReorderDirection,
    TreeMutationService,
)
from view_designer.core.services.selection_service import SelectionModel
from view_designer.core.services.validation_service import ValidationResult, ViewValidator

__all__ = ["DocumentController"]

logger = logging.getLogger(__name__)


def _failure(kind: ErrorKind, operation: str, message: str, **details: Any) -> OperationResult:
    payload = {"operation": operation}
    payload.update(details)
    return OperationResult(False, message, payload, kind)


def _relabel(result: OperationResult, operation: str, message: Optional[str] = None) -> OperationResult:
    details = dict(result.details or {})
    details["operation"] = operation
    return dataclasses.replace(result, details=details, message=message or result.message)


class DocumentController:
    """Coordinates edits on one open view.

    Parameters
    ----------
    mutation_service : TreeMutationService, optional
        Performs the structural and property edits.
    history_service : HistoryService, optional
        Undo/redo snapshot log.
    clipboard : ClipboardService, optional
        Session clipboard. Pass the same instance to several controllers to
        copy and paste between open views.
    selection : SelectionModel, optional
        Canvas selection.
    validator : ViewValidator, optional
        Checks run before saving.
    repository : object, optional
        Default view repository used by :meth:`save`, e.g.
        :class:`~view_designer.core.services.repository_service.GatewayViewRepository`.

    Notes
    -----
    - Clipboard and alignment operations default to the current selection
      when called without paths: the primary path for single-target
      operations and every selected path for alignment.
    - Query helpers (:meth:`get_node`, :meth:`get_binding`, :meth:`can_undo`,
      :meth:`can_redo`) return plain values instead of results.
    """

    def __init__(
        self,
        mutation_service: Optional[TreeMutationService] = None,
        history_service: Optional[HistoryService] = None,
        clipboard: Optional[ClipboardService] = None,
        selection: Optional[SelectionModel] = None,
        validator: Optional[ViewValidator] = None,
        repository: Any = None,
    ) -> None:
        self.mutations: TreeMutationService = (
            mutation_service if mutation_service is not None else TreeMutationService())
        self.history: HistoryService = (
            history_service if history_service is not None else HistoryService())
        self.clipboard: ClipboardService = clipboard if clipboard is not None else ClipboardService()
        self.selection: SelectionModel = selection if selection is not None else SelectionModel()
        self.validator: ViewValidator = validator if validator is not None else ViewValidator()
        self.repository = repository

        self.document: Optional[ViewDocument] = None
        self.project: Optional[str] = None
        self.view_path: Optional[str] = None
        self.etag: Optional[str] = None
        self.is_modified: bool = False
        # History cursor of the last loaded or saved state (-1: no longer reachable)
        self._saved_cursor: int = -1

    @classmethod
    def from_config(cls, config: Optional[ConfigManager] = None, repository: Any = None,
                    clipboard: Optional[ClipboardService] = None) -> "DocumentController":
        """Build a controller from the ``editing`` and ``validation`` config sections."""
        config = config or ConfigManager()
        editing = config.get_editing_config()
        mutations = TreeMutationService(
            min_size=editing.get("min_size", 1),
            paste_offset=editing.get("paste_offset", 20),
            container_type_prefixes=editing.get("container_type_prefixes") or ("ia.container.",),
        )
        history = HistoryService(max_history=editing.get("history_limit", DEFAULT_MAX_HISTORY))
        validator = ViewValidator(config.get_validation_config())
        return cls(mutations, history, clipboard, None, validator, repository)

    # ---------------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------------

    def _with_selection(self, result: OperationResult) -> OperationResult:
        return dataclasses.replace(result, selection=self.selection.snapshot())

    def _no_document(self, operation: str) -> Optional[OperationResult]:
        if self.document is not None:
            return None
        return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, operation, "No view is open."))

    def _commit(self, result: OperationResult, clear_selection: bool = False) -> OperationResult:
        """Adopt a successful service result: swap the document and record one history entry.

        Unsuccessful results pass through without touching any state.
        """
        if not result.success or result.document is None:
            return self._with_selection(result)

        old_cursor = self.history.cursor
        self.document = result.document
        self.history.commit(self.document)

        # Keep the saved marker pointing at the same snapshot after trimming
        if self._saved_cursor > old_cursor:
            self._saved_cursor = -1
        elif self._saved_cursor >= 0:
            dropped = old_cursor + 2 - len(self.history)
            self._saved_cursor = self._saved_cursor - dropped if self._saved_cursor >= dropped else -1
        self.is_modified = True

        if clear_selection:
            self.selection.clear()
        return self._with_selection(result)

    def _target_path(self, path: Optional[PathLike]) -> Optional[PathLike]:
        return path if path is not None else self.selection.primary

    # ---------------------------------------------------------------------------------
    # Document lifecycle
    # ---------------------------------------------------------------------------------

    def load_document(self, document: Union[ViewDocument, Dict[str, Any]]) -> OperationResult:
        """Make *document* the current view.

        Accepts a :class:`ViewDocument`, a ``content`` mapping or a
        ``{"content": ...}`` envelope. History is reinitialized to the loaded
        state, the selection is cleared and the clipboard is kept.
        """
        op = "load_document"
        try:
            if isinstance(document, ViewDocument):
                loaded = document.clone()
            elif isinstance(document, dict) and "content" in document and "root" not in document:
                loaded = ViewDocument.from_view_json(document)
            else:
                loaded = ViewDocument.from_dict(document)
        except ModelError as exc:
            logger.warning("Load FAIL: %s", exc)
            return self._with_selection(
                _failure(ErrorKind.INVALID_OPERATION, op, f"Invalid view: {exc}", error=exc)
            )

        report = self.validator.validate(loaded)
        for warning in report.warnings:
            logger.warning("View warning: %s", warning)

        self.document = loaded
        self.history.initialize(loaded)
        self.selection.clear()
        self.is_modified = False
        self._saved_cursor = self.history.cursor
        logger.info("Loaded view (%d components)", loaded.node_count())
        return self._with_selection(OperationResult(
            True, "View loaded.",
            {"operation": op, "components": loaded.node_count(),
             "warnings": list(report.warnings), "errors": list(report.errors)},
            None, loaded,
        ))

    def open_view(self, repository: Any, project: str, view_path: str) -> OperationResult:
        """Load *view_path* of *project* through *repository* and make it current."""
        op = "open_view"
        try:
            loaded = repository.load(project, view_path)
        except (RepositoryError, ModelError) as exc:
            logger.error("Open FAIL: project=%s view=%s error=%s", project, view_path, exc)
            kind = ErrorKind.NOT_FOUND if isinstance(exc, NotFoundError) else ErrorKind.INVALID_OPERATION
            return self._with_selection(_failure(
                kind, op, f"Could not open view: {exc}",
                error=exc, status=getattr(exc, "status", None), project=project, view_path=view_path,
            ))

        result = self.load_document(loaded.document)
        if not result.success:
            return _relabel(result, op)
        self.repository = repository
        self.project = project
        self.view_path = view_path
        self.etag = loaded.etag
        details = dict(result.details or {})
        details.update({"operation": op, "project": project, "view_path": view_path, "etag": loaded.etag})
        return dataclasses.replace(result, message=f"Opened '{view_path}'.", details=details)

    def validate(self) -> OperationResult:
        """Run the save-time checks on the current document."""
        op = "validate"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        report: ValidationResult = self.validator.validate(self.document)
        details = {"operation": op, "errors": list(report.errors), "warnings": list(report.warnings)}
        if not report.valid:
            return self._with_selection(OperationResult(
                False, f"View has {len(report.errors)} error(s).", details, ErrorKind.INVALID_OPERATION
            ))
        return self._with_selection(OperationResult(True, "View is valid.", details, None, self.document))

    def save(self, repository: Any = None) -> OperationResult:
        """Persist the current document to the view it was opened from.

        Invalid documents are refused. On success the modified flag is cleared
        and the repository's new ETag is remembered for the next save.
        """
        op = "save"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        repository = repository or self.repository
        if repository is None or not self.project or not self.view_path:
            return self._with_selection(_failure(
                ErrorKind.INVALID_OPERATION, op, "No repository location to save to."
            ))

        report = self.validator.validate(self.document)
        if not report.valid:
            logger.warning("Save refused: %d validation error(s)", len(report.errors))
            return self._with_selection(_failure(
                ErrorKind.INVALID_OPERATION, op, "View has validation errors.",
                errors=list(report.errors), warnings=list(report.warnings),
            ))

        try:
            receipt = repository.save(self.project, self.view_path, self.document, self.etag)
        except (RepositoryError, ModelError) as exc:
            logger.error("Save FAIL: project=%s view=%s error=%s", self.project, self.view_path, exc)
            return self._with_selection(_failure(
                ErrorKind.INVALID_OPERATION, op, f"Could not save view: {exc}",
                error=exc, status=getattr(exc, "status", None),
                current_etag=getattr(exc, "current_etag", None),
            ))

        self.etag = getattr(receipt, "etag", None) or self.etag
        self.is_modified = False
        self._saved_cursor = self.history.cursor
        logger.info("Saved view '%s' to project '%s'", self.view_path, self.project)
        return self._with_selection(OperationResult(
            True, getattr(receipt, "message", "") or "View saved.",
            {"operation": op, "project": self.project, "view_path": self.view_path, "etag": self.etag},
            None, self.document,
        ))

    # ---------------------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------------------

    def get_node(self, path: PathLike) -> Optional[Node]:
        """Return a copy of the node at *path*, or None."""
        if self.document is None:
            return None
        node = self.document.resolve(path)
        return node.clone() if node is not None else None

    def get_binding(self, path: PathLike, property_name: str) -> Optional[Binding]:
        node = self.get_node(path)
        if node is None or not node.bindings:
            return None
        return node.bindings.get(property_name)

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # ---------------------------------------------------------------------------------
    # Edits
    # ---------------------------------------------------------------------------------

    def set_property(self, path: PathLike, property_name: str, value: Any) -> OperationResult:
        missing = self._no_document("set_property")
        if missing is not None:
            return missing
        return self._commit(self.mutations.set_property(self.document, path, property_name, value))

    def set_layout(self, path: PathLike, layout: Dict[str, Any]) -> OperationResult:
        missing = self._no_document("set_layout")
        if missing is not None:
            return missing
        return self._commit(self.mutations.set_layout(self.document, path, layout))

    def add_child(self, parent_path: PathLike, node: Union[Node, Dict[str, Any]]) -> OperationResult:
        missing = self._no_document("add_child")
        if missing is not None:
            return missing
        return self._commit(self.mutations.add_child(self.document, parent_path, node))

    def delete_node(self, path: Optional[PathLike] = None) -> OperationResult:
        """Delete the node at *path* (default: primary selection) and clear the selection."""
        op = "delete_node"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        target = self._target_path(path)
        if target is None:
            return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, op, "Nothing selected."))
        return self._commit(self.mutations.delete_node(self.document, target), clear_selection=True)

    def reorder_node(self, path: Optional[PathLike], direction: ReorderDirection) -> OperationResult:
        op = "reorder_node"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        target = self._target_path(path)
        if target is None:
            return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, op, "Nothing selected."))
        return self._commit(self.mutations.reorder_node(self.document, target, direction))

    # Bindings -------------------------------------------------------------------------

    def set_binding(self, path: PathLike, property_name: str,
                    binding: Union[Binding, Dict[str, Any], None]) -> OperationResult:
        missing = self._no_document("set_binding")
        if missing is not None:
            return missing
        return self._commit(self.mutations.set_binding(self.document, path, property_name, binding))

    def remove_binding(self, path: PathLike, property_name: str) -> OperationResult:
        missing = self._no_document("remove_binding")
        if missing is not None:
            return missing
        result = self.mutations.set_binding(self.document, path, property_name, None)
        return self._commit(_relabel(result, "remove_binding"))

    def apply_drop(self, path: PathLike, property_name: str, payload: Dict[str, Any]) -> OperationResult:
        """Bind *property_name* to a tag or query dropped from a browser panel."""
        op = "apply_drop"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        try:
            binding = Binding.from_drop_payload(payload)
        except ModelError as exc:
            return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, op, str(exc), error=exc))
        return self.set_binding(path, property_name, binding)

    # Alignment ------------------------------------------------------------------------

    def align(self, mode: AlignMode, paths: Optional[Sequence[PathLike]] = None) -> OperationResult:
        """Align *paths* (default: every selected path) along *mode*."""
        missing = self._no_document(f"align_{mode}")
        if missing is not None:
            return missing
        targets = list(paths) if paths is not None else self.selection.paths
        return self._commit(self.mutations.align(self.document, targets, mode))

    def align_left(self, paths: Optional[Sequence[PathLike]] = None) -> OperationResult:
        return self.align("left", paths)

    def align_center(self, paths: Optional[Sequence[PathLike]] = None) -> OperationResult:
        return self.align("center", paths)

    def align_right(self, paths: Optional[Sequence[PathLike]] = None) -> OperationResult:
        return self.align("right", paths)

    def align_top(self, paths: Optional[Sequence[PathLike]] = None) -> OperationResult:
        return self.align("top", paths)

    def align_middle(self, paths: Optional[Sequence[PathLike]] = None) -> OperationResult:
        return self.align("middle", paths)

    def align_bottom(self, paths: Optional[Sequence[PathLike]] = None) -> OperationResult:
        return self.align("bottom", paths)

    # Clipboard ------------------------------------------------------------------------

    def copy(self, path: Optional[PathLike] = None) -> OperationResult:
        """Place a copy of the node at *path* (default: primary selection) on the clipboard."""
        op = "copy"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        target = self._target_path(path)
        if target is None:
            return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, op, "Nothing selected."))
        node = self.document.resolve(target)
        if node is None:
            return self._with_selection(_failure(ErrorKind.NOT_FOUND, op, f"No component at '{target}'.",
                                                 path=str(target)))
        self.clipboard.store(node)
        logger.info("Clipboard: copied '%s' from %s", node.component_type, target)
        return self._with_selection(OperationResult(
            True, f"Copied '{node.component_type}'.", {"operation": op, "path": str(target)}
        ))

    def cut(self, path: Optional[PathLike] = None) -> OperationResult:
        """Copy then delete the node at *path* as a single history entry."""
        op = "cut"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        target = self._target_path(path)
        if target is None:
            return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, op, "Nothing selected."))
        node = self.document.resolve(target)
        result = self.mutations.delete_node(self.document, target)
        if not result.success:
            return self._with_selection(_relabel(result, op))
        self.clipboard.store(node)
        return self._commit(_relabel(result, op, f"Cut '{node.component_type}'."), clear_selection=True)

    def paste(self, target_path: Optional[PathLike] = None) -> OperationResult:
        """Paste the clipboard under *target_path* (default: primary selection, else root)."""
        op = "paste"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        content = self.clipboard.peek()
        if content is None:
            return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, op, "Clipboard is empty."))
        return self._commit(self.mutations.paste_node(self.document, content, self._target_path(target_path)))

    def duplicate(self, path: Optional[PathLike] = None) -> OperationResult:
        op = "duplicate"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        target = self._target_path(path)
        if target is None:
            return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, op, "Nothing selected."))
        return self._commit(self.mutations.duplicate_node(self.document, target))

    # ---------------------------------------------------------------------------------
    # Selection
    # ---------------------------------------------------------------------------------

    def select(self, path: PathLike) -> OperationResult:
        op = "select"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        node_path = NodePath.coerce(path)
        if node_path is None or self.document.resolve(node_path) is None:
            return self._with_selection(_failure(ErrorKind.NOT_FOUND, op, f"No component at '{path}'.",
                                                 path=str(path)))
        self.selection.select(node_path)
        return self._with_selection(OperationResult(True, "Selected.", {"operation": op, "path": str(node_path)}))

    def toggle_select(self, path: PathLike) -> OperationResult:
        """Add *path* to the selection, or remove it when already selected."""
        op = "toggle_select"
        missing = self._no_document(op)
        if missing is not None:
            return missing
        node_path = NodePath.coerce(path)
        if node_path is None or (not self.selection.contains(node_path)
                                 and self.document.resolve(node_path) is None):
            return self._with_selection(_failure(ErrorKind.NOT_FOUND, op, f"No component at '{path}'.",
                                                 path=str(path)))
        selected = self.selection.toggle(node_path)
        return self._with_selection(OperationResult(
            True, "Selected." if selected else "Deselected.",
            {"operation": op, "path": str(node_path), "selected": selected},
        ))

    def clear_selection(self) -> OperationResult:
        op = "clear_selection"
        if self.selection.is_empty:
            return self._with_selection(_failure(ErrorKind.UNCHANGED, op, "Selection is already empty."))
        self.selection.clear()
        return self._with_selection(OperationResult(True, "Selection cleared.", {"operation": op}))

    # ---------------------------------------------------------------------------------
    # History
    # ---------------------------------------------------------------------------------

    def undo(self) -> OperationResult:
        return self._step_history("undo")

    def redo(self) -> OperationResult:
        return self._step_history("redo")

    def _step_history(self, op: str) -> OperationResult:
        missing = self._no_document(op)
        if missing is not None:
            return missing
        document = self.history.undo() if op == "undo" else self.history.redo()
        if document is None:
            return self._with_selection(_failure(ErrorKind.INVALID_OPERATION, op, f"Nothing to {op}."))

        self.document = document
        dropped: List[NodePath] = self.selection.prune(lambda p: document.resolve(p) is not None)
        self.is_modified = self.history.cursor != self._saved_cursor
        logger.info("History: %s cursor=%d entries=%d", op, self.history.cursor, len(self.history))
        return self._with_selection(OperationResult(
            True, f"{op.capitalize()} applied.",
            {"operation": op, "cursor": self.history.cursor, "pruned": [str(p) for p in dropped]},
            None, document,
        ))
