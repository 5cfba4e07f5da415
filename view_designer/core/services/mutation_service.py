from __future__ import annotations

"""Service layer for structural and property edits on a view document.

This module provides a UI-agnostic, testable service that encapsulates every
edit the designer can make to a component tree: property and layout edits,
adding/deleting/reordering nodes, bindings, alignment, and the structural
halves of paste and duplicate.

Scope and guarantees:
- Operates purely in-memory, no file I/O nor UI imports.
- Never mutates the input document. Each successful operation deep-copies the
  document, edits the copy, and returns it in ``OperationResult.document``.
- Invalid or no-op operations return ``OperationResult(success=False, ...)``
  tagged with an :class:`ErrorKind`, never raise, and never return a
  partially edited document.
- Paths are resolved freshly on every call; nothing is cached across edits.

Examples
--------
Basic usage:

    service = TreeMutationService()
    result = service.set_property(doc, "root.children[0]", "text", "Hello")
    if result.success:
        doc = result.document
    else:
        print(result.error, result.message)

"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from view_designer.core.errors import ErrorKind, ModelError
from view_designer.core.models import (
    LAYOUT_FIELDS,
    Binding,
    Layout,
    Node,
    NodePath,
    PathLike,
    ViewDocument,
    is_json_value,
    resolve,
    resolve_parent,
)

__all__ = [
    "OperationResult",
    "TreeMutationService",
    "AlignMode",
    "ALIGN_MODES",
    "ReorderDirection",
]

logger = logging.getLogger(__name__)

AlignMode = Literal["left", "center", "right", "top", "middle", "bottom"]
ReorderDirection = Literal["up", "down", "front", "back"]

# mode -> (position field, size field, governing rule)
ALIGN_MODES: Dict[str, Tuple[str, str, str]] = {
    "left": ("x", "width", "min"),
    "center": ("x", "width", "center"),
    "right": ("x", "width", "max"),
    "top": ("y", "height", "min"),
    "middle": ("y", "height", "center"),
    "bottom": ("y", "height", "max"),
}


@dataclass(frozen=True)
class OperationResult:
    """Result of an editing operation.

    Attributes
    ----------
    success
        Whether the operation changed state.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Structured details (always includes ``operation``) for diagnostics or
        caller logic, e.g. the path of a newly inserted node.
    error
        Why nothing changed, when ``success`` is False.
    document
        The updated document on success.
    selection
        Selection snapshot, filled in by the document controller.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None
    error: Optional[ErrorKind] = None
    document: Optional[ViewDocument] = None
    selection: Optional[Dict[str, Any]] = None


def _failure(kind: ErrorKind, operation: str, message: str, **details: Any) -> OperationResult:
    payload = {"operation": operation}
    payload.update(details)
    return OperationResult(False, message, payload, kind)


def _success(document: ViewDocument, operation: str, message: str, **details: Any) -> OperationResult:
    payload = {"operation": operation}
    payload.update(details)
    return OperationResult(True, message, payload, None, document)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _same_value(a: Any, b: Any) -> bool:
    # 1 == True and 1 == 1.0 in Python; treat differing JSON types as a change
    return type(a) is type(b) and a == b


class TreeMutationService:
    """Encapsulates edit operations on a view component tree.

    Parameters
    ----------
    min_size
        Lower bound applied to layout width/height by :meth:`set_layout`.
    paste_offset
        Offset added to x and y of pasted/duplicated nodes that carry a layout.
    container_type_prefixes
        Component type prefixes that can receive pasted children even when the
        node has no ``children`` list yet.
    """

    def __init__(
        self,
        min_size: int = 1,
        paste_offset: int = 20,
        container_type_prefixes: Iterable[str] = ("ia.container.",),
    ) -> None:
        self.min_size = max(1, int(min_size))
        self.paste_offset = int(paste_offset)
        self.container_type_prefixes = tuple(container_type_prefixes or ())

    # -------------------------------------------------------------------------
    # Property and layout edits
    # -------------------------------------------------------------------------

    def set_property(self, document: ViewDocument, path: PathLike, property_name: str, value: Any) -> OperationResult:
        """Set ``properties[property_name]`` on the node at *path*.

        A dotted name such as ``events.onClick`` addresses a nested object;
        missing intermediate objects are created and non-object intermediates
        are replaced by objects.
        """
        op = "set_property"
        logger.info("Edit: %s path=%s property=%s", op, path, property_name)
        keys = (property_name or "").split(".")
        if not property_name or any(not k for k in keys):
            return _failure(ErrorKind.INVALID_OPERATION, op, f"Invalid property name '{property_name}'.",
                            path=str(path), property=property_name)
        if not is_json_value(value):
            logger.warning("Edit FAIL: %s non_json_value type=%s", op, type(value).__name__)
            return _failure(ErrorKind.INVALID_OPERATION, op,
                            f"Value of type {type(value).__name__} cannot be stored in a view.",
                            path=str(path), property=property_name)

        new_doc = document.clone()
        node = resolve(new_doc.root, path)
        if node is None:
            return self._not_found(op, path)

        target = node.properties
        for key in keys[:-1]:
            nested = target.get(key)
            if not isinstance(nested, dict):
                nested = {}
                target[key] = nested
            target = nested

        leaf = keys[-1]
        if leaf in target and _same_value(target[leaf], value):
            logger.info("Edit noop: %s unchanged path=%s property=%s", op, path, property_name)
            return _failure(ErrorKind.UNCHANGED, op, "Property already has that value.",
                            path=str(path), property=property_name)
        target[leaf] = value if not isinstance(value, (dict, list)) else _deep_json_copy(value)

        logger.info("Edit OK: %s path=%s property=%s", op, path, property_name)
        return _success(new_doc, op, f"Set '{property_name}'.", path=str(path), property=property_name)

    def set_layout(self, document: ViewDocument, path: PathLike, layout: Mapping[str, Any]) -> OperationResult:
        """Merge a partial ``{x, y, width, height}`` into the node's layout.

        Values are rounded to the nearest integer; width and height are clamped
        to ``min_size``. The layout is created when absent.
        """
        op = "set_layout"
        logger.info("Edit: %s path=%s fields=%s", op, path, sorted((layout or {}).keys()))
        if not layout:
            return _failure(ErrorKind.UNCHANGED, op, "No layout fields given.", path=str(path))

        unknown = [k for k in layout if k not in LAYOUT_FIELDS]
        if unknown:
            return _failure(ErrorKind.INVALID_OPERATION, op, f"Unknown layout field(s): {', '.join(unknown)}.",
                            path=str(path), fields=unknown)
        for key, raw in layout.items():
            if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not math.isfinite(raw):
                return _failure(ErrorKind.INVALID_OPERATION, op, f"Layout field '{key}' must be a finite number.",
                                path=str(path), field=key)

        new_doc = document.clone()
        node = resolve(new_doc.root, path)
        if node is None:
            return self._not_found(op, path)

        if node.layout is None:
            node.layout = Layout()
            changed = True
        else:
            changed = False
        for key, raw in layout.items():
            value = _round_half_up(raw)
            if key in ("width", "height"):
                value = max(self.min_size, value)
            if getattr(node.layout, key) != value:
                setattr(node.layout, key, value)
                changed = True

        if not changed:
            logger.info("Edit noop: %s unchanged path=%s", op, path)
            return _failure(ErrorKind.UNCHANGED, op, "Layout already has those values.", path=str(path))
        logger.info("Edit OK: %s path=%s", op, path)
        return _success(new_doc, op, "Updated layout.", path=str(path), layout=node.layout.to_dict())

    # -------------------------------------------------------------------------
    # Structure edits
    # -------------------------------------------------------------------------

    def add_child(self, document: ViewDocument, parent_path: PathLike, node: Union[Node, Dict[str, Any]]) -> OperationResult:
        """Append a deep clone of *node* to the children of *parent_path*."""
        op = "add_child"
        logger.info("Edit: %s parent=%s", op, parent_path)
        new_node, error = self._coerce_node(op, node)
        if error is not None:
            return error

        new_doc = document.clone()
        parent = resolve(new_doc.root, parent_path)
        if parent is None:
            return self._not_found(op, parent_path)

        if parent.children is None:
            parent.children = []
        parent.children.append(new_node)
        new_path = NodePath.coerce(parent_path).child(len(parent.children) - 1)

        logger.info("Edit OK: %s new=%s type=%s", op, new_path, new_node.component_type)
        return _success(new_doc, op, f"Added '{new_node.component_type}'.",
                        parent=str(NodePath.coerce(parent_path)), new_path=str(new_path))

    def delete_node(self, document: ViewDocument, path: PathLike) -> OperationResult:
        """Remove the node at *path* from its parent. The root cannot be deleted."""
        op = "delete_node"
        logger.info("Edit: %s path=%s", op, path)
        node_path = NodePath.coerce(path)
        if node_path is not None and node_path.is_root:
            logger.warning("Edit FAIL: %s refused on root", op)
            return _failure(ErrorKind.INVALID_OPERATION, op, "The root component cannot be deleted.", path="root")

        new_doc = document.clone()
        located = resolve_parent(new_doc.root, path)
        if located is None:
            return self._not_found(op, path)
        parent, index = located
        removed = parent.children.pop(index)

        logger.info("Edit OK: %s path=%s type=%s", op, node_path, removed.component_type)
        return _success(new_doc, op, f"Deleted '{removed.component_type}'.",
                        path=str(node_path), component_type=removed.component_type)

    def insert_after(self, document: ViewDocument, path: PathLike, node: Union[Node, Dict[str, Any]]) -> OperationResult:
        """Insert a deep clone of *node* immediately after *path* in the same parent."""
        op = "insert_after"
        logger.info("Edit: %s path=%s", op, path)
        node_path = NodePath.coerce(path)
        if node_path is not None and node_path.is_root:
            return _failure(ErrorKind.INVALID_OPERATION, op, "Nothing can be inserted beside the root.", path="root")
        new_node, error = self._coerce_node(op, node)
        if error is not None:
            return error

        new_doc = document.clone()
        located = resolve_parent(new_doc.root, path)
        if located is None:
            return self._not_found(op, path)
        parent, index = located
        parent.children.insert(index + 1, new_node)
        new_path = node_path.sibling(index + 1)

        logger.info("Edit OK: %s new=%s", op, new_path)
        return _success(new_doc, op, f"Inserted '{new_node.component_type}'.",
                        path=str(node_path), new_path=str(new_path))

    def reorder_node(self, document: ViewDocument, path: PathLike, direction: ReorderDirection) -> OperationResult:
        """Change a node's z-order among its siblings.

        ``up`` moves one position toward the end of the children list (drawn
        later, so on top), ``down`` one toward the start; ``front`` and
        ``back`` jump to the last and first position.
        """
        op = "reorder_node"
        logger.info("Edit: %s direction=%s path=%s", op, direction, path)
        if direction not in ("up", "down", "front", "back"):
            return _failure(ErrorKind.INVALID_OPERATION, op, f"Unsupported direction '{direction}'.",
                            allowed=["up", "down", "front", "back"])
        node_path = NodePath.coerce(path)
        if node_path is not None and node_path.is_root:
            return _failure(ErrorKind.INVALID_OPERATION, op, "The root component cannot be reordered.", path="root")

        new_doc = document.clone()
        located = resolve_parent(new_doc.root, path)
        if located is None:
            return self._not_found(op, path)
        parent, index = located
        last = len(parent.children) - 1
        target = {
            "up": min(index + 1, last),
            "down": max(index - 1, 0),
            "front": last,
            "back": 0,
        }[direction]
        if target == index:
            logger.info("Edit noop: %s boundary path=%s", op, node_path)
            return _failure(ErrorKind.UNCHANGED, op, f"Cannot move {direction} (at boundary).",
                            path=str(node_path), direction=direction)

        parent.children.insert(target, parent.children.pop(index))
        new_path = node_path.sibling(target)
        logger.info("Edit OK: %s %s -> %s", op, node_path, new_path)
        return _success(new_doc, op, f"Moved {direction}.", path=str(node_path), new_path=str(new_path),
                        direction=direction)

    # -------------------------------------------------------------------------
    # Bindings
    # -------------------------------------------------------------------------

    def set_binding(self, document: ViewDocument, path: PathLike, property_name: str,
                    binding: Union[Binding, Dict[str, Any], None]) -> OperationResult:
        """Overwrite the binding for *property_name*, or remove it when None.

        Removing the last binding drops the node's ``bindings`` map entirely.
        """
        op = "set_binding"
        logger.info("Edit: %s path=%s property=%s remove=%s", op, path, property_name, binding is None)
        if not property_name:
            return _failure(ErrorKind.INVALID_OPERATION, op, "A property name is required.", path=str(path))
        if isinstance(binding, dict):
            try:
                binding = Binding.from_dict(binding)
            except ModelError as exc:
                logger.warning("Edit FAIL: %s invalid_binding error=%s", op, exc)
                return _failure(ErrorKind.INVALID_OPERATION, op, f"Invalid binding: {exc}",
                                path=str(path), property=property_name)
        elif binding is not None and not isinstance(binding, Binding):
            return _failure(ErrorKind.INVALID_OPERATION, op, "Binding must be a Binding, a mapping or None.",
                            path=str(path), property=property_name)

        new_doc = document.clone()
        node = resolve(new_doc.root, path)
        if node is None:
            return self._not_found(op, path)

        current = (node.bindings or {}).get(property_name)
        if binding is None:
            if current is None:
                return _failure(ErrorKind.UNCHANGED, op, f"No binding on '{property_name}'.",
                                path=str(path), property=property_name)
            del node.bindings[property_name]
            if not node.bindings:
                node.bindings = None
            logger.info("Edit OK: %s removed path=%s property=%s", op, path, property_name)
            return _success(new_doc, op, f"Removed binding on '{property_name}'.",
                            path=str(path), property=property_name)

        if current == binding:
            return _failure(ErrorKind.UNCHANGED, op, f"Binding on '{property_name}' is unchanged.",
                            path=str(path), property=property_name)
        if node.bindings is None:
            node.bindings = {}
        node.bindings[property_name] = Binding.from_dict(binding.to_dict())
        logger.info("Edit OK: %s path=%s property=%s kind=%s", op, path, property_name, binding.kind.value)
        return _success(new_doc, op, f"Bound '{property_name}' to {binding.kind.value}.",
                        path=str(path), property=property_name, kind=binding.kind.value)

    # -------------------------------------------------------------------------
    # Alignment
    # -------------------------------------------------------------------------

    def align(self, document: ViewDocument, paths: Sequence[PathLike], mode: AlignMode) -> OperationResult:
        """Align the layout-bearing nodes at *paths* along one edge or centre.

        Governing value per mode: left/top use the minimum position,
        right/bottom the maximum far edge, center/middle the mean centre.
        Nodes without layout and unresolved paths are skipped. Fewer than two
        eligible nodes is an invalid operation.
        """
        op = f"align_{mode}"
        logger.info("Edit: %s count=%d", op, len(paths or []))
        if mode not in ALIGN_MODES:
            return _failure(ErrorKind.INVALID_OPERATION, "align", f"Unsupported alignment '{mode}'.",
                            allowed=list(ALIGN_MODES))
        pos_field, size_field, rule = ALIGN_MODES[mode]

        new_doc = document.clone()
        eligible: List[Node] = []
        seen = set()
        for raw in paths or []:
            node_path = NodePath.coerce(raw)
            if node_path is None or node_path in seen:
                continue
            seen.add(node_path)
            node = resolve(new_doc.root, node_path)
            if node is not None and node.layout is not None:
                eligible.append(node)

        if len(eligible) < 2:
            logger.info("Edit noop: %s eligible=%d", op, len(eligible))
            return _failure(ErrorKind.INVALID_OPERATION, op,
                            "Select at least two components with a layout to align.",
                            eligible=len(eligible))

        positions = [n.layout.value(pos_field) for n in eligible]
        sizes = [n.layout.value(size_field) for n in eligible]
        if rule == "min":
            target = min(positions)
            new_positions = [target for _ in eligible]
        elif rule == "max":
            target = max(p + s for p, s in zip(positions, sizes))
            new_positions = [target - s for s in sizes]
        else:
            target = sum(p + s / 2 for p, s in zip(positions, sizes)) / len(eligible)
            new_positions = [target - s / 2 for s in sizes]

        changed = 0
        for node, new_pos in zip(eligible, new_positions):
            old = getattr(node.layout, pos_field)
            if old is None or old != new_pos:
                setattr(node.layout, pos_field, new_pos)
                changed += 1

        if not changed:
            logger.info("Edit noop: %s already aligned", op)
            return _failure(ErrorKind.UNCHANGED, op, "Components are already aligned.", eligible=len(eligible))
        logger.info("Edit OK: %s aligned=%d target=%s", op, len(eligible), target)
        return _success(new_doc, op, f"Aligned {len(eligible)} components {mode}.",
                        aligned=len(eligible), changed=changed, target=target)

    # -------------------------------------------------------------------------
    # Paste / duplicate
    # -------------------------------------------------------------------------

    def can_hold_children(self, node: Node) -> bool:
        if node.children is not None:
            return True
        return any(node.component_type.startswith(p) for p in self.container_type_prefixes)

    def find_paste_target(self, document: ViewDocument, target_path: Optional[PathLike]) -> Optional[NodePath]:
        """Return the path of the node a paste at *target_path* lands in.

        That is the target itself when it can hold children, else its nearest
        ancestor that can. The root always qualifies. None when the target does
        not resolve.
        """
        node_path = NodePath.root() if target_path is None else NodePath.coerce(target_path)
        if node_path is None or resolve(document.root, node_path) is None:
            return None
        while not node_path.is_root and not self.can_hold_children(resolve(document.root, node_path)):
            node_path = node_path.parent
        return node_path

    def paste_node(self, document: ViewDocument, node: Node, target_path: Optional[PathLike] = None) -> OperationResult:
        """Append an offset clone of *node* under the effective paste target."""
        op = "paste"
        logger.info("Edit: %s target=%s", op, target_path)
        container = self.find_paste_target(document, target_path)
        if container is None:
            return self._not_found(op, target_path)

        new_doc = document.clone()
        parent = resolve(new_doc.root, container)
        clone = self.offset_clone(node)
        if parent.children is None:
            parent.children = []
        parent.children.append(clone)
        new_path = container.child(len(parent.children) - 1)

        logger.info("Edit OK: %s new=%s", op, new_path)
        return _success(new_doc, op, f"Pasted '{clone.component_type}'.",
                        parent=str(container), new_path=str(new_path))

    def duplicate_node(self, document: ViewDocument, path: PathLike) -> OperationResult:
        """Insert an offset clone of the node at *path* right after it."""
        op = "duplicate"
        logger.info("Edit: %s path=%s", op, path)
        node_path = NodePath.coerce(path)
        if node_path is not None and node_path.is_root:
            logger.warning("Edit FAIL: %s refused on root", op)
            return _failure(ErrorKind.INVALID_OPERATION, op, "The root component cannot be duplicated.", path="root")
        original = resolve(document.root, path)
        if original is None or node_path is None:
            return self._not_found(op, path)

        result = self.insert_after(document, node_path, self.offset_clone(original))
        if not result.success:
            return result
        details = dict(result.details or {})
        details["operation"] = op
        return OperationResult(True, f"Duplicated '{original.component_type}'.", details, None, result.document)

    def offset_clone(self, node: Node) -> Node:
        """Deep clone of *node* shifted by ``paste_offset`` when it has a layout."""
        clone = node.clone()
        if clone.layout is not None:
            clone.layout.x = clone.layout.value("x") + self.paste_offset
            clone.layout.y = clone.layout.value("y") + self.paste_offset
        return clone

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _not_found(self, operation: str, path: Any) -> OperationResult:
        logger.warning("Edit FAIL: %s path_not_found path=%s", operation, path)
        return _failure(ErrorKind.NOT_FOUND, operation, f"No component at '{path}'.", path=str(path))

    def _coerce_node(self, operation: str, node: Union[Node, Dict[str, Any]]) -> Tuple[Optional[Node], Optional[OperationResult]]:
        if isinstance(node, Node):
            return node.clone(), None
        try:
            return Node.from_dict(node), None
        except ModelError as exc:
            logger.warning("Edit FAIL: %s invalid_node error=%s", operation, exc)
            return None, _failure(ErrorKind.INVALID_OPERATION, operation, f"Invalid component: {exc}")


def _deep_json_copy(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _deep_json_copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_deep_json_copy(v) for v in value]
    return value
