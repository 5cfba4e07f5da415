from __future__ import annotations

"""Shared data structures used across the view designer core.

This package exposes the document model (view, component node, layout and
binding) together with path addressing. It is intentionally free of UI / I/O
code so that the contained objects can be reused in any context (unit-tests,
CLI, controllers, etc.).

The JSON shape mirrors the Gateway's ``view.json``::

    {"root": {"type": "ia.container.coord",
              "meta": {"name": "root"},
              "props": {...},
              "layout": {"x": 0, "y": 0, "width": 800, "height": 600},
              "bindings": {"text": {"type": "tag", "config": {...}}},
              "children": [...]},
     "params": {...},
     "custom": {...}}

Keys the model does not interpret are kept in ``extra`` mappings so that a
load/save round trip is lossless.
"""

import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from view_designer.core.errors import ModelError
from view_designer.core.models.path import (
    NodePath,
    PathLike,
    resolve,
    resolve_parent,
)

__all__ = [
    "JsonValue",
    "is_json_value",
    "BindingKind",
    "TransformKind",
    "Transform",
    "Binding",
    "Layout",
    "LAYOUT_FIELDS",
    "Node",
    "ViewDocument",
    "NodePath",
    "PathLike",
    "resolve",
    "resolve_parent",
]

JsonValue = Union[None, bool, int, float, str, List["JsonValue"], Dict[str, "JsonValue"]]

LAYOUT_FIELDS = ("x", "y", "width", "height")


def is_json_value(value: Any) -> bool:
    """Return True when *value* belongs to the closed JSON value set.

    Accepted: ``None``, ``bool``, ``int``, ``float``, ``str``, lists of values
    and dicts with string keys. Tuples, sets, bytes and arbitrary objects are
    rejected so that documents always serialize deterministically.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return True
    if isinstance(value, list):
        return all(is_json_value(v) for v in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and is_json_value(v) for k, v in value.items())
    return False


class BindingKind(str, Enum):
    TAG = "tag"
    PROPERTY = "property"
    EXPRESSION = "expression"
    EXPRESSION_STRUCTURE = "expressionStructure"
    QUERY = "query"


class TransformKind(str, Enum):
    MAP = "map"
    FORMAT = "format"
    SCRIPT = "script"


def _enum_value(enum_cls, raw: Any, what: str):
    try:
        return enum_cls(raw)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ModelError(f"Unknown {what} '{raw}' (expected one of: {allowed})", exc)


@dataclass
class Transform:
    """Post-processing step applied to a bound value."""

    kind: TransformKind
    config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transform":
        if not isinstance(data, dict):
            raise ModelError("Transform must be an object")
        kind = _enum_value(TransformKind, data.get("type"), "transform type")
        config = data.get("config") or {}
        if not isinstance(config, dict):
            raise ModelError("Transform config must be an object")
        return cls(kind=kind, config=copy.deepcopy(config))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind.value, "config": copy.deepcopy(self.config)}


@dataclass
class Binding:
    """Declares how a property value is sourced instead of being a literal.

    Attributes
    ----------
    kind
        Binding source, see :class:`BindingKind`.
    config
        Kind-specific payload, e.g. ``{"tagPath": ..., "tagType": "direct"}``
        for tags or ``{"queryPath": ..., "params": {...}}`` for queries.
    transforms
        Ordered post-processing steps.
    bidirectional
        Whether writes flow back to the source.
    """

    kind: BindingKind
    config: Dict[str, Any] = field(default_factory=dict)
    transforms: List[Transform] = field(default_factory=list)
    bidirectional: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Binding":
        if not isinstance(data, dict):
            raise ModelError("Binding must be an object")
        kind = _enum_value(BindingKind, data.get("type"), "binding type")
        config = data.get("config") or {}
        if not isinstance(config, dict):
            raise ModelError("Binding config must be an object")
        raw_transforms = data.get("transforms") or []
        if not isinstance(raw_transforms, list):
            raise ModelError("Binding transforms must be an array")
        return cls(
            kind=kind,
            config=copy.deepcopy(config),
            transforms=[Transform.from_dict(t) for t in raw_transforms],
            bidirectional=bool(data.get("bidirectional", False)),
        )

    @classmethod
    def from_drop_payload(cls, payload: Dict[str, Any]) -> "Binding":
        """Build a binding from a tag/query browser drag-and-drop payload.

        Payloads look like ``{"type": "tag", "tagPath": "[default]Motor/Speed",
        "tagType": "direct"}`` or ``{"type": "query", "queryPath": "Sales/Daily",
        "parameters": ["start", "end"]}``. ``kind`` and ``path`` are accepted as
        shorthand for the type and the source path.
        """
        if not isinstance(payload, dict):
            raise ModelError("Drop payload must be an object")
        kind = payload.get("kind", payload.get("type"))
        path = payload.get("path")

        if kind == BindingKind.TAG.value:
            tag_path = payload.get("tagPath", path)
            if not tag_path:
                raise ModelError("Tag drop payload has no tag path")
            return cls(
                kind=BindingKind.TAG,
                config={"tagPath": tag_path, "tagType": payload.get("tagType") or "direct"},
            )

        if kind == BindingKind.QUERY.value:
            query_path = payload.get("queryPath", path)
            if not query_path:
                raise ModelError("Query drop payload has no query path")
            params: Dict[str, Any] = {}
            for param in payload.get("parameters") or []:
                name = param.get("name") if isinstance(param, dict) else param
                if name:
                    params[str(name)] = None
            if isinstance(payload.get("params"), dict):
                params.update(payload["params"])
            config: Dict[str, Any] = {"queryPath": query_path, "params": params}
            if payload.get("queryName"):
                config["queryName"] = payload["queryName"]
            return cls(kind=BindingKind.QUERY, config=config)

        raise ModelError(f"Unsupported drop payload kind '{kind}'")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.kind.value,
            "config": copy.deepcopy(self.config),
            "bidirectional": self.bidirectional,
        }
        if self.transforms:
            data["transforms"] = [t.to_dict() for t in self.transforms]
        return data


@dataclass
class Layout:
    """Absolute position and size in abstract length units.

    Individual fields may be missing in stored views; consumers that need a
    number treat a missing field as 0.
    """

    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Layout":
        if not isinstance(data, dict):
            raise ModelError("Layout must be an object")
        values: Dict[str, Any] = {}
        for name in LAYOUT_FIELDS:
            raw = data.get(name)
            if raw is not None and (isinstance(raw, bool) or not isinstance(raw, (int, float))
                                    or not math.isfinite(raw)):
                raise ModelError(f"Layout field '{name}' must be a finite number")
            values[name] = raw
        extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in LAYOUT_FIELDS}
        return cls(extra=extra, **values)

    def value(self, name: str) -> float:
        """Numeric value of a layout field, 0 when absent."""
        raw = getattr(self, name)
        return raw if raw is not None else 0

    def to_dict(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in LAYOUT_FIELDS if getattr(self, name) is not None}
        data.update(copy.deepcopy(self.extra))
        return data


@dataclass
class Node:
    """One element of the component tree.

    ``children`` is None when the stored node has no ``children`` key at all;
    an empty list marks a container that currently holds nothing.
    """

    component_type: str
    properties: Dict[str, Any] = field(default_factory=dict)
    layout: Optional[Layout] = None
    bindings: Optional[Dict[str, Binding]] = None
    children: Optional[List["Node"]] = None
    name: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = ("type", "props", "layout", "bindings", "children", "meta")

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def clone(self) -> "Node":
        """Deep copy sharing no mutable state with the original."""
        return copy.deepcopy(self)

    def iter_nodes(self):
        """Yield this node and all descendants depth-first (pre-order)."""
        yield self
        for child in self.children or []:
            yield from child.iter_nodes()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        if not isinstance(data, dict):
            raise ModelError("Component must be an object")
        component_type = data.get("type")
        if not isinstance(component_type, str) or not component_type.strip():
            raise ModelError("Component is missing a non-empty 'type'")

        props = data.get("props")
        if props is None:
            props = {}
        if not isinstance(props, dict):
            raise ModelError(f"Component '{component_type}' props must be an object")

        layout = Layout.from_dict(data["layout"]) if data.get("layout") is not None else None

        bindings = None
        if data.get("bindings") is not None:
            raw_bindings = data["bindings"]
            if not isinstance(raw_bindings, dict):
                raise ModelError(f"Component '{component_type}' bindings must be an object")
            bindings = {name: Binding.from_dict(b) for name, b in raw_bindings.items()}

        children = None
        if "children" in data and data["children"] is not None:
            raw_children = data["children"]
            if not isinstance(raw_children, list):
                raise ModelError(f"Component '{component_type}' children must be an array")
            children = [cls.from_dict(child) for child in raw_children]

        meta = data.get("meta") or {}
        if not isinstance(meta, dict):
            raise ModelError(f"Component '{component_type}' meta must be an object")
        meta = copy.deepcopy(meta)
        name = meta.pop("name", None)

        extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in cls._KNOWN_KEYS}
        return cls(
            component_type=component_type,
            properties=copy.deepcopy(props),
            layout=layout,
            bindings=bindings,
            children=children,
            name=name,
            meta=meta,
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.component_type}
        meta = copy.deepcopy(self.meta)
        if self.name is not None:
            meta["name"] = self.name
        if meta:
            data["meta"] = meta
        if self.properties:
            data["props"] = copy.deepcopy(self.properties)
        if self.layout is not None:
            data["layout"] = self.layout.to_dict()
        if self.bindings:
            data["bindings"] = {name: b.to_dict() for name, b in self.bindings.items()}
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        data.update(copy.deepcopy(self.extra))
        return data


@dataclass
class ViewDocument:
    """The full editable artifact: a component tree plus view-level mappings.

    Attributes
    ----------
    root
        Root component; always present.
    params
        View parameters, opaque to the core.
    custom
        Custom view properties, opaque to the core.
    extra
        Any other top-level keys of the stored view.
    """

    root: Node
    params: Dict[str, Any] = field(default_factory=dict)
    custom: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def clone(self) -> "ViewDocument":
        return copy.deepcopy(self)

    def resolve(self, path: PathLike) -> Optional[Node]:
        return resolve(self.root, path)

    def node_count(self) -> int:
        return sum(1 for _ in self.root.iter_nodes())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewDocument":
        """Build a document from the view ``content`` object."""
        if not isinstance(data, dict):
            raise ModelError("View content must be an object")
        if data.get("root") is None:
            raise ModelError("View must have a root component")
        params = data.get("params") or {}
        custom = data.get("custom") or {}
        if not isinstance(params, dict) or not isinstance(custom, dict):
            raise ModelError("View params and custom must be objects")
        extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in ("root", "params", "custom")}
        return cls(
            root=Node.from_dict(data["root"]),
            params=copy.deepcopy(params),
            custom=copy.deepcopy(custom),
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"root": self.root.to_dict()}
        if self.params:
            data["params"] = copy.deepcopy(self.params)
        if self.custom:
            data["custom"] = copy.deepcopy(self.custom)
        data.update(copy.deepcopy(self.extra))
        return data

    @classmethod
    def from_view_json(cls, envelope: Dict[str, Any]) -> "ViewDocument":
        """Build a document from the ``{"content": {...}}`` interchange envelope."""
        if not isinstance(envelope, dict) or "content" not in envelope:
            raise ModelError("Missing 'content' field in view payload")
        return cls.from_dict(envelope["content"])

    def to_view_json(self) -> Dict[str, Any]:
        return {"content": self.to_dict()}
