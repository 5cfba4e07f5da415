from __future__ import annotations

"""Structural validation of view content before it is saved.

Works on raw ``content`` mappings (as loaded from JSON) as well as on
:class:`ViewDocument` instances, and reports problems instead of raising.
Errors make a view unsaveable; warnings are advisory (e.g. duplicate component
names, non-standard component types).

Limits default to the values used by the Gateway and can be overridden from the
``validation`` configuration section.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from view_designer.core.models import ViewDocument

__all__ = [
    "ValidationResult",
    "ViewValidator",
    "validate_view",
    "is_valid_component_type",
    "sanitize_component_name",
    "validate_property_value",
    "find_duplicate_names",
]

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_INVALID_NAME_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]")

DEFAULT_LIMITS: Dict[str, int] = {
    "max_nesting_depth": 20,
    "max_component_count": 500,
    "max_name_length": 100,
    "min_size": 1,
    "max_size": 10000,
}


@dataclass
class ValidationResult:
    """Outcome of validating a view."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


class ViewValidator:
    """Validates view structure, component hierarchy and layout values."""

    def __init__(self, limits: Optional[Dict[str, Any]] = None) -> None:
        merged = dict(DEFAULT_LIMITS)
        for key, value in (limits or {}).items():
            if key in merged and isinstance(value, int) and not isinstance(value, bool):
                merged[key] = value
        self.limits = merged

    def validate(self, view: Union[ViewDocument, Dict[str, Any], None]) -> ValidationResult:
        result = ValidationResult()
        if view is None:
            result.errors.append("View cannot be null")
            return result
        if isinstance(view, ViewDocument):
            view = view.to_dict()
        if not isinstance(view, dict):
            result.errors.append("View must be an object")
            return result
        if not view.get("root"):
            result.errors.append("View must have a root component")
            return result

        names: Set[str] = set()
        count = self._validate_component(view["root"], 0, names, result)

        max_count = self.limits["max_component_count"]
        if count > max_count:
            result.errors.append(f"Too many components ({count}). Maximum allowed: {max_count}")

        if result.errors:
            logger.info("View validation failed: %d error(s), %d warning(s)", len(result.errors), len(result.warnings))
        elif result.warnings:
            logger.debug("View validation passed with %d warning(s)", len(result.warnings))
        return result

    def _validate_component(self, component: Any, depth: int, names: Set[str], result: ValidationResult) -> int:
        """Validate one component and its subtree; return the number of components seen."""
        max_depth = self.limits["max_nesting_depth"]
        if depth > max_depth:
            result.errors.append(f"Component nesting too deep (depth: {depth}). Maximum allowed: {max_depth}")
            return 1

        if not isinstance(component, dict):
            result.errors.append(f"Component at depth {depth} is not an object")
            return 1

        ctype = component.get("type")
        if ctype is None or ctype == "":
            result.errors.append(f"Component at depth {depth} missing required field: type")
            return 1
        if not isinstance(ctype, str) or not ctype.strip():
            result.errors.append(f"Component at depth {depth} has invalid type")
            return 1
        if not is_valid_component_type(ctype):
            result.warnings.append(f"Component type '{ctype}' does not follow standard format (namespace.category.name)")

        meta = component.get("meta")
        if isinstance(meta, dict) and meta.get("name"):
            self._validate_name(meta["name"], names, result)

        count = 1
        children = component.get("children")
        if children is not None:
            if not isinstance(children, list):
                result.errors.append(f"Component '{ctype}' has invalid children (must be array)")
            else:
                for index, child in enumerate(children):
                    if not isinstance(child, dict):
                        result.errors.append(f"Child {index} of component '{ctype}' is not an object")
                    else:
                        count += self._validate_component(child, depth + 1, names, result)

        if component.get("layout"):
            self._validate_layout(component["layout"], ctype, result)

        props = component.get("props")
        if props is not None and not isinstance(props, dict):
            result.warnings.append(f"Component '{ctype}' has invalid props (expected object)")
        return count

    def _validate_name(self, name: Any, names: Set[str], result: ValidationResult) -> None:
        if not isinstance(name, str):
            result.warnings.append(f"Component name must be a string, got {type(name).__name__}")
            return
        max_len = self.limits["max_name_length"]
        if len(name) > max_len:
            result.errors.append(f"Component name '{name}' exceeds maximum length ({max_len})")
        if name in names:
            result.warnings.append(f"Duplicate component name: {name}")
        else:
            names.add(name)
        if not _NAME_RE.match(name):
            result.warnings.append(
                f"Component name '{name}' contains invalid characters. "
                "Use only letters, numbers, underscores, and hyphens."
            )

    def _validate_layout(self, layout: Any, ctype: str, result: ValidationResult) -> None:
        if not isinstance(layout, dict):
            result.warnings.append(f"Component '{ctype}' has invalid layout (must be object)")
            return
        min_size = self.limits["min_size"]
        max_size = self.limits["max_size"]
        for name in ("x", "y", "width", "height"):
            if name not in layout:
                continue
            value = layout[name]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value:
                result.warnings.append(f"Component '{ctype}' layout.{name} must be a number")
                continue
            if name in ("width", "height") and value < min_size:
                result.warnings.append(f"Component '{ctype}' has invalid {name}: {value} (minimum: {min_size})")
            if value > max_size:
                result.warnings.append(f"Component '{ctype}' layout.{name} exceeds maximum ({max_size})")


def validate_view(view: Union[ViewDocument, Dict[str, Any], None], limits: Optional[Dict[str, Any]] = None) -> ValidationResult:
    """Validate *view* with default (or overridden) limits."""
    return ViewValidator(limits).validate(view)


def is_valid_component_type(component_type: Any) -> bool:
    """Component types follow ``namespace.category.name`` (at least one dot)."""
    if not isinstance(component_type, str) or not component_type.strip():
        return False
    return len(component_type.split(".")) >= 2


def sanitize_component_name(name: Optional[str], max_length: int = DEFAULT_LIMITS["max_name_length"]) -> str:
    """Replace characters outside ``[A-Za-z0-9_-]`` with underscores and truncate."""
    if not name:
        return ""
    return _INVALID_NAME_CHARS_RE.sub("_", name)[:max_length]


_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool) and v == v,
    "boolean": lambda v: isinstance(v, bool),
    "object": lambda v: isinstance(v, dict),
    "array": lambda v: isinstance(v, list),
}
_TYPE_ALIASES = {
    "string": "string",
    "number": "number", "int": "number", "integer": "number", "float": "number", "double": "number",
    "boolean": "boolean", "bool": "boolean",
    "object": "object",
    "array": "array",
}


def validate_property_value(value: Any, expected_type: Optional[str] = None) -> Dict[str, Any]:
    """Check *value* against a catalog type name.

    Returns ``{"valid": True}`` or ``{"valid": False, "error": "..."}``. None
    is always accepted, as are unknown or missing expected types.
    """
    if value is None or not expected_type:
        return {"valid": True}
    canonical = _TYPE_ALIASES.get(expected_type.lower())
    if canonical is None:
        return {"valid": True}
    if not _TYPE_CHECKS[canonical](value):
        return {"valid": False, "error": f"Expected {canonical}, got {type(value).__name__}"}
    return {"valid": True}


def find_duplicate_names(document: ViewDocument) -> List[str]:
    """Names used by more than one node, in first-seen order."""
    seen: Set[str] = set()
    duplicates: List[str] = []
    for node in document.root.iter_nodes():
        if not node.name:
            continue
        if node.name in seen and node.name not in duplicates:
            duplicates.append(node.name)
        seen.add(node.name)
    return duplicates
