import pytest

from view_designer.core.models import ViewDocument
from view_designer.core.services.validation_service import (
    ViewValidator,
    find_duplicate_names,
    is_valid_component_type,
    sanitize_component_name,
    validate_property_value,
    validate_view,
)


def _label(name=None, **extra):
    node = {"type": "ia.display.label"}
    if name is not None:
        node["meta"] = {"name": name}
    node.update(extra)
    return node


def _chain(depth):
    """Root plus *depth* nested containers."""
    node = {"type": "ia.container.flex", "children": []}
    root = node
    for _ in range(depth):
        child = {"type": "ia.container.flex", "children": []}
        node["children"].append(child)
        node = child
    return {"root": root}


def test_sample_view_is_valid(document):
    result = validate_view(document)
    assert result.valid
    assert result.errors == []
    assert result.warnings == []


@pytest.mark.parametrize("view, message", [
    (None, "View cannot be null"),
    ([], "View must be an object"),
    ({}, "View must have a root component"),
    ({"root": {"props": {}}}, "missing required field: type"),
    ({"root": {"type": 5}}, "invalid type"),
])
def test_structural_errors(view, message):
    result = validate_view(view)
    assert not result.valid
    assert any(message in e for e in result.errors)


def test_type_without_namespace_is_a_warning():
    result = validate_view({"root": {"type": "label"}})
    assert result.valid
    assert result.warnings == ["Component type 'label' does not follow standard format (namespace.category.name)"]


def test_depth_limit():
    assert validate_view(_chain(20)).valid
    result = validate_view(_chain(21))
    assert not result.valid
    assert "nesting too deep" in result.errors[0]


def test_component_count_limit():
    view = {"root": {"type": "ia.container.coord", "children": [_label() for _ in range(500)]}}
    result = validate_view(view)
    assert not result.valid
    assert result.errors == ["Too many components (501). Maximum allowed: 500"]

    view["root"]["children"].pop()
    assert validate_view(view).valid


def test_limits_can_be_overridden():
    validator = ViewValidator({"max_component_count": 2, "unknown": 1, "max_size": "big"})
    assert validator.limits["max_component_count"] == 2
    assert validator.limits["max_size"] == 10000
    view = {"root": {"type": "ia.container.coord", "children": [_label(), _label()]}}
    assert not validator.validate(view).valid


def test_names():
    view = {"root": {"type": "ia.container.coord", "children": [
        _label("Motor"),
        _label("Motor"),
        _label("Motor Speed"),
        _label("x" * 101),
    ]}}
    result = validate_view(view)

    assert result.errors == [f"Component name '{'x' * 101}' exceeds maximum length (100)"]
    assert "Duplicate component name: Motor" in result.warnings
    assert any("Motor Speed" in w and "invalid characters" in w for w in result.warnings)


def test_children_and_props_shapes():
    result = validate_view({"root": {"type": "ia.container.coord", "children": {"a": 1}}})
    assert result.errors == ["Component 'ia.container.coord' has invalid children (must be array)"]

    result = validate_view({"root": {"type": "ia.container.coord", "children": ["label"]}})
    assert result.errors == ["Child 0 of component 'ia.container.coord' is not an object"]

    result = validate_view({"root": {"type": "ia.container.coord", "props": "x"}})
    assert result.valid
    assert result.warnings == ["Component 'ia.container.coord' has invalid props (expected object)"]


def test_layout_warnings():
    view = {"root": {"type": "ia.container.coord", "children": [
        _label(layout={"x": "ten", "y": 0, "width": 0, "height": 20000}),
    ]}}
    result = validate_view(view)

    assert result.valid
    assert result.warnings == [
        "Component 'ia.display.label' layout.x must be a number",
        "Component 'ia.display.label' has invalid width: 0 (minimum: 1)",
        "Component 'ia.display.label' layout.height exceeds maximum (10000)",
    ]


def test_is_valid_component_type():
    assert is_valid_component_type("ia.display.label")
    assert is_valid_component_type("custom.widget")
    assert not is_valid_component_type("label")
    assert not is_valid_component_type("")
    assert not is_valid_component_type(None)


def test_sanitize_component_name():
    assert sanitize_component_name("Motor Speed #1") == "Motor_Speed__1"
    assert sanitize_component_name("a" * 150) == "a" * 100
    assert sanitize_component_name(None) == ""


@pytest.mark.parametrize("value, expected_type, valid", [
    ("x", "string", True),
    (5, "string", False),
    (5, "integer", True),
    (True, "number", False),
    (True, "bool", True),
    ({}, "object", True),
    ([], "object", False),
    ([], "array", True),
    (None, "string", True),
    ("anything", "color", True),
    ("anything", None, True),
])
def test_validate_property_value(value, expected_type, valid):
    result = validate_property_value(value, expected_type)
    assert result["valid"] is valid
    assert ("error" in result) is (not valid)


def test_find_duplicate_names():
    doc = ViewDocument.from_dict({"root": {"type": "ia.container.coord", "meta": {"name": "A"}, "children": [
        _label("A"), _label("B"), _label("B"), _label("B"), _label(),
    ]}})
    assert find_duplicate_names(doc) == ["A", "B"]
