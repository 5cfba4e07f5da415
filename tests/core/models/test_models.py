import pytest

from view_designer.core.errors import ModelError
from view_designer.core.models import (
    Binding,
    BindingKind,
    Layout,
    Node,
    TransformKind,
    ViewDocument,
    is_json_value,
)


def test_document_round_trip_is_lossless(view_content):
    view_content["root"]["position"] = {"grow": 1}
    view_content["root"]["children"][0]["meta"]["hidden"] = True
    view_content["permissions"] = {"type": "AllOf"}

    doc = ViewDocument.from_dict(view_content)

    assert doc.to_dict() == view_content


def test_meta_name_is_lifted_onto_node(document):
    label = document.resolve("root.children[0]")
    assert label.name == "Label1"
    assert label.meta == {}
    assert label.component_type == "ia.display.label"
    assert label.properties == {"text": "Hello"}
    assert label.layout == Layout(x=10, y=20, width=100, height=30)


def test_children_key_presence_is_preserved(document):
    assert document.resolve("root.children[0]").children is None
    assert document.resolve("root.children[2]").children == []
    assert "children" not in document.resolve("root.children[0]").to_dict()
    assert document.resolve("root.children[2]").to_dict()["children"] == []


def test_node_count_and_iteration(document):
    assert document.node_count() == 4
    names = [n.name for n in document.root.iter_nodes()]
    assert names == ["root", "Label1", "Label2", "Panel"]


def test_clone_shares_no_state(document):
    copy = document.clone()
    copy.resolve("root.children[0]").properties["text"] = "Changed"
    copy.root.children.pop()

    assert document.resolve("root.children[0]").properties["text"] == "Hello"
    assert document.node_count() == 4


@pytest.mark.parametrize("data", [
    {"props": {}},
    {"type": ""},
    {"type": "   "},
    {"type": "ia.display.label", "props": []},
    {"type": "ia.display.label", "children": {}},
    {"type": "ia.display.label", "layout": {"x": "10"}},
    {"type": "ia.display.label", "layout": {"width": True}},
    "ia.display.label",
])
def test_node_from_dict_rejects_malformed_components(data):
    with pytest.raises(ModelError):
        Node.from_dict(data)


def test_view_requires_root():
    with pytest.raises(ModelError):
        ViewDocument.from_dict({"params": {}})


def test_view_json_envelope(view_content):
    doc = ViewDocument.from_view_json({"project": "Demo", "path": "Main", "content": view_content})
    assert doc.params == {"machineId": 3}
    assert doc.to_view_json() == {"content": doc.to_dict()}

    with pytest.raises(ModelError, match="content"):
        ViewDocument.from_view_json({"project": "Demo"})


def test_layout_value_defaults_missing_fields_to_zero():
    layout = Layout.from_dict({"width": 40})
    assert layout.value("x") == 0
    assert layout.value("width") == 40
    assert layout.to_dict() == {"width": 40}


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_layout_rejects_non_finite_numbers(value):
    with pytest.raises(ModelError, match="finite"):
        Layout.from_dict({"x": value, "width": 40})


def test_binding_from_dict_and_back():
    raw = {
        "type": "tag",
        "config": {"tagPath": "[default]Motor/Speed", "tagType": "direct"},
        "transforms": [{"type": "format", "config": {"format": "#,##0.0"}}],
        "bidirectional": True,
    }
    binding = Binding.from_dict(raw)

    assert binding.kind is BindingKind.TAG
    assert binding.transforms[0].kind is TransformKind.FORMAT
    assert binding.bidirectional is True
    assert binding.to_dict() == raw


def test_binding_without_transforms_omits_the_key():
    binding = Binding(kind=BindingKind.EXPRESSION, config={"expression": "now()"})
    assert binding.to_dict() == {
        "type": "expression",
        "config": {"expression": "now()"},
        "bidirectional": False,
    }


def test_binding_rejects_unknown_type():
    with pytest.raises(ModelError, match="binding type"):
        Binding.from_dict({"type": "http", "config": {}})


def test_tag_drop_payload_becomes_tag_binding():
    binding = Binding.from_drop_payload({
        "type": "tag",
        "tagPath": "[default]Motor/Speed",
        "tagType": "direct",
        "name": "Speed",
    })
    assert binding.kind is BindingKind.TAG
    assert binding.config == {"tagPath": "[default]Motor/Speed", "tagType": "direct"}


def test_tag_drop_payload_shorthand_defaults_to_direct():
    binding = Binding.from_drop_payload({"kind": "tag", "path": "[default]Tank/Level"})
    assert binding.config == {"tagPath": "[default]Tank/Level", "tagType": "direct"}


def test_query_drop_payload_lists_parameters():
    binding = Binding.from_drop_payload({
        "type": "query",
        "queryPath": "Sales/Daily",
        "queryName": "Daily",
        "parameters": [{"name": "start"}, "end"],
    })
    assert binding.kind is BindingKind.QUERY
    assert binding.config == {
        "queryPath": "Sales/Daily",
        "params": {"start": None, "end": None},
        "queryName": "Daily",
    }


@pytest.mark.parametrize("payload", [
    {"type": "component", "componentType": "ia.display.label"},
    {"type": "tag"},
    {"type": "query", "parameters": []},
    ["tag"],
])
def test_unusable_drop_payloads_raise(payload):
    with pytest.raises(ModelError):
        Binding.from_drop_payload(payload)


def test_is_json_value():
    assert is_json_value({"a": [1, 2.5, "x", None, True, {"b": []}]})
    assert not is_json_value((1, 2))
    assert not is_json_value({1, 2})
    assert not is_json_value({1: "a"})
    assert not is_json_value([object()])
