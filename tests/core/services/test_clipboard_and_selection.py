from view_designer.core.models import Node, NodePath
from view_designer.core.services.clipboard_service import ClipboardService
from view_designer.core.services.selection_service import SelectionModel

A = NodePath((0,))
B = NodePath((1,))
C = NodePath((2,))


# ---------------------------
# Selection
# ---------------------------

def test_select_replaces_selection():
    selection = SelectionModel()
    selection.toggle(A)
    selection.toggle(B)

    selection.select(C)

    assert selection.paths == [C]
    assert selection.primary == C


def test_toggle_adds_as_primary_and_removes():
    selection = SelectionModel()
    assert selection.toggle(A) is True
    assert selection.toggle(B) is True
    assert selection.paths == [A, B]
    assert selection.primary == B

    assert selection.toggle(B) is False
    assert selection.paths == [A]
    assert selection.primary == A

    assert selection.toggle(A) is False
    assert selection.is_empty
    assert selection.primary is None


def test_removing_a_member_makes_first_remaining_primary():
    selection = SelectionModel()
    for path in (A, B, C):
        selection.toggle(path)

    selection.toggle(A)

    assert selection.primary == B
    assert selection.paths == [B, C]
    assert selection.contains(B)
    assert not selection.contains(A)


def test_clear():
    selection = SelectionModel()
    selection.select(A)
    selection.clear()
    assert selection.is_empty
    assert selection.primary is None


def test_prune_drops_paths_and_repairs_primary():
    selection = SelectionModel()
    for path in (A, B, C):
        selection.toggle(path)

    dropped = selection.prune(lambda p: p != C)

    assert dropped == [C]
    assert selection.paths == [A, B]
    assert selection.primary == A
    assert selection.prune(lambda p: True) == []


def test_snapshot_uses_text_paths():
    selection = SelectionModel()
    assert selection.snapshot() == {"paths": [], "primary": None}
    selection.toggle(A)
    selection.toggle(NodePath((1, 0)))
    assert selection.snapshot() == {
        "paths": ["root.children[0]", "root.children[1].children[0]"],
        "primary": "root.children[1].children[0]",
    }


def test_paths_property_returns_a_copy():
    selection = SelectionModel()
    selection.select(A)
    selection.paths.append(B)
    assert selection.paths == [A]


# ---------------------------
# Clipboard
# ---------------------------

def test_clipboard_starts_empty():
    clipboard = ClipboardService()
    assert clipboard.is_empty
    assert clipboard.peek() is None


def test_clipboard_stores_and_returns_independent_clones():
    clipboard = ClipboardService()
    node = Node("ia.display.label", properties={"text": "Hello"})
    clipboard.store(node)

    node.properties["text"] = "changed after copy"
    first = clipboard.peek()
    first.properties["text"] = "changed after paste"

    assert clipboard.peek().properties == {"text": "Hello"}
    assert clipboard.peek() is not clipboard.peek()


def test_clipboard_store_overwrites():
    clipboard = ClipboardService()
    clipboard.store(Node("ia.display.label"))
    clipboard.store(Node("ia.input.button"))
    assert clipboard.peek().component_type == "ia.input.button"
