"""Tests for the node access contract."""

from treeindex.access import (
    DEFERRED,
    DICT_ACCESS,
    ChildrenState,
    Deferred,
    VirtualRoot,
    can_descend,
    children_of,
    children_state,
    with_children,
)


class TestChildrenState:
    def test_none_is_absent(self):
        assert children_state(None) is ChildrenState.ABSENT

    def test_list_is_materialized(self):
        assert children_state([]) is ChildrenState.MATERIALIZED
        assert children_state([{"id": 1}]) is ChildrenState.MATERIALIZED

    def test_tuple_is_materialized(self):
        assert children_state(()) is ChildrenState.MATERIALIZED

    def test_deferred_marker(self):
        assert children_state(DEFERRED) is ChildrenState.DEFERRED
        assert children_state(Deferred(loader="fetch-42")) is ChildrenState.DEFERRED


class TestDictAccess:
    def test_get_missing_field_is_none(self):
        assert DICT_ACCESS.get({"id": 1}, "children") is None

    def test_set_does_not_mutate(self):
        node = {"id": 1, "title": "x"}
        changed = DICT_ACCESS.set(node, "title", "y")
        assert node == {"id": 1, "title": "x"}
        assert changed == {"id": 1, "title": "y"}

    def test_set_without_field_copies(self):
        node = {"id": 1}
        copy = DICT_ACCESS.set(node)
        assert copy == node
        assert copy is not node

    def test_get_is_referentially_stable(self):
        children = [{"id": 2}]
        node = {"id": 1, "children": children}
        assert DICT_ACCESS.get(node, "children") is DICT_ACCESS.get(node, "children")

    def test_empty(self):
        assert DICT_ACCESS.empty() == {}


class TestVirtualRoot:
    def test_wraps_forest_without_copying(self):
        forest = [{"id": 1}]
        root = VirtualRoot.wrap(forest)
        assert children_of(DICT_ACCESS, root) is forest

    def test_wrap_none_gives_empty_children(self):
        root = VirtualRoot.wrap(None)
        assert children_of(DICT_ACCESS, root) == []

    def test_always_open(self):
        root = VirtualRoot.wrap([{"id": 1}])
        assert can_descend(DICT_ACCESS, root, ignore_collapsed=True)

    def test_with_children_keeps_root_type(self):
        root = VirtualRoot.wrap([{"id": 1}])
        replaced = with_children(DICT_ACCESS, root, [{"id": 2}])
        assert isinstance(replaced, VirtualRoot)
        assert children_of(DICT_ACCESS, replaced) == [{"id": 2}]
        assert children_of(DICT_ACCESS, root) == [{"id": 1}]


class TestCanDescend:
    def test_collapsed_node(self):
        node = {"children": [{"id": 1}]}
        assert not can_descend(DICT_ACCESS, node, ignore_collapsed=True)
        assert can_descend(DICT_ACCESS, node, ignore_collapsed=False)

    def test_expanded_false_is_collapsed(self):
        node = {"expanded": False, "children": [{"id": 1}]}
        assert not can_descend(DICT_ACCESS, node, ignore_collapsed=True)

    def test_expanded_node(self):
        node = {"expanded": True, "children": [{"id": 1}]}
        assert can_descend(DICT_ACCESS, node, ignore_collapsed=True)

    def test_deferred_never_descends(self):
        node = {"expanded": True, "children": DEFERRED}
        assert not can_descend(DICT_ACCESS, node, ignore_collapsed=True)
        assert not can_descend(DICT_ACCESS, node, ignore_collapsed=False)

    def test_leaf_never_descends(self):
        assert not can_descend(DICT_ACCESS, {"expanded": True}, ignore_collapsed=False)
