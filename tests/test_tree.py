"""Tests for node records, record access and structure queries."""

import pytest

from treeindex.access import DEFERRED, Deferred
from treeindex.insert import insert_node
from treeindex.keys import field_key
from treeindex.mapper import map_tree
from treeindex.paths import change_node_at_path
from treeindex.resolver import resolve, visible_count
from treeindex.search import find
from treeindex.tree import RECORD_ACCESS, NodeInfo, TreeNode, get_depth, is_descendant

RAW = [
    {
        "id": "a",
        "expanded": True,
        "children": [
            {"id": "a1"},
            {"id": "a2", "expanded": False, "children": [{"id": "a2x"}]},
        ],
    },
    {"id": "b", "children": [{"id": "b1"}]},
    {"id": "c", "expanded": True, "children": DEFERRED},
]


def make_records():
    return [TreeNode.from_dict(node) for node in RAW]


class TestGetDepth:
    def test_leaf(self):
        assert get_depth({"id": "x"}) == 0

    def test_nested(self):
        assert get_depth(RAW[0]) == 2
        assert get_depth(RAW[1]) == 1

    def test_deferred_counts_one_level(self):
        assert get_depth(RAW[2]) == 1

    def test_empty_children(self):
        assert get_depth({"children": []}) == 0

    def test_start_depth(self):
        assert get_depth(RAW[0], depth=3) == 5

    def test_records(self):
        assert get_depth(make_records()[0], RECORD_ACCESS) == 2


class TestIsDescendant:
    def test_direct_and_nested(self):
        a = RAW[0]
        assert is_descendant(a, a["children"][0])
        assert is_descendant(a, a["children"][1]["children"][0])

    def test_not_a_descendant(self):
        assert not is_descendant(RAW[0], RAW[1]["children"][0])

    def test_identity_not_equality(self):
        assert not is_descendant(RAW[0], {"id": "a1"})

    def test_node_is_not_its_own_descendant(self):
        assert not is_descendant(RAW[0], RAW[0])

    def test_deferred(self):
        assert not is_descendant(RAW[2], RAW[0])


class TestTreeNode:
    def test_from_dict(self):
        node = TreeNode.from_dict(RAW[0])
        assert node.data == {"id": "a"}
        assert node.expanded is True
        assert isinstance(node.children, tuple)
        assert node.children[1].expanded is False
        assert node.children[1].children[0].data == {"id": "a2x"}

    def test_deferred_kept(self):
        node = TreeNode.from_dict(RAW[2])
        assert isinstance(node.children, Deferred)
        assert node.is_leaf

    def test_is_leaf(self):
        assert TreeNode().is_leaf
        assert TreeNode(children=()).is_leaf
        assert not TreeNode(children=(TreeNode(),)).is_leaf

    def test_frozen(self):
        with pytest.raises(AttributeError):
            TreeNode().expanded = True

    def test_hashable(self):
        first = TreeNode.from_dict(RAW[0])
        second = TreeNode.from_dict(RAW[0])
        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second, TreeNode.from_dict(RAW[1])}) == 2


class TestRecordAccess:
    def test_get(self):
        node = TreeNode(data={"id": "x"}, expanded=True)
        assert RECORD_ACCESS.get(node, "id") == "x"
        assert RECORD_ACCESS.get(node, "expanded") is True
        assert RECORD_ACCESS.get(node, "children") is None
        assert RECORD_ACCESS.get(node, "missing") is None

    def test_set_returns_copies(self):
        node = TreeNode(data={"id": "x"})
        assert RECORD_ACCESS.set(node) == node
        assert RECORD_ACCESS.set(node) is not node
        assert RECORD_ACCESS.set(node, "expanded", True).expanded is True
        assert RECORD_ACCESS.set(node, "title", "t").data == {"id": "x", "title": "t"}
        assert node.data == {"id": "x"}

    def test_children_stored_as_tuple(self):
        node = RECORD_ACCESS.set(TreeNode(), "children", [TreeNode()])
        assert node.children == (TreeNode(),)

    def test_resolve_over_records(self):
        forest = make_records()
        assert visible_count(forest, RECORD_ACCESS) == 5
        info = resolve(forest, 2, access=RECORD_ACCESS, get_node_key=field_key("id", RECORD_ACCESS))
        assert isinstance(info, NodeInfo)
        assert info.node.data["id"] == "a2"
        assert info.path == ["a", "a2"]

    def test_change_over_records(self):
        forest = make_records()
        result = change_node_at_path(
            forest,
            ["a", "a1"],
            lambda node, tree_index: RECORD_ACCESS.set(node, "title", "first"),
            get_node_key=field_key("id", RECORD_ACCESS),
            access=RECORD_ACCESS,
        )
        assert isinstance(result[0].children, tuple)
        assert result[0].children[0].data == {"id": "a1", "title": "first"}
        assert result[0].children[1] is forest[0].children[1]
        assert result[1] is forest[1]
        assert forest[0].children[0].data == {"id": "a1"}

    def test_unchanged_forest_is_returned_as_is(self):
        forest = make_records()
        by_id = field_key("id", RECORD_ACCESS)

        changed = change_node_at_path(forest, [0], lambda node, tree_index: node, access=RECORD_ACCESS)
        assert changed is forest

        changed = change_node_at_path(
            forest, ["a", "a2"], lambda node, tree_index: node, get_node_key=by_id, access=RECORD_ACCESS
        )
        assert changed is forest

        assert map_tree(forest, lambda info: info.node, access=RECORD_ACCESS) is forest
        assert find(forest, lambda node, path, tree_index: False, access=RECORD_ACCESS).forest is forest

    def test_insert_over_records(self):
        forest = make_records()
        new = TreeNode(data={"id": "new"})
        result = insert_node(forest, 1, 2, new, get_node_key=field_key("id", RECORD_ACCESS), access=RECORD_ACCESS)

        assert isinstance(result.forest[0].children, tuple)
        assert [c.data["id"] for c in result.forest[0].children] == ["a1", "new", "a2"]
        assert result.tree_index == 2
        assert result.path == ["a", "new"]
        assert result.forest[1] is forest[1]
        assert resolve(result.forest, 2, access=RECORD_ACCESS).node is new

    def test_search_over_records(self):
        forest = make_records()
        result = find(
            forest,
            lambda node, path, tree_index: node.data.get("id") == "a2x",
            focus_offset=0,
            get_node_key=field_key("id", RECORD_ACCESS),
            access=RECORD_ACCESS,
        )

        assert [m.path for m in result.matches] == [["a", "a2", "a2x"]]
        assert result.matches[0].tree_index == 3
        assert result.forest[0].children[1].expanded is True
        assert result.forest[1] is forest[1]
        assert resolve(result.forest, 3, access=RECORD_ACCESS).node.data["id"] == "a2x"
