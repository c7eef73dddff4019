"""treeindex -- collapse-aware indexing and editing of ordered forests.

A forest is an ordered sequence of root nodes. Nodes may hide their
children (``expanded`` not True) or defer them to an external loader. The
package numbers the nodes a collapse-aware view would show (the tree index),
resolves and walks that numbering, and edits forests by path, by depth and
index, or through search, always returning new forests that share every
untouched subtree with the input.

Node representation is pluggable through the ``NodeAccess`` contract; plain
dicts work out of the box.
"""

from .access import DEFERRED, DICT_ACCESS, ChildrenState, Deferred, DictAccess, NodeAccess
from .errors import (
    InvalidChildrenReference,
    LazyChildrenMutation,
    NoInsertionPosition,
    PathResolutionMiss,
    TreeDataError,
)
from .flat import flatten, unflatten
from .insert import InsertResult, add_node_under_parent, insert_node
from .keys import field_key, tree_index_key
from .mapper import map_tree, toggle_expanded_for_all
from .paths import (
    FoundNode,
    change_node_at_path,
    find_node_at_path,
    get_node_at_path,
    remove_node_at_path,
)
from .resolver import descendant_count, iter_visible, resolve, visible_count
from .search import SearchMatch, SearchResult, find, query_predicate
from .tree import RECORD_ACCESS, NodeInfo, RecordAccess, TreeNode, get_depth, is_descendant
from .walker import STOP, walk

__all__ = [
    "DEFERRED",
    "DICT_ACCESS",
    "RECORD_ACCESS",
    "STOP",
    "ChildrenState",
    "Deferred",
    "DictAccess",
    "FoundNode",
    "InsertResult",
    "InvalidChildrenReference",
    "LazyChildrenMutation",
    "NoInsertionPosition",
    "NodeAccess",
    "NodeInfo",
    "PathResolutionMiss",
    "RecordAccess",
    "SearchMatch",
    "SearchResult",
    "TreeDataError",
    "TreeNode",
    "add_node_under_parent",
    "change_node_at_path",
    "descendant_count",
    "field_key",
    "find",
    "find_node_at_path",
    "flatten",
    "get_depth",
    "get_node_at_path",
    "insert_node",
    "is_descendant",
    "iter_visible",
    "map_tree",
    "query_predicate",
    "remove_node_at_path",
    "resolve",
    "toggle_expanded_for_all",
    "tree_index_key",
    "unflatten",
    "visible_count",
    "walk",
]
