"""Tree data structures shared by the traversal modules.

``NodeInfo`` is the positional record every traversal hands to callbacks and
returns to callers. ``TreeNode`` is an immutable node record for callers that
prefer frozen objects over dicts, with ``RecordAccess`` as its access
contract. The structure queries at the bottom work on any representation.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from .access import (
    CHILDREN,
    DICT_ACCESS,
    EXPANDED,
    ChildrenState,
    Deferred,
    NodeAccess,
    children_state,
)


@dataclass(frozen=True)
class NodeInfo:
    """A node together with its position in the visible ordering.

    Attributes:
        node: The node itself.
        path: Keys from the first root level down to ``node`` (inclusive).
        lower_sibling_counts: Per path level, how many siblings follow the
            ancestor at that level.
        tree_index: Pre-order visible index of ``node``.
        parent_node: Parent of ``node``, or None for roots.
    """

    node: Any
    path: list[Any]
    lower_sibling_counts: list[int]
    tree_index: int
    parent_node: Any = None


@dataclass(frozen=True)
class TreeNode:
    """Immutable node record.

    Attributes:
        data: Payload fields, preserved verbatim by every operation.
        children: None for a leaf, a tuple of nodes, or a ``Deferred`` marker.
        expanded: True opens the node; False and None both keep it collapsed.

    Records hash by structure only; ``data`` takes part in equality but not
    in the hash.
    """

    data: Mapping[str, Any] = field(default_factory=dict, hash=False)
    children: tuple[TreeNode, ...] | Deferred | None = None
    expanded: bool | None = None

    @property
    def is_leaf(self) -> bool:
        """True if this node has no materialized children."""
        if children_state(self.children) is not ChildrenState.MATERIALIZED:
            return True
        return len(self.children) == 0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> TreeNode:
        """Build a record tree from nested dicts."""
        payload = {k: v for k, v in raw.items() if k not in (CHILDREN, EXPANDED)}
        children = raw.get(CHILDREN)
        if children_state(children) is ChildrenState.MATERIALIZED:
            children = tuple(cls.from_dict(c) for c in children)
        return cls(data=payload, children=children, expanded=raw.get(EXPANDED))


class RecordAccess:
    """Access contract for ``TreeNode`` records."""

    def get(self, node: TreeNode, field: str) -> Any:
        if field == CHILDREN:
            return node.children
        if field == EXPANDED:
            return node.expanded
        return node.data.get(field)

    def set(self, node: TreeNode, field: str | None = None, value: Any = None) -> TreeNode:
        if field is None:
            return replace(node)
        if field == CHILDREN:
            if children_state(value) is ChildrenState.MATERIALIZED:
                value = tuple(value)
            return replace(node, children=value)
        if field == EXPANDED:
            return replace(node, expanded=value)
        return replace(node, data={**node.data, field: value})

    def empty(self) -> TreeNode:
        return TreeNode()


RECORD_ACCESS = RecordAccess()


def get_depth(node: Any, access: NodeAccess = DICT_ACCESS, depth: int = 0) -> int:
    """Maximum depth below ``node``, counting ``node`` itself as ``depth``.

    Deferred children count as exactly one level below their parent.
    """
    children = access.get(node, CHILDREN)
    state = children_state(children)
    if state is ChildrenState.ABSENT:
        return depth
    if state is ChildrenState.DEFERRED:
        return depth + 1
    return max((get_depth(child, access, depth + 1) for child in children), default=depth)


def is_descendant(older: Any, younger: Any, access: NodeAccess = DICT_ACCESS) -> bool:
    """True if ``younger`` is (by identity) somewhere in ``older``'s subtree."""
    children = access.get(older, CHILDREN)
    if children_state(children) is not ChildrenState.MATERIALIZED:
        return False
    return any(child is younger or is_descendant(child, younger, access) for child in children)
