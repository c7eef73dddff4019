"""Node insertion by depth and minimum tree index, or under a keyed parent.

``insert_node`` answers "put this node at depth D, no earlier than visible
index I": it walks the visible forest in pre-order looking for the first
parent at depth D - 1 that can take the node at an index >= I.

For each candidate parent (a node at depth ``depth - 1``; the pseudo-root
when ``depth`` is 0):

1. If its own index is already >= ``minimum_index - 1``, or it is the very
   last node of the forest and has no children, the new node becomes its
   first child.
2. Otherwise its children are scanned, skipping whole visible subtrees, for
   the first slot whose index is >= ``minimum_index``. If none qualifies the
   node is appended, but only when this is the last candidate branch;
   otherwise the search moves on.

Collapsed and deferred subtrees are never searched. The pseudo-root is
always open.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import structlog

from .access import (
    CHILDREN,
    DICT_ACCESS,
    EXPANDED,
    ChildrenState,
    NodeAccess,
    VirtualRoot,
    can_descend,
    children_of,
    children_state,
    with_children,
)
from .errors import LazyChildrenMutation, NoInsertionPosition, PathResolutionMiss
from .keys import KeyFunc, tree_index_key
from .mapper import map_tree
from .resolver import descendant_count
from .tree import NodeInfo

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InsertResult:
    """Outcome of an insertion.

    Attributes:
        forest: The forest with the node added.
        tree_index: Visible index the new node landed on.
        path: Keys leading to the new node after insertion.
        parent_node: The new node's parent (after insertion), None for roots.
    """

    forest: Sequence[Any]
    tree_index: int
    path: list[Any]
    parent_node: Any


@dataclass
class _Step:
    node: Any
    next_index: int
    inserted_index: int | None = None
    parent_path: list[Any] | None = None
    parent_node: Any = None


@dataclass(frozen=True)
class _Target:
    depth: int
    minimum_index: int
    new_node: Any
    get_node_key: KeyFunc
    access: NodeAccess
    ignore_collapsed: bool
    expand_parent: bool


def _inserted(node: Any, tree_index: int, target: _Target, next_index: int, inserted_index: int) -> _Step:
    """Build the step for a parent that just received the new node."""
    if isinstance(node, VirtualRoot):
        return _Step(node, next_index, inserted_index, [], None)
    return _Step(
        node,
        next_index,
        inserted_index,
        [target.get_node_key(node, tree_index)],
        node,
    )


def _open(node: Any, target: _Target) -> Any:
    if target.expand_parent and not isinstance(node, VirtualRoot):
        return target.access.set(node, EXPANDED, True)
    return node


def _add_at_depth_and_index(
    node: Any,
    current_index: int,
    current_depth: int,
    is_last_child: bool,
    target: _Target,
) -> _Step:
    access = target.access
    children = children_of(access, node)
    state = children_state(children)
    is_root = isinstance(node, VirtualRoot)

    if current_depth >= target.depth - 1:
        has_no_children = state is ChildrenState.ABSENT or (
            state is ChildrenState.MATERIALIZED and len(children) == 0
        )
        if current_index >= target.minimum_index - 1 or (is_last_child and has_no_children):
            if state is ChildrenState.DEFERRED:
                path = [] if is_root else [target.get_node_key(node, current_index)]
                raise LazyChildrenMutation(path)
            existing = list(children) if state is ChildrenState.MATERIALIZED else []
            parent = with_children(access, _open(node, target), [target.new_node, *existing])
            return _inserted(parent, current_index, target, current_index + 2, current_index + 1)

        if not can_descend(access, node, target.ignore_collapsed):
            return _Step(node, current_index + 1)

        child_index = current_index + 1
        insert_at = None
        for i, child in enumerate(children):
            if child_index >= target.minimum_index:
                insert_at = i
                break
            child_index += 1 + descendant_count(child, access, target.ignore_collapsed)

        if insert_at is None:
            if child_index < target.minimum_index and not is_last_child:
                return _Step(node, child_index)
            insert_at = len(children)

        parent = with_children(
            access,
            _open(node, target),
            [*children[:insert_at], target.new_node, *children[insert_at:]],
        )
        return _inserted(parent, current_index, target, child_index, child_index)

    if not can_descend(access, node, target.ignore_collapsed):
        return _Step(node, current_index + 1)

    child_index = current_index + 1
    last = len(children) - 1
    new_children = list(children)
    found: _Step | None = None
    for i, child in enumerate(children):
        step = _add_at_depth_and_index(
            child,
            child_index,
            current_depth + 1,
            is_last_child and i == last,
            target,
        )
        child_index = step.next_index
        if step.inserted_index is not None:
            new_children[i] = step.node
            found = step
            break

    if found is None:
        return _Step(node, child_index)

    parent = with_children(access, node, new_children)
    prefix = [] if is_root else [target.get_node_key(parent, current_index)]
    return _Step(
        parent,
        child_index,
        found.inserted_index,
        [*prefix, *found.parent_path],
        found.parent_node,
    )


def insert_node(
    forest: Sequence[Any] | None,
    depth: int,
    minimum_index: int,
    new_node: Any,
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
    expand_parent: bool = False,
) -> InsertResult:
    """Insert ``new_node`` at ``depth`` (roots are depth 0), no earlier than ``minimum_index``.

    Raises:
        NoInsertionPosition: If ``depth`` is negative or no parent at
            ``depth - 1`` can take the node.
        LazyChildrenMutation: If the chosen parent's children are deferred.
    """
    if depth < 0:
        raise NoInsertionPosition(depth, minimum_index)

    target = _Target(
        depth=depth,
        minimum_index=minimum_index,
        new_node=new_node,
        get_node_key=get_node_key,
        access=access,
        ignore_collapsed=ignore_collapsed,
        expand_parent=expand_parent,
    )
    step = _add_at_depth_and_index(VirtualRoot.wrap(forest), -1, -1, True, target)

    if step.inserted_index is None:
        logger.debug("insert_position_not_found", depth=depth, minimum_index=minimum_index)
        raise NoInsertionPosition(depth, minimum_index)

    tree_index = step.inserted_index
    logger.debug("node_inserted", depth=depth, tree_index=tree_index)
    return InsertResult(
        forest=children_of(access, step.node),
        tree_index=tree_index,
        path=[*step.parent_path, get_node_key(new_node, tree_index)],
        parent_node=step.parent_node,
    )


def add_node_under_parent(
    forest: Sequence[Any] | None,
    new_node: Any,
    parent_key: Any = None,
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
    expand_parent: bool = False,
) -> InsertResult:
    """Append ``new_node`` as the last child of the visible node keyed ``parent_key``.

    With ``parent_key=None`` the node is appended as a new root.

    Raises:
        PathResolutionMiss: If no visible node has key ``parent_key``.
        LazyChildrenMutation: If that node's children are deferred.
    """
    forest = list(forest) if forest is not None else []
    if parent_key is None:
        tree_index = _visible_end(forest, access, ignore_collapsed)
        return InsertResult(
            forest=[*forest, new_node],
            tree_index=tree_index,
            path=[get_node_key(new_node, tree_index)],
            parent_node=None,
        )

    added: dict[str, Any] = {}

    def _append(info: NodeInfo) -> Any:
        if added or info.path[-1] != parent_key:
            return info.node

        parent = access.set(info.node, EXPANDED, True) if expand_parent else info.node
        children = access.get(parent, CHILDREN)
        state = children_state(children)
        if state is ChildrenState.DEFERRED:
            raise LazyChildrenMutation(info.path)

        existing = list(children) if state is ChildrenState.MATERIALIZED else []
        tree_index = info.tree_index + 1
        for child in existing:
            tree_index += 1 + descendant_count(child, access, ignore_collapsed)

        parent = access.set(parent, CHILDREN, [*existing, new_node])
        added.update(tree_index=tree_index, path=[*info.path, get_node_key(new_node, tree_index)], parent=parent)
        return parent

    changed = map_tree(
        forest,
        _append,
        get_node_key=get_node_key,
        access=access,
        ignore_collapsed=ignore_collapsed,
    )
    if not added:
        raise PathResolutionMiss([parent_key], f"No node found with key {parent_key!r}")

    return InsertResult(
        forest=changed,
        tree_index=added["tree_index"],
        path=added["path"],
        parent_node=added["parent"],
    )


def _visible_end(forest: Sequence[Any], access: NodeAccess, ignore_collapsed: bool) -> int:
    """Index a node appended after the last root would receive."""
    return sum(1 + descendant_count(root, access, ignore_collapsed) for root in forest)
