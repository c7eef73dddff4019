"""Structural transforms over every visible node.

``map_tree`` rebuilds a forest bottom-up: a node's children are mapped
first, then the callback sees the node already carrying its mapped children.
Parents are only copied when one of their children changed, so untouched
subtrees come back as the very same objects.
"""

from __future__ import annotations

from typing import Any, Callable, Sequence

import structlog

from .access import (
    DICT_ACCESS,
    EXPANDED,
    NodeAccess,
    VirtualRoot,
    can_descend,
    children_of,
    with_children,
)
from .keys import KeyFunc, tree_index_key
from .tree import NodeInfo

logger = structlog.get_logger(__name__)


def _map_descendants(
    node: Any,
    parent_node: Any,
    tree_index: int,
    path: list[Any],
    lower_sibling_counts: list[int],
    callback: Callable[[NodeInfo], Any],
    get_node_key: KeyFunc,
    access: NodeAccess,
    ignore_collapsed: bool,
) -> tuple[Any, int]:
    """Map ``node`` and its visible subtree.

    Returns:
        (mapped node, index of the last node visited in the subtree).
    """
    is_root = isinstance(node, VirtualRoot)
    self_path = path if is_root else [*path, get_node_key(node, tree_index)]
    last_index = tree_index

    if can_descend(access, node, ignore_collapsed):
        children = children_of(access, node)
        child_count = len(children)
        mapped = []
        for i, child in enumerate(children):
            new_child, last_index = _map_descendants(
                child,
                None if is_root else node,
                last_index + 1,
                self_path,
                [*lower_sibling_counts, child_count - i - 1],
                callback,
                get_node_key,
                access,
                ignore_collapsed,
            )
            mapped.append(new_child)

        if any(new is not old for new, old in zip(mapped, children)):
            node = with_children(access, node, mapped)

    if is_root:
        return node, last_index

    info = NodeInfo(
        node=node,
        path=self_path,
        lower_sibling_counts=lower_sibling_counts,
        tree_index=tree_index,
        parent_node=parent_node,
    )
    return callback(info), last_index


def map_tree(
    forest: Sequence[Any] | None,
    callback: Callable[[NodeInfo], Any],
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> Sequence[Any]:
    """Return a forest where every visible node is replaced by ``callback(info)``.

    Nodes whose children are collapsed (when ``ignore_collapsed``) or
    deferred are still passed to the callback, with their children untouched.
    """
    if not forest:
        return []

    root, _ = _map_descendants(
        VirtualRoot.wrap(forest),
        None,
        -1,
        [],
        [],
        callback,
        get_node_key,
        access,
        ignore_collapsed,
    )
    return children_of(access, root)


def toggle_expanded_for_all(
    forest: Sequence[Any] | None,
    expanded: bool = True,
    access: NodeAccess = DICT_ACCESS,
) -> Sequence[Any]:
    """Set ``expanded`` on every node, including ones inside collapsed subtrees."""
    result = map_tree(
        forest,
        lambda info: access.set(info.node, EXPANDED, expanded),
        access=access,
        ignore_collapsed=False,
    )
    logger.debug("toggled_expanded_for_all", expanded=expanded)
    return result
