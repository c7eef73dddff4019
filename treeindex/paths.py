"""Path-addressed reads, replacements and deletions.

A path is resolved by re-deriving each child's key at its current tree
index and comparing it with the next path segment. When a sibling does not
lead to the target, the running index skips that sibling's whole visible
subtree using its descendant count instead of walking it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence, Union

import structlog

from .access import (
    DICT_ACCESS,
    ChildrenState,
    NodeAccess,
    VirtualRoot,
    children_of,
    children_state,
    with_children,
)
from .errors import InvalidChildrenReference, PathResolutionMiss
from .keys import KeyFunc, tree_index_key
from .resolver import descendant_count

logger = structlog.get_logger(__name__)

Replacement = Union[Any, Callable[[Any, int], Any]]

_MISS = object()


@dataclass(frozen=True)
class FoundNode:
    """A node located by path, with its tree index at lookup time."""

    node: Any
    tree_index: int
    path: list[Any]


def _change(
    node: Any,
    tree_index: int,
    depth: int,
    path: Sequence[Any],
    new_node: Replacement,
    get_node_key: KeyFunc,
    access: NodeAccess,
    ignore_collapsed: bool,
) -> Any:
    """Apply the replacement below ``node``.

    ``depth`` is the position of ``node`` in ``path`` (-1 for the pseudo-root).
    Returns ``_MISS`` when this branch does not match the path, None when the
    target was deleted, or the (possibly unchanged) node otherwise.
    """
    if not isinstance(node, VirtualRoot) and get_node_key(node, tree_index) != path[depth]:
        return _MISS

    if depth == len(path) - 1:
        if callable(new_node):
            return new_node(node, tree_index)
        return new_node

    children = children_of(access, node)
    if children_state(children) is not ChildrenState.MATERIALIZED:
        raise InvalidChildrenReference(path, depth)

    next_index = tree_index + 1
    for i, child in enumerate(children):
        result = _change(
            child, next_index, depth + 1, path, new_node, get_node_key, access, ignore_collapsed
        )
        if result is _MISS:
            next_index += 1 + descendant_count(child, access, ignore_collapsed)
            continue
        if result is child:
            return node
        if result is None:
            return with_children(access, node, [*children[:i], *children[i + 1 :]])
        return with_children(access, node, [*children[:i], result, *children[i + 1 :]])

    return _MISS


def change_node_at_path(
    forest: Sequence[Any] | None,
    path: Sequence[Any],
    new_node: Replacement,
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> Sequence[Any]:
    """Replace the node at ``path``.

    Args:
        forest: Forest to edit.
        path: Keys from the root level down to the target node.
        new_node: Replacement node, or a callable ``(node, tree_index)``
            returning one. A result of None removes the node from its parent.
        get_node_key: Key function used to match path segments.
        access: Node access contract.
        ignore_collapsed: Count only visible descendants when skipping
            siblings, so keys derived from tree indices line up.

    Returns:
        The edited forest. If the replacement returns the node unchanged,
        the original forest object is returned.

    Raises:
        PathResolutionMiss: If no sequence of children matches ``path``.
        InvalidChildrenReference: If ``path`` continues past a node whose
            children are absent or deferred.
    """
    if not path:
        raise PathResolutionMiss(path, "Cannot change a node at an empty path")

    root = VirtualRoot.wrap(forest)
    result = _change(root, -1, -1, list(path), new_node, get_node_key, access, ignore_collapsed)
    if result is _MISS:
        logger.debug("path_not_found", path=list(path))
        raise PathResolutionMiss(path)

    return children_of(access, result)


def remove_node_at_path(
    forest: Sequence[Any] | None,
    path: Sequence[Any],
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> Sequence[Any]:
    """Remove the node at ``path`` together with its subtree."""
    return change_node_at_path(
        forest,
        path,
        None,
        get_node_key=get_node_key,
        access=access,
        ignore_collapsed=ignore_collapsed,
    )


def get_node_at_path(
    forest: Sequence[Any] | None,
    path: Sequence[Any],
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> FoundNode:
    """Return the node at ``path`` and its tree index.

    Raises the same errors as ``change_node_at_path``.
    """
    found: list[FoundNode] = []

    def _capture(node: Any, tree_index: int) -> Any:
        found.append(FoundNode(node=node, tree_index=tree_index, path=list(path)))
        return node

    change_node_at_path(
        forest,
        path,
        _capture,
        get_node_key=get_node_key,
        access=access,
        ignore_collapsed=ignore_collapsed,
    )
    return found[0]


def find_node_at_path(
    forest: Sequence[Any] | None,
    path: Sequence[Any],
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> FoundNode | None:
    """Like ``get_node_at_path`` but returns None when the path does not resolve."""
    try:
        return get_node_at_path(
            forest,
            path,
            get_node_key=get_node_key,
            access=access,
            ignore_collapsed=ignore_collapsed,
        )
    except (PathResolutionMiss, InvalidChildrenReference):
        return None
