"""Visible-index resolution.

One pre-order traversal backs index lookup, visible counting and descendant
counting, so the three can never disagree about which nodes are visible.

Traversal rules:
- A node's own index is assigned before its children are visited.
- A node is descended into only if its children are materialized and, when
  ``ignore_collapsed`` is set, its ``expanded`` field is exactly True.
- Deferred children contribute nothing to any count.

The walk keeps its own frame stack, so arbitrarily deep forests do not hit
the interpreter's recursion limit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Sequence

import structlog

from .access import DICT_ACCESS, NodeAccess, VirtualRoot, can_descend, children_of
from .keys import KeyFunc, tree_index_key
from .tree import NodeInfo

logger = structlog.get_logger(__name__)


@dataclass
class _Frame:
    parent: Any
    children: Sequence[Any]
    path: list[Any]
    lower_sibling_counts: list[int]
    position: int = 0


def _iter_below(
    root: Any,
    root_index: int,
    root_path: list[Any],
    access: NodeAccess,
    get_node_key: KeyFunc | None,
    ignore_collapsed: bool,
) -> Iterator[NodeInfo]:
    """Yield every visible descendant of ``root`` in pre-order.

    With ``get_node_key=None`` no keys are derived and every path is
    ``root_path``; counting callers use this to skip key work.
    """
    if not can_descend(access, root, ignore_collapsed):
        return

    parent = None if isinstance(root, VirtualRoot) else root
    stack = [_Frame(parent, children_of(access, root), root_path, [])]
    index = root_index

    while stack:
        frame = stack[-1]
        if frame.position >= len(frame.children):
            stack.pop()
            continue

        position = frame.position
        frame.position += 1
        node = frame.children[position]
        index += 1

        counts = [*frame.lower_sibling_counts, len(frame.children) - position - 1]
        if get_node_key is None:
            path = frame.path
        else:
            path = [*frame.path, get_node_key(node, index)]

        yield NodeInfo(
            node=node,
            path=path,
            lower_sibling_counts=counts,
            tree_index=index,
            parent_node=frame.parent,
        )

        if can_descend(access, node, ignore_collapsed):
            stack.append(_Frame(node, children_of(access, node), path, counts))


def iter_visible(
    forest: Sequence[Any] | None,
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> Iterator[NodeInfo]:
    """Lazily yield a ``NodeInfo`` for every visible node of ``forest``."""
    if not forest:
        return iter(())
    return _iter_below(VirtualRoot.wrap(forest), -1, [], access, get_node_key, ignore_collapsed)


def descendant_count(
    node: Any,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> int:
    """Number of descendants of ``node`` that the traversal would visit."""
    return sum(1 for _ in _iter_below(node, 0, [], access, None, ignore_collapsed))


def visible_count(
    forest: Sequence[Any] | None,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> int:
    """Number of visible nodes in ``forest``."""
    if not forest:
        return 0
    root = VirtualRoot.wrap(forest)
    return sum(1 for _ in _iter_below(root, -1, [], access, None, ignore_collapsed))


def resolve(
    forest: Sequence[Any] | None,
    index: int,
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> NodeInfo | None:
    """Return the node at visible ``index``, or None when it is out of range.

    The traversal stops as soon as the target index is reached.
    """
    if index < 0:
        return None

    for info in iter_visible(
        forest,
        get_node_key=get_node_key,
        access=access,
        ignore_collapsed=ignore_collapsed,
    ):
        if info.tree_index == index:
            return info

    logger.debug("tree_index_not_found", index=index)
    return None
