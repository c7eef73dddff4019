"""Depth-first walking with early termination."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Sequence

from .access import DICT_ACCESS, NodeAccess
from .keys import KeyFunc, tree_index_key
from .resolver import iter_visible
from .tree import NodeInfo


class WalkSignal(Enum):
    STOP = "stop"


STOP = WalkSignal.STOP


def walk(
    forest: Sequence[Any] | None,
    callback: Callable[[NodeInfo], Any],
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> bool:
    """Call ``callback`` on every visible node, parents before children.

    Returning ``STOP`` from the callback ends the walk at once: no sibling,
    child or later ancestor sibling is visited.

    Returns:
        False if the walk was stopped, True if every node was visited.
    """
    for info in iter_visible(
        forest,
        get_node_key=get_node_key,
        access=access,
        ignore_collapsed=ignore_collapsed,
    ):
        if callback(info) is STOP:
            return False
    return True
