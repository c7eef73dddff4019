"""Conversion between forests and flat parent-linked records."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Hashable, Iterable, Sequence

import structlog

from .access import CHILDREN, DICT_ACCESS, NodeAccess
from .errors import TreeDataError
from .keys import KeyFunc, tree_index_key
from .tree import NodeInfo
from .walker import walk

logger = structlog.get_logger(__name__)


def flatten(
    forest: Sequence[Any] | None,
    *,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
    ignore_collapsed: bool = True,
) -> list[NodeInfo]:
    """Return one ``NodeInfo`` per visible node, in visible order."""
    flattened: list[NodeInfo] = []
    walk(
        forest,
        flattened.append,
        get_node_key=get_node_key,
        access=access,
        ignore_collapsed=ignore_collapsed,
    )
    return flattened


def unflatten(
    records: Iterable[Any] | None,
    get_key: Callable[[Any], Hashable] = lambda record: record["id"],
    get_parent_key: Callable[[Any], Hashable] = lambda record: record["parentId"],
    root_key: Hashable = "0",
    access: NodeAccess = DICT_ACCESS,
) -> list[Any]:
    """Build a forest from records linked by parent key.

    Records whose parent key equals ``root_key`` become roots. Each record
    is shallow-copied; records that are some other record's parent receive
    a ``children`` list in input order. Records that cannot be reached from
    ``root_key`` are left out.

    Raises:
        TreeDataError: If the parent links form a cycle reachable from the root.
    """
    if records is None:
        return []

    by_parent: dict[Hashable, list[Any]] = defaultdict(list)
    for record in records:
        by_parent[get_parent_key(record)].append(record)

    if root_key not in by_parent:
        return []

    def _attach(record: Any, ancestors: frozenset) -> Any:
        key = get_key(record)
        if key not in by_parent:
            return access.set(record)
        if key in ancestors:
            raise TreeDataError(f"Parent keys form a cycle at {key!r}")
        inner = ancestors | {key}
        return access.set(record, CHILDREN, [_attach(child, inner) for child in by_parent[key]])

    forest = [_attach(record, frozenset({root_key})) for record in by_parent[root_key]]
    logger.debug("unflattened", roots=len(forest))
    return forest
