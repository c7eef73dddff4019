"""Key-derivation functions.

A key function receives ``(node, tree_index)`` and returns the key used in
paths. Keys only have to tell siblings apart at the moment a path is
resolved.
"""

from __future__ import annotations

from typing import Any, Callable

from .access import DICT_ACCESS, NodeAccess

KeyFunc = Callable[[Any, int], Any]


def tree_index_key(node: Any, tree_index: int) -> int:
    """Key a node by its visible index."""
    return tree_index


def field_key(name: str, access: NodeAccess = DICT_ACCESS) -> KeyFunc:
    """Key nodes by a payload field, e.g. ``field_key("id")``."""

    def _key(node: Any, tree_index: int) -> Any:
        return access.get(node, name)

    return _key
