"""JSON representation of forests.

JSON has no way to spell the deferred-children marker, so on the wire a
node with deferred children carries ``"children": "deferred"``.
"""

from __future__ import annotations

from typing import Any

from .access import CHILDREN, DEFERRED, ChildrenState, children_state

DEFERRED_MARKER = "deferred"


def node_from_json(raw: dict[str, Any]) -> dict[str, Any]:
    children = raw.get(CHILDREN)
    if children == DEFERRED_MARKER:
        return {**raw, CHILDREN: DEFERRED}
    if isinstance(children, list):
        return {**raw, CHILDREN: [node_from_json(child) for child in children]}
    if children is not None:
        raise ValueError(f"Invalid children value: {children!r}")
    return dict(raw)


def node_to_json(node: dict[str, Any]) -> dict[str, Any]:
    children = node.get(CHILDREN)
    state = children_state(children)
    if state is ChildrenState.DEFERRED:
        return {**node, CHILDREN: DEFERRED_MARKER}
    if state is ChildrenState.MATERIALIZED:
        return {**node, CHILDREN: [node_to_json(child) for child in children]}
    return dict(node)


def forest_from_json(forest: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """Decode a JSON forest, replacing deferred markers with ``DEFERRED``."""
    return [node_from_json(node) for node in forest or []]


def forest_to_json(forest: Any) -> list[dict[str, Any]]:
    """Encode a forest of dict nodes for a JSON response."""
    return [node_to_json(node) for node in forest or []]

