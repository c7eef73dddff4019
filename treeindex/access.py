"""Node access contract and children-state helpers.

The traversal code never touches a node directly: it reads and writes the two
reserved fields (``children`` and ``expanded``) through a ``NodeAccess``
implementation, so forests can be built from plain dicts, frozen records, or
any other representation that can be shallow-copied.

A node's ``children`` field is in one of three states:

- absent: the node is a leaf (``None`` or missing);
- materialized: an ordered sequence of nodes, possibly empty;
- deferred: a ``Deferred`` marker meaning the children exist but must be
  fetched by someone else. The engine treats deferred children as zero-size
  and never descends into them or adds to them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Sequence

CHILDREN = "children"
EXPANDED = "expanded"


@dataclass(frozen=True)
class Deferred:
    """Marker for children that are not materialized yet.

    Attributes:
        loader: Opaque handle for whoever resolves the children. The engine
            stores and returns it untouched and never calls it.
    """

    loader: Any = None


DEFERRED = Deferred()


class ChildrenState(Enum):
    ABSENT = "absent"
    MATERIALIZED = "materialized"
    DEFERRED = "deferred"


def children_state(value: Any) -> ChildrenState:
    """Classify a raw ``children`` value."""
    if value is None:
        return ChildrenState.ABSENT
    if isinstance(value, Deferred):
        return ChildrenState.DEFERRED
    return ChildrenState.MATERIALIZED


class NodeAccess(Protocol):
    """Capability interface over a concrete node representation."""

    def get(self, node: Any, field: str) -> Any:
        """Return the field value, or ``None`` when the field is absent."""
        ...

    def set(self, node: Any, field: str | None = None, value: Any = None) -> Any:
        """Return a shallow copy of ``node``, with ``field`` replaced when given."""
        ...

    def empty(self) -> Any:
        """Return a minimal valid node."""
        ...


class DictAccess:
    """Access contract for nodes stored as plain ``dict`` objects."""

    def get(self, node: dict, field: str) -> Any:
        return node.get(field)

    def set(self, node: dict, field: str | None = None, value: Any = None) -> dict:
        copy = dict(node)
        if field is not None:
            copy[field] = value
        return copy

    def empty(self) -> dict:
        return {}


DICT_ACCESS = DictAccess()


@dataclass(frozen=True)
class VirtualRoot:
    """Synthetic parent of every root in a forest.

    Lets single-root algorithms process a forest uniformly. It is always
    open, has no key, sits at tree index -1 and never shows up in a path,
    a parent reference, or any returned record.
    """

    children: Sequence[Any]

    @classmethod
    def wrap(cls, forest: Sequence[Any] | None) -> VirtualRoot:
        """Hold ``forest`` as the root children without copying it."""
        return cls(forest if forest is not None else [])


def children_of(access: NodeAccess, node: Any) -> Any:
    """Raw ``children`` value of a real node or of the pseudo-root."""
    if isinstance(node, VirtualRoot):
        return node.children
    return access.get(node, CHILDREN)


def with_children(access: NodeAccess, node: Any, children: Sequence[Any]) -> Any:
    """Copy of ``node`` holding ``children``."""
    if isinstance(node, VirtualRoot):
        return VirtualRoot(children)
    return access.set(node, CHILDREN, children)


def is_expanded(access: NodeAccess, node: Any) -> bool:
    if isinstance(node, VirtualRoot):
        return True
    return access.get(node, EXPANDED) is True


def can_descend(access: NodeAccess, node: Any, ignore_collapsed: bool) -> bool:
    """True when traversal should visit the node's children.

    Requires materialized children and, when ``ignore_collapsed`` is set,
    ``expanded is True``. The pseudo-root is always open.
    """
    if children_state(children_of(access, node)) is not ChildrenState.MATERIALIZED:
        return False
    return not ignore_collapsed or is_expanded(access, node)
