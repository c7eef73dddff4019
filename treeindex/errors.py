"""Error taxonomy for tree-data operations.

Every error is a ``ValueError`` so callers that only care about "bad input"
can catch one type, while the subclasses carry the parameters that were
being resolved when the operation failed.
"""

from __future__ import annotations

from typing import Any, Sequence


class TreeDataError(ValueError):
    """Base class for all tree-data failures."""


class PathResolutionMiss(TreeDataError):
    """No sequence of children matches the requested path."""

    def __init__(self, path: Sequence[Any], message: str | None = None) -> None:
        self.path = list(path)
        super().__init__(message or f"No node found at path {self.path!r}")


class InvalidChildrenReference(TreeDataError):
    """The path continues past a node whose children are absent or deferred.

    Attributes:
        path: The full path being resolved.
        depth: Position in ``path`` of the node that could not be descended.
    """

    def __init__(self, path: Sequence[Any], depth: int) -> None:
        self.path = list(path)
        self.depth = depth
        super().__init__(
            f"Path {self.path!r} references children of node {self.path[: depth + 1]!r}, "
            "which has no materialized children"
        )


class NoInsertionPosition(TreeDataError):
    """No parent at the requested depth can take the node at or after the minimum index."""

    def __init__(self, depth: int, minimum_index: int) -> None:
        self.depth = depth
        self.minimum_index = minimum_index
        super().__init__(
            f"No suitable position found to insert at depth {depth} with minimum index {minimum_index}"
        )


class LazyChildrenMutation(TreeDataError):
    """Attempt to add to children that are deferred behind a loader."""

    def __init__(self, path: Sequence[Any] | None = None) -> None:
        self.path = list(path) if path is not None else None
        where = f" at {self.path!r}" if self.path is not None else ""
        super().__init__(f"Cannot add to deferred children{where}")
