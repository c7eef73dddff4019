"""Search over a forest, expanding the paths to matches.

Every node is tested, visible or not. Matches are numbered in pre-order
discovery order (a node is tested before its descendants) and the match
whose number equals ``focus_offset`` is the focus.

Parents are expanded according to the flags:

- ``expand_all_matches``: every ancestor of every match;
- ``expand_focus_match`` (or ``expand_all_matches``): every ancestor of the
  focused match.

A match that still sits below a collapsed node after the pass is not
visible, so its ``tree_index`` is reported as None.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Sequence

import structlog

from .access import (
    DICT_ACCESS,
    EXPANDED,
    ChildrenState,
    NodeAccess,
    VirtualRoot,
    children_of,
    children_state,
    with_children,
)
from .keys import KeyFunc, tree_index_key

logger = structlog.get_logger(__name__)

Predicate = Callable[[Any, list, int], bool]


@dataclass(frozen=True)
class SearchMatch:
    """A matching node in its final (possibly expanded) form."""

    node: Any
    path: list[Any]
    tree_index: int | None


@dataclass(frozen=True)
class SearchResult:
    matches: list[SearchMatch]
    forest: Sequence[Any]


@dataclass
class _Visit:
    node: Any
    tree_index: int
    matches: list[SearchMatch] = field(default_factory=list)
    has_focus_match: bool = False


class _Search:
    def __init__(
        self,
        predicate: Predicate,
        focus_offset: int | None,
        expand_all_matches: bool,
        expand_focus_match: bool,
        get_node_key: KeyFunc,
        access: NodeAccess,
    ) -> None:
        self.predicate = predicate
        self.focus_offset = focus_offset
        self.expand_all_matches = expand_all_matches
        self.expand_focus_match = expand_focus_match
        self.get_node_key = get_node_key
        self.access = access
        self.match_count = 0

    def visit(self, node: Any, current_index: int, path: list[Any]) -> _Visit:
        access = self.access
        is_root = isinstance(node, VirtualRoot)
        self_path = path if is_root else [*path, self.get_node_key(node, current_index)]

        is_self_match = False
        has_focus_match = False
        if not is_root and self.predicate(node, self_path, current_index):
            if self.match_count == self.focus_offset:
                has_focus_match = True
            self.match_count += 1
            is_self_match = True

        matches: list[SearchMatch] = []
        child_index = current_index
        new_node = node
        children = children_of(access, node)

        if children_state(children) is ChildrenState.MATERIALIZED and len(children) > 0:
            expand = False
            new_children = []
            for child in children:
                result = self.visit(child, child_index + 1, self_path)

                # Only an open child reserves indices for its subtree.
                if access.get(result.node, EXPANDED):
                    child_index = result.tree_index
                else:
                    child_index += 1

                if result.matches or result.has_focus_match:
                    matches.extend(result.matches)
                    if result.has_focus_match:
                        has_focus_match = True
                    if (self.expand_all_matches and result.matches) or (
                        (self.expand_all_matches or self.expand_focus_match) and result.has_focus_match
                    ):
                        expand = True

                new_children.append(result.node)

            if any(new is not old for new, old in zip(new_children, children)):
                new_node = with_children(access, new_node, new_children)
            if expand and not is_root and access.get(new_node, EXPANDED) is not True:
                new_node = access.set(new_node, EXPANDED, True)

        if not is_root and not access.get(new_node, EXPANDED):
            matches = [replace(match, tree_index=None) for match in matches]

        if is_self_match:
            matches.insert(0, SearchMatch(node=new_node, path=self_path, tree_index=current_index))

        return _Visit(new_node, child_index, matches, has_focus_match)


def find(
    forest: Sequence[Any] | None,
    predicate: Predicate,
    *,
    focus_offset: int | None = None,
    expand_all_matches: bool = False,
    expand_focus_match: bool = True,
    get_node_key: KeyFunc = tree_index_key,
    access: NodeAccess = DICT_ACCESS,
) -> SearchResult:
    """Find every node for which ``predicate(node, path, tree_index)`` holds.

    Returns:
        The matches in pre-order, and the forest with the requested paths
        expanded. Subtrees that needed no change are returned as-is.
    """
    if not forest:
        return SearchResult(matches=[], forest=[])

    search = _Search(
        predicate,
        focus_offset,
        expand_all_matches,
        expand_focus_match,
        get_node_key,
        access,
    )
    result = search.visit(VirtualRoot.wrap(forest), -1, [])
    logger.debug("search_finished", matches=len(result.matches), focus_offset=focus_offset)
    return SearchResult(matches=result.matches, forest=children_of(access, result.node))


def query_predicate(
    query: str,
    fields: Sequence[str] = ("title", "subtitle"),
    access: NodeAccess = DICT_ACCESS,
) -> Predicate:
    """Case-insensitive substring match of ``query`` against payload fields.

    An empty query matches nothing.
    """
    needle = query.lower()

    def _matches(node: Any, path: list, tree_index: int) -> bool:
        if not needle:
            return False
        for name in fields:
            value = access.get(node, name)
            if value is not None and needle in str(value).lower():
                return True
        return False

    return _matches
