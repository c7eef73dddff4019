#!/usr/bin/env python3
"""Basic usage example for treeindex.

Builds a small forest, resolves visible indices, edits it by path, inserts
a node and runs a search.

Usage:
    python examples/basic_usage.py
"""

import sys
import os

# Add parent directory to path for direct script execution
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from treeindex import (
    change_node_at_path,
    field_key,
    find,
    flatten,
    insert_node,
    query_predicate,
    resolve,
    visible_count,
)

FOREST = [
    {"id": "it", "title": "IT Manager"},
    {
        "id": "regional",
        "title": "Regional Manager",
        "expanded": True,
        "children": [
            {"id": "branch", "title": "Branch Manager", "children": [{"id": "clerk", "title": "Clerk"}]},
        ],
    },
]


def example_visible_index():
    """Number the visible rows and resolve one of them."""
    print("=" * 60)
    print("Example 1: Visible index")
    print("=" * 60)

    print(f"  Visible rows:     {visible_count(FOREST)}")
    print(f"  All rows:         {visible_count(FOREST, ignore_collapsed=False)}")
    for info in flatten(FOREST, get_node_key=field_key("id")):
        indent = "  " * (len(info.path) - 1)
        print(f"  {info.tree_index}: {indent}{info.node['title']}  path={info.path}")

    info = resolve(FOREST, 2, get_node_key=field_key("id"))
    print(f"  Row 2 is:         {info.node['title']} at {info.path}")
    print()


def example_edit():
    """Rename a node by path and insert a sibling."""
    print("=" * 60)
    print("Example 2: Editing")
    print("=" * 60)

    renamed = change_node_at_path(
        FOREST,
        ["regional", "branch"],
        lambda node, tree_index: {**node, "title": "Branch Lead"},
        get_node_key=field_key("id"),
    )
    print(f"  Renamed:          {renamed[1]['children'][0]['title']}")
    print(f"  Root 0 shared:    {renamed[0] is FOREST[0]}")

    result = insert_node(renamed, 1, 3, {"id": "new", "title": "New Hire"}, get_node_key=field_key("id"))
    print(f"  Inserted at:      {result.tree_index}, path={result.path}")
    print()


def example_search():
    """Search for a hidden node and expand its ancestors."""
    print("=" * 60)
    print("Example 3: Search")
    print("=" * 60)

    result = find(FOREST, query_predicate("clerk"), focus_offset=0, get_node_key=field_key("id"))
    for match in result.matches:
        print(f"  Match:            {match.node['title']} path={match.path} index={match.tree_index}")
    print(f"  Visible after:    {visible_count(result.forest)}")
    print()


if __name__ == "__main__":
    example_visible_index()
    example_edit()
    example_search()
