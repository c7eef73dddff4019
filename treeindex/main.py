"""treeindex microservice -- FastAPI application.

Exposes the tree-data engine over JSON forests. Every request carries the
forest it operates on; the service keeps no state between calls.

Endpoints:
    POST /visible-count    -- Count visible nodes
    POST /node-at-index    -- Resolve a visible index
    POST /node-at-path     -- Read the node at a path
    POST /flatten          -- Flatten to positional records
    POST /unflatten        -- Build a forest from parent-linked records
    POST /change           -- Replace the node at a path
    POST /remove           -- Remove the node at a path
    POST /insert           -- Insert by depth and minimum index
    POST /search           -- Find nodes and expand paths to matches
    POST /toggle-expanded  -- Expand or collapse every node
    GET  /health           -- Health check

Nodes are keyed by visible index unless ``key_field`` names a payload field.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .codec import forest_from_json, forest_to_json, node_from_json, node_to_json
from .errors import PathResolutionMiss, TreeDataError
from .flat import flatten, unflatten
from .insert import insert_node
from .keys import KeyFunc, field_key, tree_index_key
from .mapper import toggle_expanded_for_all
from .paths import change_node_at_path, get_node_at_path, remove_node_at_path
from .resolver import resolve, visible_count
from .search import find, query_predicate
from .tree import NodeInfo

structlog.configure(
    processors=[
        structlog.dev.ConsoleRenderer(),
    ],
)

logger = structlog.get_logger(__name__)

SERVICE_NAME = "treeindex"
VERSION = "0.1.0"

app = FastAPI(
    title=SERVICE_NAME,
    description="Collapse-aware indexing, traversal and editing of ordered forests",
    version=VERSION,
)


# --------------------------------------------------------------------------
# Request / Response models
# --------------------------------------------------------------------------


class ForestRequest(BaseModel):
    """Fields shared by every request that operates on a forest."""

    forest: list[dict[str, Any]] = Field(
        default_factory=list,
        description='Root nodes; deferred children are spelled "children": "deferred"',
    )
    key_field: str | None = Field(
        default=None,
        description="Payload field used as node key; null keys nodes by tree index",
        examples=["id"],
    )
    ignore_collapsed: bool = Field(
        default=True,
        description="Skip the children of nodes whose expanded flag is not true",
    )


class IndexRequest(ForestRequest):
    index: int = Field(..., ge=0, description="Visible index to resolve")


class PathRequest(ForestRequest):
    path: list[Any] = Field(..., min_length=1, description="Keys from the root level to the node")


class ChangeRequest(PathRequest):
    node: dict[str, Any] = Field(..., description="Replacement node")


class InsertRequest(ForestRequest):
    node: dict[str, Any] = Field(..., description="Node to insert")
    depth: int = Field(..., ge=0, description="Target depth; roots are depth 0")
    minimum_index: int = Field(default=0, ge=0, description="Lowest acceptable tree index")
    expand_parent: bool = Field(default=False, description="Expand the receiving parent")


class SearchRequest(ForestRequest):
    query: str = Field(..., description="Case-insensitive substring to look for")
    fields: list[str] = Field(
        default_factory=lambda: ["title", "subtitle"],
        description="Payload fields searched for the query",
    )
    focus_offset: int | None = Field(default=None, ge=0, description="Ordinal of the focused match")
    expand_all_matches: bool = False
    expand_focus_match: bool = True


class ToggleRequest(BaseModel):
    forest: list[dict[str, Any]] = Field(default_factory=list)
    expanded: bool = True


class UnflattenRequest(BaseModel):
    records: list[dict[str, Any]] = Field(default_factory=list)
    key_field: str = Field(default="id", description="Record field holding the node key")
    parent_key_field: str = Field(default="parentId", description="Record field holding the parent key")
    root_key: Any = Field(default="0", description="Parent key value of root records")


class NodeInfoResponse(BaseModel):
    node: dict[str, Any]
    path: list[Any]
    lower_sibling_counts: list[int]
    tree_index: int


class CountResponse(BaseModel):
    count: int


class ForestResponse(BaseModel):
    forest: list[dict[str, Any]]


class NodeAtPathResponse(BaseModel):
    node: dict[str, Any]
    tree_index: int
    path: list[Any]


class InsertResponse(BaseModel):
    forest: list[dict[str, Any]]
    tree_index: int
    path: list[Any]


class SearchMatchResponse(BaseModel):
    node: dict[str, Any]
    path: list[Any]
    tree_index: int | None


class SearchResponse(BaseModel):
    matches: list[SearchMatchResponse]
    forest: list[dict[str, Any]]


class HealthResponse(BaseModel):
    """Response body for /health."""

    status: str
    service: str
    version: str


# --------------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------------


def _key_func(request: ForestRequest) -> KeyFunc:
    if request.key_field is None:
        return tree_index_key
    return field_key(request.key_field)


def _info_response(info: NodeInfo) -> NodeInfoResponse:
    return NodeInfoResponse(
        node=node_to_json(info.node),
        path=info.path,
        lower_sibling_counts=info.lower_sibling_counts,
        tree_index=info.tree_index,
    )


def _fail(operation: str, error: Exception) -> HTTPException:
    """Map an engine error onto an HTTP error."""
    if isinstance(error, PathResolutionMiss):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (TreeDataError, ValueError)):
        return HTTPException(status_code=422, detail=str(error))
    logger.error(f"{operation}_failed", error=str(error))
    return HTTPException(status_code=500, detail=f"{operation} failed")


# --------------------------------------------------------------------------
# Endpoints
# --------------------------------------------------------------------------


@app.post("/visible-count", response_model=CountResponse)
async def visible_count_endpoint(request: ForestRequest) -> CountResponse:
    """Count the nodes a collapse-aware view would show."""
    try:
        forest = forest_from_json(request.forest)
    except ValueError as e:
        raise _fail("visible_count", e)
    return CountResponse(count=visible_count(forest, ignore_collapsed=request.ignore_collapsed))


@app.post("/node-at-index", response_model=NodeInfoResponse)
async def node_at_index(request: IndexRequest) -> NodeInfoResponse:
    """Resolve a visible index to its node, path and sibling counts."""
    try:
        info = resolve(
            forest_from_json(request.forest),
            request.index,
            get_node_key=_key_func(request),
            ignore_collapsed=request.ignore_collapsed,
        )
    except Exception as e:
        raise _fail("node_at_index", e)

    if info is None:
        raise HTTPException(status_code=404, detail=f"No visible node at index {request.index}")
    return _info_response(info)


@app.post("/node-at-path", response_model=NodeAtPathResponse)
async def node_at_path(request: PathRequest) -> NodeAtPathResponse:
    """Read the node at a path."""
    try:
        found = get_node_at_path(
            forest_from_json(request.forest),
            request.path,
            get_node_key=_key_func(request),
            ignore_collapsed=request.ignore_collapsed,
        )
    except Exception as e:
        raise _fail("node_at_path", e)
    return NodeAtPathResponse(node=node_to_json(found.node), tree_index=found.tree_index, path=found.path)


@app.post("/flatten", response_model=list[NodeInfoResponse])
async def flatten_endpoint(request: ForestRequest) -> list[NodeInfoResponse]:
    """Flatten the visible forest into positional records."""
    try:
        records = flatten(
            forest_from_json(request.forest),
            get_node_key=_key_func(request),
            ignore_collapsed=request.ignore_collapsed,
        )
    except Exception as e:
        raise _fail("flatten", e)
    return [_info_response(info) for info in records]


@app.post("/unflatten", response_model=ForestResponse)
async def unflatten_endpoint(request: UnflattenRequest) -> ForestResponse:
    """Build a forest from records linked by parent key."""
    try:
        forest = unflatten(
            request.records,
            get_key=lambda record: record.get(request.key_field),
            get_parent_key=lambda record: record.get(request.parent_key_field),
            root_key=request.root_key,
        )
    except Exception as e:
        raise _fail("unflatten", e)
    return ForestResponse(forest=forest_to_json(forest))


@app.post("/change", response_model=ForestResponse)
async def change(request: ChangeRequest) -> ForestResponse:
    """Replace the node at a path."""
    try:
        forest = change_node_at_path(
            forest_from_json(request.forest),
            request.path,
            node_from_json(request.node),
            get_node_key=_key_func(request),
            ignore_collapsed=request.ignore_collapsed,
        )
    except Exception as e:
        raise _fail("change", e)
    return ForestResponse(forest=forest_to_json(forest))


@app.post("/remove", response_model=ForestResponse)
async def remove(request: PathRequest) -> ForestResponse:
    """Remove the node at a path, with its subtree."""
    try:
        forest = remove_node_at_path(
            forest_from_json(request.forest),
            request.path,
            get_node_key=_key_func(request),
            ignore_collapsed=request.ignore_collapsed,
        )
    except Exception as e:
        raise _fail("remove", e)
    return ForestResponse(forest=forest_to_json(forest))


@app.post("/insert", response_model=InsertResponse)
async def insert(request: InsertRequest) -> InsertResponse:
    """Insert a node at a depth, no earlier than a minimum tree index."""
    try:
        result = insert_node(
            forest_from_json(request.forest),
            request.depth,
            request.minimum_index,
            node_from_json(request.node),
            get_node_key=_key_func(request),
            ignore_collapsed=request.ignore_collapsed,
            expand_parent=request.expand_parent,
        )
    except Exception as e:
        raise _fail("insert", e)
    return InsertResponse(forest=forest_to_json(result.forest), tree_index=result.tree_index, path=result.path)


@app.post("/search", response_model=SearchResponse)
async def search(request: SearchRequest) -> SearchResponse:
    """Find nodes whose fields contain the query."""
    try:
        result = find(
            forest_from_json(request.forest),
            query_predicate(request.query, request.fields),
            focus_offset=request.focus_offset,
            expand_all_matches=request.expand_all_matches,
            expand_focus_match=request.expand_focus_match,
            get_node_key=_key_func(request),
        )
    except Exception as e:
        raise _fail("search", e)

    return SearchResponse(
        matches=[
            SearchMatchResponse(node=node_to_json(m.node), path=m.path, tree_index=m.tree_index)
            for m in result.matches
        ],
        forest=forest_to_json(result.forest),
    )


@app.post("/toggle-expanded", response_model=ForestResponse)
async def toggle_expanded(request: ToggleRequest) -> ForestResponse:
    """Expand or collapse every node."""
    try:
        forest = toggle_expanded_for_all(forest_from_json(request.forest), request.expanded)
    except Exception as e:
        raise _fail("toggle_expanded", e)
    return ForestResponse(forest=forest_to_json(forest))


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for Docker and load balancer probes."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=VERSION,
    )
