"""Tests for treeindex FastAPI endpoints."""

from fastapi.testclient import TestClient

from treeindex.main import app

client = TestClient(app)

FOREST = [
    {
        "id": "a",
        "title": "Alpha",
        "expanded": True,
        "children": [
            {"id": "a1", "title": "First"},
            {"id": "a2", "expanded": False, "children": [{"id": "a2x", "title": "Hidden needle"}]},
        ],
    },
    {"id": "b", "children": [{"id": "b1"}]},
    {"id": "c", "expanded": True, "children": "deferred"},
]


class TestHealthEndpoint:
    def test_health_returns_200(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service"] == "treeindex"

    def test_health_includes_version(self):
        resp = client.get("/health")
        data = resp.json()
        assert "version" in data


class TestVisibleCountEndpoint:
    def test_collapse_aware_count(self):
        resp = client.post("/visible-count", json={"forest": FOREST})
        assert resp.status_code == 200
        assert resp.json()["count"] == 5

    def test_ignoring_collapse(self):
        resp = client.post("/visible-count", json={"forest": FOREST, "ignore_collapsed": False})
        assert resp.json()["count"] == 7

    def test_empty_forest(self):
        resp = client.post("/visible-count", json={})
        assert resp.json()["count"] == 0

    def test_invalid_children_returns_422(self):
        resp = client.post("/visible-count", json={"forest": [{"id": "x", "children": "later"}]})
        assert resp.status_code == 422


class TestNodeAtIndexEndpoint:
    def test_resolves_index(self):
        resp = client.post("/node-at-index", json={"forest": FOREST, "index": 3, "key_field": "id"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["node"]["id"] == "b"
        assert data["path"] == ["b"]
        assert data["lower_sibling_counts"] == [1]
        assert data["tree_index"] == 3

    def test_default_keys_are_tree_indices(self):
        resp = client.post("/node-at-index", json={"forest": FOREST, "index": 2})
        assert resp.json()["path"] == [0, 2]

    def test_deferred_children_round_trip(self):
        resp = client.post("/node-at-index", json={"forest": FOREST, "index": 4})
        assert resp.json()["node"]["children"] == "deferred"

    def test_out_of_range_returns_404(self):
        resp = client.post("/node-at-index", json={"forest": FOREST, "index": 5})
        assert resp.status_code == 404

    def test_negative_index_returns_422(self):
        resp = client.post("/node-at-index", json={"forest": FOREST, "index": -1})
        assert resp.status_code == 422


class TestNodeAtPathEndpoint:
    def test_reads_node(self):
        resp = client.post("/node-at-path", json={"forest": FOREST, "path": ["a", "a2"], "key_field": "id"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["node"]["id"] == "a2"
        assert data["tree_index"] == 2

    def test_missing_path_returns_404(self):
        resp = client.post("/node-at-path", json={"forest": FOREST, "path": ["zzz"], "key_field": "id"})
        assert resp.status_code == 404

    def test_empty_path_returns_422(self):
        resp = client.post("/node-at-path", json={"forest": FOREST, "path": []})
        assert resp.status_code == 422


class TestFlattenEndpoints:
    def test_flatten(self):
        resp = client.post("/flatten", json={"forest": FOREST, "key_field": "id"})
        assert resp.status_code == 200
        data = resp.json()
        assert [r["node"]["id"] for r in data] == ["a", "a1", "a2", "b", "c"]
        assert data[1]["path"] == ["a", "a1"]

    def test_unflatten(self):
        resp = client.post(
            "/unflatten",
            json={
                "records": [
                    {"id": "1", "parentId": "0"},
                    {"id": "2", "parentId": "1"},
                ]
            },
        )
        assert resp.status_code == 200
        assert resp.json()["forest"] == [
            {"id": "1", "parentId": "0", "children": [{"id": "2", "parentId": "1"}]}
        ]

    def test_unflatten_cycle_returns_422(self):
        resp = client.post("/unflatten", json={"records": [{"id": "0", "parentId": "0"}]})
        assert resp.status_code == 422


class TestChangeEndpoints:
    def test_change(self):
        resp = client.post(
            "/change",
            json={"forest": FOREST, "path": ["b"], "node": {"id": "b", "title": "Beta"}, "key_field": "id"},
        )
        assert resp.status_code == 200
        forest = resp.json()["forest"]
        assert forest[1] == {"id": "b", "title": "Beta"}
        assert forest[2]["children"] == "deferred"

    def test_change_into_deferred_returns_422(self):
        resp = client.post(
            "/change",
            json={"forest": FOREST, "path": ["c", "x"], "node": {"id": "x"}, "key_field": "id"},
        )
        assert resp.status_code == 422

    def test_remove(self):
        resp = client.post("/remove", json={"forest": FOREST, "path": ["a", "a1"], "key_field": "id"})
        assert resp.status_code == 200
        assert [c["id"] for c in resp.json()["forest"][0]["children"]] == ["a2"]

    def test_remove_missing_returns_404(self):
        resp = client.post("/remove", json={"forest": FOREST, "path": [42]})
        assert resp.status_code == 404


class TestInsertEndpoint:
    def test_insert(self):
        resp = client.post(
            "/insert",
            json={"forest": [{"children": [{"id": 1}]}], "node": {"id": "new"}, "depth": 1, "minimum_index": 0},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["tree_index"] == 1
        assert data["path"] == [0, 1]
        assert data["forest"][0]["children"][0] == {"id": "new"}

    def test_insert_into_deferred_returns_422(self):
        resp = client.post(
            "/insert",
            json={"forest": FOREST, "node": {"id": "new"}, "depth": 1, "minimum_index": 5},
        )
        assert resp.status_code == 422

    def test_no_position_returns_422(self):
        resp = client.post(
            "/insert",
            json={"forest": FOREST, "node": {"id": "new"}, "depth": 3},
        )
        assert resp.status_code == 422


class TestSearchEndpoint:
    def test_focus_expands_path(self):
        resp = client.post(
            "/search",
            json={"forest": FOREST, "query": "needle", "focus_offset": 0, "key_field": "id"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["matches"]) == 1
        assert data["matches"][0]["path"] == ["a", "a2", "a2x"]
        assert data["matches"][0]["tree_index"] == 3
        assert data["forest"][0]["children"][1]["expanded"] is True

    def test_hidden_match_has_null_index(self):
        resp = client.post("/search", json={"forest": FOREST, "query": "needle"})
        assert resp.json()["matches"][0]["tree_index"] is None


class TestToggleExpandedEndpoint:
    def test_collapse_all(self):
        resp = client.post("/toggle-expanded", json={"forest": FOREST, "expanded": False})
        assert resp.status_code == 200
        forest = resp.json()["forest"]
        assert forest[0]["expanded"] is False
        assert forest[0]["children"][1]["children"][0]["expanded"] is False

    def test_expand_all(self):
        toggled = client.post("/toggle-expanded", json={"forest": FOREST}).json()["forest"]
        resp = client.post("/visible-count", json={"forest": toggled})
        assert resp.json()["count"] == 7
