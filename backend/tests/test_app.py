"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from app import app


@pytest.fixture
def client():
    return TestClient(app)


GRAPH = {
    "id": "Pump",
    "name": "Pump behavior",
    "type": "graph",
    "nodes": [
        {"id": "n1", "type": "nest"},
        {"id": "n2", "type": "invoke", "exp": {"id": "doThing"}},
    ],
    "edges": [{"input": {"node": "n1", "socket": "$out"}, "output": {"node": "n2", "socket": "$in"}}],
}


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestLoad:
    def test_graph_to_workflow(self, client):
        response = client.post("/api/graphs/to-workflow", json={
            "graph": GRAPH,
            "startOutputs": {"type": "object", "properties": {}},
        })

        assert response.status_code == 200
        body = response.json()
        assert [n["id"] for n in body["nodes"]] == ["n1", "n2"]
        assert body["nodes"][0]["data"]["outputs"] == {"type": "object", "properties": {}}
        assert body["edges"][0]["targetPortID"] is None
        assert body["layoutHint"] == "auto"

    def test_graph_without_id_is_400(self, client):
        response = client.post("/api/graphs/to-workflow", json={"graph": {"nodes": []}})
        assert response.status_code == 400

    def test_missing_graph_is_422(self, client):
        response = client.post("/api/graphs/to-workflow", json={})
        assert response.status_code == 422

    def test_malformed_node_is_dropped_not_fatal(self, client):
        graph = {**GRAPH, "nodes": GRAPH["nodes"] + [{"id": "n3", "inputs": "oops"}]}
        response = client.post("/api/graphs/to-workflow", json={"graph": graph})

        assert response.status_code == 200
        body = response.json()
        assert [n["id"] for n in body["nodes"]] == ["n1", "n2"]
        assert any("n3" in w for w in body["metadata"]["warnings"])


class TestSave:
    def test_round_trip_through_http(self, client):
        workflow = client.post("/api/graphs/to-workflow", json={"graph": GRAPH}).json()
        response = client.post("/api/workflows/to-graph", json={
            "workflow": workflow,
            "graph": {"id": "Pump", "name": "Pump behavior", "type": "behavior"},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "graph"
        assert [n["type"] for n in body["nodes"]] == ["nest", "invoke"]
        assert body["nodes"][1]["exp"] == {"id": "doThing"}
        assert body["edges"] == GRAPH["edges"]

    def test_dangling_edge_is_400(self, client):
        response = client.post("/api/workflows/to-graph", json={
            "workflow": {
                "nodes": [{"id": "a", "type": "invoke"}],
                "edges": [{"sourceNodeID": "a", "targetNodeID": "ghost"}],
            },
            "graph": {"id": "g"},
        })
        assert response.status_code == 400
        assert "ghost" in response.json()["detail"]
