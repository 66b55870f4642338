"""
HTTP API.
"""

import threading
import time

import pytest
from fastapi.testclient import TestClient

from flowgraph import validate_mermaid as vm
from flowgraph.config import Settings
from flowgraph.mermaid import FALLBACK_DIAGRAM
from server.app import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        app.state.settings = Settings()
        yield test_client


class TestFlowchartEndpoint:

    def test_console_log(self, client):
        resp = client.post("/api/flowchart", json={"code": "console.log(x)"})
        assert resp.status_code == 200
        body = resp.json()
        assert 'log2["Log: x"]' in body["mermaid"]
        assert body["node_count"] == 2
        assert body["edge_count"] == 1

    def test_empty_code_fallback(self, client):
        resp = client.post("/api/flowchart", json={"code": ""})
        assert resp.status_code == 200
        assert resp.json()["mermaid"] == FALLBACK_DIAGRAM

    def test_fenced(self, client):
        resp = client.post("/api/flowchart", json={"code": "a()", "fenced": True})
        assert resp.json()["mermaid"].startswith("```mermaid\n")

    def test_settings_applied(self, client):
        app.state.settings = Settings(direction="LR", label_max_chars=3)
        resp = client.post("/api/flowchart", json={"code": "x = 12345"})
        mermaid = resp.json()["mermaid"]
        assert mermaid.startswith("flowchart LR\n")
        assert '"Execute: x =..."' in mermaid

    def test_missing_code(self, client):
        resp = client.post("/api/flowchart", json={"source": "a()"})
        assert resp.status_code == 400
        assert "code is required" in resp.json()["detail"]

    def test_non_string_code(self, client):
        resp = client.post("/api/flowchart", json={"code": 42})
        assert resp.status_code == 400

    def test_not_json(self, client):
        resp = client.post(
            "/api/flowchart", content=b"not json", headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400

    def test_too_large(self, client):
        app.state.settings = Settings(max_input_chars=10)
        resp = client.post("/api/flowchart", json={"code": "x = 1\n" * 5})
        assert resp.status_code == 413

    def test_long_else_if_chain(self, client):
        arms = "".join(f" else if (k == {i}) {{\n  pick{i}()\n}}" for i in range(1, 500))
        code = "if (k == 0) {\n  pick0()\n}" + arms + " else {\n  none()\n}"
        resp = client.post("/api/flowchart", json={"code": code})
        assert resp.status_code == 200
        assert resp.json()["mermaid"].count('["End if"]') == 500

    @pytest.mark.parametrize("fenced", ["false", 1, None])
    def test_fenced_must_be_boolean(self, client, fenced):
        resp = client.post("/api/flowchart", json={"code": "a()", "fenced": fenced})
        assert resp.status_code == 400
        assert "fenced must be a boolean" in resp.json()["detail"]


class TestGraphEndpoint:

    def test_graph_json(self, client):
        resp = client.post("/api/flowchart/graph", json={"code": "while (i < 10) { i = i + 1 }"})
        assert resp.status_code == 200
        data = resp.json()
        assert [n["shape"] for n in data["nodes"]] == ["round", "diamond", "rect"]
        assert {"source": "stmt3", "target": "loop2", "label": ""} in data["edges"]


class TestValidateEndpoint:

    def test_valid(self, client):
        resp = client.post("/api/validate", json={"mermaid": FALLBACK_DIAGRAM})
        assert resp.json() == {"valid": True, "error": None, "node_count": 2, "edge_count": 1}

    def test_invalid(self, client):
        resp = client.post("/api/validate", json={"mermaid": "flowchart TD\n    a --> b"})
        body = resp.json()
        assert body["valid"] is False
        assert "undeclared" in body["error"]

    def test_missing_field(self, client):
        assert client.post("/api/validate", json={}).status_code == 400

    def test_mmdc_must_be_boolean(self, client):
        resp = client.post("/api/validate", json={"mermaid": FALLBACK_DIAGRAM, "mmdc": "false"})
        assert resp.status_code == 400

    def test_mmdc_check_does_not_block_other_requests(self, client, monkeypatch):
        started = threading.Event()
        release = threading.Event()

        def slow_mmdc(cmd, tmp_path, out_path):
            started.set()
            release.wait(timeout=5)
            return True, "", True

        monkeypatch.setattr(vm, "_run_mmdc", slow_mmdc)
        results = {}

        def post_validate():
            results["validate"] = client.post(
                "/api/validate", json={"mermaid": FALLBACK_DIAGRAM, "mmdc": True},
            )

        worker = threading.Thread(target=post_validate)
        worker.start()
        try:
            assert started.wait(timeout=5)
            began = time.monotonic()
            health = client.get("/api/health")
            elapsed = time.monotonic() - began
        finally:
            release.set()
            worker.join(timeout=10)

        assert health.json() == {"status": "ok"}
        assert elapsed < 2
        assert results["validate"].json()["valid"] is True


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
