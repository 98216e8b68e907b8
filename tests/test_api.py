"""API tests for the tool execution endpoints."""

import json
from unittest.mock import Mock

from fastapi.testclient import TestClient

from atlas_engine.api import create_app
from atlas_engine.core.config_store import InMemoryToolConfigStore
from atlas_engine.core.errors import UpstreamServiceError
from atlas_engine.core.settings import EngineSettings
from atlas_engine.llm.generators import MockLLM
from atlas_engine.main import ToolEngineAPI


RECORDS = {
    "kpi-extractor": {
        "title": "KPI Extractor",
        "description": "Pulls KPIs out of text",
        "systemPrompt": "You extract KPIs.",
        "features": ["text-input", "structured-output"],
        "jsonSchemaHint": "{kpis:[string]}",
    },
    "launch-brief": {
        "title": "Launch Brief",
        "systemPrompt": "You write launch briefs.",
        "features": ["text-input", "clarify-first"],
    },
    "broken": {
        "title": "Broken",
        "features": ["text-input"],
    },
}


def make_client(llm=None):
    store = InMemoryToolConfigStore(RECORDS)
    api = ToolEngineAPI(settings=EngineSettings(), store=store, llm=llm or Mock())
    return TestClient(create_app(api)), api


class TestToolEndpoints:
    def setup_method(self):
        self.llm = Mock()
        self.client, self.api = make_client(self.llm)

    def test_list_tools_sorted_by_title(self):
        r = self.client.get("/v1/tools")
        assert r.status_code == 200
        titles = [t["title"] for t in r.json()["tools"]]
        assert titles == ["Broken", "KPI Extractor", "Launch Brief"]
        assert r.json()["tools"][1] == {
            "slug": "kpi-extractor",
            "title": "KPI Extractor",
            "description": "Pulls KPIs out of text",
        }

    def test_get_tool_normalized(self):
        r = self.client.get("/v1/tools/launch-brief")
        assert r.status_code == 200
        body = r.json()
        assert body["features"] == ["text-input", "clarify-first"]
        assert body["clarifyPrompt"]
        assert "jsonSchemaHint" not in body

    def test_get_unknown_tool(self):
        r = self.client.get("/v1/tools/nope")
        assert r.status_code == 404
        assert r.json()["kind"] == "config_not_found"

    def test_status(self):
        r = self.client.get("/v1/status")
        assert r.status_code == 200
        assert r.json()["tools_available"] == 3
        assert r.json()["mock_llm"] is False


class TestExecuteEndpoint:
    def setup_method(self):
        self.llm = Mock()
        self.client, _ = make_client(self.llm)

    def test_final_json(self):
        self.llm.generate.return_value = '{"kpis":["Revenue grew 12%"]}'
        r = self.client.post("/v1/tools/kpi-extractor/execute",
                             json={"input": "Revenue grew 12%.", "outputFormat": "json"})
        assert r.status_code == 200
        assert r.json() == {"step": "final", "output": '{"kpis":["Revenue grew 12%"]}', "outputFormat": "json"}

    def test_clarify(self):
        self.llm.generate.return_value = json.dumps({"needClarification": True, "questions": ["Deadline?"]})
        r = self.client.post("/v1/tools/launch-brief/execute", json={"input": "Plan it", "mode": "auto"})
        assert r.status_code == 200
        assert r.json() == {"step": "clarify", "questions": ["Deadline?"], "outputFormat": "plain"}

    def test_missing_input_is_400(self):
        r = self.client.post("/v1/tools/kpi-extractor/execute", json={"mode": "simple"})
        assert r.status_code == 400
        assert r.json()["kind"] == "validation_error"

    def test_missing_body_is_400(self):
        r = self.client.post("/v1/tools/kpi-extractor/execute")
        assert r.status_code == 400

    def test_malformed_json_body_is_400(self):
        r = self.client.post(
            "/v1/tools/kpi-extractor/execute",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert r.status_code == 400
        body = r.json()
        assert body["kind"] == "validation_error"
        assert body["error"] == "Request body must be a JSON object"
        self.llm.generate.assert_not_called()

    def test_unknown_tool_is_404(self):
        r = self.client.post("/v1/tools/unknown/execute", json={"input": "hello"})
        assert r.status_code == 404
        assert r.json()["error"] == "Tool config not found for slug: unknown"

    def test_format_error_is_500_with_excerpt(self):
        self.llm.generate.side_effect = ["y" * 3000, "z" * 3000]
        r = self.client.post("/v1/tools/kpi-extractor/execute", json={"input": "x", "outputFormat": "json"})
        assert r.status_code == 500
        body = r.json()
        assert body["kind"] == "generation_format_error"
        assert body["details"] == "z" * 800

    def test_upstream_error_is_500(self):
        self.llm.generate.side_effect = UpstreamServiceError("Generation service call failed", details="timeout")
        r = self.client.post("/v1/tools/kpi-extractor/execute", json={"input": "x"})
        assert r.status_code == 500
        assert r.json() == {
            "error": "Generation service call failed",
            "kind": "upstream_service_error",
            "details": "timeout",
        }

    def test_unexpected_error_is_500(self):
        self.llm.generate.side_effect = RuntimeError("boom")
        r = self.client.post("/v1/tools/kpi-extractor/execute", json={"input": "x"})
        assert r.status_code == 500
        assert r.json() == {"error": "Server error", "details": "boom"}


class TestMockGenerator:
    def test_end_to_end_with_mock_llm(self):
        client, api = make_client(MockLLM())
        r = client.post("/v1/tools/kpi-extractor/execute", json={"input": "Revenue grew 12%.", "outputFormat": "json"})
        assert r.status_code == 200
        assert json.loads(r.json()["output"]) == {"result": "Revenue grew 12%."}

        r = client.post("/v1/tools/launch-brief/execute", json={"input": "Plan it", "mode": "auto"})
        assert r.json() == {"step": "final", "output": "[mock] Plan it", "outputFormat": "plain"}

        r = client.post("/v1/tools/broken/execute", json={"input": "Plan it", "mode": "build"})
        assert json.loads(r.json()["output"])["stepId"] == "mock-step"
        assert client.get("/v1/status").json()["mock_llm"] is True
