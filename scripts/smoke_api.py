"""Simple smoke test for the FastAPI app using TestClient and the mock generator.
Run with: python scripts/smoke_api.py (from repo root).
"""

import os
import sys
from fastapi.testclient import TestClient

# Ensure we can import the package when running as a script
HERE = os.path.dirname(__file__)
PROJ_ROOT = os.path.abspath(os.path.join(HERE, os.pardir))
if PROJ_ROOT not in sys.path:
    sys.path.insert(0, PROJ_ROOT)

from atlas_engine.api import create_app
from atlas_engine.core.settings import EngineSettings
from atlas_engine.main import ToolEngineAPI


def main():
    settings = EngineSettings(
        use_mock_llm=True,
        tool_config_dir=os.path.join(PROJ_ROOT, "tool-configs"),
    )
    c = TestClient(create_app(ToolEngineAPI(settings)))

    r = c.get("/v1/tools")
    print("TOOLS:", r.status_code, r.json())

    r = c.post("/v1/tools/kpi-extractor/execute", json={"input": "Revenue grew 12%.", "outputFormat": "json"})
    print("KPI json:", r.status_code, r.json())

    r = c.post("/v1/tools/launch-brief/execute", json={"input": "Plan our product launch", "mode": "auto"})
    print("CLARIFY auto:", r.status_code, r.json())

    r = c.post(
        "/v1/tools/launch-brief/execute",
        json={"input": "Plan our product launch", "mode": "auto", "answers": ["Friday", "Executives"]},
    )
    print("CLARIFY answered:", r.status_code, r.json())

    r = c.post("/v1/tools/app-builder/execute", json={"input": "A habit tracker", "mode": "build",
                                                      "buildStepId": "data-model"})
    print("BUILD step:", r.status_code, r.json())

    r = c.post("/v1/tools/kpi-extractor/execute", json={"input": "   "})
    print("EMPTY input:", r.status_code, r.json())

    r = c.post("/v1/tools/no-such-tool/execute", json={"input": "hello"})
    print("UNKNOWN tool:", r.status_code, r.json())

    r = c.get("/v1/status")
    print("STATUS:", r.status_code, r.json())


if __name__ == "__main__":
    main()
