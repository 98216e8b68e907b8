"""Probe a running API server (python -m atlas_engine.api) with a few requests."""

import json
import os
import requests

BASE = os.getenv("ATLAS_API_BASE", "http://127.0.0.1:8000")


def post(label, slug, payload):
    print(f"\n=== {label} ===")
    r = requests.post(f"{BASE}/v1/tools/{slug}/execute", json=payload, timeout=120)
    print("status:", r.status_code)
    try:
        print("body:", json.dumps(r.json(), indent=2))
    except ValueError:
        print("text:", r.text[:500])


def main():
    r = requests.get(BASE + "/v1/tools", timeout=10)
    print("tools:", r.status_code, json.dumps(r.json(), indent=2))

    cases = [
        ("kpi_json", "kpi-extractor", {"input": "Revenue grew 12%. Churn fell to 3%.", "outputFormat": "json"}),
        ("kpi_plain", "kpi-extractor", {"input": "Revenue grew 12%.", "outputFormat": "plain"}),
        ("clarify_first", "launch-brief", {"input": "Plan our product launch", "mode": "auto"}),
        ("clarify_answered", "launch-brief", {
            "input": "Plan our product launch",
            "mode": "auto",
            "answers": ["Next Friday", "Executives"],
        }),
        ("focus_lens", "meeting-notes", {
            "input": "Notes: shipped v2, hiring paused, budget review next week",
            "focusLabel": "More actionable",
            "focusPrompt": "Add concrete next steps with owners.",
        }),
        ("build_step", "app-builder", {"input": "A habit tracker for teams", "mode": "build", "buildStepId": "data-model"}),
        ("missing_input", "kpi-extractor", {"input": ""}),
    ]
    for label, slug, payload in cases:
        post(label, slug, payload)


if __name__ == "__main__":
    main()
