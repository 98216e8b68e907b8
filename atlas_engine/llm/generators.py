"""
Generation service interface.

The engine talks to the text-generation service through a single call,
generate(system_prompt, user_content, temperature) -> text, so any
provider (or a test double) can sit behind it.
"""

import json
import re
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class LLMInterface(ABC):
    """Abstract interface for the generation service."""

    @abstractmethod
    def generate(self, system_prompt: str, user_content: str, temperature: float) -> str:
        """Generate text; raises UpstreamServiceError when the call fails."""
        pass


class MockLLM(LLMInterface):
    """Offline generator for demos and smoke runs without an API key."""

    def generate(self, system_prompt: str, user_content: str, temperature: float) -> str:
        """Mock response chosen from markers in the system prompt."""
        system = system_prompt or ""

        if "JSON repair function" in system:
            broken = user_content.split("BROKEN_JSON:", 1)[-1]
            match = re.search(r"\{.*\}", broken, re.DOTALL)
            return match.group(0) if match else "{}"

        if '"needClarification"' in system:
            return json.dumps({"needClarification": False, "questions": []})

        wants_json = "IMPORTANT OUTPUT RULE" in system
        if "Atlas Build Engine" in system:
            if not wants_json:
                return f"# Build step\n\n- Goal: {user_content.strip()[:200]}\n- Next: refine the plan"
            return json.dumps({
                "stepId": "mock-step",
                "title": "Mock build step",
                "summary": user_content.strip()[:200],
                "assumptions": [],
                "openQuestions": [],
                "deliverables": [{"type": "plan", "items": ["Outline the smallest useful increment"]}],
                "nextSteps": [{"id": "mock-next", "title": "Next step", "prompt": "Continue the build."}],
            })

        if wants_json:
            return json.dumps({"result": user_content.strip()[:200]})
        return f"[mock] {user_content.strip()}"
