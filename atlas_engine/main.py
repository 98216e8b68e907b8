"""
Engine wiring and API facade.

ToolEngineAPI assembles the settings, configuration store and generator
into a ToolEngine and exposes the operations the HTTP layer and scripts use.
"""

import json
import logging
from typing import Dict, Any, List, Optional
from datetime import datetime

from .core.config_store import FileToolConfigStore, ToolConfigStore
from .core.errors import EngineError
from .core.settings import EngineSettings
from .core.tool_config import normalize_config
from .engine.engine import ToolEngine
from .llm.generators import LLMInterface, MockLLM
from .llm.real_llm import OpenAILLM

logger = logging.getLogger(__name__)


def build_llm(settings: EngineSettings) -> LLMInterface:
    if settings.use_mock_llm:
        logger.info("Using mock LLM")
        return MockLLM()
    logger.info(f"Using OpenAI LLM ({settings.model})")
    return OpenAILLM(api_key=settings.openai_api_key, model=settings.model, base_url=settings.openai_base_url)


class ToolEngineAPI:
    """Simple API wrapper for the tool execution engine."""

    def __init__(self, settings: Optional[EngineSettings] = None, store: Optional[ToolConfigStore] = None,
                 llm: Optional[LLMInterface] = None):
        """Initialize API.

        Missing collaborators are built from settings (EngineSettings.from_env()
        when no settings are given).
        """
        self.settings = settings or EngineSettings.from_env()
        self.store = store if store is not None else FileToolConfigStore(self.settings.tool_config_dir)
        self.llm = llm if llm is not None else build_llm(self.settings)
        self.engine = ToolEngine(self.store, self.llm)
        logger.info("Tool engine API initialized")

    def execute(self, slug: str, body: Any) -> Dict[str, Any]:
        """
        Execute one tool request.

        Args:
            slug: Tool identifier
            body: Request body ({input, mode, outputFormat, answers, ...})

        Returns:
            Dict: {step: "clarify", questions, outputFormat} or
                  {step: "final", output, outputFormat}
        """
        return self.engine.execute(slug, body).to_dict()

    def get_tool(self, slug: str) -> Dict[str, Any]:
        """Normalized configuration of one tool."""
        return self.engine.load_config(slug).to_dict()

    def list_tools(self) -> List[Dict[str, Any]]:
        """Catalog summary of every readable tool, sorted by title."""
        tools = []
        for raw in self.store.list_raw():
            try:
                config = normalize_config(raw)
            except EngineError as e:
                logger.warning(f"Skipping tool {raw.get('slug')}: {e}")
                continue
            tools.append({"slug": config.slug, "title": config.title, "description": config.description})
        return sorted(tools, key=lambda t: t["title"].lower())

    def status(self) -> Dict[str, Any]:
        """Get engine status."""
        return {
            "status": "running",
            "timestamp": datetime.now().isoformat(),
            "tools_available": len(self.list_tools()),
            "model": self.settings.model,
            "mock_llm": isinstance(self.llm, MockLLM),
        }


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    api = ToolEngineAPI()
    print(json.dumps(api.status(), indent=2))
    for tool in api.list_tools():
        print(f"- {tool['slug']}: {tool['title']}")
