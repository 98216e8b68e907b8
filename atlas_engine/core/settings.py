"""
Runtime settings read from the environment.
"""

import os
from typing import Literal, Optional

from pydantic import BaseModel, field_validator


DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_CONFIG_DIR = "tool-configs"


class EngineSettings(BaseModel):
    model: str = DEFAULT_MODEL
    tool_config_dir: str = DEFAULT_CONFIG_DIR
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    use_mock_llm: bool = False
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None

    @field_validator("log_level", mode="before")  # noqa
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return str(value or "INFO").strip().upper()

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from ATLAS_* and OPENAI_* environment variables."""
        return cls(
            model=os.getenv("ATLAS_MODEL", "").strip() or DEFAULT_MODEL,
            tool_config_dir=os.getenv("ATLAS_TOOL_CONFIG_DIR", "").strip() or DEFAULT_CONFIG_DIR,
            log_level=os.getenv("ATLAS_LOG_LEVEL", "INFO"),
            use_mock_llm=os.getenv("ATLAS_USE_MOCK_LLM", "").strip() == "1",
            openai_api_key=(os.getenv("OPENAI_API_KEY") or "").strip() or None,
            openai_base_url=(os.getenv("OPENAI_BASE_URL") or "").strip() or None,
        )
