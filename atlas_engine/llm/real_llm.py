"""
OpenAI integration for the execution engine.

Wraps the Chat Completions API behind LLMInterface. Any failure of the
call itself is raised as UpstreamServiceError; this layer never retries.
"""

import logging
from typing import Optional

import openai
from openai import OpenAI

from .generators import LLMInterface
from ..core.errors import UpstreamServiceError
from ..core.settings import DEFAULT_MODEL

logger = logging.getLogger(__name__)


class OpenAILLM(LLMInterface):
    """OpenAI LLM implementation for real generation calls."""

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL,
                 base_url: Optional[str] = None, client: Optional[OpenAI] = None):
        """Initialize; the OpenAI client is created on first use."""
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self._client = client
        logger.info(f"OpenAI LLM initialized with model: {model}")

    def _get_client(self) -> OpenAI:
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise UpstreamServiceError("OPENAI_API_KEY missing on server")
        self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def generate(self, system_prompt: str, user_content: str, temperature: float) -> str:
        """Generate text using the Chat Completions API."""
        client = self._get_client()
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_content})

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI API call failed: {e}")
            raise UpstreamServiceError("Generation service call failed", details=str(e)) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
