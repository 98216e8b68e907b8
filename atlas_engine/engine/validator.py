"""
Structured output validation with a single bounded repair.

Plain output is returned with code fences stripped. JSON output must parse;
if it does not, exactly one deterministic repair call is made and the
result parsed again. A second failure raises GenerationFormatError, so a
validated generation costs at most two upstream calls.
"""

import json
import re
from typing import Any, Callable, Tuple
import logging

from .prompts import REPAIR_SYSTEM_PROMPT, repair_user_prompt
from ..core.errors import GenerationFormatError
from ..core.tool_config import OUTPUT_JSON
from ..llm.generators import LLMInterface

logger = logging.getLogger(__name__)

EXCERPT_CHARS = 800
REPAIR_TEMPERATURE = 0.0

# Only a fence wrapping the whole output; fences inside the text are content.
_WRAPPING_FENCE = re.compile(r"\A```[\w+-]*[ \t]*\n?(.*?)\n?[ \t]*```\Z", re.DOTALL)


def strip_code_fences(raw: str) -> str:
    """Remove a ```lang ... ``` fence the generator may have wrapped output in."""
    text = (raw or "").strip()
    match = _WRAPPING_FENCE.match(text)
    if match:
        return match.group(1).strip()
    return text


def try_parse_json(text: str) -> Tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return False, None


def is_json_valid(text: str) -> bool:
    return try_parse_json(text)[0]


def excerpt(text: str, limit: int = EXCERPT_CHARS) -> str:
    return (text or "")[:limit]


def attempt_with_repair(
    text: str,
    check: Callable[[str], Tuple[bool, Any]],
    repair: Callable[[str], str],
) -> Tuple[bool, str, Any]:
    """Check text; on failure run repair once and check the repaired text.

    Returns (ok, final_text, value). Never calls repair more than once.
    """
    ok, value = check(text)
    if ok:
        return True, text, value
    repaired = repair(text)
    ok, value = check(repaired)
    return ok, repaired, value


class OutputValidator:
    """Enforces the output-format contract on generated text."""

    def __init__(self, llm: LLMInterface):
        self.llm = llm

    def repair(self, broken_text: str, schema_hint: str = "") -> str:
        """The single deterministic repair sub-call."""
        logger.warning(f"Generated JSON invalid; running repair ({len(broken_text or '')} chars)")
        repaired = self.llm.generate(
            REPAIR_SYSTEM_PROMPT,
            repair_user_prompt(broken_text, schema_hint),
            REPAIR_TEMPERATURE,
        )
        return strip_code_fences(repaired)

    def parse_json(self, raw_text: str, schema_hint: str = "") -> Tuple[str, Any]:
        """
        Parse generated JSON, repairing once if needed.

        Returns:
            Tuple of (validated text, parsed value)

        Raises:
            GenerationFormatError: when the repaired text still does not parse
        """
        ok, text, value = attempt_with_repair(
            strip_code_fences(raw_text),
            try_parse_json,
            lambda broken: self.repair(broken, schema_hint),
        )
        if not ok:
            logger.error("Generated JSON still invalid after repair")
            raise GenerationFormatError("Model returned invalid JSON and repair failed", excerpt=excerpt(text))
        return text, value

    def enforce(self, raw_text: str, output_format: str, schema_hint: str = "") -> str:
        """Return output satisfying output_format."""
        if output_format != OUTPUT_JSON:
            return strip_code_fences(raw_text)
        text, _ = self.parse_json(raw_text, schema_hint)
        return text
