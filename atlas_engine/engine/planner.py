"""
Build-mode planning.

Build mode turns a tool into a step-wise planning oracle: each response
answers the current step and proposes the next steps' prompts. The caller
walks the plan one call at a time; the engine keeps no plan state.
"""

from typing import Any, Dict, List, Optional
import logging

import jsonschema

from .prompts import BUILD_SCHEMA_HINT, Focus, PromptContext, PromptPhase, assemble_system_prompt
from .validator import OutputValidator, try_parse_json
from ..core.execution import ExecutionRequest, ExecutionResult
from ..core.tool_config import OUTPUT_JSON, OUTPUT_PLAIN, ToolConfig
from ..llm.generators import LLMInterface

logger = logging.getLogger(__name__)

DEFAULT_BUILD_TEMPERATURE = 0.35

DELIVERABLE_TYPES = ("files", "db", "routes", "prompts", "plan")

BUILD_STEP_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["stepId", "title", "summary", "assumptions", "openQuestions", "deliverables", "nextSteps"],
    "properties": {
        "stepId": {"type": "string"},
        "title": {"type": "string"},
        "summary": {"type": "string"},
        "assumptions": {"type": "array", "items": {"type": "string"}},
        "openQuestions": {"type": "array", "items": {"type": "string"}},
        "deliverables": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["type", "items"],
                "properties": {
                    "type": {"enum": list(DELIVERABLE_TYPES)},
                    "items": {"type": "array"},
                },
            },
        },
        "nextSteps": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "title", "prompt"],
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "prompt": {"type": "string"},
                },
            },
        },
    },
}

_STEP_VALIDATOR = jsonschema.Draft7Validator(BUILD_STEP_SCHEMA)


def resolve_build_output_format(requested: Optional[str]) -> str:
    """JSON unless the caller explicitly asked for plain."""
    return OUTPUT_PLAIN if requested == OUTPUT_PLAIN else OUTPUT_JSON


def build_step_deviations(step: Any) -> List[str]:
    """Schema deviations of a parsed build step, for diagnostics."""
    return [
        f"{'/'.join(str(p) for p in error.absolute_path) or '(root)'}: {error.message}"
        for error in _STEP_VALIDATOR.iter_errors(step)
    ]


class BuildPlanner:
    """Runs a build-mode request."""

    def __init__(self, llm: LLMInterface, validator: OutputValidator):
        self.llm = llm
        self.validator = validator

    def step_instructions(self, config: ToolConfig, request: ExecutionRequest) -> str:
        """Explicit buildPrompt, else the config's pre-authored step with that id."""
        if request.build_prompt:
            return request.build_prompt
        if request.build_step_id:
            step = config.find_build_step(request.build_step_id)
            if step is not None:
                logger.info(f"Using pre-authored build step {step.id} for {config.slug}")
                return step.prompt
        return ""

    def plan(self, config: ToolConfig, request: ExecutionRequest, focus: Optional[Focus] = None) -> ExecutionResult:
        output_format = resolve_build_output_format(request.output_format)
        ctx = PromptContext(
            config=config,
            output_format=output_format,
            focus=focus,
            build_step_id=request.build_step_id,
            build_prompt=self.step_instructions(config, request),
        )
        system_prompt = assemble_system_prompt(PromptPhase.BUILD, ctx)
        temperature = config.temperature if config.temperature is not None else DEFAULT_BUILD_TEMPERATURE

        raw = self.llm.generate(system_prompt, request.input, temperature)
        output = self.validator.enforce(raw, output_format, BUILD_SCHEMA_HINT)

        if output_format == OUTPUT_JSON:
            _, step = try_parse_json(output)
            deviations = build_step_deviations(step)
            if deviations:
                logger.warning(f"Build step for {config.slug} deviates from schema: {deviations[:5]}")

        return ExecutionResult.final(output, output_format)
