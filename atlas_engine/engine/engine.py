"""
Tool execution engine.

One call runs one tool request end to end:

    parse request -> load + normalize config -> build mode? -> planner
                                             -> clarify phase (auto mode)
                                             -> finalize call -> validate

The engine is request-scoped: it holds only its collaborators, never
per-request state, so one instance can serve concurrent calls.
"""

from typing import Any, Optional
import logging

from .clarifier import ClarificationCoordinator
from .planner import BuildPlanner
from .prompts import Focus, PromptContext, PromptPhase, assemble_system_prompt, finalize_user_content
from .validator import OutputValidator
from ..core.capabilities import Capability
from ..core.config_store import ToolConfigStore
from ..core.execution import ExecutionMode, ExecutionRequest, ExecutionResult
from ..core.tool_config import OUTPUT_PLAIN, ToolConfig, normalize_config
from ..llm.generators import LLMInterface

logger = logging.getLogger(__name__)

DEFAULT_FINALIZE_TEMPERATURE = 0.4


def effective_output_format(config: ToolConfig, requested: Optional[str]) -> str:
    """Requested format, else the tool default; plain unless structured output is enabled."""
    if not config.has(Capability.STRUCTURED_OUTPUT):
        return OUTPUT_PLAIN
    return requested or config.output_format_default


def focus_for(request: ExecutionRequest) -> Optional[Focus]:
    if not request.has_focus:
        return None
    return Focus(label=request.focus_label, prompt=request.focus_prompt)


class ToolEngine:
    """Executes tool requests against a config store and a generator."""

    def __init__(self, store: ToolConfigStore, llm: LLMInterface):
        self.store = store
        self.llm = llm
        self.validator = OutputValidator(llm)
        self.clarifier = ClarificationCoordinator(llm, self.validator)
        self.planner = BuildPlanner(llm, self.validator)

    def load_config(self, slug: str) -> ToolConfig:
        """Fetch and normalize a tool config; raises ConfigNotFoundError."""
        return normalize_config(self.store.get_raw(slug), slug=slug)

    def execute(self, slug: str, payload: Any) -> ExecutionResult:
        """
        Run one tool request.

        Args:
            slug: Tool identifier
            payload: Request body in the camelCase request shape

        Returns:
            ExecutionResult: a clarify round-trip or the final output

        Raises:
            ValidationError, ConfigNotFoundError, GenerationFormatError,
            UpstreamServiceError
        """
        request = ExecutionRequest.from_dict(payload)
        config = self.load_config(slug)
        logger.info(f"Executing tool {slug} (mode={request.mode.value})")
        return self.run(config, request)

    def run(self, config: ToolConfig, request: ExecutionRequest) -> ExecutionResult:
        focus = focus_for(request)

        if request.mode == ExecutionMode.BUILD:
            return self.planner.plan(config, request, focus)

        output_format = effective_output_format(config, request.output_format)

        outcome = self.clarifier.run(config, request, focus)
        if outcome.should_return:
            return ExecutionResult.clarify(list(outcome.questions), output_format)

        ctx = PromptContext(config=config, output_format=output_format, focus=focus)
        system_prompt = assemble_system_prompt(PromptPhase.FINALIZE, ctx)
        temperature = config.temperature if config.temperature is not None else DEFAULT_FINALIZE_TEMPERATURE

        raw = self.llm.generate(system_prompt, finalize_user_content(request.input, request.answers), temperature)
        output = self.validator.enforce(raw, output_format, ctx.schema_hint)
        logger.info(f"Tool {config.slug} finished ({output_format}, {len(output)} chars)")
        return ExecutionResult.final(output, output_format)
