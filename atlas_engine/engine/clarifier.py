"""
Clarify-first coordination.

The clarify state is derived on every call from the tool's capabilities,
the request mode and whether answers were supplied; nothing is stored
between calls.

    NOT_APPLICABLE      capability absent, mode != auto, or build mode
    ANSWERS_SUPPLIED    answers present -> straight to finalize
    AWAITING_DECISION   one clarify call decides:
        CLARIFY_RETURNED    needClarification and >= 1 question
        PROCEED_TO_FINAL    anything else, including unparseable output
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple
import logging

from .prompts import CLARIFY_SCHEMA_HINT, Focus, PromptContext, PromptPhase, assemble_system_prompt
from .validator import OutputValidator
from ..core.capabilities import Capability
from ..core.errors import GenerationFormatError
from ..core.execution import MAX_CLARIFY_QUESTIONS, ExecutionMode, ExecutionRequest
from ..core.tool_config import OUTPUT_JSON, ToolConfig
from ..llm.generators import LLMInterface

logger = logging.getLogger(__name__)

CLARIFY_TEMPERATURE = 0.2


class ClarifyState(str, Enum):
    NOT_APPLICABLE = "not_applicable"
    AWAITING_DECISION = "awaiting_decision"
    ANSWERS_SUPPLIED = "answers_supplied"
    CLARIFY_RETURNED = "clarify_returned"
    PROCEED_TO_FINAL = "proceed_to_final"


@dataclass(frozen=True)
class ClarifyOutcome:
    state: ClarifyState
    questions: Tuple[str, ...] = ()

    @property
    def should_return(self) -> bool:
        return self.state == ClarifyState.CLARIFY_RETURNED


def initial_state(config: ToolConfig, request: ExecutionRequest) -> ClarifyState:
    if request.mode != ExecutionMode.AUTO or not config.has(Capability.CLARIFY_FIRST):
        return ClarifyState.NOT_APPLICABLE
    if request.answers is not None:
        return ClarifyState.ANSWERS_SUPPLIED
    return ClarifyState.AWAITING_DECISION


def read_decision(parsed: Any) -> Tuple[bool, List[str]]:
    """Extract (needClarification, questions) from a parsed clarify reply."""
    if not isinstance(parsed, dict):
        return False, []
    need = bool(parsed.get("needClarification"))
    raw_questions = parsed.get("questions")
    if not isinstance(raw_questions, list):
        return need, []
    questions = [str(q).strip() for q in raw_questions if q is not None and str(q).strip()]
    return need, questions[:MAX_CLARIFY_QUESTIONS]


class ClarificationCoordinator:
    """Runs the optional pre-flight question-asking phase."""

    def __init__(self, llm: LLMInterface, validator: OutputValidator):
        self.llm = llm
        self.validator = validator

    def run(self, config: ToolConfig, request: ExecutionRequest, focus: Optional[Focus] = None) -> ClarifyOutcome:
        """
        Decide whether the request must stop for clarification.

        Upstream failures propagate; a clarify reply that cannot be parsed
        even after repair counts as "no clarification needed".
        """
        state = initial_state(config, request)
        if state != ClarifyState.AWAITING_DECISION:
            logger.debug(f"Clarify phase skipped for {config.slug}: {state.value}")
            return ClarifyOutcome(state=state)

        system_prompt = assemble_system_prompt(
            PromptPhase.CLARIFY,
            PromptContext(config=config, output_format=OUTPUT_JSON, focus=focus),
        )
        raw = self.llm.generate(system_prompt, request.input, CLARIFY_TEMPERATURE)

        try:
            _, parsed = self.validator.parse_json(raw, CLARIFY_SCHEMA_HINT)
        except GenerationFormatError:
            logger.warning(f"Clarify reply for {config.slug} unparseable after repair; proceeding to final")
            parsed = {"needClarification": False, "questions": []}

        need, questions = read_decision(parsed)
        if need and questions:
            logger.info(f"Clarification requested for {config.slug}: {len(questions)} question(s)")
            return ClarifyOutcome(state=ClarifyState.CLARIFY_RETURNED, questions=tuple(questions))
        return ClarifyOutcome(state=ClarifyState.PROCEED_TO_FINAL)
