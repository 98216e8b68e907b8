"""
Layered system prompt assembly.

Every system prompt is built from the same four ordered layers:

1. phase core (clarify instructions | tool identity | build directive)
2. focus lens block
3. phase addenda (finalize instructions | build step instructions)
4. structured-output directive (only for JSON output)

Each PromptPhase owns a layer builder; compose() joins the non-empty
layers with SEPARATOR.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ..core.tool_config import (
    DEFAULT_CLARIFY_PROMPT,
    DEFAULT_SCHEMA_HINT,
    OUTPUT_JSON,
    ToolConfig,
)

SEPARATOR = "\n\n---\n\n"

CLARIFY_SCHEMA_HINT = '{"needClarification": boolean, "questions": string[]}'

BUILD_SCHEMA_HINT = """{
  "stepId": string,
  "title": string,
  "summary": string,
  "assumptions": string[],
  "openQuestions": string[],
  "deliverables": [{"type": "files"|"db"|"routes"|"prompts"|"plan", "items": any[]}],
  "nextSteps": [{"id": string, "title": string, "prompt": string}]
}"""

REPAIR_SYSTEM_PROMPT = """
You are a JSON repair function.

Rules:
- Output ONLY valid JSON.
- Do not include markdown fences.
- Do not add commentary.
- If information is missing, use null or empty strings/arrays rather than inventing facts.
""".strip()


class PromptPhase(str, Enum):
    CLARIFY = "clarify"
    FINALIZE = "finalize"
    BUILD = "build"


@dataclass(frozen=True)
class Focus:
    """A selected focus lens."""
    label: str = ""
    prompt: str = ""


@dataclass(frozen=True)
class PromptContext:
    """Everything a layer builder may need."""
    config: ToolConfig
    output_format: str
    focus: Optional[Focus] = None
    build_step_id: str = ""
    build_prompt: str = ""

    @property
    def schema_hint(self) -> str:
        return (self.config.json_schema_hint or "").strip()


def compose(*parts: Optional[str]) -> str:
    """Join the non-empty parts, in order, with SEPARATOR."""
    cleaned = [p.strip() for p in parts if p and p.strip()]
    return SEPARATOR.join(cleaned)


def focus_block(focus: Optional[Focus]) -> str:
    if focus is None:
        return ""
    label = (focus.label or "").strip()
    prompt = (focus.prompt or "").strip()
    if not label and not prompt:
        return ""
    return "\n".join([
        "FOCUS LENS (apply this lens to the behavior and evaluation criteria):",
        f"Label: {label or '(none)'}",
        "Instructions:",
        prompt or "- Use the label as light guidance if no prompt was provided.",
    ])


def structured_output_directive(schema_hint: str) -> str:
    return "\n".join([
        "IMPORTANT OUTPUT RULE:",
        "- Output MUST be valid JSON only (no markdown, no extra commentary).",
        f"- Follow this schema hint if provided: {schema_hint.strip() or '(no hint)'}.",
        "- If uncertain or missing information, use null/empty fields rather than inventing facts.",
    ])


def build_core_directive(output_format: str, build_step_id: str = "", build_prompt: str = "") -> str:
    if output_format == OUTPUT_JSON:
        output_rule = "- Output ONLY valid JSON. No markdown.\n- Use the schema in the output rule exactly."
    else:
        output_rule = "- Output plain text. Use headings and bullet points."
    return f"""
You are Atlas Build Engine.

Goal:
- Turn a high-level idea into real software by working top-down.
- Produce incremental, structured build artifacts that can be executed or implemented.

Rules:
- Be specific and technical. Prefer concrete files, routes, DB tables, and logic.
- Do NOT invent external project files that were not requested; instead propose them explicitly.
- Keep changes incremental: output the smallest useful set of deliverables for this step.
- If something is ambiguous, include 1-3 "openQuestions" entries instead of guessing.
- Always propose the next steps, each with an id, a title and a ready-to-use prompt.

Output requirement:
{output_rule}

Deliverable conventions:
- If delivering code, include objects like:
  {{ "path": "src/...", "purpose": "...", "content": "FULL FILE CONTENT" }}
- If delivering DB changes, include:
  {{ "model": "...", "change": "...", "migrationNotes": "..." }}
- If delivering route contracts, include:
  {{ "method": "POST", "path": "/api/...", "request": {{...}}, "response": {{...}} }}

Step context:
- buildStepId: {build_step_id or "(none)"}
- buildPrompt (instructions): {"provided" if build_prompt else "not provided"}
""".strip()


# Layer builders return (core, addenda) for their phase.

def _clarify_layers(ctx: PromptContext) -> Tuple[str, List[str]]:
    return (ctx.config.clarify_prompt or DEFAULT_CLARIFY_PROMPT), []


def _finalize_layers(ctx: PromptContext) -> Tuple[str, List[str]]:
    addenda = []
    if ctx.config.finalize_prompt:
        addenda.append(f"FINALIZE INSTRUCTIONS:\n{ctx.config.finalize_prompt}")
    return ctx.config.system_prompt, addenda


def _build_layers(ctx: PromptContext) -> Tuple[str, List[str]]:
    addenda = []
    if ctx.build_prompt:
        addenda.append(f"BUILD STEP INSTRUCTIONS:\n{ctx.build_prompt}")
    if ctx.config.system_prompt:
        addenda.append(f"TOOL IDENTITY (tone and domain; build rules take precedence):\n{ctx.config.system_prompt}")
    return build_core_directive(ctx.output_format, ctx.build_step_id, ctx.build_prompt), addenda


_LAYER_BUILDERS: Dict[PromptPhase, Callable[[PromptContext], Tuple[str, List[str]]]] = {
    PromptPhase.CLARIFY: _clarify_layers,
    PromptPhase.FINALIZE: _finalize_layers,
    PromptPhase.BUILD: _build_layers,
}


def assemble_system_prompt(phase: PromptPhase, ctx: PromptContext) -> str:
    """
    Build the system prompt for one upstream call.

    Args:
        phase: Which mutually exclusive core the prompt is built around
        ctx: Tool config, effective output format, focus and build step

    Returns:
        str: The layered system prompt
    """
    core, addenda = _LAYER_BUILDERS[phase](ctx)

    structured = ""
    # The clarify call carries its own fixed JSON contract.
    if phase != PromptPhase.CLARIFY and ctx.output_format == OUTPUT_JSON:
        hint = BUILD_SCHEMA_HINT if phase == PromptPhase.BUILD else (ctx.schema_hint or DEFAULT_SCHEMA_HINT)
        structured = structured_output_directive(hint)

    return compose(core, focus_block(ctx.focus), *addenda, structured)


def repair_user_prompt(broken_text: str, schema_hint: str = "") -> str:
    return "\n".join([
        "The following should be valid JSON but is not. Repair it.",
        "",
        "JSON_SCHEMA_HINT (optional):",
        schema_hint.strip() or "(none)",
        "",
        "BROKEN_JSON:",
        broken_text,
    ]).strip()


def finalize_user_content(user_input: str, answers: Optional[Tuple[str, ...]]) -> str:
    """User content for the finalize call; clarify answers are numbered Q1..Qn.

    Any supplied answers list, even an empty one, gets the framing.
    """
    if answers is None:
        return user_input
    numbered = "\n".join(f"Q{i}: {answer}" for i, answer in enumerate(answers, start=1))
    return "\n".join([
        "USER INPUT:",
        user_input,
        "",
        "CLARIFY ANSWERS (treat as truth; do not invent):",
        numbered,
    ]).strip()
