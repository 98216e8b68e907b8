"""
Tool configuration records and their normalization.

Raw tool records come from the configuration store in the camelCase JSON
shape the catalog was authored in. normalize_config turns such a record
into an immutable ToolConfig:

- capabilities intersected with the recognized enumeration
- presets coerced into the lens shape {label, prompt, hint?}
- output-format default coerced to "plain" or "json"
- capability-gated fields kept only when their capability is enabled,
  defaulted when effectively absent

Normalization is idempotent: normalize_config(cfg.to_dict()) == cfg.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union
import logging

from .capabilities import Capability, ordered, parse_capabilities
from .errors import ConfigInvalidError

logger = logging.getLogger(__name__)


OUTPUT_PLAIN = "plain"
OUTPUT_JSON = "json"
OUTPUT_FORMATS = (OUTPUT_PLAIN, OUTPUT_JSON)

MAX_PRESETS = 6
MAX_LABEL_CHARS = 60
MAX_LENS_PROMPT_CHARS = 1200
MAX_HINT_CHARS = 160
MAX_LEGACY_INPUT_CHARS = 400

# Instruction texts shorter than this are treated as absent.
MIN_INSTRUCTION_CHARS = 20

LEGACY_LENS_PREFIX = "Use this lens while generating: "
LEGACY_LENS_HINT = "Refinement lens (converted from legacy preset)"
DEFAULT_PRESET_LABEL = "Refine"
DEFAULT_TITLE = "Untitled Tool"

DEFAULT_CLARIFY_PROMPT = """
You are Atlas in "clarify-first" mode.

Task:
- Read the user's input and decide what MUST be clarified before producing the final artifact.

Output:
Return ONLY strict JSON in this shape:
{
  "needClarification": boolean,
  "questions": string[]
}

Rules:
- Ask 2-6 questions max.
- Questions must be short, practical, and directly unblock the output.
- If you have enough info, set needClarification=false and questions=[].
- Do NOT generate the final artifact here.
- Do NOT invent facts.
""".strip()

DEFAULT_FINALIZE_PROMPT = """
Produce the final artifact now.
- Treat the user's input and any clarify answers as the only source of facts.
- Do not ask further questions; state assumptions briefly where something is still unknown.
""".strip()

DEFAULT_SCHEMA_HINT = "A single JSON object whose keys describe each part of the output."


@dataclass(frozen=True)
class Lens:
    """A refinement lens layered onto the base prompt."""
    label: str
    prompt: str
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"label": self.label, "prompt": self.prompt}
        if self.hint:
            data["hint"] = self.hint
        return data


@dataclass(frozen=True)
class BuildStep:
    """A pre-authored build-mode step a caller may request by id."""
    id: str
    title: str
    prompt: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "prompt": self.prompt}


@dataclass(frozen=True)
class ToolConfig:
    """Normalized, read-only tool configuration."""
    slug: str
    title: str = DEFAULT_TITLE
    description: str = ""
    input_label: str = ""
    output_label: str = ""
    system_prompt: str = ""
    temperature: Optional[float] = None
    capabilities: FrozenSet[Capability] = field(default_factory=lambda: frozenset({Capability.TEXT_INPUT}))
    presets: Tuple[Lens, ...] = ()
    output_format_default: str = OUTPUT_PLAIN
    json_schema_hint: Optional[str] = None
    clarify_prompt: Optional[str] = None
    finalize_prompt: Optional[str] = None
    build_steps: Tuple[BuildStep, ...] = ()

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def find_build_step(self, step_id: str) -> Optional[BuildStep]:
        for step in self.build_steps:
            if step.id == step_id:
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the camelCase record shape."""
        data: Dict[str, Any] = {
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "inputLabel": self.input_label,
            "outputLabel": self.output_label,
            "systemPrompt": self.system_prompt,
        }
        if self.temperature is not None:
            data["temperature"] = self.temperature
        data["features"] = [c.value for c in ordered(self.capabilities)]
        if self.has(Capability.PRESETS):
            data["presets"] = [p.to_dict() for p in self.presets]
        data["outputFormatDefault"] = self.output_format_default
        if self.has(Capability.STRUCTURED_OUTPUT):
            data["jsonSchemaHint"] = self.json_schema_hint
        if self.has(Capability.CLARIFY_FIRST):
            data["clarifyPrompt"] = self.clarify_prompt
            data["finalizePrompt"] = self.finalize_prompt
        if self.build_steps:
            data["buildSteps"] = [s.to_dict() for s in self.build_steps]
        return data


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clip(value: str, limit: int) -> str:
    return value.strip()[:limit].strip()


def _instruction(value: Any, fallback: str) -> str:
    text = _text(value)
    if len(text) < MIN_INSTRUCTION_CHARS:
        return fallback
    return text


def _temperature(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return min(1.0, max(0.0, number))


def normalize_preset(raw: Any) -> Optional[Lens]:
    """Coerce one preset into a Lens; None when it carries nothing usable."""
    if not isinstance(raw, Mapping):
        return None
    label = _clip(_text(raw.get("label")), MAX_LABEL_CHARS) or DEFAULT_PRESET_LABEL

    prompt = _text(raw.get("prompt"))
    if prompt:
        hint = _clip(_text(raw.get("hint")), MAX_HINT_CHARS) or None
        return Lens(label=label, prompt=_clip(prompt, MAX_LENS_PROMPT_CHARS), hint=hint)

    legacy_input = _text(raw.get("input"))
    if legacy_input:
        legacy_input = _clip(legacy_input, MAX_LEGACY_INPUT_CHARS)
        return Lens(
            label=label,
            prompt=_clip(LEGACY_LENS_PREFIX + legacy_input, MAX_LENS_PROMPT_CHARS),
            hint=LEGACY_LENS_HINT,
        )
    return None


def _presets(raw: Any) -> Tuple[Lens, ...]:
    if not isinstance(raw, list):
        return ()
    lenses = [lens for lens in (normalize_preset(p) for p in raw) if lens is not None]
    return tuple(lenses[:MAX_PRESETS])


def _build_steps(raw: Mapping[str, Any]) -> Tuple[BuildStep, ...]:
    entries = raw.get("buildSteps")
    if entries is None:
        plan = raw.get("atlasBuildPlan")
        entries = plan.get("nextPrompts") if isinstance(plan, Mapping) else None
    if not isinstance(entries, list):
        return ()

    steps: List[BuildStep] = []
    seen = set()
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        step_id = _text(entry.get("id"))
        prompt = _text(entry.get("prompt")) or _text(entry.get("promptTemplate"))
        if not step_id or not prompt or step_id in seen:
            continue
        seen.add(step_id)
        steps.append(BuildStep(id=step_id, title=_text(entry.get("title")) or step_id, prompt=prompt))
    return tuple(steps)


def normalize_config(raw: Union[Mapping[str, Any], ToolConfig], slug: Optional[str] = None) -> ToolConfig:
    """
    Normalize a raw tool record.

    Args:
        raw: Raw camelCase record (or an already-normalized ToolConfig)
        slug: Identifier used when the record carries no slug of its own

    Returns:
        ToolConfig: Immutable normalized configuration
    """
    if isinstance(raw, ToolConfig):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raise ConfigInvalidError(f"Tool config for '{slug or '(unknown)'}' is not an object")

    features = raw.get("features")
    if features is None:
        features = raw.get("capabilities")
    capabilities = parse_capabilities(features if isinstance(features, (list, tuple, set, frozenset)) else [])

    structured = Capability.STRUCTURED_OUTPUT in capabilities
    clarify = Capability.CLARIFY_FIRST in capabilities

    output_format_default = OUTPUT_PLAIN
    if structured and _text(raw.get("outputFormatDefault")) == OUTPUT_JSON:
        output_format_default = OUTPUT_JSON

    config = ToolConfig(
        slug=_text(raw.get("slug")) or _text(slug),
        title=_text(raw.get("title")) or DEFAULT_TITLE,
        description=_text(raw.get("description")),
        input_label=_text(raw.get("inputLabel")),
        output_label=_text(raw.get("outputLabel")),
        system_prompt=_text(raw.get("systemPrompt")),
        temperature=_temperature(raw.get("temperature")),
        capabilities=capabilities,
        presets=_presets(raw.get("presets")) if Capability.PRESETS in capabilities else (),
        output_format_default=output_format_default,
        json_schema_hint=(_text(raw.get("jsonSchemaHint")) or DEFAULT_SCHEMA_HINT) if structured else None,
        clarify_prompt=_instruction(raw.get("clarifyPrompt"), DEFAULT_CLARIFY_PROMPT) if clarify else None,
        finalize_prompt=_instruction(raw.get("finalizePrompt"), DEFAULT_FINALIZE_PROMPT) if clarify else None,
        build_steps=_build_steps(raw),
    )
    logger.debug(f"Normalized tool config {config.slug}: features={[c.value for c in ordered(capabilities)]}")
    return config
