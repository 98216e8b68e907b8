"""
Per-call request and result types.

Both are created fresh for every call and never shared between requests.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import ValidationError
from .tool_config import OUTPUT_FORMATS

MAX_CLARIFY_QUESTIONS = 6


class ExecutionMode(str, Enum):
    SIMPLE = "simple"
    AUTO = "auto"
    BUILD = "build"


class ResultKind(str, Enum):
    CLARIFY = "clarify"
    FINAL = "final"


def _optional_text(body: Mapping[str, Any], key: str) -> str:
    value = body.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string")
    return value.strip()


@dataclass(frozen=True)
class ExecutionRequest:
    """One engine call."""
    input: str
    mode: ExecutionMode = ExecutionMode.SIMPLE
    output_format: Optional[str] = None
    answers: Optional[Tuple[str, ...]] = None
    focus_label: str = ""
    focus_prompt: str = ""
    build_step_id: str = ""
    build_prompt: str = ""

    @property
    def has_focus(self) -> bool:
        return bool(self.focus_label or self.focus_prompt)

    @classmethod
    def from_dict(cls, body: Any) -> "ExecutionRequest":
        """Parse the logical request contract; raises ValidationError."""
        if not isinstance(body, Mapping):
            raise ValidationError("Request body must be a JSON object")

        raw_input = body.get("input")
        if not isinstance(raw_input, str) or not raw_input.strip():
            raise ValidationError("Missing 'input' string in request body")

        raw_mode = body.get("mode")
        if raw_mode is None or raw_mode == "":
            mode = ExecutionMode.SIMPLE
        else:
            try:
                mode = ExecutionMode(raw_mode)
            except ValueError:
                raise ValidationError(
                    f"Unsupported mode: {raw_mode!r}",
                    details="mode must be one of: simple, auto, build",
                )

        output_format = body.get("outputFormat")
        if output_format == "":
            output_format = None
        if output_format is not None and output_format not in OUTPUT_FORMATS:
            raise ValidationError(
                f"Unsupported outputFormat: {output_format!r}",
                details="outputFormat must be 'plain' or 'json'",
            )

        answers = body.get("answers")
        if answers is not None:
            if not isinstance(answers, list):
                raise ValidationError("'answers' must be an array of strings")
            answers = tuple("" if a is None else str(a) for a in answers)

        return cls(
            input=raw_input,
            mode=mode,
            output_format=output_format,
            answers=answers,
            focus_label=_optional_text(body, "focusLabel"),
            focus_prompt=_optional_text(body, "focusPrompt"),
            build_step_id=_optional_text(body, "buildStepId"),
            build_prompt=_optional_text(body, "buildPrompt"),
        )


@dataclass(frozen=True)
class ExecutionResult:
    """Either a clarify round-trip or the final output."""
    kind: ResultKind
    output_format: str
    output: Optional[str] = None
    questions: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def clarify(cls, questions: List[str], output_format: str) -> "ExecutionResult":
        return cls(kind=ResultKind.CLARIFY, output_format=output_format,
                   questions=tuple(questions[:MAX_CLARIFY_QUESTIONS]))

    @classmethod
    def final(cls, output: str, output_format: str) -> "ExecutionResult":
        return cls(kind=ResultKind.FINAL, output_format=output_format, output=output)

    def to_dict(self) -> Dict[str, Any]:
        if self.kind == ResultKind.CLARIFY:
            return {"step": self.kind.value, "questions": list(self.questions), "outputFormat": self.output_format}
        return {"step": self.kind.value, "output": self.output, "outputFormat": self.output_format}
