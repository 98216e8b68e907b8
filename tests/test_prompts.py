"""Tests for layered prompt assembly."""

from atlas_engine.core.tool_config import DEFAULT_CLARIFY_PROMPT, normalize_config
from atlas_engine.engine.prompts import (
    BUILD_SCHEMA_HINT,
    SEPARATOR,
    Focus,
    PromptContext,
    PromptPhase,
    assemble_system_prompt,
    compose,
    finalize_user_content,
    repair_user_prompt,
)


def make_config(**overrides):
    raw = {
        "slug": "brief",
        "systemPrompt": "You write briefs.",
        "features": ["text-input", "structured-output", "clarify-first"],
        "jsonSchemaHint": "{goal, audience}",
        "finalizePrompt": "Write the final brief using the answers as facts.",
    }
    raw.update(overrides)
    return normalize_config(raw)


class TestCompose:
    def test_skips_empty_parts(self):
        assert compose("a", "", None, "  ", "b") == "a" + SEPARATOR + "b"

    def test_single_part(self):
        assert compose("only") == "only"


class TestFinalizePrompt:
    def test_layer_order(self):
        ctx = PromptContext(config=make_config(), output_format="json", focus=Focus("Shorter", "Keep it tight."))
        parts = assemble_system_prompt(PromptPhase.FINALIZE, ctx).split(SEPARATOR)
        assert parts[0] == "You write briefs."
        assert parts[1].startswith("FOCUS LENS")
        assert "Keep it tight." in parts[1]
        assert parts[2].startswith("FINALIZE INSTRUCTIONS:")
        assert parts[3].startswith("IMPORTANT OUTPUT RULE:")
        assert "{goal, audience}" in parts[3]

    def test_plain_has_no_structured_directive(self):
        ctx = PromptContext(config=make_config(), output_format="plain")
        prompt = assemble_system_prompt(PromptPhase.FINALIZE, ctx)
        assert "IMPORTANT OUTPUT RULE" not in prompt
        assert "FOCUS LENS" not in prompt

    def test_focus_label_without_prompt_uses_fallback(self):
        ctx = PromptContext(config=make_config(), output_format="plain", focus=Focus(label="More critical"))
        prompt = assemble_system_prompt(PromptPhase.FINALIZE, ctx)
        assert "Label: More critical" in prompt
        assert "Use the label as light guidance" in prompt

    def test_no_finalize_addendum_without_clarify_first(self):
        cfg = make_config(features=["text-input"])
        prompt = assemble_system_prompt(PromptPhase.FINALIZE, PromptContext(config=cfg, output_format="plain"))
        assert prompt == "You write briefs."


class TestClarifyPrompt:
    def test_clarify_core_and_no_output_rule(self):
        cfg = make_config()
        prompt = assemble_system_prompt(PromptPhase.CLARIFY, PromptContext(config=cfg, output_format="json"))
        assert prompt.startswith(DEFAULT_CLARIFY_PROMPT)
        assert "IMPORTANT OUTPUT RULE" not in prompt
        assert "You write briefs." not in prompt


class TestBuildPrompt:
    def test_build_layers(self):
        ctx = PromptContext(config=make_config(), output_format="json",
                            build_step_id="routes", build_prompt="Define the routes.")
        parts = assemble_system_prompt(PromptPhase.BUILD, ctx).split(SEPARATOR)
        assert parts[0].startswith("You are Atlas Build Engine.")
        assert "buildStepId: routes" in parts[0]
        assert parts[1] == "BUILD STEP INSTRUCTIONS:\nDefine the routes."
        assert parts[2].startswith("TOOL IDENTITY")
        assert BUILD_SCHEMA_HINT in parts[3]
        assert "{goal, audience}" not in parts[3]

    def test_build_plain(self):
        ctx = PromptContext(config=make_config(), output_format="plain")
        prompt = assemble_system_prompt(PromptPhase.BUILD, ctx)
        assert "Output plain text" in prompt
        assert "IMPORTANT OUTPUT RULE" not in prompt


class TestUserContent:
    def test_answers_numbered(self):
        content = finalize_user_content("Plan the launch", ("Friday", "Executives"))
        assert content.startswith("USER INPUT:\nPlan the launch")
        assert "Q1: Friday" in content
        assert "Q2: Executives" in content

    def test_no_answers_passes_input_through(self):
        assert finalize_user_content("Plan the launch", None) == "Plan the launch"

    def test_empty_answers_still_framed(self):
        content = finalize_user_content("Plan the launch", ())
        assert content.startswith("USER INPUT:\nPlan the launch")
        assert content.endswith("CLARIFY ANSWERS (treat as truth; do not invent):")
        assert "Q1:" not in content

    def test_repair_prompt_carries_hint_and_text(self):
        prompt = repair_user_prompt("{bad,}", "{kpis:[string]}")
        assert "{kpis:[string]}" in prompt
        assert prompt.endswith("BROKEN_JSON:\n{bad,}")
