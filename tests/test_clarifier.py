"""Tests for the clarify-first coordinator."""

import json
from unittest.mock import Mock

import pytest

from atlas_engine.core.errors import UpstreamServiceError
from atlas_engine.core.execution import ExecutionRequest
from atlas_engine.core.tool_config import normalize_config
from atlas_engine.engine.clarifier import (
    CLARIFY_TEMPERATURE,
    ClarificationCoordinator,
    ClarifyState,
    initial_state,
    read_decision,
)
from atlas_engine.engine.prompts import CLARIFY_SCHEMA_HINT, REPAIR_SYSTEM_PROMPT
from atlas_engine.engine.validator import OutputValidator


CLARIFY_CONFIG = normalize_config({
    "slug": "launch-brief",
    "systemPrompt": "You write launch briefs.",
    "features": ["text-input", "clarify-first"],
})
PLAIN_CONFIG = normalize_config({"slug": "plain", "features": ["text-input"]})


def request(**fields):
    body = {"input": "Plan our launch", "mode": "auto"}
    body.update(fields)
    return ExecutionRequest.from_dict(body)


class TestInitialState:
    def test_not_applicable_without_capability(self):
        assert initial_state(PLAIN_CONFIG, request()) == ClarifyState.NOT_APPLICABLE

    @pytest.mark.parametrize("mode", ["simple", "build"])
    def test_not_applicable_outside_auto(self, mode):
        assert initial_state(CLARIFY_CONFIG, request(mode=mode)) == ClarifyState.NOT_APPLICABLE

    def test_answers_supplied(self):
        assert initial_state(CLARIFY_CONFIG, request(answers=["Friday"])) == ClarifyState.ANSWERS_SUPPLIED

    def test_awaiting_decision(self):
        assert initial_state(CLARIFY_CONFIG, request()) == ClarifyState.AWAITING_DECISION


class TestReadDecision:
    def test_questions_truncated_to_six(self):
        need, questions = read_decision({"needClarification": True, "questions": [f"Q{i}?" for i in range(9)]})
        assert need is True
        assert len(questions) == 6

    def test_blank_questions_dropped(self):
        _, questions = read_decision({"needClarification": True, "questions": ["  ", None, "Who?"]})
        assert questions == ["Who?"]

    def test_non_object_means_no_clarification(self):
        assert read_decision(["a"]) == (False, [])
        assert read_decision({"needClarification": True, "questions": "Who?"}) == (True, [])


class TestClarificationCoordinator:
    def setup_method(self):
        self.llm = Mock()
        self.coordinator = ClarificationCoordinator(self.llm, OutputValidator(self.llm))

    def test_returns_questions(self):
        self.llm.generate.return_value = json.dumps({
            "needClarification": True,
            "questions": ["What is the deadline?", "Who is the audience?"],
        })
        outcome = self.coordinator.run(CLARIFY_CONFIG, request())
        assert outcome.should_return
        assert outcome.questions == ("What is the deadline?", "Who is the audience?")
        assert self.llm.generate.call_count == 1
        _, user_content, temperature = self.llm.generate.call_args[0]
        assert user_content == "Plan our launch"
        assert temperature == CLARIFY_TEMPERATURE

    def test_need_without_questions_proceeds(self):
        self.llm.generate.return_value = '{"needClarification": true, "questions": []}'
        outcome = self.coordinator.run(CLARIFY_CONFIG, request())
        assert outcome.state == ClarifyState.PROCEED_TO_FINAL

    def test_unparseable_after_repair_defaults_to_proceed(self):
        self.llm.generate.side_effect = ["not json", "still not json"]
        outcome = self.coordinator.run(CLARIFY_CONFIG, request())
        assert outcome.state == ClarifyState.PROCEED_TO_FINAL
        assert self.llm.generate.call_count == 2
        system_prompt, repair_user_content, temperature = self.llm.generate.call_args_list[1][0]
        assert system_prompt == REPAIR_SYSTEM_PROMPT
        assert CLARIFY_SCHEMA_HINT in repair_user_content
        assert "not json" in repair_user_content
        assert temperature == 0

    def test_skipped_when_answers_present(self):
        outcome = self.coordinator.run(CLARIFY_CONFIG, request(answers=["Friday"]))
        assert outcome.state == ClarifyState.ANSWERS_SUPPLIED
        self.llm.generate.assert_not_called()

    def test_upstream_failure_propagates(self):
        self.llm.generate.side_effect = UpstreamServiceError("down")
        with pytest.raises(UpstreamServiceError):
            self.coordinator.run(CLARIFY_CONFIG, request())
