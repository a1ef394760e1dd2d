import json

import pytest

import errors
from errors import GenerationFailed
from generator import (
    PLAN_FUNCTION,
    SYSTEM_PROMPT,
    PlanGenerator,
    RemotePlanGenerator,
    StaticPlanGenerator,
    build_user_prompt,
    parse_plan_message,
)
from llm import CompletionClient
from schemas import AIEditPlan, EditContext, ReorderSections, ToggleSectionVisibility

from conftest import completion_payload, nested_plan_json, tool_call_message

SWAP_PLAN = {
    "summary": "Moved skills above about.",
    "confidence": "high",
    "actions": [{"type": "reorder_sections", "newOrder": ["hero", "skills", "about"], "reasoning": "swap"}],
}


def test_plan_is_read_from_tool_call_arguments():
    plan = parse_plan_message(tool_call_message(SWAP_PLAN))

    assert plan.summary == "Moved skills above about."
    expected = ReorderSections(new_order=["hero", "skills", "about"], reasoning="swap")
    assert [action.model_dump() for action in plan.actions] == [expected.model_dump()]


def test_plan_falls_back_to_fenced_json_content():
    message = {"role": "assistant", "content": "```json\n" + json.dumps(SWAP_PLAN) + "\n```"}

    plan = parse_plan_message(message)

    assert plan.confidence == "high"
    assert isinstance(plan.actions[0], ReorderSections)


def test_confidence_passes_through_unmodified():
    plan = parse_plan_message(tool_call_message({**SWAP_PLAN, "confidence": "low"}))
    assert plan.confidence == "low"


@pytest.mark.parametrize("message", [
    None,
    {"role": "assistant", "content": None},
    {"role": "assistant", "content": "Sure! I moved things around."},
    tool_call_message("{not json"),
    tool_call_message({"summary": "x", "confidence": "high", "actions": [{"type": "launch_rocket"}]}),
    tool_call_message({"summary": "x", "confidence": "certain", "actions": []}),
    tool_call_message({"summary": "x", "confidence": "high", "actions": [{"type": "reorder_sections"}]}),
])
def test_malformed_responses_raise_generation_failed(message):
    with pytest.raises(GenerationFailed) as excinfo:
        parse_plan_message(message)

    assert excinfo.value.reason == errors.MALFORMED_RESPONSE
    assert not excinfo.value.transient


@pytest.mark.parametrize("levels", [40, 3000])
def test_deeply_nested_plans_are_malformed(levels):
    with pytest.raises(GenerationFailed) as excinfo:
        parse_plan_message(tool_call_message(nested_plan_json(levels)))

    assert excinfo.value.reason == errors.MALFORMED_RESPONSE


def test_user_prompt_summarises_document(full_document):
    prompt = build_user_prompt("Focus on projects", full_document, EditContext(role="Data Scientist"))

    assert 'User Command: "Focus on projects"' in prompt
    assert "Role/Industry: Data Scientist" in prompt
    assert "Hidden Sections: contact" in prompt
    assert "hero -> about -> projects -> experience -> custom_talks -> contact" in prompt
    assert "custom_talks (Talks)" in prompt
    assert '"section_order"' in prompt


def test_user_prompt_falls_back_to_document_role(full_document):
    prompt = build_user_prompt("Shorter", full_document)
    assert "Role/Industry: Software Engineer" in prompt


def test_remote_generator_forces_the_plan_function(basic_document, fake_client):
    client = fake_client(message=tool_call_message(SWAP_PLAN))
    generator = RemotePlanGenerator(client=client)

    plan = generator.generate("swap about and skills", basic_document, EditContext())

    assert plan.actions[0].new_order == ["hero", "skills", "about"]
    call = client.calls[0]
    assert call["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert "swap about and skills" in call["messages"][1]["content"]
    assert call["tool_choice"] == {"type": "function", "function": {"name": PLAN_FUNCTION}}
    assert call["tools"][0]["function"]["name"] == PLAN_FUNCTION


def test_remote_generator_end_to_end_over_http(basic_document, fake_session, fake_response):
    fake_session.queue(fake_response(200, completion_payload(tool_call_message(SWAP_PLAN))))
    client = CompletionClient(api_url="https://ai.example.com/v1/chat/completions", api_key="k", session=fake_session)

    plan = RemotePlanGenerator(client=client).generate("swap about and skills", basic_document)

    assert plan.summary == "Moved skills above about."
    assert fake_session.requests[0]["json"]["tool_choice"]["function"]["name"] == PLAN_FUNCTION


def test_remote_generator_rejects_blank_instruction(basic_document, fake_client):
    client = fake_client(message=tool_call_message(SWAP_PLAN))

    with pytest.raises(GenerationFailed) as excinfo:
        RemotePlanGenerator(client=client).generate("   ", basic_document)

    assert excinfo.value.reason == errors.INVALID_REQUEST
    assert client.calls == []


def test_remote_generator_propagates_transport_failures(basic_document, fake_client):
    failure = GenerationFailed("slow down", reason=errors.RATE_LIMITED, transient=True)
    generator = RemotePlanGenerator(client=fake_client(error=failure))

    with pytest.raises(GenerationFailed) as excinfo:
        generator.generate("hide contact", basic_document)

    assert excinfo.value is failure


def test_remote_generator_close_closes_client(fake_client):
    client = fake_client()
    RemotePlanGenerator(client=client).close()
    assert client.closed


def test_static_generator_returns_a_fresh_copy(basic_document):
    plan = AIEditPlan(
        summary="hide",
        actions=[ToggleSectionVisibility(section_id="about", visible=False)],
        confidence="medium",
    )
    generator = StaticPlanGenerator(plan)

    first = generator.generate("hide about", basic_document)
    first.actions.clear()

    assert len(generator.generate("again", basic_document).actions) == 1
    assert generator.calls == ["hide about", "again"]


def test_generator_without_generate_cannot_be_built():
    class Incomplete(PlanGenerator):
        pass

    with pytest.raises(TypeError):
        Incomplete()
