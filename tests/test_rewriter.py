import pytest

import config
import errors
from errors import GenerationFailed
from rewriter import build_system_prompt, rewrite_content


def test_rewrite_returns_trimmed_content(fake_client):
    client = fake_client(message={"role": "assistant", "content": "  Led a team of five engineers.\n"})

    edited = rewrite_content("make it punchier", "I was on a team.", scope="selection",
                             section_type="experience", role="Engineering Manager", client=client)

    assert edited == "Led a team of five engineers."
    call = client.calls[0]
    assert call["model"] == config.AI_REWRITE_MODEL
    assert call["max_tokens"] == 2000
    assert "Engineering Manager" in call["messages"][0]["content"]
    assert "I was on a team." in call["messages"][1]["content"]


def test_system_prompt_mentions_scope_and_section():
    prompt = build_system_prompt("section", "projects")
    assert "Current scope: section" in prompt
    assert prompt.endswith("Section type: projects")
    assert "professional roles" in prompt


@pytest.mark.parametrize("command, content", [("", "text"), ("shorten", "   ")])
def test_rewrite_requires_command_and_content(command, content, fake_client):
    client = fake_client(message={"content": "x"})

    with pytest.raises(GenerationFailed) as excinfo:
        rewrite_content(command, content, client=client)

    assert excinfo.value.reason == errors.INVALID_REQUEST
    assert client.calls == []


def test_empty_completion_is_malformed(fake_client):
    with pytest.raises(GenerationFailed) as excinfo:
        rewrite_content("shorten", "Some text", client=fake_client(message={"content": "   "}))

    assert excinfo.value.reason == errors.MALFORMED_RESPONSE
