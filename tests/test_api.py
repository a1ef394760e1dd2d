import json

import pytest
from fastapi.testclient import TestClient

import errors
from errors import GenerationFailed
from generator import PlanGenerator, StaticPlanGenerator
from main import app, get_completion_client, get_plan_generator
from schemas import AIEditPlan, ReorderSections

from conftest import nested_plan_json

DOCUMENT = {
    "hero_title": "Jane Doe",
    "about_text": "I build reliable services.",
    "skills": ["Python"],
    "section_order": ["hero", "about", "skills"],
}


class RaisingGenerator(PlanGenerator):
    def __init__(self, failure):
        self.failure = failure

    def generate(self, instruction, document, context=None):
        raise self.failure


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def swap_generator():
    generator = StaticPlanGenerator(AIEditPlan(
        summary="Swapped about and skills.",
        actions=[ReorderSections(new_order=["hero", "skills", "about"])],
        confidence="high",
    ))
    app.dependency_overrides[get_plan_generator] = lambda: generator
    return generator


def test_read_root(client):
    assert client.get("/").json() == {"message": "AI Portfolio Editor Backend Running"}


def test_ai_edit_applies_generated_plan(client, swap_generator):
    resp = client.post("/api/portfolio/ai-edit", json={
        "instruction": "swap about and skills",
        "document": DOCUMENT,
        "context": {"role": "Engineer"},
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["document"]["section_order"] == ["hero", "skills", "about"]
    assert body["result"]["success"] is True
    assert body["result"]["appliedChanges"] == {"section_order": ["hero", "skills", "about"]}
    assert body["result"]["plan"]["actions"][0]["newOrder"] == ["hero", "skills", "about"]
    assert body["diff"]["before"] == {"section_order": ["hero", "about", "skills"]}
    assert swap_generator.calls == ["swap about and skills"]


def test_plan_endpoint_returns_plan_only(client, swap_generator):
    resp = client.post("/api/portfolio/plan", json={"instruction": "swap", "document": DOCUMENT})

    assert resp.status_code == 200
    assert resp.json()["plan"]["confidence"] == "high"
    assert resp.json()["plan"]["summary"] == "Swapped about and skills."


def test_apply_endpoint_reports_partial_failure(client):
    resp = client.post("/api/portfolio/apply", json={
        "document": DOCUMENT,
        "plan": {
            "summary": "Hide and rename",
            "confidence": "medium",
            "actions": [
                {"type": "toggle_section_visibility", "sectionId": "skills", "visible": False},
                {"type": "update_section_title", "sectionId": "blog", "newTitle": "Blog"},
            ],
        },
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["result"]["success"] is False
    assert body["result"]["errors"] == ["actions[1]: UnknownSection: unknown section 'blog'"]
    assert body["document"]["section_visibility"] == {"skills": False}
    assert [o["status"] for o in body["result"]["outcomes"]] == ["applied", "failed"]


def test_apply_endpoint_rejects_unknown_action_type(client):
    resp = client.post("/api/portfolio/apply", json={
        "document": DOCUMENT,
        "plan": {"summary": "?", "confidence": "low", "actions": [{"type": "format_disk"}]},
    })

    assert resp.status_code == 422


def test_apply_endpoint_rejects_plans_nested_past_the_limit(client):
    plan = json.loads(nested_plan_json(40))

    resp = client.post("/api/portfolio/apply", json={"document": DOCUMENT, "plan": plan})

    assert resp.status_code == 422


@pytest.mark.parametrize("failure, status_code", [
    (GenerationFailed("Too many requests.", reason=errors.RATE_LIMITED, transient=True), 429),
    (GenerationFailed("Credits exhausted.", reason=errors.QUOTA_EXHAUSTED), 402),
    (GenerationFailed("Timed out.", reason=errors.TIMEOUT, transient=True), 504),
    (GenerationFailed("Not configured.", reason=errors.NOT_CONFIGURED), 503),
    (GenerationFailed("Bad response.", reason=errors.MALFORMED_RESPONSE), 502),
])
def test_generation_failures_map_to_status_codes(failure, status_code, client):
    app.dependency_overrides[get_plan_generator] = lambda: RaisingGenerator(failure)

    resp = client.post("/api/portfolio/ai-edit", json={"instruction": "make it pop", "document": DOCUMENT})

    assert resp.status_code == status_code
    assert resp.json() == failure.to_dict()


def test_suggest_rewrites_content(client, fake_client):
    completion = fake_client(message={"role": "assistant", "content": "Shipped a payments API."})
    app.dependency_overrides[get_completion_client] = lambda: completion

    resp = client.post("/api/suggest", json={
        "command": "more impact",
        "content": "Worked on payments.",
        "sectionType": "experience",
    })

    assert resp.status_code == 200
    assert resp.json() == {
        "editedContent": "Shipped a payments API.",
        "originalContent": "Worked on payments.",
        "command": "more impact",
    }


def test_suggest_requires_content(client, fake_client):
    app.dependency_overrides[get_completion_client] = lambda: fake_client(message={"content": "x"})

    resp = client.post("/api/suggest", json={"command": "shorten", "content": ""})

    assert resp.status_code == 400
    assert resp.json()["reason"] == "invalid_request"


def test_revert_undoes_an_edit(client, swap_generator):
    edited = client.post("/api/portfolio/ai-edit", json={"instruction": "swap", "document": DOCUMENT}).json()

    resp = client.post("/api/portfolio/revert", json={"document": edited["document"], "diff": edited["diff"]})

    assert resp.status_code == 200
    assert resp.json()["section_order"] == ["hero", "about", "skills"]


def test_detect_role(client, fake_client):
    completion = fake_client(message={"content": "product_manager"})
    app.dependency_overrides[get_completion_client] = lambda: completion

    resp = client.post("/api/detect-role", json={"content": "Owned the roadmap for checkout.", "source": "linkedin"})

    assert resp.status_code == 200
    assert resp.json() == {"role": "product_manager", "confidence": "high"}


def test_detect_role_rate_limited(client, fake_client):
    failure = GenerationFailed("Rate limit exceeded.", reason=errors.RATE_LIMITED, transient=True)
    app.dependency_overrides[get_completion_client] = lambda: fake_client(error=failure)

    resp = client.post("/api/detect-role", json={"content": "Designer"})

    assert resp.status_code == 429
    assert resp.json()["retryable"] is True


def test_evaluate_portfolio(client, fake_client):
    evaluation = {
        "score": 64,
        "summary": "Good start.",
        "suggestions": [{"category": "about", "priority": "medium", "suggestion": "Lead with outcomes."}],
    }
    app.dependency_overrides[get_completion_client] = lambda: fake_client(message={"content": json.dumps(evaluation)})

    resp = client.post("/api/evaluate", json={"portfolio": DOCUMENT})

    assert resp.status_code == 200
    assert resp.json() == evaluation


def test_evaluate_portfolio_unparseable_answer(client, fake_client):
    app.dependency_overrides[get_completion_client] = lambda: fake_client(message={"content": "Looks nice!"})

    resp = client.post("/api/evaluate", json={"portfolio": DOCUMENT})

    assert resp.status_code == 502
    assert resp.json()["reason"] == "malformed_response"
