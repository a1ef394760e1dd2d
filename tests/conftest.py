import itertools
import json

import pytest

from schemas import CustomSection, Experience, PortfolioDocument, Project


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 400
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replays queued responses or errors."""

    def __init__(self):
        self.queued = []
        self.requests = []
        self.closed = False

    def queue(self, item):
        self.queued.append(item)
        return self

    def post(self, url, headers=None, json=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        item = self.queued.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class FakeCompletionClient:
    def __init__(self, message=None, error=None):
        self.message = message
        self.error = error
        self.calls = []
        self.closed = False

    def complete(self, messages, **kwargs):
        self.calls.append({"messages": messages, **kwargs})
        if self.error is not None:
            raise self.error
        return self.message

    def close(self):
        self.closed = True


def completion_payload(message):
    return {"choices": [{"index": 0, "message": message, "finish_reason": "stop"}]}


def nested_plan_json(levels):
    """Plan JSON whose only action is ``levels`` batch_update wrappers deep."""
    return (
        '{"summary": "deep", "confidence": "high", "actions": '
        + '[{"type": "batch_update", "actions": ' * levels
        + "[]"
        + "}]" * levels
        + "}"
    )


def tool_call_message(arguments):
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return {
        "role": "assistant",
        "content": None,
        "tool_calls": [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "apply_portfolio_changes", "arguments": arguments},
            }
        ],
    }


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_client():
    return FakeCompletionClient


@pytest.fixture
def basic_document():
    return PortfolioDocument(
        hero_title="Jane Doe",
        hero_subtitle="Backend Engineer",
        about_text="I build reliable services.",
        skills=["Python", "PostgreSQL"],
        section_order=["hero", "about", "skills"],
    )


@pytest.fixture
def full_document():
    return PortfolioDocument(
        role="Software Engineer",
        hero_title="Jane Doe",
        about_text="I build reliable services.",
        skills=["Python", "PostgreSQL", "Kubernetes"],
        experience=[Experience(company="Acme", role="Engineer", period="2020-2024", description="APIs")],
        projects=[Project(id="p1", title="Ledger", images=["ledger.png"], featured_image="ledger.png")],
        custom_sections=[CustomSection(id="custom_talks", title="Talks", content="PyCon 2024")],
        section_order=["hero", "about", "projects", "experience", "custom_talks", "contact"],
        section_visibility={"contact": False, "custom_talks": True},
        section_titles={"custom_talks": "Conference Talks"},
    )


@pytest.fixture
def make_id_factory():
    def make():
        counter = itertools.count(1)
        return lambda: f"id{next(counter)}"
    return make
