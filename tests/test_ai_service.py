import json

import pytest

from tadbeer.domain.enums import TicketCategory, TicketPriority, UserRole
from tadbeer.domain.errors import PermissionDeniedError, TicketNotFoundError, ValidationError
from tadbeer.services.ai.ai_service import AIService, parse_json_lenient
from tadbeer.services.ticket_service import TicketService

from .fakes import FakeAIClient

SUGGESTION = {
    "priority": "high",
    "category": "Security",
    "short_summary": "Possible phishing email received by staff",
    "steps": ["Do not click links", "Forward the email to security", "Reset password if clicked"],
    "clarifying_question": "Did anyone enter credentials?",
}


def _service(*replies):
    service = AIService()
    service.client = FakeAIClient(*replies) if replies else None
    return service


def test_parse_json_lenient():
    assert parse_json_lenient('{"a": 1}') == {"a": 1}
    assert parse_json_lenient('Sure! {"a": 1} hope that helps') == {"a": 1}
    assert parse_json_lenient("no json here") is None
    assert parse_json_lenient("") is None


def test_suggest_uses_model_output():
    service = _service(json.dumps(SUGGESTION))

    result = service.suggest_ticket("Phishing", "Got a weird email asking for my password")

    assert result.priority == TicketPriority.HIGH
    assert result.category == TicketCategory.SECURITY
    assert len(result.steps) == 3
    request = service.client.calls[0]
    assert request["response_format"] == {"type": "json_object"}
    assert "Phishing" in request["messages"][1]["content"]


def test_suggest_accepts_camel_case_keys():
    camel = dict(SUGGESTION)
    camel["shortSummary"] = camel.pop("short_summary")
    camel["clarifyingQuestion"] = camel.pop("clarifying_question")

    result = _service(json.dumps(camel)).suggest_ticket("Phishing", "Suspicious email")

    assert result.short_summary == SUGGESTION["short_summary"]
    assert result.clarifying_question == SUGGESTION["clarifying_question"]


@pytest.mark.parametrize("reply", [
    "not json at all",
    json.dumps({**SUGGESTION, "priority": "critical"}),
    json.dumps({**SUGGESTION, "steps": []}),
])
def test_suggest_falls_back_on_bad_output(reply):
    result = _service(reply).suggest_ticket("Laptop", "Screen flickers")

    assert result.priority == TicketPriority.MEDIUM
    assert result.category == TicketCategory.TECHNICAL
    assert result.short_summary.startswith("AI fallback")


def test_suggest_falls_back_without_client_or_input():
    assert _service().suggest_ticket("Laptop", "Screen flickers").priority == TicketPriority.MEDIUM

    service = _service(json.dumps(SUGGESTION))
    result = service.suggest_ticket("  ", "")
    assert result.short_summary == "AI fallback: Empty input"
    assert service.client.calls == []


def test_suggest_falls_back_on_provider_error():
    result = _service(RuntimeError("429 rate limited")).suggest_ticket("VPN", "Cannot connect")
    assert "429 rate limited" in result.short_summary


@pytest.fixture
def ticket_for(make_user, actor_of):
    agent = make_user(role=UserRole.AGENT)
    owner = make_user()
    service = TicketService()
    ticket = service.create_ticket(actor_of(agent), {
        "title": "Outlook crash", "description": "Outlook crashes on start", "category": "Technical",
        "assignee": owner.user_id,
    })
    service.add_comment(actor_of(owner), ticket.ticket_id, "Started after the update")
    return ticket, agent, owner


def test_assist_sends_ticket_context(ticket_for, actor_of):
    ticket, agent, owner = ticket_for
    reply = {"reply": "Repair the Office install.", "steps": ["Open Settings", "Repair Office"]}
    service = _service(json.dumps(reply))

    result = service.assist_ticket(actor_of(owner), ticket.ticket_id, "How do I fix this?")

    assert result.reply == "Repair the Office install."
    payload = json.loads(service.client.calls[0]["messages"][1]["content"])
    assert payload["ticket"]["title"] == "Outlook crash"
    assert payload["ticket"]["recent_comments"][0]["text"] == "Started after the update"
    assert payload["question"] == "How do I fix this?"


def test_assist_validates_input_and_access(ticket_for, make_user, actor_of):
    ticket, agent, _ = ticket_for
    service = _service()

    with pytest.raises(ValidationError):
        service.assist_ticket(actor_of(agent), "", "Why?")
    with pytest.raises(ValidationError):
        service.assist_ticket(actor_of(agent), ticket.ticket_id, "   ")
    with pytest.raises(TicketNotFoundError):
        service.assist_ticket(actor_of(agent), "TKT-missing", "Why?")
    with pytest.raises(PermissionDeniedError):
        service.assist_ticket(actor_of(make_user()), ticket.ticket_id, "Why?")


def test_assist_falls_back(ticket_for, actor_of):
    ticket, agent, _ = ticket_for

    no_client = _service().assist_ticket(actor_of(agent), ticket.ticket_id, "Why?")
    assert "unavailable" in no_client.reply

    garbage = _service("{{{").assist_ticket(actor_of(agent), ticket.ticket_id, "Why?")
    assert len(garbage.steps) == 3


def test_assist_route_wraps_result(client, ticket_for, auth_headers):
    ticket, agent, _ = ticket_for

    response = client.post(
        f"/api/v1/ai/tickets/{ticket.ticket_id}/assist",
        json={"question": "What next?"},
        headers=auth_headers(agent),
    )

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["data"]["steps"]


def test_suggest_route_without_provider(client, make_user, auth_headers):
    user = make_user()
    response = client.post(
        "/api/v1/ai/tickets/suggest",
        json={"title": "Printer", "description": "Out of toner"},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    assert response.json()["data"]["priority"] == "medium"
