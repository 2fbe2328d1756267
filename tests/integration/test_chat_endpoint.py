"""Integration tests for /api/chat and agent routing."""
import pytest

from hospital_desk.agents import AgentContext


def chat(client, message, **context):
    payload = {"message": message}
    if context:
        payload["context"] = context
    return client.post("/api/chat", json=payload)


def test_chat_response_shape(client):
    """Chat responses use camelCase keys."""
    response = chat(client, "What are your visiting hours?")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"response", "confidence", "nextAgent", "metadata"}
    assert body["response"].startswith("Our visiting hours are:")
    assert body["confidence"] == 1.0
    assert body["nextAgent"] is None


def test_doctor_availability_through_chat(client, doctor):
    """Doctor questions are answered from the records."""
    body = chat(client, "Is Dr. Johnson available?").json()

    assert "- Monday: 09:00 - 17:00" in body["response"]
    assert body["metadata"]["doctorId"] == doctor.doctor_id


def test_previous_messages_resolve_pronoun(client, doctor):
    """History resolves "his" to the last named doctor."""
    body = chat(
        client,
        "What is her availability?",
        sessionId="abc",
        previousMessages=[
            {"role": "user", "content": "Is Dr. Sarah Johnson a cardiologist?"},
            {"role": "assistant", "content": "Yes, she is."},
        ],
    ).json()

    assert "- Monday: 09:00 - 17:00" in body["response"]


def test_booking_request_combines_reception_and_nurse(client):
    """Booking requests combine both agents' answers."""
    body = chat(client, "I want to book an appointment").json()

    assert "preferred date and time" in body["response"]
    assert "describe any symptoms" in body["response"]
    assert body["metadata"]["handledBy"] == ["ReceptionAgent", "NurseAgent"]
    assert body["nextAgent"] is None


def test_symptoms_go_to_nurse_then_reception(client):
    """Symptoms go to the nurse, then back to reception."""
    body = chat(client, "I have a high fever").json()

    assert "2-4 hours" in body["response"]
    assert "book an appointment" in body["response"]
    assert body["metadata"]["triageLevel"] == "high"
    assert body["metadata"]["handledBy"] == ["NurseAgent", "ReceptionAgent"]


def test_billing_question(client):
    """Billing questions reach the billing agent."""
    body = chat(client, "Do you accept Aetna insurance?").json()
    assert "Blue Cross Blue Shield" in body["response"]


def test_emergency_is_escalated(client, mock_llm):
    """Emergencies are escalated."""
    body = chat(client, "I have chest pain").json()

    assert body["nextAgent"] == "EmergencyAgent"
    assert body["confidence"] == 1.0
    assert body["metadata"] == {"emergency": True}
    mock_llm.invoke.assert_not_called()


def test_low_priority_symptoms_skip_the_model(client, mock_llm):
    """Known symptoms are answered without the LLM."""
    body = chat(
        client,
        "Can I bring my dog when I feel tired?",
        previousMessages=[{"role": "user", "content": "hi"}],
    ).json()

    assert body["metadata"]["triageLevel"] == "low"
    mock_llm.invoke.assert_not_called()


def test_llm_failure_is_answered_politely(client, mock_llm):
    """LLM errors still return a reply."""
    mock_llm.invoke.side_effect = RuntimeError("upstream timeout")

    response = chat(client, "I have a question about my appointment")

    assert response.status_code == 200
    assert "technical difficulties" in response.json()["response"]
    assert response.json()["confidence"] == 0.0


@pytest.mark.parametrize("payload", [
    {"message": ""},
    {},
    {"message": "x" * 2001},
    {"message": "hi", "context": {"previousMessages": [{"role": "robot", "content": "x"}]}},
])
def test_invalid_chat_request(client, payload):
    """Bad chat payloads return 400."""
    response = client.post("/api/chat", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


class TestAgentManager:
    def test_determine_agent(self, app):
        """Messages are routed by keyword."""
        manager = app.state.agent_manager

        assert manager.determine_agent("How much does it cost?") == "BillingAgent"
        assert manager.determine_agent("My head hurts") == "NurseAgent"
        assert manager.determine_agent("Book me in") == "ReceptionAgent"

    def test_context_metadata_not_mutated_by_handoff(self, app):
        """Handoffs do not mutate the caller's context."""
        context = AgentContext(session_id="s-1")

        app.state.agent_manager.process_message("I want to book an appointment", context)

        assert context.metadata == {}

    def test_failed_second_agent_keeps_first_answer(self, app):
        """A failing second agent keeps the first answer."""
        manager = app.state.agent_manager
        manager.agents["NurseAgent"].respond = lambda message, context: 1 / 0

        response = manager.process_message("I want to book an appointment")

        assert response.next_agent == "NurseAgent"
        assert "describe any symptoms" not in response.content
        assert "handledBy" not in (response.metadata or {})
