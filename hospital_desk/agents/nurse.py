"""Nurse agent: symptom triage and patient intake (never diagnosis)."""
import re
from typing import List, Tuple

from hospital_desk.agents.base import AgentContext, AgentResponse, BaseAgent


def _mentions(phrases: List[str], text: str) -> bool:
    return any(re.search(rf"\b{re.escape(phrase)}", text) for phrase in phrases)


class NurseAgent(BaseAgent):
    """Collects symptoms, assigns a triage tier and suggests a department."""

    name = "NurseAgent"
    error_message = (
        "I apologize, but I'm experiencing technical difficulties. "
        "Please try again or contact our nursing staff directly."
    )

    system_prompt = """You are a professional nurse assistant specializing in patient triage and symptom assessment. Your role is to:

1. Collect and assess patient symptoms
2. Determine an appropriate triage level (low, medium, high, emergency)
3. Suggest appropriate departments for care
4. Gather patient intake information
5. Provide basic health guidance (NOT medical advice)

Never provide a diagnosis or treatment recommendation. Escalate emergencies immediately.
You are NOT a doctor. You are a triage nurse assistant."""

    SYMPTOM_KEYWORDS = [
        "pain", "hurt", "ache", "symptom", "feeling", "sick", "ill",
        "fever", "headache", "nausea", "dizzy", "tired", "weak",
        "swelling", "bleeding", "rash", "cough", "sore throat",
    ]
    INTAKE_KEYWORDS = [
        "first time", "new patient", "register", "information",
        "personal details", "contact", "emergency contact",
    ]
    TRIAGE_KEYWORDS = [
        "how urgent", "how serious", "when should", "priority", "immediate",
    ]

    EMERGENCY_SYMPTOMS = [
        "chest pain", "difficulty breathing", "unconscious", "severe bleeding",
        "head injury", "stroke symptoms", "heart attack", "seizure",
    ]
    HIGH_PRIORITY_SYMPTOMS = [
        "severe pain", "high fever", "broken bone", "deep cut",
        "sudden vision loss", "severe headache",
    ]
    MEDIUM_PRIORITY_SYMPTOMS = [
        "persistent cough", "mild fever", "minor injury", "chronic pain",
        "digestive issues", "skin rash",
    ]

    # (keywords, triage level, department, urgency advice); first match wins
    TRIAGE_RULES: List[Tuple[List[str], str, str, str]] = [
        (["chest", "heart"], "high", "Cardiology",
         "This requires prompt evaluation. Please schedule within 24 hours."),
        (["head", "brain", "neurological"], "high", "Neurology",
         "This requires prompt evaluation. Please schedule within 24 hours."),
        (["bone", "joint", "fracture"], "medium", "Orthopedics",
         "This should be evaluated within 48 hours."),
        (["child", "pediatric"], "medium", "Pediatrics",
         "Children should be evaluated promptly. Please schedule within 24-48 hours."),
    ]

    def respond(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if _mentions(self.SYMPTOM_KEYWORDS, text):
            return self.assess_symptoms(text)
        if _mentions(self.INTAKE_KEYWORDS, text):
            return self.intake_checklist()
        if _mentions(self.TRIAGE_KEYWORDS, text):
            return self.triage(text)
        if context.metadata.get("handoffFrom"):
            return AgentResponse(
                content=(
                    "Before we book, could you briefly describe any symptoms you're "
                    "experiencing and how long you've had them? That helps us match you "
                    "with the right department."
                ),
                confidence=0.8,
            )

        return self.fallback(message, context, confidence=0.7)

    def assess_symptoms(self, text: str) -> AgentResponse:
        if _mentions(self.EMERGENCY_SYMPTOMS, text):
            return AgentResponse(
                content=(
                    "This sounds like a medical emergency. I'm immediately connecting you to "
                    "our emergency department. Please stay on the line and don't hang up."
                ),
                confidence=1.0,
                metadata={"emergency": True, "triageLevel": "emergency"},
            )

        if _mentions(self.HIGH_PRIORITY_SYMPTOMS, text):
            return AgentResponse(
                content=(
                    "These symptoms require prompt medical attention. I recommend you visit "
                    "our emergency department or urgent care within the next 2-4 hours. "
                    "Would you like me to help you schedule an urgent appointment?"
                ),
                confidence=0.9,
                next_agent="ReceptionAgent",
                metadata={"triageLevel": "high"},
            )

        if _mentions(self.MEDIUM_PRIORITY_SYMPTOMS, text):
            return AgentResponse(
                content=(
                    "These symptoms should be evaluated by a healthcare provider within "
                    "24-48 hours. I can help you schedule an appointment with an appropriate "
                    "specialist."
                ),
                confidence=0.8,
                next_agent="ReceptionAgent",
                metadata={"triageLevel": "medium"},
            )

        return AgentResponse(
            content=(
                "I understand you're experiencing symptoms. To better assist you, I need to "
                "gather some information:\n\n"
                "1. How long have you been experiencing these symptoms?\n"
                "2. How severe would you rate them on a scale of 1-10?\n"
                "3. Have you experienced similar symptoms before?\n"
                "4. Are you currently taking any medications?\n\n"
                "This will help me determine the best course of action for your care."
            ),
            confidence=0.7,
            metadata={"triageLevel": "low"},
        )

    def intake_checklist(self) -> AgentResponse:
        return AgentResponse(
            content=(
                "I'll help you with the patient intake process. I need to collect some basic "
                "information:\n\n"
                "1. Full name (first and last)\n"
                "2. Date of birth\n"
                "3. Contact information (phone and email)\n"
                "4. Emergency contact name and phone number\n"
                "5. Insurance information (if available)\n"
                "6. Any known allergies or current medications\n\n"
                "Please provide this information so I can help you get registered in our system."
            ),
            confidence=0.9,
            metadata={"intake": "in_progress"},
        )

    def triage(self, text: str) -> AgentResponse:
        level, department = "low", "General Medicine"
        urgency = "You can schedule a regular appointment."

        for keywords, rule_level, rule_department, rule_urgency in self.TRIAGE_RULES:
            if any(re.search(rf"\b{keyword}", text) for keyword in keywords):
                level, department, urgency = rule_level, rule_department, rule_urgency
                break

        return AgentResponse(
            content=(
                f"Based on your symptoms, I've assessed your triage level as {level.upper()} "
                f"priority. {urgency}\n\nI recommend you see our {department} department. "
                "Would you like me to help you schedule an appointment?"
            ),
            confidence=0.8,
            next_agent="ReceptionAgent",
            metadata={"triageLevel": level, "assignedDepartment": department},
        )
