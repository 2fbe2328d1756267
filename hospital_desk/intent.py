"""Keyword intent detection for the front desk chat.

Use Case:
- Route a message to the reception, nurse or billing agent
- Spot emergencies before anything else is said
- Recognise the sub-topics each agent answers from canned text

Matching is case-insensitive substring/regex search; there is no model in
the loop, so routing is deterministic and cheap.
"""
import re
from enum import Enum
from typing import List, Optional


class Intent(str, Enum):
    """Which agent should answer."""
    RECEPTION = "reception"
    NURSE = "nurse"
    BILLING = "billing"


def _matches(patterns: List[str], message: str) -> bool:
    text = message.lower().strip()
    return any(re.search(pattern, text) for pattern in patterns)


class IntentClassifier:
    """
    Pick the agent for a message.

    Priority: billing, then medical, otherwise reception (appointments,
    general questions and anything unrecognised).
    """

    BILLING_PATTERNS: List[str] = [
        r'\bbill(s|ing)?\b',
        r'\bpayments?\b',
        r'\bcosts?\b',
        r'\bprices?\b',
        r'\binsurance\b',
        r'\bcoverage\b',
        r'\bcopay\b',
        r'\bdeductible\b',
        r'\bfinancial\b',
        r'\bcharges?\b',
    ]

    MEDICAL_PATTERNS: List[str] = [
        r'\bpain(s|ful)?\b',
        r'\bhurts?\b',
        r'\baches?\b',
        r'\bsymptoms?\b',
        r'\bfeeling\b',
        r'\bsick\b',
        r'\bill\b',
        r'\bfever\b',
        r'\bheadaches?\b',
        r'\bnausea\b',
        r'\bdizzy\b',
        r'\btired\b',
        r'\bweak\b',
        r'\bswelling\b',
        r'\bbleeding\b',
        r'\brash\b',
        r'\bcough\b',
        r'\bsore\s+throat\b',
        r'\bemergency\b',
        r'\burgent\b',
        r'\bcritical\b',
    ]

    def classify(self, message: str) -> Intent:
        if _matches(self.BILLING_PATTERNS, message):
            return Intent.BILLING
        if _matches(self.MEDICAL_PATTERNS, message):
            return Intent.NURSE
        return Intent.RECEPTION


class EmergencyDetector:
    """Detect messages describing a possible medical emergency."""

    EMERGENCY_PATTERNS: List[str] = [
        r'\bemergency\b',
        r'\burgent\b',
        r'\bcritical\b',
        r'\bchest\s+pain\b',
        r'\bheart\s+attack\b',
        r'\bstroke\b',
        r'\bbleeding\b',
        r'\bunconscious\b',
        r'\bnot\s+breathing\b',
        r'\bsevere\s+pain\b',
        r'\baccident\b',
        r'\btrauma\b',
        r'\b911\b',
        r'\bambulance\b',
    ]

    def is_emergency(self, message: str) -> bool:
        return _matches(self.EMERGENCY_PATTERNS, message)


class DoctorReferenceExtractor:
    """
    Pull a doctor's name out of messages like "Is Dr. Smith available?".

    Returns ``(first_name, last_name)``; last name may be None.
    """

    DOCTOR_PATTERN = re.compile(r"\bdr\.?\s+([a-z]+)(?:\s+([a-z]+))?", re.IGNORECASE)

    # Words that follow a name in questions, never part of it
    STOP_WORDS = {
        "available", "availability", "free", "working", "on", "in", "at",
        "this", "next", "today", "tomorrow", "is", "and", "or", "schedule",
        "work", "works", "here", "there",
    }

    def extract(self, message: str) -> Optional[tuple]:
        match = self.DOCTOR_PATTERN.search(message)
        if not match:
            return None
        first_name, last_name = match.group(1), match.group(2)
        if first_name.lower() in self.STOP_WORDS:
            return None
        if last_name and last_name.lower() in self.STOP_WORDS:
            last_name = None
        return first_name, last_name


def mentioned_department(message: str, departments: List[str]) -> Optional[str]:
    """First department name appearing in the message, in its canonical spelling."""
    text = message.lower()
    for department in departments:
        if re.search(rf"\b{re.escape(department.lower())}\b", text):
            return department
    return None
