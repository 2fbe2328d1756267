"""Configuration for the hospital front desk service.

Environment-driven values are read once at import (after loading .env).
Hospital facts used by the canned chat answers live here too, so they can
be edited without touching code.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Persistence
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///hospital_desk.db")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Hosted completion API (any OpenAI-compatible endpoint, e.g. Groq)
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_BASE_URL = os.getenv("LLM_BASE_URL") or None
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1024"))
LLM_TIMEOUT_SECONDS = int(os.getenv("LLM_TIMEOUT_SECONDS", "15"))

# HTTP
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Scheduling
DEFAULT_APPOINTMENT_MINUTES = 30

DAY_NAMES = [
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
]

DEPARTMENTS = [
    "Emergency",
    "Cardiology",
    "Neurology",
    "Orthopedics",
    "Pediatrics",
    "Obstetrics",
    "General Medicine",
    "Radiology",
    "Laboratory",
    "Pharmacy",
]

HOSPITAL_INFO = {
    "visiting_hours": {
        "weekdays": "8:00 AM - 8:00 PM",
        "weekends": "8:00 AM - 6:00 PM",
        "emergency": "24/7",
    },
    "address": "123 Healthcare Avenue\nMedical District, CA 90210",
    "phones": {
        "reception": "(555) 123-4567",
        "emergency": "(555) 123-4568",
        "appointments": "(555) 123-4569",
        "billing": "(555) 123-4570",
    },
}

ACCEPTED_INSURERS = [
    "Blue Cross Blue Shield",
    "Aetna",
    "Cigna",
    "UnitedHealth",
    "Medicare/Medicaid",
]

TYPICAL_COSTS = {
    "Consultation": "$150-300",
    "Follow-up": "$100-200",
    "Emergency visit": "$500-1000+",
    "Lab tests": "$50-200",
}
