"""Pydantic models for API request/response validation.

Field names on the wire are camelCase; see ``hospital_desk.domain.CamelModel``.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from hospital_desk.agents.base import AgentContext
from hospital_desk.domain import CamelModel, Doctor
from hospital_desk.lifecycle import AppointmentStatus, AppointmentType


class ErrorResponse(BaseModel):
    """Error response schema."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
    code: Optional[str] = Field(None, description="Error code")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "This time slot is already booked",
                "detail": None,
                "code": "CONFLICT",
            }
        }
    )


class AppointmentOut(CamelModel):
    """Booking response body (no timestamps or free-text extras)."""
    appointment_id: str
    patient_id: str
    doctor_id: str
    appointment_date: date
    start_time: str
    end_time: str
    type: AppointmentType
    status: AppointmentStatus
    reason: str


class AppointmentEnvelope(BaseModel):
    appointment: AppointmentOut


class AppointmentList(BaseModel):
    appointments: List[AppointmentOut]


class DoctorList(BaseModel):
    doctors: List[Doctor]


class PatientSummary(CamelModel):
    patient_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    assigned_department: Optional[str] = None


class PatientEnvelope(BaseModel):
    patient: PatientSummary


class ChatRequest(BaseModel):
    """Request schema for /api/chat."""
    message: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="User message (1-2000 characters)",
        examples=["Is Dr. Smith available on Monday?"],
    )
    context: Optional[AgentContext] = Field(
        None,
        description="Optional conversation context (sessionId, previousMessages)",
    )


class ChatResponse(CamelModel):
    """Response schema for /api/chat."""
    response: str = Field(..., description="Agent response message")
    confidence: float
    next_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "response": "Our visiting hours are: ...",
                "confidence": 1.0,
                "nextAgent": None,
                "metadata": None,
            }
        }
    )


__all__ = [
    "AppointmentEnvelope",
    "AppointmentList",
    "AppointmentOut",
    "ChatRequest",
    "ChatResponse",
    "DoctorList",
    "ErrorResponse",
    "PatientEnvelope",
    "PatientSummary",
]
