"""Domain models for patients, doctors and appointments.

These are the shapes the engine and the API exchange. Persistence rows
(``hospital_desk.api.database_models``) are converted into these models by
the repository so that nothing outside it touches SQLAlchemy objects.

Wire format is camelCase (``doctorId``, ``startTime``); Python attributes
are snake_case. Both spellings are accepted on input.
"""
import re
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from hospital_desk.lifecycle import AppointmentStatus, AppointmentType

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
# Only valid as the end of a window: "22:00-24:00" runs until midnight
END_OF_DAY = "24:00"
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def normalize_time(value: str) -> str:
    """
    Normalize a clock time to zero-padded 24h ``HH:MM``.

    Accepts ``"9:05"`` as well as ``"09:05"``.

    Raises:
        ValueError: If the value is not a valid clock time
    """
    match = TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"'{value}' is not a valid time (expected HH:MM)")
    hour, minute = match.groups()
    return f"{int(hour):02d}:{minute}"


def normalize_end_time(value: str) -> str:
    """Like ``normalize_time`` but also accepts ``24:00`` (midnight at day end)."""
    if isinstance(value, str) and value.strip() == END_OF_DAY:
        return END_OF_DAY
    return normalize_time(value)


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class AvailabilitySlot(CamelModel):
    """Recurring weekly window: day of week plus half-open time range."""
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        return normalize_time(v)

    @field_validator("end_time")
    @classmethod
    def validate_end_time(cls, v: str) -> str:
        return normalize_end_time(v)

    @model_validator(mode="after")
    def check_start_before_end(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"startTime {self.start_time} must be before endTime {self.end_time}"
            )
        return self


class DoctorCreate(CamelModel):
    """Fields required to register a doctor."""
    doctor_id: Optional[str] = None
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str
    phone: str = Field(..., min_length=1)
    specialization: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    license_number: str = Field(..., min_length=1)
    experience: int = Field(..., ge=0, description="Years of experience")
    availability: List[AvailabilitySlot] = Field(default_factory=list)
    max_patients_per_day: int = Field(default=20, ge=1)
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a valid email address")
        return v


class Doctor(DoctorCreate):
    """A registered doctor."""
    doctor_id: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class SymptomEntry(CamelModel):
    description: str = Field(..., min_length=1)
    severity: Severity
    duration: str = Field(..., min_length=1)
    timestamp: Optional[datetime] = None


class PatientCreate(CamelModel):
    """Fields required to register a patient."""
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    date_of_birth: date
    gender: Gender
    email: str
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    symptoms: List[SymptomEntry] = Field(default_factory=list)
    assigned_department: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a valid email address")
        return v


class Patient(PatientCreate):
    """A registered patient."""
    patient_id: str


class BookingRequest(CamelModel):
    """Everything a caller must supply to book an appointment."""
    patient_id: str = Field(..., min_length=1)
    doctor_id: str = Field(..., min_length=1)
    appointment_date: date
    start_time: str
    type: AppointmentType
    reason: str = Field(..., min_length=1)
    end_time: Optional[str] = None
    symptoms: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        return normalize_time(v)

    @field_validator("end_time")
    @classmethod
    def validate_end_time(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return normalize_end_time(v)


class Appointment(CamelModel):
    """A persisted appointment."""
    appointment_id: str
    patient_id: str
    doctor_id: str
    appointment_date: date
    start_time: str
    end_time: str
    type: AppointmentType
    status: AppointmentStatus
    reason: str
    symptoms: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
