"""SQLAlchemy database models for the front desk store."""
from datetime import datetime, UTC
from sqlalchemy import (
    Boolean, Column, Date, DateTime, Index, Integer, JSON, String, Text, text
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Must match lifecycle.ACTIVE_STATUSES
ACTIVE_STATUS_CLAUSE = "status IN ('scheduled', 'confirmed')"


def utc_now():
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class Doctor(Base):
    """Doctor profile; weekly availability is stored as an ordered JSON list."""
    __tablename__ = "doctors"

    doctor_id = Column(String(20), primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=False)
    specialization = Column(String(100), nullable=False, index=True)
    department = Column(String(100), nullable=False, index=True)
    license_number = Column(String(50), nullable=False, unique=True)
    experience = Column(Integer, nullable=False, default=0)
    availability = Column(JSON, nullable=False, default=list)  # List of AvailabilitySlot dicts
    max_patients_per_day = Column(Integer, nullable=False, default=20)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Doctor(doctor_id={self.doctor_id}, active={self.is_active})>"


class Patient(Base):
    """Patient record; email is the natural key (stored lowercased)."""
    __tablename__ = "patients"

    patient_id = Column(String(20), primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), nullable=False, index=True)
    address = Column(String(500), nullable=False)
    symptoms = Column(JSON, nullable=False, default=list)
    assigned_department = Column(String(100), nullable=True, index=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Patient(patient_id={self.patient_id})>"


class Appointment(Base):
    """Appointment linking a patient and a doctor by public identifiers."""
    __tablename__ = "appointments"

    appointment_id = Column(String(20), primary_key=True, index=True)
    patient_id = Column(String(20), nullable=False, index=True)
    doctor_id = Column(String(20), nullable=False, index=True)
    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    type = Column(String(20), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="scheduled", index=True)
    reason = Column(Text, nullable=False)
    symptoms = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_appointments_date_start", "appointment_date", "start_time"),
        Index("ix_appointments_doctor_slot", "doctor_id", "appointment_date", "start_time"),
        # One active booking per doctor/date/start time; the source of truth
        # for conflicts under concurrent bookings.
        Index(
            "uq_appointments_active_slot",
            "doctor_id", "appointment_date", "start_time",
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_CLAUSE),
            postgresql_where=text(ACTIVE_STATUS_CLAUSE),
        ),
    )

    def __repr__(self):
        return (
            f"<Appointment(appointment_id={self.appointment_id}, "
            f"doctor={self.doctor_id}, status={self.status})>"
        )
