"""Appointment availability and booking engine.

One component answers every scheduling question the service has:

- Is the requested time inside the doctor's recurring weekly schedule?
- Is the exact doctor/date/start time already taken?
- Book it (or say precisely why not).

The weekly-schedule checks are pure functions over a ``Doctor``; conflict
checks and booking go through ``HospitalRepository``. The booking endpoint,
the availability endpoint and the chat agents all call into this module.

Boundary rules:
- A slot covers ``start_time <= t < end_time`` (start inclusive, end exclusive)
- A conflict is an active (scheduled/confirmed) appointment with the SAME
  start time. Appointments with different start times never conflict even
  when their durations overlap (e.g. 09:00-09:30 and 09:15 both book).
"""
from datetime import date
from typing import List, Optional

from pydantic import ValidationError

from hospital_desk import config
from hospital_desk.domain import (
    Appointment, AvailabilitySlot, BookingRequest, CamelModel, Doctor
)
from hospital_desk.errors import (
    BookingValidationError, ConflictError, NotFoundError, UnavailableError
)
from hospital_desk.identifiers import APPOINTMENT_PREFIX, generate_public_id
from hospital_desk.lifecycle import AppointmentStatus, can_transition, is_terminal
from hospital_desk.logging_config import get_logger
from hospital_desk.repository import HospitalRepository

logger = get_logger(__name__)

MINUTES_PER_DAY = 24 * 60


# ==================== PURE SCHEDULE RULES ====================

def day_of_week(value: date) -> int:
    """Day index with 0 = Sunday ... 6 = Saturday."""
    return value.isoweekday() % 7


def to_minutes(time_24h: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight."""
    hour, minute = map(int, time_24h.split(":"))
    return hour * 60 + minute


def add_minutes(time_24h: str, minutes: int) -> str:
    """Add minutes to a clock time, wrapping past midnight."""
    total = (to_minutes(time_24h) + minutes) % MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def default_end_time(start_time: str) -> str:
    return add_minutes(start_time, config.DEFAULT_APPOINTMENT_MINUTES)


def slot_covers(slot: AvailabilitySlot, start_time: str) -> bool:
    """True if ``start_time`` falls inside the slot's half-open window."""
    minute = to_minutes(start_time)
    return to_minutes(slot.start_time) <= minute < to_minutes(slot.end_time)


def is_within_recurring_availability(
    doctor: Doctor,
    appointment_date: date,
    start_time: str,
) -> bool:
    """
    Check the doctor's weekly schedule for the requested date and time.

    Args:
        doctor: Doctor with recurring availability slots
        appointment_date: Calendar date of the visit
        start_time: Requested ``HH:MM`` start

    Returns:
        True if any available slot on that weekday covers the start time
    """
    weekday = day_of_week(appointment_date)
    return any(
        slot.day_of_week == weekday and slot.is_available and slot_covers(slot, start_time)
        for slot in doctor.availability
    )


def list_available_slots_for_day(
    doctor: Doctor,
    appointment_date: date,
) -> List[AvailabilitySlot]:
    """Available slots on the date's weekday, in the doctor's stored order."""
    weekday = day_of_week(appointment_date)
    return [
        slot for slot in doctor.availability
        if slot.day_of_week == weekday and slot.is_available
    ]


# ==================== PRESENTATION HELPERS ====================

def format_time_12h(time_24h: str) -> str:
    """Convert 24h time to 12h format."""
    hour, minute = map(int, time_24h.split(":"))
    hour %= 24
    period = "AM" if hour < 12 else "PM"
    hour_12 = hour if hour <= 12 else hour - 12
    hour_12 = 12 if hour_12 == 0 else hour_12
    return f"{hour_12}:{minute:02d} {period}"


def format_weekly_schedule(doctor: Doctor) -> str:
    """
    One line per available weekly slot, e.g. ``- Monday: 09:00 - 17:00``.

    Returns an empty string when the doctor has no available slots.
    """
    return "\n".join(
        f"- {config.DAY_NAMES[slot.day_of_week]}: {slot.start_time} - {slot.end_time}"
        for slot in doctor.availability
        if slot.is_available
    )


# ==================== ENGINE ====================

class SlotOption(CamelModel):
    """An alternative window offered when the requested time is not free."""
    day: str
    start_time: str
    end_time: str


class DoctorSummary(CamelModel):
    doctor_id: str
    first_name: str
    last_name: str
    specialization: str
    department: str


class AvailabilityResult(CamelModel):
    """Outcome of an availability check."""
    available: bool
    message: str
    doctor: Optional[DoctorSummary] = None
    available_slots: Optional[List[SlotOption]] = None


def _slot_options(doctor: Doctor, appointment_date: date) -> List[SlotOption]:
    return [
        SlotOption(
            day=config.DAY_NAMES[slot.day_of_week],
            start_time=slot.start_time,
            end_time=slot.end_time,
        )
        for slot in list_available_slots_for_day(doctor, appointment_date)
    ]


def _describe_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "request"
        if error.get("type") == "missing":
            messages.append(f"{field} is required")
        else:
            messages.append(f"{field}: {error.get('msg')}")
    return "; ".join(messages)


class AvailabilityEngine:
    """
    Availability checks and booking over a repository.

    The engine holds no state of its own; the repository (and the store's
    unique index on active slots) is the source of truth.
    """

    def __init__(self, repository: HospitalRepository):
        self.repository = repository

    def _require_active_doctor(self, doctor_id: str) -> Doctor:
        doctor = self.repository.get_doctor(doctor_id, active_only=True)
        if not doctor:
            raise NotFoundError("Doctor not found or not available")
        return doctor

    def has_conflict(self, doctor_id: str, appointment_date: date, start_time: str) -> bool:
        """True if an active appointment holds this exact doctor/date/start time."""
        occupant = self.repository.find_active_appointment(
            doctor_id, appointment_date, start_time
        )
        return occupant is not None

    def check_availability(
        self,
        doctor_id: str,
        appointment_date: date,
        start_time: str,
    ) -> AvailabilityResult:
        """
        Report whether a doctor can be booked at the requested time.

        When the time is outside the schedule or already booked, the day's
        available slots are returned as alternatives.

        Raises:
            NotFoundError: If the doctor does not exist or is inactive
        """
        doctor = self._require_active_doctor(doctor_id)

        if not is_within_recurring_availability(doctor, appointment_date, start_time):
            return AvailabilityResult(
                available=False,
                message="Doctor is not available at the requested time",
                available_slots=_slot_options(doctor, appointment_date),
            )

        if self.has_conflict(doctor_id, appointment_date, start_time):
            return AvailabilityResult(
                available=False,
                message="This time slot is already booked",
                available_slots=_slot_options(doctor, appointment_date),
            )

        return AvailabilityResult(
            available=True,
            message="Time slot is available",
            doctor=DoctorSummary.model_validate(doctor.model_dump()),
        )

    def book_appointment(
        self,
        patient_id: str,
        doctor_id: str,
        appointment_date,
        start_time: str,
        appointment_type: str,
        reason: str,
        end_time: Optional[str] = None,
        symptoms: Optional[List[str]] = None,
        notes: Optional[str] = None,
    ) -> Appointment:
        """
        Validate the raw fields and book.

        Raises:
            BookingValidationError: If a field is missing or malformed
            (plus everything ``book`` raises)
        """
        try:
            request = BookingRequest(
                patient_id=patient_id,
                doctor_id=doctor_id,
                appointment_date=appointment_date,
                start_time=start_time,
                type=appointment_type,
                reason=reason,
                end_time=end_time,
                symptoms=symptoms or [],
                notes=notes,
            )
        except ValidationError as e:
            raise BookingValidationError(_describe_validation_error(e)) from e

        return self.book(request)

    def book(self, request: BookingRequest) -> Appointment:
        """
        Book a validated request.

        Checks run in order and stop at the first failure:
        doctor, patient, weekly schedule, existing booking.

        Raises:
            NotFoundError: Unknown/inactive doctor, or unknown patient
            UnavailableError: Outside the doctor's weekly schedule
            ConflictError: Slot already booked (pre-check or unique index)
            StoreError: Database failure
        """
        log = logger.bind(
            doctor_id=request.doctor_id,
            patient_id=request.patient_id,
            appointment_date=request.appointment_date.isoformat(),
            start_time=request.start_time,
        )

        try:
            doctor = self._require_active_doctor(request.doctor_id)

            if not self.repository.get_patient(request.patient_id):
                raise NotFoundError("Patient not found")

            if not is_within_recurring_availability(
                doctor, request.appointment_date, request.start_time
            ):
                raise UnavailableError("Doctor is not available at the requested time")

            if self.has_conflict(request.doctor_id, request.appointment_date, request.start_time):
                raise ConflictError("This time slot is already booked")

            appointment = self.repository.insert_appointment(
                Appointment(
                    appointment_id=generate_public_id(APPOINTMENT_PREFIX),
                    patient_id=request.patient_id,
                    doctor_id=request.doctor_id,
                    appointment_date=request.appointment_date,
                    start_time=request.start_time,
                    end_time=request.end_time or default_end_time(request.start_time),
                    type=request.type,
                    status=AppointmentStatus.SCHEDULED,
                    reason=request.reason,
                    symptoms=request.symptoms,
                    notes=request.notes,
                )
            )
        except (NotFoundError, UnavailableError, ConflictError) as e:
            log.info("booking_rejected", code=e.code, reason=e.message)
            raise

        log.info("appointment_booked", appointment_id=appointment.appointment_id)
        return appointment

    def transition_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus,
    ) -> Appointment:
        """
        Move an appointment along its lifecycle.

        Raises:
            NotFoundError: If the appointment does not exist
            BookingValidationError: If the status is unknown or the transition
            is not allowed
        """
        appointment = self.repository.get_appointment(appointment_id)
        if not appointment:
            raise NotFoundError(f"Appointment {appointment_id} not found")

        try:
            new_status = AppointmentStatus(new_status)
        except ValueError as e:
            raise BookingValidationError(f"Unknown appointment status '{new_status}'") from e

        if is_terminal(appointment.status):
            raise BookingValidationError(
                f"Appointment is already {appointment.status.value} and cannot be changed"
            )
        if not can_transition(appointment.status, new_status):
            raise BookingValidationError(
                f"Cannot change appointment status from "
                f"{appointment.status.value} to {new_status.value}"
            )

        updated = self.repository.update_appointment_status(appointment_id, new_status)
        logger.info(
            "appointment_status_changed",
            appointment_id=appointment_id,
            from_status=appointment.status.value,
            to_status=new_status.value,
        )
        return updated
