"""Booking and availability checks against a real (in-memory) store."""
from datetime import date

import pytest

from hospital_desk.availability import AvailabilityEngine
from hospital_desk.domain import Appointment, AvailabilitySlot
from hospital_desk.errors import (
    BookingValidationError, ConflictError, NotFoundError, UnavailableError
)
from hospital_desk.lifecycle import AppointmentStatus, AppointmentType

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


def book(engine: AvailabilityEngine, doctor_id, patient_id, start_time="09:00", **kwargs):
    kwargs.setdefault("appointment_date", MONDAY)
    kwargs.setdefault("appointment_type", "consultation")
    kwargs.setdefault("reason", "Chest discomfort")
    return engine.book_appointment(
        patient_id=patient_id,
        doctor_id=doctor_id,
        start_time=start_time,
        **kwargs,
    )


class TestBooking:
    def test_books_inside_schedule(self, engine, doctor, patient):
        """Should book a slot inside the weekly schedule."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id)

        assert appointment.appointment_id.startswith("A")
        assert appointment.status == AppointmentStatus.SCHEDULED
        assert appointment.type == AppointmentType.CONSULTATION
        assert appointment.start_time == "09:00"
        assert appointment.end_time == "09:30"

    def test_explicit_end_time_is_kept(self, engine, doctor, patient):
        """A supplied end time overrides the 30 minute default."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id, end_time="10:00")
        assert appointment.end_time == "10:00"

    def test_unpadded_start_time_is_normalized(self, engine, doctor, patient):
        """9:00 is stored as 09:00."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id, start_time="9:00")
        assert appointment.start_time == "09:00"

    def test_same_slot_twice_conflicts(self, engine, doctor, patient):
        """Booking the same start time twice conflicts."""
        book(engine, doctor.doctor_id, patient.patient_id)

        with pytest.raises(ConflictError) as exc_info:
            book(engine, doctor.doctor_id, patient.patient_id)
        assert exc_info.value.message == "This time slot is already booked"

    def test_overlapping_but_different_start_times_both_book(self, engine, doctor, patient):
        """Only identical start times conflict."""
        book(engine, doctor.doctor_id, patient.patient_id, start_time="09:00")
        second = book(engine, doctor.doctor_id, patient.patient_id, start_time="09:15")

        assert second.start_time == "09:15"

    def test_end_of_window_is_exclusive(self, engine, doctor, patient):
        """The window end time cannot be booked."""
        with pytest.raises(UnavailableError):
            book(engine, doctor.doctor_id, patient.patient_id, start_time="17:00")

    def test_last_minute_of_window_books(self, engine, doctor, patient):
        """The minute before the window end can be booked."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id, start_time="16:59")
        assert appointment.end_time == "17:29"

    def test_wrong_weekday_unavailable(self, engine, doctor, patient):
        """A day without a slot is unavailable."""
        with pytest.raises(UnavailableError):
            book(engine, doctor.doctor_id, patient.patient_id, appointment_date=TUESDAY)

    def test_window_ending_at_midnight(self, engine, make_doctor, patient):
        """A slot may run until 24:00, so 23:59 is bookable."""
        doctor = make_doctor(availability=[
            AvailabilitySlot(day_of_week=1, start_time="22:00", end_time="24:00"),
        ])

        appointment = book(engine, doctor.doctor_id, patient.patient_id, start_time="23:59")

        assert appointment.end_time == "00:29"

    def test_midnight_is_not_a_start_time(self, engine, doctor, patient):
        """24:00 is only valid as the end of a window."""
        with pytest.raises(BookingValidationError):
            book(engine, doctor.doctor_id, patient.patient_id, start_time="24:00")

    def test_slot_marked_unavailable_is_ignored(self, engine, make_doctor, patient):
        """Slots flagged unavailable are skipped."""
        doctor = make_doctor(availability=[
            AvailabilitySlot(day_of_week=1, start_time="09:00", end_time="17:00", is_available=False),
        ])

        with pytest.raises(UnavailableError):
            book(engine, doctor.doctor_id, patient.patient_id)

    def test_cancelled_slot_can_be_rebooked(self, engine, doctor, patient):
        """Cancelling frees the slot."""
        first = book(engine, doctor.doctor_id, patient.patient_id)
        engine.transition_status(first.appointment_id, AppointmentStatus.CANCELLED)

        second = book(engine, doctor.doctor_id, patient.patient_id)

        assert second.appointment_id != first.appointment_id

    def test_confirmed_appointment_still_holds_slot(self, engine, doctor, patient):
        """Confirmed appointments keep the slot."""
        first = book(engine, doctor.doctor_id, patient.patient_id)
        engine.transition_status(first.appointment_id, AppointmentStatus.CONFIRMED)

        with pytest.raises(ConflictError):
            book(engine, doctor.doctor_id, patient.patient_id)


class TestBookingRejections:
    def test_inactive_doctor_not_found(self, engine, make_doctor, patient):
        """Inactive doctors cannot be booked."""
        doctor = make_doctor(is_active=False)

        with pytest.raises(NotFoundError) as exc_info:
            book(engine, doctor.doctor_id, patient.patient_id)
        assert exc_info.value.message == "Doctor not found or not available"

    def test_unknown_patient_not_found(self, engine, doctor):
        """Unknown patients cannot be booked."""
        with pytest.raises(NotFoundError) as exc_info:
            book(engine, doctor.doctor_id, "P000000AAA")
        assert exc_info.value.message == "Patient not found"

    def test_doctor_checked_before_patient(self, engine):
        """The doctor is looked up first."""
        with pytest.raises(NotFoundError) as exc_info:
            book(engine, "D000000AAA", "P000000AAA")
        assert "Doctor" in exc_info.value.message

    def test_patient_checked_before_schedule(self, engine, doctor):
        """The patient is checked before the schedule."""
        with pytest.raises(NotFoundError):
            book(engine, doctor.doctor_id, "P000000AAA", appointment_date=TUESDAY)

    def test_unknown_type_rejected_before_lookups(self, engine):
        """Field validation runs before any lookup."""
        with pytest.raises(BookingValidationError) as exc_info:
            book(engine, "D000000AAA", "P000000AAA", appointment_type="surgery")
        assert "type" in exc_info.value.message

    def test_missing_reason_rejected(self, engine, doctor, patient):
        """A reason is required."""
        with pytest.raises(BookingValidationError):
            book(engine, doctor.doctor_id, patient.patient_id, reason="")

    def test_malformed_time_rejected(self, engine, doctor, patient):
        """Out of range times are rejected."""
        with pytest.raises(BookingValidationError):
            book(engine, doctor.doctor_id, patient.patient_id, start_time="25:00")

    def test_rejected_booking_writes_nothing(self, engine, repository, doctor, patient):
        """A rejected booking leaves no row behind."""
        with pytest.raises(UnavailableError):
            book(engine, doctor.doctor_id, patient.patient_id, appointment_date=TUESDAY)

        assert repository.list_appointments() == []


class TestUniqueSlotIndex:
    def make_appointment(self, appointment_id, doctor, patient, status=AppointmentStatus.SCHEDULED):
        return Appointment(
            appointment_id=appointment_id,
            patient_id=patient.patient_id,
            doctor_id=doctor.doctor_id,
            appointment_date=MONDAY,
            start_time="10:00",
            end_time="10:30",
            type=AppointmentType.ROUTINE,
            status=status,
            reason="Checkup",
        )

    def test_second_active_row_rejected(self, repository, doctor, patient):
        """Two writers that both passed the pre-check still cannot double book."""
        repository.insert_appointment(self.make_appointment("A000001AAA", doctor, patient))

        with pytest.raises(ConflictError):
            repository.insert_appointment(self.make_appointment("A000002AAA", doctor, patient))

    def test_inactive_rows_do_not_hold_slot(self, repository, doctor, patient):
        """Cancelled rows do not block the unique index."""
        repository.insert_appointment(self.make_appointment(
            "A000001AAA", doctor, patient, status=AppointmentStatus.CANCELLED
        ))
        repository.insert_appointment(self.make_appointment("A000002AAA", doctor, patient))

        assert len(repository.list_appointments(doctor_id=doctor.doctor_id)) == 2


class TestCheckAvailability:
    def test_available(self, engine, doctor):
        """Free slot inside the schedule is available."""
        result = engine.check_availability(doctor.doctor_id, MONDAY, "10:00")

        assert result.available is True
        assert result.message == "Time slot is available"
        assert result.doctor.doctor_id == doctor.doctor_id
        assert result.doctor.department == "Cardiology"
        assert result.available_slots is None

    def test_outside_schedule_offers_day_slots(self, engine, make_doctor):
        """Outside the schedule, the day's slots are offered."""
        doctor = make_doctor(availability=[
            AvailabilitySlot(day_of_week=1, start_time="13:00", end_time="17:00"),
            AvailabilitySlot(day_of_week=1, start_time="08:00", end_time="11:00"),
            AvailabilitySlot(day_of_week=2, start_time="09:00", end_time="12:00"),
        ])

        result = engine.check_availability(doctor.doctor_id, MONDAY, "12:00")

        assert result.available is False
        assert result.message == "Doctor is not available at the requested time"
        # Stored order, not sorted
        assert [slot.start_time for slot in result.available_slots] == ["13:00", "08:00"]
        assert all(slot.day == "Monday" for slot in result.available_slots)

    def test_day_without_slots_offers_nothing(self, engine, doctor):
        """A day off offers no alternatives."""
        result = engine.check_availability(doctor.doctor_id, TUESDAY, "09:00")

        assert result.available is False
        assert result.available_slots == []

    def test_booked_slot(self, engine, doctor, patient):
        """A booked slot is reported with alternatives."""
        book(engine, doctor.doctor_id, patient.patient_id)

        result = engine.check_availability(doctor.doctor_id, MONDAY, "09:00")

        assert result.available is False
        assert result.message == "This time slot is already booked"
        assert len(result.available_slots) == 1

    def test_unknown_doctor(self, engine):
        """Unknown doctors raise NotFoundError."""
        with pytest.raises(NotFoundError):
            engine.check_availability("D000000AAA", MONDAY, "09:00")

    def test_inactive_doctor(self, engine, make_doctor):
        """Inactive doctors raise NotFoundError."""
        doctor = make_doctor(is_active=False)

        with pytest.raises(NotFoundError):
            engine.check_availability(doctor.doctor_id, MONDAY, "09:00")


class TestStatusTransitions:
    def test_full_visit(self, engine, doctor, patient):
        """Should walk scheduled through completed."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id)

        for status in (
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.COMPLETED,
        ):
            appointment = engine.transition_status(appointment.appointment_id, status)

        assert appointment.status == AppointmentStatus.COMPLETED

    def test_illegal_transition(self, engine, doctor, patient):
        """Skipping lifecycle steps is rejected."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id)

        with pytest.raises(BookingValidationError) as exc_info:
            engine.transition_status(appointment.appointment_id, AppointmentStatus.COMPLETED)
        assert "scheduled to completed" in exc_info.value.message

    def test_terminal_status_is_final(self, engine, doctor, patient):
        """Cancelled appointments cannot change again."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id)
        engine.transition_status(appointment.appointment_id, AppointmentStatus.CANCELLED)

        with pytest.raises(BookingValidationError) as exc_info:
            engine.transition_status(appointment.appointment_id, AppointmentStatus.SCHEDULED)
        assert exc_info.value.message == "Appointment is already cancelled and cannot be changed"

    def test_accepts_status_string(self, engine, doctor, patient):
        """Status may be given as its string value."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id)

        updated = engine.transition_status(appointment.appointment_id, "no-show")

        assert updated.status == AppointmentStatus.NO_SHOW

    def test_unknown_status_string(self, engine, doctor, patient):
        """A misspelled status is a validation error, not a crash."""
        appointment = book(engine, doctor.doctor_id, patient.patient_id)

        with pytest.raises(BookingValidationError) as exc_info:
            engine.transition_status(appointment.appointment_id, "canceled")
        assert exc_info.value.message == "Unknown appointment status 'canceled'"

    def test_unknown_appointment(self, engine):
        """Unknown appointments raise NotFoundError."""
        with pytest.raises(NotFoundError):
            engine.transition_status("A000000AAA", AppointmentStatus.CANCELLED)
