"""Persistence access for doctors, patients and appointments.

Pattern: separate database persistence from domain models. Rows from
``hospital_desk.api.database_models`` never leave this module; callers get
``hospital_desk.domain`` models back. SQLAlchemy failures are translated
into ``StoreError`` (retryable); unique-key violations into ``ConflictError``.
"""
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hospital_desk.api import database_models as models
from hospital_desk.database import Store
from hospital_desk.domain import Appointment, Doctor, DoctorCreate, Patient, PatientCreate
from hospital_desk.errors import ConflictError, HospitalDeskError, NotFoundError, StoreError
from hospital_desk.identifiers import DOCTOR_PREFIX, PATIENT_PREFIX, generate_public_id
from hospital_desk.lifecycle import ACTIVE_STATUSES, AppointmentStatus
from hospital_desk.logging_config import get_logger

logger = get_logger(__name__)

_ACTIVE_STATUS_VALUES = [status.value for status in ACTIVE_STATUSES]


def _row_to_dict(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


class HospitalRepository:
    """Reads and writes the three front desk collections."""

    def __init__(self, store: Store):
        self.store = store

    @contextmanager
    def _translate_errors(self, operation: str):
        try:
            yield
        except HospitalDeskError:
            raise
        except SQLAlchemyError as e:
            logger.error("store_failure", operation=operation, error=str(e))
            raise StoreError(f"Database error during {operation}") from e

    # ==================== DOCTORS ====================

    def add_doctor(self, data: DoctorCreate) -> Doctor:
        """Register a doctor; generates ``doctorId`` when not supplied."""
        payload = data.model_dump(mode="json")
        payload["doctor_id"] = data.doctor_id or generate_public_id(DOCTOR_PREFIX)

        with self._translate_errors("add_doctor"), self.store.session() as db:
            row = models.Doctor(**payload)
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise ConflictError(
                    "A doctor with this id, email or license number already exists"
                ) from e
            return Doctor.model_validate(_row_to_dict(row))

    def get_doctor(self, doctor_id: str, active_only: bool = True) -> Optional[Doctor]:
        """Get doctor by public id (inactive doctors hidden by default)."""
        with self._translate_errors("get_doctor"), self.store.session() as db:
            query = db.query(models.Doctor).filter(models.Doctor.doctor_id == doctor_id)
            if active_only:
                query = query.filter(models.Doctor.is_active == True)
            row = query.first()
            return Doctor.model_validate(_row_to_dict(row)) if row else None

    def list_doctors(
        self,
        department: Optional[str] = None,
        specialization: Optional[str] = None,
        is_active: Optional[bool] = None,
        doctor_id: Optional[str] = None,
    ) -> List[Doctor]:
        """
        List doctors sorted by first then last name.

        Department and specialization match case-insensitively.
        """
        with self._translate_errors("list_doctors"), self.store.session() as db:
            query = db.query(models.Doctor)
            if department:
                query = query.filter(func.lower(models.Doctor.department) == department.lower())
            if specialization:
                query = query.filter(
                    func.lower(models.Doctor.specialization) == specialization.lower()
                )
            if is_active is not None:
                query = query.filter(models.Doctor.is_active == is_active)
            if doctor_id:
                query = query.filter(models.Doctor.doctor_id == doctor_id)

            rows = query.order_by(models.Doctor.first_name, models.Doctor.last_name).all()
            return [Doctor.model_validate(_row_to_dict(row)) for row in rows]

    def find_active_doctor_by_name(
        self,
        first_name: str,
        last_name: Optional[str] = None,
    ) -> Optional[Doctor]:
        """
        Case-insensitive exact name match among active doctors.

        With a single name ("Dr. Smith") either the first or the last name
        may match.
        """
        with self._translate_errors("find_active_doctor_by_name"), self.store.session() as db:
            query = db.query(models.Doctor).filter(models.Doctor.is_active == True)
            if last_name:
                query = query.filter(
                    func.lower(models.Doctor.first_name) == first_name.lower(),
                    func.lower(models.Doctor.last_name) == last_name.lower(),
                )
            else:
                query = query.filter(or_(
                    func.lower(models.Doctor.first_name) == first_name.lower(),
                    func.lower(models.Doctor.last_name) == first_name.lower(),
                ))
            row = query.order_by(models.Doctor.last_name).first()
            return Doctor.model_validate(_row_to_dict(row)) if row else None

    # ==================== PATIENTS ====================

    def create_patient(self, data: PatientCreate) -> Patient:
        """
        Register a patient.

        Raises:
            ConflictError: If a patient with the same email already exists
        """
        if self.find_patient_by_email(data.email):
            raise ConflictError("A patient with this email already exists")

        payload = data.model_dump(mode="json")
        payload["date_of_birth"] = data.date_of_birth
        payload["patient_id"] = generate_public_id(PATIENT_PREFIX)

        with self._translate_errors("create_patient"), self.store.session() as db:
            row = models.Patient(**payload)
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise ConflictError("A patient with this email already exists") from e
            logger.info("patient_created", patient_id=row.patient_id)
            return Patient.model_validate(_row_to_dict(row))

    def get_patient(self, patient_id: str) -> Optional[Patient]:
        with self._translate_errors("get_patient"), self.store.session() as db:
            row = db.query(models.Patient).filter(
                models.Patient.patient_id == patient_id
            ).first()
            return Patient.model_validate(_row_to_dict(row)) if row else None

    def find_patient_by_email(self, email: str) -> Optional[Patient]:
        """Emails are stored lowercased, so lookups are case-insensitive."""
        with self._translate_errors("find_patient_by_email"), self.store.session() as db:
            row = db.query(models.Patient).filter(
                models.Patient.email == email.strip().lower()
            ).first()
            return Patient.model_validate(_row_to_dict(row)) if row else None

    # ==================== APPOINTMENTS ====================

    def find_active_appointment(
        self,
        doctor_id: str,
        appointment_date: date,
        start_time: str,
    ) -> Optional[Appointment]:
        """Appointment occupying the exact doctor/date/start time, if any."""
        with self._translate_errors("find_active_appointment"), self.store.session() as db:
            row = db.query(models.Appointment).filter(
                models.Appointment.doctor_id == doctor_id,
                models.Appointment.appointment_date == appointment_date,
                models.Appointment.start_time == start_time,
                models.Appointment.status.in_(_ACTIVE_STATUS_VALUES),
            ).first()
            return Appointment.model_validate(_row_to_dict(row)) if row else None

    def insert_appointment(self, appointment: Appointment) -> Appointment:
        """
        Persist a new appointment in a single write.

        Raises:
            ConflictError: If the active-slot unique index rejects the row
            StoreError: On any other database failure
        """
        payload = appointment.model_dump(exclude={"created_at", "updated_at"})
        payload["type"] = appointment.type.value
        payload["status"] = appointment.status.value

        with self._translate_errors("insert_appointment"), self.store.session() as db:
            row = models.Appointment(**payload)
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                # The slot index and the primary key are the only unique
                # constraints; tell them apart by looking for the occupant.
                occupant = self.find_active_appointment(
                    appointment.doctor_id,
                    appointment.appointment_date,
                    appointment.start_time,
                )
                if occupant:
                    raise ConflictError("This time slot is already booked") from e
                raise StoreError("Failed to create appointment") from e
            return Appointment.model_validate(_row_to_dict(row))

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        with self._translate_errors("get_appointment"), self.store.session() as db:
            row = db.query(models.Appointment).filter(
                models.Appointment.appointment_id == appointment_id
            ).first()
            return Appointment.model_validate(_row_to_dict(row)) if row else None

    def list_appointments(
        self,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
    ) -> List[Appointment]:
        """List appointments sorted by date then start time."""
        with self._translate_errors("list_appointments"), self.store.session() as db:
            query = db.query(models.Appointment)
            if patient_id:
                query = query.filter(models.Appointment.patient_id == patient_id)
            if doctor_id:
                query = query.filter(models.Appointment.doctor_id == doctor_id)

            rows = query.order_by(
                models.Appointment.appointment_date,
                models.Appointment.start_time,
            ).all()
            return [Appointment.model_validate(_row_to_dict(row)) for row in rows]

    def update_appointment_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
    ) -> Appointment:
        """
        Overwrite an appointment's status (lifecycle rules live in the engine).

        Raises:
            NotFoundError: If the appointment does not exist
            ConflictError: If re-activating would collide with another booking
        """
        with self._translate_errors("update_appointment_status"), self.store.session() as db:
            row = db.query(models.Appointment).filter(
                models.Appointment.appointment_id == appointment_id
            ).first()
            if not row:
                raise NotFoundError(f"Appointment {appointment_id} not found")

            row.status = status.value
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise ConflictError("This time slot is already booked") from e
            return Appointment.model_validate(_row_to_dict(row))
