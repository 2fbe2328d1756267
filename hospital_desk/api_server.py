"""FastAPI server for the hospital front desk.

Features:
- Booking and availability through the single ``AvailabilityEngine``
- Doctor listing, patient registration and lookup
- Keyword-routed chat agents
- Global exception handling with a uniform ``ErrorResponse`` body
- Request IDs bound into structured logs
"""
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hospital_desk import __version__, config
from hospital_desk.agents import AgentContext, AgentManager
from hospital_desk.api.dependencies import (
    get_agent_manager, get_engine, get_repository, get_store
)
from hospital_desk.api.models import (
    AppointmentEnvelope, AppointmentList, ChatRequest, ChatResponse, DoctorList,
    ErrorResponse, PatientEnvelope
)
from hospital_desk.availability import AvailabilityEngine, AvailabilityResult
from hospital_desk.database import Store
from hospital_desk.domain import BookingRequest, PatientCreate, normalize_time
from hospital_desk.errors import BookingValidationError, HospitalDeskError, NotFoundError
from hospital_desk.logging_config import (
    RequestIDMiddleware, get_logger, setup_structured_logging
)
from hospital_desk.repository import HospitalRepository

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store on startup and dispose of it on shutdown."""
    setup_structured_logging(config.LOG_LEVEL)
    logger.info("server_starting", version=__version__)

    try:
        app.state.store.init()
    except Exception as e:
        logger.error("store_init_failed", error=str(e))
        raise

    yield

    app.state.store.close()
    logger.info("server_stopped")


def _error_body(error: str, code: str, detail: Optional[str] = None) -> dict:
    return ErrorResponse(error=error, detail=detail, code=code).model_dump()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HospitalDeskError)
    async def hospital_desk_error_handler(request: Request, exc: HospitalDeskError):
        """Render domain and store errors with their own status and code."""
        if exc.retryable:
            logger.error("request_failed", code=exc.code, error=exc.message, path=request.url.path)
        else:
            logger.info("request_rejected", code=exc.code, error=exc.message, path=request.url.path)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors consistently."""
        logger.warning("validation_error", errors=str(exc.errors()), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Validation Error", "VALIDATION_ERROR", str(exc.errors())),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all handler for unexpected exceptions."""
        logger.error("unexpected_error", error=str(exc), path=request.url.path, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                "Internal Server Error",
                "INTERNAL_ERROR",
                "An unexpected error occurred. Please try again later.",
            ),
        )


def register_routes(app: FastAPI) -> None:
    @app.get("/health", tags=["Health"])
    def health_check(store: Store = Depends(get_store)):
        """Health check endpoint for load balancers."""
        return {
            "status": "healthy",
            "service": "hospital-desk-api",
            "version": __version__,
            "store": "ready" if store.is_initialized else "not_initialized",
        }

    # ==================== DOCTORS ====================

    @app.get("/api/doctors", tags=["Doctors"], response_model=DoctorList)
    def list_doctors(
        department: Optional[str] = None,
        specialization: Optional[str] = None,
        is_active: Optional[bool] = Query(None, alias="isActive"),
        doctor_id: Optional[str] = Query(None, alias="doctorId"),
        repository: HospitalRepository = Depends(get_repository),
    ):
        """List doctors sorted by first then last name."""
        doctors = repository.list_doctors(
            department=department,
            specialization=specialization,
            is_active=is_active,
            doctor_id=doctor_id,
        )
        return DoctorList(doctors=doctors)

    @app.get(
        "/api/doctors/availability",
        tags=["Doctors"],
        response_model=AvailabilityResult,
        response_model_exclude_none=True,
    )
    def doctor_availability(
        doctor_id: Optional[str] = Query(None, alias="doctorId"),
        date_param: Optional[str] = Query(None, alias="date"),
        time_param: Optional[str] = Query(None, alias="time"),
        engine: AvailabilityEngine = Depends(get_engine),
    ):
        """
        Check one doctor/date/time.

        Raises:
            400: Missing or malformed parameter
            404: Unknown or inactive doctor
        """
        if not (doctor_id and date_param and time_param):
            raise BookingValidationError("Doctor ID, date, and time are required")

        try:
            requested_date = date.fromisoformat(date_param)
            requested_time = normalize_time(time_param)
        except ValueError as e:
            raise BookingValidationError(str(e)) from e

        return engine.check_availability(doctor_id, requested_date, requested_time)

    # ==================== PATIENTS ====================

    @app.post("/api/patients", tags=["Patients"], response_model=PatientEnvelope)
    def create_patient(
        payload: PatientCreate,
        repository: HospitalRepository = Depends(get_repository),
    ):
        """
        Register a patient.

        Raises:
            400: Missing or malformed field
            409: Email already registered
        """
        patient = repository.create_patient(payload)
        return {"patient": patient.model_dump()}

    @app.get("/api/patients", tags=["Patients"], response_model=PatientEnvelope)
    def find_patient(
        email: Optional[str] = None,
        repository: HospitalRepository = Depends(get_repository),
    ):
        if not email:
            raise BookingValidationError("Email parameter is required")

        patient = repository.find_patient_by_email(email)
        if not patient:
            raise NotFoundError("Patient not found")
        return {"patient": patient.model_dump()}

    # ==================== APPOINTMENTS ====================

    @app.post("/api/appointments", tags=["Appointments"], response_model=AppointmentEnvelope)
    def book_appointment(
        payload: BookingRequest,
        engine: AvailabilityEngine = Depends(get_engine),
    ):
        """
        Book an appointment.

        Raises:
            400: Invalid request, or time outside the doctor's schedule
            404: Unknown/inactive doctor or unknown patient
            409: Slot already booked
        """
        appointment = engine.book(payload)
        return {"appointment": appointment.model_dump()}

    @app.get("/api/appointments", tags=["Appointments"], response_model=AppointmentList)
    def list_appointments(
        patient_id: Optional[str] = Query(None, alias="patientId"),
        doctor_id: Optional[str] = Query(None, alias="doctorId"),
        repository: HospitalRepository = Depends(get_repository),
    ):
        """List appointments sorted by date then start time."""
        appointments = repository.list_appointments(patient_id=patient_id, doctor_id=doctor_id)
        return {"appointments": [appointment.model_dump() for appointment in appointments]}

    # ==================== CHAT ====================

    @app.post("/api/chat", tags=["Chat"], response_model=ChatResponse)
    def chat(
        request: ChatRequest,
        agent_manager: AgentManager = Depends(get_agent_manager),
    ):
        """Route a chat message to the reception, nurse or billing agent."""
        context = request.context or AgentContext()
        result = agent_manager.process_message(request.message, context)
        return ChatResponse(
            response=result.content,
            confidence=result.confidence,
            next_agent=result.next_agent,
            metadata=result.metadata,
        )


def create_app(
    store: Optional[Store] = None,
    agent_manager: Optional[AgentManager] = None,
    llm=None,
) -> FastAPI:
    """
    Application factory.

    Args:
        store: Database handle (defaults to ``config.DATABASE_URL``)
        agent_manager: Chat router (defaults to one built over the store)
        llm: Chat model for the default agent manager (lazy ChatOpenAI if None)
    """
    app = FastAPI(
        title="Hospital Front Desk API",
        description="Appointment availability, booking and front desk chat",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    store = store or Store(config.DATABASE_URL)
    repository = HospitalRepository(store)
    engine = AvailabilityEngine(repository)

    app.state.store = store
    app.state.repository = repository
    app.state.engine = engine
    app.state.agent_manager = agent_manager or AgentManager(repository, engine, llm=llm)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)
    register_routes(app)
    return app


app = create_app()


def main():
    import uvicorn

    uvicorn.run(
        "hospital_desk.api_server:app",
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
