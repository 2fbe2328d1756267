"""Error taxonomy shared by the engine, the repository and the API layer.

Every error carries a machine-readable ``code``, the HTTP status the API
layer renders it with, and whether a caller may retry the operation.
Only store/infrastructure failures are retryable.
"""


class HospitalDeskError(Exception):
    """Base class for user-facing errors."""
    code = "INTERNAL_ERROR"
    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookingValidationError(HospitalDeskError):
    """Raised when a required field is missing or malformed."""
    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(HospitalDeskError):
    """Raised when a patient, an active doctor or an appointment does not exist."""
    code = "NOT_FOUND"
    status_code = 404


class UnavailableError(HospitalDeskError):
    """Raised when the requested time is outside the doctor's weekly schedule."""
    code = "UNAVAILABLE"
    status_code = 400


class ConflictError(HospitalDeskError):
    """Raised when the slot (or a unique natural key) is already taken."""
    code = "CONFLICT"
    status_code = 409


class StoreError(HospitalDeskError):
    """Raised when the database or other infrastructure fails."""
    code = "INTERNAL_ERROR"
    status_code = 500
    retryable = True
