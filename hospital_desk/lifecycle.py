"""Appointment enumerations and status lifecycle.

Use Enums for discrete states and keep the transition map explicit.
"""
from enum import Enum
from typing import Dict, FrozenSet, List


class AppointmentStatus(str, Enum):
    """Appointment status values (wire format is the enum value)."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class AppointmentType(str, Enum):
    """Kinds of visit a patient can book."""
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow-up"
    EMERGENCY = "emergency"
    ROUTINE = "routine"
    SPECIALIST = "specialist"


# Statuses that hold a doctor's slot for conflict purposes
ACTIVE_STATUSES: FrozenSet[AppointmentStatus] = frozenset({
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
})


# Current status → [allowed next statuses]
VALID_TRANSITIONS: Dict[AppointmentStatus, List[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: [
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    ],
    AppointmentStatus.CONFIRMED: [
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    ],
    AppointmentStatus.IN_PROGRESS: [
        AppointmentStatus.COMPLETED,
    ],
    AppointmentStatus.COMPLETED: [],
    AppointmentStatus.CANCELLED: [],
    AppointmentStatus.NO_SHOW: [],
}


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """Check whether ``current → new`` is a legal lifecycle step."""
    return new in VALID_TRANSITIONS.get(current, [])


def is_terminal(status: AppointmentStatus) -> bool:
    return not VALID_TRANSITIONS.get(status)
