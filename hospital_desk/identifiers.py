"""Public identifiers for patients, doctors and appointments.

Format: entity prefix + last 6 digits of the millisecond clock + 3 random
base-36 characters, e.g. ``A123456XYZ``.
"""
import random
import string
import time

PATIENT_PREFIX = "P"
DOCTOR_PREFIX = "D"
APPOINTMENT_PREFIX = "A"

_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase


def generate_public_id(prefix: str) -> str:
    """Generate an identifier such as ``P804213K9Q``."""
    timestamp = str(int(time.time() * 1000))[-6:]
    suffix = "".join(random.choices(_SUFFIX_ALPHABET, k=3))
    return f"{prefix}{timestamp}{suffix}"
