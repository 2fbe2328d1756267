"""Hospital front desk: appointment availability, booking and chat routing."""

__version__ = "1.0.0"
