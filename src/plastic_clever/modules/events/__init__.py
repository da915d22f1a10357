"""
Events module - workshops and webinars with registration and waitlists.
"""

from plastic_clever.modules.events.models import (
    Event,
    EventRegistration,
    EventStatus,
    RegistrationStatus,
)

__all__ = ["Event", "EventRegistration", "EventStatus", "RegistrationStatus"]
