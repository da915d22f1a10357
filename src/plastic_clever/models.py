"""
Model registry.

Imports every ORM model so relationship targets resolve and Alembic sees
the complete metadata.
"""

from plastic_clever.core.database import Base
from plastic_clever.modules.audits.models import AuditResponse, ReductionPromise
from plastic_clever.modules.case_studies.models import CaseStudy
from plastic_clever.modules.events.models import Event, EventAnnouncement, EventRegistration
from plastic_clever.modules.evidence.models import Evidence
from plastic_clever.modules.evidence_requirements.models import EvidenceRequirement
from plastic_clever.modules.school_access.models import TeacherInvitation, VerificationRequest
from plastic_clever.modules.schools.models import School, SchoolUser
from plastic_clever.modules.testimonials.models import Testimonial
from plastic_clever.modules.users.models import User, UserActivityLog

metadata = Base.metadata

__all__ = [
    "AuditResponse",
    "CaseStudy",
    "Event",
    "EventAnnouncement",
    "EventRegistration",
    "Evidence",
    "EvidenceRequirement",
    "ReductionPromise",
    "School",
    "SchoolUser",
    "TeacherInvitation",
    "Testimonial",
    "User",
    "UserActivityLog",
    "VerificationRequest",
    "metadata",
]
