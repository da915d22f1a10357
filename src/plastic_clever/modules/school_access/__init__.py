"""
School access module - access requests and teacher invitations.
"""

from plastic_clever.modules.school_access.models import (
    InvitationStatus,
    TeacherInvitation,
    VerificationRequest,
    VerificationStatus,
)

__all__ = ["InvitationStatus", "TeacherInvitation", "VerificationRequest", "VerificationStatus"]
