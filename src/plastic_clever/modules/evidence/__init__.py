"""
Evidence module - stage submissions and their review.
"""

from plastic_clever.modules.evidence.models import Evidence, EvidenceStatus, EvidenceVisibility

__all__ = ["Evidence", "EvidenceStatus", "EvidenceVisibility"]
