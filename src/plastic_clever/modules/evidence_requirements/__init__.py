"""
Evidence requirements module - the per-stage evidence checklist.
"""

from plastic_clever.modules.evidence_requirements.models import EvidenceRequirement

__all__ = ["EvidenceRequirement"]
