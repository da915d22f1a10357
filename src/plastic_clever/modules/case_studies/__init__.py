"""
Case studies module - the public gallery and its admin management.
"""

from plastic_clever.modules.case_studies.models import CaseStudy, CaseStudyStatus

__all__ = ["CaseStudy", "CaseStudyStatus"]
