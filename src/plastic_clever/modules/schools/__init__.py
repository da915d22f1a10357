"""
Schools module - registration, membership, progression and public stats.
"""

from plastic_clever.modules.schools.models import ProgramStage, School, SchoolRole, SchoolUser
from plastic_clever.modules.schools.repository import SchoolRepository

__all__ = ["ProgramStage", "School", "SchoolRole", "SchoolUser", "SchoolRepository"]
