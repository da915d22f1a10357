"""
Users module - accounts, roles and the activity log.
"""

from plastic_clever.modules.users.models import User, UserActivityLog, UserRole
from plastic_clever.modules.users.repository import UserRepository

__all__ = ["User", "UserActivityLog", "UserRole", "UserRepository"]
