"""
Audits module - waste audits and reduction promises.
"""

from plastic_clever.modules.audits.models import AuditResponse, AuditStatus, ReductionPromise

__all__ = ["AuditResponse", "AuditStatus", "ReductionPromise"]
