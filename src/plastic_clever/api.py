from fastapi import APIRouter

from plastic_clever.modules.analytics.admin_router import router as admin_analytics_router
from plastic_clever.modules.audits.admin_router import router as admin_audits_router
from plastic_clever.modules.audits.router import audits_router, promises_router
from plastic_clever.modules.auth.router import router as auth_router
from plastic_clever.modules.case_studies.admin_router import router as admin_case_studies_router
from plastic_clever.modules.case_studies.router import router as case_studies_router
from plastic_clever.modules.events.admin_router import router as admin_events_router
from plastic_clever.modules.events.router import router as events_router
from plastic_clever.modules.evidence.admin_router import router as admin_evidence_router
from plastic_clever.modules.evidence.router import router as evidence_router
from plastic_clever.modules.evidence_requirements.router import router as requirements_router
from plastic_clever.modules.inspiration.router import router as inspiration_router
from plastic_clever.modules.notifications.router import router as admin_email_router
from plastic_clever.modules.school_access.admin_router import router as admin_access_router
from plastic_clever.modules.school_access.router import router as school_access_router
from plastic_clever.modules.schools.admin_router import router as admin_schools_router
from plastic_clever.modules.schools.router import router as schools_router
from plastic_clever.modules.search.router import router as search_router
from plastic_clever.modules.testimonials.admin_router import router as admin_testimonials_router
from plastic_clever.modules.testimonials.router import router as testimonials_router
from plastic_clever.modules.users.admin_router import router as admin_users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(schools_router, tags=["Schools"])
api_router.include_router(school_access_router, tags=["School Access"])
api_router.include_router(evidence_router, prefix="/evidence", tags=["Evidence"])
api_router.include_router(
    requirements_router, prefix="/evidence-requirements", tags=["Evidence Requirements"]
)
api_router.include_router(audits_router, prefix="/audits", tags=["Audits"])
api_router.include_router(
    promises_router, prefix="/reduction-promises", tags=["Reduction Promises"]
)
api_router.include_router(case_studies_router, prefix="/case-studies", tags=["Case Studies"])
api_router.include_router(inspiration_router, tags=["Inspiration"])
api_router.include_router(events_router, tags=["Events"])
api_router.include_router(testimonials_router, prefix="/testimonials", tags=["Testimonials"])
api_router.include_router(search_router, prefix="/search", tags=["Search"])

api_router.include_router(admin_schools_router, prefix="/admin/schools", tags=["Admin - Schools"])
api_router.include_router(
    admin_evidence_router, prefix="/admin/evidence", tags=["Admin - Evidence"]
)
api_router.include_router(admin_audits_router, prefix="/admin", tags=["Admin - Audits"])
api_router.include_router(
    admin_case_studies_router,
    prefix="/admin/case-studies",
    tags=["Admin - Case Studies"],
)
api_router.include_router(admin_events_router, prefix="/admin/events", tags=["Admin - Events"])
api_router.include_router(admin_users_router, prefix="/admin", tags=["Admin - Users"])
api_router.include_router(admin_email_router, prefix="/admin", tags=["Admin - Bulk Email"])
api_router.include_router(admin_access_router, prefix="/admin", tags=["Admin - School Access"])
api_router.include_router(
    admin_testimonials_router,
    prefix="/admin/testimonials",
    tags=["Admin - Testimonials"],
)
api_router.include_router(admin_analytics_router, prefix="/admin", tags=["Admin - Analytics"])
