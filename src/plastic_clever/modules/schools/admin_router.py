"""
Schools Admin Router

School management for platform admins.

Endpoints:
- GET /admin/schools - List schools with filters
- GET /admin/schools/{id} - School details
- PUT /admin/schools/{id} - Update school
- DELETE /admin/schools/{id} - Delete school
- POST /admin/schools/bulk-update - Update many schools
- DELETE /admin/schools/bulk-delete - Delete many schools
- PUT /admin/schools/{id}/progression - Manual progression override
- POST /admin/schools/{id}/recalculate-progress - Rerun the progression check
- GET /admin/schools/{id}/teachers - School team
- POST /admin/schools/{id}/assign-teacher - Add a user to a school
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin
from plastic_clever.core.database import get_db
from plastic_clever.modules.schools import service
from plastic_clever.modules.schools.models import ProgramStage, SchoolType
from plastic_clever.modules.schools.schemas import (
    AssignTeacherRequest,
    BulkOperationResult,
    BulkSchoolDeleteRequest,
    BulkSchoolUpdateRequest,
    ProgressionOverrideRequest,
    SchoolListResponse,
    SchoolResponse,
    SchoolUpdateRequest,
    TeamMember,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=SchoolListResponse, summary="List schools")
async def list_schools(
    country: str | None = Query(None, max_length=100),
    school_type: SchoolType | None = Query(None, alias="type"),
    stage: ProgramStage | None = Query(None),
    search: str | None = Query(None, min_length=1, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> SchoolListResponse:
    result = await service.list_schools(
        db,
        country=country,
        school_type=school_type,
        stage=stage.value if stage else None,
        search=search,
        skip=skip,
        limit=limit,
    )
    logger.info(f"Admin {admin.id} listed schools: total={result['total']}")
    return SchoolListResponse(
        schools=[SchoolResponse.model_validate(school) for school in result["schools"]],
        total=result["total"],
        skip=skip,
        limit=limit,
    )


@router.post("/bulk-update", response_model=BulkOperationResult, summary="Bulk update schools")
async def bulk_update(
    data: BulkSchoolUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> BulkOperationResult:
    result = await service.admin_bulk_update(db, data.school_ids, data.updates)
    logger.info(f"Admin {admin.id} bulk updated {len(result.success)} school(s)")
    return result


@router.delete("/bulk-delete", response_model=BulkOperationResult, summary="Bulk delete schools")
async def bulk_delete(
    data: BulkSchoolDeleteRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> BulkOperationResult:
    result = await service.admin_bulk_delete(db, data.school_ids)
    logger.info(f"Admin {admin.id} bulk deleted {len(result.success)} school(s)")
    return result


@router.get("/{school_id}", response_model=SchoolResponse, summary="Get school")
async def get_school(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> SchoolResponse:
    return SchoolResponse.model_validate(await service.get_school_or_404(db, school_id))


@router.put("/{school_id}", response_model=SchoolResponse, summary="Update school")
async def update_school(
    school_id: str,
    data: SchoolUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> SchoolResponse:
    school = await service.admin_update_school(db, school_id, data)
    logger.info(f"Admin {admin.id} updated school {school_id}")
    return SchoolResponse.model_validate(school)


@router.delete("/{school_id}", summary="Delete school")
async def delete_school(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> dict[str, str]:
    await service.admin_delete_school(db, school_id)
    logger.info(f"Admin {admin.id} deleted school {school_id}")
    return {"message": "School deleted successfully"}


@router.put(
    "/{school_id}/progression",
    response_model=SchoolResponse,
    summary="Override progression",
)
async def override_progression(
    school_id: str,
    data: ProgressionOverrideRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> SchoolResponse:
    school = await service.admin_override_progression(db, school_id, data)
    logger.info(f"Admin {admin.id} overrode progression for school {school_id}")
    return SchoolResponse.model_validate(school)


@router.post(
    "/{school_id}/recalculate-progress",
    response_model=SchoolResponse,
    summary="Recalculate progression",
)
async def recalculate_progress(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> SchoolResponse:
    return SchoolResponse.model_validate(await service.admin_recalculate_progress(db, school_id))


@router.get("/{school_id}/teachers", response_model=list[TeamMember], summary="School teachers")
async def get_teachers(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> list[TeamMember]:
    return await service.get_team(db, admin, school_id)


@router.post("/{school_id}/assign-teacher", summary="Assign teacher to school")
async def assign_teacher(
    school_id: str,
    data: AssignTeacherRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> dict[str, str]:
    membership = await service.admin_assign_teacher(db, school_id, data.email, data.role)
    logger.info(f"Admin {admin.id} assigned {data.email} to school {school_id}")
    return {
        "message": "Teacher assigned to school",
        "user_id": membership.user_id,
        "role": membership.role.value,
    }
